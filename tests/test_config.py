"""
Tests for configuration loading — provisioner.yml parsing and validation.
"""

import textwrap
from pathlib import Path

import pytest

from provisioner.core.config.loader import ConfigError, find_config_file, load_config
from provisioner.core.models.config import ProvisionerConfig
from provisioner.core.use_cases.config_check import check_config


@pytest.fixture
def valid_config_yml(tmp_path: Path) -> Path:
    """Create a provisioner.yml overriding a few settings."""
    content = textwrap.dedent("""\
        use_package_manager: false
        install_dirs:
          linux: /opt/ipfs/bin
        release:
          pinned_version: "0.24.0"
        download:
          max_attempts: 6
          base_delay: 1.0
        daemon:
          storage_max: 500GB
          repo_path: ~/.ipfs-provider
    """)
    path = tmp_path / "provisioner.yml"
    path.write_text(content)
    return path


@pytest.fixture
def wrapped_config_yml(tmp_path: Path) -> Path:
    """Create a provisioner.yml with content under a 'provisioner:' key."""
    content = textwrap.dedent("""\
        provisioner:
          binary_name: kubo-ipfs
    """)
    path = tmp_path / "provisioner.yml"
    path.write_text(content)
    return path


class TestDefaults:
    def test_defaults(self):
        config = ProvisionerConfig()
        assert config.binary_name == "ipfs"
        assert config.release.fallback_version == "v0.22.0"
        assert config.release.registry_url == "https://api.github.com/repos/ipfs/kubo/releases/latest"
        assert config.download.max_attempts == 4
        assert config.install_dirs["windows"] == "~/AppData/Local/IPFS"
        assert config.archive_extensions == {"windows": "zip", "macos": "tar.gz", "linux": "tar.gz"}
        assert config.daemon.storage_max == "100GB"

    def test_default_package_managers(self):
        config = ProvisionerConfig()
        assert [pm.name for pm in config.package_managers["linux"]] == ["apt", "yum"]
        assert [pm.name for pm in config.package_managers["macos"]] == ["brew"]
        assert [pm.name for pm in config.package_managers["windows"]] == ["winget"]
        assert set(config.package_managers) == {"linux", "macos", "windows"}


class TestLoadConfig:
    """Tests for load_config()."""

    def test_load_valid_config(self, valid_config_yml: Path):
        config = load_config(valid_config_yml)
        assert config.use_package_manager is False
        assert config.install_dirs["linux"] == "/opt/ipfs/bin"
        assert config.release.pinned_version == "0.24.0"
        assert config.download.max_attempts == 6
        assert config.daemon.storage_max == "500GB"

    def test_partial_maps_keep_other_os_defaults(self, valid_config_yml: Path):
        config = load_config(valid_config_yml)
        assert config.install_dirs["macos"] == "/usr/local/bin"
        assert config.install_dirs["windows"] == "~/AppData/Local/IPFS"

    def test_load_wrapped_format(self, wrapped_config_yml: Path):
        config = load_config(wrapped_config_yml)
        assert config.binary_name == "kubo-ipfs"

    def test_empty_file_is_defaults(self, tmp_path: Path):
        path = tmp_path / "provisioner.yml"
        path.write_text("")
        assert load_config(path) == ProvisionerConfig()

    def test_missing_file_raises(self, tmp_path: Path):
        with pytest.raises(ConfigError, match="not found"):
            load_config(tmp_path / "nonexistent.yml")

    def test_invalid_yaml_raises(self, tmp_path: Path):
        path = tmp_path / "provisioner.yml"
        path.write_text(":: invalid: yaml: [")
        with pytest.raises(ConfigError, match="Invalid YAML"):
            load_config(path)

    def test_non_mapping_raises(self, tmp_path: Path):
        path = tmp_path / "provisioner.yml"
        path.write_text("- just\n- a\n- list\n")
        with pytest.raises(ConfigError, match="Expected a YAML mapping"):
            load_config(path)

    def test_schema_violation_raises(self, tmp_path: Path):
        path = tmp_path / "provisioner.yml"
        path.write_text("download:\n  max_attempts: 0\n")
        with pytest.raises(ConfigError, match="Invalid provisioner configuration"):
            load_config(path)

    @pytest.mark.parametrize("field", ["dist_base_url", "registry_url"])
    def test_release_urls_need_a_scheme(self, tmp_path: Path, field: str):
        path = tmp_path / "provisioner.yml"
        path.write_text(f"release:\n  {field}: dist.ipfs.tech/kubo\n")
        with pytest.raises(ConfigError, match="must be an http"):
            load_config(path)

    def test_backoff_must_grow(self, tmp_path: Path):
        path = tmp_path / "provisioner.yml"
        path.write_text("download:\n  backoff_factor: 1.0\n")
        with pytest.raises(ConfigError):
            load_config(path)

    def test_auto_search_falls_back_to_defaults(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
        isolated = tmp_path / "isolated"
        isolated.mkdir()
        monkeypatch.chdir(isolated)
        assert load_config(None) == ProvisionerConfig()


class TestFindConfigFile:
    """Tests for find_config_file()."""

    def test_find_in_current_dir(self, tmp_path: Path):
        (tmp_path / "provisioner.yml").write_text("")
        assert find_config_file(tmp_path) == (tmp_path / "provisioner.yml").resolve()

    def test_find_in_parent_dir(self, tmp_path: Path):
        (tmp_path / "provisioner.yml").write_text("")
        child = tmp_path / "a" / "b"
        child.mkdir(parents=True)
        assert find_config_file(child) == (tmp_path / "provisioner.yml").resolve()

    def test_not_found(self, tmp_path: Path):
        isolated = tmp_path / "isolated"
        isolated.mkdir()
        found = find_config_file(isolated)
        assert found is None or not str(found).startswith(str(isolated))


class TestCheckConfig:
    """Tests for the config check use case."""

    def test_valid(self, valid_config_yml: Path):
        result = check_config(valid_config_yml)
        assert result.valid
        assert result.errors == []
        assert any("pinned" in w for w in result.warnings)
        assert any("Package managers disabled" in w for w in result.warnings)

    def test_invalid(self, tmp_path: Path):
        path = tmp_path / "provisioner.yml"
        path.write_text("daemon:\n  gc_watermark: 150\n")
        result = check_config(path)
        assert not result.valid
        assert result.errors

    def test_no_file_warns(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
        isolated = tmp_path / "isolated"
        isolated.mkdir()
        monkeypatch.chdir(isolated)
        result = check_config()
        assert result.valid
        assert any("built-in defaults" in w for w in result.warnings)

    def test_to_dict(self, valid_config_yml: Path):
        data = check_config(valid_config_yml).to_dict()
        assert data["valid"] is True
        assert data["config"]["daemon"]["storage_max"] == "500GB"
        assert data["config_path"] == str(valid_config_yml)
