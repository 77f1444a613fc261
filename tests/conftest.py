"""
Shared test fixtures and configuration.
"""

from pathlib import Path

import pytest

from provisioner.core.models.config import ProvisionerConfig

# ── Fixtures ────────────────────────────────────────────────────


@pytest.fixture
def install_dir(tmp_path: Path) -> Path:
    """Target directory for placed binaries (not created up front)."""
    return tmp_path / "bin"


@pytest.fixture
def config(install_dir: Path) -> ProvisionerConfig:
    """Default config with every OS installing into a temp directory."""
    return ProvisionerConfig(
        install_dirs={os_name: str(install_dir) for os_name in ("windows", "macos", "linux")},
    )


@pytest.fixture
def scratch_root(tmp_path: Path) -> Path:
    root = tmp_path / "scratch"
    root.mkdir()
    return root


@pytest.fixture
def sleeps() -> list[float]:
    """Collects requested sleep durations instead of sleeping."""
    return []
