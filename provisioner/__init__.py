"""kubo-provisioner — install, verify and supervise the IPFS kubo daemon."""

__version__ = "0.1.0"
