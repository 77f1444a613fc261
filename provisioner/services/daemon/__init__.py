"""
Daemon service — repo init, configuration and background start.
"""

from provisioner.services.daemon.supervisor import (  # noqa: F401
    DaemonError,
    DaemonStatus,
    DaemonSupervisor,
    InitResult,
    StartResult,
)
