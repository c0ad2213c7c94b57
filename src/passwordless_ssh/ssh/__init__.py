"""SSH utilities for passwordless-ssh."""

from .authorized_keys import PublicKey
from .credentials import SSHCredentials
from .session import SSHCommandResult, SSHConnectionError, SSHSession

__all__ = [
    "PublicKey",
    "SSHCredentials",
    "SSHCommandResult",
    "SSHConnectionError",
    "SSHSession",
]
