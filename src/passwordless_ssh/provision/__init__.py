"""Provisioning pipeline stages."""

from .inputs import InputCollector, validate_alias
from .installer import (
    CopyIdInstaller,
    KeyInstaller,
    ManualInstaller,
    RemoteInstaller,
    select_installer,
)
from .keys import KeyManager
from .models import (
    Alias,
    AliasValidation,
    CollectedInput,
    ConfigEntry,
    ConfigWriteResult,
    InstallResult,
    KeyPair,
    Target,
)
from .ssh_config import ConfigWriter, parse_host_entries
from .verifier import ConnectivityVerifier

__all__ = [
    "Alias",
    "AliasValidation",
    "CollectedInput",
    "ConfigEntry",
    "ConfigWriteResult",
    "ConfigWriter",
    "ConnectivityVerifier",
    "CopyIdInstaller",
    "InputCollector",
    "InstallResult",
    "KeyInstaller",
    "KeyManager",
    "KeyPair",
    "ManualInstaller",
    "RemoteInstaller",
    "Target",
    "parse_host_entries",
    "select_installer",
    "validate_alias",
]
