"""Error kinds raised by the provisioning stages.

Every failure of the pipeline is one of these. The workflow turns them into a
failed stage result; the CLI prints ``message`` and ``remediation`` and exits 1.
"""

from __future__ import annotations

from typing import Optional


class ProvisioningError(RuntimeError):
    """Base class for every fatal provisioning failure."""

    kind = "error"

    def __init__(self, message: str, *, remediation: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.remediation = remediation


class ValidationError(ProvisioningError):
    """Missing or malformed operator input."""

    kind = "validation_error"


class KeyAbsentDeclined(ProvisioningError):
    """No key pair on disk and the operator refused to generate one."""

    kind = "key_absent_declined"


class KeyGenerationError(ProvisioningError):
    """ssh-keygen is missing or failed."""

    kind = "key_generation_error"


class RemoteInstallError(ProvisioningError):
    """The public key could not be installed on the remote host."""

    kind = "remote_install_error"


class VerificationError(ProvisioningError):
    """The key-only login probe failed.

    ``reason`` tells the operator whether the host refused the key
    (``rejected``), could not be reached (``unreachable``) or answered with
    something unexpected (``unexpected_output``).
    """

    kind = "verification_error"

    REJECTED = "rejected"
    UNREACHABLE = "unreachable"
    UNEXPECTED_OUTPUT = "unexpected_output"

    def __init__(
        self,
        message: str,
        *,
        reason: str,
        remediation: Optional[str] = None,
    ) -> None:
        super().__init__(message, remediation=remediation)
        self.reason = reason


class ConfigWriteError(ProvisioningError):
    """The SSH client configuration file could not be updated."""

    kind = "config_write_error"


class AliasConflictError(ConfigWriteError):
    """The alias is already defined with different connection settings."""
