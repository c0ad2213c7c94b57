"""Installing the public key on the remote host.

Two strategies share the ``KeyInstaller`` interface:
- CopyIdInstaller: hands the job to ssh-copy-id (it prompts for the password
  and skips keys that are already installed)
- ManualInstaller: password login through paramiko, then reads
  ~/.ssh/authorized_keys and appends the key only when it is missing
"""

from __future__ import annotations

import shutil
import subprocess
from abc import ABC, abstractmethod
from typing import Callable, Optional

from ..config import AppConfig
from ..errors import RemoteInstallError
from ..interaction import InputType, InteractionRequest, UserInteractionHandler
from ..ssh import PublicKey, SSHConnectionError, SSHCredentials, SSHSession
from ..utils.logging import get_logger
from .models import InstallResult, KeyPair, Target

logger = get_logger(__name__)

Runner = Callable[..., subprocess.CompletedProcess]
SessionFactory = Callable[[SSHCredentials], SSHSession]

REMOTE_SSH_DIR = "~/.ssh"
REMOTE_AUTHORIZED_KEYS = "~/.ssh/authorized_keys"

_PREPARE_COMMAND = (
    f"mkdir -p {REMOTE_SSH_DIR} && chmod 700 {REMOTE_SSH_DIR} && "
    f"touch {REMOTE_AUTHORIZED_KEYS} && cat {REMOTE_AUTHORIZED_KEYS}"
)
# 文件末尾没有换行时先补一个，避免拼接到上一行
_APPEND_COMMAND = (
    f"if [ -s {REMOTE_AUTHORIZED_KEYS} ] && [ -n \"$(tail -c1 {REMOTE_AUTHORIZED_KEYS})\" ]; "
    f"then echo >> {REMOTE_AUTHORIZED_KEYS}; fi; "
    f"cat >> {REMOTE_AUTHORIZED_KEYS} && chmod 600 {REMOTE_AUTHORIZED_KEYS}"
)
_CHMOD_COMMAND = f"chmod 600 {REMOTE_AUTHORIZED_KEYS}"


class KeyInstaller(ABC):
    """Puts a public key into the remote account's authorized_keys."""

    method = "unknown"

    @abstractmethod
    def install(self, target: Target, key_pair: KeyPair) -> InstallResult:
        """Install ``key_pair.public_path`` for ``target`` or raise RemoteInstallError."""


class CopyIdInstaller(KeyInstaller):
    """Delegates to ssh-copy-id, attached to the operator's terminal."""

    method = "ssh-copy-id"

    def __init__(
        self,
        binary: str,
        *,
        connect_timeout: int = 10,
        runner: Runner = subprocess.run,
    ) -> None:
        self.binary = binary
        self.connect_timeout = connect_timeout
        self._run = runner

    def install(self, target: Target, key_pair: KeyPair) -> InstallResult:
        command = [
            self.binary,
            "-i", str(key_pair.public_path),
            "-p", str(target.port),
            "-o", f"ConnectTimeout={self.connect_timeout}",
            target.address,
        ]
        logger.debug("Running %s", " ".join(command))
        try:
            completed = self._run(command, check=False)
        except OSError as exc:
            raise RemoteInstallError(
                f"Could not run {self.binary}: {exc}",
                remediation=f"Check that you can log in with: ssh {target.address}",
            ) from exc
        if completed.returncode != 0:
            raise RemoteInstallError(
                f"{self.binary} exited with status {completed.returncode}.",
                remediation=f"Check the password and that you can log in with: ssh {target.address}",
            )
        return InstallResult(method=self.method)


class ManualInstaller(KeyInstaller):
    """Appends the key over a paramiko session when ssh-copy-id is unavailable."""

    method = "manual"

    def __init__(
        self,
        interaction_handler: UserInteractionHandler,
        *,
        connect_timeout: int = 10,
        session_factory: Optional[SessionFactory] = None,
    ) -> None:
        self.interaction = interaction_handler
        self.connect_timeout = connect_timeout
        self._session_factory = session_factory or SSHSession

    def _credentials(self, target: Target) -> SSHCredentials:
        response = self.interaction.ask(
            InteractionRequest(
                question=f"{target.address}'s password (leave empty to use ssh-agent)",
                input_type=InputType.SECRET,
            )
        )
        if response.cancelled:
            raise RemoteInstallError("Password prompt cancelled.")
        password = response.value
        return SSHCredentials(
            host=target.remote_host,
            username=target.remote_user,
            port=target.port,
            auth_method="password" if password else "agent",
            password=password or None,
            timeout=self.connect_timeout,
        )

    def install(self, target: Target, key_pair: KeyPair) -> InstallResult:
        try:
            public_key = PublicKey.from_file(key_pair.public_path)
        except (OSError, ValueError) as exc:
            raise RemoteInstallError(
                f"Cannot read public key {key_pair.public_path}: {exc}",
                remediation=f"Regenerate it with: ssh-keygen -y -f {key_pair.private_path}",
            ) from exc

        self.interaction.notify("ssh-copy-id not found. Installing key manually...")
        session = self._session_factory(self._credentials(target))
        try:
            session.connect()
            existing = session.run(_PREPARE_COMMAND)
            if not existing.ok:
                raise RemoteInstallError(
                    f"Could not read {REMOTE_AUTHORIZED_KEYS}: {existing.stderr or existing.exit_status}",
                    remediation=f"Check the permissions of {REMOTE_SSH_DIR} on {target.remote_host}.",
                )

            if public_key.is_listed_in(existing.stdout):
                logger.info("Key %s already present on %s", public_key.fingerprint, target.address)
                fixed = session.run(_CHMOD_COMMAND)
                if not fixed.ok:
                    logger.warning("chmod 600 on %s failed: %s", REMOTE_AUTHORIZED_KEYS, fixed.stderr)
                return InstallResult(method=self.method, already_present=True)

            appended = session.run(_APPEND_COMMAND, input_data=public_key.to_line() + "\n")
            if not appended.ok:
                raise RemoteInstallError(
                    f"Appending to {REMOTE_AUTHORIZED_KEYS} failed: {appended.stderr or appended.exit_status}",
                    remediation=f"Check the permissions of {REMOTE_SSH_DIR} on {target.remote_host}.",
                )
            logger.info("Installed key %s on %s", public_key.fingerprint, target.address)
            return InstallResult(method=self.method)
        except SSHConnectionError as exc:
            raise RemoteInstallError(
                f"Could not log in to {target.address}: {exc}",
                remediation=f"Check the password and that you can log in with: ssh {target.address}",
            ) from exc
        finally:
            session.close()


def select_installer(
    config: AppConfig,
    interaction_handler: UserInteractionHandler,
    *,
    which: Callable[[str], Optional[str]] = shutil.which,
    runner: Runner = subprocess.run,
    session_factory: Optional[SessionFactory] = None,
) -> KeyInstaller:
    """Pick the installer once, preferring ssh-copy-id when it is on PATH."""
    if config.install.prefer_copy_id:
        binary = which(config.install.copy_id_binary)
        if binary:
            logger.debug("Using %s", binary)
            return CopyIdInstaller(
                binary,
                connect_timeout=config.ssh.connect_timeout,
                runner=runner,
            )
    return ManualInstaller(
        interaction_handler,
        connect_timeout=config.ssh.connect_timeout,
        session_factory=session_factory,
    )


class RemoteInstaller:
    """Pipeline stage wrapping whichever installer was selected."""

    def __init__(self, installer: KeyInstaller, interaction_handler: UserInteractionHandler) -> None:
        self.installer = installer
        self.interaction = interaction_handler

    def install(self, target: Target, key_pair: KeyPair) -> InstallResult:
        if self.installer.method == CopyIdInstaller.method:
            self.interaction.notify(
                "You will be prompted for the remote user's password to install the public key."
            )
        result = self.installer.install(target, key_pair)
        if result.already_present:
            self.interaction.notify(f"Key already installed on {target.address}.")
        return result
