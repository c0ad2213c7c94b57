"""Local key pair lifecycle."""

from __future__ import annotations

import shutil
import subprocess
from pathlib import Path
from typing import Callable, Optional

from ..errors import KeyAbsentDeclined, KeyGenerationError
from ..interaction import InputType, InteractionRequest, UserInteractionHandler
from ..paths import ensure_private_dir
from ..utils.logging import get_logger
from .models import KeyPair

logger = get_logger(__name__)

Runner = Callable[..., subprocess.CompletedProcess]


class KeyManager:
    """Makes sure a usable key pair exists, generating one with consent."""

    def __init__(
        self,
        interaction_handler: UserInteractionHandler,
        *,
        ssh_dir: Path,
        key_type: str = "ed25519",
        comment: str = "passwordless-setup",
        keygen_binary: str = "ssh-keygen",
        runner: Runner = subprocess.run,
        which: Callable[[str], Optional[str]] = shutil.which,
    ) -> None:
        self.interaction = interaction_handler
        self.ssh_dir = ssh_dir
        self.key_type = key_type
        self.comment = comment
        self.keygen_binary = keygen_binary
        self._run = runner
        self._which = which

    def ensure(self, private_path: Path) -> KeyPair:
        ensure_private_dir(self.ssh_dir)
        key_pair = KeyPair.for_private_key(private_path)

        if key_pair.exists:
            logger.info("Using existing key %s", key_pair.private_path)
            if not key_pair.public_path.is_file():
                self._derive_public_key(key_pair)
            return key_pair

        self.interaction.notify(f"No SSH key found at {key_pair.private_path}")
        response = self.interaction.ask(
            InteractionRequest(
                question="Generate new key?",
                input_type=InputType.CONFIRM,
                default="y",
            )
        )
        if response.cancelled or not response.confirmed:
            raise KeyAbsentDeclined(
                "Aborted. No key was generated.",
                remediation=(
                    f"Create a key first with: ssh-keygen -t {self.key_type} "
                    f"-f {key_pair.private_path}"
                ),
            )

        self._generate(key_pair)
        self.interaction.notify("Key generated.", "success")
        return key_pair.refreshed()

    def _keygen(self) -> str:
        binary = self._which(self.keygen_binary)
        if not binary:
            raise KeyGenerationError(
                f"{self.keygen_binary} not found.",
                remediation="Install the OpenSSH client tools and run again.",
            )
        return binary

    def _generate(self, key_pair: KeyPair) -> None:
        binary = self._keygen()
        parent = key_pair.private_path.parent
        if not parent.exists():
            ensure_private_dir(parent)
        command = [
            binary,
            "-t", self.key_type,
            "-f", str(key_pair.private_path),
            "-N", "",
            "-C", self.comment,
        ]
        logger.debug("Running %s", " ".join(command))
        try:
            self._run(command, check=True)
        except (subprocess.CalledProcessError, OSError) as exc:
            raise KeyGenerationError(
                f"ssh-keygen failed: {exc}",
                remediation=f"Create a key manually with: ssh-keygen -t {self.key_type} -f {key_pair.private_path}",
            ) from exc

    def _derive_public_key(self, key_pair: KeyPair) -> None:
        """Rebuild a missing ``.pub`` file from the private key."""
        binary = self._keygen()
        logger.warning("Public key %s missing, deriving it from the private key", key_pair.public_path)
        try:
            result = self._run(
                [binary, "-y", "-f", str(key_pair.private_path)],
                check=True,
                capture_output=True,
                text=True,
            )
            key_pair.public_path.write_text(result.stdout.strip() + "\n", encoding="utf-8")
            key_pair.public_path.chmod(0o644)
        except (subprocess.CalledProcessError, OSError) as exc:
            raise KeyGenerationError(
                f"Could not derive {key_pair.public_path}: {exc}",
                remediation=f"Recreate it with: ssh-keygen -y -f {key_pair.private_path} > {key_pair.public_path}",
            ) from exc
