"""Data models shared by the provisioning stages."""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Union

from ..paths import public_key_path

ALIAS_PATTERN = re.compile(r"[A-Za-z0-9._-]+")


@dataclass(frozen=True)
class Target:
    """Remote account to provision."""

    remote_user: str
    remote_host: str
    port: int = 22

    @property
    def address(self) -> str:
        return f"{self.remote_user}@{self.remote_host}"


@dataclass(frozen=True)
class KeyPair:
    """Local key pair; the public path always follows the private one."""

    private_path: Path
    public_path: Path
    exists: bool = False

    @classmethod
    def for_private_key(cls, private_path: Union[str, Path]) -> "KeyPair":
        private_path = Path(private_path)
        return cls(
            private_path=private_path,
            public_path=public_key_path(private_path),
            exists=private_path.is_file(),
        )

    def refreshed(self) -> "KeyPair":
        return KeyPair.for_private_key(self.private_path)


@dataclass(frozen=True)
class Alias:
    name: str


@dataclass(frozen=True)
class AliasValidation:
    """Outcome of checking one candidate alias."""

    ok: bool
    alias: Optional[Alias] = None
    reason: Optional[str] = None


@dataclass(frozen=True)
class ConfigEntry:
    """A ``Host`` block for the SSH client configuration file."""

    alias: str
    host_name: str
    user: str
    identity_file: str
    port: int = 22

    def settings(self) -> dict:
        values = {
            "hostname": self.host_name,
            "user": self.user,
            "identityfile": self.identity_file,
        }
        if self.port != 22:
            values["port"] = str(self.port)
        return values

    def render(self) -> str:
        lines: List[str] = [
            f"Host {self.alias}",
            f"    HostName {self.host_name}",
            f"    User {self.user}",
        ]
        if self.port != 22:
            lines.append(f"    Port {self.port}")
        lines.append(f"    IdentityFile {self.identity_file}")
        return "\n".join(lines) + "\n"


@dataclass(frozen=True)
class CollectedInput:
    """Everything InputCollector gathered from the operator."""

    target: Target
    alias: Optional[Alias] = None


@dataclass(frozen=True)
class InstallResult:
    method: str                 # "ssh-copy-id" | "manual"
    already_present: bool = False


@dataclass(frozen=True)
class ConfigWriteResult:
    path: Path
    written: bool               # False when an identical block already existed
