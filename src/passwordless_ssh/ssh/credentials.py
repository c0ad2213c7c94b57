"""SSH credential helpers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass
class SSHCredentials:
    """Normalized credential payload for one connection.

    ``auth_method`` is ``password``, ``key`` (a single identity file, nothing
    else tried) or ``agent`` (whatever the agent and default keys offer).
    """

    host: str
    username: str
    port: int = 22
    auth_method: str = "password"
    password: Optional[str] = None
    key_path: Optional[str] = None
    timeout: int = 10

    @property
    def address(self) -> str:
        return f"{self.username}@{self.host}"

    def validate(self) -> None:
        if self.auth_method == "password" and not self.password:
            raise ValueError("Password authentication selected but no password provided")
        if self.auth_method == "key" and not self.key_path:
            raise ValueError("Key authentication selected but no key_path provided")
        if self.auth_method not in ("password", "key", "agent"):
            raise ValueError(f"Unknown auth method: {self.auth_method}")
