"""Public key lines and authorized_keys lookups."""

from __future__ import annotations

import base64
import hashlib
from dataclasses import dataclass
from pathlib import Path
from typing import Union

import paramiko


@dataclass(frozen=True)
class PublicKey:
    """One OpenSSH public key line: ``<type> <base64 blob> [comment]``."""

    key_type: str
    blob: str
    comment: str = ""

    @classmethod
    def from_line(cls, line: str) -> "PublicKey":
        """Parse a public key line, rejecting anything paramiko cannot decode."""
        try:
            parsed = paramiko.PublicBlob.from_string(line.strip())
        except (ValueError, IndexError, paramiko.SSHException) as exc:
            raise ValueError(f"Not a valid public key line: {line.strip()[:40]!r}") from exc
        return cls(
            key_type=parsed.key_type,
            blob=base64.b64encode(parsed.key_blob).decode("ascii"),
            comment=parsed.comment or "",
        )

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "PublicKey":
        text = Path(path).read_text(encoding="utf-8")
        for line in text.splitlines():
            if line.strip():
                return cls.from_line(line)
        raise ValueError(f"Public key file is empty: {path}")

    @property
    def fingerprint(self) -> str:
        """SHA256 fingerprint in the form ssh-keygen -l prints."""
        digest = hashlib.sha256(base64.b64decode(self.blob)).digest()
        return "SHA256:" + base64.b64encode(digest).decode("ascii").rstrip("=")

    def to_line(self) -> str:
        parts = [self.key_type, self.blob]
        if self.comment:
            parts.append(self.comment)
        return " ".join(parts)

    def is_listed_in(self, authorized_keys: str) -> bool:
        """True when ``authorized_keys`` already carries this key.

        Lines may start with an options field, so the blob is searched among
        all whitespace-separated fields of each entry.
        """
        for line in authorized_keys.splitlines():
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            if self.blob in line.split():
                return True
        return False
