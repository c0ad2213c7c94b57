"""Registering a Host alias in the SSH client configuration file."""

from __future__ import annotations

import os
import re
import tempfile
from pathlib import Path
from typing import Dict

from ..errors import AliasConflictError, ConfigWriteError
from ..paths import PRIVATE_FILE_MODE, ensure_private_dir
from ..utils.logging import get_logger
from .models import ConfigEntry, ConfigWriteResult

logger = get_logger(__name__)

_HOST_RE = re.compile(r"^Host\s+(.+)$", re.IGNORECASE)
_MATCH_RE = re.compile(r"^Match\s", re.IGNORECASE)
_OPTION_RE = re.compile(r"^(\w+)(?:\s*=\s*|\s+)(.+)$")


def parse_host_entries(content: str) -> Dict[str, Dict[str, str]]:
    """Map every alias named on a ``Host`` line to its options.

    Option names are lower-cased. A ``Host`` line listing several patterns
    gives each of them the same options; the first definition of an alias
    wins, as it does for the ssh client.
    """
    entries: Dict[str, Dict[str, str]] = {}
    current: Dict[str, str] | None = None

    for line in content.splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue

        host_match = _HOST_RE.match(line)
        if host_match:
            current = {}
            for name in host_match.group(1).split():
                entries.setdefault(name, current)
            continue
        if _MATCH_RE.match(line):
            current = None
            continue

        option_match = _OPTION_RE.match(line)
        if option_match and current is not None:
            key = option_match.group(1).lower()
            current.setdefault(key, option_match.group(2).strip())

    return entries


class ConfigWriter:
    """Appends a Host block unless the alias is already registered.

    A symlinked config file is updated through the link. Bytes that are not
    UTF-8 are carried through unchanged.
    """

    def __init__(self, config_path: Path) -> None:
        self.config_path = config_path

    def register(self, entry: ConfigEntry) -> ConfigWriteResult:
        try:
            # 软链接时写入真实文件
            target = self.config_path.resolve()
            existing = self._prepare(target)
        except OSError as exc:
            raise ConfigWriteError(
                f"Cannot prepare {self.config_path}: {exc}",
                remediation=f"Check the permissions of {self.config_path.parent}.",
            ) from exc

        registered = parse_host_entries(existing).get(entry.alias)
        if registered is not None:
            if self._same_settings(registered, entry):
                logger.info("Alias %s already registered in %s", entry.alias, self.config_path)
                return ConfigWriteResult(path=self.config_path, written=False)
            raise AliasConflictError(
                f"Alias '{entry.alias}' is already defined in {self.config_path} "
                "with different settings.",
                remediation="Run again with another alias or edit the existing Host block.",
            )

        content = existing
        if content and not content.endswith("\n"):
            content += "\n"
        content += "\n" + entry.render()

        try:
            self._replace(target, content)
        except OSError as exc:
            raise ConfigWriteError(
                f"Cannot write {self.config_path}: {exc}",
                remediation=f"Add the Host {entry.alias} block to {self.config_path} by hand.",
            ) from exc
        logger.info("Registered alias %s in %s", entry.alias, self.config_path)
        return ConfigWriteResult(path=self.config_path, written=True)

    def _prepare(self, target: Path) -> str:
        """Create the file (600) and its directory (700) if needed, then read it."""
        parent = target.parent
        if not parent.exists():
            ensure_private_dir(parent)
        if not target.exists():
            target.touch(mode=PRIVATE_FILE_MODE)
        target.chmod(PRIVATE_FILE_MODE)
        return target.read_text(encoding="utf-8", errors="surrogateescape")

    @staticmethod
    def _replace(target: Path, content: str) -> None:
        fd, tmp_name = tempfile.mkstemp(prefix=f".{target.name}.", dir=str(target.parent))
        try:
            with os.fdopen(fd, "w", encoding="utf-8", errors="surrogateescape") as handle:
                os.fchmod(handle.fileno(), PRIVATE_FILE_MODE)
                handle.write(content)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_name, target)
        except OSError:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    @staticmethod
    def _same_settings(registered: Dict[str, str], entry: ConfigEntry) -> bool:
        wanted = entry.settings()
        if registered.get("port", "22") != wanted.get("port", "22"):
            return False
        for key in ("hostname", "user", "identityfile"):
            value = registered.get(key)
            if key == "identityfile" and value:
                value = os.path.expanduser(value)
            if value != wanted[key]:
                return False
        return True
