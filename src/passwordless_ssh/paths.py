"""Path helpers for key material and the SSH client directory.

Defaults:
- ~/.ssh/              # key storage, always 700
- ~/.ssh/id_ed25519    # private key
- ~/.ssh/config        # client configuration (alias variant)
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional, Union

DEFAULT_SSH_DIR = "~/.ssh"
DEFAULT_KEY_PATH = "~/.ssh/id_ed25519"
DEFAULT_SSH_CONFIG_PATH = "~/.ssh/config"

PRIVATE_DIR_MODE = 0o700
PRIVATE_FILE_MODE = 0o600


def ssh_dir(home: Optional[Path] = None) -> Path:
    """Return the user's SSH directory (``~/.ssh``)."""
    return (home or Path.home()) / ".ssh"


def resolve_key_path(raw: Union[str, Path], home: Optional[Path] = None) -> Path:
    """Normalize a private key path to an absolute path.

    ``~`` is expanded first. A relative path keeps only what follows its
    first ``/`` and is placed under ``~/.ssh``, so ``keys/id_work`` and
    ``id_work`` both resolve to ``~/.ssh/id_work``.
    """
    home = home or Path.home()
    text = str(raw)
    if text == "~" or text.startswith("~/"):
        text = str(home) + text[1:]
    if os.path.isabs(text):
        return Path(text)
    # 只保留第一个 "/" 之后的部分
    rest = text.split("/", 1)[1] if "/" in text else text
    return ssh_dir(home) / rest


def resolve_config_path(raw: Union[str, Path], home: Optional[Path] = None) -> Path:
    home = home or Path.home()
    text = str(raw)
    if text == "~" or text.startswith("~/"):
        text = str(home) + text[1:]
    path = Path(text)
    return path if path.is_absolute() else Path.cwd() / path


def public_key_path(private_path: Union[str, Path]) -> Path:
    """Public half of a key pair: the private path plus ``.pub``."""
    private_path = Path(private_path)
    return private_path.with_name(private_path.name + ".pub")


def ensure_private_dir(path: Path) -> Path:
    """Create ``path`` if missing and restrict it to its owner."""
    path.mkdir(parents=True, exist_ok=True)
    path.chmod(PRIVATE_DIR_MODE)
    return path
