"""Configuration loading utilities for passwordless-ssh."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

from dotenv import load_dotenv

from .paths import (
    DEFAULT_KEY_PATH,
    DEFAULT_SSH_CONFIG_PATH,
    DEFAULT_SSH_DIR,
    resolve_config_path,
    resolve_key_path,
)

# Load .env file if it exists
load_dotenv()

_DEFAULT_CONFIG_PATH = Path("config/passwordless_ssh.json")


@dataclass
class SSHSettings:
    """Where the key and the client configuration live, and how to connect."""

    key_path: str = DEFAULT_KEY_PATH
    config_path: str = DEFAULT_SSH_CONFIG_PATH
    ssh_dir: str = DEFAULT_SSH_DIR
    port: int = 22
    connect_timeout: int = 10            # 连接超时（秒）


@dataclass
class KeySettings:
    """Parameters handed to ssh-keygen when a key has to be created."""

    key_type: str = "ed25519"
    comment: str = "passwordless-setup"


@dataclass
class InstallSettings:
    """Remote installation strategy."""

    prefer_copy_id: bool = True           # 优先使用 ssh-copy-id
    copy_id_binary: str = "ssh-copy-id"
    keygen_binary: str = "ssh-keygen"


@dataclass
class InteractionSettings:
    """Operator prompt behaviour."""

    max_alias_attempts: int = 5


@dataclass
class AppConfig:
    """Top-level configuration, built once at startup and passed to every stage."""

    ssh: SSHSettings = field(default_factory=SSHSettings)
    keys: KeySettings = field(default_factory=KeySettings)
    install: InstallSettings = field(default_factory=InstallSettings)
    interaction: InteractionSettings = field(default_factory=InteractionSettings)
    with_alias: bool = False

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "AppConfig":
        def _section(name: str) -> Dict[str, Any]:
            section = payload.get(name, {}) or {}
            # 过滤掉以下划线开头的注释字段
            return {k: v for k, v in section.items() if not k.startswith("_")}

        return cls(
            ssh=SSHSettings(**{**SSHSettings().__dict__, **_section("ssh")}),
            keys=KeySettings(**{**KeySettings().__dict__, **_section("keys")}),
            install=InstallSettings(
                **{**InstallSettings().__dict__, **_section("install")}
            ),
            interaction=InteractionSettings(
                **{**InteractionSettings().__dict__, **_section("interaction")}
            ),
            with_alias=bool(payload.get("with_alias", False)),
        )

    def private_key_path(self, home: Optional[Path] = None) -> Path:
        return resolve_key_path(self.ssh.key_path, home)

    def ssh_directory(self, home: Optional[Path] = None) -> Path:
        return resolve_config_path(self.ssh.ssh_dir, home)

    def ssh_config_file(self, home: Optional[Path] = None) -> Path:
        return resolve_config_path(self.ssh.config_path, home)


def load_config(path: Optional[str] = None) -> AppConfig:
    """Load configuration from `path`, the default location, or built-in defaults.

    Environment variables (higher priority than the config file):
    - SSH_KEY: private key path (default ~/.ssh/id_ed25519)
    - SSH_CONFIG: SSH client configuration file (default ~/.ssh/config)
    - PASSWORDLESS_SSH_PORT: remote SSH port
    - PASSWORDLESS_SSH_CONNECT_TIMEOUT: connect timeout in seconds
    """

    if path:
        candidate = Path(path)
        if not candidate.is_file():
            raise FileNotFoundError(f"Could not find configuration file: {candidate}")
    else:
        candidate = _DEFAULT_CONFIG_PATH

    if candidate.is_file():
        with candidate.open("r", encoding="utf-8") as handle:
            data = json.load(handle)
        config = AppConfig.from_dict(data)
    else:
        config = AppConfig()

    env_key = os.getenv("SSH_KEY")
    if env_key:
        config.ssh.key_path = env_key

    env_config = os.getenv("SSH_CONFIG")
    if env_config:
        config.ssh.config_path = env_config

    env_port = os.getenv("PASSWORDLESS_SSH_PORT")
    if env_port:
        config.ssh.port = int(env_port)

    env_timeout = os.getenv("PASSWORDLESS_SSH_CONNECT_TIMEOUT")
    if env_timeout:
        config.ssh.connect_timeout = int(env_timeout)

    if not 1 <= config.ssh.port <= 65535:
        raise ValueError(f"SSH port must be between 1 and 65535, got {config.ssh.port}")
    return config
