"""SSH session management built on Paramiko."""

from __future__ import annotations

import socket
from dataclasses import dataclass
from typing import Callable, Optional

import paramiko

from .credentials import SSHCredentials


class SSHConnectionError(RuntimeError):
    """Raised when an SSH connection cannot be established."""

    def __init__(self, message: str, *, auth_failed: bool = False) -> None:
        super().__init__(message)
        self.auth_failed = auth_failed


@dataclass
class SSHCommandResult:
    command: str
    stdout: str
    stderr: str
    exit_status: int

    @property
    def ok(self) -> bool:
        return self.exit_status == 0


class SSHSession:
    """High-level wrapper around paramiko.SSHClient."""

    def __init__(
        self,
        credentials: SSHCredentials,
        *,
        client_factory: Callable[[], paramiko.SSHClient] | None = None,
    ) -> None:
        self.credentials = credentials
        self._client_factory = client_factory or paramiko.SSHClient
        self._client: Optional[paramiko.SSHClient] = None

    def __enter__(self) -> "SSHSession":
        self.connect()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:  # type: ignore[override]
        self.close()

    def connect(self) -> None:
        if self._client:
            return
        self.credentials.validate()
        client = self._client_factory()
        client.set_missing_host_key_policy(paramiko.AutoAddPolicy())
        connect_kwargs = {
            "hostname": self.credentials.host,
            "port": self.credentials.port,
            "username": self.credentials.username,
            "timeout": self.credentials.timeout,
            "banner_timeout": self.credentials.timeout,
            "auth_timeout": self.credentials.timeout,
            "look_for_keys": False,
            "allow_agent": False,
        }
        if self.credentials.auth_method == "password":
            connect_kwargs["password"] = self.credentials.password
        elif self.credentials.auth_method == "key":
            connect_kwargs["key_filename"] = self.credentials.key_path
        else:
            # agent 模式：交给 ssh-agent 和 ~/.ssh 下的默认密钥
            connect_kwargs["look_for_keys"] = True
            connect_kwargs["allow_agent"] = True
        try:
            client.connect(**connect_kwargs)
        except paramiko.AuthenticationException as exc:
            client.close()
            raise SSHConnectionError(str(exc), auth_failed=True) from exc
        except (paramiko.SSHException, OSError) as exc:
            client.close()
            raise SSHConnectionError(str(exc) or exc.__class__.__name__) from exc
        self._client = client

    def close(self) -> None:
        if self._client:
            self._client.close()
            self._client = None

    def run(
        self,
        command: str,
        *,
        input_data: Optional[str] = None,
        timeout: Optional[int] = None,
    ) -> SSHCommandResult:
        """
        Execute a command on the remote host and wait for it to finish.

        Args:
            command: The command to execute
            input_data: Text written to the command's stdin, which is then closed
            timeout: Seconds to wait for the command (default: connection timeout)

        Returns:
            SSHCommandResult with command output and exit status
        """
        if not self._client:
            self.connect()
        assert self._client is not None

        if timeout is None:
            timeout = self.credentials.timeout

        try:
            stdin, stdout, stderr = self._client.exec_command(command, timeout=timeout)
            if input_data is not None:
                stdin.write(input_data)
                stdin.flush()
                stdin.channel.shutdown_write()
        except (paramiko.SSHException, OSError) as exc:
            raise SSHConnectionError(f"Command failed to start: {exc}") from exc

        try:
            stdout_text = stdout.read().decode("utf-8", errors="replace")
            stderr_text = stderr.read().decode("utf-8", errors="replace")
            exit_status = stdout.channel.recv_exit_status()
        except socket.timeout:
            stdout.channel.close()
            return SSHCommandResult(
                command=command,
                stdout="",
                stderr=f"TIMEOUT: Command did not complete within {timeout} seconds.",
                exit_status=-1,
            )

        return SSHCommandResult(
            command=command,
            stdout=stdout_text.strip(),
            stderr=stderr_text.strip(),
            exit_status=exit_status,
        )
