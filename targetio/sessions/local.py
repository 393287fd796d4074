"""Session that drives the remote code path against the local host."""

from __future__ import annotations

import subprocess
from pathlib import Path

from targetio.session import CommandResult, Platform
from targetio.sessions.base import ShellSession


class SubprocessSession(ShellSession):
    name = "subprocess"

    def __init__(self, shell: str = "/bin/sh", command_timeout_sec: float = 20.0) -> None:
        super().__init__()
        self.shell = shell
        self.command_timeout_sec = command_timeout_sec

    def __repr__(self) -> str:
        return f"SubprocessSession(shell={self.shell!r})"

    def run_command(self, command: str) -> CommandResult:
        try:
            result = subprocess.run(
                [self.shell, "-c", command],
                capture_output=True,
                text=True,
                timeout=self.command_timeout_sec,
            )
        except subprocess.TimeoutExpired as exc:
            raise TimeoutError(f"Command timed out after {self.command_timeout_sec}s: {command}") from exc
        return CommandResult(stdout=result.stdout, stderr=result.stderr, exit_status=result.returncode)

    def read_bytes(self, path: str) -> bytes:
        return Path(path).read_bytes()

    def write_bytes(self, path: str, data: bytes) -> None:
        Path(path).write_bytes(data)

    def platform(self) -> Platform:
        return Platform.local()
