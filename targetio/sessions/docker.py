"""
Docker session.

Runs target-mode commands inside an existing container via the Docker CLI.

Notes:
- Requires Docker CLI available on host.
- The container is created and removed by the caller; this session only execs.
"""

from __future__ import annotations

import shlex
import subprocess

from targetio.config import DockerSessionConfig
from targetio.errors import ConfigurationError
from targetio.session import CommandResult
from targetio.sessions.base import ShellSession, os_error


class DockerSession(ShellSession):
    name = "docker"

    def __init__(self, container: str, shell: str = "/bin/sh", command_timeout_sec: float = 20.0) -> None:
        super().__init__()
        if not container:
            raise ConfigurationError("DockerSession requires a container name or id")
        self.container = container
        self.shell = shell
        self.command_timeout_sec = command_timeout_sec

    @classmethod
    def from_config(cls, config: DockerSessionConfig) -> DockerSession:
        return cls(config.container or "", shell=config.shell, command_timeout_sec=config.command_timeout_sec)

    def __repr__(self) -> str:
        return f"DockerSession(container={self.container!r})"

    def run_command(self, command: str) -> CommandResult:
        result = self._run(["docker", "exec", self.container, self.shell, "-c", command])
        return CommandResult(
            stdout=result.stdout.decode("utf-8", errors="replace"),
            stderr=result.stderr.decode("utf-8", errors="replace"),
            exit_status=result.returncode,
        )

    def read_bytes(self, path: str) -> bytes:
        result = self._run(["docker", "exec", self.container, "cat", path])
        if result.returncode != 0:
            raise os_error(result.stderr.decode("utf-8", errors="replace"), path, "read")
        return result.stdout

    def write_bytes(self, path: str, data: bytes) -> None:
        cmd = ["docker", "exec", "-i", self.container, self.shell, "-c", f"cat > {shlex.quote(path)}"]
        result = self._run(cmd, input_bytes=data)
        if result.returncode != 0:
            raise os_error(result.stderr.decode("utf-8", errors="replace"), path, "write")

    def _run(
        self,
        cmd: list[str],
        *,
        timeout: float | None = None,
        input_bytes: bytes | None = None,
    ) -> subprocess.CompletedProcess[bytes]:
        effective_timeout = timeout if timeout is not None else self.command_timeout_sec
        try:
            return subprocess.run(
                cmd,
                input=input_bytes,
                capture_output=True,
                timeout=effective_timeout,
            )
        except subprocess.TimeoutExpired as exc:
            raise TimeoutError(f"Docker command timed out after {effective_timeout}s: {' '.join(cmd)}") from exc
