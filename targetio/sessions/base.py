"""Shared pieces for sessions that reach the target through a shell."""

from __future__ import annotations

import errno
import shlex
from abc import abstractmethod
from typing import Any

from targetio.session import CommandResult, Platform, RemoteFile, Session

STAT_COMMAND_FORMAT = "%u %g %f %Y %s"


def os_error(stderr: str, path: str, action: str = "access") -> OSError:
    """Map a shell tool's stderr to the matching OSError subclass."""
    message = stderr.strip() or f"Failed to {action} {path}"
    if "No such file" in message:
        return FileNotFoundError(errno.ENOENT, message, path)
    if "Permission denied" in message:
        return PermissionError(errno.EACCES, message, path)
    if "Is a directory" in message:
        return IsADirectoryError(errno.EISDIR, message, path)
    if "Not a directory" in message:
        return NotADirectoryError(errno.ENOTDIR, message, path)
    if "File exists" in message or "cannot overwrite existing file" in message:
        return FileExistsError(errno.EEXIST, message, path)
    if "not empty" in message:
        return OSError(errno.ENOTEMPTY, message, path)
    return OSError(message)


class CommandFile(RemoteFile):
    """RemoteFile answered with `test`, `stat` and the session's byte transfer."""

    def __init__(self, session: ShellSession, path: str) -> None:
        self._session = session
        self.path = path

    def __repr__(self) -> str:
        return f"CommandFile({self.path!r})"

    def _test(self, flag: str) -> bool:
        return self._session.run_command(f"test -{flag} {shlex.quote(self.path)}").success

    def read(self) -> bytes:
        return self._session.read_bytes(self.path)

    def write(self, data: bytes) -> None:
        self._session.write_bytes(self.path, data)

    def stat(self) -> dict[str, Any] | None:
        result = self._session.run_command(
            f"stat -L -c {shlex.quote(STAT_COMMAND_FORMAT)} {shlex.quote(self.path)}"
        )
        if not result.success:
            return None
        fields = result.stdout.split()
        if len(fields) != 5:
            return None
        try:
            return {
                "uid": int(fields[0]),
                "gid": int(fields[1]),
                "mode": int(fields[2], 16),
                "mtime": float(fields[3]),
                "size": int(fields[4]),
            }
        except ValueError:
            return None

    def _stat_field(self, key: str):
        data = self.stat()
        if data is None:
            raise FileNotFoundError(errno.ENOENT, "No such file or directory", self.path)
        return data[key]

    def exists(self) -> bool:
        return self._test("e")

    def is_file(self) -> bool:
        return self._test("f")

    def is_directory(self) -> bool:
        return self._test("d")

    def is_symlink(self) -> bool:
        return self._test("L")

    def is_pipe(self) -> bool:
        return self._test("p")

    def is_socket(self) -> bool:
        return self._test("S")

    def is_block_device(self) -> bool:
        return self._test("b")

    def is_character_device(self) -> bool:
        return self._test("c")

    def mtime(self) -> float:
        return self._stat_field("mtime")

    def size(self) -> int:
        return self._stat_field("size")


class ShellSession(Session):
    """Session whose file accessors are built on run_command."""

    def __init__(self) -> None:
        self._platform: Platform | None = None

    @abstractmethod
    def run_command(self, command: str) -> CommandResult: ...

    @abstractmethod
    def read_bytes(self, path: str) -> bytes:
        """Raises FileNotFoundError / PermissionError / OSError."""
        ...

    @abstractmethod
    def write_bytes(self, path: str, data: bytes) -> None: ...

    def file(self, path: str) -> CommandFile:
        return CommandFile(self, path)

    def platform(self) -> Platform:
        if self._platform is None:
            result = self.run_command("uname -s")
            if result.success and result.stdout.strip():
                system = result.stdout.strip()
                self._platform = Platform(family="unix", name=system.lower(), title=system)
            else:
                self._platform = Platform(family="windows", name="windows", title="Windows")
        return self._platform
