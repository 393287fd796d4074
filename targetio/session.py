"""Transport session contracts consumed by the remote backends.

A session is built and closed by its owner; the backends only call it.
Implementations: DockerSession, SubprocessSession (see targetio.sessions),
or any adapter around an SSH/WinRM client that satisfies these ABCs.
"""

from __future__ import annotations

import platform as _platform
import stat as _stat
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class CommandResult:
    """Result of one command run on the target."""

    stdout: str
    stderr: str = ""
    exit_status: int = 0

    @property
    def success(self) -> bool:
        return self.exit_status == 0


@dataclass(frozen=True)
class Platform:
    """OS descriptor of a target."""

    family: str  # 'unix' or 'windows'
    name: str = ""
    title: str = ""

    @property
    def is_unix(self) -> bool:
        return self.family == "unix"

    @property
    def is_windows(self) -> bool:
        return self.family == "windows"

    @classmethod
    def local(cls) -> Platform:
        system = _platform.system()
        family = "windows" if system == "Windows" else "unix"
        return cls(family=family, name=system.lower(), title=f"{system} {_platform.release()}".strip())


@dataclass(frozen=True)
class PseudoStat:
    """Reduced stat record for remote paths.

    The st_* aliases let callers written against os.stat() use either shape.
    """

    uid: int
    gid: int
    mode: int

    @property
    def st_uid(self) -> int:
        return self.uid

    @property
    def st_gid(self) -> int:
        return self.gid

    @property
    def st_mode(self) -> int:
        return self.mode

    @property
    def permissions(self) -> int:
        return _stat.S_IMODE(self.mode)

    @classmethod
    def from_mapping(cls, data: dict[str, Any] | None) -> PseudoStat | None:
        """Build from a session stat mapping, or None if a field is missing."""
        if not data:
            return None
        try:
            return cls(uid=int(data["uid"]), gid=int(data["gid"]), mode=int(data["mode"]))
        except (KeyError, TypeError, ValueError):
            return None


class RemoteFile(ABC):
    """Per-path accessor returned by Session.file()."""

    path: str

    @abstractmethod
    def read(self) -> bytes:
        """Return the file content.

        Raises:
            FileNotFoundError: If the path does not exist on the target
        """
        ...

    @abstractmethod
    def write(self, data: bytes) -> None:
        """Replace the file content."""
        ...

    @abstractmethod
    def stat(self) -> dict[str, Any] | None:
        """Return {'uid', 'gid', 'mode', 'mtime', 'size', ...} or None."""
        ...

    @abstractmethod
    def exists(self) -> bool: ...

    @abstractmethod
    def is_file(self) -> bool: ...

    @abstractmethod
    def is_directory(self) -> bool: ...

    @abstractmethod
    def is_symlink(self) -> bool: ...

    @abstractmethod
    def is_pipe(self) -> bool: ...

    @abstractmethod
    def is_socket(self) -> bool: ...

    @abstractmethod
    def is_block_device(self) -> bool: ...

    @abstractmethod
    def is_character_device(self) -> bool: ...

    @abstractmethod
    def mtime(self) -> float: ...

    @abstractmethod
    def size(self) -> int: ...


class Session(ABC):
    """Live connection to one target."""

    name: str = "session"

    @abstractmethod
    def run_command(self, command: str) -> CommandResult:
        """Run a shell command and wait for completion."""
        ...

    @abstractmethod
    def file(self, path: str) -> RemoteFile:
        """Return the accessor for a remote path."""
        ...

    @abstractmethod
    def platform(self) -> Platform:
        """Describe the target OS."""
        ...
