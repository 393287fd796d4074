"""In-memory fake target session for unit tests.

Supports: run_command (scripted responses by exact command or prefix),
per-path file content, directories, symlinks and stat records.
"""

from __future__ import annotations

from collections import Counter

from targetio.session import CommandResult, Platform, RemoteFile, Session


class FakeFile(RemoteFile):
    def __init__(self, session: FakeSession, path: str):
        self._session = session
        self.path = path

    def read(self) -> bytes:
        self._session.reads[self.path] += 1
        if self.path not in self._session.files:
            raise FileNotFoundError(2, "No such file or directory", self.path)
        return self._session.files[self.path]

    def write(self, data: bytes) -> None:
        self._session.writes.append((self.path, data))
        self._session.files[self.path] = data

    def stat(self):
        return self._session.stats.get(self.path)

    def exists(self) -> bool:
        return self.path in self._session.files or self.path in self._session.dirs

    def is_file(self) -> bool:
        return self.path in self._session.files

    def is_directory(self) -> bool:
        return self.path in self._session.dirs

    def is_symlink(self) -> bool:
        return self.path in self._session.symlinks

    def is_pipe(self) -> bool:
        return False

    def is_socket(self) -> bool:
        return False

    def is_block_device(self) -> bool:
        return False

    def is_character_device(self) -> bool:
        return self.path == "/dev/null"

    def mtime(self) -> float:
        return float((self._session.stats.get(self.path) or {}).get("mtime", 0))

    def size(self) -> int:
        return len(self._session.files.get(self.path, b""))


class FakeSession(Session):
    name = "fake"

    def __init__(self, files: dict[str, bytes] | None = None, platform: Platform | None = None):
        self.files: dict[str, bytes] = dict(files or {})
        self.dirs: set[str] = set()
        self.symlinks: set[str] = set()
        self.stats: dict[str, dict] = {}
        self.commands: list[str] = []
        self.reads: Counter[str] = Counter()
        self.writes: list[tuple[str, bytes]] = []
        self._responses: list[tuple[str, bool, CommandResult]] = []
        self._platform = platform or Platform(family="unix", name="linux", title="Linux")

    def respond(self, command: str, stdout: str = "", stderr: str = "", exit_status: int = 0, *, prefix=False):
        """Script the result for a command (exact match unless prefix=True)."""
        self._responses.insert(0, (command, prefix, CommandResult(stdout, stderr, exit_status)))
        return self

    def run_command(self, command: str) -> CommandResult:
        self.commands.append(command)
        for key, prefix, result in self._responses:
            if command == key or (prefix and command.startswith(key)):
                return result
        return CommandResult(stdout="")

    def file(self, path: str) -> FakeFile:
        return FakeFile(self, path)

    def platform(self) -> Platform:
        return self._platform
