"""Remote filesystem backend.

Each operation either runs one translated command through the session or
goes through the session's per-path file accessor. File content is served
from the context's ContentCache.

Caveat: readable/writable/executable report what ``test`` says for the
configured principal (or the session user), not the caller's effective
permissions.
"""

from __future__ import annotations

import errno
import io
import logging
import ntpath
import posixpath
from typing import TYPE_CHECKING

from targetio import pathmatch, tempname
from targetio.backends.streams import WriteBackBytesIO, WriteBackStringIO, parse_mode
from targetio.commands import flatten
from targetio.errors import InvalidArgument, TargetIOError
from targetio.session import PseudoStat
from targetio.sessions.base import os_error

if TYPE_CHECKING:
    from targetio.commands import TranslatedCommand
    from targetio.context import TargetContext

logger = logging.getLogger(__name__)

WINDOWS_TMPDIR = "C:\\Windows\\Temp"
UNIX_TMPDIR = "/tmp"

# facade name -> session file accessor name, where the vocabularies differ
STATUS_REDIRECT = {
    "is_dir": "is_directory",
    "is_blockdev": "is_block_device",
    "is_chardev": "is_character_device",
}


class _RemoteBackend:
    name = "remote"

    def __init__(self, context: TargetContext) -> None:
        self._context = context

    @property
    def _session(self):
        return self._context.session

    @property
    def _translator(self):
        return self._context.translator


class RemoteFileUtilsBackend(_RemoteBackend):
    """FileUtils-style mutations, one translated command each."""

    def _run(self, translated: TranslatedCommand, *touched) -> TranslatedCommand:
        result = self._translator.run(translated)
        if not translated.noop:
            for path in flatten(*touched):
                self._context.invalidate(path)
        return result

    def chmod(self, mode, paths, *, noop=False, verbose=False):
        return self._run(self._translator.chmod(mode, paths, noop=noop, verbose=verbose))

    def chmod_R(self, mode, paths, *, force=False, noop=False, verbose=False):
        return self._run(self._translator.chmod(mode, paths, recursive=True, force=force, noop=noop, verbose=verbose))

    def chown(self, owner, group, paths, *, noop=False, verbose=False):
        return self._run(self._translator.chown(owner, group, paths, noop=noop, verbose=verbose))

    def chown_R(self, owner, group, paths, *, force=False, noop=False, verbose=False):
        return self._run(
            self._translator.chown(owner, group, paths, recursive=True, force=force, noop=noop, verbose=verbose)
        )

    def cp(self, src, dest, *, preserve=False, noop=False, verbose=False):
        return self._run(self._translator.cp(src, dest, preserve=preserve, noop=noop, verbose=verbose), dest)

    copy = cp

    def cp_r(self, src, dest, *, preserve=False, remove_destination=False, noop=False, verbose=False):
        translated = self._translator.cp(
            src,
            dest,
            recursive=True,
            preserve=preserve,
            remove_destination=remove_destination,
            noop=noop,
            verbose=verbose,
        )
        return self._run(translated, dest)

    def cp_lr(self, src, dest, *, remove_destination=False, noop=False, verbose=False):
        translated = self._translator.cp(
            src,
            dest,
            recursive=True,
            hardlink=True,
            remove_destination=remove_destination,
            noop=noop,
            verbose=verbose,
        )
        return self._run(translated, dest)

    def install(self, src, dest, *, mode=None, owner=None, group=None, preserve=False, noop=False, verbose=False):
        translated = self._translator.install(
            src, dest, mode=mode, owner=owner, group=group, preserve=preserve, noop=noop, verbose=verbose
        )
        return self._run(translated, dest)

    def ln(self, src, dest, *, force=False, noop=False, verbose=False):
        return self._run(self._translator.ln(src, dest, force=force, noop=noop, verbose=verbose), dest)

    link = ln

    def ln_s(self, src, dest, *, force=False, noop=False, verbose=False):
        translated = self._translator.ln(src, dest, symbolic=True, force=force, noop=noop, verbose=verbose)
        return self._run(translated, dest)

    symlink = ln_s

    def ln_sf(self, src, dest, *, noop=False, verbose=False):
        return self.ln_s(src, dest, force=True, noop=noop, verbose=verbose)

    def mkdir(self, paths, *, mode=None, noop=False, verbose=False):
        return self._run(self._translator.mkdir(paths, mode=mode, noop=noop, verbose=verbose))

    def mkdir_p(self, paths, *, mode=None, noop=False, verbose=False):
        return self._run(self._translator.mkdir(paths, parents=True, mode=mode, noop=noop, verbose=verbose))

    makedirs = mkdir_p
    mkpath = mkdir_p

    def mv(self, src, dest, *, force=False, noop=False, verbose=False):
        return self._run(self._translator.mv(src, dest, force=force, noop=noop, verbose=verbose), src, dest)

    move = mv

    def rm(self, paths, *, force=False, noop=False, verbose=False):
        return self._run(self._translator.rm(paths, force=force, noop=noop, verbose=verbose), paths)

    remove = rm

    def rm_f(self, paths, *, noop=False, verbose=False):
        return self.rm(paths, force=True, noop=noop, verbose=verbose)

    def rm_r(self, paths, *, force=False, noop=False, verbose=False):
        translated = self._translator.rm(paths, recursive=True, force=force, noop=noop, verbose=verbose)
        return self._run(translated, paths)

    def rm_rf(self, paths, *, noop=False, verbose=False):
        return self.rm_r(paths, force=True, noop=noop, verbose=verbose)

    rmtree = rm_rf
    remove_entry = rm_rf

    def rmdir(self, paths, *, parents=False, noop=False, verbose=False):
        return self._run(self._translator.rmdir(paths, parents=parents, noop=noop, verbose=verbose))

    def touch(self, paths, *, mtime=None, nocreate=False, noop=False, verbose=False):
        return self._run(self._translator.touch(paths, mtime=mtime, nocreate=nocreate, noop=noop, verbose=verbose))


def _run_or_raise(context: TargetContext, translated: TranslatedCommand, path: str, action: str) -> None:
    """Run a single-path command, raising the OSError its stderr describes."""
    done = context.translator.run(translated, check=False)
    if not done.ok:
        raise os_error(done.result.stderr, path, action)
    context.invalidate(path)


class RemoteFileBackend(_RemoteBackend):
    def __init__(self, context: TargetContext) -> None:
        super().__init__(context)
        self._fileutils = RemoteFileUtilsBackend(context)

    # ── status passthrough ──

    def _status(self, operation: str, path: str):
        target = STATUS_REDIRECT.get(operation, operation)
        if target != operation:
            logger.debug("File.%s redirected to session file.%s", operation, target)
        return getattr(self._session.file(path), target)()

    def exists(self, path):
        return self._status("exists", path)

    def is_file(self, path):
        return self._status("is_file", path)

    def is_dir(self, path):
        return self._status("is_dir", path)

    def is_symlink(self, path):
        return self._status("is_symlink", path)

    def is_pipe(self, path):
        return self._status("is_pipe", path)

    def is_socket(self, path):
        return self._status("is_socket", path)

    def is_blockdev(self, path):
        return self._status("is_blockdev", path)

    def is_chardev(self, path):
        return self._status("is_chardev", path)

    def mtime(self, path):
        return self._status("mtime", path)

    def size(self, path):
        return self._status("size", path)

    # ── permission predicates ──

    def _test(self, flag: str, path: str) -> bool:
        translated = self._translator.test(flag, path, principal=self._context.config.test_principal)
        return self._translator.run(translated, check=False).result.exit_status == 0

    def readable(self, path):
        return self._test("r", path)

    def writable(self, path):
        return self._test("w", path)

    def executable(self, path):
        return self._test("x", path)

    # ── content ──

    def _content(self, path: str) -> bytes:
        return self._context.content.load(path, lambda: self._session.file(path).read())

    def binread(self, path, length=None, offset=0):
        content = self._content(path)
        if length is None:
            return content[offset:]
        return content[offset : offset + length]

    def read(self, path, encoding="utf-8"):
        return self._content(path).decode(encoding)

    def readlines(self, path, encoding="utf-8"):
        return self.read(path, encoding).splitlines(keepends=True)

    def foreach(self, path, encoding="utf-8"):
        return iter(self.readlines(path, encoding))

    def open(self, path, mode="r", encoding="utf-8"):
        """Open an in-memory stream; changed content is written back on close."""
        kind, binary, plus = parse_mode(mode)
        if kind == "r":
            original = self._content(path)
        elif kind == "x":
            if self._session.file(path).exists():
                raise FileExistsError(errno.EEXIST, "File exists", path)
            original = None
        else:
            try:
                original = self._content(path)
            except FileNotFoundError:
                original = None

        initial = b"" if kind in ("w", "x") or original is None else original
        read_only = kind == "r" and not plus

        def write_back(data: bytes) -> None:
            if read_only or (original is not None and data == original):
                return
            self._context.content.stage(path, data)
            self._context.content.flush(path, self._session.file(path).write)
            logger.debug("Wrote %d bytes back to %s", len(data), path)

        if binary:
            stream = WriteBackBytesIO(initial, write_back, name=path)
        else:
            stream = WriteBackStringIO(initial.decode(encoding), write_back, encoding=encoding, name=path)
        if kind == "a":
            stream.seek(0, io.SEEK_END)
        return stream

    # ── stat ──

    def _stat_command(self, path: str, follow_links: bool) -> PseudoStat:
        translated = self._translator.run(self._translator.stat(path, follow_links=follow_links))
        fields = translated.stdout.split()
        try:
            uid, gid, raw_mode = fields[:3]
            return PseudoStat(uid=int(uid), gid=int(gid), mode=int(raw_mode, 16))
        except ValueError as e:
            raise TargetIOError(f"Unexpected stat output for {path}: {translated.stdout!r}") from e

    def stat(self, path):
        pseudo = PseudoStat.from_mapping(self._session.file(path).stat())
        if pseudo is None:
            return self._stat_command(path, follow_links=True)
        return pseudo

    def lstat(self, path):
        return self._stat_command(path, follow_links=False)

    # ── mutations ──

    def chmod(self, mode, *paths):
        self._fileutils.chmod(mode, list(paths))

    def chown(self, owner, group, *paths):
        self._fileutils.chown(owner, group, list(paths))

    def link(self, old, new):
        self._fileutils.ln(old, new)

    def symlink(self, old, new):
        self._fileutils.ln_s(old, new)

    def readlink(self, path):
        if not self.is_symlink(path):
            raise InvalidArgument(f"Not a symbolic link: {path}")
        return self._translator.run(self._translator.readlink(path)).stdout.rstrip("\n")

    def realpath(self, path):
        return self._translator.run(self._translator.realpath(path)).stdout.rstrip("\n")

    absolute_path = realpath

    def utime(self, atime, mtime, *paths):
        self._translator.run(self._translator.utime(atime, mtime, list(paths)))

    def delete(self, *paths):
        for path in paths:
            _run_or_raise(self._context, self._translator.rm(path), path, "delete")

    unlink = delete

    def expand_path(self, path, dir=None):
        if dir:
            path = posixpath.join(self.expand_path(dir), path)
        if path.startswith("~"):
            user, _, rest = path[1:].partition("/")
            home = RemoteDirBackend(self._context).home(user or None)
            path = posixpath.join(home, rest) if rest else home
        if not posixpath.isabs(path):
            raise InvalidArgument(f"Cannot expand relative path without a working directory: {path}")
        return posixpath.normpath(path)

    def separator(self):
        return "\\" if self._context.platform.is_windows else "/"


class RemoteDirBackend(_RemoteBackend):
    def __init__(self, context: TargetContext) -> None:
        super().__init__(context)
        self._fileutils = RemoteFileUtilsBackend(context)

    def entries(self, path):
        listing = self._translator.run(self._translator.list_dir(path)).stdout
        return [line for line in listing.splitlines() if line]

    def glob(self, pattern, dotmatch=False):
        prefix = pathmatch.literal_prefix(pattern)
        if prefix == pattern:
            return [pattern] if self._session.file(pattern).exists() else []

        translated = self._translator.run(self._translator.find(prefix or "."), check=False)
        if not translated.ok:
            logger.debug("find %s exited %d", prefix or ".", translated.result.exit_status)
        found = []
        for line in translated.stdout.splitlines():
            if not line:
                continue
            if not prefix and line.startswith("./"):
                line = line[2:]
            found.append(line)
        return pathmatch.filter_paths(pattern, found, dotmatch=dotmatch)

    def exists(self, path):
        return self._session.file(path).is_directory()

    def mkdir(self, path, mode=None):
        self._fileutils.mkdir_p([path])
        if mode is not None:
            self._fileutils.chmod(mode, [path])

    def delete(self, path):
        _run_or_raise(self._context, self._translator.rmdir(path), path, "remove directory")

    rmdir = delete
    unlink = delete

    def home(self, user=None):
        from targetio.backends.remote_identity import RemoteEtcBackend

        etc = RemoteEtcBackend(self._context)
        return etc.getpwnam(user or etc.getlogin()).dir

    def tmpdir(self):
        return WINDOWS_TMPDIR if self._context.platform.is_windows else UNIX_TMPDIR

    def mktmpdir(self, prefix="d", suffix=""):
        return RemoteTempfileBackend(self._context).mkdtemp(prefix=prefix, suffix=suffix)


class RemoteTempfileBackend(_RemoteBackend):
    def __init__(self, context: TargetContext) -> None:
        super().__init__(context)
        self._fileutils = RemoteFileUtilsBackend(context)

    def tmpname(self, prefix="", suffix="", tmpdir=None):
        pathmod = ntpath if self._context.platform.is_windows else posixpath
        base = tmpdir or RemoteDirBackend(self._context).tmpdir()
        return tempname.make_path(base, prefix, suffix, pathmod=pathmod)

    def mkdtemp(self, prefix="d", suffix="", tmpdir=None):
        # plain mkdir (no -p): an existing path fails instead of being reused
        path = self.tmpname(prefix, suffix, tmpdir)
        self._fileutils.mkdir([path], mode=0o700)
        return path

    def create(self, prefix="", suffix="", tmpdir=None):
        path = self.tmpname(prefix, suffix, tmpdir)
        _run_or_raise(self._context, self._translator.create_exclusive(path), path, "create")
        files = RemoteFileBackend(self._context)
        return tempname.TempPath(path, opener=files.open, remover=files.delete)
