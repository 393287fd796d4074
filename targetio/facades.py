"""Facades: one API per domain, served by the local or the remote backend.

Each facade has a closed operation set. ``call(name, ...)`` and the named
methods dispatch identically: the context's mode is read once per call and
all arguments are forwarded unchanged. Anything outside the set, or missing
on the active backend, raises UnsupportedOperation.

Usage:
    io = TargetIO(TargetContext.remote(session))
    io.fileutils.mkdir_p(["/srv/app"], mode=0o755)
    with io.file.open("/etc/motd", "a") as f:
        f.write("managed\\n")
"""

from __future__ import annotations

import ntpath
import os
import posixpath
from typing import Any

from targetio import pathmatch
from targetio.backends.local import (
    LocalDirBackend,
    LocalEtcBackend,
    LocalFileBackend,
    LocalFileUtilsBackend,
    LocalShadowBackend,
    LocalTempfileBackend,
)
from targetio.backends.remote_fs import (
    RemoteDirBackend,
    RemoteFileBackend,
    RemoteFileUtilsBackend,
    RemoteTempfileBackend,
)
from targetio.backends.remote_identity import RemoteEtcBackend, RemoteShadowBackend
from targetio.context import TargetContext
from targetio.diagnostics import caller_location, record_call, record_unsupported
from targetio.errors import UnsupportedOperation


class PathOps:
    """Syntactic path operations; never touch a session."""

    name = "path"

    def __init__(self, pathmod) -> None:
        self._pathmod = pathmod

    def join(self, *parts):
        return self._pathmod.join(*parts)

    def split(self, path):
        return self._pathmod.split(path)

    def dirname(self, path):
        return self._pathmod.dirname(path)

    def basename(self, path, suffix=None):
        name = self._pathmod.basename(path)
        if suffix and name.endswith(suffix) and name != suffix:
            name = name[: -len(suffix)]
        return name

    def extname(self, path):
        return self._pathmod.splitext(path)[1]

    def fnmatch(self, pattern, path, dotmatch=False):
        return pathmatch.fnmatch(pattern, path, dotmatch=dotmatch)


class Facade:
    domain = "facade"
    operations: frozenset[str] = frozenset()
    path_operations: frozenset[str] = frozenset()
    local_backend: type | None = None
    remote_backend: type | None = None

    def __init__(self, context: TargetContext) -> None:
        self._context = context
        self._local = self._make_local()
        self._remote = self._make_remote()

    def _make_local(self):
        return self.local_backend(self._context) if self.local_backend else None

    def _make_remote(self):
        return self.remote_backend(self._context) if self.remote_backend else None

    @property
    def context(self) -> TargetContext:
        return self._context

    def _path_ops(self, remote: bool) -> PathOps:
        if not remote:
            return PathOps(os.path)
        # remote paths are POSIX unless the platform was already probed as Windows
        probed = self._context.__dict__.get("platform")
        if probed is not None and probed.is_windows:
            return PathOps(ntpath)
        return PathOps(posixpath)

    def _unsupported(self, operation, args, kwargs, backend, location):
        qualified = f"{self.domain}.{operation}"
        record_unsupported(self._context.logger, qualified, args, kwargs, backend, location)
        return UnsupportedOperation(qualified, args, kwargs, location=location, backend=backend)

    def call(self, operation: str, *args: Any, **kwargs: Any) -> Any:
        remote = self._context.is_remote
        backend_name = "remote" if remote else "local"
        location = caller_location()
        if self._context.config.log_calls:
            record_call(self._context.logger, f"{self.domain}.{operation}", args, kwargs, backend_name, location)

        if operation not in self.operations:
            raise self._unsupported(operation, args, kwargs, backend_name, location)

        if operation in self.path_operations:
            target = self._path_ops(remote)
        else:
            target = self._remote if remote else self._local
        handler = getattr(target, operation, None) if target is not None else None
        if handler is None:
            raise self._unsupported(operation, args, kwargs, backend_name, location)
        return handler(*args, **kwargs)


class Dir(Facade):
    domain = "Dir"
    operations = frozenset(
        {"entries", "glob", "exists", "mkdir", "delete", "rmdir", "unlink", "home", "tmpdir", "mktmpdir", "chdir", "pwd"}
    )
    local_backend = LocalDirBackend
    remote_backend = RemoteDirBackend

    def entries(self, path):
        return self.call("entries", path)

    def glob(self, pattern, dotmatch=False):
        return self.call("glob", pattern, dotmatch=dotmatch)

    def exists(self, path):
        return self.call("exists", path)

    def mkdir(self, path, mode=None):
        return self.call("mkdir", path, mode=mode)

    def delete(self, path):
        return self.call("delete", path)

    def rmdir(self, path):
        return self.call("rmdir", path)

    def unlink(self, path):
        return self.call("unlink", path)

    def home(self, user=None):
        return self.call("home", user)

    def tmpdir(self):
        return self.call("tmpdir")

    def mktmpdir(self, prefix="d", suffix=""):
        return self.call("mktmpdir", prefix=prefix, suffix=suffix)

    def chdir(self, path):
        return self.call("chdir", path)

    def pwd(self):
        return self.call("pwd")


class File(Facade):
    domain = "File"
    path_operations = frozenset({"join", "split", "dirname", "basename", "extname", "fnmatch"})
    operations = path_operations | frozenset(
        {
            "exists", "is_file", "is_dir", "is_symlink", "is_pipe", "is_socket", "is_blockdev", "is_chardev",
            "mtime", "size", "readable", "writable", "executable",
            "read", "binread", "readlines", "foreach", "open",
            "stat", "lstat", "chmod", "chown", "link", "symlink", "readlink", "realpath", "absolute_path",
            "utime", "delete", "unlink", "expand_path", "separator",
        }
    )
    local_backend = LocalFileBackend
    remote_backend = RemoteFileBackend

    def exists(self, path):
        return self.call("exists", path)

    def is_file(self, path):
        return self.call("is_file", path)

    def is_dir(self, path):
        return self.call("is_dir", path)

    def is_symlink(self, path):
        return self.call("is_symlink", path)

    def is_pipe(self, path):
        return self.call("is_pipe", path)

    def is_socket(self, path):
        return self.call("is_socket", path)

    def is_blockdev(self, path):
        return self.call("is_blockdev", path)

    def is_chardev(self, path):
        return self.call("is_chardev", path)

    def mtime(self, path):
        return self.call("mtime", path)

    def size(self, path):
        return self.call("size", path)

    def readable(self, path):
        return self.call("readable", path)

    def writable(self, path):
        return self.call("writable", path)

    def executable(self, path):
        return self.call("executable", path)

    def read(self, path, encoding="utf-8"):
        return self.call("read", path, encoding=encoding)

    def binread(self, path, length=None, offset=0):
        return self.call("binread", path, length=length, offset=offset)

    def readlines(self, path, encoding="utf-8"):
        return self.call("readlines", path, encoding=encoding)

    def foreach(self, path, encoding="utf-8"):
        return self.call("foreach", path, encoding=encoding)

    def open(self, path, mode="r", encoding="utf-8"):
        return self.call("open", path, mode=mode, encoding=encoding)

    def stat(self, path):
        return self.call("stat", path)

    def lstat(self, path):
        return self.call("lstat", path)

    def chmod(self, mode, *paths):
        return self.call("chmod", mode, *paths)

    def chown(self, owner, group, *paths):
        return self.call("chown", owner, group, *paths)

    def link(self, old, new):
        return self.call("link", old, new)

    def symlink(self, old, new):
        return self.call("symlink", old, new)

    def readlink(self, path):
        return self.call("readlink", path)

    def realpath(self, path):
        return self.call("realpath", path)

    def absolute_path(self, path):
        return self.call("absolute_path", path)

    def utime(self, atime, mtime, *paths):
        return self.call("utime", atime, mtime, *paths)

    def delete(self, *paths):
        return self.call("delete", *paths)

    def unlink(self, *paths):
        return self.call("unlink", *paths)

    def expand_path(self, path, dir=None):
        return self.call("expand_path", path, dir=dir)

    def separator(self):
        return self.call("separator")

    def join(self, *parts):
        return self.call("join", *parts)

    def split(self, path):
        return self.call("split", path)

    def dirname(self, path):
        return self.call("dirname", path)

    def basename(self, path, suffix=None):
        return self.call("basename", path, suffix)

    def extname(self, path):
        return self.call("extname", path)

    def fnmatch(self, pattern, path, dotmatch=False):
        return self.call("fnmatch", pattern, path, dotmatch=dotmatch)


class FileUtils(Facade):
    domain = "FileUtils"
    operations = frozenset(
        {
            "chmod", "chmod_R", "chown", "chown_R", "cp", "copy", "cp_r", "cp_lr", "install",
            "ln", "link", "ln_s", "symlink", "ln_sf", "mkdir", "mkdir_p", "makedirs", "mkpath",
            "mv", "move", "rm", "remove", "rm_f", "rm_r", "rm_rf", "rmtree", "remove_entry", "rmdir", "touch",
        }
    )
    local_backend = LocalFileUtilsBackend
    remote_backend = RemoteFileUtilsBackend

    def chmod(self, mode, paths, **options):
        return self.call("chmod", mode, paths, **options)

    def chmod_R(self, mode, paths, **options):
        return self.call("chmod_R", mode, paths, **options)

    def chown(self, owner, group, paths, **options):
        return self.call("chown", owner, group, paths, **options)

    def chown_R(self, owner, group, paths, **options):
        return self.call("chown_R", owner, group, paths, **options)

    def cp(self, src, dest, **options):
        return self.call("cp", src, dest, **options)

    def copy(self, src, dest, **options):
        return self.call("copy", src, dest, **options)

    def cp_r(self, src, dest, **options):
        return self.call("cp_r", src, dest, **options)

    def cp_lr(self, src, dest, **options):
        return self.call("cp_lr", src, dest, **options)

    def install(self, src, dest, **options):
        return self.call("install", src, dest, **options)

    def ln(self, src, dest, **options):
        return self.call("ln", src, dest, **options)

    def link(self, src, dest, **options):
        return self.call("link", src, dest, **options)

    def ln_s(self, src, dest, **options):
        return self.call("ln_s", src, dest, **options)

    def symlink(self, src, dest, **options):
        return self.call("symlink", src, dest, **options)

    def ln_sf(self, src, dest, **options):
        return self.call("ln_sf", src, dest, **options)

    def mkdir(self, paths, **options):
        return self.call("mkdir", paths, **options)

    def mkdir_p(self, paths, **options):
        return self.call("mkdir_p", paths, **options)

    def makedirs(self, paths, **options):
        return self.call("makedirs", paths, **options)

    def mkpath(self, paths, **options):
        return self.call("mkpath", paths, **options)

    def mv(self, src, dest, **options):
        return self.call("mv", src, dest, **options)

    def move(self, src, dest, **options):
        return self.call("move", src, dest, **options)

    def rm(self, paths, **options):
        return self.call("rm", paths, **options)

    def remove(self, paths, **options):
        return self.call("remove", paths, **options)

    def rm_f(self, paths, **options):
        return self.call("rm_f", paths, **options)

    def rm_r(self, paths, **options):
        return self.call("rm_r", paths, **options)

    def rm_rf(self, paths, **options):
        return self.call("rm_rf", paths, **options)

    def rmtree(self, paths, **options):
        return self.call("rmtree", paths, **options)

    def remove_entry(self, paths, **options):
        return self.call("remove_entry", paths, **options)

    def rmdir(self, paths, **options):
        return self.call("rmdir", paths, **options)

    def touch(self, paths, **options):
        return self.call("touch", paths, **options)


class Etc(Facade):
    domain = "Etc"
    operations = frozenset({"getlogin", "getpwnam", "getpwuid", "getgrnam", "getgrgid"})
    local_backend = LocalEtcBackend
    remote_backend = RemoteEtcBackend

    def getlogin(self):
        return self.call("getlogin")

    def getpwnam(self, name):
        return self.call("getpwnam", name)

    def getpwuid(self, uid):
        return self.call("getpwuid", uid)

    def getgrnam(self, name):
        return self.call("getgrnam", name)

    def getgrgid(self, gid):
        return self.call("getgrgid", gid)


class Shadow(Facade):
    domain = "Shadow"
    operations = frozenset({"getspnam"})
    local_backend = LocalShadowBackend
    remote_backend = RemoteShadowBackend

    def getspnam(self, name):
        return self.call("getspnam", name)


class Tempfile(Facade):
    domain = "Tempfile"
    operations = frozenset({"tmpname", "mkdtemp", "create"})
    local_backend = LocalTempfileBackend
    remote_backend = RemoteTempfileBackend

    def tmpname(self, prefix="", suffix="", tmpdir=None):
        return self.call("tmpname", prefix=prefix, suffix=suffix, tmpdir=tmpdir)

    def mkdtemp(self, prefix="d", suffix="", tmpdir=None):
        return self.call("mkdtemp", prefix=prefix, suffix=suffix, tmpdir=tmpdir)

    def create(self, prefix="", suffix="", tmpdir=None):
        return self.call("create", prefix=prefix, suffix=suffix, tmpdir=tmpdir)


class TargetIO:
    """All facades bound to one context."""

    def __init__(self, context: TargetContext) -> None:
        self.context = context
        self.dir = Dir(context)
        self.file = File(context)
        self.fileutils = FileUtils(context)
        self.etc = Etc(context)
        self.shadow = Shadow(context)
        self.tempfile = Tempfile(context)

    @classmethod
    def local(cls, **kwargs) -> TargetIO:
        return cls(TargetContext.local(**kwargs))

    @classmethod
    def remote(cls, session, **kwargs) -> TargetIO:
        return cls(TargetContext.remote(session, **kwargs))

    def http(self, url: str, **kwargs):
        from targetio.http import HTTP

        return HTTP(self.context, url, **kwargs)
