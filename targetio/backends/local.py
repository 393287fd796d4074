"""Local backends: os, os.path, shutil, pwd/grp and tempfile.

FileUtils operations still render their command through the translator so
verbose/noop behave the same as remotely and both backends return a
TranslatedCommand; the work itself is done natively.
"""

from __future__ import annotations

import contextlib
import glob
import os
import shutil
import stat
import tempfile
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING

from targetio import tempname
from targetio.commands import flatten
from targetio.errors import InvalidArgument, PlatformUnsupported
from targetio.identity import GroupEntry, PasswdEntry, parse_shadow

if TYPE_CHECKING:
    from targetio.commands import TranslatedCommand
    from targetio.context import TargetContext

SHADOW_PATH = "/etc/shadow"


def _timestamp(value) -> float:
    if isinstance(value, datetime):
        return value.timestamp()
    return float(value)


def _require_posix() -> None:
    if os.name != "posix":
        raise PlatformUnsupported(f"Identity lookups need a Unix host, this is {os.name}")


class _LocalBackend:
    name = "local"

    def __init__(self, context: TargetContext) -> None:
        self._context = context

    @property
    def _translator(self):
        return self._context.translator


class LocalFileUtilsBackend(_LocalBackend):
    def _announce(self, translated: TranslatedCommand) -> bool:
        """Log the rendered command; True if the work should be done."""
        self._translator.announce(translated)
        return not translated.noop

    def chmod(self, mode, paths, *, noop=False, verbose=False):
        translated = self._translator.chmod(mode, paths, noop=noop, verbose=verbose)
        if self._announce(translated):
            for path in flatten(paths):
                os.chmod(path, mode)
        return translated

    def chmod_R(self, mode, paths, *, force=False, noop=False, verbose=False):
        translated = self._translator.chmod(mode, paths, recursive=True, force=force, noop=noop, verbose=verbose)
        if self._announce(translated):
            for path in flatten(paths):
                for target in _walk(path):
                    with _maybe_suppress(force):
                        os.chmod(target, mode)
        return translated

    def chown(self, owner, group, paths, *, noop=False, verbose=False):
        translated = self._translator.chown(owner, group, paths, noop=noop, verbose=verbose)
        if self._announce(translated):
            for path in flatten(paths):
                shutil.chown(path, user=owner, group=group)
        return translated

    def chown_R(self, owner, group, paths, *, force=False, noop=False, verbose=False):
        translated = self._translator.chown(
            owner, group, paths, recursive=True, force=force, noop=noop, verbose=verbose
        )
        if self._announce(translated):
            for path in flatten(paths):
                for target in _walk(path):
                    with _maybe_suppress(force):
                        shutil.chown(target, user=owner, group=group)
        return translated

    def cp(self, src, dest, *, preserve=False, noop=False, verbose=False):
        translated = self._translator.cp(src, dest, preserve=preserve, noop=noop, verbose=verbose)
        if self._announce(translated):
            copier = shutil.copy2 if preserve else shutil.copy
            for source in flatten(src):
                copier(source, dest)
        return translated

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
        if self._announce(translated):
            copier = shutil.copy2 if preserve else shutil.copy
            for source in flatten(src):
                target = os.path.join(dest, os.path.basename(source.rstrip("/"))) if os.path.isdir(dest) else dest
                if os.path.isdir(source):
                    shutil.copytree(source, target, copy_function=copier, dirs_exist_ok=True)
                else:
                    if remove_destination and os.path.lexists(target):
                        os.remove(target)
                    copier(source, target)
        return translated

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
        if self._announce(translated):

            def link(source, target):
                if remove_destination and os.path.lexists(target):
                    os.remove(target)
                os.link(source, target)

            for source in flatten(src):
                target = os.path.join(dest, os.path.basename(source.rstrip("/"))) if os.path.isdir(dest) else dest
                if os.path.isdir(source):
                    shutil.copytree(source, target, copy_function=link, dirs_exist_ok=True)
                else:
                    link(source, target)
        return translated

    def install(self, src, dest, *, mode=None, owner=None, group=None, preserve=False, noop=False, verbose=False):
        translated = self._translator.install(
            src, dest, mode=mode, owner=owner, group=group, preserve=preserve, noop=noop, verbose=verbose
        )
        if self._announce(translated):
            copier = shutil.copy2 if preserve else shutil.copy
            for source in flatten(src):
                target = copier(source, dest)
                os.chmod(target, 0o755 if mode is None else mode)
                if owner is not None or group is not None:
                    shutil.chown(target, user=owner, group=group)
        return translated

    def ln(self, src, dest, *, force=False, noop=False, verbose=False):
        translated = self._translator.ln(src, dest, force=force, noop=noop, verbose=verbose)
        if self._announce(translated):
            _link(os.link, src, dest, force)
        return translated

    link = ln

    def ln_s(self, src, dest, *, force=False, noop=False, verbose=False):
        translated = self._translator.ln(src, dest, symbolic=True, force=force, noop=noop, verbose=verbose)
        if self._announce(translated):
            _link(os.symlink, src, dest, force)
        return translated

    symlink = ln_s

    def ln_sf(self, src, dest, *, noop=False, verbose=False):
        return self.ln_s(src, dest, force=True, noop=noop, verbose=verbose)

    def mkdir(self, paths, *, mode=None, noop=False, verbose=False):
        translated = self._translator.mkdir(paths, mode=mode, noop=noop, verbose=verbose)
        if self._announce(translated):
            for path in flatten(paths):
                os.mkdir(path)
                if mode is not None:
                    os.chmod(path, mode)
        return translated

    def mkdir_p(self, paths, *, mode=None, noop=False, verbose=False):
        translated = self._translator.mkdir(paths, parents=True, mode=mode, noop=noop, verbose=verbose)
        if self._announce(translated):
            for path in flatten(paths):
                os.makedirs(path, exist_ok=True)
                if mode is not None:
                    os.chmod(path, mode)
        return translated

    makedirs = mkdir_p
    mkpath = mkdir_p

    def mv(self, src, dest, *, force=False, noop=False, verbose=False):
        translated = self._translator.mv(src, dest, force=force, noop=noop, verbose=verbose)
        if self._announce(translated):
            for source in flatten(src):
                shutil.move(source, dest)
        return translated

    move = mv

    def rm(self, paths, *, force=False, noop=False, verbose=False):
        translated = self._translator.rm(paths, force=force, noop=noop, verbose=verbose)
        if self._announce(translated):
            for path in flatten(paths):
                if force:
                    Path(path).unlink(missing_ok=True)
                else:
                    os.remove(path)
        return translated

    remove = rm

    def rm_f(self, paths, *, noop=False, verbose=False):
        return self.rm(paths, force=True, noop=noop, verbose=verbose)

    def rm_r(self, paths, *, force=False, noop=False, verbose=False):
        translated = self._translator.rm(paths, recursive=True, force=force, noop=noop, verbose=verbose)
        if self._announce(translated):
            for path in flatten(paths):
                if force and not os.path.lexists(path):
                    continue
                if os.path.isdir(path) and not os.path.islink(path):
                    shutil.rmtree(path)
                else:
                    os.remove(path)
        return translated

    def rm_rf(self, paths, *, noop=False, verbose=False):
        return self.rm_r(paths, force=True, noop=noop, verbose=verbose)

    rmtree = rm_rf
    remove_entry = rm_rf

    def rmdir(self, paths, *, parents=False, noop=False, verbose=False):
        translated = self._translator.rmdir(paths, parents=parents, noop=noop, verbose=verbose)
        if self._announce(translated):
            for path in flatten(paths):
                if parents:
                    os.removedirs(path)
                else:
                    os.rmdir(path)
        return translated

    def touch(self, paths, *, mtime=None, nocreate=False, noop=False, verbose=False):
        translated = self._translator.touch(paths, mtime=mtime, nocreate=nocreate, noop=noop, verbose=verbose)
        if self._announce(translated):
            times = None if mtime is None else (_timestamp(mtime), _timestamp(mtime))
            for path in flatten(paths):
                if not os.path.exists(path):
                    if nocreate:
                        continue
                    Path(path).touch()
                os.utime(path, times)
        return translated


def _walk(path: str):
    yield path
    if os.path.isdir(path) and not os.path.islink(path):
        for root, dirs, files in os.walk(path):
            for name in dirs + files:
                yield os.path.join(root, name)


def _maybe_suppress(force: bool):
    return contextlib.suppress(OSError) if force else contextlib.nullcontext()


def _link(linker, src, dest, force: bool) -> None:
    sources = flatten(src)
    for source in sources:
        target = os.path.join(dest, os.path.basename(source)) if os.path.isdir(dest) else dest
        if force and os.path.lexists(target):
            os.remove(target)
        linker(source, target)


class LocalFileBackend(_LocalBackend):
    def __init__(self, context: TargetContext) -> None:
        super().__init__(context)
        self._fileutils = LocalFileUtilsBackend(context)

    def exists(self, path):
        return os.path.exists(path)

    def is_file(self, path):
        return os.path.isfile(path)

    def is_dir(self, path):
        return os.path.isdir(path)

    def is_symlink(self, path):
        return os.path.islink(path)

    def _mode_is(self, path, predicate) -> bool:
        try:
            return predicate(os.stat(path).st_mode)
        except FileNotFoundError:
            return False

    def is_pipe(self, path):
        return self._mode_is(path, stat.S_ISFIFO)

    def is_socket(self, path):
        return self._mode_is(path, stat.S_ISSOCK)

    def is_blockdev(self, path):
        return self._mode_is(path, stat.S_ISBLK)

    def is_chardev(self, path):
        return self._mode_is(path, stat.S_ISCHR)

    def mtime(self, path):
        return os.path.getmtime(path)

    def size(self, path):
        return os.path.getsize(path)

    def readable(self, path):
        return os.access(path, os.R_OK)

    def writable(self, path):
        return os.access(path, os.W_OK)

    def executable(self, path):
        return os.access(path, os.X_OK)

    def binread(self, path, length=None, offset=0):
        with open(path, "rb") as f:
            f.seek(offset)
            return f.read() if length is None else f.read(length)

    def read(self, path, encoding="utf-8"):
        return Path(path).read_text(encoding=encoding)

    def readlines(self, path, encoding="utf-8"):
        with open(path, encoding=encoding, newline="") as f:
            return f.readlines()

    def foreach(self, path, encoding="utf-8"):
        return iter(self.readlines(path, encoding))

    def open(self, path, mode="r", encoding="utf-8"):
        if "b" in mode:
            return open(path, mode)
        return open(path, mode, encoding=encoding)

    def stat(self, path):
        return os.stat(path)

    def lstat(self, path):
        return os.lstat(path)

    def chmod(self, mode, *paths):
        self._fileutils.chmod(mode, list(paths))

    def chown(self, owner, group, *paths):
        self._fileutils.chown(owner, group, list(paths))

    def link(self, old, new):
        os.link(old, new)

    def symlink(self, old, new):
        os.symlink(old, new)

    def readlink(self, path):
        if not os.path.islink(path):
            raise InvalidArgument(f"Not a symbolic link: {path}")
        return os.readlink(path)

    def realpath(self, path):
        return os.path.realpath(path)

    absolute_path = realpath

    def utime(self, atime, mtime, *paths):
        for path in paths:
            os.utime(path, (_timestamp(atime), _timestamp(mtime)))

    def delete(self, *paths):
        for path in paths:
            os.remove(path)

    unlink = delete

    def expand_path(self, path, dir=None):
        base = os.path.expanduser(dir) if dir else os.getcwd()
        return os.path.normpath(os.path.join(os.path.abspath(base), os.path.expanduser(path)))

    def separator(self):
        return os.sep


class LocalDirBackend(_LocalBackend):
    def entries(self, path):
        return os.listdir(path)

    def glob(self, pattern, dotmatch=False):
        return sorted(glob.glob(pattern, recursive=True, include_hidden=dotmatch))

    def exists(self, path):
        return os.path.isdir(path)

    def mkdir(self, path, mode=None):
        os.makedirs(path, exist_ok=True)
        if mode is not None:
            os.chmod(path, mode)

    def delete(self, path):
        os.rmdir(path)

    rmdir = delete
    unlink = delete

    def home(self, user=None):
        return os.path.expanduser(f"~{user or ''}")

    def tmpdir(self):
        return tempfile.gettempdir()

    def mktmpdir(self, prefix="d", suffix=""):
        return LocalTempfileBackend(self._context).mkdtemp(prefix=prefix, suffix=suffix)

    def chdir(self, path):
        os.chdir(path)

    def pwd(self):
        return os.getcwd()


class LocalTempfileBackend(_LocalBackend):
    def tmpname(self, prefix="", suffix="", tmpdir=None):
        return tempname.make_path(tmpdir or tempfile.gettempdir(), prefix, suffix, pathmod=os.path)

    def mkdtemp(self, prefix="d", suffix="", tmpdir=None):
        path = self.tmpname(prefix, suffix, tmpdir)
        os.mkdir(path, 0o700)
        return path

    def create(self, prefix="", suffix="", tmpdir=None):
        path = self.tmpname(prefix, suffix, tmpdir)
        os.close(os.open(path, os.O_CREAT | os.O_EXCL | os.O_WRONLY, 0o600))
        files = LocalFileBackend(self._context)
        return tempname.TempPath(path, opener=files.open, remover=files.delete)


class LocalEtcBackend(_LocalBackend):
    def getlogin(self):
        _require_posix()
        import pwd

        return pwd.getpwuid(os.geteuid()).pw_name

    def getpwnam(self, name):
        _require_posix()
        import pwd

        return PasswdEntry.from_struct(pwd.getpwnam(name))

    def getpwuid(self, uid):
        _require_posix()
        import pwd

        return PasswdEntry.from_struct(pwd.getpwuid(int(uid)))

    def getgrnam(self, name):
        _require_posix()
        import grp

        return GroupEntry.from_struct(grp.getgrnam(name))

    def getgrgid(self, gid):
        _require_posix()
        import grp

        return GroupEntry.from_struct(grp.getgrgid(int(gid)))


class LocalShadowBackend(_LocalBackend):
    def getspnam(self, name):
        _require_posix()
        for entry in parse_shadow(Path(SHADOW_PATH).read_text(encoding="utf-8")):
            if entry.name == name:
                return entry
        raise KeyError(f"getspnam(): name not found: {name!r}")
