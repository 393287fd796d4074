"""Remote user/group/shadow lookups.

/etc/passwd, /etc/group and /etc/shadow are fetched through the remote file
backend, so they share the content cache with File.read, and parsed into
IdentityCache once per context. Later changes to those files on the target
are not seen until IdentityCache.clear(), which also drops the cached content
on the next load.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from targetio.backends.remote_fs import RemoteFileBackend
from targetio.errors import PlatformUnsupported
from targetio.identity import parse_group, parse_passwd, parse_shadow

if TYPE_CHECKING:
    from targetio.context import TargetContext

logger = logging.getLogger(__name__)

SOURCES = {
    "passwd": ("/etc/passwd", parse_passwd),
    "group": ("/etc/group", parse_group),
    "shadow": ("/etc/shadow", parse_shadow),
}


class _IdentityBackend:
    name = "remote"

    def __init__(self, context: TargetContext) -> None:
        self._context = context

    def _require_unix(self) -> None:
        platform = self._context.platform
        if not platform.is_unix:
            raise PlatformUnsupported(f"Identity lookups need a Unix target, this is {platform.title or platform.family}")

    def _records(self, kind: str) -> list:
        self._require_unix()
        cache = self._context.identity
        records = getattr(cache, kind)
        if kind not in cache.loaded:
            path, parse = SOURCES[kind]
            # a cleared IdentityCache must not be refilled from stale content
            self._context.invalidate(path)
            records.extend(parse(RemoteFileBackend(self._context).read(path)))
            cache.loaded.add(kind)
            logger.debug("Loaded %d %s records from %s", len(records), kind, path)
        return records


class RemoteEtcBackend(_IdentityBackend):
    def getlogin(self):
        self._require_unix()
        cache = self._context.identity
        if cache.login is None:
            translator = self._context.translator
            cache.login = translator.run(translator.whoami()).stdout.strip()
        return cache.login

    def getpwnam(self, name):
        for entry in self._records("passwd"):
            if entry.name == name:
                return entry
        raise KeyError(f"getpwnam(): name not found: {name!r}")

    def getpwuid(self, uid):
        for entry in self._records("passwd"):
            if entry.uid == int(uid):
                return entry
        raise KeyError(f"getpwuid(): uid not found: {uid}")

    def getgrnam(self, name):
        for entry in self._records("group"):
            if entry.name == name:
                return entry
        raise KeyError(f"getgrnam(): name not found: {name!r}")

    def getgrgid(self, gid):
        for entry in self._records("group"):
            if entry.gid == int(gid):
                return entry
        raise KeyError(f"getgrgid(): gid not found: {gid}")


class RemoteShadowBackend(_IdentityBackend):
    def getspnam(self, name):
        for entry in self._records("shadow"):
            if entry.name == name:
                return entry
        raise KeyError(f"getspnam(): name not found: {name!r}")
