"""passwd/group/shadow records and parsers."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PasswdEntry:
    name: str
    passwd: str
    uid: int
    gid: int
    gecos: str
    dir: str
    shell: str

    # pwd.struct_passwd attribute names
    @property
    def pw_name(self) -> str:
        return self.name

    @property
    def pw_passwd(self) -> str:
        return self.passwd

    @property
    def pw_uid(self) -> int:
        return self.uid

    @property
    def pw_gid(self) -> int:
        return self.gid

    @property
    def pw_gecos(self) -> str:
        return self.gecos

    @property
    def pw_dir(self) -> str:
        return self.dir

    @property
    def pw_shell(self) -> str:
        return self.shell

    @classmethod
    def from_struct(cls, entry) -> PasswdEntry:
        return cls(
            name=entry.pw_name,
            passwd=entry.pw_passwd,
            uid=entry.pw_uid,
            gid=entry.pw_gid,
            gecos=entry.pw_gecos,
            dir=entry.pw_dir,
            shell=entry.pw_shell,
        )


@dataclass(frozen=True)
class GroupEntry:
    name: str
    passwd: str
    gid: int
    members: tuple[str, ...] = ()

    @property
    def gr_name(self) -> str:
        return self.name

    @property
    def gr_passwd(self) -> str:
        return self.passwd

    @property
    def gr_gid(self) -> int:
        return self.gid

    @property
    def gr_mem(self) -> list[str]:
        return list(self.members)

    @classmethod
    def from_struct(cls, entry) -> GroupEntry:
        return cls(
            name=entry.gr_name,
            passwd=entry.gr_passwd,
            gid=entry.gr_gid,
            members=tuple(entry.gr_mem),
        )


@dataclass(frozen=True)
class ShadowEntry:
    name: str
    pwd: str
    lstchg: int | None = None
    min: int | None = None
    max: int | None = None
    warn: int | None = None
    inact: int | None = None
    expire: int | None = None
    flag: str = ""


def _data_lines(content: str):
    for lineno, raw in enumerate(content.splitlines(), 1):
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        yield lineno, line


def _optional_int(value: str) -> int | None:
    value = value.strip()
    return int(value) if value else None


def parse_passwd(content: str) -> list[PasswdEntry]:
    entries = []
    for lineno, line in _data_lines(content):
        fields = line.split(":")
        if len(fields) != 7:
            logger.warning("Skipping malformed passwd line %d: %r", lineno, line)
            continue
        name, passwd, uid, gid, gecos, home, shell = fields
        try:
            entries.append(PasswdEntry(name, passwd, int(uid), int(gid), gecos, home, shell))
        except ValueError:
            logger.warning("Skipping passwd line %d with non-numeric ids: %r", lineno, line)
    return entries


def parse_group(content: str) -> list[GroupEntry]:
    entries = []
    for lineno, line in _data_lines(content):
        fields = line.split(":")
        if len(fields) != 4:
            logger.warning("Skipping malformed group line %d: %r", lineno, line)
            continue
        name, passwd, gid, members = fields
        try:
            entries.append(GroupEntry(name, passwd, int(gid), tuple(m for m in members.split(",") if m)))
        except ValueError:
            logger.warning("Skipping group line %d with non-numeric gid: %r", lineno, line)
    return entries


def parse_shadow(content: str) -> list[ShadowEntry]:
    entries = []
    for lineno, line in _data_lines(content):
        fields = line.split(":")
        if len(fields) < 2:
            logger.warning("Skipping malformed shadow line %d", lineno)
            continue
        fields += [""] * (9 - len(fields))
        name, pwd, lstchg, min_days, max_days, warn, inact, expire, flag = fields[:9]
        try:
            entries.append(
                ShadowEntry(
                    name=name,
                    pwd=pwd,
                    lstchg=_optional_int(lstchg),
                    min=_optional_int(min_days),
                    max=_optional_int(max_days),
                    warn=_optional_int(warn),
                    inact=_optional_int(inact),
                    expire=_optional_int(expire),
                    flag=flag,
                )
            )
        except ValueError:
            logger.warning("Skipping shadow line %d with non-numeric fields", lineno)
    return entries


@dataclass
class IdentityCache:
    """Parsed identity records, populated once per context."""

    passwd: list[PasswdEntry] = field(default_factory=list)
    group: list[GroupEntry] = field(default_factory=list)
    shadow: list[ShadowEntry] = field(default_factory=list)
    login: str | None = None
    loaded: set[str] = field(default_factory=set)

    def clear(self) -> None:
        self.passwd.clear()
        self.group.clear()
        self.shadow.clear()
        self.login = None
        self.loaded.clear()
