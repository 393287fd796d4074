"""Temporary path names: <prefix><YYYYMMDD>-<pid>-<6 base36 chars><suffix>.

No collision retry: callers treat a failed create at the chosen path as fatal.
"""

from __future__ import annotations

import os
import posixpath
import random
import string
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime

_BASE36 = string.digits + string.ascii_lowercase
RANDOM_WIDTH = 6


def base36(value: int, width: int = RANDOM_WIDTH) -> str:
    if value < 0:
        raise ValueError("base36 value must be non-negative")
    digits = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits)).rjust(width, "0")


def random_suffix(rng: random.Random | None = None) -> str:
    rng = rng or random
    return base36(rng.randrange(36**RANDOM_WIDTH))


def make_name(
    prefix: str = "",
    suffix: str = "",
    *,
    now: datetime | None = None,
    pid: int | None = None,
    rng: random.Random | None = None,
) -> str:
    now = now or datetime.now()
    pid = os.getpid() if pid is None else pid
    return f"{prefix}{now:%Y%m%d}-{pid}-{random_suffix(rng)}{suffix}"


def make_path(tmpdir: str, prefix: str = "", suffix: str = "", *, pathmod=posixpath, **kwargs) -> str:
    return pathmod.join(tmpdir, make_name(prefix, suffix, **kwargs))


@dataclass
class TempPath:
    """A reserved temporary path on the active backend."""

    path: str
    opener: Callable = field(repr=False)
    remover: Callable = field(repr=False)

    def open(self, mode: str = "w+", **kwargs):
        return self.opener(self.path, mode, **kwargs)

    def unlink(self) -> None:
        self.remover(self.path)

    def __fspath__(self) -> str:
        return self.path
