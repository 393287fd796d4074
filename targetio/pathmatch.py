"""Pathname-aware pattern matching shared by both backends.

Semantics follow glob(): ``*``, ``?`` and ``[...]`` never match ``/``; a
``**`` segment matches zero or more directories; wildcards do not match a
leading dot unless ``dotmatch`` is set.
"""

from __future__ import annotations

import fnmatch as _fnmatch
import re

_MAGIC = re.compile(r"[*?\[]")


def has_magic(segment: str) -> bool:
    return _MAGIC.search(segment) is not None


def literal_prefix(pattern: str) -> str:
    """Longest leading run of wildcard-free segments, with a trailing '/'.

    '/etc/*.conf' -> '/etc/', 'etc/*/x' -> 'etc/', '*.py' -> ''.
    """
    segments = pattern.split("/")
    prefix: list[str] = []
    for segment in segments[:-1]:
        if has_magic(segment):
            break
        prefix.append(segment)
    else:
        if not has_magic(segments[-1]):
            # no wildcard at all: the pattern names a single path
            return pattern
    if not prefix:
        return ""
    return "/".join(prefix) + "/"


def _segment_match(pattern: str, name: str, dotmatch: bool) -> bool:
    if name.startswith(".") and not dotmatch and not pattern.startswith("."):
        if has_magic(pattern[:1]):
            return False
    return _fnmatch.fnmatchcase(name, pattern)


def _match(patterns: list[str], names: list[str], dotmatch: bool) -> bool:
    if not patterns:
        return not names
    head = patterns[0]
    if head == "**":
        for skip in range(len(names) + 1):
            skipped = names[:skip]
            if not dotmatch and any(n.startswith(".") for n in skipped):
                break
            if _match(patterns[1:], names[skip:], dotmatch):
                return True
        return False
    if not names:
        return False
    return _segment_match(head, names[0], dotmatch) and _match(patterns[1:], names[1:], dotmatch)


def fnmatch(pattern: str, path: str, dotmatch: bool = False) -> bool:
    """Match ``path`` against ``pattern`` segment by segment."""
    pattern_segments = pattern.split("/")
    path_segments = path.rstrip("/").split("/") if path not in ("", "/") else path.split("/")
    return _match(pattern_segments, path_segments, dotmatch)


def filter_paths(pattern: str, paths, dotmatch: bool = False) -> list[str]:
    return sorted({p for p in paths if fnmatch(pattern, p, dotmatch)})
