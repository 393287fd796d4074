"""Per-context cache of remote file content."""

from __future__ import annotations

import logging
import posixpath
from collections.abc import Callable
from dataclasses import dataclass

from targetio.config import CachePolicy

logger = logging.getLogger(__name__)


@dataclass
class CachedFile:
    path: str
    content: bytes
    # True while content differs from what the target last saw
    dirty: bool = False


class ContentCache:
    """Remote file content keyed by normalized path.

    SNAPSHOT keeps the first fetch for the context lifetime; NONE re-fetches
    on every load. Staged (dirty) content is always served until flushed.
    """

    def __init__(self, policy: CachePolicy = CachePolicy.SNAPSHOT) -> None:
        self.policy = policy
        self._entries: dict[str, CachedFile] = {}

    @staticmethod
    def _key(path: str) -> str:
        return posixpath.normpath(path)

    def __contains__(self, path: str) -> bool:
        return self._key(path) in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, path: str) -> CachedFile | None:
        return self._entries.get(self._key(path))

    def load(self, path: str, fetch: Callable[[], bytes]) -> bytes:
        entry = self.get(path)
        if entry is not None and (entry.dirty or self.policy is CachePolicy.SNAPSHOT):
            return entry.content
        content = fetch()
        self._entries[self._key(path)] = CachedFile(path=self._key(path), content=content)
        return content

    def stage(self, path: str, content: bytes) -> CachedFile:
        """Record new in-memory content; marks the entry dirty if it changed."""
        key = self._key(path)
        entry = self._entries.get(key)
        if entry is None:
            entry = CachedFile(path=key, content=content, dirty=True)
            self._entries[key] = entry
        elif entry.content != content:
            entry.content = content
            entry.dirty = True
        return entry

    def flush(self, path: str, write: Callable[[bytes], None]) -> bool:
        """Push dirty content through ``write``. Returns True if written.

        If ``write`` raises, the entry is dropped so the next load fetches
        what the target actually holds.
        """
        key = self._key(path)
        entry = self._entries.get(key)
        if entry is None or not entry.dirty:
            return False
        try:
            write(entry.content)
        except Exception:
            del self._entries[key]
            logger.debug("Write-back of %s failed; cache entry dropped", key)
            raise
        entry.dirty = False
        return True

    def dirty_paths(self) -> list[str]:
        return [key for key, entry in self._entries.items() if entry.dirty]

    def invalidate(self, path: str) -> int:
        """Drop the entry for ``path`` and any entries below it."""
        key = self._key(path)
        prefix = key.rstrip("/") + "/"
        doomed = [k for k in self._entries if k == key or k.startswith(prefix)]
        for k in doomed:
            if self._entries[k].dirty:
                logger.warning("Discarding unflushed content for %s", k)
            del self._entries[k]
        return len(doomed)

    def clear(self) -> None:
        self._entries.clear()
