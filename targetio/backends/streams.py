"""In-memory streams over remote content that write back once, on close."""

from __future__ import annotations

import io
from collections.abc import Callable

from targetio.errors import InvalidArgument

_VALID_MODE_CHARS = set("rwaxbt+")


def parse_mode(mode: str) -> tuple[str, bool, bool]:
    """Split an open() mode into (kind, binary, plus)."""
    if not mode or set(mode) - _VALID_MODE_CHARS:
        raise InvalidArgument(f"Invalid file mode: {mode!r}")
    kinds = [c for c in mode if c in "rwax"]
    if len(kinds) != 1 or ("b" in mode and "t" in mode) or mode.count("+") > 1:
        raise InvalidArgument(f"Invalid file mode: {mode!r}")
    return kinds[0], "b" in mode, "+" in mode


def is_read_only(mode: str) -> bool:
    kind, _, plus = parse_mode(mode)
    return kind == "r" and not plus


class WriteBackBytesIO(io.BytesIO):
    """BytesIO that hands its final value to ``on_close`` exactly once."""

    def __init__(self, initial: bytes, on_close: Callable[[bytes], None], *, name: str = "") -> None:
        super().__init__(initial)
        self.name = name
        self._on_close = on_close

    def close(self) -> None:
        if self.closed:
            return
        data = self.getvalue()
        super().close()
        self._on_close(data)


class WriteBackStringIO(io.StringIO):
    """StringIO counterpart of WriteBackBytesIO; encodes on close."""

    def __init__(
        self,
        initial: str,
        on_close: Callable[[bytes], None],
        *,
        encoding: str = "utf-8",
        name: str = "",
    ) -> None:
        super().__init__(initial, newline="")
        self.name = name
        self._encoding = encoding
        self._on_close = on_close

    @property
    def encoding(self) -> str:
        return self._encoding

    def close(self) -> None:
        if self.closed:
            return
        data = self.getvalue().encode(self._encoding)
        super().close()
        self._on_close(data)
