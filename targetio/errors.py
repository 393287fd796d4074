"""Error taxonomy for target-mode I/O.

All errors raised by this package derive from TargetIOError. Errors raised by
the session (FileNotFoundError, OSError, timeouts) are not wrapped.
"""

from __future__ import annotations

from typing import Any


class TargetIOError(Exception):
    pass


class UnsupportedOperation(TargetIOError, NotImplementedError):
    """No implementation for an operation on the active backend."""

    def __init__(
        self,
        operation: str,
        args: tuple[Any, ...] = (),
        kwargs: dict[str, Any] | None = None,
        location: str | None = None,
        backend: str | None = None,
    ) -> None:
        self.operation = operation
        self.call_args = tuple(args)
        self.call_kwargs = dict(kwargs or {})
        self.location = location
        self.backend = backend
        rendered = ", ".join(
            [repr(a) for a in self.call_args] + [f"{k}={v!r}" for k, v in self.call_kwargs.items()]
        )
        message = f"Unsupported operation {operation}({rendered})"
        if backend:
            message += f" on {backend} backend"
        if location:
            message += f" in {location}"
        super().__init__(message)


class ExecutionFailed(TargetIOError):
    """A translated command exited non-zero."""

    def __init__(self, command: str, exit_status: int, stderr: str = "") -> None:
        self.command = command
        self.exit_status = exit_status
        self.stderr = stderr
        detail = stderr.strip()
        message = f"Command failed with exit status {exit_status}: {command}"
        if detail:
            message += f"\n{detail}"
        super().__init__(message)


class InvalidArgument(TargetIOError, ValueError):
    pass


class PlatformUnsupported(TargetIOError):
    pass


class ConfigurationError(TargetIOError):
    pass


class HTTPStatusError(TargetIOError):
    """An HTTP response carried a 4xx/5xx status."""

    def __init__(self, method: str, url: str, status_code: int) -> None:
        self.method = method
        self.url = url
        self.status_code = status_code
        super().__init__(f"{method} {url} returned HTTP {status_code}")
