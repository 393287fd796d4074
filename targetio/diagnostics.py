"""Call diagnostics: operation, arguments and caller location."""

from __future__ import annotations

import logging
import os
import sys
from typing import Any

_PACKAGE_DIR = os.path.dirname(os.path.abspath(__file__))


def caller_location() -> str:
    """Return 'file:line' of the nearest frame outside this package."""
    frame = sys._getframe(1)
    while frame is not None:
        filename = os.path.abspath(frame.f_code.co_filename)
        if not filename.startswith(_PACKAGE_DIR + os.sep):
            return f"{frame.f_code.co_filename}:{frame.f_lineno}"
        frame = frame.f_back
    return "<unknown>"


def format_call(operation: str, args: tuple[Any, ...], kwargs: dict[str, Any]) -> str:
    rendered = [repr(a) for a in args] + [f"{k}={v!r}" for k, v in kwargs.items()]
    return f"{operation}({', '.join(rendered)})"


def record_call(
    logger: logging.Logger,
    operation: str,
    args: tuple[Any, ...],
    kwargs: dict[str, Any],
    backend: str,
    location: str,
) -> None:
    if not logger.isEnabledFor(logging.DEBUG):
        return
    logger.debug(
        "%s [%s] in %s",
        format_call(operation, args, kwargs),
        backend,
        location,
        extra={
            "targetio_operation": operation,
            "targetio_args": args,
            "targetio_kwargs": kwargs,
            "targetio_backend": backend,
            "targetio_location": location,
        },
    )


def record_unsupported(
    logger: logging.Logger,
    operation: str,
    args: tuple[Any, ...],
    kwargs: dict[str, Any],
    backend: str,
    location: str,
) -> None:
    logger.warning(
        "Unsupported %s [%s] in %s",
        format_call(operation, args, kwargs),
        backend,
        location,
        extra={
            "targetio_operation": operation,
            "targetio_args": args,
            "targetio_kwargs": kwargs,
            "targetio_backend": backend,
            "targetio_location": location,
        },
    )
