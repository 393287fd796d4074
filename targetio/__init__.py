"""TargetIO: filesystem, identity, temp-file and HTTP calls for the host or a target.

Usage:
    from targetio import TargetModeConfig, create_target_io

    config = TargetModeConfig.load("target.yaml")
    io = create_target_io(config)

    io.fileutils.mkdir_p(["/srv/app"], mode=0o755)
    io.etc.getpwnam("deploy").dir
"""

from __future__ import annotations

import logging
from pathlib import Path

from targetio.cache import CachedFile, ContentCache
from targetio.commands import CommandTranslator, TranslatedCommand
from targetio.config import CachePolicy, TargetModeConfig, resolve_target_mode
from targetio.context import Mode, TargetContext
from targetio.errors import (
    ConfigurationError,
    ExecutionFailed,
    HTTPStatusError,
    InvalidArgument,
    PlatformUnsupported,
    TargetIOError,
    UnsupportedOperation,
)
from targetio.facades import Dir, Etc, File, FileUtils, Shadow, TargetIO, Tempfile
from targetio.identity import GroupEntry, IdentityCache, PasswdEntry, ShadowEntry
from targetio.session import CommandResult, Platform, PseudoStat, RemoteFile, Session


def create_target_io(
    config: TargetModeConfig | str | Path | None = None,
    *,
    cli_target_mode: bool | None = None,
    session: Session | None = None,
    logger: logging.Logger | None = None,
) -> TargetIO:
    """Build a TargetIO whose backend follows CLI flag > env > config."""
    if config is None:
        config = TargetModeConfig()
    elif not isinstance(config, TargetModeConfig):
        config = TargetModeConfig.load(config)
    context = TargetContext.from_config(config, session, cli_target_mode=cli_target_mode, logger=logger)
    return TargetIO(context)


__all__ = [
    # Entry points
    "TargetIO",
    "TargetContext",
    "Mode",
    "create_target_io",
    # Facades
    "Dir",
    "File",
    "FileUtils",
    "Etc",
    "Shadow",
    "Tempfile",
    # Config
    "TargetModeConfig",
    "CachePolicy",
    "resolve_target_mode",
    # Commands and cache
    "CommandTranslator",
    "TranslatedCommand",
    "ContentCache",
    "CachedFile",
    # Records
    "PasswdEntry",
    "GroupEntry",
    "ShadowEntry",
    "IdentityCache",
    "PseudoStat",
    # Session contracts
    "Session",
    "RemoteFile",
    "CommandResult",
    "Platform",
    # Errors
    "TargetIOError",
    "UnsupportedOperation",
    "ExecutionFailed",
    "InvalidArgument",
    "PlatformUnsupported",
    "ConfigurationError",
    "HTTPStatusError",
]
