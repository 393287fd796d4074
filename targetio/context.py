"""TargetContext: explicit backend selection plus per-session state.

One context per target session. It owns the content cache and identity
records, so two contexts never share cached data. Not thread-safe; use one
context per thread or synchronize externally.
"""

from __future__ import annotations

import logging
from enum import Enum
from functools import cached_property
from typing import TYPE_CHECKING

from targetio.cache import ContentCache
from targetio.config import CachePolicy, TargetModeConfig, resolve_target_mode
from targetio.errors import ConfigurationError
from targetio.identity import IdentityCache
from targetio.session import Platform, Session

if TYPE_CHECKING:
    from targetio.commands import CommandTranslator


class Mode(str, Enum):
    LOCAL = "local"
    REMOTE = "remote"


class TargetContext:
    def __init__(
        self,
        mode: Mode | str = Mode.LOCAL,
        session: Session | None = None,
        *,
        config: TargetModeConfig | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.mode = Mode(mode)
        if self.mode is Mode.REMOTE and session is None:
            raise ConfigurationError("Remote mode requires a session")
        self.session = session
        self.config = config or TargetModeConfig(enabled=self.mode is Mode.REMOTE)
        self.logger = logger or logging.getLogger("targetio")
        self.content = ContentCache(self.config.cache_policy)
        self.identity = IdentityCache()

    @classmethod
    def local(cls, *, config: TargetModeConfig | None = None, logger: logging.Logger | None = None) -> TargetContext:
        return cls(Mode.LOCAL, config=config, logger=logger)

    @classmethod
    def remote(
        cls,
        session: Session,
        *,
        config: TargetModeConfig | None = None,
        logger: logging.Logger | None = None,
    ) -> TargetContext:
        return cls(Mode.REMOTE, session, config=config, logger=logger)

    @classmethod
    def from_config(
        cls,
        config: TargetModeConfig,
        session: Session | None = None,
        *,
        cli_target_mode: bool | None = None,
        logger: logging.Logger | None = None,
    ) -> TargetContext:
        """Pick the backend from config/env/CLI; builds a session if none is given."""
        if not resolve_target_mode(cli_target_mode, config):
            return cls.local(config=config, logger=logger)
        if session is None:
            from targetio.sessions import build_session

            session = build_session(config, force=True)
        return cls.remote(session, config=config, logger=logger)

    @property
    def is_remote(self) -> bool:
        return self.mode is Mode.REMOTE

    @cached_property
    def platform(self) -> Platform:
        if self.session is None:
            return Platform.local()
        return self.session.platform()

    @cached_property
    def translator(self) -> CommandTranslator:
        from targetio.commands import CommandTranslator

        return CommandTranslator(self)

    @property
    def cache_policy(self) -> CachePolicy:
        return self.content.policy

    def invalidate(self, path: str) -> int:
        return self.content.invalidate(path)

    def reset(self) -> None:
        """Forget all cached content and identity records."""
        self.content.clear()
        self.identity.clear()

    def __repr__(self) -> str:
        session = getattr(self.session, "name", None)
        return f"TargetContext(mode={self.mode.value!r}, session={session!r})"
