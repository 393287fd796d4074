"""Concrete sessions and the builder that picks one from config."""

from __future__ import annotations

import logging

from targetio.config import TargetModeConfig
from targetio.errors import ConfigurationError
from targetio.session import Session
from targetio.sessions.base import CommandFile, ShellSession
from targetio.sessions.docker import DockerSession
from targetio.sessions.local import SubprocessSession

logger = logging.getLogger(__name__)


def build_session(config: TargetModeConfig, force: bool = False) -> Session | None:
    """Build the session for ``config.protocol``.

    Returns None when target mode is disabled, unless ``force`` is set
    (the CLI/env flag already decided).
    """
    if not (config.enabled or force):
        return None

    protocol = config.protocol
    if protocol == "docker":
        if not config.docker.container:
            raise ConfigurationError("protocol 'docker' requires docker.container")
        session = DockerSession.from_config(config.docker)
    elif protocol == "local":
        session = SubprocessSession()
    else:
        raise ConfigurationError(f"Unsupported target mode protocol: {protocol!r} (expected 'docker' or 'local')")

    logger.info("Target mode session: %r", session)
    return session


__all__ = [
    "CommandFile",
    "DockerSession",
    "ShellSession",
    "SubprocessSession",
    "build_session",
]
