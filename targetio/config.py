"""Target mode configuration.

Priority for the target mode flag: CLI flag > TARGETIO_TARGET_MODE env > config file.
"""

from __future__ import annotations

import json
import os
from enum import Enum
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from targetio.errors import ConfigurationError

TARGET_MODE_ENV = "TARGETIO_TARGET_MODE"

_TRUTHY = {"1", "true", "yes", "on"}
_FALSY = {"0", "false", "no", "off", ""}


class CachePolicy(str, Enum):
    SNAPSHOT = "snapshot"  # fetch once per path for the context lifetime
    NONE = "none"  # re-fetch on every read


class DockerSessionConfig(BaseModel):
    container: str | None = None
    shell: str = "/bin/sh"
    command_timeout_sec: float = 20.0


class TargetModeConfig(BaseModel):
    enabled: bool = False
    protocol: str = "ssh"
    host: str | None = None
    # Principal for readable/writable/executable checks (sudo -n -u <principal> test ...)
    test_principal: str | None = None
    cache_policy: CachePolicy = CachePolicy.SNAPSHOT
    log_calls: bool = True
    docker: DockerSessionConfig = Field(default_factory=DockerSessionConfig)

    @field_validator("protocol")
    @classmethod
    def _normalize_protocol(cls, value: str) -> str:
        value = value.strip().lower()
        if not value:
            raise ValueError("protocol must not be empty")
        return value

    @classmethod
    def load(cls, path: str | Path) -> TargetModeConfig:
        """Load from a YAML or JSON file.

        A top-level ``target_mode`` key is unwrapped if present.
        """
        path = Path(path)
        if not path.exists():
            raise ConfigurationError(f"Target mode config not found: {path}")

        text = path.read_text(encoding="utf-8")
        try:
            if path.suffix == ".json":
                data = json.loads(text) if text.strip() else {}
            else:
                data = yaml.safe_load(text) or {}
        except (json.JSONDecodeError, yaml.YAMLError) as e:
            raise ConfigurationError(f"Malformed target mode config {path}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigurationError(f"Target mode config must be a mapping: {path}")
        if isinstance(data.get("target_mode"), dict):
            data = data["target_mode"]
        return cls.from_dict(data)

    @classmethod
    def from_dict(cls, data: dict) -> TargetModeConfig:
        try:
            return cls(**data)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid target mode config: {e}") from e


def parse_flag(value: str) -> bool:
    normalized = value.strip().lower()
    if normalized in _TRUTHY:
        return True
    if normalized in _FALSY:
        return False
    raise ConfigurationError(f"Invalid {TARGET_MODE_ENV} value: {value!r}")


def resolve_target_mode(cli_arg: bool | None, config: TargetModeConfig | None = None) -> bool:
    if cli_arg is not None:
        return cli_arg
    env_value = os.getenv(TARGET_MODE_ENV)
    if env_value is not None:
        return parse_flag(env_value)
    return bool(config and config.enabled)
