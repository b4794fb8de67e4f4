"""Pydantic Settings for the probe engine.

Values come from a YAML file (see :func:`load_settings`) and from
environment variables with the PROBE_ prefix, the latter taking priority.
Example: PROBE_TARGET_URL=https://example.com PROBE_CONCURRENCY=8
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import Field, ValidationError, field_validator, model_validator
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource

from edgeprobe.config.profiles import DEFAULT_IMPERSONATION, normalize_identity
from edgeprobe.middleware.error_handler import ConfigError

logger = logging.getLogger(__name__)


class ProbeSettings(BaseSettings):
    """Probe engine configuration."""

    # Target
    target_url: str
    concurrency: int = Field(default=4, ge=1)

    # Identities
    profiles: dict[str, str] = {"desktop": DEFAULT_IMPERSONATION}
    default_profile: str = "desktop"

    # Egress nodes
    proxies: list[str] = []
    node_failure_threshold: int = Field(default=3, ge=0)
    node_cooldown_seconds: float = Field(default=60.0, gt=0)

    # Worker loop
    request_timeout_seconds: float = Field(default=30.0, gt=0)
    idle_interval_ms: int = Field(default=100, ge=0)
    cycle_interval_ms: int = Field(default=50, ge=0)

    # Challenge escalation
    challenge_timeout_seconds: float = Field(default=25.0, gt=0)
    challenge_poll_interval_ms: int = Field(default=500, ge=10)
    success_cookie: str = "waf_clearance"
    solver_max_workers: int = Field(default=4, ge=1)
    browser_headless: bool = True
    browser_executable: str | None = None
    credential_path: str = "clearance_cookie.txt"

    # Logging
    log_level: str = "INFO"
    log_dir: str = "logs"
    event_queue_size: int = Field(default=10000, ge=1)

    # Telemetry API
    host: str = "127.0.0.1"
    port: int = 8001

    model_config = {"env_prefix": "PROBE_"}

    @field_validator("profiles")
    @classmethod
    def _check_identities(cls, value: dict[str, str]) -> dict[str, str]:
        if not value:
            raise ValueError("at least one profile is required")
        for identity in value.values():
            normalize_identity(identity)
        return value

    @model_validator(mode="after")
    def _check_default_profile(self) -> "ProbeSettings":
        if self.default_profile not in self.profiles:
            raise ValueError(
                f"default_profile '{self.default_profile}' is not defined in profiles"
            )
        return self

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        # Environment overrides values read from the config file
        return env_settings, init_settings, dotenv_settings, file_secret_settings


def _flatten(raw: dict[str, Any]) -> dict[str, Any]:
    """Flatten the sectioned YAML layout into ProbeSettings keyword arguments."""
    values: dict[str, Any] = {}
    general = raw.get("general") or {}
    network = raw.get("network") or {}
    engine = raw.get("engine") or {}

    for section in (general, network, engine):
        if not isinstance(section, dict):
            raise ConfigError("Config sections must be mappings")

    values.update(general)
    if "proxies" in network:
        values["proxies"] = network["proxies"]
    if "profiles" in raw:
        values["profiles"] = raw["profiles"]
    values.update(engine)
    return values


def load_settings(config_path: str | None = None) -> ProbeSettings:
    """Build :class:`ProbeSettings` from a YAML file plus the environment.

    Args:
        config_path: Path to the YAML file. If ``None`` or missing on disk,
            configuration comes from the environment alone.

    Raises:
        ConfigError: The file cannot be parsed or the values are invalid.
    """
    values: dict[str, Any] = {}

    if config_path is not None:
        path = Path(config_path)
        if path.exists():
            try:
                raw = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
            except yaml.YAMLError as exc:
                raise ConfigError(f"Failed to parse config file {config_path}: {exc}") from exc
            if not isinstance(raw, dict):
                raise ConfigError(f"Config file {config_path} must contain a mapping")
            values = _flatten(raw)
        else:
            logger.warning("Config file not found at %s, using environment only", config_path)

    try:
        return ProbeSettings(**values)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration: {exc}") from exc
