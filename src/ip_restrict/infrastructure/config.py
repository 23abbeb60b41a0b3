"""Configuration management for IP Restrict."""

import logging
import os
import re
from collections.abc import Iterable
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from ..domain.access_policy import EnabledOverride, RequiredRulesSupplier
from ..domain.models import ErrorCode, IPRestrictError

ENV_PREFIX = "IP_RESTRICT_"

_TRUTHY = {"1", "true", "yes", "on"}
_FALSY = {"0", "false", "no", "off"}


def parse_bool(value: str) -> bool | None:
    """Parse an environment flag; empty or unknown text means unset."""
    normalized = value.strip().lower()
    if normalized in _TRUTHY:
        return True
    if normalized in _FALSY:
        return False
    return None


def split_entries(value: str) -> list[str]:
    """Split a comma or newline separated list of entries."""
    return [item.strip() for item in re.split(r"[,\n]", value) if item.strip()]


class GateConfig(BaseModel):
    """Deployment configuration for the access gate."""

    log_level: str = Field(default="INFO", description="Logging level")
    json_logs: bool = Field(default=False, description="Emit JSON formatted logs")
    settings_file: str = Field(
        default="config/settings.yaml",
        description="Path to the stored allow list and enabled flag",
    )
    force_enabled: bool | None = Field(
        default=None,
        description="Force gating on or off regardless of stored settings",
    )
    required_ips: list[str] = Field(
        default_factory=list,
        description="Entries that are always allowed, in addition to the allow list",
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.strip().upper()
        if level not in logging.getLevelNamesMapping():
            raise ValueError(f"Unknown log level: {v}")
        return level

    @field_validator("required_ips", mode="before")
    @classmethod
    def split_required_ips(cls, v: Any) -> Any:
        if isinstance(v, str):
            return split_entries(v)
        return v


class ConfigManager:
    """Manager for loading the gate configuration and its extension points."""

    def __init__(self, config_file: str | None = None):
        """Initialize the config manager.

        Args:
            config_file: Optional path to configuration file
        """
        self.config_file = config_file or "config/ip_restrict.yaml"
        self._config: GateConfig | None = None

    def load_config(self) -> GateConfig:
        """Load configuration from file, then apply environment overrides.

        Returns:
            GateConfig instance with loaded configuration
        """
        config_data: dict[str, Any] = {}

        config_path = Path(self.config_file)
        if config_path.exists():
            try:
                with open(config_path, encoding="utf-8") as f:
                    config_data = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise IPRestrictError(
                    ErrorCode.INVALID_CONFIGURATION,
                    f"Failed to parse configuration file {config_path}: {e}",
                    "Access gate configuration is invalid",
                ) from e
            except (OSError, UnicodeDecodeError) as e:
                raise IPRestrictError(
                    ErrorCode.INVALID_CONFIGURATION,
                    f"Cannot read configuration file {config_path}: {e}",
                    "Access gate configuration is unreadable",
                ) from e

            if not isinstance(config_data, dict):
                raise IPRestrictError(
                    ErrorCode.INVALID_CONFIGURATION,
                    f"Configuration file {config_path} must contain a mapping",
                    "Access gate configuration is invalid",
                )

        config_data.update(self._env_overrides())

        try:
            self._config = GateConfig(**config_data)
        except ValidationError as e:
            raise IPRestrictError(
                ErrorCode.INVALID_CONFIGURATION,
                f"Invalid configuration: {e}",
                "Access gate configuration is invalid",
            ) from e
        return self._config

    @staticmethod
    def _env_overrides() -> dict[str, Any]:
        overrides: dict[str, Any] = {}

        force_enabled = parse_bool(os.environ.get(f"{ENV_PREFIX}FORCE_ENABLED", ""))
        if force_enabled is not None:
            overrides["force_enabled"] = force_enabled

        required_ips = os.environ.get(f"{ENV_PREFIX}REQUIRED_IPS")
        if required_ips is not None:
            overrides["required_ips"] = split_entries(required_ips)

        settings_file = os.environ.get(f"{ENV_PREFIX}SETTINGS_FILE")
        if settings_file:
            overrides["settings_file"] = settings_file

        log_level = os.environ.get(f"{ENV_PREFIX}LOG_LEVEL")
        if log_level:
            overrides["log_level"] = log_level

        return overrides

    def get_config(self) -> GateConfig:
        """Get the current configuration, loading it on first use."""
        if self._config is None:
            return self.load_config()
        return self._config

    def enabled_override(self) -> EnabledOverride | None:
        """Build the enabled-flag override, or None when nothing is forced."""
        forced = self.get_config().force_enabled
        if forced is None:
            return None

        def override(stored: bool | None) -> bool | None:
            return forced

        return override

    def required_rules_supplier(
        self, extra: Iterable[str] = ()
    ) -> RequiredRulesSupplier:
        """Build the required-list supplier from configuration plus extras."""
        config = self.get_config()
        extra = list(extra)

        def supplier() -> list[str]:
            return [*config.required_ips, *extra]

        return supplier

    def save_default_config(self) -> None:
        """Save a default configuration file."""
        config_path = Path(self.config_file)
        config_path.parent.mkdir(parents=True, exist_ok=True)

        config_data = GateConfig().model_dump()

        with open(config_path, "w", encoding="utf-8") as f:
            yaml.safe_dump(config_data, f, default_flow_style=False, indent=2)
