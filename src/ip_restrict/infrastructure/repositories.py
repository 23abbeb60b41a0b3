"""Infrastructure implementations of the settings repository."""

from collections.abc import Iterable
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from ip_restrict.domain.models import ErrorCode, GateSettings, IPRestrictError
from ip_restrict.domain.repositories import SettingsRepository


class InMemorySettingsRepository(SettingsRepository):
    """Settings kept in process memory."""

    def __init__(self, enabled: bool = False, allow_list: Iterable[str] = ()):
        self._data: dict[str, Any] = {
            "enabled": enabled,
            "allow_list": list(allow_list),
        }

    def load(self) -> GateSettings:
        return GateSettings(
            enabled=self._data["enabled"], allow_list=list(self._data["allow_list"])
        )

    def save_allow_list(self, tokens: Iterable[str]) -> None:
        self._data["allow_list"] = list(tokens)

    def set_enabled(self, enabled: bool) -> None:
        self._data["enabled"] = bool(enabled)


class YamlSettingsRepository(SettingsRepository):
    """YAML file-based implementation of SettingsRepository.

    The file holds ``enabled`` and ``allow_list`` keys. A missing file reads
    as a disabled gate with an empty list.
    """

    def __init__(self, settings_file_path: str | Path):
        """Initialize the YAML settings repository.

        Args:
            settings_file_path: Path to the YAML settings file
        """
        self.settings_file_path = Path(settings_file_path)

    def _read(self) -> dict[str, Any]:
        if not self.settings_file_path.exists():
            return {}

        try:
            with open(self.settings_file_path, encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise IPRestrictError(
                ErrorCode.INVALID_CONFIGURATION,
                f"Failed to load settings from {self.settings_file_path}: {e}",
                "Access gate settings are invalid",
            ) from e
        except (OSError, UnicodeDecodeError) as e:
            raise IPRestrictError(
                ErrorCode.SETTINGS_UNAVAILABLE,
                f"Cannot read settings from {self.settings_file_path}: {e}",
                "Access gate settings are unavailable",
            ) from e

        if not isinstance(data, dict):
            raise IPRestrictError(
                ErrorCode.INVALID_CONFIGURATION,
                f"Settings file {self.settings_file_path} must contain a mapping",
                "Access gate settings are invalid",
            )
        return data

    def _write(self, data: dict[str, Any]) -> None:
        self.settings_file_path.parent.mkdir(parents=True, exist_ok=True)

        with open(self.settings_file_path, "w", encoding="utf-8") as f:
            yaml.safe_dump(data, f, default_flow_style=False, indent=2)

    def load(self) -> GateSettings:
        """Read the settings file on every call."""
        data = self._read()
        allow_list = data.get("allow_list") or []
        if isinstance(allow_list, str):
            allow_list = allow_list.splitlines()
        elif not isinstance(allow_list, list):
            raise IPRestrictError(
                ErrorCode.INVALID_CONFIGURATION,
                f"allow_list in {self.settings_file_path} must be a list",
                "Access gate settings are invalid",
            )
        try:
            return GateSettings(
                enabled=data.get("enabled") or False,
                allow_list=[str(item) for item in allow_list],
            )
        except ValidationError as e:
            raise IPRestrictError(
                ErrorCode.INVALID_CONFIGURATION,
                f"Invalid settings in {self.settings_file_path}: {e}",
                "Access gate settings are invalid",
            ) from e

    def save_allow_list(self, tokens: Iterable[str]) -> None:
        data = self._read()
        data["allow_list"] = list(tokens)
        data.setdefault("enabled", False)
        self._write(data)

    def set_enabled(self, enabled: bool) -> None:
        data = self._read()
        data["enabled"] = bool(enabled)
        data.setdefault("allow_list", [])
        self._write(data)
