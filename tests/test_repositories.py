"""Tests for settings repository implementations."""

import pytest
import yaml

from ip_restrict.domain.models import ErrorCode, IPRestrictError
from ip_restrict.infrastructure.repositories import (
    InMemorySettingsRepository,
    YamlSettingsRepository,
)


class TestInMemorySettingsRepository:
    """Test the in-memory store."""

    def test_defaults(self):
        """Test an empty store."""
        settings = InMemorySettingsRepository().load()

        assert settings.enabled is False
        assert settings.allow_list == []

    def test_snapshots_are_independent(self):
        """Test that a loaded snapshot does not change after saving."""
        repository = InMemorySettingsRepository(allow_list=["198.51.100.7"])
        before = repository.load()

        repository.save_allow_list(["203.0.113.0/24"])

        assert before.allow_list == ["198.51.100.7"]
        assert repository.load().allow_list == ["203.0.113.0/24"]


class TestYamlSettingsRepository:
    """Test the YAML file store."""

    def test_missing_file(self, tmp_path):
        """Test that a missing file reads as a disabled gate."""
        repository = YamlSettingsRepository(tmp_path / "settings.yaml")

        settings = repository.load()

        assert settings.enabled is False
        assert settings.allow_list == []

    def test_save_and_load(self, tmp_path):
        """Test persisting the allow list and flag."""
        path = tmp_path / "nested" / "settings.yaml"
        repository = YamlSettingsRepository(path)

        repository.save_allow_list(["203.0.113.0/24", "198.51.100.7"])
        repository.set_enabled(True)

        settings = repository.load()
        assert settings.enabled is True
        assert settings.allow_list == ["203.0.113.0/24", "198.51.100.7"]
        assert yaml.safe_load(path.read_text()) == {
            "enabled": True,
            "allow_list": ["203.0.113.0/24", "198.51.100.7"],
        }

    def test_reads_external_edits(self, tmp_path):
        """Test that each load re-reads the file."""
        path = tmp_path / "settings.yaml"
        repository = YamlSettingsRepository(path)
        repository.set_enabled(False)

        path.write_text(yaml.safe_dump({"enabled": True, "allow_list": ["8.8.8.8"]}))

        assert repository.load().allow_list == ["8.8.8.8"]

    def test_allow_list_as_text_block(self, tmp_path):
        """Test an allow list stored as newline-separated text."""
        path = tmp_path / "settings.yaml"
        path.write_text("enabled: true\nallow_list: |\n  198.51.100.7\n  203.0.113.0/24\n")

        settings = YamlSettingsRepository(path).load()

        assert settings.allow_list == ["198.51.100.7", "203.0.113.0/24"]

    def test_malformed_yaml(self, tmp_path):
        """Test that unparseable YAML is a configuration error."""
        path = tmp_path / "settings.yaml"
        path.write_text("enabled: [unclosed\n")

        with pytest.raises(IPRestrictError) as exc_info:
            YamlSettingsRepository(path).load()

        assert exc_info.value.code == ErrorCode.INVALID_CONFIGURATION

    @pytest.mark.parametrize(
        "content",
        ["- just\n- a list\n", "allow_list: 42\n", "enabled: maybe\n"],
    )
    def test_invalid_structure(self, tmp_path, content):
        """Test that wrongly shaped settings are configuration errors."""
        path = tmp_path / "settings.yaml"
        path.write_text(content)

        with pytest.raises(IPRestrictError):
            YamlSettingsRepository(path).load()

    def test_unreadable_settings_path(self, tmp_path):
        """Test that a settings path that cannot be read is reported as unavailable."""
        with pytest.raises(IPRestrictError) as exc_info:
            YamlSettingsRepository(tmp_path).load()

        assert exc_info.value.code == ErrorCode.SETTINGS_UNAVAILABLE
