"""Tests for user settings."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from skillport.config import Settings, SettingsManager
from skillport.errors import ConfigError
from skillport.source import DEFAULT_ALIASES
from skillport.types import InstallMode


@pytest.fixture
def manager(tmp_path: Path) -> SettingsManager:
    """Create a settings manager under a temporary directory."""
    return SettingsManager.create(tmp_path / "settings")


class TestLoadSave:
    """Tests for loading and saving settings."""

    def test_defaults_when_missing(self, manager: SettingsManager) -> None:
        """Test defaults are used when no file exists."""
        settings = manager.load()

        assert settings == Settings()
        assert settings.clone_timeout_secs == 120
        assert settings.default_mode == InstallMode.SYMLINK
        assert settings.audit_enabled is True

    def test_round_trip(self, manager: SettingsManager) -> None:
        """Test saved settings load back unchanged in camelCase."""
        settings = Settings(aliases={"team": "acme/skills"}, clone_timeout_secs=30)

        manager.save(settings)

        assert json.loads(manager.settings_file.read_text())["cloneTimeoutSecs"] == 30
        assert manager.load() == settings

    def test_invalid_file(self, manager: SettingsManager) -> None:
        """Test a corrupt settings file raises ConfigError."""
        manager.settings_dir.mkdir(parents=True)
        manager.settings_file.write_text("{not json")

        with pytest.raises(ConfigError) as exc_info:
            manager.load()

        assert exc_info.value.suggestions

    def test_invalid_value_in_file(self, manager: SettingsManager) -> None:
        """Test out-of-range values in the file raise ConfigError."""
        manager.settings_dir.mkdir(parents=True)
        manager.settings_file.write_text(json.dumps({"cloneTimeoutSecs": 0}))

        with pytest.raises(ConfigError):
            manager.load()


class TestSetValue:
    """Tests for SettingsManager.set_value."""

    @pytest.mark.parametrize(
        ("key", "value", "attribute", "expected"),
        [
            ("cloneTimeoutSecs", "300", "clone_timeout_secs", 300),
            ("auditTimeoutSecs", "1.5", "audit_timeout_secs", 1.5),
            ("defaultMode", "copy", "default_mode", InstallMode.COPY),
            ("auditEnabled", "false", "audit_enabled", False),
        ],
    )
    def test_typed_values(
        self, manager: SettingsManager, key: str, value: str, attribute: str, expected: object
    ) -> None:
        """Test command-line strings are converted and persisted."""
        settings = manager.set_value(key, value)

        assert getattr(settings, attribute) == expected
        assert getattr(manager.load(), attribute) == expected

    @pytest.mark.parametrize(
        ("key", "value"),
        [("cloneTimeoutSecs", "-1"), ("cloneTimeoutSecs", "soon"), ("defaultMode", "hardlink")],
    )
    def test_invalid_values(self, manager: SettingsManager, key: str, value: str) -> None:
        """Test invalid values raise and leave the file alone."""
        with pytest.raises(ConfigError):
            manager.set_value(key, value)

        assert not manager.settings_file.exists()

    def test_unknown_key(self, manager: SettingsManager) -> None:
        """Test unknown keys are rejected with the known ones listed."""
        with pytest.raises(ConfigError) as exc_info:
            manager.set_value("colour", "blue")

        assert "cloneTimeoutSecs" in exc_info.value.suggestions[0]

    def test_alias_add_and_remove(self, manager: SettingsManager) -> None:
        """Test alias keys add and remove user aliases."""
        assert manager.set_value("alias.Team", "acme/skills").aliases == {"team": "acme/skills"}
        assert manager.set_value("alias.team", "").aliases == {}

    def test_empty_alias_name(self, manager: SettingsManager) -> None:
        """Test an alias key without a name is rejected."""
        with pytest.raises(ConfigError):
            manager.set_value("alias.", "acme/skills")


class TestMergedAliases:
    """Tests for SettingsManager.merged_aliases."""

    def test_user_aliases_overlay_defaults(self, manager: SettingsManager) -> None:
        """Test user aliases are added to and override the built-in ones."""
        settings = Settings(aliases={"team": "acme/skills", "anthropic": "fork/skills"})

        aliases = manager.merged_aliases(settings)

        assert aliases["team"] == "acme/skills"
        assert aliases["anthropic"] == "fork/skills"
        assert set(DEFAULT_ALIASES) <= set(aliases)
