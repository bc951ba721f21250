"""User settings for skillport."""

from __future__ import annotations

import json
import logging
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from skillport.audit import DEFAULT_AUDIT_TIMEOUT_SECS
from skillport.errors import ConfigError
from skillport.gitops import DEFAULT_CLONE_TIMEOUT_SECS
from skillport.source import DEFAULT_ALIASES
from skillport.types import InstallMode

logger = logging.getLogger(__name__)

SETTINGS_DIR_NAME = ".skillport"
SETTINGS_FILE_NAME = "settings.json"
ALIAS_PREFIX = "alias."


class Settings(BaseModel):
    """Persisted user settings."""

    model_config = ConfigDict(populate_by_name=True)

    aliases: dict[str, str] = Field(default_factory=dict)
    clone_timeout_secs: int = Field(default=DEFAULT_CLONE_TIMEOUT_SECS, gt=0, alias="cloneTimeoutSecs")
    audit_timeout_secs: float = Field(default=DEFAULT_AUDIT_TIMEOUT_SECS, gt=0, alias="auditTimeoutSecs")
    default_mode: InstallMode = Field(default=InstallMode.SYMLINK, alias="defaultMode")
    audit_enabled: bool = Field(default=True, alias="auditEnabled")


SETTING_KEYS = tuple(field.alias for field in Settings.model_fields.values() if field.alias)


class SettingsManager:
    """Loads and saves settings.json."""

    def __init__(self, settings_dir: Path | None = None) -> None:
        """Initialize the settings manager.

        Args:
            settings_dir: Directory for the settings file. Defaults to ~/.skillport.

        Note:
            Prefer using factory methods `create()` or `create_default()` for construction.
        """
        self.settings_dir = settings_dir or Path.home() / SETTINGS_DIR_NAME
        self.settings_file = self.settings_dir / SETTINGS_FILE_NAME

    @classmethod
    def create(cls, settings_dir: Path) -> SettingsManager:
        """Create a settings manager with a custom directory.

        Args:
            settings_dir: Directory for the settings file.

        Returns:
            Configured SettingsManager instance.
        """
        return cls(settings_dir=settings_dir)

    @classmethod
    def create_default(cls) -> SettingsManager:
        """Create a settings manager using ~/.skillport.

        Returns:
            SettingsManager configured with default paths.
        """
        return cls()

    def load(self) -> Settings:
        """Load settings from disk.

        Returns:
            Stored settings, or defaults when no file exists.

        Raises:
            ConfigError: If the file exists but is not valid.
        """
        if not self.settings_file.exists():
            return Settings()

        try:
            data = json.loads(self.settings_file.read_text(encoding="utf-8"))
            return Settings.model_validate(data)
        except (OSError, json.JSONDecodeError, ValidationError) as e:
            raise ConfigError(
                f"Invalid settings file {self.settings_file}: {e}",
                ["Fix or delete the settings file to restore defaults"],
            ) from e

    def save(self, settings: Settings) -> None:
        """Save settings to disk.

        Args:
            settings: Settings to save.

        Raises:
            ConfigError: If the file cannot be written.
        """
        data = settings.model_dump(mode="json", by_alias=True)
        try:
            self.settings_dir.mkdir(parents=True, exist_ok=True)
            self.settings_file.write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")
        except OSError as e:
            raise ConfigError(f"Failed to write settings file {self.settings_file}: {e}") from e

    def set_value(self, key: str, value: str) -> Settings:
        """Set one setting and save.

        ``alias.<name>`` keys add an alias; an empty value removes it.

        Args:
            key: Setting key, e.g. ``cloneTimeoutSecs`` or ``alias.team``.
            value: New value as typed on the command line.

        Returns:
            The updated settings.

        Raises:
            ConfigError: If the key is unknown or the value is invalid.
        """
        settings = self.load()
        data = settings.model_dump(by_alias=True)

        if key.startswith(ALIAS_PREFIX):
            name = key[len(ALIAS_PREFIX):].strip().lower()
            if not name:
                raise ConfigError("Alias name is empty", ["Use alias.<name>, e.g. alias.team"])
            if value:
                data["aliases"][name] = value
            else:
                data["aliases"].pop(name, None)
        elif key in SETTING_KEYS:
            data[key] = value
        else:
            raise ConfigError(
                f"Unknown setting '{key}'",
                [f"Known settings: {', '.join(SETTING_KEYS)}, alias.<name>"],
            )

        try:
            updated = Settings.model_validate(data)
        except ValidationError as e:
            raise ConfigError(f"Invalid value for {key}: {value}") from e

        self.save(updated)
        logger.debug("Set %s", key)
        return updated

    def merged_aliases(self, settings: Settings | None = None) -> dict[str, str]:
        """Built-in aliases overlaid with user aliases."""
        settings = settings or self.load()
        return {**DEFAULT_ALIASES, **settings.aliases}
