"""Persistent settings for pip orchestration."""

from __future__ import annotations

import json
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from pip_orchestrator import messages
from pip_orchestrator.filesystem import RealFileSystem
from pip_orchestrator.protocols import FileSystem

# Default configuration location
CONFIG_DIR = Path.home() / ".pip-orchestrator"

BUNDLED_BOOTSTRAP_SCRIPT = Path(__file__).parent / "scripts" / "bootstrap_pip.py"


class ConfigError(Exception):
    """Configuration file could not be read or is invalid."""

    pass


class Settings(BaseModel):
    """User settings."""

    model_config = ConfigDict(populate_by_name=True, validate_assignment=True)

    max_workers: int = Field(default=4, ge=1, alias="maxWorkers")
    bootstrap_script: Path | None = Field(default=None, alias="bootstrapScript")
    bootstrap_prompt: str = Field(default=messages.INSTALL_PIP_PROMPT, alias="bootstrapPrompt")

    def resolved_bootstrap_script(self) -> Path:
        """Bootstrap script to run, falling back to the bundled one."""
        return self.bootstrap_script or BUNDLED_BOOTSTRAP_SCRIPT


# CLI key -> Settings field
SETTABLE_KEYS = {
    "max-workers": "max_workers",
    "bootstrap-script": "bootstrap_script",
    "bootstrap-prompt": "bootstrap_prompt",
}


class SettingsManager:
    """Loads and saves settings."""

    def __init__(
        self, config_dir: Path | None = None, filesystem: FileSystem | None = None
    ) -> None:
        """Initialize the settings manager.

        Args:
            config_dir: Directory for the config file. Defaults to ~/.pip-orchestrator.
            filesystem: Filesystem used for reading and writing the file.

        Note:
            Prefer using factory methods `create()` or `create_default()` for construction.
        """
        self.config_dir = config_dir or CONFIG_DIR
        self.config_file = self.config_dir / "config.json"
        self.fs = filesystem or RealFileSystem()

    @classmethod
    def create(cls, config_dir: Path, filesystem: FileSystem | None = None) -> SettingsManager:
        """Create a settings manager with a custom directory."""
        return cls(config_dir=config_dir, filesystem=filesystem)

    @classmethod
    def create_default(cls, filesystem: FileSystem | None = None) -> SettingsManager:
        """Create a settings manager using ~/.pip-orchestrator."""
        return cls(filesystem=filesystem)

    def load(self) -> Settings:
        """Load settings from disk.

        Returns:
            Settings, defaults if no file exists.

        Raises:
            ConfigError: If the file is not valid JSON or fails validation.
        """
        if not self.fs.exists(self.config_file):
            return Settings()

        try:
            data = json.loads(self.fs.read_text(self.config_file))
            return Settings.model_validate(data)
        except (json.JSONDecodeError, ValidationError) as e:
            raise ConfigError(f"Invalid configuration in {self.config_file}: {e}") from e

    def save(self, settings: Settings) -> None:
        """Save settings to disk.

        Args:
            settings: Settings to save.
        """
        self.fs.mkdir(self.config_dir, parents=True, exist_ok=True)
        data = settings.model_dump(mode="json", by_alias=True, exclude_none=True)
        self.fs.write_text(self.config_file, json.dumps(data, indent=2))

    def set_value(self, key: str, value: str) -> Settings:
        """Update a single setting and persist it.

        Args:
            key: CLI key, e.g. "max-workers".
            value: New value as text.

        Returns:
            The updated settings.

        Raises:
            ConfigError: If the key is unknown or the value is invalid.
        """
        field_name = SETTABLE_KEYS.get(key)
        if field_name is None:
            raise ConfigError(f"Unknown configuration key: {key}")

        settings = self.load()
        try:
            setattr(settings, field_name, value)
        except ValidationError as e:
            raise ConfigError(f"Invalid value for {key}: {value}") from e
        self.save(settings)
        return settings
