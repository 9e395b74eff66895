# src/vaultpack/core/config.py
"""
Configuration schema and loading for vaultpack.

Uses Pydantic for validation and Dynaconf for multi-source loading.
Settings are frozen (immutable) after construction.
"""

from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator, model_validator


class LoggingSettings(BaseModel):
    """Logging configuration.

    Example YAML:
        logging:
          level: DEBUG
          format: json
    """

    model_config = {"frozen": True}

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Minimum log level",
    )
    format: Literal["console", "json"] = Field(
        default="console",
        description="Console renderer for humans, JSON lines for machines",
    )

    @field_validator("level", mode="before")
    @classmethod
    def normalize_level(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.upper()
        return v


class BackupSettings(BaseModel):
    """Top-level backup configuration.

    alias_dir lets the backup record files under a stable logical prefix
    even if the physical source tree moves. When it differs from
    source_dir, both must be absolute and slash-terminated so the prefix
    substitution is unambiguous.

    Example YAML:
        source_dir: /home/alice/photos/
        alias_dir: /photos/
        destination_root: /mnt/backup/photos
        redundancy_level: 1
    """

    model_config = {"frozen": True}

    source_dir: str = Field(description="Directory tree to back up")
    alias_dir: str | None = Field(
        default=None,
        description="Logical prefix substituted for source_dir (defaults to source_dir)",
    )
    destination_root: str = Field(description="Root directory of the pack")
    redundancy_level: int = Field(
        default=0,
        ge=0,
        le=1,
        description="0 = single copy, 1 = mirrored sidecar copy of every blob",
    )
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    @field_validator("source_dir", "destination_root")
    @classmethod
    def validate_not_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be empty")
        return v

    @model_validator(mode="before")
    @classmethod
    def default_alias_to_source(cls, data: Any) -> Any:
        if isinstance(data, dict) and not data.get("alias_dir"):
            return {**data, "alias_dir": data.get("source_dir")}
        return data

    @model_validator(mode="after")
    def validate_alias(self) -> "BackupSettings":
        """A distinct alias needs absolute, slash-terminated paths on both sides."""
        if self.alias_dir == self.source_dir:
            return self

        for name, value in (("alias_dir", self.alias_dir), ("source_dir", self.source_dir)):
            if not value.startswith("/"):
                raise ValueError(f"{name} must start with / when alias_dir is set")
            if not value.endswith("/"):
                raise ValueError(f"{name} must end with / when alias_dir is set")
        return self

    @property
    def alias(self) -> str:
        """alias_dir after defaulting (never None once validated)."""
        return self.alias_dir if self.alias_dir is not None else self.source_dir

    def to_logical(self, path: str) -> str:
        """Map a local path (or an already-logical path) to its logical path.

        Raises:
            ValueError: If path lies under neither source_dir nor alias_dir
        """
        if path.startswith(self.source_dir):
            return self.alias + path[len(self.source_dir):]
        if path.startswith(self.alias):
            return path
        raise ValueError(f"{path} is not under {self.source_dir} or {self.alias}")

    def to_local(self, path: str) -> str:
        """Map a logical path (or an already-local path) to its local path.

        Raises:
            ValueError: If path lies under neither alias_dir nor source_dir
        """
        if path.startswith(self.source_dir):
            return path
        if path.startswith(self.alias):
            return self.source_dir + path[len(self.alias):]
        raise ValueError(f"{path} is not under {self.source_dir} or {self.alias}")


def load_settings(config_path: Path) -> BackupSettings:
    """Load settings from YAML file with environment variable overrides.

    Uses Dynaconf for multi-source loading with precedence:
    1. Environment variables (VAULTPACK_*) - highest priority
    2. Config file (settings.yaml)
    3. Defaults from Pydantic schema - lowest priority

    Environment variable format: VAULTPACK_LOGGING__LEVEL for nested keys.

    Args:
        config_path: Path to YAML configuration file

    Returns:
        Validated BackupSettings instance

    Raises:
        ValidationError: If configuration fails Pydantic validation
        FileNotFoundError: If config file doesn't exist
    """
    from dynaconf import Dynaconf

    # Explicit check for file existence (Dynaconf silently accepts missing files)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    dynaconf_settings = Dynaconf(
        envvar_prefix="VAULTPACK",
        settings_files=[str(config_path)],
        environments=False,
        load_dotenv=False,
        merge_enabled=True,
    )

    # Dynaconf returns uppercase keys; convert to lowercase for Pydantic
    internal_keys = {"LOAD_DOTENV", "ENVIRONMENTS", "SETTINGS_FILES"}
    raw_config = {
        k.lower(): v
        for k, v in dynaconf_settings.as_dict().items()
        if k not in internal_keys
    }
    if isinstance(raw_config.get("logging"), dict):
        raw_config["logging"] = {k.lower(): v for k, v in raw_config["logging"].items()}
    return BackupSettings(**raw_config)
