"""
Configuration management using Pydantic models loaded from YAML.
"""

import os
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator

from .domain.models import SchedulingConfig


class SupabaseConfig(BaseModel):
    """Supabase project connection."""
    url: str = ""
    service_role_key: str = ""

    @model_validator(mode="after")
    def fill_from_environment(self) -> "SupabaseConfig":
        """Fall back to the deployment's environment variables."""
        self.url = self.url or os.environ.get("SUPABASE_URL", "")
        self.service_role_key = self.service_role_key or os.environ.get(
            "SUPABASE_SERVICE_ROLE_KEY", ""
        )
        self.url = self.url.rstrip("/")
        return self

    def is_configured(self) -> bool:
        return bool(self.url and self.service_role_key)


class GoogleConfig(BaseModel):
    """OAuth client used to refresh calendar tokens."""
    client_id: str = ""
    client_secret: str = ""

    @model_validator(mode="after")
    def fill_from_environment(self) -> "GoogleConfig":
        self.client_id = self.client_id or os.environ.get("GOOGLE_CLIENT_ID", "")
        self.client_secret = self.client_secret or os.environ.get("GOOGLE_CLIENT_SECRET", "")
        return self


class SchedulingDefaults(BaseModel):
    """Fallbacks used when a user's settings leave a column empty."""
    free_duration_minutes: int = 15
    paid_duration_minutes: int = 30
    buffer_minutes: int = 15
    advance_notice_hours: int = 24
    range_days: int = 30

    @field_validator("free_duration_minutes", "paid_duration_minutes", "range_days")
    @classmethod
    def validate_positive(cls, value: int) -> int:
        """Ensure durations and the range are positive."""
        if value <= 0:
            raise ValueError(f"Value must be greater than zero, got {value}")
        return value

    @field_validator("buffer_minutes", "advance_notice_hours")
    @classmethod
    def validate_non_negative(cls, value: int) -> int:
        if value < 0:
            raise ValueError(f"Value must not be negative, got {value}")
        return value

    def to_scheduling_config(self) -> SchedulingConfig:
        return SchedulingConfig(
            free_duration_minutes=self.free_duration_minutes,
            paid_duration_minutes=self.paid_duration_minutes,
            buffer_minutes=self.buffer_minutes,
            advance_notice_hours=self.advance_notice_hours,
        )


class TimeoutsConfig(BaseModel):
    """Upper bounds, in seconds, on each external lookup."""
    store_seconds: float = 15.0
    calendar_seconds: float = 10.0
    http_seconds: float = 10.0

    @field_validator("store_seconds", "calendar_seconds", "http_seconds")
    @classmethod
    def validate_timeout(cls, value: float) -> float:
        if value <= 0:
            raise ValueError(f"Timeouts must be greater than zero, got {value}")
        return value


class AppConfig(BaseModel):
    """Application configuration."""
    supabase: SupabaseConfig = Field(default_factory=SupabaseConfig)
    google: GoogleConfig = Field(default_factory=GoogleConfig)
    defaults: SchedulingDefaults = Field(default_factory=SchedulingDefaults)
    timeouts: TimeoutsConfig = Field(default_factory=TimeoutsConfig)
    log_level: str = "INFO"

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown log level: {value}")
        return level

    @classmethod
    def load_from_yaml(cls, config_path: Path) -> "AppConfig":
        """
        Load configuration from YAML file.

        Args:
            config_path: Path to the YAML config file

        Returns:
            AppConfig instance

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValueError: If config is invalid
        """
        if not config_path.exists():
            raise FileNotFoundError(
                f"Config file not found: {config_path}\n"
                f"Please create a config.yaml file. See config.example.yaml for reference."
            )

        try:
            with open(config_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ValueError(f"Invalid YAML in {config_path}: {exc}") from exc

        if not isinstance(data, dict):
            raise ValueError("Config file must contain a mapping at the root level.")

        return cls(**data)

    @classmethod
    def load(cls, config_path: Path | None = None) -> "AppConfig":
        """Load from YAML when a file is available, else from the environment alone."""
        path = config_path or get_default_config_path()
        if config_path is None and not path.exists():
            return cls()
        return cls.load_from_yaml(path)


def get_default_config_path() -> Path:
    """Get the default configuration file path."""
    # Look for config.yaml in current directory
    current_dir = Path.cwd()
    config_path = current_dir / "config.yaml"

    if not config_path.exists():
        # Try in the project root (parent of the package)
        project_root = Path(__file__).parent.parent
        config_path = project_root / "config.yaml"

    return config_path
