"""
Configuration management using Pydantic models loaded from YAML.
"""

import logging
from pathlib import Path
from typing import List, Literal

import pendulum
import yaml
from pydantic import BaseModel, Field, field_validator, model_validator


class ProviderAlias(BaseModel):
    """Short name for a provider id, so the CLI can say 'salon' instead of an id."""
    name: str
    provider_id: str

    def display_name(self) -> str:
        """Get display name."""
        return self.name


class AppConfig(BaseModel):
    """Application configuration."""
    api_base_url: str
    timezone: str = "Asia/Bahrain"
    date_style: Literal["dmy", "iso"] = "dmy"
    time_style: Literal["12h", "24h"] = "12h"
    request_timeout_seconds: float = 10.0
    upcoming_days: int = 7
    bookings_query: Literal["provider_date", "provider"] = "provider_date"
    log_level: str = "WARNING"
    providers: List[ProviderAlias] = Field(default_factory=list)

    @field_validator("api_base_url")
    @classmethod
    def validate_api_base_url(cls, value: str) -> str:
        """Ensure the API URL is absolute and has no trailing slash."""
        if not value.startswith(("http://", "https://")):
            raise ValueError(f"api_base_url must start with http:// or https://, got '{value}'")
        return value.rstrip("/")

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, value: str) -> str:
        """Ensure the timezone is a known IANA identifier."""
        try:
            pendulum.timezone(value)
        except Exception as exc:
            raise ValueError(f"Unknown timezone '{value}'") from exc
        return value

    @field_validator("request_timeout_seconds")
    @classmethod
    def validate_timeout(cls, value: float) -> float:
        """Ensure request timeout is positive."""
        if value <= 0:
            raise ValueError("request_timeout_seconds must be greater than zero")
        return value

    @field_validator("upcoming_days")
    @classmethod
    def validate_upcoming_days(cls, value: int) -> int:
        """Keep the upcoming listing to a sensible range."""
        if not 1 <= value <= 90:
            raise ValueError(f"upcoming_days must be between 1 and 90, got {value}")
        return value

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        """Ensure the log level is one the logging module knows."""
        level = value.upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Unknown log level '{value}'")
        return level

    @model_validator(mode="after")
    def validate_providers(self) -> "AppConfig":
        """Ensure provider aliases and ids are unique."""
        seen_names: set[str] = set()
        seen_ids: set[str] = set()
        for provider in self.providers:
            name_key = provider.name.lower()
            if name_key in seen_names:
                raise ValueError(f"Duplicate provider name detected: {provider.name}")
            if provider.provider_id in seen_ids:
                raise ValueError(f"Duplicate provider id detected: {provider.provider_id}")
            seen_names.add(name_key)
            seen_ids.add(provider.provider_id)
        return self

    @property
    def day_first(self) -> bool:
        """Slash-delimited dates are read day-first when displaying DD/MM/YYYY."""
        return self.date_style == "dmy"

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

    def find_provider_by_name(self, name: str) -> ProviderAlias | None:
        """Find a provider by its alias."""
        for provider in self.providers:
            if provider.name.lower() == name.lower():
                return provider
        return None

    def resolve_provider(self, identifier: str) -> str:
        """
        Resolve a provider identifier (alias or id) to a provider id.

        Unknown identifiers are passed through as raw ids.

        Args:
            identifier: Alias or provider id

        Returns:
            Provider id

        Raises:
            ValueError: If identifier is empty
        """
        identifier = identifier.strip()
        if not identifier:
            raise ValueError("Provider identifier must not be empty.")

        provider = self.find_provider_by_name(identifier)
        if provider:
            return provider.provider_id

        return identifier


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
