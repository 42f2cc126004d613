"""
Configuration management using Pydantic models and a YAML file.
"""

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from .domain.exceptions import ConfigurationError
from .domain.models import WorkingHours

logger = logging.getLogger(__name__)

CREDENTIALS_ENV_VAR = "GOOGLE_CREDENTIALS"


class ServiceAccountKey(BaseModel):
    """Google service account key (the JSON downloaded from the console)."""
    model_config = {"extra": "allow"}

    client_email: str
    private_key: str
    project_id: str
    token_uri: str = "https://oauth2.googleapis.com/token"

    @field_validator("client_email", "private_key", "project_id")
    @classmethod
    def validate_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be empty")
        return value

    @classmethod
    def from_json(cls, raw: str) -> "ServiceAccountKey":
        """
        Parse a service account key from its JSON text.

        Raises:
            ConfigurationError: If the text is not JSON or misses required fields
        """
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise ConfigurationError("Service account credentials contain invalid JSON") from exc

        if not isinstance(data, dict):
            raise ConfigurationError("Service account credentials must be a JSON object")

        try:
            return cls(**data)
        except ValidationError as exc:
            raise ConfigurationError(
                "Service account key must contain client_email, private_key, and project_id fields"
            ) from exc

    def to_info(self) -> Dict[str, Any]:
        """Return the mapping google-auth expects."""
        return self.model_dump()


class DefaultsConfig(BaseModel):
    """Default settings for availability searches."""
    days: int = 7
    start_hour: int = 9
    end_hour: int = 17
    slot_duration_minutes: int = 60

    @field_validator("days", "slot_duration_minutes")
    @classmethod
    def validate_positive(cls, value: int) -> int:
        """Ensure counts and durations are positive."""
        if value <= 0:
            raise ValueError("value must be greater than zero")
        return value

    @field_validator("start_hour", "end_hour")
    @classmethod
    def validate_hour(cls, v: int) -> int:
        """Validate hour is between 0 and 23."""
        if not 0 <= v <= 23:
            raise ValueError(f"Hour must be between 0 and 23, got {v}")
        return v

    @model_validator(mode="after")
    def validate_hours_order(self) -> "DefaultsConfig":
        """Ensure the configured window opens before it closes."""
        if self.end_hour <= self.start_hour:
            raise ValueError("end_hour must be later than start_hour")
        return self


class CalendarEntry(BaseModel):
    """A named calendar that can be referenced by alias."""
    name: str  # Used as alias
    email: str
    calendar_id: str = ""  # Optional: for mock data mapping


class AppConfig(BaseModel):
    """Application configuration."""
    timezone: str = "Europe/Riga"
    credentials_file: Optional[Path] = None
    default_calendar: Optional[str] = None
    defaults: DefaultsConfig = Field(default_factory=DefaultsConfig)
    calendars: List[CalendarEntry] = Field(default_factory=list)
    exclude_days: List[int] = Field(default_factory=lambda: [5, 6])  # Saturday, Sunday

    @field_validator("exclude_days")
    @classmethod
    def validate_exclude_days(cls, value: List[int]) -> List[int]:
        """Ensure weekdays are in valid range and deduplicated."""
        invalid_days = [day for day in value if day not in range(7)]
        if invalid_days:
            raise ValueError(f"exclude_days must be between 0 and 6, got {invalid_days}")
        deduped: List[int] = []
        for day in value:
            if day not in deduped:
                deduped.append(day)
        return deduped

    @field_validator("calendars")
    @classmethod
    def validate_calendars(cls, value: List[CalendarEntry]) -> List[CalendarEntry]:
        """Ensure calendar aliases and emails are unique."""
        seen_names: set[str] = set()
        seen_emails: set[str] = set()
        for entry in value:
            name_key = entry.name.lower()
            email_key = entry.email.lower()
            if name_key in seen_names:
                raise ValueError(f"Duplicate calendar name detected: {entry.name}")
            if email_key in seen_emails:
                raise ValueError(f"Duplicate calendar email detected: {entry.email}")
            seen_names.add(name_key)
            seen_emails.add(email_key)
        return value

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

        config = cls(**data)

        # Relative credential paths are relative to the config file
        if config.credentials_file and not config.credentials_file.is_absolute():
            config.credentials_file = config_path.parent / config.credentials_file

        return config

    def load_credentials(self, environ: Optional[Dict[str, str]] = None) -> ServiceAccountKey:
        """
        Load the service account key from ``credentials_file`` or the environment.

        Raises:
            ConfigurationError: If no credentials are configured or they are invalid
        """
        if self.credentials_file:
            logger.debug("Loading service account key from %s", self.credentials_file)
            try:
                raw = self.credentials_file.read_text(encoding="utf-8")
            except OSError as exc:
                raise ConfigurationError(
                    f"Could not read credentials file {self.credentials_file}: {exc}"
                ) from exc
            return ServiceAccountKey.from_json(raw)

        env = os.environ if environ is None else environ
        raw = env.get(CREDENTIALS_ENV_VAR)
        if not raw:
            raise ConfigurationError(
                "Service account credentials not configured: set credentials_file "
                f"in config.yaml or the {CREDENTIALS_ENV_VAR} environment variable"
            )
        return ServiceAccountKey.from_json(raw)

    def working_hours(
        self,
        timezone: Optional[str] = None,
        start_hour: Optional[int] = None,
        end_hour: Optional[int] = None,
    ) -> WorkingHours:
        """Build working hours from the defaults, with optional overrides."""
        return WorkingHours(
            start_hour=self.defaults.start_hour if start_hour is None else start_hour,
            end_hour=self.defaults.end_hour if end_hour is None else end_hour,
            exclude_weekdays=list(self.exclude_days),
            timezone=timezone or self.timezone,
        )

    def find_calendar_by_name(self, name: str) -> CalendarEntry | None:
        """Find a calendar by its name (alias)."""
        for entry in self.calendars:
            if entry.name.lower() == name.lower():
                return entry
        return None

    def find_calendar_by_email(self, email: str) -> CalendarEntry | None:
        """Find a calendar by its email."""
        for entry in self.calendars:
            if entry.email.lower() == email.lower():
                return entry
        return None

    def resolve_calendar(self, identifier: Optional[str]) -> str:
        """
        Resolve a calendar identifier (name/alias or email) to an email address.

        Falls back to ``default_calendar`` when no identifier is given.

        Raises:
            ValueError: If identifier cannot be resolved
        """
        if not identifier:
            if not self.default_calendar:
                raise ValueError("No calendar given and no default_calendar configured.")
            identifier = self.default_calendar

        if "@" in identifier:
            return identifier.lower()

        entry = self.find_calendar_by_name(identifier)
        if entry:
            return entry.email.lower()

        raise ValueError(
            f"Unknown calendar identifier: '{identifier}'. "
            f"Use an email address or a configured name."
        )

    def resolve_calendars(self, identifiers: Sequence[str]) -> List[str]:
        """Resolve several identifiers, dropping duplicates and keeping order."""
        resolved: List[str] = []
        for identifier in identifiers:
            email = self.resolve_calendar(identifier)
            if email not in resolved:
                resolved.append(email)
        return resolved


def get_default_config_path() -> Path:
    """Get the default configuration file path."""
    # Look for config.yaml in current directory
    config_path = Path.cwd() / "config.yaml"

    if not config_path.exists():
        # Try in the project root (parent of the package)
        project_root = Path(__file__).parent.parent
        config_path = project_root / "config.yaml"

    return config_path
