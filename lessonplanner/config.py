"""
Configuration management using Pydantic models loaded from YAML.
"""

import logging
from datetime import date
from pathlib import Path
from typing import List

import pendulum
import yaml
from pydantic import BaseModel, Field, field_validator

from .domain.schedule_builder import DEFAULT_PUBLIC_HOLIDAYS


class ApiConfig(BaseModel):
    """Connection settings for the institution REST API."""
    base_url: str = "http://localhost:5000"
    token: str = ""
    timeout_seconds: int = 30

    @field_validator("timeout_seconds")
    @classmethod
    def validate_timeout(cls, value: int) -> int:
        """Ensure the request timeout is positive."""
        if value <= 0:
            raise ValueError("timeout_seconds must be greater than zero")
        return value


class CreditCardRate(BaseModel):
    """Card commission rate for a number of installments."""
    installments: int
    rate: float  # percent


def _default_credit_card_rates() -> List[CreditCardRate]:
    rates = [4, 6.5, 9, 11.5, 14, 16.5, 19, 24.51, 21.5, 24, 26.5, 29]
    return [
        CreditCardRate(installments=installments, rate=rate)
        for installments, rate in enumerate(rates, 1)
    ]


class FinanceConfig(BaseModel):
    """VAT and card commission rates of the institution."""
    vat_rate: float = 10
    credit_card_rates: List[CreditCardRate] = Field(default_factory=_default_credit_card_rates)

    @field_validator("vat_rate")
    @classmethod
    def validate_vat_rate(cls, value: float) -> float:
        """Validate rate is a percentage."""
        if not 0 <= value <= 100:
            raise ValueError(f"vat_rate must be between 0 and 100, got {value}")
        return value

    @field_validator("credit_card_rates")
    @classmethod
    def validate_credit_card_rates(cls, value: List[CreditCardRate]) -> List[CreditCardRate]:
        """Ensure each installment count appears once with a sensible rate."""
        seen: set[int] = set()
        for entry in value:
            if entry.installments < 1:
                raise ValueError(f"installments must be at least 1, got {entry.installments}")
            if not 0 <= entry.rate <= 100:
                raise ValueError(f"Commission rate must be between 0 and 100, got {entry.rate}")
            if entry.installments in seen:
                raise ValueError(f"Duplicate credit card rate for {entry.installments} installments")
            seen.add(entry.installments)
        return value

    def commission_rate_for(self, installments: int) -> float:
        """
        Look up the card commission rate for an installment count.

        Raises:
            ValueError: If no rate is configured for that count
        """
        for entry in self.credit_card_rates:
            if entry.installments == installments:
                return entry.rate
        raise ValueError(f"No credit card rate configured for {installments} installments")


class ScheduleConfig(BaseModel):
    """Defaults for timetable generation."""
    skip_holidays: bool = True
    extra_holidays: List[date] = Field(default_factory=list)

    def holidays(self) -> List[date]:
        """Built-in public holidays plus the configured extra days."""
        return list(DEFAULT_PUBLIC_HOLIDAYS) + list(self.extra_holidays)


class AppConfig(BaseModel):
    """Application configuration."""
    institution_id: str = ""
    season_id: str = ""
    timezone: str = "Europe/Istanbul"
    log_level: str = "INFO"
    api: ApiConfig = Field(default_factory=ApiConfig)
    finance: FinanceConfig = Field(default_factory=FinanceConfig)
    schedule: ScheduleConfig = Field(default_factory=ScheduleConfig)

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, value: str) -> str:
        """Ensure the timezone is a known IANA name."""
        try:
            pendulum.timezone(value)
        except (ValueError, KeyError) as exc:
            raise ValueError(f"Unknown timezone: {value}") from exc
        return value

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        """Ensure the log level is one the logging module knows."""
        level = value.upper()
        if not isinstance(logging.getLevelName(level), int):
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
