"""
Retail Window Analytics
Centralized Configuration Management

Pydantic settings with environment variable support, validation, and type safety.
"""

from functools import lru_cache
from typing import Optional
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class AnalyticsSettings(BaseSettings):
    """Analytics Engine Configuration"""

    model_config = SettingsConfigDict(env_prefix="ANALYTICS_")

    top_customers_limit: int = Field(default=10, ge=1, description="Highest spending rank kept")
    yoy_lookback_periods: int = Field(default=12, ge=1, description="Positional lookback for YoY growth")
    growth_decimal_places: int = Field(default=2, ge=0, description="Rounding for growth percentages")
    max_workers: int = Field(default=5, ge=1, description="Threads used by parallel runs")
    validate_inputs: bool = Field(default=True, description="Validate snapshots before querying")


class DataSettings(BaseSettings):
    """Input/Output Location Configuration"""

    model_config = SettingsConfigDict(env_prefix="DATA_")

    input_path: str = Field(default="./data/raw", description="Directory holding the three tables")
    output_path: str = Field(default="./data/reports", description="Directory for rendered reports")
    default_format: str = Field(default="csv", description="File format: csv or parquet")

    @field_validator("default_format")
    @classmethod
    def validate_format(cls, v: str) -> str:
        """Validate file format value"""
        allowed = ["csv", "parquet"]
        if v.lower() not in allowed:
            raise ValueError(f"Format must be one of: {allowed}")
        return v.lower()


class MonitoringSettings(BaseSettings):
    """Logging Configuration"""

    model_config = SettingsConfigDict(env_prefix="")

    log_level: str = Field(default="INFO", alias="LOG_LEVEL", description="Logging level")
    log_format: str = Field(default="text", alias="LOG_FORMAT", description="Log format: json or text")
    log_file: Optional[str] = Field(default=None, description="Log file path")


class Settings(BaseSettings):
    """
    Main Application Settings

    Aggregates all configuration sections and provides a single entry point
    for accessing application configuration.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = Field(default="retail-analytics", alias="APP_NAME", description="Application name")
    app_env: str = Field(default="development", alias="APP_ENV", description="Environment")
    debug: bool = Field(default=False, alias="DEBUG", description="Debug mode")

    # Version
    version: str = Field(default="1.0.0", description="Application version")

    # Subsystem configurations
    analytics: AnalyticsSettings = Field(default_factory=AnalyticsSettings)
    data: DataSettings = Field(default_factory=DataSettings)
    monitoring: MonitoringSettings = Field(default_factory=MonitoringSettings)

    @field_validator("app_env")
    @classmethod
    def validate_env(cls, v: str) -> str:
        """Validate environment value"""
        allowed = ["development", "staging", "production", "testing"]
        if v.lower() not in allowed:
            raise ValueError(f"Environment must be one of: {allowed}")
        return v.lower()


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached application settings.

    Uses LRU cache to ensure settings are only loaded once.

    Returns:
        Settings: Application settings instance
    """
    return Settings()
