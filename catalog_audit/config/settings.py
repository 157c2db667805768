import logging

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseSettings):
    """Application settings loaded from environment variables or .env file."""

    # 1Password Configuration
    op_vault: str = Field("datadog", description="1Password vault holding the API item.")
    op_item: str = Field("datadog-api", description="1Password item with api_key/app_key/site.")
    op_cli: str = Field("op", description="Name or path of the 1Password CLI executable.")

    # Datadog Configuration
    default_site: str = Field(
        "datadoghq.com", description="Datadog site used when the item has no 'site' field."
    )
    days: int = Field(7, ge=1, description="Days of telemetry data to analyze.")
    logs_limit: int = Field(
        1000, ge=1, description="Maximum number of log entries requested per run."
    )

    # HTTP Settings
    request_timeout: float = Field(30.0, gt=0, description="HTTP timeout in seconds.")
    request_attempts: int = Field(
        1,
        ge=1,
        description=(
            "Total attempts per request. Operator override only: the default of 1"
            " sends every request once. Rate-limited (429) responses are never retried."
        ),
    )

    # Logging Configuration
    log_level: str = Field(
        "INFO", description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)."
    )

    # Pydantic Settings Configuration
    model_config = SettingsConfigDict(
        env_prefix="DD_AUDIT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )


def load_settings() -> AppSettings:
    """Loads and validates application settings."""
    try:
        settings = AppSettings()
        log_level_upper = settings.log_level.upper()
        if log_level_upper not in ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]:
            logging.warning(
                f"Invalid LOG_LEVEL '{settings.log_level}' found in .env or default. Using INFO."
            )
            settings.log_level = "INFO"
        else:
            settings.log_level = log_level_upper
        return settings
    except Exception as e:
        logging.exception(f"Error loading application settings: {e}")
        raise SystemExit("Failed to load application settings. Exiting.")


settings: AppSettings = load_settings()
