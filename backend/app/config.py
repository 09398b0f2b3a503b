"""
Application configuration using Pydantic settings.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings."""

    # App
    app_name: str = "BudgetBuddy"
    log_level: str = "INFO"

    # Database
    database_url: str = "sqlite:///./data/db.sqlite"

    # Recurring expense scheduler
    recurring_scheduler_enabled: bool = True
    recurring_interval_seconds: float = 60.0  # Tick cadence, independent of template frequency
    recurring_startup_delay_seconds: float = 5.0  # Catch-up pass after boot
    recurring_pass_timeout_seconds: float = 30.0

    # Server
    api_host: str = "0.0.0.0"
    api_port: int = 8080
    frontend_url: str = "http://localhost:3000"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False
    )


# Global settings instance
settings = Settings()
