import os
from pathlib import Path

from loguru import logger
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def get_database_url() -> str:
    """Get database URL, using an absolute path for the default SQLite file.

    SQLite is only meant for local development of the metrics dashboard;
    set DATABASE_URL to a server database elsewhere.
    """
    db_url = os.getenv("DATABASE_URL", "")
    if db_url:
        logger.info(f"Using DATABASE_URL from environment: {db_url}")
        return db_url

    db_path = Path(__file__).parent.parent.parent / "movaplan.db"
    return f"sqlite:///{db_path.resolve()}"


class Settings(BaseSettings):
    database_url: str = Field(
        default_factory=get_database_url,
        validation_alias="DATABASE_URL",
    )
    metrics_persistence_enabled: bool = Field(
        default=False,
        validation_alias="METRICS_PERSISTENCE_ENABLED",
        description="Persist plan rejection metrics to the database",
    )
    metrics_max_in_memory: int = Field(
        default=10000,
        gt=0,
        validation_alias="METRICS_MAX_IN_MEMORY",
        description="Rejection metrics kept in memory; oldest entries are dropped beyond it",
    )
    plan_generation_max_attempts: int = Field(
        default=2,
        ge=1,
        validation_alias="PLAN_GENERATION_MAX_ATTEMPTS",
        description="Generate/validate attempts before giving up",
    )
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    log_file: str | None = Field(default=None, validation_alias="LOG_FILE")
    log_json: bool = Field(
        default=False,
        validation_alias="LOG_JSON",
        description="Write the LOG_FILE sink as JSON lines",
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        """Validate that log level is one of the standard logging levels."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper_value = value.upper()
        if upper_value not in valid_levels:
            logger.warning(f"Invalid LOG_LEVEL '{value}'. Valid levels are: {', '.join(valid_levels)}. Defaulting to INFO.")
            return "INFO"
        return upper_value

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
    )


settings = Settings()
