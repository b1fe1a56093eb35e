from typing import Optional, Dict, Any
from pathlib import Path

from pydantic import Field, PostgresDsn, ValidationInfo, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Define the root directory of the submission_publisher package
SERVICE_ROOT_DIR = Path(__file__).parent.parent.resolve()
# Path to the repository root (one level up from the package)
PROJECT_ROOT_DIR = SERVICE_ROOT_DIR.parent


class Settings(BaseSettings):
    # Application settings
    APP_NAME: str = "SubmissionPublisher"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = False

    # Admission guard
    GUARD_BACKEND: str = "redis"  # "redis" or "memory"
    REDIS_URL: str = "redis://localhost:6379/0"
    LOCKOUT_PERIOD_SECONDS: int = 10

    # Database settings (canonical records, daily index, job queue)
    DB_HOST: str = "localhost"
    DB_PORT: int = 5432
    DB_USER: str = "user"
    DB_PASSWORD: str = "password"
    DB_NAME: str = "submissions_db"
    DATABASE_URL: Optional[str] = Field(default=None, validate_default=True)

    @field_validator("DATABASE_URL", mode="before")
    @classmethod
    def assemble_db_connection(cls, v: Optional[str], info: ValidationInfo) -> Any:
        if isinstance(v, str):
            # asyncpg needs the explicit driver in the scheme
            if v.startswith("postgresql://"):
                return v.replace("postgresql://", "postgresql+asyncpg://", 1)
            return v
        data: Dict[str, Any] = info.data
        return str(PostgresDsn.build(
            scheme="postgresql+asyncpg",
            username=data.get("DB_USER"),
            password=data.get("DB_PASSWORD"),
            host=data.get("DB_HOST"),
            port=data.get("DB_PORT"),
            path=data.get("DB_NAME") or "",
        ))

    # Reddit API credentials
    REDDIT_CLIENT_ID: str = ""
    REDDIT_CLIENT_SECRET: str = ""
    REDDIT_USERNAME: str = ""
    REDDIT_PASSWORD: str = ""
    REDDIT_USER_AGENT: str = "submission_publisher/0.1"
    SUBREDDIT_NAME: str = ""
    POST_TITLE: str = "What is this?"
    POST_PREVIEW_TEXT: str = "Loading drawing..."

    # Submission lifecycle
    POST_LIVE_SPAN_SECONDS: int = 432000  # 5 days
    SUBMISSION_KIND: str = "drawing"
    ANNOUNCEMENT_TEXT: str = (
        "Guess what this drawing is by leaving a comment. "
        "The artist earns a point for every correct guess!"
    )

    @field_validator("LOCKOUT_PERIOD_SECONDS", "POST_LIVE_SPAN_SECONDS")
    @classmethod
    def must_be_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("must be greater than 0")
        return v

    # Job worker settings
    JOB_POLL_INTERVAL_SECONDS: int = 5
    JOB_BATCH_SIZE: int = 20
    JOB_MAX_ATTEMPTS: int = 3
    JOB_LEASE_SECONDS: int = 300  # a running job older than this is claimed again

    # Retry settings for idempotent Reddit calls
    API_MAX_RETRIES: int = 3
    API_INITIAL_BACKOFF_SECONDS: float = 1.0

    # Monitoring
    ENABLE_PROMETHEUS: bool = False
    PROMETHEUS_PORT: int = 8000

    # Logging configuration path (can be overridden by env var)
    LOGGING_CONFIG_PATH: str = str(SERVICE_ROOT_DIR / "config" / "logging_config.yaml")

    model_config = SettingsConfigDict(
        env_file=str(PROJECT_ROOT_DIR / ".env"),  # Load variables from project root .env
        env_file_encoding="utf-8",
        extra="ignore",
    )


# Instantiate settings
settings = Settings()
