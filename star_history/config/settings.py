"""Application settings and configuration"""

from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # Application
    APP_NAME: str = "Star History"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False

    # GitHub API
    GITHUB_TOKEN: Optional[str] = None
    GITHUB_GRAPHQL_URL: str = "https://api.github.com/graphql"
    USER_AGENT: str = "star-history/1.0"

    # Scheduler: work items per GraphQL round, never above 50
    STAR_HISTORY_BATCH_SIZE: int = 50

    # GraphQL transport resilience controls
    STAR_HISTORY_TIMEOUT_SECONDS: float = 30.0
    STAR_HISTORY_MAX_RETRIES: int = 3
    STAR_HISTORY_BACKOFF_BASE_SECONDS: float = 1.0
    STAR_HISTORY_BACKOFF_MAX_SECONDS: float = 16.0
    STAR_HISTORY_RATE_LIMIT_BUFFER_SECONDS: int = 2

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"  # Ignore extra fields in .env


settings = Settings()
