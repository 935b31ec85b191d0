"""Configuration management using pydantic-settings."""
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Upstream feed API
    feed_api_base_url: str = "http://localhost:3000"
    request_timeout_seconds: float = 30.0

    # Concurrency
    max_concurrent_requests: int = 10  # parallel upstream calls per transport
    max_fetch_workers: int = 8         # threads per fan-out

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


settings = Settings()
