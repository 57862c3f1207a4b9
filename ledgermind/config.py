"""Configuration management using Pydantic Settings"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables"""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Service
    service_name: str = "ledgermind-analytics"
    log_level: str = "INFO"

    # Text generation (insights). Empty API key disables the LLM path.
    insight_api_url: str = "https://api.anthropic.com/v1/messages"
    insight_api_key: str = ""
    insight_model: str = "claude-sonnet-4-20250514"
    insight_max_tokens: int = 2000
    anthropic_version: str = "2023-06-01"

    # HTTP Client
    http_timeout_seconds: float = 30.0

    # Analysis defaults
    default_forecast_days: int = 30
    default_anomaly_threshold: float = 2.0


settings = Settings()
