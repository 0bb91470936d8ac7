from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    database_url: str = "sqlite+aiosqlite:///./storynest.db"
    jwt_secret_key: str
    jwt_expire_days: int = 7
    bcrypt_rounds: int = 12

    ai_provider: str = "openai"
    openai_api_key: str = ""
    openai_model: str = "gpt-4o-mini"
    anthropic_api_key: str = ""
    anthropic_model: str = "claude-3-5-haiku-latest"
    ai_max_tokens: int = 700
    ai_temperature: float = 0.9

    stripe_secret_key: str = ""
    app_url: str = "http://localhost:3000"
    frontend_url: str = "http://localhost:8081"

    free_story_daily_limit: int = 3
    daily_share_limit: int = 1
    story_xp: int = 10
    share_xp: int = 50
    premium_days: int = 30

    rate_limit_enabled: bool = True
    rate_limit_window_ms: int = 250
    rate_limit_max_requests: int = 1

    auto_create_tables: bool = True
    sentry_dsn: str = ""
    environment: str = ""
    debug: bool = False

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")


@lru_cache
def get_settings() -> Settings:
    return Settings()
