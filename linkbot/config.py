from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    app_name: str = "tg-direct-link"
    app_env: str = "dev"
    bot_token: str = "change-me"
    public_base_url: str = "http://localhost:8000"
    channel_id: int = 0
    channel_username: str = "@channel"
    database_path: str = "data/links.db"
    telegram_api_base: str = "https://api.telegram.org"
    # Bot API getFile refuses anything larger.
    max_file_size_bytes: int = 20 * 1024 * 1024
    request_timeout_seconds: float = 15.0
    log_level: str = "INFO"

    model_config = SettingsConfigDict(env_file=".env", env_prefix="LINKBOT_")


@lru_cache
def get_settings() -> Settings:
    return Settings()
