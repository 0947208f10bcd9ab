from typing import List

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # project
    environment: str = "local"
    debug: bool = False
    log_level: str = "INFO"
    cors_origins: List[str] = ["*"]
    # steam
    steam_api_key: str = ""
    steam_api_base_url: str = "https://api.steampowered.com"
    request_timeout: float = 10.0
    max_retries: int = 2
    backoff_factor: float = 0.5
    # cache
    cache_ttl: int = 300

    class Config:
        env_file = ".env"
        extra = "ignore"

settings = Settings()
