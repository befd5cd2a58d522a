from typing import Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    API_BASE_URL: str = "http://localhost:3001/api/v1"
    API_TIMEOUT_SECONDS: Optional[float] = None
    APP_HOST: str = "127.0.0.1"
    APP_PORT: int = 3000
    PRODUCTS_PAGE_SIZE: int = 20
    QUERY_STALE_SECONDS: int = 30
    QUERY_CACHE_IDLE_SECONDS: int = 300
    QUERY_CACHE_GC_INTERVAL_SECONDS: int = 60
    COOKIE_SECURE: bool = False
    CREDENTIALS_FILE: str = "~/.warehouse-erp/credentials.json"
    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"

settings = Settings()
