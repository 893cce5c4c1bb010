"""
Configuration Management
Loads and validates environment variables
"""
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List


class Settings(BaseSettings):
    """Application settings from environment variables"""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
    )
    BASE_URL: str = "http://localhost:8000"

    # Redis (durable key-value store for addons and catalog preferences)
    REDIS_URL: str = "redis://localhost:6379/0"
    STORAGE_KEY_ADDONS: str = "stremio-addons"
    STORAGE_KEY_CATALOG_PREFS: str = "stremio-catalog-prefs"

    # Addons installed on first start when nothing is persisted
    DEFAULT_ADDONS: List[str] = [
        "https://v3-cinemeta.strem.io/manifest.json",
        "https://torrentio.strem.fun/manifest.json",
        "https://v3-community-movies.strem.io/manifest.json",
        "https://v3-community-series.strem.io/manifest.json",
    ]
    CINEMETA_URLS: List[str] = [
        "https://v3-cinemeta.strem.io",
        "http://v3-cinemeta.strem.io",
    ]

    # Outbound requests
    REQUEST_TIMEOUT: float = 10.0  # seconds, per attempt
    REQUEST_RETRIES: int = 3  # extra attempts after the first
    RETRY_BASE_DELAY: float = 1.0  # seconds, doubled on every attempt

    # Catalogs
    CATALOG_PAGE_SIZE: int = 50
    CATALOG_ORDER_GAP: int = 10  # room left between rows for manual reordering
    CATALOG_DEFAULT_ORDER: int = 1000

    # Development
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"


settings = Settings()
