# app/core/config.py

import os
from functools import lru_cache
from typing import Optional
from pydantic import ConfigDict
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """
    Application settings.
    Loads values from environment variables (.env file)
    """
    # Database settings
    DATABASE_URL: str = "sqlite+aiosqlite:///./stock.db"
    INIT_DB_ON_STARTUP: bool = True
    SEED_SAMPLE_DATA: bool = True

    # Environment
    ENVIRONMENT: str = "development"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Sync relay
    SYNC_WS_PATH: str = "/ws"

    # Sync client
    CLIENT_RECONNECT_DELAY: float = 3.0       # flat backoff, seconds
    CLIENT_KEEPALIVE_INTERVAL: float = 25.0   # ping cadence while connected
    CLIENT_OFFLINE_QUEUE_LIMIT: Optional[int] = None  # None = unbounded
    NETWORK_PROBE_INTERVAL: float = 5.0

    model_config = ConfigDict(
        env_file=os.environ.get('ENV_FILE', '.env') if os.path.exists('.env') else None,
        case_sensitive=True,
        extra="ignore"
    )


@lru_cache()
def get_settings():
    """Cached settings to avoid loading .env file for every request"""
    return Settings()

def clear_settings_cache():
    """Clear the settings cache - useful when switching between environments"""
    get_settings.cache_clear()
