# barbershop/config.py

from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True, extra="ignore")

    APP_NAME: str = "Barbershop Scheduling"

    # Database
    DATABASE_URL: str = "sqlite:///./barbershop.db"
    SQL_ECHO: bool = False

    # JWT auth
    SECRET_KEY: str = "change-me-later"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 30

    LOG_LEVEL: str = "INFO"

    # Bootstrap admin, created on startup when both are set
    ADMIN_EMAIL: Optional[str] = None
    ADMIN_PASSWORD: Optional[str] = None

    SEED_SERVICES: bool = True


@lru_cache()
def get_settings() -> Settings:
    return Settings()
