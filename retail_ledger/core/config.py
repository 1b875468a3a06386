from decimal import Decimal
from functools import lru_cache
from typing import List
from urllib.parse import quote_plus
import os

from pydantic import model_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    APP_ENV: str = "local"

    # Database URL - can be provided directly or constructed from components
    DATABASE_URL: str | None = None

    # Individual database components (for constructing DATABASE_URL)
    DB_HOST: str = "localhost"
    DB_PORT: int = 5432
    DB_USER: str = "postgres"
    DB_PASSWORD: str = ""
    DB_NAME: str = ""
    SQL_ECHO: bool = False

    # Reporting engine
    QUERY_MAX_WORKERS: int = 6
    SETTLEMENT_MAX_RETRIES: int = 3
    MONEY_TOLERANCE: Decimal = Decimal("0.01")
    ASSUMED_COGS_RATIO: Decimal = Decimal("0.6")
    UNKNOWN_USER_LABEL: str = "Unknown user"

    CORS_ORIGINS: List[str] = [
        "http://localhost:5173",
        "http://localhost:3000",
    ]

    class Config:
        env_file = ".env" if os.getenv("APP_ENV", "local") == "local" else ".env.prod"
        env_file_encoding = "utf-8"
        extra = "ignore"

    @model_validator(mode='after')
    def construct_database_url(self):
        """Construct DATABASE_URL from components if not provided directly."""
        if not self.DATABASE_URL:
            if not self.DB_NAME:
                raise ValueError("Either DATABASE_URL or DB_NAME must be provided")

            # URL encode password to handle special characters
            password_part = f":{quote_plus(self.DB_PASSWORD)}" if self.DB_PASSWORD else ""
            self.DATABASE_URL = f"postgresql://{self.DB_USER}{password_part}@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"

        if self.QUERY_MAX_WORKERS < 1:
            raise ValueError("QUERY_MAX_WORKERS must be at least 1")
        if not Decimal("0") <= self.ASSUMED_COGS_RATIO <= Decimal("1"):
            raise ValueError("ASSUMED_COGS_RATIO must be between 0 and 1")

        assert self.DATABASE_URL is not None, "DATABASE_URL must be set"
        return self

    @property
    def database_url(self) -> str:
        """Get DATABASE_URL as a guaranteed string."""
        assert self.DATABASE_URL is not None, "DATABASE_URL must be set"
        return self.DATABASE_URL


@lru_cache
def get_settings() -> Settings:
    return Settings()
