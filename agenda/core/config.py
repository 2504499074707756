# agenda/core/config.py

import urllib.parse
from typing import Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    # --- Database ---
    # a full async URL (e.g. sqlite+aiosqlite:///./data/agenda.db) takes precedence over the parts
    DATABASE_URL: Optional[str] = None
    POSTGRES_HOST: str = "localhost"
    POSTGRES_PORT: int = 5432
    POSTGRES_DB: str = "agenda"
    POSTGRES_USER: str = "agenda"
    POSTGRES_PASSWORD: str = ""

    # --- Practice ---
    # owner_id of the practice_settings row holding the price list
    PRACTICE_OWNER_ID: str = "default"
    # prefix for national numbers in WhatsApp links
    PHONE_COUNTRY_CODE: str = "39"
    PRACTITIONER_SIGNATURE: str = "Dr. Marco Turchetta\nFisioterapia e Osteopatia"

    # --- Logging ---
    APP_ENV: str = "production"
    LOG_LEVEL: str = "INFO"
    LOG_REQUESTS: bool = False
    LOG_RESPONSES: bool = False
    MAX_LOG_LENGTH: int = 200
    SLOW_REQUEST_THRESHOLD: float = 2.0

    @field_validator("PHONE_COUNTRY_CODE")
    @classmethod
    def _digits_only(cls, v: str) -> str:
        v = v.strip().lstrip("+")
        if not v.isdigit():
            raise ValueError("PHONE_COUNTRY_CODE must be digits, e.g. 39")
        return v

    @field_validator("LOG_LEVEL")
    @classmethod
    def _upper(cls, v: str) -> str:
        return v.upper()

    def _postgres_url(self, driver: str) -> str:
        pwd = urllib.parse.quote_plus(self.POSTGRES_PASSWORD)
        return (f"postgresql{driver}://{self.POSTGRES_USER}:{pwd}"
                f"@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}")

    @property
    def async_db_uri(self) -> str:
        """URL for the application engine (aiosqlite or asyncpg)."""
        return self.DATABASE_URL or self._postgres_url("+asyncpg")

    @property
    def sync_db_uri(self) -> str:
        """Same database through a sync driver, for Alembic."""
        if self.DATABASE_URL:
            return self.DATABASE_URL.replace("+aiosqlite", "").replace("+asyncpg", "+psycopg2")
        return self._postgres_url("+psycopg2")

    @property
    def is_development(self) -> bool:
        return self.APP_ENV.lower() in ("development", "dev", "local")

settings = Settings()
