# evquote/config.py
import os
from functools import lru_cache
from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # === Algemene app settings ===
    app_env: str = "local"  # local | development | production
    PUBLIC_BASE_URL: str = "http://localhost:8000"
    ALLOWED_ORIGINS: List[str] = ["*"]

    # === Airtable (record store) ===
    AIRTABLE_API_KEY: Optional[str] = Field(None, description="Airtable personal access token")
    AIRTABLE_BASE_ID: Optional[str] = Field(None, description="Airtable base holding all tables")
    AIRTABLE_API_URL: str = "https://api.airtable.com/v0"
    AIRTABLE_TIMEOUT_SECONDS: float = 30.0
    AIRTABLE_RATE_LIMIT_RETRIES: int = 3

    PROJECTS_TABLE: str = "PROJECTS"
    PHOTOS_TABLE: str = "PHOTOS"
    QUOTES_TABLE: str = "QUOTES"
    COMPANY_CONFIG_TABLE: str = "COMPANY_CONFIG"
    EV_SPECS_TABLE: str = "EV_CHARGING_SPECS"

    # memory = in-process store (tests / lokale dev zonder Airtable)
    RECORD_STORE_BACKEND: str = "airtable"  # airtable | memory

    # === Share links ===
    # Leeg => tokens leven alleen in procesgeheugen
    SHARE_LINK_SECRET: Optional[str] = None

    # === Quotes ===
    QUOTE_VALIDITY_DAYS: int = 30

    # === Logging ===
    log_level: str = "INFO"

    # === Metrics ===
    metrics_enabled: bool = True

    # === Pydantic Settings config ===
    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    def table_names(self) -> List[str]:
        return [
            self.PROJECTS_TABLE,
            self.PHOTOS_TABLE,
            self.QUOTES_TABLE,
            self.COMPANY_CONFIG_TABLE,
            self.EV_SPECS_TABLE,
        ]


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Singleton Settings instance met simpele env-overrides."""
    s = Settings()

    env = os.getenv("ENVIRONMENT", s.app_env).lower()
    if env == "production":
        s.log_level = "WARNING"
    elif env == "development":
        s.log_level = "DEBUG"

    return s


# Module-level export zodat bestaande imports blijven werken:
# from evquote.config import settings
settings = get_settings()
