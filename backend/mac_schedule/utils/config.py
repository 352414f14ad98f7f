from functools import lru_cache
from pathlib import Path
from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

SHEET_ID = "11-6l7HgRwZzFrQ22Ny8_d-wvimahJdBcceuy9OBEMAM"
PHOTOSHOOT_SHEET_ID = "1q2QLJglIrHWZ-6TzanK7UMWZfsluYc5xfwu-fYwY6ss"
WEBHOOK_PLACEHOLDER = "YOUR_GOOGLE_APPS_SCRIPT_WEBHOOK_URL"


class Settings(BaseSettings):
    sessions_csv_url: str = Field(
        f"https://docs.google.com/spreadsheets/d/{SHEET_ID}/export?format=csv&gid=0",
        alias="SESSIONS_CSV_URL",
    )
    bookings_csv_url: str = Field(
        f"https://docs.google.com/spreadsheets/d/{SHEET_ID}/export?format=csv&gid=1652982192",
        alias="BOOKINGS_CSV_URL",
    )
    bookings_webhook_url: str = Field(WEBHOOK_PLACEHOLDER, alias="BOOKINGS_WEBHOOK_URL")
    photoshoot_csv_url: str = Field(
        f"https://docs.google.com/spreadsheets/d/{PHOTOSHOOT_SHEET_ID}/export?format=csv&gid=0",
        alias="PHOTOSHOOT_CSV_URL",
    )
    photoshoot_webhook_url: str = Field(WEBHOOK_PLACEHOLDER, alias="PHOTOSHOOT_WEBHOOK_URL")
    fetch_timeout_seconds: float = Field(10.0, alias="FETCH_TIMEOUT_SECONDS")
    webhook_timeout_seconds: float = Field(5.0, alias="WEBHOOK_TIMEOUT_SECONDS")
    database_url: str = Field("sqlite:///./mac_schedule.db", alias="DATABASE_URL")
    database_echo: bool = Field(False, alias="DATABASE_ECHO")
    frontend_origin: str = Field("http://localhost:3000", alias="FRONTEND_ORIGIN")
    photoshoot_first_slot: str = Field("14:00", alias="PHOTOSHOOT_FIRST_SLOT")
    photoshoot_slot_minutes: int = Field(3, alias="PHOTOSHOOT_SLOT_MINUTES")
    photoshoot_slot_count: int = Field(40, alias="PHOTOSHOOT_SLOT_COUNT")
    model_config = SettingsConfigDict(
        env_file=str(Path(__file__).resolve().parents[3] / ".env"),
        env_file_encoding="utf-8",
        case_sensitive=False,
        populate_by_name=True,
    )

    @property
    def frontend_origins(self) -> List[str]:
        return [origin.strip() for origin in self.frontend_origin.split(",") if origin.strip()]


def is_webhook_configured(url: str) -> bool:
    return bool(url) and url != WEBHOOK_PLACEHOLDER


@lru_cache
def get_settings() -> Settings:
    return Settings()
