from datetime import time
from typing import Literal

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load environment
load_dotenv()


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="DISPATCH_", case_sensitive=False)

    database_url: str = Field(
        default="sqlite+aiosqlite:///./dispatch.db",
        validation_alias="DATABASE_URL",
    )
    sql_echo: bool = False
    session_secret: str = "fallback-secret"  # 🔐 Replace in production

    # Cutoff handling
    local_timezone: str = "America/New_York"
    default_cutoff_time: time = time(14, 30, 0)  # 2:30 PM

    # Zone classification
    default_zone_direction: Literal["north", "south", "east", "west"] = "north"

    # Placeholder route estimation (per order)
    miles_per_order: float = Field(default=10.0, ge=0.0)
    minutes_per_order: int = Field(default=30, ge=0)

    # Background optimization jobs (kept in process memory)
    job_retention_seconds: int = Field(default=3600, ge=0)
    job_max_entries: int = Field(default=200, ge=1)


settings = Settings()
