from decimal import Decimal
from functools import lru_cache
from typing import Literal

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="allow")

    environment: Literal["development", "staging", "production"] = "development"
    server_host: str = "0.0.0.0"
    server_port: int = 8000
    database_url: str = "sqlite+aiosqlite:///./referral_rewards.db"
    database_echo: bool = False
    # seconds a SQLite writer waits on the database lock before failing
    sqlite_busy_timeout_seconds: float = 15.0

    # Referral reward rates (fractions of the purchase amount)
    level1_rate: Decimal = Decimal("0.10")
    level2_rate: Decimal = Decimal("0.05")

    # Processing bounds
    processing_timeout_seconds: float = 10.0
    store_retry_after_seconds: int = 1

    # Observability snapshot protection; empty disables the check
    observability_api_key: str = ""

    @field_validator("level1_rate", "level2_rate", mode="before")
    @classmethod
    def _coerce_rate(cls, value: object) -> object:
        # floats would carry binary rounding noise into the reward arithmetic
        if isinstance(value, float):
            return Decimal(str(value))
        return value


@lru_cache
def get_settings() -> Settings:
    return Settings()  # type: ignore[arg-type]


settings = get_settings()
