from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_prefix="OMS_", extra="ignore")

    app_name: str = "Order Lifecycle Core"
    env: str = "dev"

    database_url: str = "sqlite+pysqlite:///./oms.db"
    sql_echo: bool = False
    sqlite_busy_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        description="How long a SQLite writer waits for the database lock",
    )

    log_level: str = "INFO"

    def model_post_init(self, __context) -> None:
        if self.env.lower() == "dev":
            return
        if self.database_url.startswith("sqlite") and ":memory:" in self.database_url:
            raise ValueError("in-memory sqlite is not allowed outside dev mode; set OMS_DATABASE_URL")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
