from functools import lru_cache
import json
from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from coverdesk.schemas.scheduling import SchedulingPolicy


BACKEND_ENV_FILE = Path(__file__).resolve().parents[2] / ".env"


class Settings(BaseSettings):
    # Resolve to backend/.env so `uvicorn --app-dir backend` works from any cwd.
    model_config = SettingsConfigDict(env_file=str(BACKEND_ENV_FILE), env_file_encoding="utf-8")

    project_name: str = "CoverDesk API"
    api_prefix: str = "/api"
    log_level: str = "INFO"

    database_url: str = "sqlite+pysqlite:///./coverdesk.db"

    max_request_size_bytes: int = 1_000_000

    # Scheduling defaults; copied into a SchedulingPolicy per request.
    max_weekly_minutes: int = 1080
    min_travel_minutes: int = 15
    hod_min_minutes_per_week: int = 120
    candidate_limit: int = 5

    cors_origins: list[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
        "http://localhost:5173",
        "http://127.0.0.1:5173",
    ]

    @field_validator("cors_origins", mode="before")
    @classmethod
    def split_cors_origins(cls, value: str | list[str]) -> list[str]:
        if isinstance(value, str):
            stripped = value.strip()
            if stripped.startswith("["):
                try:
                    parsed = json.loads(stripped)
                    if isinstance(parsed, list):
                        return [str(item).strip() for item in parsed if str(item).strip()]
                except json.JSONDecodeError:
                    pass
            return [item.strip() for item in value.split(",") if item.strip()]
        return value

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, value: str) -> str:
        return value.strip().upper() or "INFO"

    def scheduling_policy(self) -> SchedulingPolicy:
        return SchedulingPolicy(
            max_weekly_minutes=self.max_weekly_minutes,
            min_travel_minutes=self.min_travel_minutes,
            hod_min_minutes_per_week=self.hod_min_minutes_per_week,
        )


@lru_cache
def get_settings() -> Settings:
    return Settings()
