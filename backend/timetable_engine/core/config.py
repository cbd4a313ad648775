from functools import lru_cache
import json
from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


BACKEND_ENV_FILE = Path(__file__).resolve().parents[2] / ".env"


class Settings(BaseSettings):
    # Resolve to backend/.env so `uvicorn --app-dir backend` works from any cwd.
    model_config = SettingsConfigDict(env_file=str(BACKEND_ENV_FILE), env_file_encoding="utf-8")

    project_name: str = "Timetable Engine API"
    api_prefix: str = "/api"
    log_level: str = "INFO"

    # A break starting this many minutes after a period ends still interrupts the sequence.
    break_snap_tolerance_minutes: int = 0
    teaching_days: int = 6
    max_import_rows: int = 2000

    max_request_size_bytes: int = 2_500_000

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

    @field_validator("break_snap_tolerance_minutes")
    @classmethod
    def validate_tolerance(cls, value: int) -> int:
        if value < 0:
            raise ValueError("break_snap_tolerance_minutes cannot be negative")
        return value

    @field_validator("teaching_days")
    @classmethod
    def validate_teaching_days(cls, value: int) -> int:
        if not 1 <= value <= 7:
            raise ValueError("teaching_days must be between 1 and 7")
        return value


@lru_cache
def get_settings() -> Settings:
    return Settings()
