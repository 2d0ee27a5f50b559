from functools import lru_cache
import json
from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


BACKEND_ENV_FILE = Path(__file__).resolve().parents[2] / ".env"


class Settings(BaseSettings):
    # Resolve to backend/.env so `uvicorn --app-dir backend` works from any cwd.
    model_config = SettingsConfigDict(
        env_file=str(BACKEND_ENV_FILE),
        env_file_encoding="utf-8",
        env_prefix="CLASSGRID_",
    )

    project_name: str = "ClassGrid Timetable API"
    api_prefix: str = "/api"
    log_level: str = "INFO"

    database_url: str = "sqlite+pysqlite:///./classgrid.db"

    timetable_dataset_key: str = "timetable"
    templates_dataset_key: str = "schedule_templates"
    classes_dataset_key: str = "classes"
    staff_dataset_key: str = "staff"
    subjects_dataset_key: str = "subjects"
    rooms_dataset_key: str = "rooms"

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

    @property
    def catalog_dataset_keys(self) -> set[str]:
        return {
            self.classes_dataset_key,
            self.staff_dataset_key,
            self.subjects_dataset_key,
            self.rooms_dataset_key,
        }


@lru_cache
def get_settings() -> Settings:
    return Settings()
