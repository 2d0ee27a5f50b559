from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ClassSection(BaseModel):
    id: str = Field(min_length=1, max_length=36)
    name: str = Field(min_length=1, max_length=100)
    room_id: str = Field(default="", alias="roomId", max_length=36)
    room_name: str | None = Field(default=None, alias="roomName")

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    @field_validator("room_id", mode="before")
    @classmethod
    def normalize_room_id(cls, value: str | None) -> str:
        if value is None:
            return ""
        return str(value).strip()


class DatasetOut(BaseModel):
    key: str
    version: int = Field(ge=0)
    data: Any = None
    updated_at: str | None = Field(default=None, alias="updatedAt")

    model_config = ConfigDict(populate_by_name=True)


class DatasetPush(BaseModel):
    base_version: int | None = Field(default=None, alias="baseVersion", ge=0)
    data: Any

    model_config = ConfigDict(populate_by_name=True)
