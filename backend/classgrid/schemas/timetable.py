from __future__ import annotations

import re
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from classgrid.schemas.conflict import ConflictInfo, ConflictWarning

Day = Literal["Monday", "Tuesday", "Wednesday", "Thursday", "Friday"]
CurriculumType = Literal["Public", "Private"]

SCHOOL_DAYS: tuple[str, ...] = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday")
DAY_VALUES = set(SCHOOL_DAYS)
NON_TEACHING_LABELS = {"Break", "Lunch"}

TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


def parse_time_to_minutes(value: str) -> int:
    if not TIME_PATTERN.match(value):
        raise ValueError("Time must be in HH:MM 24-hour format")
    hours, minutes = value.split(":")
    return int(hours) * 60 + int(minutes)


class TimeSlot(BaseModel):
    id: int = Field(ge=1, le=50)
    start_time: str = Field(alias="startTime")
    end_time: str = Field(alias="endTime")
    label: str = Field(min_length=1, max_length=50)

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_time_format(cls, value: str) -> str:
        if not TIME_PATTERN.match(value):
            raise ValueError("Time must be in HH:MM 24-hour format")
        return value

    @model_validator(mode="after")
    def validate_time_order(self) -> "TimeSlot":
        if parse_time_to_minutes(self.end_time) <= parse_time_to_minutes(self.start_time):
            raise ValueError("End time must be after start time")
        return self

    @property
    def is_teaching(self) -> bool:
        return self.label not in NON_TEACHING_LABELS


DEFAULT_TIME_SLOTS: tuple[TimeSlot, ...] = (
    TimeSlot(id=1, start_time="09:00", end_time="09:45", label="Period 1"),
    TimeSlot(id=2, start_time="09:45", end_time="10:30", label="Period 2"),
    TimeSlot(id=3, start_time="10:30", end_time="11:00", label="Break"),
    TimeSlot(id=4, start_time="11:00", end_time="11:45", label="Period 3"),
    TimeSlot(id=5, start_time="11:45", end_time="12:30", label="Period 4"),
    TimeSlot(id=6, start_time="12:30", end_time="13:30", label="Lunch"),
    TimeSlot(id=7, start_time="13:30", end_time="14:15", label="Period 5"),
    TimeSlot(id=8, start_time="14:15", end_time="15:00", label="Period 6"),
)


def teaching_periods(slots: tuple[TimeSlot, ...] = DEFAULT_TIME_SLOTS) -> list[TimeSlot]:
    return [slot for slot in slots if slot.is_teaching]


class TimetableEntry(BaseModel):
    id: str = Field(min_length=1, max_length=64)
    class_id: str = Field(alias="classId", min_length=1, max_length=36)
    day: Day
    period_id: int = Field(alias="periodId", ge=1, le=50)
    subject_id: str = Field(alias="subjectId", min_length=1, max_length=36)
    teacher_id: str = Field(alias="teacherId", min_length=1, max_length=36)
    curriculum_type: CurriculumType = Field(default="Public", alias="curriculumType")

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    @property
    def slot(self) -> tuple[str, int]:
        return self.day, self.period_id


class EntryCreate(BaseModel):
    class_id: str = Field(alias="classId", min_length=1, max_length=36)
    day: str
    period_id: int = Field(alias="periodId")
    # Missing subject/teacher are rejected by the mutator, not by request parsing.
    subject_id: str | None = Field(default=None, alias="subjectId", max_length=36)
    teacher_id: str | None = Field(default=None, alias="teacherId", max_length=36)
    curriculum_type: CurriculumType = Field(default="Public", alias="curriculumType")

    model_config = ConfigDict(populate_by_name=True)


class EntryUpdate(BaseModel):
    subject_id: str | None = Field(default=None, alias="subjectId", max_length=36)
    teacher_id: str | None = Field(default=None, alias="teacherId", max_length=36)
    curriculum_type: CurriculumType | None = Field(default=None, alias="curriculumType")

    model_config = ConfigDict(populate_by_name=True)


class EntryMove(BaseModel):
    day: str
    period_id: int = Field(alias="periodId")

    model_config = ConfigDict(populate_by_name=True)


class MutationResult(BaseModel):
    entry: TimetableEntry
    warnings: list[ConflictWarning] = Field(default_factory=list)

    model_config = ConfigDict(populate_by_name=True)

    @property
    def has_conflicts(self) -> bool:
        return bool(self.warnings)


class ScheduleTemplate(BaseModel):
    class_id: str = Field(alias="classId", min_length=1, max_length=36)
    class_name: str | None = Field(default=None, alias="className")
    entries: list[TimetableEntry] = Field(default_factory=list)
    saved_at: datetime = Field(alias="savedAt")

    model_config = ConfigDict(populate_by_name=True)


class CopyRequest(BaseModel):
    source_class_id: str = Field(alias="sourceClassId", min_length=1, max_length=36)
    target_class_id: str = Field(alias="targetClassId", min_length=1, max_length=36)
    confirm_overwrite: bool = Field(default=False, alias="confirmOverwrite")

    model_config = ConfigDict(populate_by_name=True)


class CopyPreview(BaseModel):
    source_class_id: str = Field(alias="sourceClassId")
    target_class_id: str = Field(alias="targetClassId")
    source_count: int = Field(alias="sourceCount", ge=0)
    discarded_count: int = Field(alias="discardedCount", ge=0)
    discarded_entry_ids: list[str] = Field(default_factory=list, alias="discardedEntryIds")

    model_config = ConfigDict(populate_by_name=True)

    @property
    def overwrites(self) -> bool:
        return self.discarded_count > 0


class CopyResult(BaseModel):
    target_class_id: str = Field(alias="targetClassId")
    discarded_count: int = Field(alias="discardedCount", ge=0)
    entries: list[TimetableEntry] = Field(default_factory=list)

    model_config = ConfigDict(populate_by_name=True)


class TimetableStats(BaseModel):
    class_id: str = Field(alias="classId")
    total_slots: int = Field(alias="totalSlots", ge=0)
    filled_slots: int = Field(alias="filledSlots", ge=0)
    fill_rate: float = Field(alias="fillRate", ge=0.0)
    conflict_count: int = Field(alias="conflictCount", ge=0)

    model_config = ConfigDict(populate_by_name=True)


class GridCell(BaseModel):
    day: Day
    entry: TimetableEntry | None = None
    subject_name: str | None = Field(default=None, alias="subjectName")
    teacher_name: str | None = Field(default=None, alias="teacherName")
    class_name: str | None = Field(default=None, alias="className")
    conflict: ConflictInfo | None = None

    model_config = ConfigDict(populate_by_name=True)


class GridRow(BaseModel):
    period: TimeSlot
    cells: list[GridCell] = Field(default_factory=list)


class WeekGrid(BaseModel):
    title: str
    subtitle: str = ""
    days: list[str] = Field(default_factory=lambda: list(SCHOOL_DAYS))
    rows: list[GridRow] = Field(default_factory=list)
