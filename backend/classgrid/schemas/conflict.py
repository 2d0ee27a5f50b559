from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class ConflictInfo(BaseModel):
    teacher_conflict: bool = Field(default=False, alias="teacherConflict")
    room_conflict: bool = Field(default=False, alias="roomConflict")
    conflicting_teacher_class: Optional[str] = Field(default=None, alias="conflictingTeacherClass")
    conflicting_room_class: Optional[str] = Field(default=None, alias="conflictingRoomClass")

    model_config = ConfigDict(populate_by_name=True)

    @property
    def has_conflict(self) -> bool:
        return self.teacher_conflict or self.room_conflict


class ConflictWarning(BaseModel):
    conflict_type: Literal["teacher_conflict", "room_conflict"] = Field(alias="conflictType")
    description: str
    conflicting_class_id: str = Field(alias="conflictingClassId")
    conflicting_class_name: str = Field(alias="conflictingClassName")
    resource_id: str = Field(alias="resourceId")

    model_config = ConfigDict(populate_by_name=True)
