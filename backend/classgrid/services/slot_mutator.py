from __future__ import annotations

import logging

from classgrid.core.exceptions import InvalidInputError, NotFoundError, SlotOccupiedError
from classgrid.schemas.timetable import (
    DAY_VALUES,
    DEFAULT_TIME_SLOTS,
    CurriculumType,
    MutationResult,
    TimeSlot,
    TimetableEntry,
)
from classgrid.services.conflict_service import ConflictService
from classgrid.services.ids import IdGenerator, UuidIdGenerator
from classgrid.services.timetable_store import TimetableStore

logger = logging.getLogger(__name__)

CURRICULUM_TYPES = {"Public", "Private"}


def _required(value: str | None, field_name: str) -> str:
    cleaned = (value or "").strip()
    if not cleaned:
        raise InvalidInputError(f"{field_name} is required", details={"field": field_name})
    return cleaned


class SlotMutator:
    """Creates, moves, edits and deletes timetable entries.

    Structural rules (known slot, one lesson per class slot) raise errors.
    Teacher and room double-booking is returned as warnings next to the
    committed entry.
    """

    def __init__(
        self,
        store: TimetableStore,
        conflicts: ConflictService,
        id_generator: IdGenerator | None = None,
        periods: tuple[TimeSlot, ...] = DEFAULT_TIME_SLOTS,
    ):
        self.store = store
        self.conflicts = conflicts
        self.id_generator = id_generator or UuidIdGenerator()
        self.period_ids = {slot.id for slot in periods}

    def _validate_slot(self, day: str, period_id: int) -> None:
        if day not in DAY_VALUES:
            raise InvalidInputError(f"Invalid day value {day!r}", details={"field": "day"})
        if period_id not in self.period_ids:
            raise InvalidInputError(f"Unknown period {period_id}", details={"field": "periodId"})

    def _get_entry(self, entry_id: str) -> TimetableEntry:
        entry = self.store.get(entry_id)
        if entry is None:
            raise NotFoundError("Timetable entry", entry_id)
        return entry

    def assign(
        self,
        class_id: str,
        day: str,
        period_id: int,
        subject_id: str | None,
        teacher_id: str | None,
        curriculum_type: CurriculumType = "Public",
    ) -> MutationResult:
        class_id = _required(class_id, "classId")
        subject_id = _required(subject_id, "subjectId")
        teacher_id = _required(teacher_id, "teacherId")
        if curriculum_type not in CURRICULUM_TYPES:
            raise InvalidInputError(f"Invalid curriculum type {curriculum_type!r}", details={"field": "curriculumType"})
        self._validate_slot(day, period_id)

        occupant = self.store.entry_at(class_id, day, period_id)
        if occupant is not None:
            logger.warning("Rejected assignment to occupied slot %s %s/%s", class_id, day, period_id)
            raise SlotOccupiedError(class_id, day, period_id, occupant.id)

        warnings = self.conflicts.warnings_for(
            class_id=class_id,
            teacher_id=teacher_id,
            day=day,
            period_id=period_id,
        )
        entry = TimetableEntry(
            id=self.id_generator(),
            class_id=class_id,
            day=day,
            period_id=period_id,
            subject_id=subject_id,
            teacher_id=teacher_id,
            curriculum_type=curriculum_type,
        )
        self.store.upsert(entry)
        logger.info(
            "Assigned %s (%s, teacher %s) to %s %s/%s with %s warning(s)",
            entry.id,
            subject_id,
            teacher_id,
            class_id,
            day,
            period_id,
            len(warnings),
        )
        return MutationResult(entry=entry, warnings=warnings)

    def move(self, entry_id: str, new_day: str, new_period_id: int) -> MutationResult:
        entry = self._get_entry(entry_id)
        self._validate_slot(new_day, new_period_id)

        occupant = self.store.entry_at(entry.class_id, new_day, new_period_id)
        if occupant is not None and occupant.id != entry.id:
            logger.warning("Rejected move of %s onto occupied slot %s/%s", entry.id, new_day, new_period_id)
            raise SlotOccupiedError(entry.class_id, new_day, new_period_id, occupant.id)

        warnings = self.conflicts.warnings_for(
            class_id=entry.class_id,
            teacher_id=entry.teacher_id,
            day=new_day,
            period_id=new_period_id,
            exclude_entry_id=entry.id,
        )
        if entry.slot == (new_day, new_period_id):
            return MutationResult(entry=entry, warnings=warnings)

        moved = entry.model_copy(update={"day": new_day, "period_id": new_period_id})
        self.store.upsert(moved)
        logger.info(
            "Moved %s from %s/%s to %s/%s", entry.id, entry.day, entry.period_id, new_day, new_period_id
        )
        return MutationResult(entry=moved, warnings=warnings)

    def update(
        self,
        entry_id: str,
        *,
        subject_id: str | None = None,
        teacher_id: str | None = None,
        curriculum_type: CurriculumType | None = None,
    ) -> MutationResult:
        entry = self._get_entry(entry_id)
        changes: dict[str, str] = {}
        if subject_id is not None:
            changes["subject_id"] = _required(subject_id, "subjectId")
        if teacher_id is not None:
            changes["teacher_id"] = _required(teacher_id, "teacherId")
        if curriculum_type is not None:
            if curriculum_type not in CURRICULUM_TYPES:
                raise InvalidInputError(
                    f"Invalid curriculum type {curriculum_type!r}", details={"field": "curriculumType"}
                )
            changes["curriculum_type"] = curriculum_type

        updated = entry.model_copy(update=changes) if changes else entry
        warnings = self.conflicts.warnings_for(
            class_id=updated.class_id,
            teacher_id=updated.teacher_id,
            day=updated.day,
            period_id=updated.period_id,
            exclude_entry_id=updated.id,
        )
        if updated != entry:
            self.store.upsert(updated)
            logger.info("Updated %s: %s", entry.id, ", ".join(sorted(changes)))
        return MutationResult(entry=updated, warnings=warnings)

    def delete(self, entry_id: str) -> TimetableEntry:
        entry = self._get_entry(entry_id)
        self.store.remove(entry.id)
        logger.info("Deleted %s from %s %s/%s", entry.id, entry.class_id, entry.day, entry.period_id)
        return entry
