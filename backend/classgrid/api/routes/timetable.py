from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Query, Response, status

from classgrid.api.deps import get_engine
from classgrid.core.exceptions import NotFoundError, OverwriteConfirmationRequired
from classgrid.schemas.conflict import ConflictInfo
from classgrid.schemas.timetable import (
    CopyPreview,
    CopyRequest,
    CopyResult,
    CurriculumType,
    EntryCreate,
    EntryMove,
    EntryUpdate,
    MutationResult,
    ScheduleTemplate,
    TimeSlot,
    TimetableEntry,
    TimetableStats,
    WeekGrid,
)
from classgrid.services.engine import TimetableEngine

logger = logging.getLogger(__name__)

router = APIRouter()


def _get_entry_or_404(engine: TimetableEngine, entry_id: str) -> TimetableEntry:
    entry = engine.store.get(entry_id)
    if entry is None:
        raise NotFoundError("Timetable entry", entry_id)
    return entry


@router.get("/periods", response_model=list[TimeSlot])
def list_periods(engine: TimetableEngine = Depends(get_engine)) -> list[TimeSlot]:
    return list(engine.periods)


@router.get("/entries", response_model=list[TimetableEntry])
def list_entries(
    class_id: str | None = Query(default=None, alias="classId", max_length=36),
    teacher_id: str | None = Query(default=None, alias="teacherId", max_length=36),
    day: str | None = Query(default=None),
    period_id: int | None = Query(default=None, alias="periodId"),
    curriculum_type: CurriculumType | None = Query(default=None, alias="curriculumType"),
    engine: TimetableEngine = Depends(get_engine),
) -> list[TimetableEntry]:
    store = engine.store
    if class_id:
        entries = store.get_by_class(class_id)
    elif teacher_id:
        entries = store.get_by_teacher(teacher_id)
    elif day and period_id is not None:
        entries = store.get_by_slot(day, period_id)
    else:
        entries = store.get_all()

    if teacher_id:
        entries = [entry for entry in entries if entry.teacher_id == teacher_id]
    if day:
        entries = [entry for entry in entries if entry.day == day]
    if period_id is not None:
        entries = [entry for entry in entries if entry.period_id == period_id]
    if curriculum_type:
        entries = [entry for entry in entries if entry.curriculum_type == curriculum_type]
    return entries


@router.get("/entries/{entry_id}", response_model=TimetableEntry)
def get_entry(entry_id: str, engine: TimetableEngine = Depends(get_engine)) -> TimetableEntry:
    return _get_entry_or_404(engine, entry_id)


@router.get("/entries/{entry_id}/conflicts", response_model=ConflictInfo)
def get_entry_conflicts(entry_id: str, engine: TimetableEngine = Depends(get_engine)) -> ConflictInfo:
    return engine.conflicts.conflict_info(_get_entry_or_404(engine, entry_id))


@router.get("/conflicts", response_model=dict[str, ConflictInfo])
def get_conflict_map(
    class_id: str | None = Query(default=None, alias="classId", max_length=36),
    engine: TimetableEngine = Depends(get_engine),
) -> dict[str, ConflictInfo]:
    entries = engine.store.get_by_class(class_id) if class_id else engine.store.get_all()
    return engine.conflicts.conflict_map(entries)


@router.post("/entries", response_model=MutationResult, status_code=status.HTTP_201_CREATED)
def assign_entry(payload: EntryCreate, engine: TimetableEngine = Depends(get_engine)) -> MutationResult:
    return engine.mutator.assign(
        payload.class_id,
        payload.day,
        payload.period_id,
        payload.subject_id,
        payload.teacher_id,
        curriculum_type=payload.curriculum_type,
    )


@router.patch("/entries/{entry_id}", response_model=MutationResult)
def update_entry(
    entry_id: str,
    payload: EntryUpdate,
    engine: TimetableEngine = Depends(get_engine),
) -> MutationResult:
    return engine.mutator.update(
        entry_id,
        subject_id=payload.subject_id,
        teacher_id=payload.teacher_id,
        curriculum_type=payload.curriculum_type,
    )


@router.post("/entries/{entry_id}/move", response_model=MutationResult)
def move_entry(
    entry_id: str,
    payload: EntryMove,
    engine: TimetableEngine = Depends(get_engine),
) -> MutationResult:
    return engine.mutator.move(entry_id, payload.day, payload.period_id)


@router.delete("/entries/{entry_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_entry(entry_id: str, engine: TimetableEngine = Depends(get_engine)) -> Response:
    engine.mutator.delete(entry_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/classes/{class_id}/stats", response_model=TimetableStats)
def get_class_stats(class_id: str, engine: TimetableEngine = Depends(get_engine)) -> TimetableStats:
    return engine.insights.class_stats(class_id)


@router.get("/grid", response_model=WeekGrid)
def get_week_grid(
    class_id: str | None = Query(default=None, alias="classId", max_length=36),
    teacher_id: str | None = Query(default=None, alias="teacherId", max_length=36),
    curriculum_type: CurriculumType | None = Query(default=None, alias="curriculumType"),
    engine: TimetableEngine = Depends(get_engine),
) -> WeekGrid:
    return engine.insights.week_grid(class_id=class_id, teacher_id=teacher_id, curriculum_type=curriculum_type)


@router.get("/templates", response_model=list[ScheduleTemplate])
def list_templates(engine: TimetableEngine = Depends(get_engine)) -> list[ScheduleTemplate]:
    return engine.templates.list_templates()


@router.get("/templates/{class_id}", response_model=ScheduleTemplate)
def get_template(class_id: str, engine: TimetableEngine = Depends(get_engine)) -> ScheduleTemplate:
    return engine.templates.get_template(class_id)


@router.post("/templates/{class_id}", response_model=ScheduleTemplate, status_code=status.HTTP_201_CREATED)
def save_template(class_id: str, engine: TimetableEngine = Depends(get_engine)) -> ScheduleTemplate:
    return engine.templates.save_template(class_id)


@router.post("/templates/{class_id}/load", response_model=list[TimetableEntry])
def load_template(class_id: str, engine: TimetableEngine = Depends(get_engine)) -> list[TimetableEntry]:
    return engine.templates.load_template(class_id)


@router.post("/copy/preview", response_model=CopyPreview)
def preview_copy(payload: CopyRequest, engine: TimetableEngine = Depends(get_engine)) -> CopyPreview:
    return engine.templates.preview_copy(payload.source_class_id, payload.target_class_id)


@router.post("/copy", response_model=CopyResult)
def copy_schedule(payload: CopyRequest, engine: TimetableEngine = Depends(get_engine)) -> CopyResult:
    preview = engine.templates.preview_copy(payload.source_class_id, payload.target_class_id)
    if preview.overwrites and not payload.confirm_overwrite:
        logger.info(
            "Copy from %s to %s needs confirmation (%s entries would be discarded)",
            payload.source_class_id,
            payload.target_class_id,
            preview.discarded_count,
        )
        raise OverwriteConfirmationRequired(
            f"Copying will replace {preview.discarded_count} existing entries of {payload.target_class_id}",
            details=preview.model_dump(by_alias=True),
        )
    return engine.templates.copy_schedule(payload.source_class_id, payload.target_class_id)
