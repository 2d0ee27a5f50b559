from __future__ import annotations

from classgrid.core.exceptions import InvalidInputError
from classgrid.schemas.timetable import (
    DEFAULT_TIME_SLOTS,
    SCHOOL_DAYS,
    GridCell,
    GridRow,
    TimeSlot,
    TimetableEntry,
    TimetableStats,
    WeekGrid,
    teaching_periods,
)
from classgrid.services.catalog import CatalogReference
from classgrid.services.conflict_service import ConflictService
from classgrid.services.timetable_store import TimetableStore


class TimetableInsights:
    def __init__(
        self,
        store: TimetableStore,
        conflicts: ConflictService,
        catalog: CatalogReference,
        periods: tuple[TimeSlot, ...] = DEFAULT_TIME_SLOTS,
    ):
        self.store = store
        self.conflicts = conflicts
        self.catalog = catalog
        self.periods = periods

    def class_stats(self, class_id: str) -> TimetableStats:
        entries = self.store.get_by_class(class_id)
        total_slots = len(teaching_periods(self.periods)) * len(SCHOOL_DAYS)
        filled_slots = len(entries)
        fill_rate = round(filled_slots * 100.0 / total_slots, 1) if total_slots else 0.0
        return TimetableStats(
            class_id=class_id,
            total_slots=total_slots,
            filled_slots=filled_slots,
            fill_rate=fill_rate,
            conflict_count=self.conflicts.count_conflicts(entries),
        )

    def week_grid(
        self,
        *,
        class_id: str | None = None,
        teacher_id: str | None = None,
        curriculum_type: str | None = None,
    ) -> WeekGrid:
        if bool(class_id) == bool(teacher_id):
            raise InvalidInputError("Provide exactly one of classId or teacherId")

        if class_id:
            entries = self.store.get_by_class(class_id)
            title = f"{self.catalog.class_name(class_id) or class_id} - Timetable"
            room_id = self.catalog.room_for_class(class_id)
            subtitle = f"Room: {self.catalog.room_name(room_id) or room_id}" if room_id else ""
        else:
            entries = self.store.get_by_teacher(teacher_id)
            title = f"{self.catalog.teacher_name(teacher_id) or teacher_id} - Teaching Schedule"
            subtitle = ""

        if curriculum_type:
            entries = [entry for entry in entries if entry.curriculum_type == curriculum_type]

        by_slot: dict[tuple[str, int], TimetableEntry] = {}
        for entry in entries:
            by_slot.setdefault(entry.slot, entry)
        conflict_map = self.conflicts.conflict_map(by_slot.values())

        rows: list[GridRow] = []
        for period in teaching_periods(self.periods):
            cells = []
            for day in SCHOOL_DAYS:
                entry = by_slot.get((day, period.id))
                if entry is None:
                    cells.append(GridCell(day=day))
                    continue
                cells.append(
                    GridCell(
                        day=day,
                        entry=entry,
                        subject_name=self.catalog.subject_name(entry.subject_id) or entry.subject_id,
                        teacher_name=self.catalog.teacher_name(entry.teacher_id) or entry.teacher_id,
                        class_name=self.catalog.class_name(entry.class_id) or entry.class_id,
                        conflict=conflict_map[entry.id],
                    )
                )
            rows.append(GridRow(period=period, cells=cells))
        return WeekGrid(title=title, subtitle=subtitle, rows=rows)
