from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable

from classgrid.schemas.conflict import ConflictInfo, ConflictWarning
from classgrid.schemas.timetable import TimetableEntry
from classgrid.services.catalog import CatalogReference
from classgrid.services.timetable_store import TimetableStore

UNKNOWN_CLASS_NAME = "Another class"


class ConflictService:
    """Detects teacher and room double-booking across classes.

    Conflicts are reported, never enforced: callers decide whether to ask for
    confirmation. Lookups go through (day, period, teacher) and
    (day, period, class) indexes, rebuilt whenever the store changes.
    """

    def __init__(self, store: TimetableStore, catalog: CatalogReference):
        self.store = store
        self.catalog = catalog
        self._indexed_revision: int | None = None
        self._by_teacher_slot: dict[tuple[str, int, str], list[TimetableEntry]] = {}
        self._by_class_slot: dict[tuple[str, int, str], list[TimetableEntry]] = {}

    def _ensure_index(self) -> None:
        if self._indexed_revision == self.store.revision:
            return
        by_teacher_slot = defaultdict(list)
        by_class_slot = defaultdict(list)
        for entry in self.store.get_all():
            by_teacher_slot[(entry.day, entry.period_id, entry.teacher_id)].append(entry)
            by_class_slot[(entry.day, entry.period_id, entry.class_id)].append(entry)
        self._by_teacher_slot = dict(by_teacher_slot)
        self._by_class_slot = dict(by_class_slot)
        self._indexed_revision = self.store.revision

    def teacher_conflict(
        self,
        teacher_id: str,
        day: str,
        period_id: int,
        exclude_entry_id: str | None = None,
    ) -> str | None:
        if not teacher_id:
            return None
        self._ensure_index()
        for entry in self._by_teacher_slot.get((day, period_id, teacher_id), []):
            if entry.id != exclude_entry_id:
                return entry.class_id
        return None

    def room_conflict(
        self,
        room_id: str,
        day: str,
        period_id: int,
        owner_class_id: str,
        exclude_entry_id: str | None = None,
    ) -> str | None:
        if not room_id:
            return None
        self._ensure_index()
        for other_class_id in self.catalog.classes_in_room(room_id):
            if other_class_id == owner_class_id:
                continue
            for entry in self._by_class_slot.get((day, period_id, other_class_id), []):
                if entry.id != exclude_entry_id:
                    return other_class_id
        return None

    def conflict_info(self, entry: TimetableEntry) -> ConflictInfo:
        teacher_class = self.teacher_conflict(entry.teacher_id, entry.day, entry.period_id, entry.id)
        room_class = self.room_conflict(
            self.catalog.room_for_class(entry.class_id),
            entry.day,
            entry.period_id,
            entry.class_id,
            entry.id,
        )
        return ConflictInfo(
            teacher_conflict=teacher_class is not None,
            room_conflict=room_class is not None,
            conflicting_teacher_class=teacher_class,
            conflicting_room_class=room_class,
        )

    def conflict_map(self, entries: Iterable[TimetableEntry] | None = None) -> dict[str, ConflictInfo]:
        if entries is None:
            entries = self.store.get_all()
        return {entry.id: self.conflict_info(entry) for entry in entries}

    def count_conflicts(self, entries: Iterable[TimetableEntry] | None = None) -> int:
        return sum(1 for info in self.conflict_map(entries).values() if info.has_conflict)

    def warnings_for(
        self,
        *,
        class_id: str,
        teacher_id: str,
        day: str,
        period_id: int,
        exclude_entry_id: str | None = None,
    ) -> list[ConflictWarning]:
        warnings: list[ConflictWarning] = []

        teacher_class = self.teacher_conflict(teacher_id, day, period_id, exclude_entry_id)
        if teacher_class is not None:
            teacher_label = self.catalog.teacher_name(teacher_id) or teacher_id
            class_label = self.catalog.class_name(teacher_class) or UNKNOWN_CLASS_NAME
            warnings.append(
                ConflictWarning(
                    conflict_type="teacher_conflict",
                    description=f"Teacher {teacher_label} is already assigned to {class_label} at this time",
                    conflicting_class_id=teacher_class,
                    conflicting_class_name=class_label,
                    resource_id=teacher_id,
                )
            )

        room_id = self.catalog.room_for_class(class_id)
        room_class = self.room_conflict(room_id, day, period_id, class_id, exclude_entry_id)
        if room_class is not None:
            room_label = self.catalog.room_name(room_id) or room_id
            class_label = self.catalog.class_name(room_class) or UNKNOWN_CLASS_NAME
            warnings.append(
                ConflictWarning(
                    conflict_type="room_conflict",
                    description=f"Room {room_label} is used by {class_label} at this time",
                    conflicting_class_id=room_class,
                    conflicting_class_name=class_label,
                    resource_id=room_id,
                )
            )
        return warnings
