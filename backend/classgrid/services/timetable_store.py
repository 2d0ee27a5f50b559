from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field

from pydantic import ValidationError

from classgrid.core.exceptions import InvalidInputError, SlotOccupiedError
from classgrid.schemas.timetable import SCHOOL_DAYS, TimetableEntry
from classgrid.services.kv_store import KeyValueStore

logger = logging.getLogger(__name__)

DAY_ORDER = {day: index for index, day in enumerate(SCHOOL_DAYS)}

SlotKey = tuple[str, str, int]


def class_slot_key(entry: TimetableEntry) -> SlotKey:
    return entry.class_id, entry.day, entry.period_id


def entry_sort_key(entry: TimetableEntry) -> tuple[int, int, str, str]:
    return DAY_ORDER.get(entry.day, len(DAY_ORDER)), entry.period_id, entry.class_id, entry.id


@dataclass(frozen=True)
class _Snapshot:
    entries: dict[str, TimetableEntry] = field(default_factory=dict)
    by_class_slot: dict[SlotKey, str] = field(default_factory=dict)


def _build_snapshot(entries: Iterable[TimetableEntry]) -> _Snapshot:
    by_id: dict[str, TimetableEntry] = {}
    by_class_slot: dict[SlotKey, str] = {}
    for entry in entries:
        if entry.id in by_id:
            raise InvalidInputError(f"Duplicate timetable entry id {entry.id}", details={"id": entry.id})
        key = class_slot_key(entry)
        occupant = by_class_slot.get(key)
        if occupant is not None:
            raise SlotOccupiedError(entry.class_id, entry.day, entry.period_id, occupant)
        by_id[entry.id] = entry
        by_class_slot[key] = entry.id
    return _Snapshot(entries=by_id, by_class_slot=by_class_slot)


class TimetableStore:
    """Canonical collection of scheduled lessons.

    Every write builds a complete new snapshot and installs it with a single
    assignment, so readers see either the old collection or the new one.
    The (class, day, period) uniqueness rule is checked while building.
    When backed by a key-value store, the snapshot is saved first and only
    installed once the save is accepted.
    """

    def __init__(
        self,
        entries: Iterable[TimetableEntry] = (),
        *,
        kv_store: KeyValueStore | None = None,
        dataset_key: str = "timetable",
        version: int | None = None,
    ) -> None:
        self._snapshot = _build_snapshot(entries)
        self._kv_store = kv_store
        self._dataset_key = dataset_key
        self._version = version
        self._revision = 0

    @classmethod
    def load(cls, kv_store: KeyValueStore, dataset_key: str = "timetable") -> "TimetableStore":
        blob = kv_store.load(dataset_key)
        raw_entries = blob.data if isinstance(blob.data, list) else []
        try:
            entries = [TimetableEntry.model_validate(item) for item in raw_entries]
        except ValidationError as exc:
            raise InvalidInputError(
                f"Stored dataset {dataset_key} holds malformed timetable entries",
                details={"errors": exc.errors(include_url=False)},
            ) from exc
        logger.debug("Loaded %s timetable entries (version %s)", len(entries), blob.version)
        return cls(entries, kv_store=kv_store, dataset_key=dataset_key, version=blob.version)

    @property
    def revision(self) -> int:
        return self._revision

    @property
    def version(self) -> int | None:
        return self._version

    def __len__(self) -> int:
        return len(self._snapshot.entries)

    # Queries

    def get_all(self) -> list[TimetableEntry]:
        return list(self._snapshot.entries.values())

    def get(self, entry_id: str) -> TimetableEntry | None:
        return self._snapshot.entries.get(entry_id)

    def get_by_class(self, class_id: str) -> list[TimetableEntry]:
        entries = [entry for entry in self._snapshot.entries.values() if entry.class_id == class_id]
        return sorted(entries, key=entry_sort_key)

    def get_by_teacher(self, teacher_id: str) -> list[TimetableEntry]:
        entries = [entry for entry in self._snapshot.entries.values() if entry.teacher_id == teacher_id]
        return sorted(entries, key=entry_sort_key)

    def get_by_slot(self, day: str, period_id: int) -> list[TimetableEntry]:
        entries = [
            entry
            for entry in self._snapshot.entries.values()
            if entry.day == day and entry.period_id == period_id
        ]
        return sorted(entries, key=entry_sort_key)

    def entry_at(self, class_id: str, day: str, period_id: int) -> TimetableEntry | None:
        snapshot = self._snapshot
        entry_id = snapshot.by_class_slot.get((class_id, day, period_id))
        return snapshot.entries.get(entry_id) if entry_id is not None else None

    # Mutations

    def upsert(self, entry: TimetableEntry) -> TimetableEntry:
        current = self._snapshot.entries
        entries = [entry if existing.id == entry.id else existing for existing in current.values()]
        if entry.id not in current:
            entries.append(entry)
        self._commit(_build_snapshot(entries))
        return entry

    def remove(self, entry_id: str) -> TimetableEntry | None:
        current = self._snapshot.entries
        removed = current.get(entry_id)
        if removed is None:
            return None
        self._commit(_build_snapshot(entry for entry in current.values() if entry.id != entry_id))
        return removed

    def replace_for_class(self, class_id: str, entries: Iterable[TimetableEntry]) -> list[TimetableEntry]:
        """Swap out every entry of one class; returns the entries that were dropped."""
        replacements = list(entries)
        foreign = [entry.id for entry in replacements if entry.class_id != class_id]
        if foreign:
            raise InvalidInputError(
                f"Entries for class replacement must all belong to {class_id}",
                details={"classId": class_id, "foreignEntryIds": foreign},
            )
        current = self._snapshot.entries
        kept = [entry for entry in current.values() if entry.class_id != class_id]
        dropped = [entry for entry in current.values() if entry.class_id == class_id]
        self._commit(_build_snapshot(kept + replacements))
        logger.debug("Replaced %s entries of class %s with %s", len(dropped), class_id, len(replacements))
        return dropped

    def persist(self) -> int | None:
        """Write the current collection again; mutations already write through."""
        return self._save(self._snapshot)

    def _save(self, snapshot: _Snapshot) -> int | None:
        if self._kv_store is None:
            return None
        payload = [entry.model_dump(mode="json", by_alias=True) for entry in snapshot.entries.values()]
        self._version = self._kv_store.save(self._dataset_key, payload, base_version=self._version)
        return self._version

    def _commit(self, snapshot: _Snapshot) -> None:
        # A refused save raises before the new snapshot becomes visible.
        self._save(snapshot)
        self._snapshot = snapshot
        self._revision += 1
