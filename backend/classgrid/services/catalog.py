from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Iterable, Mapping
from typing import Any, Protocol

from pydantic import ValidationError

from classgrid.core.config import Settings
from classgrid.schemas.catalog import ClassSection
from classgrid.services.kv_store import KeyValueStore

logger = logging.getLogger(__name__)

NAME_FIELDS = ("name", "nameEn", "number", "code")


class CatalogReference(Protocol):
    """Read-only view of the school's master data."""

    def room_for_class(self, class_id: str) -> str: ...

    def classes_in_room(self, room_id: str) -> list[str]: ...

    def class_name(self, class_id: str) -> str | None: ...

    def teacher_name(self, teacher_id: str) -> str | None: ...

    def subject_name(self, subject_id: str) -> str | None: ...

    def room_name(self, room_id: str) -> str | None: ...


class StaticCatalog:
    def __init__(
        self,
        classes: Iterable[ClassSection | Mapping[str, Any]] = (),
        teachers: Mapping[str, str] | None = None,
        subjects: Mapping[str, str] | None = None,
        rooms: Mapping[str, str] | None = None,
    ) -> None:
        self._classes: dict[str, ClassSection] = {}
        self._classes_by_room: dict[str, list[str]] = defaultdict(list)
        for item in classes:
            section = item if isinstance(item, ClassSection) else ClassSection.model_validate(item)
            self._classes[section.id] = section
            if section.room_id:
                self._classes_by_room[section.room_id].append(section.id)
        self._teachers = dict(teachers or {})
        self._subjects = dict(subjects or {})
        self._rooms = dict(rooms or {})

    def get_class(self, class_id: str) -> ClassSection | None:
        return self._classes.get(class_id)

    def room_for_class(self, class_id: str) -> str:
        section = self._classes.get(class_id)
        return section.room_id if section is not None else ""

    def classes_in_room(self, room_id: str) -> list[str]:
        if not room_id:
            return []
        return list(self._classes_by_room.get(room_id, []))

    def class_name(self, class_id: str) -> str | None:
        section = self._classes.get(class_id)
        return section.name if section is not None else None

    def teacher_name(self, teacher_id: str) -> str | None:
        return self._teachers.get(teacher_id)

    def subject_name(self, subject_id: str) -> str | None:
        return self._subjects.get(subject_id)

    def room_name(self, room_id: str) -> str | None:
        if room_id in self._rooms:
            return self._rooms[room_id]
        for section in self._classes.values():
            if section.room_id == room_id and section.room_name:
                return section.room_name
        return None


def _display_name(record: Mapping[str, Any]) -> str | None:
    for field in NAME_FIELDS:
        value = record.get(field)
        if value:
            return str(value)
    return None


def _records(data: Any) -> list[Mapping[str, Any]]:
    if not isinstance(data, list):
        return []
    return [item for item in data if isinstance(item, Mapping) and item.get("id")]


def _names_by_id(data: Any) -> dict[str, str]:
    names: dict[str, str] = {}
    for record in _records(data):
        name = _display_name(record)
        if name:
            names[str(record["id"])] = name
    return names


def load_catalog(store: KeyValueStore, settings: Settings) -> StaticCatalog:
    """Build a catalog snapshot from the master-data datasets."""
    sections: list[ClassSection] = []
    for record in _records(store.load(settings.classes_dataset_key).data):
        try:
            sections.append(ClassSection.model_validate(record))
        except ValidationError:
            logger.warning("Skipping malformed class record %s", record.get("id"))

    return StaticCatalog(
        classes=sections,
        teachers=_names_by_id(store.load(settings.staff_dataset_key).data),
        subjects=_names_by_id(store.load(settings.subjects_dataset_key).data),
        rooms=_names_by_id(store.load(settings.rooms_dataset_key).data),
    )
