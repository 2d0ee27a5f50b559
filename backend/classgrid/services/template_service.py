from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from datetime import datetime, timezone
from typing import Any

from pydantic import ValidationError

from classgrid.core.exceptions import InvalidInputError, NotFoundError
from classgrid.schemas.timetable import CopyPreview, CopyResult, ScheduleTemplate, TimetableEntry
from classgrid.services.catalog import CatalogReference
from classgrid.services.ids import IdGenerator, UuidIdGenerator
from classgrid.services.kv_store import KeyValueStore
from classgrid.services.timetable_store import TimetableStore

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _require_distinct(source_class_id: str, target_class_id: str) -> None:
    if source_class_id == target_class_id:
        raise InvalidInputError(
            "Source and target class must differ",
            details={"sourceClassId": source_class_id, "targetClassId": target_class_id},
        )


class TemplateService:
    """Saves and restores a class's full week, and copies weeks between classes.

    Templates live in their own dataset, keyed by class id, one per class.
    """

    def __init__(
        self,
        store: TimetableStore,
        kv_store: KeyValueStore,
        catalog: CatalogReference,
        id_generator: IdGenerator | None = None,
        dataset_key: str = "schedule_templates",
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.store = store
        self.kv_store = kv_store
        self.catalog = catalog
        self.id_generator = id_generator or UuidIdGenerator()
        self.dataset_key = dataset_key
        self.clock = clock

    def _regenerate(self, entries: Iterable[TimetableEntry], class_id: str) -> list[TimetableEntry]:
        return [entry.model_copy(update={"id": self.id_generator(), "class_id": class_id}) for entry in entries]

    def _load_templates(self) -> tuple[dict[str, ScheduleTemplate], dict[str, Any], int]:
        """Split the stored mapping into parsed templates and unreadable raw items."""
        blob = self.kv_store.load(self.dataset_key)
        if blob.data is not None and not isinstance(blob.data, dict):
            raise InvalidInputError(
                f"Stored dataset {self.dataset_key} is not a mapping of class templates",
                details={"key": self.dataset_key},
            )
        templates: dict[str, ScheduleTemplate] = {}
        malformed: dict[str, Any] = {}
        for class_id, item in (blob.data or {}).items():
            try:
                templates[class_id] = ScheduleTemplate.model_validate(item)
            except ValidationError:
                logger.warning("Skipping malformed schedule template for class %s", class_id)
                malformed[class_id] = item
        return templates, malformed, blob.version

    def list_templates(self) -> list[ScheduleTemplate]:
        templates, _, _ = self._load_templates()
        return sorted(templates.values(), key=lambda template: template.class_id)

    def get_template(self, class_id: str) -> ScheduleTemplate:
        templates, _, _ = self._load_templates()
        template = templates.get(class_id)
        if template is None:
            raise NotFoundError("Schedule template", class_id)
        return template

    def save_template(self, class_id: str) -> ScheduleTemplate:
        entries = self.store.get_by_class(class_id)
        template = ScheduleTemplate(
            class_id=class_id,
            class_name=self.catalog.class_name(class_id),
            entries=self._regenerate(entries, class_id),
            saved_at=self.clock(),
        )
        templates, malformed, version = self._load_templates()
        templates[class_id] = template
        malformed.pop(class_id, None)
        payload = dict(malformed)
        payload.update({key: value.model_dump(mode="json", by_alias=True) for key, value in templates.items()})
        self.kv_store.save(self.dataset_key, payload, base_version=version)
        logger.info("Saved template for class %s with %s entries", class_id, len(entries))
        return template

    def load_template(self, class_id: str) -> list[TimetableEntry]:
        template = self.get_template(class_id)
        restored = self._regenerate(template.entries, class_id)
        dropped = self.store.replace_for_class(class_id, restored)
        logger.info(
            "Loaded template for class %s: %s entries replaced by %s", class_id, len(dropped), len(restored)
        )
        return restored

    def preview_copy(self, source_class_id: str, target_class_id: str) -> CopyPreview:
        _require_distinct(source_class_id, target_class_id)
        source_entries = self.store.get_by_class(source_class_id)
        target_entries = self.store.get_by_class(target_class_id)
        return CopyPreview(
            source_class_id=source_class_id,
            target_class_id=target_class_id,
            source_count=len(source_entries),
            discarded_count=len(target_entries),
            discarded_entry_ids=[entry.id for entry in target_entries],
        )

    def copy_schedule(self, source_class_id: str, target_class_id: str) -> CopyResult:
        _require_distinct(source_class_id, target_class_id)
        source_entries = self.store.get_by_class(source_class_id)
        if not source_entries:
            raise NotFoundError("Class schedule", source_class_id)

        copied = self._regenerate(source_entries, target_class_id)
        dropped = self.store.replace_for_class(target_class_id, copied)
        logger.info(
            "Copied %s entries from %s to %s (%s discarded)",
            len(copied),
            source_class_id,
            target_class_id,
            len(dropped),
        )
        return CopyResult(target_class_id=target_class_id, discarded_count=len(dropped), entries=copied)
