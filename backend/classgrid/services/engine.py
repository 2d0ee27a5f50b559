from __future__ import annotations

from dataclasses import dataclass

from classgrid.core.config import Settings, get_settings
from classgrid.schemas.timetable import DEFAULT_TIME_SLOTS, TimeSlot
from classgrid.services.catalog import CatalogReference, load_catalog
from classgrid.services.conflict_service import ConflictService
from classgrid.services.ids import IdGenerator, UuidIdGenerator
from classgrid.services.insights import TimetableInsights
from classgrid.services.kv_store import KeyValueStore
from classgrid.services.slot_mutator import SlotMutator
from classgrid.services.template_service import TemplateService
from classgrid.services.timetable_store import TimetableStore


@dataclass
class TimetableEngine:
    store: TimetableStore
    catalog: CatalogReference
    conflicts: ConflictService
    mutator: SlotMutator
    templates: TemplateService
    insights: TimetableInsights
    periods: tuple[TimeSlot, ...] = DEFAULT_TIME_SLOTS


def build_engine(
    kv_store: KeyValueStore,
    *,
    settings: Settings | None = None,
    catalog: CatalogReference | None = None,
    id_generator: IdGenerator | None = None,
    periods: tuple[TimeSlot, ...] = DEFAULT_TIME_SLOTS,
) -> TimetableEngine:
    settings = settings or get_settings()
    if catalog is None:
        catalog = load_catalog(kv_store, settings)
    id_generator = id_generator or UuidIdGenerator()

    store = TimetableStore.load(kv_store, settings.timetable_dataset_key)
    conflicts = ConflictService(store, catalog)
    return TimetableEngine(
        store=store,
        catalog=catalog,
        conflicts=conflicts,
        mutator=SlotMutator(store, conflicts, id_generator=id_generator, periods=periods),
        templates=TemplateService(
            store,
            kv_store,
            catalog,
            id_generator=id_generator,
            dataset_key=settings.templates_dataset_key,
        ),
        insights=TimetableInsights(store, conflicts, catalog, periods=periods),
        periods=periods,
    )
