import pytest

from classgrid.core.exceptions import InvalidInputError, SlotOccupiedError, VersionConflictError
from classgrid.schemas.timetable import TimetableEntry
from classgrid.services.kv_store import InMemoryKeyValueStore
from classgrid.services.timetable_store import TimetableStore


def make_entry(entry_id, class_id="10-A", day="Monday", period_id=1, subject_id="MATH", teacher_id="T1"):
    return TimetableEntry(
        id=entry_id,
        class_id=class_id,
        day=day,
        period_id=period_id,
        subject_id=subject_id,
        teacher_id=teacher_id,
    )


@pytest.fixture
def store():
    return TimetableStore(
        [
            make_entry("TT-01"),
            make_entry("TT-02", period_id=2, subject_id="ENG", teacher_id="T2"),
            make_entry("TT-03", day="Tuesday", period_id=1, teacher_id="T2"),
            make_entry("TT-04", class_id="10-B", period_id=1, teacher_id="T3"),
        ]
    )


def test_queries_filter_and_sort(store):
    assert [entry.id for entry in store.get_by_class("10-A")] == ["TT-01", "TT-02", "TT-03"]
    assert [entry.id for entry in store.get_by_teacher("T2")] == ["TT-02", "TT-03"]
    assert [entry.id for entry in store.get_by_slot("Monday", 1)] == ["TT-01", "TT-04"]
    assert store.get_by_class("missing") == []
    assert len(store.get_all()) == 4
    assert store.entry_at("10-A", "Tuesday", 1).id == "TT-03"
    assert store.entry_at("10-A", "Friday", 8) is None


def test_upsert_rejects_second_lesson_in_class_slot(store):
    with pytest.raises(SlotOccupiedError) as exc_info:
        store.upsert(make_entry("TT-99", subject_id="PHYS", teacher_id="T2"))

    assert exc_info.value.details["occupiedBy"] == "TT-01"
    assert store.get("TT-99") is None
    assert len(store) == 4


def test_upsert_replaces_entry_with_same_id(store):
    revision = store.revision
    store.upsert(make_entry("TT-01", day="Friday", period_id=8))

    assert store.get("TT-01").day == "Friday"
    assert store.entry_at("10-A", "Monday", 1) is None
    assert store.revision == revision + 1


def test_remove_returns_removed_entry(store):
    removed = store.remove("TT-02")
    assert removed.id == "TT-02"
    assert store.get("TT-02") is None
    assert store.remove("TT-02") is None


def test_replace_for_class_swaps_only_that_class(store):
    replacement = [make_entry("N-1", day="Thursday", period_id=4), make_entry("N-2", day="Friday", period_id=5)]

    dropped = store.replace_for_class("10-A", replacement)

    assert {entry.id for entry in dropped} == {"TT-01", "TT-02", "TT-03"}
    assert [entry.id for entry in store.get_by_class("10-A")] == ["N-1", "N-2"]
    assert [entry.id for entry in store.get_by_class("10-B")] == ["TT-04"]


def test_replace_for_class_is_all_or_nothing(store):
    before = store.get_all()
    clashing = [make_entry("N-1"), make_entry("N-2")]

    with pytest.raises(SlotOccupiedError):
        store.replace_for_class("10-A", clashing)

    assert store.get_all() == before


def test_replace_for_class_rejects_entries_of_other_classes(store):
    with pytest.raises(InvalidInputError):
        store.replace_for_class("10-A", [make_entry("N-1", class_id="10-B", day="Friday")])
    assert len(store.get_by_class("10-A")) == 3


def test_readers_keep_consistent_snapshot_during_replace(store):
    snapshot = store.get_by_class("10-A")
    store.replace_for_class("10-A", [])

    assert len(snapshot) == 3
    assert store.get_by_class("10-A") == []


def test_mutations_write_through_to_backend():
    kv_store = InMemoryKeyValueStore()
    store = TimetableStore(kv_store=kv_store)
    store.upsert(make_entry("TT-01"))
    assert store.version == 1

    reloaded = TimetableStore.load(kv_store)
    assert reloaded.version == 1
    assert reloaded.get("TT-01") == make_entry("TT-01")
    assert kv_store.load("timetable").data[0]["classId"] == "10-A"

    assert store.persist() == 2
    assert kv_store.load("timetable").version == 2


def test_refused_save_leaves_store_unchanged():
    kv_store = InMemoryKeyValueStore()
    store = TimetableStore.load(kv_store)
    store.upsert(make_entry("TT-01"))
    # Loaded before the first write landed.
    stale = TimetableStore(kv_store=kv_store, version=0)
    revision = stale.revision

    with pytest.raises(VersionConflictError):
        stale.upsert(make_entry("TT-02", class_id="10-B"))
    with pytest.raises(VersionConflictError):
        stale.replace_for_class("10-A", [make_entry("TT-03", day="Friday")])

    assert stale.get_all() == []
    assert stale.revision == revision
    assert [item["id"] for item in kv_store.load("timetable").data] == ["TT-01"]


def test_load_rejects_stored_slot_collisions():
    kv_store = InMemoryKeyValueStore(
        {
            "timetable": [
                make_entry("TT-01").model_dump(by_alias=True),
                make_entry("TT-02").model_dump(by_alias=True),
            ]
        }
    )
    with pytest.raises(SlotOccupiedError):
        TimetableStore.load(kv_store)


def test_store_without_backend_does_not_persist(store):
    assert store.persist() is None
