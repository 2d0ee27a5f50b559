from datetime import datetime, timezone

import pytest

from classgrid.core.exceptions import InvalidInputError, NotFoundError
from classgrid.services.ids import SequentialIdGenerator
from classgrid.services.template_service import TemplateService


def lesson_tuples(entries):
    return {(entry.day, entry.period_id, entry.subject_id, entry.teacher_id) for entry in entries}


@pytest.fixture
def week(timetable):
    mutator = timetable.mutator
    mutator.assign("10-A", "Monday", 1, "MATH", "T1")
    mutator.assign("10-A", "Monday", 2, "ENG", "T2")
    mutator.assign("10-A", "Tuesday", 4, "PHYS", "T3", curriculum_type="Private")
    mutator.assign("10-B", "Friday", 8, "ENG", "T2")
    return timetable


def test_save_then_load_restores_the_week(week):
    saved_tuples = lesson_tuples(week.store.get_by_class("10-A"))
    original_ids = {entry.id for entry in week.store.get_by_class("10-A")}

    template = week.templates.save_template("10-A")
    assert template.class_name == "Grade 10 A"
    assert len(template.entries) == 3
    assert not original_ids & {entry.id for entry in template.entries}

    # Rearrange the live week before restoring.
    first = week.store.get_by_class("10-A")[0]
    week.mutator.delete(first.id)
    week.mutator.assign("10-A", "Friday", 1, "MATH", "T3")

    restored = week.templates.load_template("10-A")

    live = week.store.get_by_class("10-A")
    assert lesson_tuples(live) == saved_tuples
    assert {entry.id for entry in live} == {entry.id for entry in restored}
    assert not {entry.id for entry in live} & {entry.id for entry in template.entries}
    assert [entry.id for entry in week.store.get_by_class("10-B")] == ["TT-0004"]


def test_load_template_twice_regenerates_ids(week):
    week.templates.save_template("10-A")
    first = {entry.id for entry in week.templates.load_template("10-A")}
    second = {entry.id for entry in week.templates.load_template("10-A")}
    assert first.isdisjoint(second)


def test_save_template_of_empty_class_is_not_an_error(week):
    template = week.templates.save_template("11-A")
    assert template.entries == []

    week.templates.load_template("11-A")
    assert week.store.get_by_class("11-A") == []


def test_load_missing_template(week):
    with pytest.raises(NotFoundError):
        week.templates.load_template("10-B")
    assert len(week.store.get_by_class("10-B")) == 1


def test_saving_again_overwrites_previous_template(week):
    week.templates.save_template("10-A")
    week.mutator.assign("10-A", "Thursday", 5, "MATH", "T1")

    template = week.templates.save_template("10-A")

    assert len(template.entries) == 4
    assert [item.class_id for item in week.templates.list_templates()] == ["10-A"]
    assert len(week.templates.get_template("10-A").entries) == 4


def test_templates_are_persisted_separately(week, kv_store):
    timetable_version = kv_store.load("timetable").version
    week.templates.save_template("10-A")

    stored = kv_store.load("schedule_templates")
    assert set(stored.data) == {"10-A"}
    assert stored.data["10-A"]["classId"] == "10-A"
    assert kv_store.load("timetable").version == timetable_version


def test_template_timestamp_uses_clock(week, kv_store, catalog):
    stamp = datetime(2026, 10, 18, 8, 30, tzinfo=timezone.utc)
    service = TemplateService(
        week.store,
        kv_store,
        catalog,
        id_generator=SequentialIdGenerator(prefix="TPL"),
        clock=lambda: stamp,
    )

    template = service.save_template("10-A")

    assert template.saved_at == stamp
    assert template.entries[0].id == "TPL-0001"


def test_copy_overwrites_target(week):
    week.mutator.assign("10-B", "Monday", 1, "PHYS", "T3")
    before_target = {entry.id for entry in week.store.get_by_class("10-B")}
    source = week.store.get_by_class("10-A")

    preview = week.templates.preview_copy("10-A", "10-B")
    assert preview.source_count == 3
    assert preview.discarded_count == 2
    assert set(preview.discarded_entry_ids) == before_target

    result = week.templates.copy_schedule("10-A", "10-B")

    target = week.store.get_by_class("10-B")
    assert len(target) == len(source)
    assert result.discarded_count == 2
    assert before_target.isdisjoint({entry.id for entry in target})
    assert lesson_tuples(target) == lesson_tuples(source)
    assert all(entry.class_id == "10-B" for entry in target)
    assert len(week.store.get_by_class("10-A")) == 3


def test_copy_creates_teacher_conflicts_but_does_not_block(week):
    week.templates.copy_schedule("10-A", "10-B")

    assert week.conflicts.count_conflicts(week.store.get_by_class("10-B")) == 3


def test_copy_from_empty_class_fails(week):
    with pytest.raises(NotFoundError):
        week.templates.copy_schedule("11-A", "10-B")
    assert len(week.store.get_by_class("10-B")) == 1


def test_copy_onto_itself_is_rejected(week):
    with pytest.raises(InvalidInputError):
        week.templates.copy_schedule("10-A", "10-A")


def test_unreadable_templates_survive_saving_others(week, kv_store):
    kv_store.save("schedule_templates", {"10-B": {"classId": "10-B", "entries": "not-a-list"}})

    week.templates.save_template("10-A")

    stored = kv_store.load("schedule_templates").data
    assert stored["10-B"] == {"classId": "10-B", "entries": "not-a-list"}
    assert stored["10-A"]["classId"] == "10-A"
    assert [item.class_id for item in week.templates.list_templates()] == ["10-A"]
    with pytest.raises(NotFoundError):
        week.templates.get_template("10-B")

    week.templates.save_template("10-B")
    assert week.templates.get_template("10-B").class_id == "10-B"


def test_preview_onto_itself_is_rejected(week):
    with pytest.raises(InvalidInputError):
        week.templates.preview_copy("10-A", "10-A")
