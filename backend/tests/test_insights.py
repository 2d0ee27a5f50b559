import pytest

from classgrid.core.exceptions import InvalidInputError
from classgrid.schemas.timetable import DEFAULT_TIME_SLOTS, teaching_periods


def test_break_and_lunch_are_not_teaching_periods():
    labels = [slot.label for slot in teaching_periods()]
    assert labels == ["Period 1", "Period 2", "Period 3", "Period 4", "Period 5", "Period 6"]
    assert {slot.id for slot in DEFAULT_TIME_SLOTS if not slot.is_teaching} == {3, 6}


def test_class_stats_fill_rate_excludes_breaks(timetable):
    timetable.mutator.assign("10-A", "Monday", 1, "MATH", "T1")
    timetable.mutator.assign("10-A", "Monday", 2, "ENG", "T2")
    timetable.mutator.assign("10-A", "Tuesday", 1, "PHYS", "T3")
    timetable.mutator.assign("10-B", "Monday", 1, "MATH", "T1")

    stats = timetable.insights.class_stats("10-A")

    assert stats.total_slots == 30
    assert stats.filled_slots == 3
    assert stats.fill_rate == 10.0
    assert stats.conflict_count == 1


def test_entry_placed_in_break_still_conflicts(timetable):
    timetable.mutator.assign("10-A", "Monday", 3, "MATH", "T1")
    result = timetable.mutator.assign("10-B", "Monday", 3, "MATH", "T1")

    assert result.has_conflicts
    assert timetable.insights.class_stats("10-B").conflict_count == 1


def test_class_grid_skips_break_rows(timetable):
    timetable.mutator.assign("10-A", "Wednesday", 4, "MATH", "T1")

    grid = timetable.insights.week_grid(class_id="10-A")

    assert grid.title == "Grade 10 A - Timetable"
    assert grid.subtitle == "Room: Room 101"
    assert [row.period.id for row in grid.rows] == [1, 2, 4, 5, 7, 8]
    row = next(row for row in grid.rows if row.period.id == 4)
    cell = next(cell for cell in row.cells if cell.day == "Wednesday")
    assert cell.subject_name == "Mathematics"
    assert cell.teacher_name == "U Aung"
    assert cell.conflict is not None and not cell.conflict.has_conflict
    assert sum(1 for row in grid.rows for cell in row.cells if cell.entry is not None) == 1


def test_teacher_grid_and_curriculum_filter(timetable):
    timetable.mutator.assign("10-A", "Monday", 1, "MATH", "T1")
    timetable.mutator.assign("10-B", "Tuesday", 2, "MATH", "T1", curriculum_type="Private")

    grid = timetable.insights.week_grid(teacher_id="T1")
    classes = {cell.class_name for row in grid.rows for cell in row.cells if cell.entry}
    assert grid.title == "U Aung - Teaching Schedule"
    assert classes == {"Grade 10 A", "Grade 10 B"}

    private = timetable.insights.week_grid(teacher_id="T1", curriculum_type="Private")
    assert [cell.class_name for row in private.rows for cell in row.cells if cell.entry] == ["Grade 10 B"]


def test_grid_needs_exactly_one_subject(timetable):
    with pytest.raises(InvalidInputError):
        timetable.insights.week_grid()
    with pytest.raises(InvalidInputError):
        timetable.insights.week_grid(class_id="10-A", teacher_id="T1")
