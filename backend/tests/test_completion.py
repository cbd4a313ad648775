import pytest

from timetable_engine.schemas.timetable import DEFAULT_TEACHING_DAYS
from timetable_engine.services.completion import completion, completion_level, completion_summary


def full_grid(make_entry, slots):
    return [
        make_entry(f"{day}-{start}", day=day, start=start, end=end)
        for day in DEFAULT_TEACHING_DAYS
        for start, end in slots
    ]


EIGHT_PERIODS = [
    ("07:30", "08:10"),
    ("08:10", "08:50"),
    ("08:50", "09:30"),
    ("09:30", "10:10"),
    ("10:30", "11:10"),
    ("11:10", "11:50"),
    ("11:50", "12:30"),
    ("13:15", "13:55"),
]


def test_empty_schedule_is_zero():
    assert completion([], 6, 8) == 0


def test_full_grid_is_one_hundred(make_entry):
    schedule = full_grid(make_entry, EIGHT_PERIODS)

    assert len(schedule) == 48
    assert completion(schedule, 6, 8) == 100


@pytest.mark.parametrize(
    "filled,expected",
    [(1, 2), (5, 10), (6, 13), (24, 50), (47, 98)],
)
def test_percentage_is_rounded(filled, expected):
    assert completion(range(filled), 6, 8) == expected


def test_half_rounds_up():
    # 1/8 of 100 is 12.5
    assert completion(range(1), 1, 8) == 13


def test_empty_grid_never_divides_by_zero():
    assert completion(range(3), 0, 8) == 0
    assert completion(range(3), 6, 0) == 0


def test_overfilled_grid_is_clamped():
    assert completion(range(60), 6, 8) == 100


@pytest.mark.parametrize(
    "percentage,level",
    [(0, "low"), (49, "low"), (50, "partial"), (79, "partial"), (80, "good"), (100, "good")],
)
def test_completion_level(percentage, level):
    assert completion_level(percentage) == level


def test_completion_summary(make_entry):
    schedule = full_grid(make_entry, EIGHT_PERIODS[:4])

    summary = completion_summary(schedule, 6, 8)

    assert summary.filled_slots == 24
    assert summary.total_slots == 48
    assert summary.percentage == 50
    assert not summary.is_complete
    assert summary.level == "partial"
