"""Unit tests for the lesson overlap engine (pure, no database)."""

import uuid
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace
from unittest.mock import patch

import pytest
from libs.common.config import Settings
from libs.common.errors import ValidationError
from services.lessons_service.scheduling import (
    TimeWindow,
    find_conflicts,
    lesson_window,
    overlaps,
    validate_duration,
)

L1_START = datetime(2025, 3, 1, 9, 0, tzinfo=timezone.utc)


def _lesson(start, duration=90):
    return SimpleNamespace(id=uuid.uuid4(), start_at=start, duration_min=duration)


# ---------------------------------------------------------------------------
# overlaps / TimeWindow
# ---------------------------------------------------------------------------


@pytest.mark.unit
def test_back_to_back_lessons_do_not_overlap():
    # 09:00 + 60 min ends exactly when the 10:00 lesson starts
    assert overlaps(L1_START, 60, L1_START + timedelta(minutes=60), 90) is False


@pytest.mark.unit
def test_candidate_starting_when_90_minute_lesson_ends_does_not_overlap():
    assert overlaps(L1_START, 90, datetime(2025, 3, 1, 10, 30, tzinfo=timezone.utc), 90) is False


@pytest.mark.unit
def test_partial_overlap_is_detected():
    assert overlaps(L1_START, 90, datetime(2025, 3, 1, 9, 30, tzinfo=timezone.utc), 90) is True


@pytest.mark.unit
def test_containment_overlaps_both_ways():
    assert overlaps(L1_START, 180, L1_START + timedelta(minutes=30), 30) is True
    assert overlaps(L1_START + timedelta(minutes=30), 30, L1_START, 180) is True


@pytest.mark.unit
@pytest.mark.parametrize("offset_min", [-120, -91, -90, -1, 0, 1, 89, 90, 91, 240])
def test_equal_duration_overlap_matches_formula(offset_min):
    duration = 90
    a = L1_START
    b = L1_START + timedelta(minutes=offset_min)
    expected = a < b + timedelta(minutes=duration) and b < a + timedelta(minutes=duration)
    assert overlaps(a, duration, b, duration) is expected
    assert overlaps(b, duration, a, duration) is expected


@pytest.mark.unit
def test_time_window_overlap_is_half_open():
    a = TimeWindow(L1_START, L1_START + timedelta(hours=1))
    b = TimeWindow(L1_START + timedelta(hours=1), L1_START + timedelta(hours=2))
    assert not a.overlaps(b)
    assert not b.overlaps(a)


# ---------------------------------------------------------------------------
# lesson_window / validate_duration
# ---------------------------------------------------------------------------


@pytest.mark.unit
def test_lesson_window_defaults_to_90_minutes():
    window = lesson_window(L1_START)
    assert window.end - window.start == timedelta(minutes=90)


@pytest.mark.unit
def test_lesson_window_accepts_iso_string_with_z():
    window = lesson_window("2025-03-01T09:00:00Z", 60)
    assert window.start == L1_START
    assert window.end == L1_START + timedelta(minutes=60)


@pytest.mark.unit
def test_lesson_window_normalises_offsets_to_utc():
    window = lesson_window("2025-03-01T10:00:00+01:00", 30)
    assert window.start == L1_START
    assert window.start.utcoffset() == timedelta(0)


@pytest.mark.unit
@pytest.mark.parametrize("bad", [None, "", "not-a-date"])
def test_lesson_window_rejects_missing_or_invalid_start(bad):
    with pytest.raises(ValidationError):
        lesson_window(bad, 90)


@pytest.mark.unit
@pytest.mark.parametrize("bad", [0, -15, 24 * 60 + 1, True, "90"])
def test_validate_duration_rejects_bad_values(bad):
    with pytest.raises(ValidationError):
        validate_duration(bad)


@pytest.mark.unit
def test_validate_duration_accepts_bounds():
    assert validate_duration(1) == 1
    assert validate_duration(24 * 60) == 24 * 60
    assert validate_duration(None) == 90


@pytest.mark.unit
def test_default_duration_comes_from_settings():
    settings = Settings(DEFAULT_LESSON_DURATION_MIN=60, _env_file=None)
    with patch("services.lessons_service.scheduling.get_settings", return_value=settings):
        assert validate_duration(None) == 60
        assert lesson_window(L1_START).end == L1_START + timedelta(minutes=60)


@pytest.mark.unit
@pytest.mark.parametrize("start", ["9999-12-31T23:00:00Z", datetime(9999, 12, 31, 23, tzinfo=timezone.utc)])
def test_window_past_the_last_instant_is_a_validation_error(start):
    with pytest.raises(ValidationError) as exc_info:
        lesson_window(start, 90)
    assert exc_info.value.message == "start_at out of range"


@pytest.mark.unit
def test_window_ending_exactly_at_the_last_day_is_fine():
    window = lesson_window("9999-12-31T22:00:00Z", 90)
    assert window.end == datetime(9999, 12, 31, 23, 30, tzinfo=timezone.utc)


@pytest.mark.unit
def test_offset_before_the_first_instant_is_a_validation_error():
    with pytest.raises(ValidationError):
        lesson_window("0001-01-01T00:30:00+01:00", 90)


# ---------------------------------------------------------------------------
# find_conflicts
# ---------------------------------------------------------------------------


@pytest.mark.unit
def test_find_conflicts_reports_overlapping_ids_in_input_order():
    early = _lesson(L1_START - timedelta(minutes=60))  # 08:00-09:30
    l1 = _lesson(L1_START)  # 09:00-10:30
    later = _lesson(L1_START + timedelta(hours=3))  # 12:00-13:30

    report = find_conflicts("2025-03-01T09:30:00Z", 90, [early, l1, later])

    assert report.has_conflict
    assert report.conflicting_lesson_ids == [early.id, l1.id]
    assert report.start_at == L1_START + timedelta(minutes=30)
    assert report.end_at == L1_START + timedelta(minutes=120)


@pytest.mark.unit
def test_find_conflicts_excludes_the_lesson_being_edited():
    l1 = _lesson(L1_START)
    report = find_conflicts(L1_START, 90, [l1], exclude_lesson_id=l1.id)
    assert not report.has_conflict
    assert report.conflicting_lesson_ids == []


@pytest.mark.unit
def test_find_conflicts_with_no_existing_lessons():
    report = find_conflicts(L1_START, 90, [])
    assert report.has_conflict is False
