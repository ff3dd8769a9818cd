"""Tests for the attendance aggregation engine."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import copy
import logging
from datetime import date, datetime
from fractions import Fraction

import pandas as pd

from models.settings import SemesterSettings
from models.attendance import AttendanceData, SlotOverride
from models.stats import SubjectStats
from engine import stats_engine
from engine.stats_engine import (
    calculate_stats,
    derive_metrics,
    parse_day,
    resolve_slot_subject,
    resolve_threshold,
)

# 2024-01-01 is a Monday, 2024-01-07 a Sunday
AFTER_SEMESTER = date(2024, 6, 1)
WEEK_TIMETABLE = {
    day: {0: "Math", 1: "Physics"}
    for day in ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]
}


def make_settings(start="2024-01-01", end="2024-01-01", subjects=("Math",), timetable="default"):
    if timetable == "default":
        timetable = {"Monday": {0: "Math"}}
    return SemesterSettings(start, end, list(subjects), timetable)


def make_data(settings=None, holidays=(), attendance=None):
    return AttendanceData(settings or make_settings(), set(holidays), attendance or {})


def make_week(attendance=None, holidays=()):
    settings = make_settings(end="2024-01-07", subjects=("Math", "Physics"), timetable=WEEK_TIMETABLE)
    return make_data(settings, holidays, attendance)


def assert_consistent(stats):
    for s in stats.values():
        assert s.present + s.absent == s.total_conducted
        assert s.total_conducted <= s.total_semester_slots


class TestSingleDayScenarios:
    def test_unmarked_slot_counts_present(self):
        result = calculate_stats(make_data(), today=AFTER_SEMESTER)

        assert result["Math"].as_dict() == {
            "present": 1,
            "absent": 0,
            "totalConducted": 1,
            "totalSemesterSlots": 1,
            "percentage": 100.0,
            "safeLeaves": 0,
            "classesToAttend": 0,
        }

    def test_marked_absent(self):
        data = make_data(attendance={"2024-01-01": {0: SlotOverride(status="Absent")}})
        math = calculate_stats(data, today=AFTER_SEMESTER)["Math"]

        assert math.present == 0
        assert math.absent == 1
        assert math.total_conducted == 1
        assert math.percentage == 0
        assert math.safe_leaves == 0
        assert math.classes_to_attend == 3

    def test_marked_present(self):
        data = make_data(attendance={"2024-01-01": {0: SlotOverride(status="Present")}})
        math = calculate_stats(data, today=AFTER_SEMESTER)["Math"]
        assert math.present == 1
        assert math.absent == 0

    def test_unknown_status_counts_present(self):
        data = make_data(attendance={"2024-01-01": {0: SlotOverride(status="Late")}})
        math = calculate_stats(data, today=AFTER_SEMESTER)["Math"]
        assert math.present == 1


class TestSubjectResolution:
    def test_override_subject_beats_timetable(self):
        settings = make_settings(subjects=("Math", "Physics"))
        data = make_data(settings, attendance={"2024-01-01": {0: SlotOverride(subject="Physics")}})
        result = calculate_stats(data, today=AFTER_SEMESTER)

        assert result["Physics"].total_semester_slots == 1
        assert result["Physics"].present == 1
        assert result["Math"].total_semester_slots == 0

    def test_free_override_excludes_slot(self):
        settings = make_settings(subjects=("Math", "Physics"))
        data = make_data(settings, attendance={"2024-01-01": {0: SlotOverride(subject="Free")}})
        result = calculate_stats(data, today=AFTER_SEMESTER)

        for s in result.values():
            assert s.total_semester_slots == 0
            assert s.total_conducted == 0

    def test_blank_override_excludes_slot(self):
        data = make_data(attendance={"2024-01-01": {0: SlotOverride(subject="")}})
        assert calculate_stats(data, today=AFTER_SEMESTER)["Math"].total_semester_slots == 0

    def test_status_only_override_keeps_timetable_subject(self):
        data = make_data(attendance={"2024-01-01": {0: SlotOverride(status="Absent")}})
        math = calculate_stats(data, today=AFTER_SEMESTER)["Math"]
        assert math.total_semester_slots == 1
        assert math.absent == 1

    def test_unknown_subject_is_skipped(self):
        data = make_data(attendance={"2024-01-01": {0: SlotOverride(subject="Biology")}})
        result = calculate_stats(data, today=AFTER_SEMESTER)

        assert "Biology" not in result
        assert result["Math"].total_semester_slots == 0

    def test_timetable_free_is_skipped(self):
        settings = make_settings(timetable={"Monday": {0: "Free", 1: "Math"}})
        math = calculate_stats(make_data(settings), today=AFTER_SEMESTER)["Math"]
        assert math.total_semester_slots == 1

    def test_no_timetable_uses_overrides_only(self):
        settings = make_settings(timetable=None)
        data = make_data(settings, attendance={"2024-01-01": {2: SlotOverride(subject="Math")}})
        math = calculate_stats(data, today=AFTER_SEMESTER)["Math"]

        assert math.total_semester_slots == 1
        assert math.present == 1

    def test_resolve_slot_subject(self):
        settings = make_settings()
        assert resolve_slot_subject(None, settings, "Monday", 0) == "Math"
        assert resolve_slot_subject(SlotOverride(status="Absent"), settings, "Monday", 0) == "Math"
        assert resolve_slot_subject(SlotOverride(subject=""), settings, "Monday", 0) == ""
        assert resolve_slot_subject(None, settings, "Tuesday", 0) is None
        assert resolve_slot_subject(None, settings, "Monday", 3) is None


class TestDayExclusion:
    def test_sunday_only_interval_is_empty(self):
        settings = make_settings(
            start="2024-01-07", end="2024-01-07",
            timetable={"Sunday": {0: "Math", 1: "Math", 2: "Math", 3: "Math"}},
        )
        data = make_data(settings, attendance={"2024-01-07": {0: SlotOverride(subject="Math", status="Absent")}})
        math = calculate_stats(data, today=AFTER_SEMESTER)["Math"]

        assert math.total_semester_slots == 0
        assert math.total_conducted == 0
        assert math.absent == 0

    def test_holiday_contributes_nothing(self):
        settings = make_settings(timetable={"Monday": {0: "Math", 1: "Math", 2: "Math", 3: "Math"}})
        data = make_data(settings, holidays=["2024-01-01"],
                         attendance={"2024-01-01": {1: SlotOverride(subject="Math")}})
        math = calculate_stats(data, today=AFTER_SEMESTER)["Math"]

        assert math.total_semester_slots == 0
        assert math.percentage == 0

    def test_week_skips_sunday_and_holiday(self):
        result = calculate_stats(make_week(holidays=["2024-01-03"]), today=AFTER_SEMESTER)
        assert result["Math"].total_semester_slots == 5
        assert result["Physics"].total_semester_slots == 5


class TestFutureSlots:
    def test_future_day_only_counts_toward_semester(self):
        data = make_data(attendance={"2024-01-01": {0: SlotOverride(status="Absent")}})
        math = calculate_stats(data, today=date(2023, 12, 31))["Math"]

        assert math.total_semester_slots == 1
        assert math.total_conducted == 0
        assert math.present == 0
        assert math.absent == 0

    def test_today_is_not_future(self):
        math = calculate_stats(make_data(), today=date(2024, 1, 1))["Math"]
        assert math.total_conducted == 1
        assert math.present == 1

    def test_partially_elapsed_week(self):
        math = calculate_stats(make_week(), today=date(2024, 1, 3))["Math"]

        assert math.total_semester_slots == 6
        assert math.total_conducted == 3
        assert math.present == 3
        assert math.percentage == 100.0
        assert math.safe_leaves == 1
        assert math.classes_to_attend == 0
        assert math.remaining_slots == 3

    def test_today_accepts_datetime_and_timestamp(self):
        math = calculate_stats(make_data(), today=datetime(2024, 1, 1, 15, 30))["Math"]
        assert math.total_conducted == 1

        math = calculate_stats(make_data(), today=pd.Timestamp("2023-12-31 09:00"))["Math"]
        assert math.total_conducted == 0
        assert math.total_semester_slots == 1

    def test_today_defaults_to_local_clock(self, monkeypatch):
        monkeypatch.setattr(stats_engine, "today_local", lambda: date(2023, 12, 31))
        math = calculate_stats(make_data())["Math"]
        assert math.total_conducted == 0
        assert math.total_semester_slots == 1


class TestDegenerateInputs:
    def test_missing_dates_return_zero_map(self):
        for start, end in [(None, "2024-01-01"), ("2024-01-01", ""), (None, None)]:
            settings = make_settings(start=start, end=end, subjects=("Math", "Physics"))
            result = calculate_stats(make_data(settings), today=AFTER_SEMESTER)

            assert list(result) == ["Math", "Physics"]
            for s in result.values():
                assert s == SubjectStats()
                assert not s.is_derived
                assert "percentage" not in s.as_dict()

    def test_start_after_end_returns_zero_map(self):
        settings = make_settings(start="2024-02-01", end="2024-01-01")
        math = calculate_stats(make_data(settings), today=AFTER_SEMESTER)["Math"]
        assert math == SubjectStats()

    def test_malformed_date_returns_zero_map(self, caplog):
        settings = make_settings(start="2024-13-45")
        with caplog.at_level(logging.WARNING, logger="engine.stats_engine"):
            math = calculate_stats(make_data(settings), today=AFTER_SEMESTER)["Math"]

        assert math == SubjectStats()
        assert "Unparseable semester range" in caplog.text

    def test_no_subjects(self):
        settings = make_settings(subjects=())
        assert calculate_stats(make_data(settings), today=AFTER_SEMESTER) == {}

    def test_parse_day(self):
        assert parse_day("2024-01-01") == date(2024, 1, 1)
        assert parse_day("") is None
        assert parse_day(None) is None
        assert parse_day("2024-02-30") is None


class TestInvariants:
    def test_unscheduled_subject_has_zero_defaults(self):
        settings = make_settings(subjects=("Math", "Art"))
        art = calculate_stats(make_data(settings), today=AFTER_SEMESTER)["Art"]

        assert art.total_semester_slots == 0
        assert art.percentage == 0
        assert art.safe_leaves == 0
        assert art.classes_to_attend == 0

    def test_counts_stay_consistent(self):
        attendance = {
            "2024-01-01": {0: SlotOverride(status="Absent"), 1: SlotOverride(subject="Math")},
            "2024-01-02": {1: SlotOverride(subject="Free")},
            "2024-01-05": {0: SlotOverride(subject="Physics", status="Absent")},
        }
        result = calculate_stats(make_week(attendance), today=date(2024, 1, 4))
        assert_consistent(result)

    def test_idempotent_and_inputs_untouched(self):
        data = make_week({"2024-01-02": {0: SlotOverride(status="Absent")}})
        snapshot = copy.deepcopy(data)

        first = calculate_stats(data, today=AFTER_SEMESTER)
        second = calculate_stats(data, today=AFTER_SEMESTER)

        assert first == second
        assert first is not second
        assert data == snapshot


class TestDeriveMetrics:
    def test_week_with_two_absences(self):
        attendance = {
            "2024-01-01": {0: SlotOverride(status="Absent")},
            "2024-01-02": {0: SlotOverride(status="Absent")},
        }
        math = calculate_stats(make_week(attendance), today=AFTER_SEMESTER)["Math"]

        assert math.present == 4
        assert math.absent == 2
        assert math.percentage == 66.67
        assert math.safe_leaves == 0
        assert math.classes_to_attend == 2

    def test_formulas(self):
        s = derive_metrics(
            SubjectStats(present=10, absent=5, total_conducted=15, total_semester_slots=40),
            Fraction(3, 4),
        )
        assert s.percentage == 66.67
        assert s.safe_leaves == 5
        assert s.classes_to_attend == 5

    def test_percentage_rounds_to_two_places(self):
        s = derive_metrics(SubjectStats(present=1, total_conducted=3, absent=2, total_semester_slots=3),
                           Fraction(3, 4))
        assert s.percentage == 33.33

    def test_percentage_ties_round_up(self):
        s = derive_metrics(SubjectStats(present=25, absent=7, total_conducted=32, total_semester_slots=40),
                           Fraction(3, 4))
        assert s.percentage == 78.13

        s = derive_metrics(SubjectStats(present=1, absent=31, total_conducted=32, total_semester_slots=32),
                           Fraction(3, 4))
        assert s.percentage == 3.13

    def test_custom_threshold(self):
        attendance = {
            "2024-01-01": {0: SlotOverride(status="Absent")},
            "2024-01-02": {0: SlotOverride(status="Absent")},
        }
        math = calculate_stats(make_week(attendance), today=AFTER_SEMESTER,
                               rule_config={"attendance_threshold": 0.5})["Math"]
        assert math.safe_leaves == 1
        assert math.classes_to_attend == 0

    def test_invalid_threshold_falls_back(self):
        assert resolve_threshold({"attendance_threshold": 1.5}) == Fraction(3, 4)
        assert resolve_threshold({"attendance_threshold": "abc"}) == Fraction(3, 4)
        assert resolve_threshold({"attendance_threshold": 0.6}) == Fraction(3, 5)
        assert resolve_threshold() == Fraction(3, 4)


if __name__ == "__main__":
    import pytest
    pytest.main([__file__, "-v"])
