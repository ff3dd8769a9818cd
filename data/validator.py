"""Schema validation for attendance bundles."""

from collections import Counter
from dataclasses import dataclass, field
from typing import List

from models.attendance import AttendanceData
from models.settings import SemesterSettings
from engine.stats_engine import parse_day
from config.defaults import (
    FREE_SUBJECT, SLOTS_PER_DAY, SUNDAY_INDEX, VALID_STATUSES, WEEKDAY_NAMES,
)


@dataclass
class ValidationResult:
    is_valid: bool = True
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    def error(self, message: str):
        self.is_valid = False
        self.errors.append(message)

    def merge(self, other: "ValidationResult") -> "ValidationResult":
        self.is_valid = self.is_valid and other.is_valid
        self.errors.extend(other.errors)
        self.warnings.extend(other.warnings)
        return self


def validate_settings(settings: SemesterSettings) -> ValidationResult:
    result = ValidationResult()

    if not settings.has_date_range:
        result.warnings.append(
            "Settings: Semester start or last working date is not set. "
            "All subject stats will be empty."
        )
    else:
        start = parse_day(settings.semester_start)
        end = parse_day(settings.last_working_date)
        if start is None:
            result.error(f"Settings: Semester start '{settings.semester_start}' is not a YYYY-MM-DD date.")
        if end is None:
            result.error(f"Settings: Last working date '{settings.last_working_date}' is not a YYYY-MM-DD date.")
        if start and end and start > end:
            result.error(
                f"Settings: Semester start {settings.semester_start} is after "
                f"last working date {settings.last_working_date}."
            )

    if not settings.subjects:
        result.warnings.append("Settings: No subjects configured.")

    dupes = sorted(s for s, n in Counter(settings.subjects).items() if n > 1)
    if dupes:
        result.error(f"Settings: Duplicate subjects: {', '.join(dupes)}")

    if FREE_SUBJECT in settings.subjects:
        result.error(f"Settings: '{FREE_SUBJECT}' is reserved for empty slots and cannot be a subject.")

    return result


def validate_timetable(settings: SemesterSettings) -> ValidationResult:
    result = ValidationResult()
    if not settings.timetable:
        return result

    known = set(settings.subjects)
    unknown_subjects = set()

    for day_name, slots in settings.timetable.items():
        if day_name not in WEEKDAY_NAMES:
            result.error(f"Timetable: Unknown weekday '{day_name}'. Use full English names.")
            continue
        if day_name == WEEKDAY_NAMES[SUNDAY_INDEX] and slots:
            result.warnings.append("Timetable: Sunday entries are ignored, Sundays never count.")
        for slot, subject in slots.items():
            if not isinstance(slot, int) or not 0 <= slot < SLOTS_PER_DAY:
                result.error(f"Timetable: {day_name} slot {slot!r} is outside 0-{SLOTS_PER_DAY - 1}.")
            elif subject and subject != FREE_SUBJECT and subject not in known:
                unknown_subjects.add(subject)

    if unknown_subjects:
        result.warnings.append(
            f"Timetable: Subjects not in the subject list: {', '.join(sorted(unknown_subjects))}. "
            "These slots will be ignored."
        )
    return result


def validate_attendance_log(data: AttendanceData) -> ValidationResult:
    result = ValidationResult()
    settings = data.settings
    known = set(settings.subjects)
    holidays = set(data.holidays or ())
    start = parse_day(settings.semester_start)
    end = parse_day(settings.last_working_date)

    bad_statuses = set()
    unknown_subjects = set()
    ignored_days = []

    for day_str, slots in data.attendance.items():
        day = parse_day(day_str)
        if day is None:
            result.error(f"Attendance: '{day_str}' is not a YYYY-MM-DD date.")
            continue

        if (start and day < start) or (end and day > end):
            ignored_days.append(day_str)
        elif day.weekday() == SUNDAY_INDEX or day_str in holidays:
            ignored_days.append(day_str)

        for slot, override in slots.items():
            if not isinstance(slot, int) or not 0 <= slot < SLOTS_PER_DAY:
                result.error(f"Attendance: {day_str} slot {slot!r} is outside 0-{SLOTS_PER_DAY - 1}.")
                continue
            if override.status is not None and override.status not in VALID_STATUSES:
                bad_statuses.add(str(override.status))
            if override.subject and override.subject != FREE_SUBJECT and override.subject not in known:
                unknown_subjects.add(override.subject)

    if bad_statuses:
        result.warnings.append(
            f"Attendance: Unrecognized statuses {', '.join(sorted(bad_statuses))}. "
            "These slots count as present."
        )
    if unknown_subjects:
        result.warnings.append(
            f"Attendance: Subjects not in the subject list: {', '.join(sorted(unknown_subjects))}. "
            "These slots will be ignored."
        )
    if ignored_days:
        result.warnings.append(
            f"Attendance: Entries outside the semester or on Sundays/holidays are ignored: "
            f"{', '.join(sorted(ignored_days))}"
        )
    return result


def validate_bundle(data: AttendanceData) -> ValidationResult:
    """Run every check on a full bundle."""
    result = validate_settings(data.settings)
    result.merge(validate_timetable(data.settings))
    result.merge(validate_attendance_log(data))
    return result
