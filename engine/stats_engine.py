"""Attendance aggregation: walk the semester day by day, then derive metrics."""

import logging
import math
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal
from fractions import Fraction
from typing import Dict, Optional

import pandas as pd

from models.attendance import AttendanceData, SlotOverride
from models.settings import SemesterSettings
from models.stats import SubjectStats
from config.defaults import (
    ATTENDANCE_THRESHOLD, DATE_FORMAT, FREE_SUBJECT, PERCENT_DECIMALS,
    SLOTS_PER_DAY, STATUS_ABSENT, SUNDAY_INDEX, WEEKDAY_NAMES,
)

logger = logging.getLogger(__name__)


def today_local() -> date:
    """Current local calendar day.

    Wrapped so tests can patch it.
    """
    return date.today()


def parse_day(value: Optional[str]) -> Optional[date]:
    """Parse a YYYY-MM-DD string; None for empty or malformed input."""
    if not value:
        return None
    parsed = pd.to_datetime(value, format=DATE_FORMAT, errors="coerce")
    if pd.isna(parsed):
        return None
    return parsed.date()


def resolve_threshold(rule_config: Optional[dict] = None) -> Fraction:
    """Attendance threshold as an exact fraction, falling back to the default."""
    cfg = rule_config or {}
    raw = cfg.get("attendance_threshold", ATTENDANCE_THRESHOLD)
    try:
        threshold = Fraction(str(raw))
    except (TypeError, ValueError):
        threshold = None
    if threshold is None or not 0 < threshold < 1:
        logger.warning("Invalid attendance threshold %r, using %s", raw, ATTENDANCE_THRESHOLD)
        threshold = Fraction(str(ATTENDANCE_THRESHOLD))
    return threshold


def init_stats(settings: SemesterSettings) -> Dict[str, SubjectStats]:
    """Zero-initialized record for every configured subject."""
    return {subject: SubjectStats() for subject in settings.subjects}


def resolve_slot_subject(
    override: Optional[SlotOverride],
    settings: SemesterSettings,
    weekday_name: str,
    slot: int,
) -> Optional[str]:
    """User override wins whenever its subject field is set, even to blank or Free."""
    if override is not None and override.overrides_subject:
        return override.subject
    return settings.default_subject(weekday_name, slot)


def tally_slots(
    data: AttendanceData,
    stats: Dict[str, SubjectStats],
    start: date,
    end: date,
    today: date,
) -> Dict[str, SubjectStats]:
    """Count semester, conducted, present and absent slots per subject in place."""
    holidays = set(data.holidays or ())
    days_scanned = 0
    slots_counted = 0

    for ts in pd.date_range(pd.Timestamp(start), pd.Timestamp(end), freq="D"):
        day = ts.date()
        day_str = day.strftime(DATE_FORMAT)

        if day.weekday() == SUNDAY_INDEX or day_str in holidays:
            continue
        days_scanned += 1

        is_future = day > today
        weekday_name = WEEKDAY_NAMES[day.weekday()]
        day_overrides = data.overrides_for(day_str)

        for slot in range(SLOTS_PER_DAY):
            override = day_overrides.get(slot)
            subject = resolve_slot_subject(override, data.settings, weekday_name, slot)

            if not subject or subject == FREE_SUBJECT or subject not in stats:
                continue

            s = stats[subject]
            s.total_semester_slots += 1
            slots_counted += 1

            if is_future:
                continue

            s.total_conducted += 1
            status = override.status if override is not None else None
            # Unmarked past slots count as attended
            if status == STATUS_ABSENT:
                s.absent += 1
            else:
                s.present += 1

    logger.debug(
        "Scanned %d working days between %s and %s, %d subject slots counted",
        days_scanned, start, end, slots_counted,
    )
    return stats


def derive_metrics(stats: SubjectStats, threshold: Fraction) -> SubjectStats:
    """Fill percentage, safe leaves and classes to attend on a tallied record."""
    if stats.total_conducted > 0:
        # Ties round up, taken on the exact decimal value of the float
        ratio = Decimal(stats.present / stats.total_conducted * 100)
        stats.percentage = float(ratio.quantize(Decimal(1).scaleb(-PERCENT_DECIMALS), rounding=ROUND_HALF_UP))
    else:
        stats.percentage = 0

    # Absences the whole semester can absorb while staying at the threshold
    max_absents_allowed = math.floor(stats.total_semester_slots * (1 - threshold))
    stats.safe_leaves = max(0, max_absents_allowed - stats.absent)

    # Smallest x with (present + x) / (conducted + x) >= threshold
    needed = math.ceil((threshold * stats.total_conducted - stats.present) / (1 - threshold))
    stats.classes_to_attend = max(0, needed)
    return stats


def calculate_stats(
    data: AttendanceData,
    today: Optional[date] = None,
    rule_config: Optional[dict] = None,
) -> Dict[str, SubjectStats]:
    """Per-subject attendance stats for the semester described by ``data``.

    Never raises for missing data. A missing or unparseable date range, or a
    start after the end, returns the zero-initialized map with derived fields
    left as None.
    """
    settings = data.settings
    stats = init_stats(settings)

    if not settings.has_date_range:
        return stats

    start = parse_day(settings.semester_start)
    end = parse_day(settings.last_working_date)
    if start is None or end is None:
        logger.warning(
            "Unparseable semester range %r to %r, returning empty stats",
            settings.semester_start, settings.last_working_date,
        )
        return stats
    if start > end:
        return stats

    if today is None:
        today = today_local()
    elif isinstance(today, datetime):
        today = today.date()
    threshold = resolve_threshold(rule_config)

    tally_slots(data, stats, start, end, today)
    for s in stats.values():
        derive_metrics(s, threshold)
    return stats
