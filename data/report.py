"""Tabular per-subject stats report."""

from typing import Dict, Optional

import pandas as pd

from models.stats import SubjectStats
from engine.stats_engine import resolve_threshold
from config.defaults import (
    STATUS_BORDERLINE, STATUS_NO_CLASSES, STATUS_SAFE, STATUS_SHORTFALL,
)

REPORT_COLUMNS = [
    "Subject",
    "Present",
    "Absent",
    "Conducted",
    "Semester Slots",
    "Percentage",
    "Safe Leaves",
    "Classes To Attend",
    "Status",
]


def classify_subject(stats: SubjectStats, rule_config: Optional[dict] = None) -> str:
    """Standing of a subject against the attendance threshold."""
    if stats.total_conducted == 0:
        return STATUS_NO_CLASSES
    threshold = resolve_threshold(rule_config)
    if stats.present < threshold * stats.total_conducted:
        return STATUS_SHORTFALL
    if not stats.safe_leaves:
        return STATUS_BORDERLINE
    return STATUS_SAFE


def stats_to_dataframe(
    stats: Dict[str, SubjectStats],
    rule_config: Optional[dict] = None,
) -> pd.DataFrame:
    """One row per subject, in the order the subjects were configured."""
    rows = []
    for subject, s in stats.items():
        rows.append({
            "Subject": subject,
            "Present": s.present,
            "Absent": s.absent,
            "Conducted": s.total_conducted,
            "Semester Slots": s.total_semester_slots,
            "Percentage": s.percentage if s.is_derived else 0,
            "Safe Leaves": s.safe_leaves if s.is_derived else 0,
            "Classes To Attend": s.classes_to_attend if s.is_derived else 0,
            "Status": classify_subject(s, rule_config),
        })
    return pd.DataFrame(rows, columns=REPORT_COLUMNS)


def write_report_csv(stats: Dict[str, SubjectStats], path: str, rule_config: Optional[dict] = None):
    stats_to_dataframe(stats, rule_config).to_csv(path, index=False)
