"""Generates human-readable explanations for subject attendance stats."""

import math
from typing import List, Optional

from models.stats import SubjectStats
from engine.stats_engine import resolve_threshold


def explain_subject_stats(
    subject: str,
    stats: SubjectStats,
    rule_config: Optional[dict] = None,
) -> List[str]:
    """Produce step-by-step explanation for a subject's derived metrics."""
    if not stats.is_derived:
        return [f"{subject}: No semester range configured, nothing was counted."]

    threshold = resolve_threshold(rule_config)
    steps = []

    steps.append(
        f"Step 1 - Classes held: {stats.total_conducted} of {stats.total_semester_slots} "
        f"semester slots so far ({stats.present} present, {stats.absent} absent)"
    )

    if stats.total_conducted == 0:
        steps.append("Step 2 - Percentage: No classes held yet => 0%")
    else:
        steps.append(
            f"Step 2 - Percentage: {stats.present} / {stats.total_conducted} "
            f"=> {stats.percentage:.2f}% against a {float(threshold):.0%} requirement"
        )

    max_absents = math.floor(stats.total_semester_slots * (1 - threshold))
    steps.append(
        f"Step 3 - Absence budget: {float(1 - threshold):.0%} of {stats.total_semester_slots} "
        f"slots => {max_absents} absences allowed this semester"
    )

    steps.append(
        f"Step 4 - Safe leaves: {max_absents} allowed - {stats.absent} taken "
        f"=> {stats.safe_leaves} remaining"
    )

    if stats.classes_to_attend > 0:
        steps.append(
            f"Step 5 - Recovery: Attend the next {stats.classes_to_attend} classes in a row "
            f"to get back to {float(threshold):.0%}"
        )
    else:
        steps.append(f"Step 5 - Recovery: At or above {float(threshold):.0%}, nothing to recover")

    if stats.classes_to_attend > stats.remaining_slots:
        steps.append(
            f"Note: Only {stats.remaining_slots} slots remain this semester, "
            f"the requirement can no longer be met"
        )

    return steps
