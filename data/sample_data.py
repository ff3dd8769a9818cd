"""Generate a synthetic attendance bundle for demos and tests."""

import json
import os
import random
from datetime import date, timedelta

import pandas as pd

from config.defaults import (
    DATE_FORMAT, FREE_SUBJECT, SLOTS_PER_DAY, STATUS_ABSENT, STATUS_PRESENT,
    SUNDAY_INDEX, WEEKDAY_NAMES,
)

SAMPLE_SUBJECTS = ["Mathematics", "Physics", "Chemistry", "English", "Computer Science"]
SAMPLE_START = date(2024, 1, 8)
SAMPLE_END = date(2024, 4, 27)
SAMPLE_HOLIDAYS = ["2024-01-26", "2024-03-08", "2024-03-25"]


def generate_timetable(seed: int = 42) -> dict:
    """Default timetable for Monday-Saturday; Saturday afternoons are free."""
    random.seed(seed)
    timetable = {}
    for name in WEEKDAY_NAMES[:SUNDAY_INDEX]:
        slots = {}
        for slot in range(SLOTS_PER_DAY):
            if name == "Saturday" and slot >= 2:
                slots[str(slot)] = FREE_SUBJECT
            else:
                slots[str(slot)] = random.choice(SAMPLE_SUBJECTS)
        timetable[name] = slots
    return timetable


def generate_attendance(seed: int = 42, mark_rate: float = 0.2) -> dict:
    """Random sparse overrides: mostly absences, a few subject swaps and free periods."""
    random.seed(seed)
    attendance = {}
    day = SAMPLE_START
    while day <= SAMPLE_END:
        day_str = day.strftime(DATE_FORMAT)
        if day.weekday() != SUNDAY_INDEX and day_str not in SAMPLE_HOLIDAYS:
            for slot in range(SLOTS_PER_DAY):
                if random.random() >= mark_rate:
                    continue
                roll = random.random()
                if roll < 0.6:
                    record = {"status": STATUS_ABSENT}
                elif roll < 0.8:
                    record = {"status": STATUS_PRESENT}
                elif roll < 0.9:
                    record = {"subject": random.choice(SAMPLE_SUBJECTS)}
                else:
                    record = {"subject": FREE_SUBJECT}
                attendance.setdefault(day_str, {})[str(slot)] = record
        day += timedelta(days=1)
    return attendance


def generate_sample_bundle(seed: int = 42) -> dict:
    """JSON-shaped {settings, holidays, attendance} bundle."""
    return {
        "settings": {
            "semesterStart": SAMPLE_START.strftime(DATE_FORMAT),
            "lastWorkingDate": SAMPLE_END.strftime(DATE_FORMAT),
            "subjects": list(SAMPLE_SUBJECTS),
            "timetable": generate_timetable(seed),
        },
        "holidays": list(SAMPLE_HOLIDAYS),
        "attendance": generate_attendance(seed),
    }


def bundle_to_dataframes(bundle: dict):
    """Flatten a bundle into (timetable_df, holidays_df, attendance_df)."""
    timetable_rows = [
        {"Day": day_name, "Slot": int(slot), "Subject": subject}
        for day_name, slots in bundle["settings"].get("timetable", {}).items()
        for slot, subject in slots.items()
    ]
    attendance_rows = [
        {
            "Date": day_str,
            "Slot": int(slot),
            "Subject": record.get("subject"),
            "Status": record.get("status"),
        }
        for day_str, slots in bundle.get("attendance", {}).items()
        for slot, record in slots.items()
    ]
    return (
        pd.DataFrame(timetable_rows, columns=["Day", "Slot", "Subject"]),
        pd.DataFrame({"Date": bundle.get("holidays", [])}),
        pd.DataFrame(attendance_rows, columns=["Date", "Slot", "Subject", "Status"]),
    )


def generate_sample_files(output_dir: str, seed: int = 42):
    """Write bundle.json plus timetable/holidays/attendance CSVs to the given directory."""
    os.makedirs(output_dir, exist_ok=True)
    bundle = generate_sample_bundle(seed)
    with open(os.path.join(output_dir, "bundle.json"), "w", encoding="utf-8") as fh:
        json.dump(bundle, fh, indent=2)

    timetable_df, holidays_df, attendance_df = bundle_to_dataframes(bundle)
    timetable_df.to_csv(os.path.join(output_dir, "timetable.csv"), index=False)
    holidays_df.to_csv(os.path.join(output_dir, "holidays.csv"), index=False)
    attendance_df.to_csv(os.path.join(output_dir, "attendance.csv"), index=False)


if __name__ == "__main__":
    out = os.path.join(os.path.dirname(__file__), "..", "sample_files")
    generate_sample_files(out)
    print("Sample bundle and CSV files generated in sample_files/")
