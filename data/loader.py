"""Bundle parsing: JSON-shaped dicts and CSV/XLSX tables into typed models."""

import json
import logging
from typing import Dict, Iterable, List, Optional, Set, Tuple

import pandas as pd

from models.settings import SemesterSettings
from models.attendance import AttendanceData, SlotOverride
from config.defaults import DATE_FORMAT, SHEET_ALIASES, SLOTS_PER_DAY

logger = logging.getLogger(__name__)


def parse_slot_key(key) -> Optional[int]:
    """Slot index from an int or numeric string key; None when out of range."""
    try:
        slot = int(key)
    except (TypeError, ValueError):
        return None
    if not 0 <= slot < SLOTS_PER_DAY:
        return None
    return slot


def _normalize_date(value) -> Optional[str]:
    """YYYY-MM-DD for a date cell; strings must already be in that form."""
    if isinstance(value, str):
        parsed = pd.to_datetime(value.strip(), format=DATE_FORMAT, errors="coerce")
    else:
        parsed = pd.to_datetime(value, errors="coerce")
    if pd.isna(parsed):
        return None
    return parsed.strftime(DATE_FORMAT)


def _slot_items(slots, label: str):
    """(key, value) pairs from a slot mapping or a list indexed by slot."""
    if slots is None:
        return []
    if isinstance(slots, dict):
        return list(slots.items())
    if isinstance(slots, (list, tuple)):
        return list(enumerate(slots))
    logger.warning("Ignoring %s entry of type %s", label, type(slots).__name__)
    return []


def parse_timetable(raw: Optional[dict]) -> Optional[Dict[str, Dict[int, str]]]:
    """Convert {"Monday": {"0": "Math"}} into {"Monday": {0: "Math"}}."""
    if raw is None:
        return None
    timetable = {}
    for day_name, slots in raw.items():
        day_slots = {}
        for key, subject in _slot_items(slots, f"timetable {day_name}"):
            slot = parse_slot_key(key)
            if slot is None:
                logger.warning("Dropping timetable slot %r on %s", key, day_name)
                continue
            day_slots[slot] = subject
        timetable[str(day_name).strip()] = day_slots
    return timetable


def parse_settings(raw: Optional[dict]) -> SemesterSettings:
    """Convert the camelCase settings dict into SemesterSettings."""
    raw = raw or {}
    return SemesterSettings(
        semester_start=raw.get("semesterStart") or None,
        last_working_date=raw.get("lastWorkingDate") or None,
        subjects=list(raw.get("subjects") or []),
        timetable=parse_timetable(raw.get("timetable")),
    )


def parse_holidays(raw: Optional[Iterable[str]]) -> Set[str]:
    return {str(d).strip() for d in raw or []}


def parse_slot_override(raw: Optional[dict]) -> SlotOverride:
    """Keep field presence: a null subject is an explicit blank, a null status is unset."""
    if not isinstance(raw, dict):
        raw = {}
    subject = None
    if "subject" in raw:
        subject = raw["subject"] if raw["subject"] is not None else ""
    return SlotOverride(subject=subject, status=raw.get("status"))


def parse_attendance_log(raw: Optional[dict]) -> Dict[str, Dict[int, SlotOverride]]:
    """Convert {"2024-01-01": {"0": {"status": "Absent"}}} into typed overrides."""
    log = {}
    for day_str, slots in (raw or {}).items():
        day_overrides = {}
        for key, record in _slot_items(slots, f"attendance {day_str}"):
            slot = parse_slot_key(key)
            if slot is None:
                logger.warning("Dropping attendance slot %r on %s", key, day_str)
                continue
            day_overrides[slot] = parse_slot_override(record)
        log[str(day_str).strip()] = day_overrides
    return log


def load_bundle(raw: dict) -> AttendanceData:
    """Build AttendanceData from a {settings, holidays, attendance} dict."""
    return AttendanceData(
        settings=parse_settings(raw.get("settings")),
        holidays=parse_holidays(raw.get("holidays")),
        attendance=parse_attendance_log(raw.get("attendance")),
    )


def load_json_path(path: str) -> AttendanceData:
    """Load a bundle JSON file from a local path."""
    with open(path, encoding="utf-8") as fh:
        return load_bundle(json.load(fh))


# --- Tabular forms ---

TIMETABLE_REQUIRED_COLUMNS = ["Day", "Slot", "Subject"]
HOLIDAYS_REQUIRED_COLUMNS = ["Date"]
ATTENDANCE_REQUIRED_COLUMNS = ["Date", "Slot"]


def _require_columns(df: pd.DataFrame, required: List[str], label: str):
    missing = [col for col in required if col not in df.columns]
    if missing:
        raise ValueError(f"{label}: Missing required columns: {', '.join(missing)}")


def parse_timetable_df(df: pd.DataFrame) -> Dict[str, Dict[int, str]]:
    """Convert a Day/Slot/Subject DataFrame into a timetable mapping."""
    _require_columns(df, TIMETABLE_REQUIRED_COLUMNS, "Timetable")
    timetable = {}
    for _, row in df.iterrows():
        slot = parse_slot_key(row["Slot"]) if pd.notna(row["Slot"]) else None
        if slot is None or pd.isna(row["Subject"]):
            logger.warning("Skipping timetable row %s", row.to_dict())
            continue
        day_name = str(row["Day"]).strip()
        timetable.setdefault(day_name, {})[slot] = str(row["Subject"])
    return timetable


def parse_holidays_df(df: pd.DataFrame) -> Set[str]:
    """Convert a Date column into a set of YYYY-MM-DD strings."""
    _require_columns(df, HOLIDAYS_REQUIRED_COLUMNS, "Holidays")
    holidays = set()
    for value in df["Date"].dropna():
        day_str = _normalize_date(value)
        if day_str is None:
            logger.warning("Skipping unparseable holiday %r", value)
            continue
        holidays.add(day_str)
    return holidays


def parse_attendance_df(df: pd.DataFrame) -> Dict[str, Dict[int, SlotOverride]]:
    """Convert Date/Slot[/Subject/Status] rows into overrides.

    A blank Subject or Status cell means the field was not set.
    """
    _require_columns(df, ATTENDANCE_REQUIRED_COLUMNS, "Attendance")
    log = {}
    for _, row in df.iterrows():
        day_str = _normalize_date(row["Date"]) if pd.notna(row["Date"]) else None
        slot = parse_slot_key(row["Slot"]) if pd.notna(row["Slot"]) else None
        if day_str is None or slot is None:
            logger.warning("Skipping attendance row %s", row.to_dict())
            continue

        subject = None
        if "Subject" in df.columns and pd.notna(row.get("Subject")):
            subject = str(row["Subject"])
        status = None
        if "Status" in df.columns and pd.notna(row.get("Status")):
            status = str(row["Status"]).strip()

        log.setdefault(day_str, {})[slot] = SlotOverride(subject=subject, status=status)
    return log


def load_file(source) -> pd.DataFrame:
    """Load a CSV or XLSX path or uploaded file into a DataFrame."""
    name = str(getattr(source, "name", source)).lower()
    if name.endswith(".csv"):
        return pd.read_csv(source)
    elif name.endswith(".xlsx") or name.endswith(".xls"):
        return pd.read_excel(source, engine="openpyxl")
    else:
        raise ValueError(f"Unsupported file format: {name}. Use CSV or XLSX.")


def _match_sheet(sheet_names: List[str], category: str) -> str:
    """Find a sheet name matching the given category. Returns the matched name or raises."""
    aliases = SHEET_ALIASES[category]
    lower_map = {s.lower().strip(): s for s in sheet_names}
    for alias in aliases:
        if alias in lower_map:
            return lower_map[alias]
    raise ValueError(
        f"Could not find a sheet for '{category}'. "
        f"Expected one of: {aliases}. "
        f"Found sheets: {sheet_names}"
    )


def load_multi_sheet_excel(source) -> Tuple[pd.DataFrame, pd.DataFrame, pd.DataFrame]:
    """Load a single Excel file with 3 tabs: Timetable, Holidays, Attendance.

    Sheet names are matched case-insensitively against SHEET_ALIASES.

    Returns (timetable_df, holidays_df, attendance_df).
    """
    xl = pd.ExcelFile(source, engine="openpyxl")
    sheet_names = xl.sheet_names

    timetable_df = pd.read_excel(xl, sheet_name=_match_sheet(sheet_names, "timetable"))
    holidays_df = pd.read_excel(xl, sheet_name=_match_sheet(sheet_names, "holidays"))
    attendance_df = pd.read_excel(xl, sheet_name=_match_sheet(sheet_names, "attendance"))

    return timetable_df, holidays_df, attendance_df


def load_tables(
    settings: SemesterSettings,
    timetable_df: Optional[pd.DataFrame] = None,
    holidays_df: Optional[pd.DataFrame] = None,
    attendance_df: Optional[pd.DataFrame] = None,
) -> AttendanceData:
    """Assemble AttendanceData from tabular inputs; a given timetable replaces the settings one."""
    if timetable_df is not None:
        settings = SemesterSettings(
            semester_start=settings.semester_start,
            last_working_date=settings.last_working_date,
            subjects=list(settings.subjects),
            timetable=parse_timetable_df(timetable_df),
        )
    return AttendanceData(
        settings=settings,
        holidays=parse_holidays_df(holidays_df) if holidays_df is not None else set(),
        attendance=parse_attendance_df(attendance_df) if attendance_df is not None else {},
    )
