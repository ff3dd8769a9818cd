"""Default configuration constants for the Semester Attendance Tracker."""

# Display labels for the four daily slots (not used in calculations)
SLOT_TIMES = (
    "8:00 – 10:00",
    "10:00 – 12:00",
    "1:00 – 3:00",
    "3:00 – 5:00",
)
SLOTS_PER_DAY = len(SLOT_TIMES)

# Sentinel subject meaning "no class in this slot"
FREE_SUBJECT = "Free"

# Override statuses
STATUS_PRESENT = "Present"
STATUS_ABSENT = "Absent"
VALID_STATUSES = (STATUS_PRESENT, STATUS_ABSENT)

# Weekday names indexed by date.weekday() (Monday=0)
WEEKDAY_NAMES = (
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
    "Sunday",
)
SUNDAY_INDEX = 6

DATE_FORMAT = "%Y-%m-%d"

# Minimum attendance ratio required per subject
ATTENDANCE_THRESHOLD = 0.75

# Decimal places kept on the attendance percentage
PERCENT_DECIMALS = 2

# Report status labels
STATUS_SAFE = "Safe"
STATUS_BORDERLINE = "Borderline"
STATUS_SHORTFALL = "Shortfall"
STATUS_NO_CLASSES = "No Classes"

# Expected sheet names for multi-tab Excel imports (case-insensitive matching)
SHEET_ALIASES = {
    "timetable": ["timetable", "time table", "default timetable", "schedule"],
    "holidays": ["holidays", "holiday", "holiday list"],
    "attendance": ["attendance", "attendance log", "overrides", "log"],
}
