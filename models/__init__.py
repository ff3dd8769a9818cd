from models.settings import SemesterSettings
from models.attendance import AttendanceData, SlotOverride
from models.stats import SubjectStats
