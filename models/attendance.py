from dataclasses import dataclass, field
from typing import Dict, Optional, Set

from models.settings import SemesterSettings


@dataclass
class SlotOverride:
    # None means the field was never set; "" is an explicit blank subject
    subject: Optional[str] = None
    status: Optional[str] = None   # "Present", "Absent"

    @property
    def overrides_subject(self) -> bool:
        return self.subject is not None


@dataclass
class AttendanceData:
    settings: SemesterSettings
    holidays: Set[str] = field(default_factory=set)
    # date string -> slot index -> override
    attendance: Dict[str, Dict[int, SlotOverride]] = field(default_factory=dict)

    def overrides_for(self, day_str: str) -> Dict[int, SlotOverride]:
        return self.attendance.get(day_str) or {}
