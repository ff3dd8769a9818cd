from dataclasses import dataclass, field
from typing import Dict, List, Optional


@dataclass
class SemesterSettings:
    semester_start: Optional[str] = None      # "YYYY-MM-DD", inclusive
    last_working_date: Optional[str] = None   # "YYYY-MM-DD", inclusive
    subjects: List[str] = field(default_factory=list)
    # weekday name -> slot index -> subject; may be partial or missing
    timetable: Optional[Dict[str, Dict[int, str]]] = None

    @property
    def has_date_range(self) -> bool:
        return bool(self.semester_start) and bool(self.last_working_date)

    def default_subject(self, weekday_name: str, slot: int) -> Optional[str]:
        """Subject the default timetable assigns to a weekday slot, if any."""
        if not self.timetable:
            return None
        return (self.timetable.get(weekday_name) or {}).get(slot)
