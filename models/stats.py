from dataclasses import dataclass
from typing import Optional


@dataclass
class SubjectStats:
    present: int = 0
    absent: int = 0
    total_conducted: int = 0        # past and today only
    total_semester_slots: int = 0   # whole interval, future included
    # Derived fields stay None until the derivation phase runs
    percentage: Optional[float] = None
    safe_leaves: Optional[int] = None
    classes_to_attend: Optional[int] = None

    @property
    def is_derived(self) -> bool:
        return self.percentage is not None

    @property
    def remaining_slots(self) -> int:
        """Slots still to be held after today."""
        return self.total_semester_slots - self.total_conducted

    def as_dict(self) -> dict:
        """External camelCase shape; derived keys only once computed."""
        out = {
            "present": self.present,
            "absent": self.absent,
            "totalConducted": self.total_conducted,
            "totalSemesterSlots": self.total_semester_slots,
        }
        if self.is_derived:
            out["percentage"] = self.percentage
            out["safeLeaves"] = self.safe_leaves
            out["classesToAttend"] = self.classes_to_attend
        return out
