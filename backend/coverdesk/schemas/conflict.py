from datetime import datetime
from enum import Enum
from typing import Literal, Optional, List

from pydantic import BaseModel, Field

from coverdesk.schemas.scheduling import TimeSlot


class ConflictType(str, Enum):
    time_overlap = "time_overlap"
    location_conflict = "location_conflict"
    instructor_conflict = "instructor_conflict"
    travel_time = "travel_time"


class ConflictSeverity(str, Enum):
    low = "low"
    medium = "medium"
    high = "high"
    critical = "critical"


class ConflictDetail(BaseModel):
    id: str
    conflict_type: ConflictType
    severity: ConflictSeverity
    slot1_id: str
    slot2_id: Optional[str] = None  # None for conflicts that involve a single slot
    description: str

    @property
    def affected_slots(self) -> List[str]:
        return [slot_id for slot_id in (self.slot1_id, self.slot2_id) if slot_id]


class ResolutionAction(BaseModel):
    action_type: Literal["move_slot", "change_room", "change_teacher", "extend_gap"]
    description: str
    target_slot_id: str
    parameters: dict  # e.g. {"min_gap_minutes": 15}


class ConflictSummary(BaseModel):
    total_conflicts: int = 0
    by_severity: dict[str, int] = Field(default_factory=dict)
    by_type: dict[str, int] = Field(default_factory=dict)


class ConflictReport(BaseModel):
    conflicts: List[ConflictDetail]
    suggested_resolutions: List[ResolutionAction] = Field(default_factory=list)
    summary: ConflictSummary = Field(default_factory=ConflictSummary)


class ConflictCheckRequest(BaseModel):
    slots: List[TimeSlot] = Field(max_length=2000)
    min_travel_minutes: Optional[int] = Field(default=None, ge=0, le=240)
    include_resolutions: bool = True


class ConflictOut(BaseModel):
    id: str
    timetable_id: str
    conflict_type: ConflictType
    severity: ConflictSeverity
    slot1_id: str
    slot2_id: Optional[str] = None
    description: str
    detected_at: datetime

    model_config = {"from_attributes": True}
