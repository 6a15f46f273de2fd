import datetime
import enum
import typing as t

import pydantic as p

from .base import BaseModel, WithTimestamps
from .id import ClassID, ClassroomID, SemesterID, SlotID, SubjectID, UserID

# lesson times are minute-precision and travel as "HH:MM"
ClockTime = t.Annotated[
    datetime.time,
    p.PlainSerializer(lambda v: v.strftime("%H:%M"), return_type=str, when_used="json"),
]


class TimetableSlot(WithTimestamps):
    slot_id: SlotID
    class_id: ClassID
    subject_id: SubjectID
    teacher_id: UserID
    classroom_id: ClassroomID
    semester_id: SemesterID
    day_of_week: int
    start_time: ClockTime
    end_time: ClockTime
    week_number: int
    notes: str | None = None


class TimetableSlotDetail(TimetableSlot):
    """A slot with the display names of everything it references."""

    class_name: str
    subject_name: str
    subject_code: str
    teacher_name: str
    classroom_name: str
    semester_name: str


class ConflictType(enum.Enum):
    Classroom = "classroom"
    Teacher = "teacher"

    @property
    def message(self) -> str:
        match self:
            case ConflictType.Classroom:
                return "Classroom is already booked at this time"
            case ConflictType.Teacher:
                return "Teacher is already assigned at this time"


class ConflictCheck(BaseModel):
    has_conflict: bool
    conflict_type: ConflictType | None = None

    @property
    def message(self) -> str | None:
        return self.conflict_type.message if self.conflict_type else None
