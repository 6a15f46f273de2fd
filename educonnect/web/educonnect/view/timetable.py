"""View models for timetable endpoints."""

from __future__ import annotations

import datetime
import typing as t

import annotated_types as ant
import pydantic as p

from educonnect.model import AcademicYearID, BaseModel, ClassID, ClassroomID, ConflictType, RoomType, SemesterID, \
    SlotID, SubjectID, UserID

DayOfWeek = t.Annotated[int, ant.Ge(0), ant.Le(6)]
WeekNumber = t.Annotated[int, ant.Ge(1), ant.Le(52)]
Notes = t.Annotated[str, ant.MaxLen(500)]


class SlotCreateRequest(BaseModel):
    class_id: ClassID
    subject_id: SubjectID
    teacher_id: UserID
    classroom_id: ClassroomID
    semester_id: SemesterID
    day_of_week: DayOfWeek
    start_time: datetime.time
    end_time: datetime.time
    week_number: WeekNumber
    notes: Notes | None = None

    @p.model_validator(mode="after")
    def check_times(self) -> t.Self:
        if self.end_time <= self.start_time:
            raise ValueError("End time must be after start time")
        return self


class SlotUpdateRequest(BaseModel):
    class_id: ClassID | None = None
    subject_id: SubjectID | None = None
    teacher_id: UserID | None = None
    classroom_id: ClassroomID | None = None
    semester_id: SemesterID | None = None
    day_of_week: DayOfWeek | None = None
    start_time: datetime.time | None = None
    end_time: datetime.time | None = None
    week_number: WeekNumber | None = None
    notes: Notes | None = None

    # changing any of these can create a double booking
    SchedulingFields: t.ClassVar[frozenset[str]] = frozenset({
        "teacher_id",
        "classroom_id",
        "semester_id",
        "day_of_week",
        "start_time",
        "week_number",
    })

    @property
    def reschedules(self) -> bool:
        return bool(self.SchedulingFields & self.model_fields_set)


class ConflictCheckRequest(BaseModel):
    classroom_id: ClassroomID
    teacher_id: UserID
    day_of_week: DayOfWeek
    start_time: datetime.time
    week_number: WeekNumber
    semester_id: SemesterID
    exclude_slot_id: SlotID | None = None


class ConflictCheckView(BaseModel):
    has_conflict: bool
    conflict_type: ConflictType | None = None
    message: str | None = None


class ClassOption(BaseModel):
    class_id: ClassID
    name: str


class SubjectOption(BaseModel):
    subject_id: SubjectID
    code: str
    name: str
    category: str | None = None


class TeacherOption(BaseModel):
    user_id: UserID
    full_name: str
    employee_code: str | None = None


class ClassroomOption(BaseModel):
    classroom_id: ClassroomID
    name: str
    building: str | None = None
    capacity: int
    room_type: RoomType


class SemesterOption(BaseModel):
    semester_id: SemesterID
    academic_year_id: AcademicYearID
    name: str


class TimetableOptions(BaseModel):
    classes: list[ClassOption]
    subjects: list[SubjectOption]
    teachers: list[TeacherOption]
    classrooms: list[ClassroomOption]
    semesters: list[SemesterOption]
