"""View models for school structure endpoints."""

from __future__ import annotations

import datetime
import typing as t

import annotated_types as ant
import pydantic as p

from educonnect.model import AcademicYearID, BaseModel, RoomType, SemesterID, SubjectID, UserID

ClassroomName = t.Annotated[str, p.StringConstraints(strip_whitespace=True, pattern=r"^[\w\- ]{1,50}$")]
Building = t.Annotated[str, ant.MaxLen(50)]
Floor = t.Annotated[int, ant.Ge(1), ant.Le(20)]
Capacity = t.Annotated[int, ant.Ge(1), ant.Le(200)]


class _DateRange(BaseModel):
    start_date: datetime.date
    end_date: datetime.date

    @p.model_validator(mode="after")
    def check_dates(self) -> t.Self:
        if self.end_date < self.start_date:
            raise ValueError("end_date must not precede start_date")
        return self


class AcademicYearCreateRequest(_DateRange):
    name: t.Annotated[str, ant.MinLen(1), ant.MaxLen(50)]
    is_current: bool = False


class AcademicYearUpdateRequest(BaseModel):
    name: t.Annotated[str, ant.MinLen(1), ant.MaxLen(50)] | None = None
    start_date: datetime.date | None = None
    end_date: datetime.date | None = None
    is_current: bool | None = None


class SemesterCreateRequest(_DateRange):
    academic_year_id: AcademicYearID
    name: t.Annotated[str, ant.MinLen(1), ant.MaxLen(50)]
    is_active: bool = True


class SemesterUpdateRequest(BaseModel):
    name: t.Annotated[str, ant.MinLen(1), ant.MaxLen(50)] | None = None
    start_date: datetime.date | None = None
    end_date: datetime.date | None = None
    is_active: bool | None = None


class SubjectCreateRequest(BaseModel):
    code: t.Annotated[str, ant.MinLen(1), ant.MaxLen(20)]
    name: t.Annotated[str, ant.MinLen(1), ant.MaxLen(100)]
    category: str | None = None


class SubjectUpdateRequest(BaseModel):
    code: t.Annotated[str, ant.MinLen(1), ant.MaxLen(20)] | None = None
    name: t.Annotated[str, ant.MinLen(1), ant.MaxLen(100)] | None = None
    category: str | None = None
    is_active: bool | None = None


class ClassroomCreateRequest(BaseModel):
    name: ClassroomName
    building: Building | None = None
    floor: Floor | None = None
    capacity: Capacity = 40
    room_type: RoomType = RoomType.Standard
    equipment: list[str] = []


class ClassroomUpdateRequest(BaseModel):
    name: ClassroomName | None = None
    building: Building | None = None
    floor: Floor | None = None
    capacity: Capacity | None = None
    room_type: RoomType | None = None
    equipment: list[str] | None = None
    is_active: bool | None = None


class ClassCreateRequest(BaseModel):
    name: t.Annotated[str, ant.MinLen(1), ant.MaxLen(50)]
    academic_year_id: AcademicYearID
    semester_id: SemesterID
    homeroom_teacher_id: UserID | None = None


class ClassUpdateRequest(BaseModel):
    name: t.Annotated[str, ant.MinLen(1), ant.MaxLen(50)] | None = None
    semester_id: SemesterID | None = None
    homeroom_teacher_id: UserID | None = None
    is_active: bool | None = None


class EnrollRequest(BaseModel):
    student_id: UserID


class AssignTeacherRequest(BaseModel):
    teacher_id: UserID
    subject_id: SubjectID
