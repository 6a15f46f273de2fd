"""View models for grade entry, overrides and audits."""

from __future__ import annotations

import typing as t

import annotated_types as ant

from educonnect.model import BaseModel, ClassID, ComponentType, Grade, GradeID, GradeOverride, SemesterID, SubjectID, \
    UserID

GradeValue = t.Annotated[float, ant.Ge(0), ant.Le(10)]


class GradeEntryItem(BaseModel):
    student_id: UserID
    student_name: str
    component_type: ComponentType
    grade_value: GradeValue | None = None
    reason: str | None = None


class GradeEntryRequest(BaseModel):
    semester_id: SemesterID
    class_id: ClassID
    subject_id: SubjectID
    entries: list[GradeEntryItem]


class GradeEntryResponse(BaseModel):
    """Values written directly, and the changes that need to go through overrides."""

    written: list[Grade]
    overrides: list[GradeOverride]


class OverrideItem(BaseModel):
    grade_id: GradeID
    student_id: UserID
    student_name: str
    component_type: ComponentType
    old_value: GradeValue | None = None
    new_value: GradeValue | None = None
    reason: str | None = None


class OverridesRequest(BaseModel):
    overrides: list[OverrideItem]


class AuditDecisionRequest(BaseModel):
    reason: str | None = None
