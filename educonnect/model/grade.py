import datetime

from .base import BaseModel, WithTimestamps
from .enum import AuditStatus, ComponentType
from .id import AuditID, ClassID, GradeID, SemesterID, SubjectID, UserID


class Grade(WithTimestamps):
    grade_id: GradeID
    student_id: UserID
    class_id: ClassID
    subject_id: SubjectID
    semester_id: SemesterID
    component_type: ComponentType
    grade_value: float | None = None


class GradeOverride(BaseModel):
    """A teacher's proposed change to a stored, non-empty grade."""

    grade_id: GradeID
    student_id: UserID
    student_name: str
    component_type: ComponentType
    old_value: float | None = None
    new_value: float | None = None
    reason: str | None = None


class GradeAuditLog(BaseModel):
    audit_id: AuditID
    grade_id: GradeID
    old_value: float | None = None
    new_value: float | None = None
    change_reason: str
    changed_by: UserID
    changed_at: datetime.datetime
    status: AuditStatus
    admin_reason: str | None = None
    processed_at: datetime.datetime | None = None
    processed_by: UserID | None = None


class GradeAuditDetail(GradeAuditLog):
    """An audit row with the names an approver needs to judge it."""

    component_type: ComponentType
    student_id: UserID
    student_name: str
    subject_name: str
    class_name: str
    teacher_name: str


class GradeWithHistory(Grade):
    audits: list[GradeAuditLog] = []
