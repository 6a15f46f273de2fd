"""Grade audit log rows."""

from __future__ import annotations

import datetime
import typing as t

import sqlalchemy as sqla
from sqlalchemy.orm import aliased

from educonnect.core import di
from educonnect.model import AuditID, AuditStatus, GradeAuditDetail, GradeAuditLog, GradeID, UserID

from . import Session
from .table import classes, grade_audit_logs, grades, subjects, users


def get(
    audit_id: AuditID,
    *,
    session: Session = di.Provide["storage.persistent.session"],
) -> GradeAuditLog | None:
    stmt = sqla.select(grade_audit_logs.__table__).where(grade_audit_logs.audit_id == audit_id)
    row = session.execute(stmt).mappings().one_or_none()
    return GradeAuditLog(**row) if row else None


def find_by_grades(
    grade_ids: t.Sequence[GradeID],
    *,
    session: Session = di.Provide["storage.persistent.session"],
) -> tuple[GradeAuditLog, ...]:
    """Audit rows of the given grades, newest first."""
    if not grade_ids:
        return ()
    stmt = (
        sqla.select(grade_audit_logs.__table__)
        .where(grade_audit_logs.grade_id.in_(grade_ids))
        .order_by(grade_audit_logs.changed_at.desc())
    )
    return tuple(GradeAuditLog(**row) for row in session.execute(stmt).mappings().all())


def find_detail(
    *,
    status: AuditStatus | None = None,
    session: Session = di.Provide["storage.persistent.session"],
) -> tuple[GradeAuditDetail, ...]:
    """Audit rows with the names an approver needs, newest first."""
    student = aliased(users)
    teacher = aliased(users)
    stmt = (
        sqla.select(
            grade_audit_logs.__table__,
            grades.component_type,
            grades.student_id,
            student.full_name.label("student_name"),
            subjects.name.label("subject_name"),
            classes.name.label("class_name"),
            teacher.full_name.label("teacher_name"),
        )
        .join(grades, grades.grade_id == grade_audit_logs.grade_id)
        .join(student, student.user_id == grades.student_id)
        .join(subjects, subjects.subject_id == grades.subject_id)
        .join(classes, classes.class_id == grades.class_id)
        .join(teacher, teacher.user_id == grade_audit_logs.changed_by)
    )
    if status is not None:
        stmt = stmt.where(grade_audit_logs.status == status)
    stmt = stmt.order_by(grade_audit_logs.changed_at.desc())
    return tuple(GradeAuditDetail(**row) for row in session.execute(stmt).mappings().all())


def create(
    *,
    grade_id: GradeID,
    old_value: float | None,
    new_value: float | None,
    change_reason: str,
    changed_by: UserID,
    changed_at: datetime.datetime,
    status: AuditStatus,
    processed_at: datetime.datetime | None = None,
    processed_by: UserID | None = None,
    session: Session = di.Provide["storage.persistent.session"],
) -> GradeAuditLog:
    audit = grade_audit_logs(
        audit_id=AuditID(),
        grade_id=grade_id,
        change_reason=change_reason,
        changed_by=changed_by,
        changed_at=changed_at,
        status=status,
        old_value=old_value,
        new_value=new_value,
        processed_at=processed_at,
        processed_by=processed_by,
    )
    session.add(audit)
    session.flush()
    return get(audit.audit_id, session=session)  # type: ignore[return-value]


def process(
    audit_id: AuditID,
    *,
    status: AuditStatus,
    admin_reason: str,
    processed_by: UserID,
    processed_at: datetime.datetime,
    session: Session = di.Provide["storage.persistent.session"],
) -> GradeAuditLog:
    """Record an admin decision on a pending audit row.

    Raises:
        KeyError: If audit_id does not correspond to a pending audit row
    """
    stmt = (
        sqla.update(grade_audit_logs)
        .where(grade_audit_logs.audit_id == audit_id, grade_audit_logs.status == AuditStatus.Pending)
        .values(status=status, admin_reason=admin_reason, processed_by=processed_by, processed_at=processed_at)
    )
    if session.execute(stmt).rowcount == 0:  # pyright: ignore[reportAttributeAccessIssue]
        raise KeyError(f"Pending audit {audit_id} not found")
    session.flush()
    return get(audit_id, session=session)  # type: ignore[return-value]
