"""Admin decisions on pending grade audits."""

from __future__ import annotations

from sqlalchemy.orm import Session

from educonnect.core import di
from educonnect.core.provider import LoggingProvider, TimestampProvider
from educonnect.model import AuditID, AuditStatus, GradeAuditLog, User
from educonnect.storage import audit as audit_storage
from educonnect.storage import grade as grade_storage


class AuditNotPendingError(Exception):
    def __init__(self, audit: GradeAuditLog) -> None:
        self.audit = audit
        super().__init__(f"Audit has already been {audit.status.value}")


def _pending(audit_id: AuditID, session: Session) -> GradeAuditLog:
    audit = audit_storage.get(audit_id, session=session)
    if audit is None:
        raise KeyError(f"Audit {audit_id} not found")
    if audit.status is not AuditStatus.Pending:
        raise AuditNotPendingError(audit)
    return audit


@di.inject
def approve_audit(
    audit_id: AuditID,
    admin: User,
    reason: str | None = None,
    *,
    session: Session = di.Provide["storage.persistent.session"],
    utcnow: TimestampProvider = di.Provide["utcnow"],
    logging: LoggingProvider = di.Provide["logging"],
) -> GradeAuditLog:
    """Approve a pending audit and apply its new value to the grade.

    The caller owns the transaction.

    Raises:
        KeyError: if the audit or its grade does not exist
        AuditNotPendingError: if the audit was already decided
    """
    audit = _pending(audit_id, session)
    grade_storage.set_value(audit.grade_id, audit.new_value, session=session)
    processed = audit_storage.process(
        audit_id,
        status=AuditStatus.Approved,
        admin_reason=(reason or "").strip() or "Approved",
        processed_by=admin.user_id,
        processed_at=utcnow(),
        session=session,
    )
    logging.get_logger().info(
        "approved grade audit",
        extra={
            "audit_id": audit_id,
            "grade_id": audit.grade_id,
            "new_value": audit.new_value,
            "admin": admin.user_id,
        },
    )
    return processed


@di.inject
def reject_audit(
    audit_id: AuditID,
    admin: User,
    reason: str,
    *,
    session: Session = di.Provide["storage.persistent.session"],
    utcnow: TimestampProvider = di.Provide["utcnow"],
    logging: LoggingProvider = di.Provide["logging"],
) -> GradeAuditLog:
    """Reject a pending audit, restoring the grade to its old value.

    The caller owns the transaction.

    Raises:
        ValueError: if the reason is blank
        KeyError: if the audit or its grade does not exist
        AuditNotPendingError: if the audit was already decided
    """
    if not reason.strip():
        raise ValueError("A reason is required to reject a grade change")
    audit = _pending(audit_id, session)
    grade_storage.set_value(audit.grade_id, audit.old_value, session=session)
    processed = audit_storage.process(
        audit_id,
        status=AuditStatus.Rejected,
        admin_reason=reason.strip(),
        processed_by=admin.user_id,
        processed_at=utcnow(),
        session=session,
    )
    logging.get_logger().info(
        "rejected grade audit",
        extra={
            "audit_id": audit_id,
            "grade_id": audit.grade_id,
            "old_value": audit.old_value,
            "admin": admin.user_id,
        },
    )
    return processed
