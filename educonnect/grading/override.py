"""Teacher grade changes and the approval gate for exam components.

A change to a regular component is applied at once and logged as approved.
A change to a midterm or final grade is only logged, as pending; the grade
itself changes when an admin approves the audit row.
"""

from __future__ import annotations

import typing as t

import sqlalchemy.exc
from sqlalchemy.orm import Session

from educonnect.core import di
from educonnect.core.provider import LoggingProvider, TimestampProvider
from educonnect.model import AuditStatus, BaseModel, ComponentType, Grade, GradeOverride, User, UserID
from educonnect.storage import audit as audit_storage
from educonnect.storage import grade as grade_storage

PendingReason = "No reason provided"
RegularReason = "Regular grade - automatically approved"


class GradeOverrideError(Exception):
    """An override could not be applied; earlier overrides stay applied."""

    def __init__(self, student_name: str, message: str | None = None) -> None:
        self.student_name = student_name
        super().__init__(message or f"Failed to process override for {student_name}")


class OverrideOutcome(BaseModel):
    success: bool = True
    message: str
    override_count: int


class GradeEntry(BaseModel):
    """A value a teacher entered for one component of one student's grade."""

    student_id: UserID
    student_name: str
    component_type: ComponentType
    grade_value: float | None
    reason: str | None = None


def detect_overrides(
    stored: t.Iterable[Grade], entries: t.Iterable[GradeEntry]
) -> tuple[list[GradeEntry], list[GradeOverride]]:
    """Split entries into direct writes and overrides of stored values.

    An entry overrides a grade when the component already holds a value and
    the entry differs from it. Entries matching the stored value are dropped.
    """
    by_key = {(g.student_id, g.component_type): g for g in stored}
    writes: list[GradeEntry] = []
    overrides: list[GradeOverride] = []
    for entry in entries:
        grade = by_key.get((entry.student_id, entry.component_type))
        if grade is None or grade.grade_value is None:
            if entry.grade_value is not None:
                writes.append(entry)
            continue
        if entry.grade_value == grade.grade_value:
            continue
        overrides.append(
            GradeOverride(
                grade_id=grade.grade_id,
                student_id=entry.student_id,
                student_name=entry.student_name,
                component_type=entry.component_type,
                old_value=grade.grade_value,
                new_value=entry.grade_value,
                reason=entry.reason,
            )
        )
    return writes, overrides


def _outcome_message(regular: int, pending: int) -> str:
    if regular and pending:
        return f"{regular} regular updated and {pending} pending approval"
    if pending:
        return f"{pending} pending approval"
    return f"{regular} regular updated"


@di.inject
def process_overrides(
    overrides: t.Sequence[GradeOverride],
    actor: User | None,
    *,
    session: Session = di.Provide["storage.persistent.session"],
    utcnow: TimestampProvider = di.Provide["utcnow"],
    logging: LoggingProvider = di.Provide["logging"],
) -> OverrideOutcome:
    """Apply a batch of grade overrides, committing each one on its own.

    Raises:
        PermissionError: if there is no authenticated actor
        ValueError: if there is nothing to process
        GradeOverrideError: at the first override that fails
    """
    logger = logging.get_logger()
    if actor is None:
        raise PermissionError("User not authenticated")
    if not overrides:
        raise ValueError("No changes to process")

    regular = pending = 0
    for override in overrides:
        try:
            with session.begin():
                now = utcnow()
                if override.component_type.requires_approval:
                    if grade_storage.get(override.grade_id, session=session) is None:
                        raise KeyError(f"Grade {override.grade_id} not found")
                    audit_storage.create(
                        grade_id=override.grade_id,
                        old_value=override.old_value,
                        new_value=override.new_value,
                        change_reason=override.reason or PendingReason,
                        changed_by=actor.user_id,
                        changed_at=now,
                        status=AuditStatus.Pending,
                        session=session,
                    )
                    pending += 1
                else:
                    grade_storage.set_value(override.grade_id, override.new_value, session=session)
                    audit_storage.create(
                        grade_id=override.grade_id,
                        old_value=override.old_value,
                        new_value=override.new_value,
                        change_reason=override.reason or RegularReason,
                        changed_by=actor.user_id,
                        changed_at=now,
                        status=AuditStatus.Approved,
                        processed_at=now,
                        processed_by=actor.user_id,
                        session=session,
                    )
                    regular += 1
        except (KeyError, sqlalchemy.exc.SQLAlchemyError) as e:
            logger.warning(
                "grade override failed",
                extra={
                    "grade_id": override.grade_id,
                    "student_id": override.student_id,
                    "component_type": override.component_type,
                    "error": str(e),
                },
            )
            raise GradeOverrideError(override.student_name) from e

    logger.info(
        "processed grade overrides",
        extra={
            "actor": actor.user_id,
            "regular": regular,
            "pending": pending,
        },
    )
    return OverrideOutcome(message=_outcome_message(regular, pending), override_count=len(overrides))
