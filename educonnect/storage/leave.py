from __future__ import annotations

import datetime
import typing as t

import sqlalchemy as sqla

from educonnect.core import di
from educonnect.model import AcademicYearID, ClassID, LeaveApplication, LeaveApplicationDetail, LeaveID, LeaveStatus, \
    LeaveType, UserID

from . import Session
from .table import classes, leave_applications, users


class LeaveCreateParams(t.TypedDict, total=False):
    student_id: t.Required[UserID]
    parent_id: t.Required[UserID]
    class_id: t.Required[ClassID]
    academic_year_id: t.Required[AcademicYearID]
    homeroom_teacher_id: UserID | None
    leave_type: t.Required[LeaveType]
    start_date: t.Required[datetime.date]
    end_date: t.Required[datetime.date]
    reason: t.Required[str]
    attachment_url: str | None


def get(
    leave_id: LeaveID,
    *,
    session: Session = di.Provide["storage.persistent.session"],
) -> LeaveApplication | None:
    stmt = sqla.select(leave_applications.__table__).where(leave_applications.leave_id == leave_id)
    row = session.execute(stmt).mappings().one_or_none()
    return LeaveApplication(**row) if row else None


def find(
    *,
    parent_id: UserID | None = None,
    homeroom_teacher_id: UserID | None = None,
    status: LeaveStatus | None = None,
    session: Session = di.Provide["storage.persistent.session"],
) -> tuple[LeaveApplicationDetail, ...]:
    """Find applications with student and class names, newest first."""
    stmt = (
        sqla.select(
            leave_applications.__table__,
            users.full_name.label("student_name"),
            classes.name.label("class_name"),
        )
        .join(users, users.user_id == leave_applications.student_id)
        .join(classes, classes.class_id == leave_applications.class_id)
    )
    if parent_id is not None:
        stmt = stmt.where(leave_applications.parent_id == parent_id)
    if homeroom_teacher_id is not None:
        stmt = stmt.where(leave_applications.homeroom_teacher_id == homeroom_teacher_id)
    if status is not None:
        stmt = stmt.where(leave_applications.status == status)
    stmt = stmt.order_by(leave_applications.create_time.desc(), leave_applications.start_date.desc())
    return tuple(LeaveApplicationDetail(**row) for row in session.execute(stmt).mappings().all())


def create(
    params: LeaveCreateParams,
    *,
    session: Session = di.Provide["storage.persistent.session"],
) -> LeaveApplication:
    if params["end_date"] < params["start_date"]:
        raise ValueError("end_date must not precede start_date")
    application = leave_applications(leave_id=LeaveID(), **params)
    session.add(application)
    session.flush()
    return get(application.leave_id, session=session)  # type: ignore[return-value]


def respond(
    leave_id: LeaveID,
    *,
    status: LeaveStatus,
    teacher_response: str | None,
    responded_at: datetime.datetime,
    session: Session = di.Provide["storage.persistent.session"],
) -> LeaveApplication:
    """Record the homeroom teacher's answer to a pending application.

    Raises:
        KeyError: If leave_id does not correspond to a pending application
    """
    stmt = (
        sqla.update(leave_applications)
        .where(leave_applications.leave_id == leave_id, leave_applications.status == LeaveStatus.Pending)
        .values(status=status, teacher_response=teacher_response, responded_at=responded_at)
    )
    if session.execute(stmt).rowcount == 0:  # pyright: ignore[reportAttributeAccessIssue]
        raise KeyError(f"Pending leave application {leave_id} not found")
    session.flush()
    return get(leave_id, session=session)  # type: ignore[return-value]
