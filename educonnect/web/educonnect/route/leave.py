"""Leave applications: parents apply, homeroom teachers respond."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from educonnect.auth import AuthContext, get_current_user, require_parent, require_teacher
from educonnect.core import di
from educonnect.core.provider import TimestampProvider
from educonnect.model import LeaveApplication, LeaveApplicationDetail, LeaveID, LeaveStatus, UserRole
from educonnect.storage import leave as leave_storage
from educonnect.storage import schoolclass as class_storage
from educonnect.storage import user as user_storage

from ..view.envelope import Envelope
from ..view.leave import LeaveCreateRequest, LeaveResponseRequest

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/leave", tags=["leave"])


@router.post("", operation_id="create_leave_application", status_code=status.HTTP_201_CREATED)
@di.inject
def create_application(
    request: LeaveCreateRequest,
    auth: AuthContext = Depends(require_parent),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> Envelope[LeaveApplication]:
    """Apply for leave on behalf of a linked student."""
    with session.begin():
        if user_storage.get_link(auth.user_id, request.student_id, session=session) is None:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="You can only apply for leave for your own children",
            )
        enrollment = class_storage.get_active_enrollment(request.student_id, session=session)
        klass = class_storage.get(enrollment.class_id, session=session) if enrollment else None
        if enrollment is None or klass is None:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Student is not currently assigned to any class",
            )
        application = leave_storage.create(
            {
                "student_id": request.student_id,
                "parent_id": auth.user_id,
                "class_id": klass.class_id,
                "academic_year_id": enrollment.academic_year_id,
                "homeroom_teacher_id": klass.homeroom_teacher_id,
                "leave_type": request.leave_type,
                "start_date": request.start_date,
                "end_date": request.end_date,
                "reason": request.reason,
                "attachment_url": request.attachment_url,
            },
            session=session,
        )

    logger.info(
        "created leave application",
        extra={
            "leave_id": application.leave_id,
            "student_id": application.student_id,
            "homeroom_teacher_id": application.homeroom_teacher_id,
        },
    )
    return Envelope(data=application)


@router.get("", operation_id="list_leave_applications")
@di.inject
def list_applications(
    status_: LeaveStatus | None = Query(None, alias="status"),
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> Envelope[list[LeaveApplicationDetail]]:
    """A parent's own applications, or those addressed to a homeroom teacher."""
    match auth.role:
        case UserRole.Parent:
            scope = {"parent_id": auth.user_id}
        case UserRole.Teacher:
            scope = {"homeroom_teacher_id": auth.user_id}
        case UserRole.Admin:
            scope = {}
        case _:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Role '{auth.role.value}' not authorized for this resource",
            )
    with session.begin():
        found = leave_storage.find(**scope, status=status_, session=session)
    return Envelope(data=list(found))


@router.post("/{leave_id}/respond", operation_id="respond_leave_application")
@di.inject
def respond(
    leave_id: LeaveID,
    request: LeaveResponseRequest,
    auth: AuthContext = Depends(require_teacher),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
    utcnow: TimestampProvider = Depends(di.Provide["utcnow"]),
) -> Envelope[LeaveApplication]:
    """Approve or reject an application as its homeroom teacher."""
    with session.begin():
        application = leave_storage.get(leave_id, session=session)
        if application is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Leave application not found")
        if application.homeroom_teacher_id != auth.user_id:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Only the homeroom teacher can respond to this application",
            )
        if application.status is not LeaveStatus.Pending:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=f"Leave application has already been {application.status.value}",
            )
        application = leave_storage.respond(
            leave_id,
            status=request.status,
            teacher_response=request.teacher_response,
            responded_at=utcnow(),
            session=session,
        )

    logger.info(
        "responded to leave application",
        extra={
            "leave_id": leave_id,
            "status": request.status.value,
            "teacher_id": auth.user_id,
        },
    )
    return Envelope(data=application)
