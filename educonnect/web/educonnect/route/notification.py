"""Notification routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from educonnect import notification as audience
from educonnect.auth import AuthContext, get_current_user
from educonnect.core import di
from educonnect.core.provider import TimestampProvider
from educonnect.model import Notification, NotificationID, UserNotification
from educonnect.storage import notification as notification_storage

from ..view.envelope import Envelope, Message
from ..view.notification import ClassTarget, NotificationCreateRequest, TargetOptionsView, UnreadCountView

router = APIRouter(prefix="/api/notifications", tags=["notifications"])


@router.get("/target-options", operation_id="get_notification_target_options")
@di.inject
def get_target_options(
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> Envelope[TargetOptionsView]:
    """The roles and classes the current user may address."""
    with session.begin():
        try:
            options = audience.target_options(auth.user, session=session)
        except PermissionError as e:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e)) from None
    return Envelope(
        data=TargetOptionsView(
            roles=options.roles,
            classes=[ClassTarget(class_id=c.class_id, name=c.name) for c in options.classes],
        )
    )


@router.post("", operation_id="create_notification", status_code=status.HTTP_201_CREATED)
@di.inject
def create_notification(
    request: NotificationCreateRequest,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> Envelope[Notification]:
    with session.begin():
        try:
            notification = audience.send(
                auth.user,
                title=request.title,
                content=request.content,
                target_roles=request.target_roles,
                target_classes=request.target_classes,
                image_url=request.image_url,
                session=session,
            )
        except PermissionError as e:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e)) from None
        except ValueError as e:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from None
    return Envelope(data=notification)


@router.get("", operation_id="list_notifications")
@di.inject
def list_notifications(
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> Envelope[list[UserNotification]]:
    """Notifications visible to the current user, newest first."""
    with session.begin():
        return Envelope(data=audience.find_visible(auth.user, session=session))


@router.get("/unread-count", operation_id="count_unread_notifications")
@di.inject
def count_unread(
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> Envelope[UnreadCountView]:
    with session.begin():
        visible = audience.find_visible(auth.user, session=session)
    return Envelope(data=UnreadCountView(unread_count=sum(1 for n in visible if not n.is_read)))


@router.post("/{notification_id}/read", operation_id="mark_notification_read")
@di.inject
def mark_read(
    notification_id: NotificationID,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
    utcnow: TimestampProvider = Depends(di.Provide["utcnow"]),
) -> Envelope[Message]:
    """Mark a notification as read; marking it again changes nothing."""
    with session.begin():
        notification = notification_storage.get(notification_id, session=session)
        class_ids = audience.reader_class_ids(auth.user, session=session)
        if notification is None or not audience.is_visible(notification, auth.user, class_ids):
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Notification not found")
        notification_storage.mark_read(notification_id, auth.user_id, read_at=utcnow(), session=session)
    return Envelope(data=Message(message="Notification marked as read"))
