from __future__ import annotations

import datetime

import sqlalchemy as sqla

from educonnect.core import di
from educonnect.model import ClassID, Notification, NotificationID, UserID, UserNotification, UserRole

from . import Session
from .table import notification_reads, notifications, users


def get(
    notification_id: NotificationID,
    *,
    session: Session = di.Provide["storage.persistent.session"],
) -> Notification | None:
    stmt = sqla.select(notifications.__table__).where(notifications.notification_id == notification_id)
    row = session.execute(stmt).mappings().one_or_none()
    return Notification(**row) if row else None


def find_for_reader(
    reader_id: UserID,
    *,
    session: Session = di.Provide["storage.persistent.session"],
) -> tuple[UserNotification, ...]:
    """Active notifications with sender names and the reader's read state, newest first.

    Audience filtering is left to the caller.
    """
    read = sqla.select(notification_reads.notification_id).where(notification_reads.user_id == reader_id)
    stmt = (
        sqla.select(
            notifications.__table__,
            users.full_name.label("sender_name"),
            notifications.notification_id.in_(read).label("is_read"),
        )
        .join(users, users.user_id == notifications.sender_id)
        .where(notifications.is_active.is_(True))
        .order_by(notifications.create_time.desc())
    )
    return tuple(UserNotification(**row) for row in session.execute(stmt).mappings().all())


def create(
    *,
    title: str,
    content: str,
    sender_id: UserID,
    target_roles: list[UserRole],
    target_classes: list[ClassID],
    image_url: str | None = None,
    session: Session = di.Provide["storage.persistent.session"],
) -> Notification:
    notification = notifications(
        notification_id=NotificationID(),
        title=title,
        content=content,
        sender_id=sender_id,
        image_url=image_url,
        target_roles=[r.value for r in target_roles],
        target_classes=[str(c) for c in target_classes],
    )
    session.add(notification)
    session.flush()
    return get(notification.notification_id, session=session)  # type: ignore[return-value]


def mark_read(
    notification_id: NotificationID,
    user_id: UserID,
    *,
    read_at: datetime.datetime,
    session: Session = di.Provide["storage.persistent.session"],
) -> None:
    """Record that a user has read a notification; repeated calls are no-ops."""
    stmt = sqla.select(notification_reads.__table__).where(
        notification_reads.notification_id == notification_id,
        notification_reads.user_id == user_id,
    )
    if session.execute(stmt).first() is None:
        session.add(notification_reads(notification_id=notification_id, user_id=user_id, read_at=read_at))
        session.flush()
