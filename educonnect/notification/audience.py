"""Who may address a notification to whom, and who gets to read it."""

from __future__ import annotations

import typing as t

from sqlalchemy.orm import Session

from educonnect.core import di
from educonnect.core.provider import LoggingProvider
from educonnect.model import BaseModel, ClassID, Notification, SchoolClass, User, UserNotification, UserRole
from educonnect.storage import notification as notification_storage
from educonnect.storage import schoolclass as class_storage


class TargetOptions(BaseModel):
    roles: list[UserRole]
    classes: list[SchoolClass]
    # only admins may address the whole school
    school_wide: bool = False

    def permits(self, roles: t.Iterable[UserRole], class_ids: t.Iterable[ClassID]) -> bool:
        allowed = {c.class_id for c in self.classes}
        targets = set(class_ids)
        if not targets and not self.school_wide:
            return False
        return set(roles) <= set(self.roles) and targets <= allowed


@di.inject
def target_options(
    sender: User,
    *,
    session: Session = di.Provide["storage.persistent.session"],
) -> TargetOptions:
    """The roles and classes a sender may address.

    Raises:
        PermissionError: if the sender is neither an admin nor a teacher
    """
    match sender.role:
        case UserRole.Admin:
            return TargetOptions(
                roles=[UserRole.Teacher, UserRole.Student, UserRole.Parent],
                classes=list(class_storage.find(is_active=True, session=session)),
                school_wide=True,
            )
        case UserRole.Teacher:
            class_ids = class_storage.class_ids_for_teacher(sender.user_id, session=session)
            classes = [c for c in class_storage.find(is_active=True, session=session) if c.class_id in class_ids]
            roles = [UserRole.Student]
            if class_storage.is_homeroom_teacher(sender.user_id, session=session):
                roles.append(UserRole.Parent)
            return TargetOptions(roles=roles, classes=classes)
        case _:
            raise PermissionError("Only admins and teachers can send notifications")


@di.inject
def reader_class_ids(
    reader: User,
    *,
    session: Session = di.Provide["storage.persistent.session"],
) -> set[ClassID]:
    """The classes through which a notification can reach a reader."""
    match reader.role:
        case UserRole.Student:
            return class_storage.class_ids_for_student(reader.user_id, session=session)
        case UserRole.Parent:
            return class_storage.class_ids_for_parent(reader.user_id, session=session)
        case UserRole.Teacher:
            return class_storage.class_ids_for_teacher(reader.user_id, session=session)
        case _:
            return set()


def is_visible(notification: Notification, reader: User, class_ids: t.Collection[ClassID]) -> bool:
    if not notification.is_active:
        return False
    if reader.role is UserRole.Admin or notification.sender_id == reader.user_id:
        return True
    if reader.role not in notification.target_roles:
        return False
    # no target classes means the whole school
    return not notification.target_classes or any(c in class_ids for c in notification.target_classes)


@di.inject
def find_visible(
    reader: User,
    *,
    session: Session = di.Provide["storage.persistent.session"],
) -> list[UserNotification]:
    """Notifications the reader can see, newest first."""
    class_ids = reader_class_ids(reader, session=session)
    return [
        n
        for n in notification_storage.find_for_reader(reader.user_id, session=session)
        if is_visible(n, reader, class_ids)
    ]


@di.inject
def send(
    sender: User,
    *,
    title: str,
    content: str,
    target_roles: t.Sequence[UserRole],
    target_classes: t.Sequence[ClassID] = (),
    image_url: str | None = None,
    session: Session = di.Provide["storage.persistent.session"],
    logging: LoggingProvider = di.Provide["logging"],
) -> Notification:
    """Create a notification after checking its audience against the sender's options.

    Raises:
        ValueError: if no target role is given
        PermissionError: if the sender may not address the given roles or classes
    """
    if not target_roles:
        raise ValueError("At least one target role is required")
    options = target_options(sender, session=session)
    if not options.permits(target_roles, target_classes):
        raise PermissionError("You cannot send notifications to the selected recipients")

    notification = notification_storage.create(
        title=title,
        content=content,
        sender_id=sender.user_id,
        target_roles=list(target_roles),
        target_classes=list(target_classes),
        image_url=image_url,
        session=session,
    )
    logging.get_logger().info(
        "sent notification",
        extra={
            "notification_id": notification.notification_id,
            "sender_id": sender.user_id,
            "target_roles": [r.value for r in target_roles],
            "target_classes": list(target_classes),
        },
    )
    return notification
