from .base import WithTimestamps
from .enum import UserRole
from .id import ClassID, NotificationID, UserID


class Notification(WithTimestamps):
    notification_id: NotificationID
    title: str
    content: str
    image_url: str | None = None
    sender_id: UserID
    target_roles: list[UserRole]
    # empty means every class
    target_classes: list[ClassID] = []
    is_active: bool = True


class UserNotification(Notification):
    sender_name: str
    is_read: bool = False
