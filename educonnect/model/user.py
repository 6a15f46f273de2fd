from pydantic import EmailStr

from .base import WithCtime, WithTimestamps
from .enum import UserRole
from .id import UserID


class User(WithTimestamps):
    user_id: UserID
    email: EmailStr
    full_name: str
    role: UserRole
    password_hash: str | None = None

    employee_code: str | None = None
    student_code: str | None = None
    phone: str | None = None
    is_active: bool = True


class ParentStudentLink(WithCtime):
    parent_id: UserID
    student_id: UserID
    relationship: str | None = None
