"""View models for authentication and user endpoints."""

from __future__ import annotations

import datetime
import typing as t

import annotated_types as ant
import pydantic as p
from pydantic import EmailStr

from educonnect.model import BaseModel, User, UserID, UserRole


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_at: datetime.datetime


class UserView(BaseModel):
    """A user as shown to clients; the password hash never leaves the server."""

    user_id: UserID
    email: EmailStr
    full_name: str
    role: UserRole
    employee_code: str | None = None
    student_code: str | None = None
    phone: str | None = None
    is_active: bool
    create_time: datetime.datetime

    @classmethod
    def of(cls, user: User) -> UserView:
        return cls(**user.model_dump(exclude={"password_hash", "update_time"}))


class LoginResponse(BaseModel):
    user: UserView
    token: TokenResponse


class UserCreateRequest(BaseModel):
    email: EmailStr
    full_name: t.Annotated[str, ant.MinLen(1), ant.MaxLen(100)]
    role: UserRole
    password: t.Annotated[p.SecretStr, ant.MinLen(8)]
    employee_code: str | None = None
    student_code: str | None = None
    phone: str | None = None


class UserUpdateRequest(BaseModel):
    email: EmailStr | None = None
    full_name: t.Annotated[str, ant.MinLen(1), ant.MaxLen(100)] | None = None
    password: t.Annotated[p.SecretStr, ant.MinLen(8)] | None = None
    employee_code: str | None = None
    student_code: str | None = None
    phone: str | None = None
    is_active: bool | None = None


class ParentLinkRequest(BaseModel):
    student_id: UserID
    relationship: str | None = None
