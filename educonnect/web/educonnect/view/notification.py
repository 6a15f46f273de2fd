"""View models for notifications."""

from __future__ import annotations

import typing as t

import annotated_types as ant
import pydantic as p

from educonnect.model import BaseModel, ClassID, UserRole


class ClassTarget(BaseModel):
    class_id: ClassID
    name: str


class TargetOptionsView(BaseModel):
    roles: list[UserRole]
    classes: list[ClassTarget]


class NotificationCreateRequest(BaseModel):
    title: t.Annotated[str, p.StringConstraints(strip_whitespace=True, min_length=1, max_length=200)]
    content: t.Annotated[str, p.StringConstraints(strip_whitespace=True, min_length=1)]
    image_url: t.Annotated[str, ant.MaxLen(500)] | None = None
    target_roles: t.Annotated[list[UserRole], ant.MinLen(1)]
    target_classes: list[ClassID] = []


class UnreadCountView(BaseModel):
    unread_count: int
