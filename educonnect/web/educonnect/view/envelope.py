"""The JSON envelope every API response travels in."""

from __future__ import annotations

import typing as t

from educonnect.model import BaseModel
from educonnect.storage.page import Page

T = t.TypeVar("T")


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int

    @classmethod
    def of(cls, page: Page[t.Any]) -> Pagination:
        return cls(page=page.page, limit=page.limit, total=page.total, total_pages=page.total_pages)


class Envelope(BaseModel, t.Generic[T]):
    success: bool = True
    data: T | None = None
    error: str | None = None
    pagination: Pagination | None = None


class ErrorEnvelope(BaseModel):
    success: bool = False
    error: str


class Message(BaseModel):
    message: str
