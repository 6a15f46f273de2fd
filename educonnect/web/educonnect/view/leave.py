"""View models for leave applications."""

from __future__ import annotations

import datetime
import typing as t

import annotated_types as ant
import pydantic as p

from educonnect.model import BaseModel, LeaveStatus, LeaveType, UserID


class LeaveCreateRequest(BaseModel):
    student_id: UserID
    leave_type: LeaveType
    start_date: datetime.date
    end_date: datetime.date
    reason: t.Annotated[str, p.StringConstraints(strip_whitespace=True, min_length=1, max_length=1000)]
    attachment_url: t.Annotated[str, ant.MaxLen(500)] | None = None

    @p.model_validator(mode="after")
    def check_dates(self) -> t.Self:
        if self.end_date < self.start_date:
            raise ValueError("end_date must not precede start_date")
        return self


class LeaveResponseRequest(BaseModel):
    status: LeaveStatus
    teacher_response: t.Annotated[str, ant.MaxLen(1000)] | None = None

    @p.field_validator("status")
    @classmethod
    def check_decided(cls, v: LeaveStatus) -> LeaveStatus:
        if v is LeaveStatus.Pending:
            raise ValueError("status must be approved or rejected")
        return v
