"""View models for lesson feedback and AI summaries."""

from __future__ import annotations

import typing as t

import annotated_types as ant

from educonnect.llm import FeedbackItem
from educonnect.model import BaseModel, SemesterID, SlotID, UserID

Rating = t.Annotated[int, ant.Ge(1), ant.Le(5)]


class FeedbackCreateRequest(BaseModel):
    student_id: UserID
    slot_id: SlotID
    rating: Rating
    feedback_text: t.Annotated[str, ant.MaxLen(1000)] | None = None


class SaveTarget(BaseModel):
    """Where a generated summary is stored."""

    student_id: UserID
    day_of_week: t.Annotated[int, ant.Ge(0), ant.Le(6)]
    semester_id: SemesterID
    week_number: t.Annotated[int, ant.Ge(1), ant.Le(52)]


class SummarizeRequest(BaseModel):
    feedback: list[FeedbackItem]
    student_name: str
    date: str
    save_to_database: SaveTarget | None = None
    include_progress_tracking: bool = False


class SummarizeResponse(BaseModel):
    summary: str
    original_feedback_count: int
    student_name: str
    date: str
    saved_to_database: bool
