"""Parent-facing summaries of a student's lesson feedback."""

from __future__ import annotations

import logging
import typing as t

import jinja2
from langchain_core.language_models import BaseChatModel
from langchain_core.messages import HumanMessage, SystemMessage

from educonnect.model import BaseModel, FeedbackID

logger = logging.getLogger(__name__)

# averages must move at least this far between weeks to be worth mentioning
ProgressThreshold: t.Final = 0.5

RatingLabels: t.Final = {
    5: "Excellent",
    4: "Good",
    3: "Average",
    2: "Needs improvement",
}


class SummaryError(Exception):
    def __init__(self, message: str = "Failed to generate AI summary") -> None:
        super().__init__(message)


class FeedbackItem(BaseModel):
    feedback_id: FeedbackID
    subject_name: str
    teacher_name: str
    rating: int
    comment: str | None = None


def rating_label(rating: int) -> str:
    return RatingLabels.get(rating, "Poor")


def _average(ratings: t.Sequence[int]) -> float:
    return sum(ratings) / len(ratings)


def progress_note(current: t.Sequence[int], previous: t.Sequence[int]) -> str | None:
    """Describe a week-over-week change in average rating, if it is notable."""
    if not current or not previous:
        return None
    now, before = _average(current), _average(previous)
    delta = now - before
    if delta >= ProgressThreshold:
        return (
            f"The average rating improved from {before:.1f} last week to {now:.1f} this week. "
            "Praise this progress."
        )
    if delta <= -ProgressThreshold:
        return (
            f"The average rating dropped from {before:.1f} last week to {now:.1f} this week. "
            "This needs the family's attention."
        )
    return None


async def summarize_feedback(
    items: t.Sequence[FeedbackItem],
    *,
    student_name: str,
    date: str,
    model: BaseChatModel,
    env: jinja2.Environment,
    progress: str | None = None,
) -> str:
    """Summarize a day's feedback in one or two sentences for parents.

    Raises:
        ValueError: if there is no feedback to summarize
        SummaryError: if the model fails or returns nothing
    """
    if not items:
        raise ValueError("No feedback to summarize")

    template = env.get_template("feedback/summarize.j2")
    prompt = template.render(
        student_name=student_name,
        date=date,
        items=[{**item.model_dump(), "label": rating_label(item.rating)} for item in items],
        progress=progress,
    )

    system_message = SystemMessage(
        content=(
            "You are a homeroom teacher writing a short, warm note to parents about their child's school day. "
            "Respond with the note only."
        )
    )
    human_message = HumanMessage(content=prompt)

    try:
        response = await model.ainvoke([system_message, human_message])
    except Exception as e:
        logger.exception("summary model call failed", extra={"student_name": student_name, "date": date})
        raise SummaryError() from e

    summary = _get_content_str(response.content).strip()
    if not summary:
        logger.warning("summary model returned no text", extra={"student_name": student_name, "date": date})
        raise SummaryError()

    logger.info(
        "generated feedback summary",
        extra={
            "student_name": student_name,
            "date": date,
            "feedback_count": len(items),
            "with_progress": progress is not None,
        },
    )
    return summary


def _get_content_str(content: t.Any) -> str:
    """Extract string content from a LangChain message content field."""
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        content_list = t.cast(list[t.Any], content)
        parts: list[str] = []
        for item in content_list:
            if isinstance(item, str):
                parts.append(item)
            elif isinstance(item, dict) and item.get("type") == "text":
                parts.append(str(item.get("text", "")))
        return " ".join(parts)
    return str(content)
