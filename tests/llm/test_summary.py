"""Tests for educonnect.llm.summary module."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, MagicMock

import jinja2
import pytest
from langchain_core.messages import AIMessage, HumanMessage, SystemMessage

from educonnect.llm import FeedbackItem, progress_note, rating_label, summarize_feedback, SummaryError
from educonnect.model import FeedbackID


def _items() -> list[FeedbackItem]:
    return [
        FeedbackItem(
            feedback_id=FeedbackID(),
            subject_name="Mathematics",
            teacher_name="Nguyen Thi Lan",
            rating=5,
            comment="Solved every exercise",
        ),
        FeedbackItem(feedback_id=FeedbackID(), subject_name="Physics", teacher_name="Tran Van Nam", rating=2),
    ]


def _model(content: object) -> MagicMock:
    model = MagicMock()
    model.ainvoke = AsyncMock(return_value=AIMessage(content=content))  # pyright: ignore[reportArgumentType]
    return model


class TestRatingLabel(object):
    @pytest.mark.parametrize(
        "rating,label",
        [(5, "Excellent"), (4, "Good"), (3, "Average"), (2, "Needs improvement"), (1, "Poor")],
    )
    def test_labels(self, rating: int, label: str) -> None:
        assert rating_label(rating) == label


class TestProgressNote(object):
    def test_improvement(self) -> None:
        note = progress_note([5, 5], [3, 4])

        assert note is not None
        assert "improved from 3.5 last week to 5.0 this week" in note

    def test_decline(self) -> None:
        note = progress_note([2, 3], [4, 4])

        assert note is not None
        assert "dropped from 4.0 last week to 2.5 this week" in note

    def test_small_change_is_not_notable(self) -> None:
        assert progress_note([4, 4], [4, 3, 4]) is None

    def test_needs_both_weeks(self) -> None:
        assert progress_note([5], []) is None
        assert progress_note([], [5]) is None


class TestSummarizeFeedback(object):
    def test_renders_prompt_and_returns_model_text(self, llm_env: jinja2.Environment) -> None:
        model = _model("  An had a strong day in maths; a little physics revision at home would help.  ")

        summary = asyncio.run(
            summarize_feedback(_items(), student_name="Le Minh An", date="19/10/2026", model=model, env=llm_env)
        )

        assert summary == "An had a strong day in maths; a little physics revision at home would help."
        model.ainvoke.assert_called_once()
        messages = model.ainvoke.call_args[0][0]
        assert isinstance(messages[0], SystemMessage)
        assert isinstance(messages[1], HumanMessage)
        prompt = messages[1].content
        assert "Le Minh An" in prompt
        assert "19/10/2026" in prompt
        assert "Mathematics (Nguyen Thi Lan): Excellent (5/5)" in prompt
        assert '"Solved every exercise"' in prompt
        assert "Physics (Tran Van Nam): Needs improvement (2/5)" in prompt
        assert "Progress since last week" not in prompt

    def test_progress_is_included(self, llm_env: jinja2.Environment) -> None:
        model = _model("Great progress this week.")

        asyncio.run(
            summarize_feedback(
                _items(),
                student_name="Le Minh An",
                date="19/10/2026",
                model=model,
                env=llm_env,
                progress="The average rating improved.",
            )
        )

        prompt = model.ainvoke.call_args[0][0][1].content
        assert "Progress since last week: The average rating improved." in prompt
        assert "Lead with the progress since last week." in prompt

    def test_list_content_is_joined(self, llm_env: jinja2.Environment) -> None:
        model = _model([{"type": "text", "text": "A good day."}, "Well done."])

        summary = asyncio.run(summarize_feedback(_items(), student_name="An", date="d", model=model, env=llm_env))

        assert summary == "A good day. Well done."

    def test_empty_feedback_is_refused(self, llm_env: jinja2.Environment) -> None:
        model = _model("unused")

        with pytest.raises(ValueError, match="No feedback to summarize"):
            asyncio.run(summarize_feedback([], student_name="An", date="d", model=model, env=llm_env))

        model.ainvoke.assert_not_called()

    def test_model_failure_raises_summary_error(self, llm_env: jinja2.Environment) -> None:
        model = MagicMock()
        model.ainvoke = AsyncMock(side_effect=RuntimeError("rate limited"))

        with pytest.raises(SummaryError, match="Failed to generate AI summary"):
            asyncio.run(summarize_feedback(_items(), student_name="An", date="d", model=model, env=llm_env))

    def test_blank_reply_raises_summary_error(self, llm_env: jinja2.Environment) -> None:
        with pytest.raises(SummaryError):
            asyncio.run(summarize_feedback(_items(), student_name="An", date="d", model=_model("   "), env=llm_env))
