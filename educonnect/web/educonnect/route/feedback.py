"""Lesson feedback and parent-facing AI summaries."""

from __future__ import annotations

import datetime
import logging

import jinja2
import sqlalchemy.exc
from fastapi import APIRouter, Depends, HTTPException, status
from langchain_core.language_models import BaseChatModel
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from educonnect.auth import AuthContext, get_current_user, require_teacher
from educonnect.core import di
from educonnect.core.provider import TimestampProvider
from educonnect.llm import progress_note, summarize_feedback, SummaryError
from educonnect.model import SemesterID, StudentFeedback, StudentFeedbackDetail, UserID, UserRole
from educonnect.storage import feedback as feedback_storage
from educonnect.storage import schoolclass as class_storage
from educonnect.storage import timetable as timetable_storage
from educonnect.storage import user as user_storage

from ..view.envelope import Envelope
from ..view.feedback import FeedbackCreateRequest, SaveTarget, SummarizeRequest, SummarizeResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/feedback", tags=["feedback"])


@router.post("", operation_id="record_feedback", status_code=status.HTTP_201_CREATED)
@di.inject
def record_feedback(
    request: FeedbackCreateRequest,
    auth: AuthContext = Depends(require_teacher),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> Envelope[StudentFeedback]:
    """Rate a student's participation in one of the teacher's lessons."""
    with session.begin():
        slot = timetable_storage.get(request.slot_id, session=session)
        if slot is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Timetable slot not found")
        if slot.teacher_id != auth.user_id:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="You can only give feedback for your own lessons",
            )
        if slot.class_id not in class_storage.class_ids_for_student(request.student_id, session=session):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Student is not enrolled in this lesson's class",
            )
        feedback = feedback_storage.create(
            student_id=request.student_id,
            teacher_id=auth.user_id,
            subject_id=slot.subject_id,
            slot_id=slot.slot_id,
            rating=request.rating,
            feedback_text=request.feedback_text,
            session=session,
        )
    return Envelope(data=feedback)


@router.get("", operation_id="list_feedback")
@di.inject
def list_feedback(
    student_id: UserID,
    semester_id: SemesterID,
    week_number: int,
    day_of_week: int,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> Envelope[list[StudentFeedbackDetail]]:
    """A student's feedback for the lessons of one day, in lesson order."""
    with session.begin():
        match auth.role:
            case UserRole.Parent:
                allowed = user_storage.get_link(auth.user_id, student_id, session=session) is not None
            case UserRole.Student:
                allowed = auth.user_id == student_id
            case _:
                allowed = True
        if not allowed:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="You cannot view this student's feedback",
            )
        found = feedback_storage.find(
            student_id=student_id,
            semester_id=semester_id,
            week_number=week_number,
            day_of_week=day_of_week,
            session=session,
        )
    return Envelope(data=list(found))


def _previous_ratings(target: SaveTarget, session: Session) -> list[int]:
    """Ratings from the same weekday of the previous week; empty if they can't be read."""
    try:
        with session.begin():
            previous = feedback_storage.find(
                student_id=target.student_id,
                semester_id=target.semester_id,
                week_number=target.week_number - 1,
                day_of_week=target.day_of_week,
                session=session,
            )
    except sqlalchemy.exc.SQLAlchemyError:
        logger.warning(
            "could not load previous week's feedback",
            exc_info=True,
            extra={"student_id": target.student_id, "week_number": target.week_number - 1},
        )
        return []
    return [f.rating for f in previous]


def _save_summary(
    request: SummarizeRequest,
    target: SaveTarget,
    summary: str,
    teacher_id: UserID,
    now: datetime.datetime,
    session: Session,
) -> bool:
    """Attach the summary to the feedback rows; False if nothing was saved."""
    try:
        with session.begin():
            count = feedback_storage.save_summary(
                [item.feedback_id for item in request.feedback],
                teacher_id=teacher_id,
                student_id=target.student_id,
                summary=summary,
                generated_at=now,
                session=session,
            )
    except sqlalchemy.exc.SQLAlchemyError:
        logger.error(
            "could not save feedback summary",
            exc_info=True,
            extra={"student_id": target.student_id, "teacher_id": teacher_id},
        )
        return False
    return count > 0


@router.post("/summarize", operation_id="summarize_feedback")
@di.inject
async def summarize(
    request: SummarizeRequest,
    auth: AuthContext = Depends(require_teacher),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
    model: BaseChatModel = Depends(di.Provide["llm.summary_model"]),
    env: jinja2.Environment = Depends(di.Provide["template.llm"]),
    utcnow: TimestampProvider = Depends(di.Provide["utcnow"]),
) -> Envelope[SummarizeResponse]:
    """Summarize a day's feedback for parents, optionally saving the summary.

    Database reads and writes run in the threadpool; only the model call is
    awaited on the event loop.
    """
    if not request.feedback:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No feedback to summarize")

    target = request.save_to_database
    progress: str | None = None
    if request.include_progress_tracking and target is not None and target.week_number > 1:
        previous = await run_in_threadpool(_previous_ratings, target, session)
        progress = progress_note([item.rating for item in request.feedback], previous)

    try:
        summary = await summarize_feedback(
            request.feedback,
            student_name=request.student_name,
            date=request.date,
            model=model,
            env=env,
            progress=progress,
        )
    except SummaryError as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e)) from e

    saved = False
    if target is not None:
        saved = await run_in_threadpool(_save_summary, request, target, summary, auth.user_id, utcnow(), session)

    return Envelope(
        data=SummarizeResponse(
            summary=summary,
            original_feedback_count=len(request.feedback),
            student_name=request.student_name,
            date=request.date,
            saved_to_database=saved,
        )
    )
