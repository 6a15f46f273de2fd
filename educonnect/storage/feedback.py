from __future__ import annotations

import datetime
import typing as t

import sqlalchemy as sqla
from sqlalchemy.orm import aliased

from educonnect.core import di
from educonnect.model import FeedbackID, SemesterID, SlotID, StudentFeedback, StudentFeedbackDetail, SubjectID, UserID

from . import Session
from .table import student_feedback, subjects, timetable_slots, users


def get(
    feedback_id: FeedbackID,
    *,
    session: Session = di.Provide["storage.persistent.session"],
) -> StudentFeedback | None:
    stmt = sqla.select(student_feedback.__table__).where(student_feedback.feedback_id == feedback_id)
    row = session.execute(stmt).mappings().one_or_none()
    return StudentFeedback(**row) if row else None


def find(
    *,
    student_id: UserID,
    semester_id: SemesterID,
    week_number: int,
    day_of_week: int,
    teacher_id: UserID | None = None,
    session: Session = di.Provide["storage.persistent.session"],
) -> tuple[StudentFeedbackDetail, ...]:
    """A student's feedback for the lessons of one day, in lesson order."""
    teacher = aliased(users)
    stmt = (
        sqla.select(
            student_feedback.__table__,
            subjects.name.label("subject_name"),
            teacher.full_name.label("teacher_name"),
        )
        .join(timetable_slots, timetable_slots.slot_id == student_feedback.slot_id)
        .join(subjects, subjects.subject_id == student_feedback.subject_id)
        .join(teacher, teacher.user_id == student_feedback.teacher_id)
        .where(
            student_feedback.student_id == student_id,
            timetable_slots.semester_id == semester_id,
            timetable_slots.week_number == week_number,
            timetable_slots.day_of_week == day_of_week,
        )
    )
    if teacher_id is not None:
        stmt = stmt.where(student_feedback.teacher_id == teacher_id)
    stmt = stmt.order_by(timetable_slots.start_time)
    return tuple(StudentFeedbackDetail(**row) for row in session.execute(stmt).mappings().all())


def create(
    *,
    student_id: UserID,
    teacher_id: UserID,
    subject_id: SubjectID,
    slot_id: SlotID,
    rating: int,
    feedback_text: str | None = None,
    session: Session = di.Provide["storage.persistent.session"],
) -> StudentFeedback:
    feedback = student_feedback(
        feedback_id=FeedbackID(),
        student_id=student_id,
        teacher_id=teacher_id,
        subject_id=subject_id,
        slot_id=slot_id,
        rating=rating,
        feedback_text=feedback_text,
    )
    session.add(feedback)
    session.flush()
    return get(feedback.feedback_id, session=session)  # type: ignore[return-value]


def save_summary(
    feedback_ids: t.Sequence[FeedbackID],
    *,
    teacher_id: UserID,
    student_id: UserID,
    summary: str,
    generated_at: datetime.datetime,
    session: Session = di.Provide["storage.persistent.session"],
) -> int:
    """Attach an AI summary to the teacher's feedback rows for a student.

    Returns the number of rows updated.
    """
    if not feedback_ids:
        return 0
    stmt = (
        sqla.update(student_feedback)
        .where(
            student_feedback.feedback_id.in_(feedback_ids),
            student_feedback.teacher_id == teacher_id,
            student_feedback.student_id == student_id,
        )
        .values(ai_summary=summary, use_ai_summary=True, ai_generated_at=generated_at)
    )
    result = session.execute(stmt)
    session.flush()
    return result.rowcount  # pyright: ignore[reportAttributeAccessIssue]
