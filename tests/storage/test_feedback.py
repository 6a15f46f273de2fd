"""Tests for educonnect.storage.feedback module."""

from __future__ import annotations

import datetime
import typing as t

import pytest
import sqlalchemy.exc
from sqlalchemy.orm import Session

from educonnect.model import Classroom, SchoolClass, Semester, Subject, TimetableSlot, User, UserRole
from educonnect.storage import feedback as feedback_storage

SlotFactory = t.Callable[..., TimetableSlot]
GeneratedAt = datetime.datetime(2026, 10, 19, 16, 0, tzinfo=datetime.UTC)


@pytest.fixture
def monday_slots(
    slot_factory: SlotFactory,
    school_class: SchoolClass,
    subject: Subject,
    subject_factory: t.Callable[..., Subject],
    teacher: User,
    classroom: Classroom,
) -> tuple[TimetableSlot, TimetableSlot]:
    physics = subject_factory(code="PHY", name="Physics")
    second = slot_factory(
        school_class,
        physics,
        teacher,
        classroom,
        day_of_week=1,
        start_time=datetime.time(9, 0),
        end_time=datetime.time(9, 45),
    )
    first = slot_factory(school_class, subject, teacher, classroom, day_of_week=1)
    return first, second


class TestCreate(object):
    def test_rating_out_of_range_violates_constraint(
        self,
        db_session: Session,
        monday_slots: tuple[TimetableSlot, TimetableSlot],
        student: User,
        teacher: User,
    ) -> None:
        slot = monday_slots[0]
        with pytest.raises(sqlalchemy.exc.IntegrityError):
            with db_session.begin():
                feedback_storage.create(
                    student_id=student.user_id,
                    teacher_id=teacher.user_id,
                    subject_id=slot.subject_id,
                    slot_id=slot.slot_id,
                    rating=6,
                    session=db_session,
                )


class TestFind(object):
    def test_day_in_lesson_order(
        self,
        db_session: Session,
        monday_slots: tuple[TimetableSlot, TimetableSlot],
        student: User,
        teacher: User,
        semester: Semester,
    ) -> None:
        first, second = monday_slots
        with db_session.begin():
            # recorded out of lesson order
            for slot, rating in ((second, 3), (first, 5)):
                feedback_storage.create(
                    student_id=student.user_id,
                    teacher_id=teacher.user_id,
                    subject_id=slot.subject_id,
                    slot_id=slot.slot_id,
                    rating=rating,
                    feedback_text="Participated well" if rating == 5 else None,
                    session=db_session,
                )
            found = feedback_storage.find(
                student_id=student.user_id,
                semester_id=semester.semester_id,
                week_number=1,
                day_of_week=1,
                session=db_session,
            )
            other_day = feedback_storage.find(
                student_id=student.user_id,
                semester_id=semester.semester_id,
                week_number=1,
                day_of_week=2,
                session=db_session,
            )

        assert [(f.subject_name, f.rating) for f in found] == [("Mathematics", 5), ("Physics", 3)]
        assert found[0].teacher_name == teacher.full_name
        assert other_day == ()


class TestSaveSummary(object):
    def test_updates_only_the_teachers_rows(
        self,
        db_session: Session,
        monday_slots: tuple[TimetableSlot, TimetableSlot],
        student: User,
        teacher: User,
        user_factory: t.Callable[..., User],
    ) -> None:
        first, _ = monday_slots
        other = user_factory(role=UserRole.Teacher)
        with db_session.begin():
            mine = feedback_storage.create(
                student_id=student.user_id,
                teacher_id=teacher.user_id,
                subject_id=first.subject_id,
                slot_id=first.slot_id,
                rating=4,
                session=db_session,
            )
            theirs = feedback_storage.create(
                student_id=student.user_id,
                teacher_id=other.user_id,
                subject_id=first.subject_id,
                slot_id=first.slot_id,
                rating=2,
                session=db_session,
            )
            updated = feedback_storage.save_summary(
                [mine.feedback_id, theirs.feedback_id],
                teacher_id=teacher.user_id,
                student_id=student.user_id,
                summary="A focused day.",
                generated_at=GeneratedAt,
                session=db_session,
            )
            saved = feedback_storage.get(mine.feedback_id, session=db_session)
            untouched = feedback_storage.get(theirs.feedback_id, session=db_session)

        assert updated == 1
        assert saved is not None
        assert saved.ai_summary == "A focused day."
        assert saved.use_ai_summary
        assert untouched is not None
        assert untouched.ai_summary is None

    def test_no_ids_updates_nothing(self, db_session: Session, student: User, teacher: User) -> None:
        with db_session.begin():
            updated = feedback_storage.save_summary(
                [],
                teacher_id=teacher.user_id,
                student_id=student.user_id,
                summary="unused",
                generated_at=GeneratedAt,
                session=db_session,
            )

        assert updated == 0
