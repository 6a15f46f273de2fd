"""Tests for educonnect.storage.notification module."""

from __future__ import annotations

import datetime

from sqlalchemy.orm import Session

from educonnect.model import SchoolClass, User, UserRole
from educonnect.storage import notification as notification_storage

ReadAt = datetime.datetime(2026, 10, 19, 8, 0, tzinfo=datetime.UTC)


class TestCreate(object):
    def test_targets_round_trip(self, db_session: Session, admin: User, school_class: SchoolClass) -> None:
        with db_session.begin():
            created = notification_storage.create(
                title="Sports day",
                content="Sports day is on Friday.",
                sender_id=admin.user_id,
                target_roles=[UserRole.Student, UserRole.Parent],
                target_classes=[school_class.class_id],
                session=db_session,
            )

        assert created.target_roles == [UserRole.Student, UserRole.Parent]
        assert created.target_classes == [school_class.class_id]
        assert created.is_active


class TestReads(object):
    def test_read_state_per_reader(self, db_session: Session, admin: User, student: User, teacher: User) -> None:
        with db_session.begin():
            created = notification_storage.create(
                title="Exam schedule",
                content="Exams begin next week.",
                sender_id=admin.user_id,
                target_roles=[UserRole.Student, UserRole.Teacher],
                target_classes=[],
                session=db_session,
            )
            notification_storage.mark_read(created.notification_id, student.user_id, read_at=ReadAt, session=db_session)
            # marking twice is harmless
            notification_storage.mark_read(created.notification_id, student.user_id, read_at=ReadAt, session=db_session)
            for_student = notification_storage.find_for_reader(student.user_id, session=db_session)
            for_teacher = notification_storage.find_for_reader(teacher.user_id, session=db_session)

        assert [(n.notification_id, n.is_read) for n in for_student] == [(created.notification_id, True)]
        assert [(n.notification_id, n.is_read) for n in for_teacher] == [(created.notification_id, False)]
        assert for_student[0].sender_name == admin.full_name
