"""Tests for grade averaging, override detection and the approval workflow."""

from __future__ import annotations

import datetime
import typing as t

import pytest
from sqlalchemy.orm import Session

from educonnect.grading import approve_audit, AuditNotPendingError, detect_overrides, GradeEntry, GradeOverrideError, \
    process_overrides, reject_audit, subject_average
from educonnect.model import AuditID, AuditStatus, ClassID, ComponentType, Grade, GradeID, GradeOverride, SchoolClass, \
    SemesterID, Subject, SubjectID, User, UserID
from educonnect.storage import audit as audit_storage
from educonnect.storage import grade as grade_storage

GradeFactory = t.Callable[..., Grade]
Now = datetime.datetime(2026, 10, 19, 9, 0, tzinfo=datetime.UTC)


def _grade(component_type: ComponentType, value: float | None, **kwargs: t.Any) -> Grade:
    return Grade(
        grade_id=kwargs.get("grade_id", GradeID()),
        student_id=kwargs.get("student_id", UserID()),
        class_id=ClassID(),
        subject_id=SubjectID(),
        semester_id=SemesterID(),
        component_type=component_type,
        grade_value=value,
        create_time=Now,
        update_time=Now,
    )


class TestSubjectAverage(object):
    def test_weights_exams(self) -> None:
        grades = [
            _grade(ComponentType.Regular1, 8.0),
            _grade(ComponentType.Regular2, 6.0),
            _grade(ComponentType.Midterm, 7.0),
            _grade(ComponentType.Final, 9.0),
        ]

        # (8 + 6 + 7*2 + 9*3) / 7
        assert subject_average(grades) == 7.9

    def test_skips_empty_components(self) -> None:
        grades = [_grade(ComponentType.Regular1, 5.0), _grade(ComponentType.Final, None)]

        assert subject_average(grades) == 5.0

    def test_none_without_values(self) -> None:
        assert subject_average([]) is None
        assert subject_average([_grade(ComponentType.Midterm, None)]) is None


class TestDetectOverrides(object):
    def test_splits_writes_and_overrides(self) -> None:
        student = UserID()
        regular = _grade(ComponentType.Regular1, 6.0, student_id=student)
        final = _grade(ComponentType.Final, 7.0, student_id=student)
        empty = _grade(ComponentType.Midterm, None, student_id=student)

        entries = [
            GradeEntry(student_id=student, student_name="An", component_type=ComponentType.Regular1, grade_value=8.0),
            GradeEntry(student_id=student, student_name="An", component_type=ComponentType.Final, grade_value=7.0),
            GradeEntry(student_id=student, student_name="An", component_type=ComponentType.Midterm, grade_value=5.5),
            GradeEntry(student_id=student, student_name="An", component_type=ComponentType.Regular2, grade_value=None),
        ]

        writes, overrides = detect_overrides([regular, final, empty], entries)

        # the unchanged final and the blank regular are dropped
        assert [(w.component_type, w.grade_value) for w in writes] == [(ComponentType.Midterm, 5.5)]
        assert len(overrides) == 1
        assert overrides[0].grade_id == regular.grade_id
        assert (overrides[0].old_value, overrides[0].new_value) == (6.0, 8.0)


class TestProcessOverrides(object):
    @pytest.fixture
    def stored(
        self,
        grade_factory: GradeFactory,
        student: User,
        school_class: SchoolClass,
        subject: Subject,
    ) -> tuple[Grade, Grade]:
        regular = grade_factory(student, school_class, subject, ComponentType.Regular1, 6.0)
        final = grade_factory(student, school_class, subject, ComponentType.Final, 7.0)
        return regular, final

    def _override(self, grade: Grade, student: User, new_value: float, reason: str | None = None) -> GradeOverride:
        return GradeOverride(
            grade_id=grade.grade_id,
            student_id=student.user_id,
            student_name=student.full_name,
            component_type=grade.component_type,
            old_value=grade.grade_value,
            new_value=new_value,
            reason=reason,
        )

    def test_regular_applied_and_exam_pending(
        self,
        db_session: Session,
        stored: tuple[Grade, Grade],
        student: User,
        teacher: User,
    ) -> None:
        regular, final = stored

        outcome = process_overrides(
            [self._override(regular, student, 8.0), self._override(final, student, 9.0, "Re-marked")],
            teacher,
            session=db_session,
        )

        assert outcome.success
        assert outcome.message == "1 regular updated and 1 pending approval"
        assert outcome.override_count == 2

        with db_session.begin():
            regular_now = grade_storage.get(regular.grade_id, session=db_session)
            final_now = grade_storage.get(final.grade_id, session=db_session)
            audits = audit_storage.find_by_grades([regular.grade_id, final.grade_id], session=db_session)

        assert regular_now is not None and regular_now.grade_value == 8.0
        # exam grades wait for approval
        assert final_now is not None and final_now.grade_value == 7.0

        by_grade = {a.grade_id: a for a in audits}
        assert by_grade[regular.grade_id].status is AuditStatus.Approved
        assert by_grade[regular.grade_id].change_reason == "Regular grade - automatically approved"
        assert by_grade[regular.grade_id].processed_by == teacher.user_id
        assert by_grade[final.grade_id].status is AuditStatus.Pending
        assert by_grade[final.grade_id].change_reason == "Re-marked"
        assert by_grade[final.grade_id].processed_at is None

    def test_pending_only_message(
        self, db_session: Session, stored: tuple[Grade, Grade], student: User, teacher: User
    ) -> None:
        _, final = stored

        outcome = process_overrides([self._override(final, student, 9.0)], teacher, session=db_session)

        assert outcome.message == "1 pending approval"

    def test_requires_actor(self, db_session: Session, stored: tuple[Grade, Grade], student: User) -> None:
        with pytest.raises(PermissionError):
            process_overrides([self._override(stored[0], student, 8.0)], None, session=db_session)

    def test_requires_overrides(self, db_session: Session, teacher: User) -> None:
        with pytest.raises(ValueError, match="No changes to process"):
            process_overrides([], teacher, session=db_session)

    def test_failure_keeps_earlier_overrides(
        self, db_session: Session, stored: tuple[Grade, Grade], student: User, teacher: User
    ) -> None:
        regular, _ = stored
        missing = GradeOverride(
            grade_id=GradeID(),
            student_id=student.user_id,
            student_name=student.full_name,
            component_type=ComponentType.Regular2,
            old_value=5.0,
            new_value=6.0,
        )

        with pytest.raises(GradeOverrideError) as exc_info:
            process_overrides([self._override(regular, student, 8.0), missing], teacher, session=db_session)

        assert exc_info.value.student_name == student.full_name
        with db_session.begin():
            regular_now = grade_storage.get(regular.grade_id, session=db_session)
        assert regular_now is not None and regular_now.grade_value == 8.0


class TestApproval(object):
    @pytest.fixture
    def pending_final(
        self,
        db_session: Session,
        grade_factory: GradeFactory,
        student: User,
        teacher: User,
        school_class: SchoolClass,
        subject: Subject,
    ) -> Grade:
        final = grade_factory(student, school_class, subject, ComponentType.Final, 5.0)
        process_overrides(
            [
                GradeOverride(
                    grade_id=final.grade_id,
                    student_id=student.user_id,
                    student_name=student.full_name,
                    component_type=ComponentType.Final,
                    old_value=5.0,
                    new_value=8.5,
                    reason="Marking error",
                )
            ],
            teacher,
            session=db_session,
        )
        return final

    def _audit_id(self, db_session: Session, grade: Grade) -> AuditID:
        with db_session.begin():
            (audit,) = audit_storage.find_by_grades([grade.grade_id], session=db_session)
        return audit.audit_id

    def test_approve_applies_new_value(self, db_session: Session, pending_final: Grade, admin: User) -> None:
        audit_id = self._audit_id(db_session, pending_final)

        with db_session.begin():
            processed = approve_audit(audit_id, admin, session=db_session)
            grade = grade_storage.get(pending_final.grade_id, session=db_session)

        assert processed.status is AuditStatus.Approved
        assert processed.admin_reason == "Approved"
        assert processed.processed_by == admin.user_id
        assert grade is not None and grade.grade_value == 8.5

    def test_reject_restores_old_value(self, db_session: Session, pending_final: Grade, admin: User) -> None:
        audit_id = self._audit_id(db_session, pending_final)

        with db_session.begin():
            processed = reject_audit(audit_id, admin, "  Not justified ", session=db_session)
            grade = grade_storage.get(pending_final.grade_id, session=db_session)

        assert processed.status is AuditStatus.Rejected
        assert processed.admin_reason == "Not justified"
        assert grade is not None and grade.grade_value == 5.0

    def test_reject_requires_reason(self, db_session: Session, pending_final: Grade, admin: User) -> None:
        audit_id = self._audit_id(db_session, pending_final)

        with pytest.raises(ValueError):
            with db_session.begin():
                reject_audit(audit_id, admin, "   ", session=db_session)

    def test_decided_audit_cannot_be_decided_again(
        self, db_session: Session, pending_final: Grade, admin: User
    ) -> None:
        audit_id = self._audit_id(db_session, pending_final)
        with db_session.begin():
            approve_audit(audit_id, admin, session=db_session)

        with pytest.raises(AuditNotPendingError, match="already been approved"):
            with db_session.begin():
                reject_audit(audit_id, admin, "Too late", session=db_session)
