"""Tests for class grade summaries and their xlsx rendering."""

from __future__ import annotations

import datetime
import io
import typing as t

import openpyxl
from sqlalchemy.orm import Session

from educonnect.export import assemble_class_summary, build_class_summary_workbook, ClassSummary, rank_students, \
    sheet_title, StudentSummary, SubjectScore
from educonnect.export.workbook import MaxSheetTitle, MaxStudentSheets
from educonnect.model import ComponentType, Grade, SchoolClass, Semester, Subject, User, UserRole
from educonnect.storage import schoolclass as class_storage

GradeFactory = t.Callable[..., Grade]


def _summary(students: list[StudentSummary]) -> ClassSummary:
    return ClassSummary(
        class_name="10A1",
        academic_year="2026-2027",
        semester="Semester 1",
        homeroom_teacher="Nguyen Thi Lan",
        exported_on=datetime.date(2026, 10, 19),
        subjects=["Mathematics"],
        students=students,
    )


class TestRankStudents(object):
    def test_ties_share_a_rank(self) -> None:
        ranked = rank_students(
            [
                StudentSummary(full_name="A", average=7.0),
                StudentSummary(full_name="B", average=9.0),
                StudentSummary(full_name="C", average=7.0),
                StudentSummary(full_name="D", average=None),
            ]
        )

        assert [(s.full_name, s.rank) for s in ranked] == [("A", 2), ("B", 1), ("C", 2), ("D", None)]


class TestSheetTitle(object):
    def test_strips_forbidden_characters(self) -> None:
        assert sheet_title("HS01", "Tran/Van:B") == "HS01_TranVanB"

    def test_truncates(self) -> None:
        title = sheet_title("HS0001", "Nguyen Hoang Bao Ngoc Anh Thu Phuong")
        assert len(title) == MaxSheetTitle
        assert title.startswith("HS0001_Nguyen")

    def test_missing_code(self) -> None:
        assert sheet_title(None, "Le Minh An") == "_Le Minh An"


class TestWorkbook(object):
    def test_summary_sheet_and_student_sheets(self) -> None:
        students = [
            StudentSummary(
                student_code=f"HS{i:02d}",
                full_name=f"Student {i}",
                subjects={"Mathematics": SubjectScore(subject_name="Mathematics", midterm=7.0, final=8.0, average=7.6)},
                average=7.6,
                rank=1,
            )
            for i in range(12)
        ]

        wb = openpyxl.load_workbook(io.BytesIO(build_class_summary_workbook(_summary(students))))

        # one summary sheet, and student sheets up to the limit
        assert len(wb.sheetnames) == 1 + MaxStudentSheets
        assert wb.sheetnames[0] == "Class summary"
        assert wb.sheetnames[1] == "HS00_Student 0"

        ws = wb["Class summary"]
        assert ws["A1"].value == "CLASS GRADE SUMMARY 10A1"
        assert ws["A2"].value == "Academic year: 2026-2027 - Semester 1"
        assert ws["A3"].value == "Homeroom teacher: Nguyen Thi Lan"
        assert ws["A4"].value == "Exported: 19/10/2026"
        header = [c.value for c in ws[6]]
        assert header == ["No.", "Student code", "Full name", "Mathematics (avg)", "Average", "Rank"]
        assert [c.value for c in ws[7]] == [1, "HS00", "Student 0", 7.6, 7.6, 1]

    def test_missing_values_render_as_dash(self) -> None:
        wb = openpyxl.load_workbook(
            io.BytesIO(build_class_summary_workbook(_summary([StudentSummary(full_name="Nobody", student_code="HS9")])))
        )

        ws = wb["Class summary"]
        assert [c.value for c in ws[7]] == [1, "HS9", "Nobody", "-", "-", "-"]
        student = wb["HS9_Nobody"]
        assert student["A1"].value == "Nobody (HS9)"


class TestAssembleClassSummary(object):
    def test_from_stored_grades(
        self,
        db_session: Session,
        grade_factory: GradeFactory,
        user_factory: t.Callable[..., User],
        school_class: SchoolClass,
        subject: Subject,
        semester: Semester,
        student: User,
        teacher: User,
    ) -> None:
        other = user_factory(role=UserRole.Student, full_name="Bui Thu Ha")
        with db_session.begin():
            class_storage.enroll(other.user_id, school_class.class_id, session=db_session)
        grade_factory(student, school_class, subject, ComponentType.Midterm, 6.0)
        grade_factory(student, school_class, subject, ComponentType.Final, 8.0)
        grade_factory(other, school_class, subject, ComponentType.Final, 9.0)

        with db_session.begin():
            summary = assemble_class_summary(school_class.class_id, semester.semester_id, session=db_session)

        assert summary.class_name == school_class.name
        assert summary.semester == semester.name
        assert summary.homeroom_teacher == teacher.full_name
        assert summary.subjects == [subject.name]

        by_name = {s.full_name: s for s in summary.students}
        an = by_name[student.full_name]
        assert an.subjects[subject.name].midterm == 6.0
        assert an.subjects[subject.name].final == 8.0
        # (6*2 + 8*3) / 5
        assert an.average == 7.2
        assert an.rank == 2
        assert by_name["Bui Thu Ha"].rank == 1
