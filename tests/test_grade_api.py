"""Tests for grade entry, override and audit API endpoints."""

from __future__ import annotations

import io
import typing as t

import openpyxl
import pytest
from fastapi.testclient import TestClient

from educonnect.model import AuditID, ClassID, ComponentType, Grade, GradeID, SchoolClass, Semester, SemesterID, \
    Subject, SubjectID, User, UserID, UserRole
from educonnect.web.educonnect.route.grade import XlsxMediaType

GradeFactory = t.Callable[..., Grade]


@pytest.fixture
def entry_body(semester: Semester, school_class: SchoolClass, subject: Subject) -> dict[str, t.Any]:
    return {
        "semester_id": str(semester.semester_id),
        "class_id": str(school_class.class_id),
        "subject_id": str(subject.subject_id),
    }


def _entry(student: User, component_type: ComponentType, value: float | None, **kwargs: t.Any) -> dict[str, t.Any]:
    return {
        "student_id": str(student.user_id),
        "student_name": student.full_name,
        "component_type": component_type.value,
        "grade_value": value,
        **kwargs,
    }


def _override(grade: Grade, student: User, new_value: float, reason: str | None = None) -> dict[str, t.Any]:
    return {
        "grade_id": str(grade.grade_id),
        "student_id": str(student.user_id),
        "student_name": student.full_name,
        "component_type": grade.component_type.value,
        "old_value": grade.grade_value,
        "new_value": new_value,
        "reason": reason,
    }


class TestEnterGrades:
    """Tests for PUT /api/grades."""

    def test_new_values_are_written(
        self,
        client: TestClient,
        teacher_headers: dict[str, str],
        entry_body: dict[str, t.Any],
        student: User,
    ) -> None:
        response = client.put(
            "/api/grades",
            json={
                **entry_body,
                "entries": [
                    _entry(student, ComponentType.Regular1, 8.5),
                    _entry(student, ComponentType.Midterm, None),
                ],
            },
            headers=teacher_headers,
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert [(g["component_type"], g["grade_value"]) for g in data["written"]] == [("regular_1", 8.5)]
        assert data["overrides"] == []

    def test_changed_values_come_back_as_overrides(
        self,
        client: TestClient,
        teacher_headers: dict[str, str],
        entry_body: dict[str, t.Any],
        student: User,
        school_class: SchoolClass,
        subject: Subject,
        grade_factory: GradeFactory,
    ) -> None:
        final = grade_factory(student, school_class, subject, ComponentType.Final, 6.0)

        response = client.put(
            "/api/grades",
            json={
                **entry_body,
                "entries": [_entry(student, ComponentType.Final, 7.5, reason="Re-marked paper")],
            },
            headers=teacher_headers,
        )

        data = response.json()["data"]
        assert data["written"] == []
        assert len(data["overrides"]) == 1
        override = data["overrides"][0]
        assert override["grade_id"] == str(final.grade_id)
        assert (override["old_value"], override["new_value"]) == (6.0, 7.5)
        assert override["reason"] == "Re-marked paper"

        # nothing changes until the override is submitted
        grades = client.get("/api/grades", params=entry_body, headers=teacher_headers).json()["data"]
        assert [g["grade_value"] for g in grades] == [6.0]

    def test_value_out_of_range_returns_400(
        self,
        client: TestClient,
        teacher_headers: dict[str, str],
        entry_body: dict[str, t.Any],
        student: User,
    ) -> None:
        response = client.put(
            "/api/grades",
            json={**entry_body, "entries": [_entry(student, ComponentType.Regular1, 11)]},
            headers=teacher_headers,
        )

        assert response.status_code == 400

    def test_unassigned_teacher_is_forbidden(
        self,
        client: TestClient,
        auth_headers: t.Callable[[User], dict[str, str]],
        user_factory: t.Callable[..., User],
        entry_body: dict[str, t.Any],
        student: User,
    ) -> None:
        other = user_factory(role=UserRole.Teacher)

        response = client.put(
            "/api/grades",
            json={**entry_body, "entries": [_entry(student, ComponentType.Regular1, 9.0)]},
            headers=auth_headers(other),
        )

        assert response.status_code == 403
        assert response.json()["error"] == "You are not assigned to teach this subject in this class"

    def test_admin_may_enter_any_class(
        self,
        client: TestClient,
        admin_headers: dict[str, str],
        entry_body: dict[str, t.Any],
        student: User,
    ) -> None:
        response = client.put(
            "/api/grades",
            json={**entry_body, "entries": [_entry(student, ComponentType.Regular1, 9.0)]},
            headers=admin_headers,
        )

        assert response.status_code == 200

    def test_students_are_forbidden(
        self, client: TestClient, student_headers: dict[str, str], entry_body: dict[str, t.Any], student: User
    ) -> None:
        response = client.put(
            "/api/grades",
            json={**entry_body, "entries": [_entry(student, ComponentType.Regular1, 10.0)]},
            headers=student_headers,
        )

        assert response.status_code == 403

    def test_unknown_student_returns_404(
        self,
        client: TestClient,
        admin_headers: dict[str, str],
        entry_body: dict[str, t.Any],
        user_factory: t.Callable[..., User],
    ) -> None:
        ghost = User.model_construct(user_id=UserID(), full_name="Nobody")
        teacher = user_factory(role=UserRole.Teacher)

        for target in (ghost, teacher):
            response = client.put(
                "/api/grades",
                json={**entry_body, "entries": [_entry(target, ComponentType.Regular1, 9.0)]},
                headers=admin_headers,
            )

            assert response.status_code == 404
            assert response.json() == {"success": False, "error": "Student not found"}

        grades = client.get("/api/grades", params=entry_body, headers=admin_headers).json()["data"]
        assert grades == []

    @pytest.mark.parametrize(
        ("field", "make_id", "error"),
        [
            ("class_id", ClassID, "Class not found"),
            ("subject_id", SubjectID, "Subject not found"),
            ("semester_id", SemesterID, "Semester not found"),
        ],
    )
    def test_unknown_sheet_returns_404(
        self,
        client: TestClient,
        admin_headers: dict[str, str],
        entry_body: dict[str, t.Any],
        student: User,
        field: str,
        make_id: t.Callable[[], t.Any],
        error: str,
    ) -> None:
        response = client.put(
            "/api/grades",
            json={
                **entry_body,
                field: str(make_id()),
                "entries": [_entry(student, ComponentType.Regular1, 9.0)],
            },
            headers=admin_headers,
        )

        assert response.status_code == 404
        assert response.json() == {"success": False, "error": error}


class TestSubmitOverrides:
    """Tests for POST /api/grades/overrides."""

    def test_regular_applied_and_exam_queued(
        self,
        client: TestClient,
        teacher_headers: dict[str, str],
        entry_body: dict[str, t.Any],
        student: User,
        school_class: SchoolClass,
        subject: Subject,
        grade_factory: GradeFactory,
    ) -> None:
        regular = grade_factory(student, school_class, subject, ComponentType.Regular1, 6.0)
        final = grade_factory(student, school_class, subject, ComponentType.Final, 7.0)

        response = client.post(
            "/api/grades/overrides",
            json={"overrides": [_override(regular, student, 8.0), _override(final, student, 9.0, "Re-marked")]},
            headers=teacher_headers,
        )

        assert response.status_code == 200
        assert response.json()["data"] == {
            "success": True,
            "message": "1 regular updated and 1 pending approval",
            "override_count": 2,
        }

        history = client.get(
            "/api/grades/history", params=entry_body, headers=teacher_headers
        ).json()["data"]
        by_component = {g["component_type"]: g for g in history}
        assert by_component["regular_1"]["grade_value"] == 8.0
        assert by_component["final"]["grade_value"] == 7.0
        assert [a["status"] for a in by_component["regular_1"]["audits"]] == ["approved"]
        assert [a["status"] for a in by_component["final"]["audits"]] == ["pending"]

    def test_empty_batch_returns_400(self, client: TestClient, teacher_headers: dict[str, str]) -> None:
        response = client.post("/api/grades/overrides", json={"overrides": []}, headers=teacher_headers)

        assert response.status_code == 400
        assert response.json()["error"] == "No changes to process"

    def test_unknown_grade_names_the_student(
        self, client: TestClient, teacher_headers: dict[str, str], student: User
    ) -> None:
        response = client.post(
            "/api/grades/overrides",
            json={
                "overrides": [
                    {
                        "grade_id": str(GradeID()),
                        "student_id": str(student.user_id),
                        "student_name": student.full_name,
                        "component_type": "midterm",
                        "old_value": 5.0,
                        "new_value": 6.0,
                    }
                ]
            },
            headers=teacher_headers,
        )

        assert response.status_code == 400
        assert response.json()["error"] == "Failed to process override for Le Minh An"


class TestGradeAudits:
    """Tests for /api/grade-audits."""

    @pytest.fixture
    def pending_audit(
        self,
        client: TestClient,
        teacher_headers: dict[str, str],
        admin_headers: dict[str, str],
        student: User,
        school_class: SchoolClass,
        subject: Subject,
        grade_factory: GradeFactory,
    ) -> AuditID:
        final = grade_factory(student, school_class, subject, ComponentType.Final, 5.0)
        client.post(
            "/api/grades/overrides",
            json={"overrides": [_override(final, student, 8.5, "Marking error")]},
            headers=teacher_headers,
        )
        (audit,) = client.get("/api/grade-audits", params={"status": "pending"}, headers=admin_headers).json()["data"]
        return AuditID(audit["audit_id"])

    def test_queue_carries_names(
        self, client: TestClient, admin_headers: dict[str, str], pending_audit: AuditID
    ) -> None:
        response = client.get("/api/grade-audits", params={"status": "pending"}, headers=admin_headers)

        assert response.status_code == 200
        (audit,) = response.json()["data"]
        assert audit["student_name"] == "Le Minh An"
        assert audit["subject_name"] == "Mathematics"
        assert audit["class_name"] == "10A1"
        assert audit["teacher_name"] == "Nguyen Thi Lan"
        assert audit["component_type"] == "final"
        assert audit["change_reason"] == "Marking error"

    def test_approve(
        self,
        client: TestClient,
        admin_headers: dict[str, str],
        teacher_headers: dict[str, str],
        entry_body: dict[str, t.Any],
        pending_audit: AuditID,
    ) -> None:
        response = client.post(f"/api/grade-audits/{pending_audit}/approve", headers=admin_headers)

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["status"] == "approved"
        assert data["admin_reason"] == "Approved"

        grades = client.get("/api/grades", params=entry_body, headers=teacher_headers).json()["data"]
        assert [g["grade_value"] for g in grades] == [8.5]
        assert client.get("/api/grade-audits", params={"status": "pending"}, headers=admin_headers).json()["data"] == []

    def test_reject_requires_reason(
        self, client: TestClient, admin_headers: dict[str, str], pending_audit: AuditID
    ) -> None:
        response = client.post(
            f"/api/grade-audits/{pending_audit}/reject", json={"reason": "  "}, headers=admin_headers
        )

        assert response.status_code == 400
        assert response.json()["error"] == "A reason is required to reject a grade change"

    def test_reject_then_decide_again_returns_409(
        self, client: TestClient, admin_headers: dict[str, str], pending_audit: AuditID
    ) -> None:
        response = client.post(
            f"/api/grade-audits/{pending_audit}/reject", json={"reason": "Not justified"}, headers=admin_headers
        )
        assert response.status_code == 200
        assert response.json()["data"]["status"] == "rejected"

        response = client.post(f"/api/grade-audits/{pending_audit}/approve", headers=admin_headers)

        assert response.status_code == 409
        assert response.json()["error"] == "Audit has already been rejected"

    def test_unknown_audit_returns_404(self, client: TestClient, admin_headers: dict[str, str]) -> None:
        response = client.post(f"/api/grade-audits/{AuditID()}/approve", headers=admin_headers)

        assert response.status_code == 404

    def test_teachers_cannot_review(
        self, client: TestClient, teacher_headers: dict[str, str], pending_audit: AuditID
    ) -> None:
        response = client.post(f"/api/grade-audits/{pending_audit}/approve", headers=teacher_headers)

        assert response.status_code == 403


class TestGradeSheet:
    """Tests for GET /api/grades/sheet.xlsx and POST /api/grades/import."""

    def _download(self, client: TestClient, headers: dict[str, str], entry_body: dict[str, t.Any]) -> bytes:
        response = client.get("/api/grades/sheet.xlsx", params=entry_body, headers=headers)
        assert response.status_code == 200
        assert response.headers["content-type"] == XlsxMediaType
        return response.content

    def _upload(
        self, client: TestClient, headers: dict[str, str], entry_body: dict[str, t.Any], data: bytes
    ) -> t.Any:
        return client.post(
            "/api/grades/import",
            data=entry_body,
            files={"file": ("grades.xlsx", data, XlsxMediaType)},
            headers=headers,
        )

    def _fill(self, data: bytes, cells: t.Mapping[str, t.Any]) -> bytes:
        wb = openpyxl.load_workbook(io.BytesIO(data))
        for ref, value in cells.items():
            wb.active[ref] = value
        buf = io.BytesIO()
        wb.save(buf)
        return buf.getvalue()

    def test_sheet_lists_enrolled_students_with_stored_grades(
        self,
        client: TestClient,
        teacher_headers: dict[str, str],
        entry_body: dict[str, t.Any],
        student: User,
        school_class: SchoolClass,
        subject: Subject,
        grade_factory: GradeFactory,
    ) -> None:
        grade_factory(student, school_class, subject, ComponentType.Midterm, 6.0)

        ws = openpyxl.load_workbook(io.BytesIO(self._download(client, teacher_headers, entry_body))).active

        assert ws["A1"].value == "GRADE SHEET Mathematics - 10A1"
        assert [c.value for c in ws[5]] == [1, student.student_code, "Le Minh An", "-", "-", "-", "-", 6.0, "-"]

    def test_import_writes_new_values_and_returns_overrides(
        self,
        client: TestClient,
        teacher_headers: dict[str, str],
        entry_body: dict[str, t.Any],
        student: User,
        school_class: SchoolClass,
        subject: Subject,
        grade_factory: GradeFactory,
    ) -> None:
        midterm = grade_factory(student, school_class, subject, ComponentType.Midterm, 6.0)
        template = self._download(client, teacher_headers, entry_body)

        response = self._upload(client, teacher_headers, entry_body, self._fill(template, {"D5": 9, "H5": 7}))

        assert response.status_code == 200
        data = response.json()["data"]
        assert [(g["component_type"], g["grade_value"]) for g in data["written"]] == [("regular_1", 9.0)]
        assert len(data["overrides"]) == 1
        override = data["overrides"][0]
        assert override["grade_id"] == str(midterm.grade_id)
        assert override["student_name"] == "Le Minh An"
        assert (override["old_value"], override["new_value"]) == (6.0, 7.0)

        grades = client.get("/api/grades", params=entry_body, headers=teacher_headers).json()["data"]
        assert sorted((g["component_type"], g["grade_value"]) for g in grades) == [
            ("midterm", 6.0),
            ("regular_1", 9.0),
        ]

    def test_unchanged_sheet_writes_nothing(
        self,
        client: TestClient,
        teacher_headers: dict[str, str],
        entry_body: dict[str, t.Any],
        student: User,
        school_class: SchoolClass,
        subject: Subject,
        grade_factory: GradeFactory,
    ) -> None:
        grade_factory(student, school_class, subject, ComponentType.Final, 8.0)
        template = self._download(client, teacher_headers, entry_body)

        response = self._upload(client, teacher_headers, entry_body, template)

        assert response.json()["data"] == {"written": [], "overrides": []}

    def test_student_outside_the_class_is_rejected(
        self,
        client: TestClient,
        teacher_headers: dict[str, str],
        entry_body: dict[str, t.Any],
        user_factory: t.Callable[..., User],
    ) -> None:
        outsider = user_factory(role=UserRole.Student)
        template = self._download(client, teacher_headers, entry_body)
        data = self._fill(template, {"D5": 9, "B6": outsider.student_code, "D6": 5})

        response = self._upload(client, teacher_headers, entry_body, data)

        assert response.status_code == 400
        assert response.json()["error"] == f"Row 6: no student with code {outsider.student_code} in this class"
        grades = client.get("/api/grades", params=entry_body, headers=teacher_headers).json()["data"]
        assert grades == []

    def test_invalid_cells_return_400(
        self, client: TestClient, teacher_headers: dict[str, str], entry_body: dict[str, t.Any], student: User
    ) -> None:
        template = self._download(client, teacher_headers, entry_body)

        response = self._upload(client, teacher_headers, entry_body, self._fill(template, {"I5": 12}))

        assert response.status_code == 400
        assert response.json() == {"success": False, "error": "Row 5: Final 12 must be between 0 and 10"}

    def test_unreadable_file_returns_400(
        self, client: TestClient, teacher_headers: dict[str, str], entry_body: dict[str, t.Any]
    ) -> None:
        response = self._upload(client, teacher_headers, entry_body, b"not a workbook")

        assert response.status_code == 400
        assert response.json()["error"] == "File is not a readable xlsx workbook"

    def test_unassigned_teacher_is_forbidden(
        self,
        client: TestClient,
        auth_headers: t.Callable[[User], dict[str, str]],
        user_factory: t.Callable[..., User],
        entry_body: dict[str, t.Any],
        school_class: SchoolClass,
    ) -> None:
        other = auth_headers(user_factory(role=UserRole.Teacher))

        assert client.get("/api/grades/sheet.xlsx", params=entry_body, headers=other).status_code == 403
        response = self._upload(client, other, entry_body, b"not a workbook")
        assert response.status_code == 403
