"""Grade entry, overrides and history."""

from __future__ import annotations

import logging
import typing as t

import sqlalchemy.exc
from fastapi import APIRouter, Depends, File, Form, HTTPException, Response, status, UploadFile
from sqlalchemy.orm import Session

from educonnect.auth import AuthContext, require_teacher
from educonnect.core import di
from educonnect.export import build_grade_sheet_workbook, GradeImportError, GradeSheet, GradeSheetRow, \
    parse_grade_sheet
from educonnect.grading import detect_overrides, GradeEntry, GradeOverrideError, OverrideOutcome, process_overrides
from educonnect.model import ClassID, Grade, GradeOverride, GradeWithHistory, SchoolClass, Semester, SemesterID, \
    Subject, SubjectID, User, UserRole
from educonnect.storage import grade as grade_storage
from educonnect.storage import school as school_storage
from educonnect.storage import schoolclass as class_storage
from educonnect.storage import user as user_storage

from ..view.envelope import Envelope
from ..view.grade import GradeEntryRequest, GradeEntryResponse, OverridesRequest
from .schoolclass import xlsx_filename, XlsxMediaType

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/grades", tags=["grades"])


def _require_teaches(auth: AuthContext, class_id: ClassID, subject_id: SubjectID, session: Session) -> None:
    if auth.role is UserRole.Admin:
        return
    assignments = class_storage.find_assignments(teacher_id=auth.user_id, class_id=class_id, session=session)
    if not any(a.subject_id == subject_id for a in assignments):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You are not assigned to teach this subject in this class",
        )


def _require_sheet(
    class_id: ClassID, subject_id: SubjectID, semester_id: SemesterID, session: Session
) -> tuple[SchoolClass, Subject, Semester]:
    klass = class_storage.get(class_id, session=session)
    if klass is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Class not found")
    subject = school_storage.get_subject(subject_id, session=session)
    if subject is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Subject not found")
    semester = school_storage.get_semester(semester_id, session=session)
    if semester is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Semester not found")
    return klass, subject, semester


def _enter(
    class_id: ClassID,
    subject_id: SubjectID,
    semester_id: SemesterID,
    entries: t.Sequence[GradeEntry],
    session: Session,
) -> tuple[list[Grade], list[GradeOverride]]:
    """Write entries for empty components; return the overrides of stored values unapplied."""
    stored = grade_storage.find(semester_id=semester_id, class_id=class_id, subject_id=subject_id, session=session)
    writes, overrides = detect_overrides(stored, entries)
    for student_id in {e.student_id for e in writes}:
        student = user_storage.get(user_id=student_id, session=session)
        if student is None or student.role is not UserRole.Student:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Student not found")
    written = [
        grade_storage.put(
            student_id=entry.student_id,
            class_id=class_id,
            subject_id=subject_id,
            semester_id=semester_id,
            component_type=entry.component_type,
            grade_value=entry.grade_value,
            session=session,
        )
        for entry in writes
    ]
    return written, overrides


@router.put("", operation_id="enter_grades")
@di.inject
def enter_grades(
    request: GradeEntryRequest,
    auth: AuthContext = Depends(require_teacher),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> Envelope[GradeEntryResponse]:
    """Write new grade values; changes to stored values come back as overrides.

    Overrides are not applied here; they go through `POST /api/grades/overrides`.
    """
    entries = [GradeEntry(**e.model_dump()) for e in request.entries]
    try:
        with session.begin():
            _require_teaches(auth, request.class_id, request.subject_id, session)
            _require_sheet(request.class_id, request.subject_id, request.semester_id, session)
            written, overrides = _enter(request.class_id, request.subject_id, request.semester_id, entries, session)
    except sqlalchemy.exc.IntegrityError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="Grade entry violates a constraint"
        ) from None
    return Envelope(data=GradeEntryResponse(written=written, overrides=overrides))


@router.post("/overrides", operation_id="process_grade_overrides")
@di.inject
def submit_overrides(
    request: OverridesRequest,
    auth: AuthContext = Depends(require_teacher),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> Envelope[OverrideOutcome]:
    """Apply regular-grade overrides and queue exam-grade overrides for approval."""
    overrides = [GradeOverride(**o.model_dump()) for o in request.overrides]
    try:
        outcome = process_overrides(overrides, auth.user, session=session)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from None
    except GradeOverrideError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from None
    return Envelope(data=outcome)


@router.get("", operation_id="list_grades")
@di.inject
def list_grades(
    semester_id: SemesterID,
    class_id: ClassID,
    subject_id: SubjectID | None = None,
    auth: AuthContext = Depends(require_teacher),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> Envelope[list[Grade]]:
    with session.begin():
        grades = grade_storage.find(
            semester_id=semester_id, class_id=class_id, subject_id=subject_id, session=session
        )
    return Envelope(data=list(grades))


@router.get("/history", operation_id="get_grade_history")
@di.inject
def get_history(
    semester_id: SemesterID,
    class_id: ClassID,
    subject_id: SubjectID,
    auth: AuthContext = Depends(require_teacher),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> Envelope[list[GradeWithHistory]]:
    """Grades of a class and subject, newest first, each with its audit trail."""
    with session.begin():
        history = grade_storage.find_with_history(
            semester_id=semester_id, class_id=class_id, subject_id=subject_id, session=session
        )
    return Envelope(data=list(history))


@router.get("/sheet.xlsx", operation_id="download_grade_sheet")
@di.inject
def download_grade_sheet(
    semester_id: SemesterID,
    class_id: ClassID,
    subject_id: SubjectID,
    auth: AuthContext = Depends(require_teacher),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> Response:
    """The class's grades in one subject as a fillable xlsx sheet, one row per enrolled student."""
    with session.begin():
        _require_teaches(auth, class_id, subject_id, session)
        klass, subject, semester = _require_sheet(class_id, subject_id, semester_id, session)
        year = school_storage.get_year(semester.academic_year_id, session=session)
        students = class_storage.find_students(class_id, session=session)
        stored = grade_storage.find(semester_id=semester_id, class_id=class_id, subject_id=subject_id, session=session)

    sheet = GradeSheet(
        class_name=klass.name,
        subject_name=subject.name,
        academic_year=year.name if year else "-",
        semester=semester.name,
        rows=[
            GradeSheetRow(
                student_code=s.student_code,
                full_name=s.full_name,
                grades={g.component_type: g.grade_value for g in stored if g.student_id == s.user_id},
            )
            for s in students
        ],
    )
    return Response(
        content=build_grade_sheet_workbook(sheet),
        media_type=XlsxMediaType,
        headers={"Content-Disposition": f'attachment; filename="{xlsx_filename("grades", subject.code, klass.name)}"'},
    )


@router.post("/import", operation_id="import_grades")
@di.inject
def import_grades(
    file: UploadFile = File(...),
    semester_id: SemesterID = Form(...),
    class_id: ClassID = Form(...),
    subject_id: SubjectID = Form(...),
    auth: AuthContext = Depends(require_teacher),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> Envelope[GradeEntryResponse]:
    """Enter grades from a filled-in grade sheet.

    Rows are matched to enrolled students by student code. As with manual
    entry, empty components are written and changes to stored values come
    back as overrides.
    """
    try:
        with session.begin():
            _require_teaches(auth, class_id, subject_id, session)
            _require_sheet(class_id, subject_id, semester_id, session)
            try:
                rows = parse_grade_sheet(file.file.read())
            except GradeImportError as e:
                raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from None
            enrolled: dict[str, User] = {
                s.student_code: s for s in class_storage.find_students(class_id, session=session) if s.student_code
            }
            unknown = [
                f"Row {r.row_number}: no student with code {r.student_code} in this class"
                for r in rows
                if r.student_code not in enrolled
            ]
            if unknown:
                raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="; ".join(unknown))
            entries = [
                GradeEntry(
                    student_id=enrolled[r.student_code].user_id,
                    student_name=enrolled[r.student_code].full_name,
                    component_type=component,
                    grade_value=value,
                )
                for r in rows
                for component, value in r.grades.items()
            ]
            written, overrides = _enter(class_id, subject_id, semester_id, entries, session)
    except sqlalchemy.exc.IntegrityError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="Grade import violates a constraint"
        ) from None

    logger.info(
        "imported grade sheet",
        extra={"class_id": class_id, "subject_id": subject_id, "rows": len(rows), "teacher": auth.user_id},
    )
    return Envelope(data=GradeEntryResponse(written=written, overrides=overrides))
