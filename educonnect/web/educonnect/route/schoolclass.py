"""Classes, enrollments, teaching assignments and the class summary export."""

from __future__ import annotations

import re as regex
import typing as t

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.orm import Session

from educonnect.auth import AuthContext, get_current_user, require_admin, require_teacher
from educonnect.core import di
from educonnect.export import assemble_class_summary, build_class_summary_workbook
from educonnect.model import AcademicYearID, ClassID, SchoolClass, SemesterID, StudentEnrollment, TeachingAssignment, \
    TeachingAssignmentID, UserID, UserRole
from educonnect.storage import school as school_storage
from educonnect.storage import schoolclass as class_storage
from educonnect.storage import user as user_storage

from ..view.auth import UserView
from ..view.envelope import Envelope, Message
from ..view.request import changes
from ..view.school import AssignTeacherRequest, ClassCreateRequest, ClassUpdateRequest, EnrollRequest

router = APIRouter(prefix="/api/classes", tags=["classes"])

XlsxMediaType = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def _require_user(user_id: UserID, role: UserRole, session: Session) -> None:
    user = user_storage.get(user_id=user_id, session=session)
    if user is None or user.role is not role:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"{role.value.capitalize()} not found")


def _require_class(class_id: ClassID, session: Session) -> SchoolClass:
    klass = class_storage.get(class_id, session=session)
    if klass is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Class not found")
    return klass


@router.get("", operation_id="list_classes")
@di.inject
def list_classes(
    academic_year_id: AcademicYearID | None = None,
    semester_id: SemesterID | None = None,
    homeroom_teacher_id: UserID | None = None,
    is_active: bool | None = None,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> Envelope[list[SchoolClass]]:
    with session.begin():
        found = class_storage.find(
            academic_year_id=academic_year_id,
            semester_id=semester_id,
            homeroom_teacher_id=homeroom_teacher_id,
            is_active=is_active,
            session=session,
        )
    return Envelope(data=list(found))


@router.post("", operation_id="create_class", status_code=status.HTTP_201_CREATED)
@di.inject
def create_class(
    request: ClassCreateRequest,
    auth: AuthContext = Depends(require_admin),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> Envelope[SchoolClass]:
    with session.begin():
        semester = school_storage.get_semester(request.semester_id, session=session)
        if semester is None or semester.academic_year_id != request.academic_year_id:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Semester not found in academic year")
        if request.homeroom_teacher_id is not None:
            _require_user(request.homeroom_teacher_id, UserRole.Teacher, session)
        klass = class_storage.create(**request.model_dump(), session=session)
    return Envelope(data=klass)


@router.get("/{class_id}", operation_id="get_class")
@di.inject
def get_class(
    class_id: ClassID,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> Envelope[SchoolClass]:
    with session.begin():
        return Envelope(data=_require_class(class_id, session))


@router.patch("/{class_id}", operation_id="update_class")
@di.inject
def update_class(
    class_id: ClassID,
    request: ClassUpdateRequest,
    auth: AuthContext = Depends(require_admin),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> Envelope[SchoolClass]:
    with session.begin():
        if request.homeroom_teacher_id is not None:
            _require_user(request.homeroom_teacher_id, UserRole.Teacher, session)
        try:
            klass = class_storage.update(
                class_id, t.cast(t.Any, changes(request, "homeroom_teacher_id")), session=session
            )
        except KeyError:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Class not found") from None
    return Envelope(data=klass)


# Enrollments


@router.get("/{class_id}/students", operation_id="list_class_students")
@di.inject
def list_class_students(
    class_id: ClassID,
    auth: AuthContext = Depends(require_teacher),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> Envelope[list[UserView]]:
    with session.begin():
        _require_class(class_id, session)
        students = class_storage.find_students(class_id, session=session)
    return Envelope(data=[UserView.of(s) for s in students])


@router.post("/{class_id}/students", operation_id="enroll_student", status_code=status.HTTP_201_CREATED)
@di.inject
def enroll_student(
    class_id: ClassID,
    request: EnrollRequest,
    auth: AuthContext = Depends(require_admin),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> Envelope[StudentEnrollment]:
    """Enroll a student, ending any enrollment they had elsewhere."""
    with session.begin():
        _require_class(class_id, session)
        _require_user(request.student_id, UserRole.Student, session)
        enrollment = class_storage.enroll(request.student_id, class_id, session=session)
    return Envelope(data=enrollment)


# Teaching assignments


@router.get("/{class_id}/teachers", operation_id="list_teaching_assignments")
@di.inject
def list_teaching_assignments(
    class_id: ClassID,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> Envelope[list[TeachingAssignment]]:
    with session.begin():
        _require_class(class_id, session)
        return Envelope(data=list(class_storage.find_assignments(class_id=class_id, session=session)))


@router.post("/{class_id}/teachers", operation_id="assign_teacher", status_code=status.HTTP_201_CREATED)
@di.inject
def assign_teacher(
    class_id: ClassID,
    request: AssignTeacherRequest,
    auth: AuthContext = Depends(require_admin),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> Envelope[TeachingAssignment]:
    with session.begin():
        _require_class(class_id, session)
        _require_user(request.teacher_id, UserRole.Teacher, session)
        if school_storage.get_subject(request.subject_id, session=session) is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Subject not found")
        assignment = class_storage.assign_teacher(request.teacher_id, class_id, request.subject_id, session=session)
    return Envelope(data=assignment)


@router.delete("/{class_id}/teachers/{assignment_id}", operation_id="remove_teaching_assignment")
@di.inject
def remove_teaching_assignment(
    class_id: ClassID,
    assignment_id: TeachingAssignmentID,
    auth: AuthContext = Depends(require_admin),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> Envelope[Message]:
    try:
        with session.begin():
            class_storage.remove_assignment(assignment_id, session=session)
    except KeyError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Teaching assignment not found") from None
    return Envelope(data=Message(message="Teaching assignment removed"))


# Export


def xlsx_filename(kind: str, *names: str) -> str:
    slug = "_".join(regex.sub(r"[^A-Za-z0-9_-]+", "_", n).strip("_") for n in names).strip("_") or "class"
    return f"{kind}_{slug}.xlsx"


@router.get("/{class_id}/summary.xlsx", operation_id="export_class_summary")
@di.inject
def export_class_summary(
    class_id: ClassID,
    semester_id: SemesterID,
    auth: AuthContext = Depends(require_teacher),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> Response:
    """Download a class's grade summary for a semester as an xlsx workbook."""
    with session.begin():
        klass = _require_class(class_id, session)
        if auth.role is not UserRole.Admin and klass.homeroom_teacher_id != auth.user_id:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Only the homeroom teacher can export this class",
            )
        try:
            summary = assemble_class_summary(class_id, semester_id, session=session)
        except KeyError:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Semester not found") from None

    return Response(
        content=build_class_summary_workbook(summary),
        media_type=XlsxMediaType,
        headers={"Content-Disposition": f'attachment; filename="{xlsx_filename("class_summary", klass.name)}"'},
    )
