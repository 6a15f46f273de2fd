"""Academic years, semesters and subjects."""

from __future__ import annotations

import typing as t

import sqlalchemy.exc
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from educonnect.auth import AuthContext, get_current_user, require_admin
from educonnect.core import di
from educonnect.model import AcademicYear, AcademicYearID, Semester, SemesterID, Subject, SubjectID
from educonnect.storage import school as school_storage

from ..view.envelope import Envelope
from ..view.request import changes
from ..view.school import AcademicYearCreateRequest, AcademicYearUpdateRequest, SemesterCreateRequest, \
    SemesterUpdateRequest, SubjectCreateRequest, SubjectUpdateRequest

router = APIRouter(prefix="/api", tags=["school"])


# Academic years


@router.get("/academic-years", operation_id="list_academic_years")
@di.inject
def list_academic_years(
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> Envelope[list[AcademicYear]]:
    with session.begin():
        return Envelope(data=list(school_storage.find_years(session=session)))


@router.post("/academic-years", operation_id="create_academic_year", status_code=status.HTTP_201_CREATED)
@di.inject
def create_academic_year(
    request: AcademicYearCreateRequest,
    auth: AuthContext = Depends(require_admin),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> Envelope[AcademicYear]:
    try:
        with session.begin():
            year = school_storage.create_year(**request.model_dump(), session=session)
    except sqlalchemy.exc.IntegrityError:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT, detail=f"Academic year '{request.name}' already exists"
        ) from None
    return Envelope(data=year)


@router.patch("/academic-years/{academic_year_id}", operation_id="update_academic_year")
@di.inject
def update_academic_year(
    academic_year_id: AcademicYearID,
    request: AcademicYearUpdateRequest,
    auth: AuthContext = Depends(require_admin),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> Envelope[AcademicYear]:
    try:
        with session.begin():
            year = school_storage.update_year(academic_year_id, t.cast(t.Any, changes(request)), session=session)
    except KeyError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Academic year not found") from None
    except sqlalchemy.exc.IntegrityError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="Academic year update violates a constraint"
        ) from None
    return Envelope(data=year)


# Semesters


@router.get("/semesters", operation_id="list_semesters")
@di.inject
def list_semesters(
    academic_year_id: AcademicYearID | None = None,
    is_active: bool | None = None,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> Envelope[list[Semester]]:
    with session.begin():
        found = school_storage.find_semesters(academic_year_id=academic_year_id, is_active=is_active, session=session)
    return Envelope(data=list(found))


@router.post("/semesters", operation_id="create_semester", status_code=status.HTTP_201_CREATED)
@di.inject
def create_semester(
    request: SemesterCreateRequest,
    auth: AuthContext = Depends(require_admin),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> Envelope[Semester]:
    with session.begin():
        if school_storage.get_year(request.academic_year_id, session=session) is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Academic year not found")
        semester = school_storage.create_semester(**request.model_dump(), session=session)
    return Envelope(data=semester)


@router.patch("/semesters/{semester_id}", operation_id="update_semester")
@di.inject
def update_semester(
    semester_id: SemesterID,
    request: SemesterUpdateRequest,
    auth: AuthContext = Depends(require_admin),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> Envelope[Semester]:
    try:
        with session.begin():
            semester = school_storage.update_semester(semester_id, t.cast(t.Any, changes(request)), session=session)
    except KeyError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Semester not found") from None
    except sqlalchemy.exc.IntegrityError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="Semester update violates a constraint"
        ) from None
    return Envelope(data=semester)


# Subjects


@router.get("/subjects", operation_id="list_subjects")
@di.inject
def list_subjects(
    is_active: bool | None = None,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> Envelope[list[Subject]]:
    with session.begin():
        return Envelope(data=list(school_storage.find_subjects(is_active=is_active, session=session)))


@router.post("/subjects", operation_id="create_subject", status_code=status.HTTP_201_CREATED)
@di.inject
def create_subject(
    request: SubjectCreateRequest,
    auth: AuthContext = Depends(require_admin),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> Envelope[Subject]:
    try:
        with session.begin():
            subject = school_storage.create_subject(**request.model_dump(), session=session)
    except sqlalchemy.exc.IntegrityError:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT, detail=f"Subject code '{request.code}' already exists"
        ) from None
    return Envelope(data=subject)


@router.patch("/subjects/{subject_id}", operation_id="update_subject")
@di.inject
def update_subject(
    subject_id: SubjectID,
    request: SubjectUpdateRequest,
    auth: AuthContext = Depends(require_admin),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> Envelope[Subject]:
    try:
        with session.begin():
            subject = school_storage.update_subject(
                subject_id, t.cast(t.Any, changes(request, "category")), session=session
            )
    except KeyError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Subject not found") from None
    except sqlalchemy.exc.IntegrityError:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Subject code already exists") from None
    return Envelope(data=subject)
