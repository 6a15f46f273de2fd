"""Academic years, semesters and subjects."""

from __future__ import annotations

import datetime
import typing as t

import sqlalchemy as sqla

from educonnect.core import di
from educonnect.model import AcademicYear, AcademicYearID, Semester, SemesterID, Subject, SubjectID

from . import Session
from .table import academic_years, semesters, subjects


class AcademicYearUpdateParams(t.TypedDict, total=False):
    name: str
    start_date: datetime.date
    end_date: datetime.date
    is_current: bool


class SemesterUpdateParams(t.TypedDict, total=False):
    name: str
    start_date: datetime.date
    end_date: datetime.date
    is_active: bool


class SubjectUpdateParams(t.TypedDict, total=False):
    code: str
    name: str
    category: str | None
    is_active: bool


# Academic years


def get_year(
    academic_year_id: AcademicYearID,
    *,
    session: Session = di.Provide["storage.persistent.session"],
) -> AcademicYear | None:
    stmt = sqla.select(academic_years.__table__).where(academic_years.academic_year_id == academic_year_id)
    row = session.execute(stmt).mappings().one_or_none()
    return AcademicYear(**row) if row else None


def find_years(
    *,
    session: Session = di.Provide["storage.persistent.session"],
) -> tuple[AcademicYear, ...]:
    """All academic years, newest first."""
    stmt = sqla.select(academic_years.__table__).order_by(academic_years.start_date.desc())
    return tuple(AcademicYear(**row) for row in session.execute(stmt).mappings().all())


def create_year(
    *,
    name: str,
    start_date: datetime.date,
    end_date: datetime.date,
    is_current: bool = False,
    session: Session = di.Provide["storage.persistent.session"],
) -> AcademicYear:
    """Create an academic year; a current year demotes any other."""
    if end_date < start_date:
        raise ValueError("end_date must not precede start_date")
    if is_current:
        session.execute(sqla.update(academic_years).values(is_current=False))
    year = academic_years(
        academic_year_id=AcademicYearID(),
        name=name,
        start_date=start_date,
        end_date=end_date,
        is_current=is_current,
    )
    session.add(year)
    session.flush()
    return get_year(year.academic_year_id, session=session)  # type: ignore[return-value]


def update_year(
    academic_year_id: AcademicYearID,
    params: AcademicYearUpdateParams,
    *,
    session: Session = di.Provide["storage.persistent.session"],
) -> AcademicYear:
    """Update an academic year.

    Raises:
        KeyError: If academic_year_id does not correspond to a year
    """
    if params.get("is_current"):
        session.execute(
            sqla.update(academic_years)
            .where(academic_years.academic_year_id != academic_year_id)
            .values(is_current=False)
        )
    stmt = (
        sqla.update(academic_years)
        .where(academic_years.academic_year_id == academic_year_id)
        .values(**(params or {"academic_year_id": academic_year_id}))
    )
    if session.execute(stmt).rowcount == 0:  # pyright: ignore[reportAttributeAccessIssue]
        raise KeyError(f"Academic year {academic_year_id} not found")
    session.flush()
    return get_year(academic_year_id, session=session)  # type: ignore[return-value]


# Semesters


def get_semester(
    semester_id: SemesterID,
    *,
    session: Session = di.Provide["storage.persistent.session"],
) -> Semester | None:
    stmt = sqla.select(semesters.__table__).where(semesters.semester_id == semester_id)
    row = session.execute(stmt).mappings().one_or_none()
    return Semester(**row) if row else None


def find_semesters(
    *,
    academic_year_id: AcademicYearID | None = None,
    is_active: bool | None = None,
    session: Session = di.Provide["storage.persistent.session"],
) -> tuple[Semester, ...]:
    """Semesters, newest first."""
    stmt = sqla.select(semesters.__table__)
    if academic_year_id is not None:
        stmt = stmt.where(semesters.academic_year_id == academic_year_id)
    if is_active is not None:
        stmt = stmt.where(semesters.is_active.is_(is_active))
    stmt = stmt.order_by(semesters.start_date.desc())
    return tuple(Semester(**row) for row in session.execute(stmt).mappings().all())


def create_semester(
    *,
    academic_year_id: AcademicYearID,
    name: str,
    start_date: datetime.date,
    end_date: datetime.date,
    is_active: bool = True,
    session: Session = di.Provide["storage.persistent.session"],
) -> Semester:
    if end_date < start_date:
        raise ValueError("end_date must not precede start_date")
    semester = semesters(
        semester_id=SemesterID(),
        academic_year_id=academic_year_id,
        name=name,
        start_date=start_date,
        end_date=end_date,
        is_active=is_active,
    )
    session.add(semester)
    session.flush()
    return get_semester(semester.semester_id, session=session)  # type: ignore[return-value]


def update_semester(
    semester_id: SemesterID,
    params: SemesterUpdateParams,
    *,
    session: Session = di.Provide["storage.persistent.session"],
) -> Semester:
    """Update a semester.

    Raises:
        KeyError: If semester_id does not correspond to a semester
    """
    stmt = (
        sqla.update(semesters)
        .where(semesters.semester_id == semester_id)
        .values(**(params or {"semester_id": semester_id}))
    )
    if session.execute(stmt).rowcount == 0:  # pyright: ignore[reportAttributeAccessIssue]
        raise KeyError(f"Semester {semester_id} not found")
    session.flush()
    return get_semester(semester_id, session=session)  # type: ignore[return-value]


# Subjects


def get_subject(
    subject_id: SubjectID,
    *,
    session: Session = di.Provide["storage.persistent.session"],
) -> Subject | None:
    stmt = sqla.select(subjects.__table__).where(subjects.subject_id == subject_id)
    row = session.execute(stmt).mappings().one_or_none()
    return Subject(**row) if row else None


def find_subjects(
    *,
    is_active: bool | None = None,
    session: Session = di.Provide["storage.persistent.session"],
) -> tuple[Subject, ...]:
    """Subjects ordered by category, then name."""
    stmt = sqla.select(subjects.__table__)
    if is_active is not None:
        stmt = stmt.where(subjects.is_active.is_(is_active))
    stmt = stmt.order_by(subjects.category, subjects.name)
    return tuple(Subject(**row) for row in session.execute(stmt).mappings().all())


def create_subject(
    *,
    code: str,
    name: str,
    category: str | None = None,
    session: Session = di.Provide["storage.persistent.session"],
) -> Subject:
    subject = subjects(subject_id=SubjectID(), code=code, name=name, category=category)
    session.add(subject)
    session.flush()
    return get_subject(subject.subject_id, session=session)  # type: ignore[return-value]


def update_subject(
    subject_id: SubjectID,
    params: SubjectUpdateParams,
    *,
    session: Session = di.Provide["storage.persistent.session"],
) -> Subject:
    """Update a subject.

    Raises:
        KeyError: If subject_id does not correspond to a subject
    """
    stmt = (
        sqla.update(subjects)
        .where(subjects.subject_id == subject_id)
        .values(**(params or {"subject_id": subject_id}))
    )
    if session.execute(stmt).rowcount == 0:  # pyright: ignore[reportAttributeAccessIssue]
        raise KeyError(f"Subject {subject_id} not found")
    session.flush()
    return get_subject(subject_id, session=session)  # type: ignore[return-value]
