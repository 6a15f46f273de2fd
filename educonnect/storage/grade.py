from __future__ import annotations

import sqlalchemy as sqla

from educonnect.core import di
from educonnect.model import ClassID, ComponentType, Grade, GradeID, GradeWithHistory, SemesterID, SubjectID, UserID

from . import audit as audit_storage
from . import Session
from .table import grades


def get(
    grade_id: GradeID,
    *,
    session: Session = di.Provide["storage.persistent.session"],
) -> Grade | None:
    stmt = sqla.select(grades.__table__).where(grades.grade_id == grade_id)
    row = session.execute(stmt).mappings().one_or_none()
    return Grade(**row) if row else None


def find(
    *,
    semester_id: SemesterID,
    class_id: ClassID | None = None,
    subject_id: SubjectID | None = None,
    student_id: UserID | None = None,
    session: Session = di.Provide["storage.persistent.session"],
) -> tuple[Grade, ...]:
    """Find the grades of a semester, newest change first."""
    stmt = sqla.select(grades.__table__).where(grades.semester_id == semester_id)
    if class_id is not None:
        stmt = stmt.where(grades.class_id == class_id)
    if subject_id is not None:
        stmt = stmt.where(grades.subject_id == subject_id)
    if student_id is not None:
        stmt = stmt.where(grades.student_id == student_id)
    stmt = stmt.order_by(grades.update_time.desc())
    return tuple(Grade(**row) for row in session.execute(stmt).mappings().all())


def find_with_history(
    *,
    semester_id: SemesterID,
    class_id: ClassID,
    subject_id: SubjectID,
    session: Session = di.Provide["storage.persistent.session"],
) -> tuple[GradeWithHistory, ...]:
    found = find(semester_id=semester_id, class_id=class_id, subject_id=subject_id, session=session)
    audits = audit_storage.find_by_grades([g.grade_id for g in found], session=session)
    return tuple(
        GradeWithHistory(**g.model_dump(), audits=[a for a in audits if a.grade_id == g.grade_id]) for g in found
    )


def put(
    *,
    student_id: UserID,
    class_id: ClassID,
    subject_id: SubjectID,
    semester_id: SemesterID,
    component_type: ComponentType,
    grade_value: float | None,
    session: Session = di.Provide["storage.persistent.session"],
) -> Grade:
    """Write a grade value, creating the row for its component if needed."""
    where = (
        grades.student_id == student_id,
        grades.class_id == class_id,
        grades.subject_id == subject_id,
        grades.semester_id == semester_id,
        grades.component_type == component_type,
    )
    result = session.execute(sqla.update(grades).where(*where).values(grade_value=grade_value))
    if result.rowcount == 0:  # pyright: ignore[reportAttributeAccessIssue]
        session.add(
            grades(
                grade_id=GradeID(),
                student_id=student_id,
                class_id=class_id,
                subject_id=subject_id,
                semester_id=semester_id,
                component_type=component_type,
                grade_value=grade_value,
            )
        )
    session.flush()
    row = session.execute(sqla.select(grades.__table__).where(*where)).mappings().one()
    return Grade(**row)


def set_value(
    grade_id: GradeID,
    grade_value: float | None,
    *,
    session: Session = di.Provide["storage.persistent.session"],
) -> Grade:
    """Set a stored grade's value; update_time is bumped.

    Raises:
        KeyError: If grade_id does not correspond to a grade
    """
    stmt = sqla.update(grades).where(grades.grade_id == grade_id).values(grade_value=grade_value)
    if session.execute(stmt).rowcount == 0:  # pyright: ignore[reportAttributeAccessIssue]
        raise KeyError(f"Grade {grade_id} not found")
    session.flush()
    return get(grade_id, session=session)  # type: ignore[return-value]
