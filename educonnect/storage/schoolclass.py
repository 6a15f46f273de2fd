"""Classes, student enrollments and teaching assignments."""

from __future__ import annotations

import typing as t

import sqlalchemy as sqla

from educonnect.core import di
from educonnect.model import AcademicYearID, ClassID, EnrollmentID, SchoolClass, SemesterID, StudentEnrollment, \
    SubjectID, TeachingAssignment, TeachingAssignmentID, User, UserID

from . import Session
from .table import classes, parent_student_links, student_enrollments, teaching_assignments, users


class ClassUpdateParams(t.TypedDict, total=False):
    name: str
    semester_id: SemesterID
    homeroom_teacher_id: UserID | None
    is_active: bool


def get(
    class_id: ClassID,
    *,
    session: Session = di.Provide["storage.persistent.session"],
) -> SchoolClass | None:
    stmt = sqla.select(classes.__table__).where(classes.class_id == class_id)
    row = session.execute(stmt).mappings().one_or_none()
    return SchoolClass(**row) if row else None


def find(
    *,
    academic_year_id: AcademicYearID | None = None,
    semester_id: SemesterID | None = None,
    homeroom_teacher_id: UserID | None = None,
    is_active: bool | None = None,
    session: Session = di.Provide["storage.persistent.session"],
) -> tuple[SchoolClass, ...]:
    """Find classes ordered by name."""
    stmt = sqla.select(classes.__table__)
    if academic_year_id is not None:
        stmt = stmt.where(classes.academic_year_id == academic_year_id)
    if semester_id is not None:
        stmt = stmt.where(classes.semester_id == semester_id)
    if homeroom_teacher_id is not None:
        stmt = stmt.where(classes.homeroom_teacher_id == homeroom_teacher_id)
    if is_active is not None:
        stmt = stmt.where(classes.is_active.is_(is_active))
    stmt = stmt.order_by(classes.name)
    return tuple(SchoolClass(**row) for row in session.execute(stmt).mappings().all())


def create(
    *,
    name: str,
    academic_year_id: AcademicYearID,
    semester_id: SemesterID,
    homeroom_teacher_id: UserID | None = None,
    session: Session = di.Provide["storage.persistent.session"],
) -> SchoolClass:
    klass = classes(
        class_id=ClassID(),
        name=name,
        academic_year_id=academic_year_id,
        semester_id=semester_id,
        homeroom_teacher_id=homeroom_teacher_id,
    )
    session.add(klass)
    session.flush()
    return get(klass.class_id, session=session)  # type: ignore[return-value]


def update(
    class_id: ClassID,
    params: ClassUpdateParams,
    *,
    session: Session = di.Provide["storage.persistent.session"],
) -> SchoolClass:
    """Update a class.

    Raises:
        KeyError: If class_id does not correspond to a class
    """
    stmt = sqla.update(classes).where(classes.class_id == class_id).values(**(params or {"class_id": class_id}))
    if session.execute(stmt).rowcount == 0:  # pyright: ignore[reportAttributeAccessIssue]
        raise KeyError(f"Class {class_id} not found")
    session.flush()
    return get(class_id, session=session)  # type: ignore[return-value]


# Enrollments


def enroll(
    student_id: UserID,
    class_id: ClassID,
    *,
    session: Session = di.Provide["storage.persistent.session"],
) -> StudentEnrollment:
    """Enroll a student in a class, deactivating any current enrollment.

    Raises:
        KeyError: If class_id does not correspond to a class
    """
    klass = get(class_id, session=session)
    if klass is None:
        raise KeyError(f"Class {class_id} not found")

    session.execute(
        sqla.update(student_enrollments)
        .where(student_enrollments.student_id == student_id, student_enrollments.is_active.is_(True))
        .values(is_active=False)
    )
    enrollment = student_enrollments(
        enrollment_id=EnrollmentID(),
        student_id=student_id,
        class_id=class_id,
        academic_year_id=klass.academic_year_id,
    )
    session.add(enrollment)
    session.flush()
    stmt = sqla.select(student_enrollments.__table__).where(
        student_enrollments.enrollment_id == enrollment.enrollment_id
    )
    return StudentEnrollment(**session.execute(stmt).mappings().one())


def get_active_enrollment(
    student_id: UserID,
    *,
    session: Session = di.Provide["storage.persistent.session"],
) -> StudentEnrollment | None:
    stmt = sqla.select(student_enrollments.__table__).where(
        student_enrollments.student_id == student_id,
        student_enrollments.is_active.is_(True),
    )
    row = session.execute(stmt).mappings().first()
    return StudentEnrollment(**row) if row else None


def find_students(
    class_id: ClassID,
    *,
    session: Session = di.Provide["storage.persistent.session"],
) -> tuple[User, ...]:
    """Students actively enrolled in a class, ordered by name."""
    stmt = (
        sqla.select(users.__table__)
        .join(student_enrollments, student_enrollments.student_id == users.user_id)
        .where(student_enrollments.class_id == class_id, student_enrollments.is_active.is_(True))
        .order_by(users.full_name)
    )
    return tuple(User(**row) for row in session.execute(stmt).mappings().all())


# Teaching assignments


def assign_teacher(
    teacher_id: UserID,
    class_id: ClassID,
    subject_id: SubjectID,
    *,
    session: Session = di.Provide["storage.persistent.session"],
) -> TeachingAssignment:
    """Assign a teacher to teach a subject in a class; re-assigning reactivates."""
    where = (
        teaching_assignments.teacher_id == teacher_id,
        teaching_assignments.class_id == class_id,
        teaching_assignments.subject_id == subject_id,
    )
    result = session.execute(sqla.update(teaching_assignments).where(*where).values(is_active=True))
    if result.rowcount == 0:  # pyright: ignore[reportAttributeAccessIssue]
        session.add(
            teaching_assignments(
                assignment_id=TeachingAssignmentID(),
                teacher_id=teacher_id,
                class_id=class_id,
                subject_id=subject_id,
            )
        )
    session.flush()
    row = session.execute(sqla.select(teaching_assignments.__table__).where(*where)).mappings().one()
    return TeachingAssignment(**row)


def find_assignments(
    *,
    teacher_id: UserID | None = None,
    class_id: ClassID | None = None,
    session: Session = di.Provide["storage.persistent.session"],
) -> tuple[TeachingAssignment, ...]:
    """Active teaching assignments."""
    stmt = sqla.select(teaching_assignments.__table__).where(teaching_assignments.is_active.is_(True))
    if teacher_id is not None:
        stmt = stmt.where(teaching_assignments.teacher_id == teacher_id)
    if class_id is not None:
        stmt = stmt.where(teaching_assignments.class_id == class_id)
    return tuple(TeachingAssignment(**row) for row in session.execute(stmt).mappings().all())


def remove_assignment(
    assignment_id: TeachingAssignmentID,
    *,
    session: Session = di.Provide["storage.persistent.session"],
) -> None:
    """Deactivate a teaching assignment.

    Raises:
        KeyError: If assignment_id does not correspond to an assignment
    """
    stmt = (
        sqla.update(teaching_assignments)
        .where(teaching_assignments.assignment_id == assignment_id)
        .values(is_active=False)
    )
    if session.execute(stmt).rowcount == 0:  # pyright: ignore[reportAttributeAccessIssue]
        raise KeyError(f"Teaching assignment {assignment_id} not found")
    session.flush()


# Class membership by role


def class_ids_for_teacher(
    teacher_id: UserID,
    *,
    session: Session = di.Provide["storage.persistent.session"],
) -> set[ClassID]:
    """Active classes a teacher teaches in or is homeroom teacher of."""
    taught = sqla.select(teaching_assignments.class_id).where(
        teaching_assignments.teacher_id == teacher_id, teaching_assignments.is_active.is_(True)
    )
    homeroom = sqla.select(classes.class_id).where(classes.homeroom_teacher_id == teacher_id)
    stmt = sqla.select(classes.class_id).where(
        classes.is_active.is_(True), sqla.or_(classes.class_id.in_(taught), classes.class_id.in_(homeroom))
    )
    return set(session.execute(stmt).scalars().all())


def class_ids_for_student(
    student_id: UserID,
    *,
    session: Session = di.Provide["storage.persistent.session"],
) -> set[ClassID]:
    stmt = sqla.select(student_enrollments.class_id).where(
        student_enrollments.student_id == student_id, student_enrollments.is_active.is_(True)
    )
    return set(session.execute(stmt).scalars().all())


def class_ids_for_parent(
    parent_id: UserID,
    *,
    session: Session = di.Provide["storage.persistent.session"],
) -> set[ClassID]:
    """Classes of the parent's children's active enrollments."""
    stmt = (
        sqla.select(student_enrollments.class_id)
        .join(parent_student_links, parent_student_links.student_id == student_enrollments.student_id)
        .where(parent_student_links.parent_id == parent_id, student_enrollments.is_active.is_(True))
    )
    return set(session.execute(stmt).scalars().all())


def is_homeroom_teacher(
    teacher_id: UserID,
    *,
    session: Session = di.Provide["storage.persistent.session"],
) -> bool:
    stmt = sqla.select(sqla.func.count()).select_from(classes).where(
        classes.homeroom_teacher_id == teacher_id, classes.is_active.is_(True)
    )
    return session.execute(stmt).scalar_one() > 0
