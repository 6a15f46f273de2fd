"""Per-student grade summaries of a class, as exported to Excel."""

from __future__ import annotations

import datetime
import typing as t
from collections import defaultdict

from sqlalchemy.orm import Session

from educonnect.core import di
from educonnect.core.provider import TimestampProvider
from educonnect.grading import subject_average
from educonnect.model import BaseModel, ClassID, ComponentType, Grade, SemesterID, SubjectID
from educonnect.storage import grade as grade_storage
from educonnect.storage import school as school_storage
from educonnect.storage import schoolclass as class_storage
from educonnect.storage import user as user_storage


class SubjectScore(BaseModel):
    subject_name: str
    midterm: float | None = None
    final: float | None = None
    average: float | None = None


class StudentSummary(BaseModel):
    student_code: str | None = None
    full_name: str
    # keyed by subject name
    subjects: dict[str, SubjectScore] = {}
    average: float | None = None
    rank: int | None = None


class ClassSummary(BaseModel):
    class_name: str
    academic_year: str
    semester: str
    homeroom_teacher: str | None = None
    exported_on: datetime.date
    subjects: list[str]
    students: list[StudentSummary]


def rank_students(students: t.Sequence[StudentSummary]) -> list[StudentSummary]:
    """Rank by average, best first; equal averages share a rank.

    Students without an average are left unranked.
    """
    averages = sorted({s.average for s in students if s.average is not None}, reverse=True)
    rank_of = {avg: i + 1 for i, avg in enumerate(averages)}
    return [s.model_copy(update={"rank": rank_of.get(s.average) if s.average is not None else None}) for s in students]


def _component(grades: t.Iterable[Grade], component_type: ComponentType) -> float | None:
    for grade in grades:
        if grade.component_type is component_type:
            return grade.grade_value
    return None


@di.inject
def assemble_class_summary(
    class_id: ClassID,
    semester_id: SemesterID,
    *,
    session: Session = di.Provide["storage.persistent.session"],
    utcnow: TimestampProvider = di.Provide["utcnow"],
) -> ClassSummary:
    """Build a class's grade summary for a semester from stored grades.

    Raises:
        KeyError: if the class or semester does not exist
    """
    klass = class_storage.get(class_id, session=session)
    if klass is None:
        raise KeyError(f"Class {class_id} not found")
    semester = school_storage.get_semester(semester_id, session=session)
    if semester is None:
        raise KeyError(f"Semester {semester_id} not found")
    year = school_storage.get_year(klass.academic_year_id, session=session)
    homeroom = (
        user_storage.get(user_id=klass.homeroom_teacher_id, session=session) if klass.homeroom_teacher_id else None
    )

    grades = grade_storage.find(semester_id=semester_id, class_id=class_id, session=session)
    subject_ids: set[SubjectID] = {g.subject_id for g in grades}
    subject_ids.update(a.subject_id for a in class_storage.find_assignments(class_id=class_id, session=session))
    subject_names: dict[SubjectID, str] = {}
    for subject_id in subject_ids:
        subject = school_storage.get_subject(subject_id, session=session)
        if subject is not None:
            subject_names[subject_id] = subject.name

    by_student: dict[t.Any, dict[SubjectID, list[Grade]]] = defaultdict(lambda: defaultdict(list))
    for grade in grades:
        by_student[grade.student_id][grade.subject_id].append(grade)

    students: list[StudentSummary] = []
    for student in class_storage.find_students(class_id, session=session):
        scores: dict[str, SubjectScore] = {}
        for subject_id, name in subject_names.items():
            subject_grades = by_student[student.user_id][subject_id]
            scores[name] = SubjectScore(
                subject_name=name,
                midterm=_component(subject_grades, ComponentType.Midterm),
                final=_component(subject_grades, ComponentType.Final),
                average=subject_average(subject_grades),
            )
        averages = [s.average for s in scores.values() if s.average is not None]
        students.append(
            StudentSummary(
                student_code=student.student_code,
                full_name=student.full_name,
                subjects=scores,
                average=round(sum(averages) / len(averages), 1) if averages else None,
            )
        )

    return ClassSummary(
        class_name=klass.name,
        academic_year=year.name if year else "",
        semester=semester.name,
        homeroom_teacher=homeroom.full_name if homeroom else None,
        exported_on=utcnow().date(),
        subjects=sorted(subject_names.values()),
        students=rank_students(students),
    )
