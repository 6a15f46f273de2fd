import datetime

from .base import WithTimestamps
from .enum import RoomType
from .id import AcademicYearID, ClassID, ClassroomID, EnrollmentID, SemesterID, SubjectID, TeachingAssignmentID, \
    UserID


class AcademicYear(WithTimestamps):
    academic_year_id: AcademicYearID
    name: str
    start_date: datetime.date
    end_date: datetime.date
    is_current: bool = False


class Semester(WithTimestamps):
    semester_id: SemesterID
    academic_year_id: AcademicYearID
    name: str
    start_date: datetime.date
    end_date: datetime.date
    is_active: bool = True


class Subject(WithTimestamps):
    subject_id: SubjectID
    code: str
    name: str
    category: str | None = None
    is_active: bool = True


class Classroom(WithTimestamps):
    classroom_id: ClassroomID
    name: str
    building: str | None = None
    floor: int | None = None
    capacity: int = 40
    room_type: RoomType = RoomType.Standard
    equipment: list[str] = []
    is_active: bool = True


class SchoolClass(WithTimestamps):
    class_id: ClassID
    name: str
    academic_year_id: AcademicYearID
    semester_id: SemesterID
    homeroom_teacher_id: UserID | None = None
    is_active: bool = True


class StudentEnrollment(WithTimestamps):
    enrollment_id: EnrollmentID
    student_id: UserID
    class_id: ClassID
    academic_year_id: AcademicYearID
    is_active: bool = True


class TeachingAssignment(WithTimestamps):
    assignment_id: TeachingAssignmentID
    teacher_id: UserID
    class_id: ClassID
    subject_id: SubjectID
    is_active: bool = True
