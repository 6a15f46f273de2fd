import datetime
import enum
import typing as t

from sqlalchemy import CheckConstraint, ForeignKey, func, Index, MetaData, UniqueConstraint
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, MappedAsDataclass
from sqlalchemy.types import JSON, DateTime, Text

from educonnect.model import AcademicYearID, AuditID, AuditStatus, ClassID, ClassroomID, ComponentType, EnrollmentID, \
    FeedbackID, GradeID, LeaveID, LeaveStatus, LeaveType, NotificationID, RoomType, SemesterID, SlotID, SubjectID, \
    TeachingAssignmentID, UserID, UserRole

from .type import ShortUUIDKeyType, ValueEnumMapper

metadata = MetaData()


class base(MappedAsDataclass, DeclarativeBase):
    metadata = metadata
    type_annotation_map = {
        UserID: ShortUUIDKeyType(UserID),
        AcademicYearID: ShortUUIDKeyType(AcademicYearID),
        SemesterID: ShortUUIDKeyType(SemesterID),
        SubjectID: ShortUUIDKeyType(SubjectID),
        ClassroomID: ShortUUIDKeyType(ClassroomID),
        ClassID: ShortUUIDKeyType(ClassID),
        EnrollmentID: ShortUUIDKeyType(EnrollmentID),
        TeachingAssignmentID: ShortUUIDKeyType(TeachingAssignmentID),
        SlotID: ShortUUIDKeyType(SlotID),
        GradeID: ShortUUIDKeyType(GradeID),
        AuditID: ShortUUIDKeyType(AuditID),
        LeaveID: ShortUUIDKeyType(LeaveID),
        NotificationID: ShortUUIDKeyType(NotificationID),
        FeedbackID: ShortUUIDKeyType(FeedbackID),
        datetime.datetime: DateTime(timezone=True),
        list[str]: JSON,
        enum.Enum: ValueEnumMapper(),
    }


# Users


class users(base):
    __tablename__ = "users"

    user_id: Mapped[UserID] = mapped_column(primary_key=True)
    email: Mapped[str] = mapped_column(unique=True)
    full_name: Mapped[str]
    role: Mapped[UserRole]
    password_hash: Mapped[str]
    employee_code: Mapped[str | None] = mapped_column(default=None)
    student_code: Mapped[str | None] = mapped_column(default=None)
    phone: Mapped[str | None] = mapped_column(default=None)
    is_active: Mapped[bool] = mapped_column(default=True)
    create_time: Mapped[datetime.datetime] = mapped_column(default=None, server_default=func.now())
    update_time: Mapped[datetime.datetime] = mapped_column(default=None, server_default=func.now(), onupdate=func.now())


class parent_student_links(base):
    __tablename__ = "parent_student_links"

    parent_id: Mapped[UserID] = mapped_column(ForeignKey("users.user_id"), primary_key=True)
    student_id: Mapped[UserID] = mapped_column(ForeignKey("users.user_id"), primary_key=True)
    relationship: Mapped[str | None] = mapped_column(default=None)
    create_time: Mapped[datetime.datetime] = mapped_column(default=None, server_default=func.now())


# School structure


class academic_years(base):
    __tablename__ = "academic_years"
    __table_args__ = (CheckConstraint("end_date >= start_date", name="academic_year_dates"),)

    academic_year_id: Mapped[AcademicYearID] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(unique=True)
    start_date: Mapped[datetime.date]
    end_date: Mapped[datetime.date]
    is_current: Mapped[bool] = mapped_column(default=False)
    create_time: Mapped[datetime.datetime] = mapped_column(default=None, server_default=func.now())
    update_time: Mapped[datetime.datetime] = mapped_column(default=None, server_default=func.now(), onupdate=func.now())


class semesters(base):
    __tablename__ = "semesters"
    __table_args__ = (CheckConstraint("end_date >= start_date", name="semester_dates"),)

    semester_id: Mapped[SemesterID] = mapped_column(primary_key=True)
    academic_year_id: Mapped[AcademicYearID] = mapped_column(ForeignKey("academic_years.academic_year_id"))
    name: Mapped[str]
    start_date: Mapped[datetime.date]
    end_date: Mapped[datetime.date]
    is_active: Mapped[bool] = mapped_column(default=True)
    create_time: Mapped[datetime.datetime] = mapped_column(default=None, server_default=func.now())
    update_time: Mapped[datetime.datetime] = mapped_column(default=None, server_default=func.now(), onupdate=func.now())


class subjects(base):
    __tablename__ = "subjects"

    subject_id: Mapped[SubjectID] = mapped_column(primary_key=True)
    code: Mapped[str] = mapped_column(unique=True)
    name: Mapped[str]
    category: Mapped[str | None] = mapped_column(default=None)
    is_active: Mapped[bool] = mapped_column(default=True)
    create_time: Mapped[datetime.datetime] = mapped_column(default=None, server_default=func.now())
    update_time: Mapped[datetime.datetime] = mapped_column(default=None, server_default=func.now(), onupdate=func.now())


class classrooms(base):
    __tablename__ = "classrooms"
    __table_args__ = (
        CheckConstraint("floor IS NULL OR floor BETWEEN 1 AND 20", name="classroom_floor"),
        CheckConstraint("capacity BETWEEN 1 AND 200", name="classroom_capacity"),
    )

    classroom_id: Mapped[ClassroomID] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(unique=True)
    building: Mapped[str | None] = mapped_column(default=None)
    floor: Mapped[int | None] = mapped_column(default=None)
    capacity: Mapped[int] = mapped_column(default=40)
    room_type: Mapped[RoomType] = mapped_column(default=RoomType.Standard)
    equipment: Mapped[list[str]] = mapped_column(default_factory=list)
    is_active: Mapped[bool] = mapped_column(default=True)
    create_time: Mapped[datetime.datetime] = mapped_column(default=None, server_default=func.now())
    update_time: Mapped[datetime.datetime] = mapped_column(default=None, server_default=func.now(), onupdate=func.now())


class classes(base):
    __tablename__ = "classes"

    class_id: Mapped[ClassID] = mapped_column(primary_key=True)
    name: Mapped[str]
    academic_year_id: Mapped[AcademicYearID] = mapped_column(ForeignKey("academic_years.academic_year_id"))
    semester_id: Mapped[SemesterID] = mapped_column(ForeignKey("semesters.semester_id"))
    homeroom_teacher_id: Mapped[UserID | None] = mapped_column(ForeignKey("users.user_id"), default=None)
    is_active: Mapped[bool] = mapped_column(default=True)
    create_time: Mapped[datetime.datetime] = mapped_column(default=None, server_default=func.now())
    update_time: Mapped[datetime.datetime] = mapped_column(default=None, server_default=func.now(), onupdate=func.now())


class student_enrollments(base):
    __tablename__ = "student_enrollments"

    enrollment_id: Mapped[EnrollmentID] = mapped_column(primary_key=True)
    student_id: Mapped[UserID] = mapped_column(ForeignKey("users.user_id"))
    class_id: Mapped[ClassID] = mapped_column(ForeignKey("classes.class_id"))
    academic_year_id: Mapped[AcademicYearID] = mapped_column(ForeignKey("academic_years.academic_year_id"))
    is_active: Mapped[bool] = mapped_column(default=True)
    create_time: Mapped[datetime.datetime] = mapped_column(default=None, server_default=func.now())
    update_time: Mapped[datetime.datetime] = mapped_column(default=None, server_default=func.now(), onupdate=func.now())


class teaching_assignments(base):
    __tablename__ = "teaching_assignments"
    __table_args__ = (UniqueConstraint("teacher_id", "class_id", "subject_id"),)

    assignment_id: Mapped[TeachingAssignmentID] = mapped_column(primary_key=True)
    teacher_id: Mapped[UserID] = mapped_column(ForeignKey("users.user_id"))
    class_id: Mapped[ClassID] = mapped_column(ForeignKey("classes.class_id"))
    subject_id: Mapped[SubjectID] = mapped_column(ForeignKey("subjects.subject_id"))
    is_active: Mapped[bool] = mapped_column(default=True)
    create_time: Mapped[datetime.datetime] = mapped_column(default=None, server_default=func.now())
    update_time: Mapped[datetime.datetime] = mapped_column(default=None, server_default=func.now(), onupdate=func.now())


# Timetable


class timetable_slots(base):
    __tablename__ = "timetable_slots"
    __table_args__ = (
        CheckConstraint("day_of_week BETWEEN 0 AND 6", name="slot_day_of_week"),
        CheckConstraint("week_number BETWEEN 1 AND 52", name="slot_week_number"),
        CheckConstraint("end_time > start_time", name="slot_times"),
        # the conflict checker's candidate lookup
        Index("ix_timetable_slots_when", "semester_id", "week_number", "day_of_week", "start_time"),
    )

    slot_id: Mapped[SlotID] = mapped_column(primary_key=True)
    class_id: Mapped[ClassID] = mapped_column(ForeignKey("classes.class_id"))
    subject_id: Mapped[SubjectID] = mapped_column(ForeignKey("subjects.subject_id"))
    teacher_id: Mapped[UserID] = mapped_column(ForeignKey("users.user_id"))
    classroom_id: Mapped[ClassroomID] = mapped_column(ForeignKey("classrooms.classroom_id"))
    semester_id: Mapped[SemesterID] = mapped_column(ForeignKey("semesters.semester_id"))
    day_of_week: Mapped[int]
    start_time: Mapped[datetime.time]
    end_time: Mapped[datetime.time]
    week_number: Mapped[int]
    notes: Mapped[str | None] = mapped_column(Text, default=None)
    create_time: Mapped[datetime.datetime] = mapped_column(default=None, server_default=func.now())
    update_time: Mapped[datetime.datetime] = mapped_column(default=None, server_default=func.now(), onupdate=func.now())


# Grades


class grades(base):
    __tablename__ = "grades"
    __table_args__ = (
        UniqueConstraint("student_id", "class_id", "subject_id", "semester_id", "component_type"),
        CheckConstraint("grade_value IS NULL OR grade_value BETWEEN 0 AND 10", name="grade_value_range"),
    )

    grade_id: Mapped[GradeID] = mapped_column(primary_key=True)
    student_id: Mapped[UserID] = mapped_column(ForeignKey("users.user_id"))
    class_id: Mapped[ClassID] = mapped_column(ForeignKey("classes.class_id"))
    subject_id: Mapped[SubjectID] = mapped_column(ForeignKey("subjects.subject_id"))
    semester_id: Mapped[SemesterID] = mapped_column(ForeignKey("semesters.semester_id"))
    component_type: Mapped[ComponentType]
    grade_value: Mapped[float | None] = mapped_column(default=None)
    create_time: Mapped[datetime.datetime] = mapped_column(default=None, server_default=func.now())
    update_time: Mapped[datetime.datetime] = mapped_column(default=None, server_default=func.now(), onupdate=func.now())


class grade_audit_logs(base):
    __tablename__ = "grade_audit_logs"

    audit_id: Mapped[AuditID] = mapped_column(primary_key=True)
    grade_id: Mapped[GradeID] = mapped_column(ForeignKey("grades.grade_id"))
    change_reason: Mapped[str] = mapped_column(Text)
    changed_by: Mapped[UserID] = mapped_column(ForeignKey("users.user_id"))
    changed_at: Mapped[datetime.datetime]
    status: Mapped[AuditStatus]
    old_value: Mapped[float | None] = mapped_column(default=None)
    new_value: Mapped[float | None] = mapped_column(default=None)
    admin_reason: Mapped[str | None] = mapped_column(Text, default=None)
    processed_at: Mapped[datetime.datetime | None] = mapped_column(default=None)
    processed_by: Mapped[UserID | None] = mapped_column(ForeignKey("users.user_id"), default=None)


# Leave applications


class leave_applications(base):
    __tablename__ = "leave_applications"
    __table_args__ = (CheckConstraint("end_date >= start_date", name="leave_dates"),)

    leave_id: Mapped[LeaveID] = mapped_column(primary_key=True)
    student_id: Mapped[UserID] = mapped_column(ForeignKey("users.user_id"))
    parent_id: Mapped[UserID] = mapped_column(ForeignKey("users.user_id"))
    class_id: Mapped[ClassID] = mapped_column(ForeignKey("classes.class_id"))
    academic_year_id: Mapped[AcademicYearID] = mapped_column(ForeignKey("academic_years.academic_year_id"))
    leave_type: Mapped[LeaveType]
    start_date: Mapped[datetime.date]
    end_date: Mapped[datetime.date]
    reason: Mapped[str] = mapped_column(Text)
    homeroom_teacher_id: Mapped[UserID | None] = mapped_column(ForeignKey("users.user_id"), default=None)
    attachment_url: Mapped[str | None] = mapped_column(default=None)
    status: Mapped[LeaveStatus] = mapped_column(default=LeaveStatus.Pending)
    teacher_response: Mapped[str | None] = mapped_column(Text, default=None)
    responded_at: Mapped[datetime.datetime | None] = mapped_column(default=None)
    create_time: Mapped[datetime.datetime] = mapped_column(default=None, server_default=func.now())
    update_time: Mapped[datetime.datetime] = mapped_column(default=None, server_default=func.now(), onupdate=func.now())


# Notifications


class notifications(base):
    __tablename__ = "notifications"

    notification_id: Mapped[NotificationID] = mapped_column(primary_key=True)
    title: Mapped[str]
    content: Mapped[str] = mapped_column(Text)
    sender_id: Mapped[UserID] = mapped_column(ForeignKey("users.user_id"))
    image_url: Mapped[str | None] = mapped_column(default=None)
    # role values and prefixed class ids, respectively
    target_roles: Mapped[list[str]] = mapped_column(default_factory=list)
    target_classes: Mapped[list[str]] = mapped_column(default_factory=list)
    is_active: Mapped[bool] = mapped_column(default=True)
    create_time: Mapped[datetime.datetime] = mapped_column(default=None, server_default=func.now())
    update_time: Mapped[datetime.datetime] = mapped_column(default=None, server_default=func.now(), onupdate=func.now())


class notification_reads(base):
    __tablename__ = "notification_reads"

    notification_id: Mapped[NotificationID] = mapped_column(
        ForeignKey("notifications.notification_id"), primary_key=True
    )
    user_id: Mapped[UserID] = mapped_column(ForeignKey("users.user_id"), primary_key=True)
    read_at: Mapped[datetime.datetime] = mapped_column(default=None, server_default=func.now())


# Feedback


class student_feedback(base):
    __tablename__ = "student_feedback"
    __table_args__ = (CheckConstraint("rating BETWEEN 1 AND 5", name="feedback_rating"),)

    feedback_id: Mapped[FeedbackID] = mapped_column(primary_key=True)
    student_id: Mapped[UserID] = mapped_column(ForeignKey("users.user_id"))
    teacher_id: Mapped[UserID] = mapped_column(ForeignKey("users.user_id"))
    subject_id: Mapped[SubjectID] = mapped_column(ForeignKey("subjects.subject_id"))
    slot_id: Mapped[SlotID] = mapped_column(ForeignKey("timetable_slots.slot_id"))
    rating: Mapped[int]
    feedback_text: Mapped[str | None] = mapped_column(Text, default=None)
    ai_summary: Mapped[str | None] = mapped_column(Text, default=None)
    use_ai_summary: Mapped[bool] = mapped_column(default=False)
    ai_generated_at: Mapped[datetime.datetime | None] = mapped_column(default=None)
    create_time: Mapped[datetime.datetime] = mapped_column(default=None, server_default=func.now())
    update_time: Mapped[datetime.datetime] = mapped_column(default=None, server_default=func.now(), onupdate=func.now())


TableType = t.TypeVar("TableType", bound=base)
