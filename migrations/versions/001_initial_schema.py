"""Initial schema for EduConnect

Revision ID: 001_initial
Revises:
Create Date: 2026-09-14

"""

import typing as t

from alembic import op
from sqlalchemy import func as f
from sqlalchemy.schema import CheckConstraint, Column, ForeignKey, Index, UniqueConstraint
from sqlalchemy.types import JSON, Boolean, Date, DateTime, Enum, Float, Integer, String, Text, Time

# revision identifiers, used by Alembic.
revision: str = "001_initial"
down_revision: str | None = None
branch_labels: str | t.Sequence[str] | None = None
depends_on: str | t.Sequence[str] | None = None

UserRole = Enum("admin", "teacher", "student", "parent", name="userrole")
RoomType = Enum("standard", "lab", "computer", "auditorium", "gym", "library", name="roomtype")
ComponentType = Enum(
    "regular", "regular_1", "regular_2", "regular_3", "regular_4", "midterm", "final", name="componenttype"
)
AuditStatus = Enum("pending", "approved", "rejected", name="auditstatus")
LeaveType = Enum("sick", "family", "emergency", "vacation", "other", name="leavetype")
LeaveStatus = Enum("pending", "approved", "rejected", name="leavestatus")


def _timestamps() -> list[Column[t.Any]]:
    return [
        Column("create_time", DateTime(timezone=True), server_default=f.now(), nullable=False),
        Column("update_time", DateTime(timezone=True), server_default=f.now(), onupdate=f.now(), nullable=False),
    ]


def upgrade() -> None:
    # Users
    op.create_table(
        "users",
        Column("user_id", String(22), primary_key=True),
        Column("email", String, unique=True, nullable=False),
        Column("full_name", String, nullable=False),
        Column("role", UserRole, nullable=False),
        Column("password_hash", String, nullable=False),
        Column("employee_code", String, nullable=True),
        Column("student_code", String, nullable=True),
        Column("phone", String, nullable=True),
        Column("is_active", Boolean, nullable=False),
        *_timestamps(),
    )

    op.create_table(
        "parent_student_links",
        Column("parent_id", String(22), ForeignKey("users.user_id"), primary_key=True),
        Column("student_id", String(22), ForeignKey("users.user_id"), primary_key=True),
        Column("relationship", String, nullable=True),
        Column("create_time", DateTime(timezone=True), server_default=f.now(), nullable=False),
    )

    # School structure
    op.create_table(
        "academic_years",
        Column("academic_year_id", String(22), primary_key=True),
        Column("name", String, unique=True, nullable=False),
        Column("start_date", Date, nullable=False),
        Column("end_date", Date, nullable=False),
        Column("is_current", Boolean, nullable=False),
        *_timestamps(),
        CheckConstraint("end_date >= start_date", name="academic_year_dates"),
    )

    op.create_table(
        "semesters",
        Column("semester_id", String(22), primary_key=True),
        Column("academic_year_id", String(22), ForeignKey("academic_years.academic_year_id"), nullable=False),
        Column("name", String, nullable=False),
        Column("start_date", Date, nullable=False),
        Column("end_date", Date, nullable=False),
        Column("is_active", Boolean, nullable=False),
        *_timestamps(),
        CheckConstraint("end_date >= start_date", name="semester_dates"),
    )

    op.create_table(
        "subjects",
        Column("subject_id", String(22), primary_key=True),
        Column("code", String, unique=True, nullable=False),
        Column("name", String, nullable=False),
        Column("category", String, nullable=True),
        Column("is_active", Boolean, nullable=False),
        *_timestamps(),
    )

    op.create_table(
        "classrooms",
        Column("classroom_id", String(22), primary_key=True),
        Column("name", String, unique=True, nullable=False),
        Column("building", String, nullable=True),
        Column("floor", Integer, nullable=True),
        Column("capacity", Integer, nullable=False),
        Column("room_type", RoomType, nullable=False),
        Column("equipment", JSON, nullable=False),
        Column("is_active", Boolean, nullable=False),
        *_timestamps(),
        CheckConstraint("floor IS NULL OR floor BETWEEN 1 AND 20", name="classroom_floor"),
        CheckConstraint("capacity BETWEEN 1 AND 200", name="classroom_capacity"),
    )

    op.create_table(
        "classes",
        Column("class_id", String(22), primary_key=True),
        Column("name", String, nullable=False),
        Column("academic_year_id", String(22), ForeignKey("academic_years.academic_year_id"), nullable=False),
        Column("semester_id", String(22), ForeignKey("semesters.semester_id"), nullable=False),
        Column("homeroom_teacher_id", String(22), ForeignKey("users.user_id"), nullable=True),
        Column("is_active", Boolean, nullable=False),
        *_timestamps(),
    )

    op.create_table(
        "student_enrollments",
        Column("enrollment_id", String(22), primary_key=True),
        Column("student_id", String(22), ForeignKey("users.user_id"), nullable=False),
        Column("class_id", String(22), ForeignKey("classes.class_id"), nullable=False),
        Column("academic_year_id", String(22), ForeignKey("academic_years.academic_year_id"), nullable=False),
        Column("is_active", Boolean, nullable=False),
        *_timestamps(),
    )

    op.create_table(
        "teaching_assignments",
        Column("assignment_id", String(22), primary_key=True),
        Column("teacher_id", String(22), ForeignKey("users.user_id"), nullable=False),
        Column("class_id", String(22), ForeignKey("classes.class_id"), nullable=False),
        Column("subject_id", String(22), ForeignKey("subjects.subject_id"), nullable=False),
        Column("is_active", Boolean, nullable=False),
        *_timestamps(),
        UniqueConstraint("teacher_id", "class_id", "subject_id"),
    )

    # Timetable
    op.create_table(
        "timetable_slots",
        Column("slot_id", String(22), primary_key=True),
        Column("class_id", String(22), ForeignKey("classes.class_id"), nullable=False),
        Column("subject_id", String(22), ForeignKey("subjects.subject_id"), nullable=False),
        Column("teacher_id", String(22), ForeignKey("users.user_id"), nullable=False),
        Column("classroom_id", String(22), ForeignKey("classrooms.classroom_id"), nullable=False),
        Column("semester_id", String(22), ForeignKey("semesters.semester_id"), nullable=False),
        Column("day_of_week", Integer, nullable=False),
        Column("start_time", Time, nullable=False),
        Column("end_time", Time, nullable=False),
        Column("week_number", Integer, nullable=False),
        Column("notes", Text, nullable=True),
        *_timestamps(),
        CheckConstraint("day_of_week BETWEEN 0 AND 6", name="slot_day_of_week"),
        CheckConstraint("week_number BETWEEN 1 AND 52", name="slot_week_number"),
        CheckConstraint("end_time > start_time", name="slot_times"),
    )
    op.create_index(
        "ix_timetable_slots_when", "timetable_slots", ["semester_id", "week_number", "day_of_week", "start_time"]
    )

    # Grades
    op.create_table(
        "grades",
        Column("grade_id", String(22), primary_key=True),
        Column("student_id", String(22), ForeignKey("users.user_id"), nullable=False),
        Column("class_id", String(22), ForeignKey("classes.class_id"), nullable=False),
        Column("subject_id", String(22), ForeignKey("subjects.subject_id"), nullable=False),
        Column("semester_id", String(22), ForeignKey("semesters.semester_id"), nullable=False),
        Column("component_type", ComponentType, nullable=False),
        Column("grade_value", Float, nullable=True),
        *_timestamps(),
        UniqueConstraint("student_id", "class_id", "subject_id", "semester_id", "component_type"),
        CheckConstraint("grade_value IS NULL OR grade_value BETWEEN 0 AND 10", name="grade_value_range"),
    )

    op.create_table(
        "grade_audit_logs",
        Column("audit_id", String(22), primary_key=True),
        Column("grade_id", String(22), ForeignKey("grades.grade_id"), nullable=False),
        Column("change_reason", Text, nullable=False),
        Column("changed_by", String(22), ForeignKey("users.user_id"), nullable=False),
        Column("changed_at", DateTime(timezone=True), nullable=False),
        Column("status", AuditStatus, nullable=False),
        Column("old_value", Float, nullable=True),
        Column("new_value", Float, nullable=True),
        Column("admin_reason", Text, nullable=True),
        Column("processed_at", DateTime(timezone=True), nullable=True),
        Column("processed_by", String(22), ForeignKey("users.user_id"), nullable=True),
    )

    # Leave applications
    op.create_table(
        "leave_applications",
        Column("leave_id", String(22), primary_key=True),
        Column("student_id", String(22), ForeignKey("users.user_id"), nullable=False),
        Column("parent_id", String(22), ForeignKey("users.user_id"), nullable=False),
        Column("class_id", String(22), ForeignKey("classes.class_id"), nullable=False),
        Column("academic_year_id", String(22), ForeignKey("academic_years.academic_year_id"), nullable=False),
        Column("leave_type", LeaveType, nullable=False),
        Column("start_date", Date, nullable=False),
        Column("end_date", Date, nullable=False),
        Column("reason", Text, nullable=False),
        Column("homeroom_teacher_id", String(22), ForeignKey("users.user_id"), nullable=True),
        Column("attachment_url", String, nullable=True),
        Column("status", LeaveStatus, nullable=False),
        Column("teacher_response", Text, nullable=True),
        Column("responded_at", DateTime(timezone=True), nullable=True),
        *_timestamps(),
        CheckConstraint("end_date >= start_date", name="leave_dates"),
    )

    # Notifications
    op.create_table(
        "notifications",
        Column("notification_id", String(22), primary_key=True),
        Column("title", String, nullable=False),
        Column("content", Text, nullable=False),
        Column("sender_id", String(22), ForeignKey("users.user_id"), nullable=False),
        Column("image_url", String, nullable=True),
        Column("target_roles", JSON, nullable=False),
        Column("target_classes", JSON, nullable=False),
        Column("is_active", Boolean, nullable=False),
        *_timestamps(),
    )

    op.create_table(
        "notification_reads",
        Column("notification_id", String(22), ForeignKey("notifications.notification_id"), primary_key=True),
        Column("user_id", String(22), ForeignKey("users.user_id"), primary_key=True),
        Column("read_at", DateTime(timezone=True), server_default=f.now(), nullable=False),
    )

    # Feedback
    op.create_table(
        "student_feedback",
        Column("feedback_id", String(22), primary_key=True),
        Column("student_id", String(22), ForeignKey("users.user_id"), nullable=False),
        Column("teacher_id", String(22), ForeignKey("users.user_id"), nullable=False),
        Column("subject_id", String(22), ForeignKey("subjects.subject_id"), nullable=False),
        Column("slot_id", String(22), ForeignKey("timetable_slots.slot_id"), nullable=False),
        Column("rating", Integer, nullable=False),
        Column("feedback_text", Text, nullable=True),
        Column("ai_summary", Text, nullable=True),
        Column("use_ai_summary", Boolean, nullable=False),
        Column("ai_generated_at", DateTime(timezone=True), nullable=True),
        *_timestamps(),
        CheckConstraint("rating BETWEEN 1 AND 5", name="feedback_rating"),
    )


def downgrade() -> None:
    op.drop_table("student_feedback")
    op.drop_table("notification_reads")
    op.drop_table("notifications")
    op.drop_table("leave_applications")
    op.drop_table("grade_audit_logs")
    op.drop_table("grades")
    op.drop_index("ix_timetable_slots_when", table_name="timetable_slots")
    op.drop_table("timetable_slots")
    op.drop_table("teaching_assignments")
    op.drop_table("student_enrollments")
    op.drop_table("classes")
    op.drop_table("classrooms")
    op.drop_table("subjects")
    op.drop_table("semesters")
    op.drop_table("academic_years")
    op.drop_table("parent_student_links")
    op.drop_table("users")

    bind = op.get_bind()
    for enum in (LeaveStatus, LeaveType, AuditStatus, ComponentType, RoomType, UserRole):
        enum.drop(bind, checkfirst=True)
