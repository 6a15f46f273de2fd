__all__ = [
    # Base
    "BaseModel",
    "WithCtime",
    "WithMtime",
    "WithTimestamps",
    # Enums
    "AuditStatus",
    "ComponentType",
    "DeploymentEnvironment",
    "LeaveStatus",
    "LeaveType",
    "RoomType",
    "UserRole",
    # ID Types
    "AcademicYearID",
    "AuditID",
    "ClassID",
    "ClassroomID",
    "EnrollmentID",
    "FeedbackID",
    "GradeID",
    "LeaveID",
    "NotificationID",
    "SemesterID",
    "SlotID",
    "SubjectID",
    "TeachingAssignmentID",
    "UserID",
    # Users
    "ParentStudentLink",
    "User",
    # School structure
    "AcademicYear",
    "Classroom",
    "SchoolClass",
    "Semester",
    "StudentEnrollment",
    "Subject",
    "TeachingAssignment",
    # Timetable
    "ConflictCheck",
    "ConflictType",
    "TimetableSlot",
    "TimetableSlotDetail",
    "ClockTime",
    # Grades
    "Grade",
    "GradeAuditDetail",
    "GradeAuditLog",
    "GradeOverride",
    "GradeWithHistory",
    # Leave
    "LeaveApplication",
    "LeaveApplicationDetail",
    # Notifications
    "Notification",
    "UserNotification",
    # Feedback
    "StudentFeedback",
    "StudentFeedbackDetail",
]

from .base import BaseModel, WithCtime, WithMtime, WithTimestamps
from .enum import AuditStatus, ComponentType, DeploymentEnvironment, LeaveStatus, LeaveType, RoomType, UserRole
from .feedback import StudentFeedback, StudentFeedbackDetail
from .grade import Grade, GradeAuditDetail, GradeAuditLog, GradeOverride, GradeWithHistory
from .id import AcademicYearID, AuditID, ClassID, ClassroomID, EnrollmentID, FeedbackID, GradeID, LeaveID, \
    NotificationID, SemesterID, SlotID, SubjectID, TeachingAssignmentID, UserID
from .leave import LeaveApplication, LeaveApplicationDetail
from .notification import Notification, UserNotification
from .school import AcademicYear, Classroom, SchoolClass, Semester, StudentEnrollment, Subject, TeachingAssignment
from .timetable import ClockTime, ConflictCheck, ConflictType, TimetableSlot, TimetableSlotDetail
from .user import ParentStudentLink, User
