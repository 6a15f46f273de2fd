import datetime

from .base import WithTimestamps
from .enum import LeaveStatus, LeaveType
from .id import AcademicYearID, ClassID, LeaveID, UserID


class LeaveApplication(WithTimestamps):
    leave_id: LeaveID
    student_id: UserID
    parent_id: UserID
    homeroom_teacher_id: UserID | None = None
    class_id: ClassID
    academic_year_id: AcademicYearID

    leave_type: LeaveType
    start_date: datetime.date
    end_date: datetime.date
    reason: str
    attachment_url: str | None = None

    status: LeaveStatus = LeaveStatus.Pending
    teacher_response: str | None = None
    responded_at: datetime.datetime | None = None


class LeaveApplicationDetail(LeaveApplication):
    student_name: str
    class_name: str
