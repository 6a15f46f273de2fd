import datetime

from .base import WithTimestamps
from .id import FeedbackID, SlotID, SubjectID, UserID


class StudentFeedback(WithTimestamps):
    feedback_id: FeedbackID
    student_id: UserID
    teacher_id: UserID
    subject_id: SubjectID
    slot_id: SlotID
    rating: int
    feedback_text: str | None = None

    ai_summary: str | None = None
    use_ai_summary: bool = False
    ai_generated_at: datetime.datetime | None = None


class StudentFeedbackDetail(StudentFeedback):
    subject_name: str
    teacher_name: str
