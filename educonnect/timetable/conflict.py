"""Double-booking checks for timetable slots."""

from __future__ import annotations

import datetime

import sqlalchemy.exc
from sqlalchemy.orm import Session

from educonnect.core import di
from educonnect.core.provider import LoggingProvider
from educonnect.model import ClassroomID, ConflictCheck, ConflictType, SemesterID, SlotID, UserID
from educonnect.storage import timetable as timetable_storage


class ConflictCheckError(Exception):
    """The conflict check could not be completed."""

    def __init__(self, message: str = "Failed to check conflicts") -> None:
        super().__init__(message)


@di.inject
def check_conflict(
    *,
    classroom_id: ClassroomID,
    teacher_id: UserID,
    day_of_week: int,
    start_time: datetime.time,
    week_number: int,
    semester_id: SemesterID,
    exclude_slot_id: SlotID | None = None,
    session: Session = di.Provide["storage.persistent.session"],
    logging: LoggingProvider = di.Provide["logging"],
) -> ConflictCheck:
    """Check whether a slot would double-book its classroom or teacher.

    Slots clash only when they share the semester, week, day and exact start
    time. A classroom clash is reported ahead of a teacher clash. Nothing is
    written.

    Raises:
        ConflictCheckError: if the existing slots could not be read
    """
    logger = logging.get_logger()
    try:
        candidates = timetable_storage.find_at(
            day_of_week=day_of_week,
            start_time=start_time,
            week_number=week_number,
            semester_id=semester_id,
            exclude_slot_id=exclude_slot_id,
            session=session,
        )
    except sqlalchemy.exc.SQLAlchemyError as e:
        logger.exception(
            "conflict check failed",
            extra={
                "classroom_id": classroom_id,
                "teacher_id": teacher_id,
                "semester_id": semester_id,
            },
        )
        raise ConflictCheckError() from e

    if any(slot.classroom_id == classroom_id for slot in candidates):
        return ConflictCheck(has_conflict=True, conflict_type=ConflictType.Classroom)
    if any(slot.teacher_id == teacher_id for slot in candidates):
        return ConflictCheck(has_conflict=True, conflict_type=ConflictType.Teacher)
    return ConflictCheck(has_conflict=False)
