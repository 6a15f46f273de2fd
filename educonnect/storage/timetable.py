from __future__ import annotations

import datetime
import typing as t

import sqlalchemy as sqla
from sqlalchemy.orm import aliased

from educonnect.core import di
from educonnect.model import ClassID, ClassroomID, SemesterID, SlotID, SubjectID, TimetableSlot, TimetableSlotDetail, \
    UserID

from . import Session
from .table import classes, classrooms, semesters, subjects, timetable_slots, users


class SlotCreateParams(t.TypedDict, total=False):
    class_id: t.Required[ClassID]
    subject_id: t.Required[SubjectID]
    teacher_id: t.Required[UserID]
    classroom_id: t.Required[ClassroomID]
    semester_id: t.Required[SemesterID]
    day_of_week: t.Required[int]
    start_time: t.Required[datetime.time]
    end_time: t.Required[datetime.time]
    week_number: t.Required[int]
    notes: str | None


class SlotUpdateParams(t.TypedDict, total=False):
    class_id: ClassID
    subject_id: SubjectID
    teacher_id: UserID
    classroom_id: ClassroomID
    semester_id: SemesterID
    day_of_week: int
    start_time: datetime.time
    end_time: datetime.time
    week_number: int
    notes: str | None


def _detail_select() -> sqla.Select[t.Any]:
    teacher = aliased(users)
    return (
        sqla.select(
            timetable_slots.__table__,
            classes.name.label("class_name"),
            subjects.name.label("subject_name"),
            subjects.code.label("subject_code"),
            teacher.full_name.label("teacher_name"),
            classrooms.name.label("classroom_name"),
            semesters.name.label("semester_name"),
        )
        .join(classes, classes.class_id == timetable_slots.class_id)
        .join(subjects, subjects.subject_id == timetable_slots.subject_id)
        .join(teacher, teacher.user_id == timetable_slots.teacher_id)
        .join(classrooms, classrooms.classroom_id == timetable_slots.classroom_id)
        .join(semesters, semesters.semester_id == timetable_slots.semester_id)
    )


def get(
    slot_id: SlotID,
    *,
    session: Session = di.Provide["storage.persistent.session"],
) -> TimetableSlot | None:
    stmt = sqla.select(timetable_slots.__table__).where(timetable_slots.slot_id == slot_id)
    row = session.execute(stmt).mappings().one_or_none()
    return TimetableSlot(**row) if row else None


def get_detail(
    slot_id: SlotID,
    *,
    session: Session = di.Provide["storage.persistent.session"],
) -> TimetableSlotDetail | None:
    stmt = _detail_select().where(timetable_slots.slot_id == slot_id)
    row = session.execute(stmt).mappings().one_or_none()
    return TimetableSlotDetail(**row) if row else None


def find(
    *,
    class_id: ClassID | None = None,
    semester_id: SemesterID | None = None,
    week_number: int | None = None,
    teacher_id: UserID | None = None,
    classroom_id: ClassroomID | None = None,
    day_of_week: int | None = None,
    session: Session = di.Provide["storage.persistent.session"],
) -> tuple[TimetableSlotDetail, ...]:
    """Find slots with their display names, ordered by day then start time."""
    stmt = _detail_select()
    if class_id is not None:
        stmt = stmt.where(timetable_slots.class_id == class_id)
    if semester_id is not None:
        stmt = stmt.where(timetable_slots.semester_id == semester_id)
    if week_number is not None:
        stmt = stmt.where(timetable_slots.week_number == week_number)
    if teacher_id is not None:
        stmt = stmt.where(timetable_slots.teacher_id == teacher_id)
    if classroom_id is not None:
        stmt = stmt.where(timetable_slots.classroom_id == classroom_id)
    if day_of_week is not None:
        stmt = stmt.where(timetable_slots.day_of_week == day_of_week)
    stmt = stmt.order_by(timetable_slots.day_of_week, timetable_slots.start_time)
    return tuple(TimetableSlotDetail(**row) for row in session.execute(stmt).mappings().all())


def find_at(
    *,
    day_of_week: int,
    start_time: datetime.time,
    week_number: int,
    semester_id: SemesterID,
    exclude_slot_id: SlotID | None = None,
    session: Session = di.Provide["storage.persistent.session"],
) -> tuple[TimetableSlot, ...]:
    """Slots starting at exactly the given time in the given week and semester."""
    stmt = sqla.select(timetable_slots.__table__).where(
        timetable_slots.semester_id == semester_id,
        timetable_slots.week_number == week_number,
        timetable_slots.day_of_week == day_of_week,
        timetable_slots.start_time == start_time,
    )
    if exclude_slot_id is not None:
        stmt = stmt.where(timetable_slots.slot_id != exclude_slot_id)
    return tuple(TimetableSlot(**row) for row in session.execute(stmt).mappings().all())


def create(
    params: SlotCreateParams,
    *,
    session: Session = di.Provide["storage.persistent.session"],
) -> TimetableSlot:
    slot = timetable_slots(slot_id=SlotID(), **params)
    session.add(slot)
    session.flush()
    return get(slot.slot_id, session=session)  # type: ignore[return-value]


def update(
    slot_id: SlotID,
    params: SlotUpdateParams,
    *,
    session: Session = di.Provide["storage.persistent.session"],
) -> TimetableSlot:
    """Update a slot.

    Raises:
        KeyError: If slot_id does not correspond to a slot
    """
    stmt = (
        sqla.update(timetable_slots)
        .where(timetable_slots.slot_id == slot_id)
        .values(**(params or {"slot_id": slot_id}))
    )
    if session.execute(stmt).rowcount == 0:  # pyright: ignore[reportAttributeAccessIssue]
        raise KeyError(f"Timetable slot {slot_id} not found")
    session.flush()
    return get(slot_id, session=session)  # type: ignore[return-value]


def delete(
    slot_id: SlotID,
    *,
    session: Session = di.Provide["storage.persistent.session"],
) -> None:
    """Delete a slot.

    Raises:
        KeyError: If slot_id does not correspond to a slot
    """
    stmt = sqla.delete(timetable_slots).where(timetable_slots.slot_id == slot_id)
    if session.execute(stmt).rowcount == 0:  # pyright: ignore[reportAttributeAccessIssue]
        raise KeyError(f"Timetable slot {slot_id} not found")
    session.flush()
