"""Timetable routes."""

from __future__ import annotations

import logging
import typing as t

import sqlalchemy.exc
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from educonnect.auth import AuthContext, get_current_user, require_admin
from educonnect.core import di
from educonnect.model import ClassID, ClassroomID, ConflictCheck, SemesterID, SlotID, TimetableSlotDetail, UserID, \
    UserRole
from educonnect.storage import classroom as classroom_storage
from educonnect.storage import school as school_storage
from educonnect.storage import schoolclass as class_storage
from educonnect.storage import timetable as timetable_storage
from educonnect.storage import user as user_storage
from educonnect.timetable import check_conflict, ConflictCheckError, validate_slot

from ..view.envelope import Envelope, Message
from ..view.request import changes
from ..view.timetable import ClassOption, ClassroomOption, ConflictCheckRequest, ConflictCheckView, SemesterOption, \
    SlotCreateRequest, SlotUpdateRequest, SubjectOption, TeacherOption, TimetableOptions

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/timetable", tags=["timetable"])


def _check(session: Session, exclude_slot_id: SlotID | None = None, **fields: t.Any) -> ConflictCheck:
    try:
        return check_conflict(
            classroom_id=fields["classroom_id"],
            teacher_id=fields["teacher_id"],
            day_of_week=fields["day_of_week"],
            start_time=fields["start_time"],
            week_number=fields["week_number"],
            semester_id=fields["semester_id"],
            exclude_slot_id=exclude_slot_id,
            session=session,
        )
    except ConflictCheckError as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e)) from e


def _require_references(session: Session, fields: t.Mapping[str, t.Any]) -> None:
    """Raise 404 for the first referenced row among `fields` that does not exist."""
    lookups: list[tuple[str, str, t.Callable[[t.Any], t.Any]]] = [
        ("class_id", "Class", lambda k: class_storage.get(k, session=session)),
        ("subject_id", "Subject", lambda k: school_storage.get_subject(k, session=session)),
        ("classroom_id", "Classroom", lambda k: classroom_storage.get(k, session=session)),
        ("semester_id", "Semester", lambda k: school_storage.get_semester(k, session=session)),
    ]
    for field, name, lookup in lookups:
        if field in fields and lookup(fields[field]) is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"{name} not found")
    if "teacher_id" in fields:
        teacher = user_storage.get(user_id=fields["teacher_id"], session=session)
        if teacher is None or teacher.role is not UserRole.Teacher:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Teacher not found")


def _reject_conflict(result: ConflictCheck) -> None:
    if result.has_conflict:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=f"Conflict detected: {result.message}")


def _detail(slot_id: SlotID, session: Session) -> TimetableSlotDetail:
    slot = timetable_storage.get_detail(slot_id, session=session)
    assert slot is not None
    return slot


@router.get("", operation_id="list_timetable_slots")
@di.inject
def list_slots(
    class_id: ClassID | None = None,
    semester_id: SemesterID | None = None,
    week_number: int | None = None,
    teacher_id: UserID | None = None,
    classroom_id: ClassroomID | None = None,
    day_of_week: int | None = None,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> Envelope[list[TimetableSlotDetail]]:
    """List slots in day and start-time order."""
    with session.begin():
        slots = timetable_storage.find(
            class_id=class_id,
            semester_id=semester_id,
            week_number=week_number,
            teacher_id=teacher_id,
            classroom_id=classroom_id,
            day_of_week=day_of_week,
            session=session,
        )
    return Envelope(data=list(slots))


@router.get("/options", operation_id="get_timetable_options")
@di.inject
def get_options(
    auth: AuthContext = Depends(require_admin),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> Envelope[TimetableOptions]:
    """Everything the slot form offers to choose from."""
    with session.begin():
        options = TimetableOptions(
            classes=[
                ClassOption(class_id=c.class_id, name=c.name)
                for c in class_storage.find(is_active=True, session=session)
            ],
            subjects=[
                SubjectOption(subject_id=s.subject_id, code=s.code, name=s.name, category=s.category)
                for s in school_storage.find_subjects(is_active=True, session=session)
            ],
            teachers=[
                TeacherOption(user_id=u.user_id, full_name=u.full_name, employee_code=u.employee_code)
                for u in user_storage.find_by_role(UserRole.Teacher, session=session)
            ],
            classrooms=[
                ClassroomOption(
                    classroom_id=r.classroom_id,
                    name=r.name,
                    building=r.building,
                    capacity=r.capacity,
                    room_type=r.room_type,
                )
                for r in classroom_storage.find_active(session=session)
            ],
            semesters=[
                SemesterOption(semester_id=s.semester_id, academic_year_id=s.academic_year_id, name=s.name)
                for s in school_storage.find_semesters(is_active=True, session=session)
            ],
        )
    return Envelope(data=options)


@router.post("/check-conflict", operation_id="check_timetable_conflict")
@di.inject
def check_slot_conflict(
    request: ConflictCheckRequest,
    auth: AuthContext = Depends(require_admin),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> Envelope[ConflictCheckView]:
    """Report whether a prospective slot would double-book; nothing is written."""
    with session.begin():
        result = _check(session, **request.model_dump())
    return Envelope(data=ConflictCheckView(**result.model_dump(), message=result.message))


@router.post("", operation_id="create_timetable_slot", status_code=status.HTTP_201_CREATED)
@di.inject
def create_slot(
    request: SlotCreateRequest,
    auth: AuthContext = Depends(require_admin),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> Envelope[TimetableSlotDetail]:
    """Create a slot unless it would double-book its classroom or teacher."""
    params = request.model_dump()
    try:
        with session.begin():
            _require_references(session, params)
            _reject_conflict(_check(session, **params))
            slot = timetable_storage.create(t.cast(t.Any, params), session=session)
            detail = _detail(slot.slot_id, session)
    except sqlalchemy.exc.IntegrityError:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT, detail="Timetable slot violates a constraint"
        ) from None

    logger.info(
        "created timetable slot",
        extra={
            "slot_id": slot.slot_id,
            "class_id": slot.class_id,
            "teacher_id": slot.teacher_id,
            "classroom_id": slot.classroom_id,
            "admin": auth.user_id,
        },
    )
    return Envelope(data=detail)


@router.patch("/{slot_id}", operation_id="update_timetable_slot")
@di.inject
def update_slot(
    slot_id: SlotID,
    request: SlotUpdateRequest,
    auth: AuthContext = Depends(require_admin),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> Envelope[TimetableSlotDetail]:
    """Partially update a slot.

    Scheduling fields left out of the request keep their stored values; the
    conflict check runs against the merged slot, excluding the slot itself.
    """
    params = changes(request, "notes")
    try:
        with session.begin():
            stored = timetable_storage.get(slot_id, session=session)
            if stored is None:
                raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Timetable slot not found")
            _require_references(session, params)
            merged = {**stored.model_dump(), **params}
            try:
                validate_slot(
                    day_of_week=merged["day_of_week"],
                    start_time=merged["start_time"],
                    end_time=merged["end_time"],
                    week_number=merged["week_number"],
                )
            except ValueError as e:
                raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from None

            if request.reschedules:
                _reject_conflict(_check(session, exclude_slot_id=slot_id, **merged))

            timetable_storage.update(slot_id, t.cast(t.Any, params), session=session)
            detail = _detail(slot_id, session)
    except sqlalchemy.exc.IntegrityError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="Timetable slot update violates a constraint"
        ) from None

    logger.info(
        "updated timetable slot",
        extra={
            "slot_id": slot_id,
            "fields": sorted(params),
            "admin": auth.user_id,
        },
    )
    return Envelope(data=detail)


@router.delete("/{slot_id}", operation_id="delete_timetable_slot")
@di.inject
def delete_slot(
    slot_id: SlotID,
    auth: AuthContext = Depends(require_admin),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> Envelope[Message]:
    try:
        with session.begin():
            timetable_storage.delete(slot_id, session=session)
    except KeyError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Timetable slot not found") from None

    logger.info("deleted timetable slot", extra={"slot_id": slot_id, "admin": auth.user_id})
    return Envelope(data=Message(message="Timetable slot deleted"))
