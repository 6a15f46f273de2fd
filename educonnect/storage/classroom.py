from __future__ import annotations

import typing as t

import sqlalchemy as sqla

from educonnect.core import di
from educonnect.model import Classroom, ClassroomID, RoomType

from . import Session
from .page import Page, paginate
from .table import classrooms


class ClassroomCreateParams(t.TypedDict, total=False):
    name: t.Required[str]
    building: str | None
    floor: int | None
    capacity: int
    room_type: RoomType
    equipment: list[str]


class ClassroomUpdateParams(t.TypedDict, total=False):
    name: str
    building: str | None
    floor: int | None
    capacity: int
    room_type: RoomType
    equipment: list[str]
    is_active: bool


def get(
    classroom_id: ClassroomID,
    *,
    session: Session = di.Provide["storage.persistent.session"],
) -> Classroom | None:
    stmt = sqla.select(classrooms.__table__).where(classrooms.classroom_id == classroom_id)
    row = session.execute(stmt).mappings().one_or_none()
    return Classroom(**row) if row else None


def find(
    *,
    search: str | None = None,
    building: str | None = None,
    room_type: RoomType | None = None,
    is_active: bool | None = None,
    page: int = 1,
    limit: int = 10,
    session: Session = di.Provide["storage.persistent.session"],
) -> Page[Classroom]:
    """Find classrooms ordered by name; `search` matches name or building."""
    stmt = sqla.select(classrooms.__table__)
    if search:
        pattern = f"%{search}%"
        stmt = stmt.where(sqla.or_(classrooms.name.ilike(pattern), classrooms.building.ilike(pattern)))
    if building is not None:
        stmt = stmt.where(classrooms.building == building)
    if room_type is not None:
        stmt = stmt.where(classrooms.room_type == room_type)
    if is_active is not None:
        stmt = stmt.where(classrooms.is_active.is_(is_active))
    stmt = stmt.order_by(classrooms.name)
    return paginate(stmt, page=page, limit=limit, factory=Classroom, session=session)


def find_active(
    *,
    session: Session = di.Provide["storage.persistent.session"],
) -> tuple[Classroom, ...]:
    stmt = sqla.select(classrooms.__table__).where(classrooms.is_active.is_(True)).order_by(classrooms.name)
    return tuple(Classroom(**row) for row in session.execute(stmt).mappings().all())


def create(
    params: ClassroomCreateParams,
    *,
    session: Session = di.Provide["storage.persistent.session"],
) -> Classroom:
    classroom = classrooms(classroom_id=ClassroomID(), **params)
    session.add(classroom)
    session.flush()
    return get(classroom.classroom_id, session=session)  # type: ignore[return-value]


def update(
    classroom_id: ClassroomID,
    params: ClassroomUpdateParams,
    *,
    session: Session = di.Provide["storage.persistent.session"],
) -> Classroom:
    """Update a classroom.

    Raises:
        KeyError: If classroom_id does not correspond to a classroom
    """
    stmt = (
        sqla.update(classrooms)
        .where(classrooms.classroom_id == classroom_id)
        .values(**(params or {"classroom_id": classroom_id}))
    )
    if session.execute(stmt).rowcount == 0:  # pyright: ignore[reportAttributeAccessIssue]
        raise KeyError(f"Classroom {classroom_id} not found")
    session.flush()
    return get(classroom_id, session=session)  # type: ignore[return-value]
