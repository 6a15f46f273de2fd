"""Classroom management routes."""

from __future__ import annotations

import typing as t

import sqlalchemy.exc
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from educonnect.auth import AuthContext, get_current_user, require_admin
from educonnect.core import di
from educonnect.model import Classroom, ClassroomID, RoomType
from educonnect.storage import classroom as classroom_storage

from ..view.envelope import Envelope, Pagination
from ..view.request import changes
from ..view.school import ClassroomCreateRequest, ClassroomUpdateRequest

router = APIRouter(prefix="/api/classrooms", tags=["classrooms"])


@router.get("", operation_id="list_classrooms")
@di.inject
def list_classrooms(
    search: str | None = None,
    building: str | None = None,
    room_type: RoomType | None = None,
    is_active: bool | None = None,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> Envelope[list[Classroom]]:
    """List classrooms by name, with filters and pagination."""
    with session.begin():
        found = classroom_storage.find(
            search=search,
            building=building,
            room_type=room_type,
            is_active=is_active,
            page=page,
            limit=limit,
            session=session,
        )
    return Envelope(data=list(found.items), pagination=Pagination.of(found))


@router.get("/{classroom_id}", operation_id="get_classroom")
@di.inject
def get_classroom(
    classroom_id: ClassroomID,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> Envelope[Classroom]:
    with session.begin():
        classroom = classroom_storage.get(classroom_id, session=session)
    if classroom is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Classroom not found")
    return Envelope(data=classroom)


@router.post("", operation_id="create_classroom", status_code=status.HTTP_201_CREATED)
@di.inject
def create_classroom(
    request: ClassroomCreateRequest,
    auth: AuthContext = Depends(require_admin),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> Envelope[Classroom]:
    try:
        with session.begin():
            classroom = classroom_storage.create(t.cast(t.Any, request.model_dump()), session=session)
    except sqlalchemy.exc.IntegrityError:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT, detail=f"Classroom '{request.name}' already exists"
        ) from None
    return Envelope(data=classroom)


@router.patch("/{classroom_id}", operation_id="update_classroom")
@di.inject
def update_classroom(
    classroom_id: ClassroomID,
    request: ClassroomUpdateRequest,
    auth: AuthContext = Depends(require_admin),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> Envelope[Classroom]:
    params = changes(request, "building", "floor")
    try:
        with session.begin():
            classroom = classroom_storage.update(classroom_id, t.cast(t.Any, params), session=session)
    except KeyError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Classroom not found") from None
    except sqlalchemy.exc.IntegrityError:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Classroom name already exists") from None
    return Envelope(data=classroom)


@router.delete("/{classroom_id}", operation_id="deactivate_classroom")
@di.inject
def deactivate_classroom(
    classroom_id: ClassroomID,
    auth: AuthContext = Depends(require_admin),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> Envelope[Classroom]:
    """Deactivate a classroom; slots that reference it keep their history."""
    try:
        with session.begin():
            classroom = classroom_storage.update(classroom_id, {"is_active": False}, session=session)
    except KeyError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Classroom not found") from None
    return Envelope(data=classroom)
