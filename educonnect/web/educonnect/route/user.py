"""Admin user management routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from educonnect.auth import AuthContext, require_admin
from educonnect.core import di
from educonnect.lib import NotSet
from educonnect.model import ParentStudentLink, UserID, UserRole
from educonnect.storage import user as user_storage

from ..view.auth import ParentLinkRequest, UserCreateRequest, UserUpdateRequest, UserView
from ..view.envelope import Envelope, Pagination

router = APIRouter(prefix="/api/users", tags=["users"])


@router.get("", operation_id="list_users")
@di.inject
def list_users(
    role: UserRole | None = None,
    search: str | None = None,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    auth: AuthContext = Depends(require_admin),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> Envelope[list[UserView]]:
    """List users, optionally filtered by role or a name/email search."""
    with session.begin():
        found = user_storage.find(role=role, search=search, page=page, limit=limit, session=session)
    return Envelope(data=[UserView.of(u) for u in found.items], pagination=Pagination.of(found))


@router.post("", operation_id="create_user", status_code=status.HTTP_201_CREATED)
@di.inject
def create_user(
    request: UserCreateRequest,
    auth: AuthContext = Depends(require_admin),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> Envelope[UserView]:
    """Create a user account."""
    with session.begin():
        if user_storage.get(email=request.email, session=session) is not None:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already registered")
        user = user_storage.create(
            email=request.email,
            full_name=request.full_name,
            role=request.role,
            password=request.password,
            employee_code=request.employee_code,
            student_code=request.student_code,
            phone=request.phone,
            session=session,
        )
    return Envelope(data=UserView.of(user))


@router.get("/{user_id}", operation_id="get_user")
@di.inject
def get_user(
    user_id: UserID,
    auth: AuthContext = Depends(require_admin),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> Envelope[UserView]:
    with session.begin():
        user = user_storage.get(user_id=user_id, session=session)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return Envelope(data=UserView.of(user))


@router.patch("/{user_id}", operation_id="update_user")
@di.inject
def update_user(
    user_id: UserID,
    request: UserUpdateRequest,
    auth: AuthContext = Depends(require_admin),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> Envelope[UserView]:
    """Update a user; only the fields present in the request change."""
    fields = request.model_fields_set
    with session.begin():
        if request.email is not None:
            other = user_storage.get(email=request.email, session=session)
            if other is not None and other.user_id != user_id:
                raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already registered")
        try:
            user = user_storage.update(
                user_id,
                email=request.email if request.email is not None else NotSet(),
                full_name=request.full_name if request.full_name is not None else NotSet(),
                password=request.password if request.password is not None else NotSet(),
                employee_code=request.employee_code if "employee_code" in fields else NotSet(),
                student_code=request.student_code if "student_code" in fields else NotSet(),
                phone=request.phone if "phone" in fields else NotSet(),
                is_active=request.is_active if request.is_active is not None else NotSet(),
                session=session,
            )
        except KeyError:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found") from None
    return Envelope(data=UserView.of(user))


@router.post("/{parent_id}/children", operation_id="link_parent", status_code=status.HTTP_201_CREATED)
@di.inject
def link_parent(
    parent_id: UserID,
    request: ParentLinkRequest,
    auth: AuthContext = Depends(require_admin),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> Envelope[ParentStudentLink]:
    """Link a parent account to a student account."""
    with session.begin():
        parent = user_storage.get(user_id=parent_id, session=session)
        if parent is None or parent.role is not UserRole.Parent:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Parent not found")
        student = user_storage.get(user_id=request.student_id, session=session)
        if student is None or student.role is not UserRole.Student:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Student not found")
        link = user_storage.link_parent(
            parent_id, request.student_id, relationship=request.relationship, session=session
        )
    return Envelope(data=link)


@router.get("/{parent_id}/children", operation_id="list_children")
@di.inject
def list_children(
    parent_id: UserID,
    auth: AuthContext = Depends(require_admin),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> Envelope[list[UserView]]:
    with session.begin():
        children = user_storage.find_children(parent_id, session=session)
    return Envelope(data=[UserView.of(c) for c in children])
