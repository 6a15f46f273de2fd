from __future__ import annotations

import typing as t

import bcrypt
import pydantic as p
import sqlalchemy as sqla

from educonnect.core import di
from educonnect.lib import NotSet
from educonnect.model import ParentStudentLink, User, UserID, UserRole

from . import Session
from .page import Page, paginate
from .table import parent_student_links, users


def hash_password(password: p.Secret[str]) -> str:
    return bcrypt.hashpw(
        password.get_secret_value().encode("utf-8"),
        bcrypt.gensalt(),
    ).decode("utf-8")


@t.overload
def get(
    *,
    user_id: UserID,
    session: Session = ...,
) -> User | None: ...


@t.overload
def get(
    *,
    email: str,
    session: Session = ...,
) -> User | None: ...


def get(
    *,
    user_id: UserID | None = None,
    email: str | None = None,
    session: Session = di.Provide["storage.persistent.session"],
) -> User | None:
    """Get a user by ID or email.

    Exactly one of user_id or email must be provided.
    """
    if user_id is None and email is None:
        raise ValueError("Either user_id or email must be provided")
    if user_id is not None and email is not None:
        raise ValueError("Only one of user_id or email should be provided")

    if user_id is not None:
        stmt = sqla.select(users.__table__).where(users.user_id == user_id)
    else:
        stmt = sqla.select(users.__table__).where(users.email == email)

    row = session.execute(stmt).mappings().one_or_none()
    return User(**row) if row else None


def find(
    *,
    role: UserRole | None = None,
    search: str | None = None,
    page: int = 1,
    limit: int = 10,
    session: Session = di.Provide["storage.persistent.session"],
) -> Page[User]:
    """Find users, newest first; `search` matches name or email."""
    stmt = sqla.select(users.__table__)
    if role is not None:
        stmt = stmt.where(users.role == role)
    if search:
        pattern = f"%{search}%"
        stmt = stmt.where(sqla.or_(users.full_name.ilike(pattern), users.email.ilike(pattern)))
    stmt = stmt.order_by(users.create_time.desc(), users.full_name)
    return paginate(stmt, page=page, limit=limit, factory=User, session=session)


def find_by_role(
    role: UserRole,
    *,
    session: Session = di.Provide["storage.persistent.session"],
) -> tuple[User, ...]:
    """Active users holding `role`, ordered by name."""
    stmt = (
        sqla.select(users.__table__)
        .where(users.role == role, users.is_active.is_(True))
        .order_by(users.full_name)
    )
    return tuple(User(**row) for row in session.execute(stmt).mappings().all())


def create(
    *,
    email: str,
    full_name: str,
    role: UserRole,
    password: p.Secret[str],
    employee_code: str | None = None,
    student_code: str | None = None,
    phone: str | None = None,
    session: Session = di.Provide["storage.persistent.session"],
) -> User:
    """Create a new user.

    Password is hashed internally using bcrypt.
    """
    user = users(
        user_id=UserID(),
        email=email,
        full_name=full_name,
        role=role,
        password_hash=hash_password(password),
        employee_code=employee_code,
        student_code=student_code,
        phone=phone,
    )
    session.add(user)
    session.flush()
    return get(user_id=user.user_id, session=session)  # type: ignore[return-value]


def update(
    user_id: UserID,
    *,
    email: str | NotSet = NotSet(),
    full_name: str | NotSet = NotSet(),
    password: p.Secret[str] | NotSet = NotSet(),
    employee_code: str | None | NotSet = NotSet(),
    student_code: str | None | NotSet = NotSet(),
    phone: str | None | NotSet = NotSet(),
    is_active: bool | NotSet = NotSet(),
    session: Session = di.Provide["storage.persistent.session"],
) -> User:
    """Update a user.

    Uses NotSet sentinel for parameters where None is a valid update value.

    Raises:
        KeyError: If user_id does not correspond to a user
    """
    values: dict[str, t.Any] = {}
    if not isinstance(email, NotSet):
        values["email"] = email
    if not isinstance(full_name, NotSet):
        values["full_name"] = full_name
    if not isinstance(password, NotSet):
        values["password_hash"] = hash_password(password)
    if not isinstance(employee_code, NotSet):
        values["employee_code"] = employee_code
    if not isinstance(student_code, NotSet):
        values["student_code"] = student_code
    if not isinstance(phone, NotSet):
        values["phone"] = phone
    if not isinstance(is_active, NotSet):
        values["is_active"] = is_active

    # an UPDATE is issued even without changes, to verify the user exists
    if values:
        stmt = sqla.update(users).where(users.user_id == user_id).values(**values)
    else:
        stmt = sqla.update(users).where(users.user_id == user_id).values(user_id=user_id)

    result = session.execute(stmt)
    if result.rowcount == 0:  # pyright: ignore[reportAttributeAccessIssue]
        raise KeyError(f"User {user_id} not found")

    session.flush()
    return get(user_id=user_id, session=session)  # type: ignore[return-value]


def verify_password(user: User, password: str) -> bool:
    if user.password_hash is None:
        return False
    return bcrypt.checkpw(password.encode("utf-8"), user.password_hash.encode("utf-8"))


# Parent links


def link_parent(
    parent_id: UserID,
    student_id: UserID,
    *,
    relationship: str | None = None,
    session: Session = di.Provide["storage.persistent.session"],
) -> ParentStudentLink:
    """Link a parent to a student; linking twice updates the relationship."""
    existing = get_link(parent_id, student_id, session=session)
    if existing is not None:
        stmt = (
            sqla.update(parent_student_links)
            .where(parent_student_links.parent_id == parent_id, parent_student_links.student_id == student_id)
            .values(relationship=relationship)
        )
        session.execute(stmt)
    else:
        session.add(parent_student_links(parent_id=parent_id, student_id=student_id, relationship=relationship))
    session.flush()
    return get_link(parent_id, student_id, session=session)  # type: ignore[return-value]


def get_link(
    parent_id: UserID,
    student_id: UserID,
    *,
    session: Session = di.Provide["storage.persistent.session"],
) -> ParentStudentLink | None:
    stmt = sqla.select(parent_student_links.__table__).where(
        parent_student_links.parent_id == parent_id,
        parent_student_links.student_id == student_id,
    )
    row = session.execute(stmt).mappings().one_or_none()
    return ParentStudentLink(**row) if row else None


def find_children(
    parent_id: UserID,
    *,
    session: Session = di.Provide["storage.persistent.session"],
) -> tuple[User, ...]:
    """Students linked to a parent, ordered by name."""
    stmt = (
        sqla.select(users.__table__)
        .join(parent_student_links, parent_student_links.student_id == users.user_id)
        .where(parent_student_links.parent_id == parent_id)
        .order_by(users.full_name)
    )
    return tuple(User(**row) for row in session.execute(stmt).mappings().all())
