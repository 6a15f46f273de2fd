"""Authentication dependencies for FastAPI routes."""

from __future__ import annotations

import typing as t

from fastapi import Depends, HTTPException, Query, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from educonnect.core import di
from educonnect.model import User, UserID, UserRole

from . import jwt as jwt_auth
from . import local as local_auth
from .jwt import TokenData

bearer_scheme = HTTPBearer(auto_error=False)


class AuthContext(t.NamedTuple):
    """Current authentication context."""

    user: User
    token_data: TokenData

    @property
    def user_id(self) -> UserID:
        return self.user.user_id

    @property
    def role(self) -> UserRole:
        # the stored role wins over the one the token was issued with
        return self.user.role


@di.inject
def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    token: str | None = Query(None, description="JWT token, for clients which can't set headers"),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> AuthContext:
    """Dependency to get the current authenticated user.

    Accepts token from either:
    - Authorization: Bearer header (preferred)
    - ?token= query parameter

    Raises:
        HTTPException 401: If no token provided or token is invalid
        HTTPException 401: If user not found
    """
    raw_token: str | None = None
    if credentials is not None:
        raw_token = credentials.credentials
    elif token is not None:
        raw_token = token

    if raw_token is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    token_data = jwt_auth.decode_token(raw_token)
    if token_data is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    with session.begin():
        user = local_auth.get_user(token_data.user_id, session=session)
        if user is None:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="User not found",
                headers={"WWW-Authenticate": "Bearer"},
            )

    return AuthContext(user=user, token_data=token_data)


def require_role(
    *allowed_roles: UserRole,
) -> t.Callable[..., AuthContext]:
    """Dependency factory to require specific roles.

    Usage:
        @router.get("/admin")
        def admin_route(auth: AuthContext = Depends(require_role(UserRole.Admin))):
            ...
    """

    def check_role(auth: AuthContext = Depends(get_current_user)) -> AuthContext:
        if auth.role not in allowed_roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Role '{auth.role.value}' not authorized for this resource",
            )
        return auth

    return check_role


# Convenience dependencies
require_admin = require_role(UserRole.Admin)
require_teacher = require_role(UserRole.Teacher, UserRole.Admin)
require_parent = require_role(UserRole.Parent)
