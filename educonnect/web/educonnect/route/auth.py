"""Authentication routes."""

from __future__ import annotations

import datetime

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from educonnect.auth import AuthContext, get_current_user, jwt
from educonnect.auth import local as local_auth
from educonnect.core import di
from educonnect.core.provider import TimestampProvider

from ..view.auth import LoginRequest, LoginResponse, TokenResponse, UserView
from ..view.envelope import Envelope

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/login", operation_id="login")
@di.inject
def login(
    request: LoginRequest,
    session: Session = Depends(di.Manage["storage.persistent.session"]),
    expire_minutes: int = Depends(di.Provide["config.web.educonnect.auth.access_token_expire_minutes"]),
    utcnow: TimestampProvider = Depends(di.Provide["utcnow"]),
) -> Envelope[LoginResponse]:
    """Authenticate a user and return an access token."""
    with session.begin():
        result = local_auth.authenticate(request.email, request.password, session=session)

    if not result.success or result.user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=result.error or "Invalid credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    expires_delta = datetime.timedelta(minutes=expire_minutes)
    access_token = jwt.create_access_token(
        user_id=result.user.user_id,
        role=result.user.role,
        expires_delta=expires_delta,
    )

    return Envelope(
        data=LoginResponse(
            user=UserView.of(result.user),
            token=TokenResponse(access_token=access_token, expires_at=utcnow() + expires_delta),
        )
    )


@router.get("/me", operation_id="get_current_user")
def get_me(
    auth: AuthContext = Depends(get_current_user),
) -> Envelope[UserView]:
    """Get the current authenticated user."""
    return Envelope(data=UserView.of(auth.user))
