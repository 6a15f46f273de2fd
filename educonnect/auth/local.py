"""Local authentication provider using bcrypt for password hashing."""

from __future__ import annotations

from sqlalchemy.orm import Session

from educonnect.core import di
from educonnect.model import User, UserID
from educonnect.storage import user as user_storage

from .provider import AuthProvider, AuthResult


class LocalAuthProvider(AuthProvider):
    """Local authentication against the bcrypt hashes in the users table."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def authenticate(self, email: str, password: str) -> AuthResult:
        user = user_storage.get(email=email, session=self._session)
        if user is None or not user.is_active:
            return AuthResult(success=False, error="Invalid email or password")
        if not user_storage.verify_password(user, password):
            return AuthResult(success=False, error="Invalid email or password")
        return AuthResult(success=True, user=user)

    def get_user(self, user_id: UserID) -> User | None:
        user = user_storage.get(user_id=user_id, session=self._session)
        if user is None or not user.is_active:
            return None
        return user


@di.inject
def authenticate(
    email: str,
    password: str,
    session: Session = di.Provide["storage.persistent.session"],
) -> AuthResult:
    return LocalAuthProvider(session).authenticate(email, password)


@di.inject
def get_user(
    user_id: UserID,
    session: Session = di.Provide["storage.persistent.session"],
) -> User | None:
    return LocalAuthProvider(session).get_user(user_id)
