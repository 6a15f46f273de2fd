"""Auth provider protocol for pluggable authentication backends."""

from __future__ import annotations

import typing as t
from abc import abstractmethod

from educonnect.model import User, UserID


class AuthResult(t.NamedTuple):
    """Result of an authentication attempt."""

    success: bool
    user: User | None = None
    error: str | None = None


class AuthProvider(t.Protocol):
    """Protocol for authentication providers."""

    @abstractmethod
    def authenticate(self, email: str, password: str) -> AuthResult:
        """Authenticate a user with email and password.

        Returns:
            AuthResult with success=True and user if valid,
            or success=False and error message if invalid.
        """
        ...

    @abstractmethod
    def get_user(self, user_id: UserID) -> User | None:
        """Get an active user by ID."""
        ...
