"""JWT token management for session authentication."""

from __future__ import annotations

import datetime
import typing as t

import annotated_types as ant
import jwt
import pydantic as p

from educonnect.core import di
from educonnect.model import UserID, UserRole

Algorithm = t.Literal["HS256", "HS384", "HS512"]


class TokenPayload(t.TypedDict):
    """JWT token payload structure."""

    sub: str  # user_id
    role: str
    exp: int
    iat: int


class TokenData(t.NamedTuple):
    """Decoded token data."""

    user_id: UserID
    role: UserRole
    expires_at: datetime.datetime
    issued_at: datetime.datetime


class JWTManager(object):
    """Manages JWT token creation and validation."""

    _secret_key: p.Secret[str]
    _algorithm: Algorithm
    _access_token_expire_minutes: t.Annotated[int, ant.Gt(1)]

    def __init__(
        self,
        secret_key: p.Secret[str],
        algorithm: Algorithm = "HS256",
        access_token_expire_minutes: t.Annotated[int, ant.Gt(1)] = 30,
    ) -> None:
        self._secret_key = secret_key
        self._algorithm = algorithm
        self._access_token_expire_minutes = access_token_expire_minutes

    @property
    def secret_key(self) -> str:
        return self._secret_key.get_secret_value()

    @property
    def algorithm(self) -> str:
        return self._algorithm

    @property
    def access_token_expire_minutes(self) -> int:
        return self._access_token_expire_minutes

    def create_access_token(
        self,
        user_id: UserID,
        role: UserRole,
        expires_delta: datetime.timedelta | None = None,
    ) -> str:
        """Create a new access token.

        Args:
            user_id: The user's ID
            role: The user's role
            expires_delta: Custom expiration time (default: access_token_expire_minutes)

        Returns:
            Encoded JWT token string
        """
        now = datetime.datetime.now(datetime.UTC)
        if expires_delta is None:
            expires_delta = datetime.timedelta(minutes=self._access_token_expire_minutes)

        payload: TokenPayload = {
            "sub": str(user_id),
            "role": role.value,
            "exp": int((now + expires_delta).timestamp()),
            "iat": int(now.timestamp()),
        }
        return jwt.encode(dict(payload), self.secret_key, algorithm=self._algorithm)

    def decode_token(self, token: str) -> TokenData | None:
        """Decode and validate a token.

        Returns:
            TokenData if valid, None if invalid or expired
        """
        try:
            payload = jwt.decode(token, self.secret_key, algorithms=[self._algorithm])
            return TokenData(
                user_id=UserID(payload["sub"]),
                role=UserRole(payload["role"]),
                expires_at=datetime.datetime.fromtimestamp(payload["exp"], tz=datetime.UTC),
                issued_at=datetime.datetime.fromtimestamp(payload["iat"], tz=datetime.UTC),
            )
        except jwt.ExpiredSignatureError:
            return None
        except jwt.InvalidTokenError:
            return None
        except (KeyError, ValueError):
            # signed by us but not a token we issue
            return None


@di.inject
def create_access_token(
    user_id: UserID,
    role: UserRole,
    expires_delta: datetime.timedelta | None = None,
    manager: JWTManager = di.Provide["auth.jwt_manager"],
) -> str:
    return manager.create_access_token(user_id, role, expires_delta)


@di.inject
def decode_token(token: str, manager: JWTManager = di.Provide["auth.jwt_manager"]) -> TokenData | None:
    return manager.decode_token(token)
