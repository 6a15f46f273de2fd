"""Authentication utilities."""

__all__ = [
    "AuthContext",
    "AuthProvider",
    "AuthResult",
    "JWTManager",
    "LocalAuthProvider",
    "TokenData",
    "get_current_user",
    "require_admin",
    "require_parent",
    "require_role",
    "require_teacher",
]

from .jwt import JWTManager, TokenData
from .local import LocalAuthProvider
from .middleware import AuthContext, get_current_user, require_admin, require_parent, require_role, require_teacher
from .provider import AuthProvider, AuthResult
