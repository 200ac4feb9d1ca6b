"""Authentication module."""
from .admin import ADMIN_HEADER, AdminGate
from .passwords import PasswordHasher
from .service import AuthResult, AuthService

__all__ = [
    "ADMIN_HEADER",
    "AdminGate",
    "PasswordHasher",
    "AuthResult",
    "AuthService",
]
