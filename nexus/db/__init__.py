"""Database module."""
from nexus.config import Settings
from .kv import Entry, KeyValueStore, MemoryKV
from .turso import TursoKV
from .models import PublicUser, Session, User
from .users import UserStore, normalize_email
from .sessions import SessionStore
from .content import COLLECTIONS, ContentStore


def create_kv(settings: Settings) -> KeyValueStore:
    """Build the key-value backend selected in settings."""
    if settings.kv_backend == "turso":
        return TursoKV(settings.turso_db_url, settings.turso_auth_token)
    return MemoryKV()


__all__ = [
    "Entry", "KeyValueStore", "MemoryKV", "TursoKV", "create_kv",
    "PublicUser", "Session", "User",
    "UserStore", "normalize_email", "SessionStore",
    "COLLECTIONS", "ContentStore",
]
