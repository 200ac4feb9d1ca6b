"""Session store: opaque bearer tokens mapped to users."""
import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from pydantic import ValidationError as PydanticValidationError

from .kv import KeyValueStore
from .models import Session


logger = logging.getLogger(__name__)

SESSION_PREFIX = "session:"
SESSION_TTL_DAYS = 7


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def session_key(token: str) -> str:
    return f"{SESSION_PREFIX}{token}"


class SessionStore:
    """Issues and resolves session tokens.

    A session is valid strictly before its `expires_at`; expired records are
    removed when they are looked up.
    """

    def __init__(
        self,
        kv: KeyValueStore,
        ttl: timedelta = timedelta(days=SESSION_TTL_DAYS),
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.kv = kv
        self.ttl = ttl
        self.clock = clock

    async def create_session(self, user_id: str) -> str:
        token = secrets.token_urlsafe(32)
        session = Session(user_id=user_id, expires_at=self.clock() + self.ttl)
        await self.kv.put(session_key(token), session.to_json())
        return token

    async def resolve_session(self, token: Optional[str]) -> Optional[str]:
        """Return the owning user id, or None for missing/expired tokens."""
        if not token:
            return None

        raw = await self.kv.get(session_key(token))
        if not raw:
            return None

        try:
            session = Session.model_validate_json(raw)
        except PydanticValidationError:
            logger.warning("Dropping malformed session record")
            await self.kv.delete(session_key(token))
            return None

        if session.expires_at <= self.clock():
            await self.kv.delete(session_key(token))
            return None

        return session.user_id

    async def revoke_session(self, token: str) -> None:
        if token:
            await self.kv.delete(session_key(token))
