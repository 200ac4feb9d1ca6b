"""Registration, login, session lookup and profile updates."""
import asyncio
import logging
from dataclasses import dataclass
from typing import Optional

from nexus.db.models import PublicUser, User
from nexus.db.sessions import SessionStore
from nexus.db.users import UserStore
from nexus.errors import InvalidCredentials, NotFound, Unauthorized, ValidationError
from .passwords import PasswordHasher


logger = logging.getLogger(__name__)

STARTING_CREDITS = 5


@dataclass
class AuthResult:
    """Token plus sanitized user returned by register/login."""
    token: str
    user: PublicUser


class AuthService:
    """Orchestrates the credential store, password hasher and sessions."""

    def __init__(
        self,
        users: UserStore,
        sessions: SessionStore,
        hasher: PasswordHasher,
        starting_credits: int = STARTING_CREDITS,
    ):
        self.users = users
        self.sessions = sessions
        self.hasher = hasher
        self.starting_credits = starting_credits

    async def register(self, email: str, password: str, username: str) -> AuthResult:
        """Create an account and log it in.

        Raises:
            ValidationError: a field is blank
            DuplicateEmail: the email already has an account
        """
        email = (email or "").strip()
        username = (username or "").strip()
        if not email or not password or not username:
            raise ValidationError()

        user = await self.users.create_user(
            email=email,
            username=username,
            password_hash=await asyncio.to_thread(self.hasher.hash, password),
            credits=self.starting_credits,
        )
        token = await self.sessions.create_session(user.id)
        return AuthResult(token=token, user=user.public())

    async def login(self, email: str, password: str) -> AuthResult:
        """Check credentials and open a new session.

        Unknown email and wrong password raise the same InvalidCredentials.
        """
        user = await self.users.get_user_by_email(email or "")
        if user is None:
            raise InvalidCredentials()
        if not await asyncio.to_thread(self.hasher.verify, password or "", user.password_hash):
            raise InvalidCredentials()

        if self.hasher.needs_rehash(user.password_hash):
            user = await self._rehash(user, password)

        token = await self.sessions.create_session(user.id)
        logger.info("User %s logged in", user.id)
        return AuthResult(token=token, user=user.public())

    async def _rehash(self, user: User, password: str) -> User:
        new_hash = await asyncio.to_thread(self.hasher.hash, password)

        def _set_hash(u: User) -> None:
            u.password_hash = new_hash

        logger.info("Upgrading password hash for user %s", user.id)
        return await self.users.modify_user(user.id, _set_hash)

    async def resolve_user(self, token: Optional[str]) -> Optional[User]:
        """Full user record for a token, or None."""
        user_id = await self.sessions.resolve_session(token)
        if user_id is None:
            return None
        return await self.users.get_user_by_id(user_id)

    async def get_current_user(self, token: Optional[str]) -> Optional[PublicUser]:
        """Sanitized user for a token; None means "not logged in"."""
        user = await self.resolve_user(token)
        return user.public() if user else None

    async def require_user(self, token: Optional[str]) -> User:
        user = await self.resolve_user(token)
        if user is None:
            raise Unauthorized()
        return user

    async def update_profile(
        self,
        token: Optional[str],
        username: Optional[str] = None,
        password: Optional[str] = None,
    ) -> PublicUser:
        """Apply only the provided fields; blank values are ignored."""
        user = await self.require_user(token)
        username = (username or "").strip()
        new_hash = await asyncio.to_thread(self.hasher.hash, password) if password else None

        def _apply(u: User) -> None:
            if username:
                u.username = username
            if new_hash:
                u.password_hash = new_hash

        try:
            updated = await self.users.modify_user(user.id, _apply)
        except NotFound:
            raise Unauthorized()
        return updated.public()

    async def logout(self, token: Optional[str]) -> None:
        if token:
            await self.sessions.revoke_session(token)
