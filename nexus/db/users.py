"""Credential store: user records and the email index."""
import logging
import uuid
from datetime import datetime, timezone
from typing import Callable, Optional

from pydantic import ValidationError as PydanticValidationError

from nexus.errors import DuplicateEmail, NotFound, UpdateConflict
from .kv import KeyValueStore
from .models import User


logger = logging.getLogger(__name__)

USER_PREFIX = "user:"
EMAIL_PREFIX = "user_email:"


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def user_key(user_id: str) -> str:
    return f"{USER_PREFIX}{user_id}"


def email_key(email: str) -> str:
    return f"{EMAIL_PREFIX}{normalize_email(email)}"


def legacy_email_key(email: str) -> str:
    """Index key as written by the old worker, which kept the email's case."""
    return EMAIL_PREFIX + (email or "").strip()


def index_keys(email: str) -> list[str]:
    keys = [email_key(email)]
    legacy = legacy_email_key(email)
    if legacy not in keys:
        keys.append(legacy)
    return keys


class UserStore:
    """Persists users as `user:<id>` plus an `user_email:<email> -> id` index."""

    def __init__(self, kv: KeyValueStore, max_retries: int = 5):
        self.kv = kv
        self.max_retries = max_retries

    async def create_user(
        self,
        email: str,
        username: str,
        password_hash: str,
        credits: int = 0,
    ) -> User:
        """Create a user, reserving the email first so duplicates cannot race."""
        user = User(
            id=str(uuid.uuid4()),
            email=normalize_email(email),
            username=username,
            password_hash=password_hash,
            credits=credits,
            created_at=datetime.now(timezone.utc),
        )

        if await self.get_user_id_by_email(email) is not None:
            raise DuplicateEmail()
        if not await self.kv.put_if_version(email_key(user.email), user.id, None):
            raise DuplicateEmail()

        try:
            await self.kv.put(user_key(user.id), user.to_json())
        except Exception:
            await self.kv.delete(email_key(user.email))
            raise
        logger.info("Created user %s", user.id)
        return user

    async def get_user_by_id(self, user_id: str) -> Optional[User]:
        raw = await self.kv.get(user_key(user_id))
        return User.model_validate_json(raw) if raw else None

    async def get_user_id_by_email(self, email: str) -> Optional[str]:
        """Look up the normalized index entry, then the case-preserving legacy one."""
        for key in index_keys(email):
            user_id = await self.kv.get(key)
            if user_id is not None:
                return user_id
        return None

    async def get_user_by_email(self, email: str) -> Optional[User]:
        user_id = await self.get_user_id_by_email(email)
        if user_id is None:
            return None
        return await self.get_user_by_id(user_id)

    async def update_user(self, user: User) -> None:
        """Overwrite the stored record (last write wins)."""
        await self.kv.put(user_key(user.id), user.to_json())

    async def modify_user(self, user_id: str, mutate: Callable[[User], None]) -> User:
        """Apply `mutate` to the stored user with a compare-and-swap write.

        The mutation is re-applied to a fresh copy when another writer got
        there first. `mutate` may raise to abort without writing.
        """
        key = user_key(user_id)
        for _ in range(self.max_retries):
            entry = await self.kv.get_versioned(key)
            if entry is None:
                raise NotFound("User not found")
            user = User.model_validate_json(entry.value)
            mutate(user)
            if await self.kv.put_if_version(key, user.to_json(), entry.version):
                return user
            logger.debug("Version conflict on %s, retrying", key)
        raise UpdateConflict()

    async def change_email(self, user_id: str, new_email: str) -> User:
        """Move a user to a new email, keeping the index one-to-one."""
        new_email = normalize_email(new_email)
        user = await self.get_user_by_id(user_id)
        if user is None:
            raise NotFound("User not found")
        if user.email == new_email:
            return user

        owner = await self.get_user_id_by_email(new_email)
        if owner is not None and owner != user_id:
            raise DuplicateEmail()
        new_key = email_key(new_email)
        reserved = await self.kv.get(new_key) is None
        if reserved and not await self.kv.put_if_version(new_key, user_id, None):
            raise DuplicateEmail()

        old_email = user.email

        def _set_email(u: User) -> None:
            u.email = new_email

        try:
            user = await self.modify_user(user_id, _set_email)
        except Exception:
            if reserved:
                await self.kv.delete(new_key)
            raise

        for key in index_keys(old_email):
            if key != new_key:
                await self.kv.delete(key)
        return user

    async def delete_user(self, user_id: str) -> bool:
        """Remove the record and its email index entry."""
        user = await self.get_user_by_id(user_id)
        if user is None:
            return False
        await self.kv.delete(user_key(user_id))
        for key in index_keys(user.email):
            await self.kv.delete(key)
        logger.info("Deleted user %s", user_id)
        return True

    async def list_users(self) -> list[User]:
        users = []
        for key in await self.kv.list_keys(USER_PREFIX):
            raw = await self.kv.get(key)
            if not raw:
                continue
            try:
                users.append(User.model_validate_json(raw))
            except PydanticValidationError:
                logger.warning("Skipping malformed user record %s", key)
        return sorted(users, key=lambda u: u.created_at)
