"""Password hashing.

New hashes use Argon2id with a per-hash salt. Records created by the old
worker hold an unsalted SHA-256 hex digest; those still verify and are
reported by `needs_rehash` so login can upgrade them.
"""
import hashlib
import hmac
import logging
import re

from argon2 import PasswordHasher as Argon2Hasher
from argon2.exceptions import InvalidHashError, VerificationError, VerifyMismatchError


logger = logging.getLogger(__name__)

_LEGACY_SHA256 = re.compile(r"^[0-9a-f]{64}$")


def legacy_sha256(plaintext: str) -> str:
    return hashlib.sha256(plaintext.encode("utf-8")).hexdigest()


class PasswordHasher:
    """hash/verify contract over Argon2id."""

    def __init__(self, time_cost: int = 2, memory_cost: int = 65536, parallelism: int = 4):
        self._argon2 = Argon2Hasher(
            time_cost=time_cost,
            memory_cost=memory_cost,
            parallelism=parallelism,
        )

    def hash(self, plaintext: str) -> str:
        return self._argon2.hash(plaintext)

    def verify(self, candidate: str, stored: str) -> bool:
        if not candidate or not stored:
            return False

        if _LEGACY_SHA256.match(stored):
            return hmac.compare_digest(legacy_sha256(candidate), stored)

        try:
            return self._argon2.verify(stored, candidate)
        except VerifyMismatchError:
            return False
        except (VerificationError, InvalidHashError) as e:
            logger.error("Password verification error: %s", e)
            return False

    def needs_rehash(self, stored: str) -> bool:
        if _LEGACY_SHA256.match(stored):
            return True
        try:
            return self._argon2.check_needs_rehash(stored)
        except InvalidHashError:
            return True
