"""Credit ledger kept on the user record."""
import logging

from nexus.db.models import User
from nexus.db.users import UserStore
from nexus.errors import InsufficientCredits


logger = logging.getLogger(__name__)


class CreditLedger:
    """Per-user integer balance; one credit per successful AI generation."""

    def __init__(self, users: UserStore):
        self.users = users

    @staticmethod
    def has_credits(user: User) -> bool:
        return user.credits > 0

    async def debit(self, user_id: str) -> int:
        """Take one credit and return the new balance.

        The write is a compare-and-swap, so concurrent debits never lose an
        update. A balance exhausted by a concurrent request raises
        InsufficientCredits instead of going below zero.
        """
        def _take_one(user: User) -> None:
            if user.credits <= 0:
                raise InsufficientCredits()
            user.credits -= 1

        user = await self.users.modify_user(user_id, _take_one)
        logger.info("Debited 1 credit from user %s (remaining %d)", user_id, user.credits)
        return user.credits

    async def adjust(self, user_id: str, delta: int) -> int:
        """Admin top-up or deduction. No floor is applied."""
        def _add(user: User) -> None:
            user.credits += delta

        user = await self.users.modify_user(user_id, _add)
        logger.info("Adjusted credits for user %s by %+d (now %d)", user_id, delta, user.credits)
        return user.credits
