import asyncio

import pytest

from nexus.db import MemoryKV, UserStore
from nexus.errors import InsufficientCredits, NotFound
from nexus.ledger import CreditLedger


class YieldingKV(MemoryKV):
    """Suspends on every read so concurrent tasks interleave."""

    async def get_versioned(self, key):
        entry = await super().get_versioned(key)
        await asyncio.sleep(0)
        return entry


@pytest.fixture
def users():
    return UserStore(YieldingKV())


@pytest.fixture
def ledger(users):
    return CreditLedger(users)


@pytest.mark.asyncio
async def test_debit_takes_exactly_one(users, ledger):
    alice = await users.create_user("alice@x.com", "Alice", "h", credits=5)
    bob = await users.create_user("bob@x.com", "Bob", "h", credits=5)

    assert await ledger.debit(alice.id) == 4

    assert (await users.get_user_by_id(alice.id)).credits == 4
    assert (await users.get_user_by_id(bob.id)).credits == 5


@pytest.mark.asyncio
async def test_debit_refuses_empty_balance(users, ledger):
    user = await users.create_user("a@x.com", "A", "h", credits=0)

    with pytest.raises(InsufficientCredits):
        await ledger.debit(user.id)
    assert (await users.get_user_by_id(user.id)).credits == 0


@pytest.mark.asyncio
async def test_concurrent_debits_do_not_lose_updates(users, ledger):
    user = await users.create_user("a@x.com", "A", "h", credits=5)

    await asyncio.gather(*(ledger.debit(user.id) for _ in range(3)))

    assert (await users.get_user_by_id(user.id)).credits == 2


@pytest.mark.asyncio
async def test_concurrent_debits_cannot_overdraw(users, ledger):
    user = await users.create_user("a@x.com", "A", "h", credits=1)

    results = await asyncio.gather(
        ledger.debit(user.id), ledger.debit(user.id), return_exceptions=True,
    )

    assert sorted(type(r).__name__ for r in results) == ["InsufficientCredits", "int"]
    assert (await users.get_user_by_id(user.id)).credits == 0


@pytest.mark.asyncio
async def test_adjust_zero_is_idempotent(users, ledger):
    user = await users.create_user("a@x.com", "A", "h", credits=5)

    assert await ledger.adjust(user.id, 0) == 5
    assert await ledger.adjust(user.id, 0) == 5


@pytest.mark.asyncio
async def test_adjust_allows_negative_balance(users, ledger):
    user = await users.create_user("a@x.com", "A", "h", credits=2)

    assert await ledger.adjust(user.id, -5) == -3
    assert not ledger.has_credits(await users.get_user_by_id(user.id))
    assert await ledger.adjust(user.id, 10) == 7


@pytest.mark.asyncio
async def test_adjust_unknown_user(ledger):
    with pytest.raises(NotFound):
        await ledger.adjust("missing", 5)
