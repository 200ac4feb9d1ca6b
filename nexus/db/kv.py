"""Key-value store contract and in-memory backend."""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Entry:
    """Stored value with its write version."""
    value: str
    version: int


class KeyValueStore(ABC):
    """Async key-value store with per-key versions.

    A single get or put is atomic per key; there are no multi-key
    transactions. `put_if_version` is the compare-and-swap primitive used
    for read-modify-write cycles.
    """

    async def init(self) -> None:
        """Prepare the backend (create tables, open clients)."""

    async def close(self) -> None:
        """Release backend resources."""

    async def get(self, key: str) -> Optional[str]:
        entry = await self.get_versioned(key)
        return entry.value if entry else None

    @abstractmethod
    async def get_versioned(self, key: str) -> Optional[Entry]:
        pass

    @abstractmethod
    async def put(self, key: str, value: str) -> None:
        """Unconditional write (last write wins)."""
        pass

    @abstractmethod
    async def put_if_version(self, key: str, value: str, version: Optional[int]) -> bool:
        """Conditional write.

        With `version=None` the write only succeeds if the key does not exist.
        Otherwise it only succeeds if the stored version still equals
        `version`. Returns whether the write happened.
        """
        pass

    @abstractmethod
    async def delete(self, key: str) -> None:
        pass

    @abstractmethod
    async def list_keys(self, prefix: str = "") -> list[str]:
        pass


class MemoryKV(KeyValueStore):
    """Process-local store for development and tests."""

    def __init__(self):
        self._data: dict[str, Entry] = {}

    async def get_versioned(self, key: str) -> Optional[Entry]:
        return self._data.get(key)

    async def put(self, key: str, value: str) -> None:
        current = self._data.get(key)
        self._data[key] = Entry(value, current.version + 1 if current else 1)

    async def put_if_version(self, key: str, value: str, version: Optional[int]) -> bool:
        current = self._data.get(key)
        if version is None:
            if current is not None:
                return False
            self._data[key] = Entry(value, 1)
            return True
        if current is None or current.version != version:
            return False
        self._data[key] = Entry(value, version + 1)
        return True

    async def delete(self, key: str) -> None:
        self._data.pop(key, None)

    async def list_keys(self, prefix: str = "") -> list[str]:
        return sorted(k for k in self._data if k.startswith(prefix))
