"""Turso (libSQL) key-value backend over the HTTP pipeline API."""
import logging
from typing import Any, Optional

import httpx

from .kv import Entry, KeyValueStore


logger = logging.getLogger(__name__)


def _encode_arg(value: Any) -> dict:
    """Encode a Python value as a Hrana argument."""
    if value is None:
        return {"type": "null"}
    if isinstance(value, bool):
        return {"type": "integer", "value": str(int(value))}
    if isinstance(value, int):
        return {"type": "integer", "value": str(value)}
    if isinstance(value, float):
        return {"type": "float", "value": value}
    return {"type": "text", "value": str(value)}


def _extract_rows(result: dict) -> list[dict]:
    """Extract rows from a single execute result."""
    cols = [c["name"] for c in result.get("cols", [])]
    rows = []
    for row in result.get("rows", []):
        row_dict = {}
        for i, val in enumerate(row):
            if isinstance(val, dict) and "value" in val:
                row_dict[cols[i]] = val["value"]
            elif isinstance(val, dict):
                row_dict[cols[i]] = None
            else:
                row_dict[cols[i]] = val
        rows.append(row_dict)
    return rows


class TursoError(Exception):
    """Turso returned an error result for a statement."""


class TursoKV(KeyValueStore):
    """Stores every key as a row of a single `kv` table.

    The `version` column is bumped on each write so conditional writes can
    be expressed as `UPDATE ... WHERE version = ?`.
    """

    def __init__(
        self,
        db_url: str,
        auth_token: str,
        timeout: float = 30.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.base_url = db_url.replace("libsql://", "https://").rstrip("/")
        self.auth_token = auth_token
        self._client = client or httpx.AsyncClient(timeout=timeout)

    async def _pipeline(self, statements: list[tuple[str, list]]) -> list[dict]:
        """Execute statements in one pipeline request and return their results."""
        requests = [
            {"type": "execute", "stmt": {"sql": sql, "args": [_encode_arg(a) for a in args]}}
            for sql, args in statements
        ]
        requests.append({"type": "close"})

        response = await self._client.post(
            f"{self.base_url}/v2/pipeline",
            headers={
                "Authorization": f"Bearer {self.auth_token}",
                "Content-Type": "application/json",
            },
            json={"requests": requests},
        )
        response.raise_for_status()

        results = []
        for res in response.json().get("results", [])[:len(statements)]:
            if res.get("type") != "ok":
                message = (res.get("error") or {}).get("message", "unknown error")
                raise TursoError(message)
            results.append(res["response"]["result"])
        return results

    async def _execute(self, sql: str, args: Optional[list] = None) -> dict:
        results = await self._pipeline([(sql, args or [])])
        return results[0]

    async def init(self) -> None:
        """Initialize database schema."""
        await self._pipeline([
            ("""
                CREATE TABLE IF NOT EXISTS kv (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL,
                    version INTEGER NOT NULL DEFAULT 1
                )
            """, []),
        ])
        logger.info("Turso kv table ready at %s", self.base_url)

    async def close(self) -> None:
        await self._client.aclose()

    async def get_versioned(self, key: str) -> Optional[Entry]:
        result = await self._execute("SELECT value, version FROM kv WHERE key = ?", [key])
        rows = _extract_rows(result)
        if not rows:
            return None
        return Entry(value=rows[0]["value"], version=int(rows[0]["version"]))

    async def put(self, key: str, value: str) -> None:
        await self._execute(
            """
            INSERT INTO kv (key, value, version) VALUES (?, ?, 1)
            ON CONFLICT(key) DO UPDATE SET value = excluded.value, version = kv.version + 1
            """,
            [key, value],
        )

    async def put_if_version(self, key: str, value: str, version: Optional[int]) -> bool:
        if version is None:
            result = await self._execute(
                "INSERT OR IGNORE INTO kv (key, value, version) VALUES (?, ?, 1)",
                [key, value],
            )
        else:
            result = await self._execute(
                "UPDATE kv SET value = ?, version = version + 1 WHERE key = ? AND version = ?",
                [value, key, version],
            )
        return int(result.get("affected_row_count", 0)) == 1

    async def delete(self, key: str) -> None:
        await self._execute("DELETE FROM kv WHERE key = ?", [key])

    async def list_keys(self, prefix: str = "") -> list[str]:
        # substr comparison avoids LIKE wildcards in user-controlled prefixes
        result = await self._execute(
            "SELECT key FROM kv WHERE substr(key, 1, ?) = ? ORDER BY key",
            [len(prefix), prefix],
        )
        return [row["key"] for row in _extract_rows(result)]
