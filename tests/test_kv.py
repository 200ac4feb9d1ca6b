import json

import httpx
import pytest

from nexus.db import MemoryKV, TursoKV


@pytest.mark.asyncio
async def test_memory_put_bumps_version():
    kv = MemoryKV()
    await kv.put("a", "1")
    await kv.put("a", "2")

    entry = await kv.get_versioned("a")
    assert entry.value == "2"
    assert entry.version == 2


@pytest.mark.asyncio
async def test_memory_create_only_write():
    kv = MemoryKV()

    assert await kv.put_if_version("k", "first", None)
    assert not await kv.put_if_version("k", "second", None)
    assert await kv.get("k") == "first"


@pytest.mark.asyncio
async def test_memory_compare_and_swap():
    kv = MemoryKV()
    await kv.put("k", "v1")
    entry = await kv.get_versioned("k")

    assert await kv.put_if_version("k", "v2", entry.version)
    # stale version loses
    assert not await kv.put_if_version("k", "v3", entry.version)
    assert await kv.get("k") == "v2"
    assert not await kv.put_if_version("missing", "x", 1)


@pytest.mark.asyncio
async def test_memory_list_and_delete():
    kv = MemoryKV()
    await kv.put("user:1", "a")
    await kv.put("user:2", "b")
    await kv.put("user_email:x", "1")

    assert await kv.list_keys("user:") == ["user:1", "user:2"]

    await kv.delete("user:1")
    await kv.delete("user:unknown")
    assert await kv.list_keys("user:") == ["user:2"]
    assert await kv.get("user:1") is None


def _turso_ok(result: dict) -> dict:
    return {"results": [{"type": "ok", "response": {"type": "execute", "result": result}}, {"type": "ok"}]}


def _turso_kv(handler) -> tuple[TursoKV, list]:
    seen = []

    def _record(request: httpx.Request) -> httpx.Response:
        seen.append(json.loads(request.content))
        return handler(request)

    client = httpx.AsyncClient(transport=httpx.MockTransport(_record))
    return TursoKV("libsql://db.example.turso.io", "tok", client=client), seen


@pytest.mark.asyncio
async def test_turso_get_versioned_decodes_row():
    def handler(request):
        assert request.url == "https://db.example.turso.io/v2/pipeline"
        assert request.headers["Authorization"] == "Bearer tok"
        return httpx.Response(200, json=_turso_ok({
            "cols": [{"name": "value"}, {"name": "version"}],
            "rows": [[{"type": "text", "value": "{\"a\": 1}"}, {"type": "integer", "value": "3"}]],
        }))

    kv, seen = _turso_kv(handler)
    entry = await kv.get_versioned("user:1")

    assert entry.value == "{\"a\": 1}"
    assert entry.version == 3
    stmt = seen[0]["requests"][0]["stmt"]
    assert stmt["args"] == [{"type": "text", "value": "user:1"}]
    assert seen[0]["requests"][-1] == {"type": "close"}


@pytest.mark.asyncio
async def test_turso_conditional_write_uses_affected_rows():
    responses = iter([1, 0])

    def handler(request):
        return httpx.Response(200, json=_turso_ok({
            "cols": [], "rows": [], "affected_row_count": next(responses),
        }))

    kv, seen = _turso_kv(handler)

    assert await kv.put_if_version("k", "v", 4)
    assert not await kv.put_if_version("k", "v", None)

    update = seen[0]["requests"][0]["stmt"]
    assert update["sql"].startswith("UPDATE kv")
    assert update["args"][2] == {"type": "integer", "value": "4"}
    assert "INSERT OR IGNORE" in seen[1]["requests"][0]["stmt"]["sql"]


@pytest.mark.asyncio
async def test_turso_missing_key_returns_none():
    def handler(request):
        return httpx.Response(200, json=_turso_ok({"cols": [{"name": "value"}, {"name": "version"}], "rows": []}))

    kv, _ = _turso_kv(handler)
    assert await kv.get("nope") is None
