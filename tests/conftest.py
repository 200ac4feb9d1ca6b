import json
from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient

from nexus.ai.provider import CompletionProvider
from nexus.auth.passwords import PasswordHasher
from nexus.config import Settings
from nexus.db import MemoryKV
from nexus.main import create_app
from nexus.services import build_services
from nexus.storage import MemoryObjectStorage


ADMIN_SECRET = "test-admin-secret"

SAMPLE_ANALYSIS = {
    "bpm": 128,
    "key": "A minor",
    "timeSignature": "4/4",
    "genre": "Synthwave",
    "mood": ["nostalgic", "driving"],
    "instruments": ["synth bass", "drum machine"],
    "vocalType": "female",
    "description": "Retro night drive.",
    "rhythmAnalysis": "Four on the floor.",
    "compositionAnalysis": "Verse-chorus form.",
    "sections": [
        {
            "name": "Intro",
            "description": "Pads fade in",
            "instruments": ["pads"],
            "energyLevel": "low",
            "keyElements": "arpeggio",
            "sunoDirective": "[Intro] dreamy synth pads",
            "lyrics": "",
        }
    ],
    "productionQuality": "polished",
    "danceability": 0.8,
    "energy": 0.7,
    "sunoPrompt": "synthwave, female vocals, 128bpm",
    "trackInfo": {"title": "Night Drive", "artist": "Nobody", "platform": "upload"},
}


class FakeProvider(CompletionProvider):
    """Records calls and answers with a canned text."""

    def __init__(self, text: str = json.dumps(SAMPLE_ANALYSIS)):
        self.text = text
        self.lyrics_text = "Neon lights across the sky"
        self.calls = []
        self.error = None

    async def complete(self, request, api_key):
        self.calls.append((request, api_key))
        if self.error is not None:
            raise self.error
        if request.schema is None:
            return self.lyrics_text
        return self.text


class FakeClock:
    def __init__(self):
        self.now = datetime(2026, 1, 1, tzinfo=timezone.utc)

    def __call__(self):
        return self.now


@pytest.fixture
def settings():
    return Settings(
        _env_file=None,
        admin_password=ADMIN_SECRET,
        gemini_api_key="default-key",
        kv_backend="memory",
        storage_backend="memory",
    )


@pytest.fixture
def provider():
    return FakeProvider()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def hasher():
    # Cheap parameters keep the suite fast.
    return PasswordHasher(time_cost=1, memory_cost=1024, parallelism=1)


@pytest.fixture
def services(settings, provider, clock, hasher):
    return build_services(
        settings,
        kv=MemoryKV(),
        storage=MemoryObjectStorage(),
        provider=provider,
        hasher=hasher,
        clock=clock,
    )


@pytest.fixture
def client(settings, services):
    app = create_app(settings, services)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def admin_headers():
    return {"x-admin-password": ADMIN_SECRET}


def bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}
