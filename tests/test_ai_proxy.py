import base64
import json

import pytest

from nexus.ai import (
    ANALYSIS_SCHEMA,
    AnalyzeAudioRequest,
    AnalyzeMetadataRequest,
    AudioAnalysisResult,
    CreativeRequest,
    GenerateCreativeRequest,
    GenerateLyricsRequest,
    GenerateRemixRequest,
    LyricsResult,
    strip_code_fences,
)
from nexus.errors import (
    InsufficientCredits,
    InvalidProviderResponse,
    ProviderError,
    ServiceUnavailable,
    Unauthorized,
    ValidationError,
)

from conftest import SAMPLE_ANALYSIS


async def _register(services, email="alice@x.com"):
    return await services.auth.register(email, "pw123", "Alice")


async def _credits(services, user_id):
    return (await services.users.get_user_by_id(user_id)).credits


@pytest.mark.asyncio
async def test_success_debits_exactly_one_credit(services, provider):
    alice = await _register(services)
    bob = await _register(services, "bob@x.com")

    result = await services.ai.generate(alice.token, AnalyzeMetadataRequest(query="Take On Me"))

    assert isinstance(result, AudioAnalysisResult)
    assert result.bpm == 128
    assert result.sections[0].suno_directive == "[Intro] dreamy synth pads"
    assert result.track_info.title == "Night Drive"
    assert await _credits(services, alice.user.id) == 4
    assert await _credits(services, bob.user.id) == 5
    assert len(provider.calls) == 1


@pytest.mark.asyncio
async def test_no_credits_never_calls_provider(services, provider):
    alice = await _register(services)
    await services.ledger.adjust(alice.user.id, -5)

    with pytest.raises(InsufficientCredits):
        await services.ai.generate(alice.token, AnalyzeMetadataRequest(query="x"))

    assert provider.calls == []


@pytest.mark.asyncio
async def test_invalid_session_is_unauthorized(services, provider):
    with pytest.raises(Unauthorized):
        await services.ai.generate("nope", AnalyzeMetadataRequest(query="x"))
    assert provider.calls == []


@pytest.mark.asyncio
async def test_invalid_json_does_not_debit(services, provider):
    alice = await _register(services)
    provider.text = "Sorry, I can't help with that."

    with pytest.raises(InvalidProviderResponse):
        await services.ai.generate(alice.token, AnalyzeMetadataRequest(query="x"))

    assert await _credits(services, alice.user.id) == 5


@pytest.mark.asyncio
async def test_non_object_json_is_invalid(services, provider):
    alice = await _register(services)
    provider.text = "[1, 2, 3]"

    with pytest.raises(InvalidProviderResponse):
        await services.ai.generate(alice.token, AnalyzeMetadataRequest(query="x"))


@pytest.mark.asyncio
async def test_code_fenced_json_is_accepted(services, provider):
    alice = await _register(services)
    provider.text = "```json\n" + json.dumps(SAMPLE_ANALYSIS) + "\n```"

    result = await services.ai.generate(alice.token, AnalyzeMetadataRequest(query="x"))

    assert result.genre == "Synthwave"


@pytest.mark.asyncio
async def test_null_fields_fall_back_to_defaults(services, provider):
    alice = await _register(services)
    provider.text = json.dumps({"bpm": None, "genre": None, "mood": None, "trackInfo": None})

    result = await services.ai.generate(alice.token, AnalyzeMetadataRequest(query="x"))

    assert result.bpm is None
    assert result.genre == ""
    assert result.mood == []


@pytest.mark.asyncio
async def test_provider_failure_does_not_debit(services, provider):
    alice = await _register(services)
    provider.error = ProviderError("Gemini API Error: 503")

    with pytest.raises(ProviderError):
        await services.ai.generate(alice.token, AnalyzeMetadataRequest(query="x"))

    assert await _credits(services, alice.user.id) == 5


@pytest.mark.asyncio
async def test_lyrics_return_plain_text_and_debit(services, provider):
    alice = await _register(services)
    request = GenerateLyricsRequest(
        genre="Pop", mood=["happy", "bright"], section_name="Chorus", section_desc="Big hook",
    )

    result = await services.ai.generate(alice.token, request)

    assert result == LyricsResult(text="Neon lights across the sky")
    completion, _ = provider.calls[0]
    assert completion.schema is None
    assert "Chorus" in completion.prompt and "happy,bright" in completion.prompt
    assert await _credits(services, alice.user.id) == 4


@pytest.mark.asyncio
async def test_empty_lyrics_do_not_debit(services, provider):
    alice = await _register(services)
    provider.lyrics_text = "   "

    with pytest.raises(InvalidProviderResponse):
        await services.ai.generate(alice.token, GenerateLyricsRequest(genre="Pop"))

    assert await _credits(services, alice.user.id) == 5


@pytest.mark.asyncio
async def test_admin_configured_key_wins_over_default(services, provider):
    alice = await _register(services)

    await services.ai.generate(alice.token, AnalyzeMetadataRequest(query="x"))
    await services.content.merge_system_config({"geminiApiKey": "admin-key"})
    await services.ai.generate(alice.token, AnalyzeMetadataRequest(query="x"))

    assert [key for _, key in provider.calls] == ["default-key", "admin-key"]


@pytest.mark.asyncio
async def test_missing_key_is_service_unavailable(services, provider):
    alice = await _register(services)
    services.ai.default_api_key = ""

    with pytest.raises(ServiceUnavailable):
        await services.ai.generate(alice.token, AnalyzeMetadataRequest(query="x"))

    assert provider.calls == []
    assert await _credits(services, alice.user.id) == 5


@pytest.mark.asyncio
async def test_bad_audio_payload_is_rejected_before_call(services, provider):
    alice = await _register(services)

    with pytest.raises(ValidationError):
        await services.ai.generate(alice.token, AnalyzeAudioRequest(base64_audio="***not base64***"))

    assert provider.calls == []


def test_audio_request_carries_inline_data():
    audio = b"ID3fakeaudio"
    request = AnalyzeAudioRequest.model_validate({
        "base64Audio": base64.b64encode(audio).decode(),
        "mimeType": "audio/wav",
    })

    completion = request.to_completion()

    assert completion.inline_data.data == audio
    assert completion.inline_data.mime_type == "audio/wav"
    assert completion.schema is ANALYSIS_SCHEMA


def test_audio_request_defaults_mime_type():
    request = AnalyzeAudioRequest(base64_audio=base64.b64encode(b"x").decode())
    assert request.to_completion().inline_data.mime_type == "audio/mp3"


def test_creative_prompt_includes_concept_tags_and_template():
    request = GenerateCreativeRequest(request=CreativeRequest(
        concept="rain on tin roofs", selected_tags=["lofi", "jazz"], structure_template="AABA",
    ))

    prompt = request.to_completion().prompt

    assert '"rain on tin roofs"' in prompt
    assert "lofi, jazz" in prompt
    assert "AABA" in prompt


def test_remix_prompt_uses_original_bpm_and_genre():
    request = GenerateRemixRequest.model_validate({"originalData": SAMPLE_ANALYSIS})

    prompt = request.to_completion().prompt

    assert "Original BPM: 128" in prompt
    assert "Genre: Synthwave" in prompt


def test_strip_code_fences():
    assert strip_code_fences('```json\n{"a": 1}\n```') == '{"a": 1}'
    assert strip_code_fences('```\n{"a": 1}```') == '{"a": 1}'
    assert strip_code_fences('{"a": 1}') == '{"a": 1}'
