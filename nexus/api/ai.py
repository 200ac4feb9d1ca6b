"""AI API - credit-gated proxy to the completion provider.

Every endpoint costs one credit on success. 401 without a valid session,
402 when the balance is exhausted, 500 on provider or parse errors.
"""
from fastapi import APIRouter, Depends

from nexus.ai.requests import (
    AnalyzeAudioRequest,
    AnalyzeMetadataRequest,
    GenerateCreativeRequest,
    GenerateLyricsRequest,
    GenerateRemixRequest,
    GenerationRequest,
)
from nexus.auth.deps import get_current_user, get_services
from nexus.db.models import User
from nexus.services import Services


router = APIRouter(prefix="/api/ai", tags=["ai"])


async def _run(services: Services, user: User, request: GenerationRequest) -> dict:
    result = await services.ai.generate_for_user(user, request)
    return result.model_dump(by_alias=True)


@router.post("/analyze-audio")
async def analyze_audio(
    body: AnalyzeAudioRequest,
    current_user: User = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    """Analyze an uploaded track (base64 audio + mime type)."""
    return await _run(services, current_user, body)


@router.post("/analyze-metadata")
async def analyze_metadata(
    body: AnalyzeMetadataRequest,
    current_user: User = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    """Analyze a song from its title/link using public knowledge."""
    return await _run(services, current_user, body)


@router.post("/generate-creative")
async def generate_creative(
    body: GenerateCreativeRequest,
    current_user: User = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    return await _run(services, current_user, body)


@router.post("/generate-remix")
async def generate_remix(
    body: GenerateRemixRequest,
    current_user: User = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    return await _run(services, current_user, body)


@router.post("/generate-lyrics")
async def generate_lyrics(
    body: GenerateLyricsRequest,
    current_user: User = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    """Plain-text lyrics for one section; returns `{text}`."""
    return await _run(services, current_user, body)
