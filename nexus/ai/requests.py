"""Generation request variants, one per AI endpoint.

Each variant knows its `AIKind` and how to turn itself into a provider
`CompletionRequest`.
"""
import base64
import binascii
from dataclasses import dataclass
from enum import Enum
from typing import ClassVar, Optional, Union

from nexus.db.models import CamelModel
from nexus.errors import ValidationError
from .schema import ANALYSIS_SCHEMA, AudioAnalysisResult


PRODUCER_INSTRUCTION = (
    "You are a world-class music producer and audio engineer. Analyze the audio or "
    "request and provide structured JSON data including BPM, Key, Genre, and a detailed "
    "breakdown of song sections (Intro, Verse, Chorus, etc.) with specific Suno.ai style prompts."
)
LYRICIST_INSTRUCTION = "You are a professional lyricist."


class AIKind(str, Enum):
    ANALYZE_AUDIO = "analyze-audio"
    ANALYZE_METADATA = "analyze-metadata"
    GENERATE_CREATIVE = "generate-creative"
    GENERATE_REMIX = "generate-remix"
    GENERATE_LYRICS = "generate-lyrics"


@dataclass
class InlineData:
    """Binary attachment sent alongside the prompt text."""
    mime_type: str
    data: bytes


@dataclass
class CompletionRequest:
    """Provider-neutral completion call."""
    prompt: str
    system_instruction: Optional[str] = None
    schema: Optional[dict] = None
    inline_data: Optional[InlineData] = None

    @property
    def expects_json(self) -> bool:
        return self.schema is not None


class AnalyzeAudioRequest(CamelModel):
    kind: ClassVar[AIKind] = AIKind.ANALYZE_AUDIO

    base64_audio: str = ""
    mime_type: str = "audio/mp3"

    def to_completion(self) -> CompletionRequest:
        if not self.base64_audio:
            raise ValidationError("Missing audio data")
        try:
            audio = base64.b64decode(self.base64_audio, validate=True)
        except (binascii.Error, ValueError):
            raise ValidationError("Audio data is not valid base64")
        return CompletionRequest(
            prompt="Analyze this audio track in extreme detail. Return JSON.",
            system_instruction=PRODUCER_INSTRUCTION,
            schema=ANALYSIS_SCHEMA,
            inline_data=InlineData(mime_type=self.mime_type or "audio/mp3", data=audio),
        )


class AnalyzeMetadataRequest(CamelModel):
    kind: ClassVar[AIKind] = AIKind.ANALYZE_METADATA

    query: str = ""

    def to_completion(self) -> CompletionRequest:
        if not self.query.strip():
            raise ValidationError("Missing query")
        return CompletionRequest(
            prompt=(
                f'Analyze the song "{self.query}". Provide its likely BPM, Key, Genre, and '
                "structure based on public knowledge. Return JSON."
            ),
            system_instruction=PRODUCER_INSTRUCTION,
            schema=ANALYSIS_SCHEMA,
        )


class CreativeRequest(CamelModel):
    concept: str = ""
    selected_tags: list[str] = []
    structure_template: str = ""


class GenerateCreativeRequest(CamelModel):
    kind: ClassVar[AIKind] = AIKind.GENERATE_CREATIVE

    request: CreativeRequest

    def to_completion(self) -> CompletionRequest:
        req = self.request
        return CompletionRequest(
            prompt=(
                f'Create a song plan based on this concept: "{req.concept}". '
                f"Style: {', '.join(req.selected_tags)}. "
                f"Template: {req.structure_template}. Return JSON."
            ),
            system_instruction=PRODUCER_INSTRUCTION,
            schema=ANALYSIS_SCHEMA,
        )


class GenerateRemixRequest(CamelModel):
    kind: ClassVar[AIKind] = AIKind.GENERATE_REMIX

    original_data: AudioAnalysisResult

    def to_completion(self) -> CompletionRequest:
        original = self.original_data
        bpm = f"{original.bpm:g}" if original.bpm is not None else "unknown"
        return CompletionRequest(
            prompt=(
                f"Create a Remix/Variation plan for this song. Original BPM: {bpm}, "
                f"Genre: {original.genre or 'unknown'}. Make it more electronic/modern. Return JSON."
            ),
            system_instruction=PRODUCER_INSTRUCTION,
            schema=ANALYSIS_SCHEMA,
        )


class GenerateLyricsRequest(CamelModel):
    kind: ClassVar[AIKind] = AIKind.GENERATE_LYRICS

    genre: str = ""
    mood: list[str] = []
    section_name: str = ""
    section_desc: str = ""

    def to_completion(self) -> CompletionRequest:
        return CompletionRequest(
            prompt=(
                f"Write lyrics for a {self.section_name} section. Genre: {self.genre}. "
                f"Mood: {','.join(self.mood)}. Context: {self.section_desc}. "
                "Only return the lyrics text."
            ),
            system_instruction=LYRICIST_INSTRUCTION,
        )


GenerationRequest = Union[
    AnalyzeAudioRequest,
    AnalyzeMetadataRequest,
    GenerateCreativeRequest,
    GenerateRemixRequest,
    GenerateLyricsRequest,
]

REQUEST_TYPES: dict[AIKind, type] = {
    cls.kind: cls
    for cls in (
        AnalyzeAudioRequest,
        AnalyzeMetadataRequest,
        GenerateCreativeRequest,
        GenerateRemixRequest,
        GenerateLyricsRequest,
    )
}
