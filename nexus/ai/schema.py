"""Response schema sent to the provider and the matching result models."""
from typing import Any, Optional

from pydantic import ValidationInfo, field_validator

from nexus.db.models import CamelModel


ANALYSIS_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "bpm": {"type": "NUMBER"},
        "key": {"type": "STRING"},
        "timeSignature": {"type": "STRING"},
        "genre": {"type": "STRING"},
        "mood": {"type": "ARRAY", "items": {"type": "STRING"}},
        "instruments": {"type": "ARRAY", "items": {"type": "STRING"}},
        "vocalType": {"type": "STRING"},
        "description": {"type": "STRING"},
        "rhythmAnalysis": {"type": "STRING"},
        "compositionAnalysis": {"type": "STRING"},
        "sections": {
            "type": "ARRAY",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "name": {"type": "STRING"},
                    "description": {"type": "STRING"},
                    "instruments": {"type": "ARRAY", "items": {"type": "STRING"}},
                    "energyLevel": {"type": "STRING"},
                    "keyElements": {"type": "STRING"},
                    "sunoDirective": {"type": "STRING"},
                    "lyrics": {"type": "STRING"},
                },
            },
        },
        "productionQuality": {"type": "STRING"},
        "danceability": {"type": "NUMBER"},
        "energy": {"type": "NUMBER"},
        "sunoPrompt": {"type": "STRING"},
        "trackInfo": {
            "type": "OBJECT",
            "properties": {
                "title": {"type": "STRING"},
                "artist": {"type": "STRING"},
                "platform": {"type": "STRING"},
            },
        },
    },
}


class _ResultModel(CamelModel):
    """Treats explicit nulls from the provider as the field default."""

    @field_validator("*", mode="before")
    @classmethod
    def _null_to_default(cls, value: Any, info: ValidationInfo) -> Any:
        if value is None:
            return cls.model_fields[info.field_name].get_default(call_default_factory=True)
        return value


class SongSection(_ResultModel):
    name: str = ""
    description: str = ""
    instruments: list[str] = []
    energy_level: str = ""
    key_elements: str = ""
    suno_directive: str = ""
    lyrics: str = ""


class TrackInfo(_ResultModel):
    title: str = ""
    artist: str = ""
    platform: str = ""


class AudioAnalysisResult(_ResultModel):
    """Structured analysis / song plan returned by every JSON kind."""
    bpm: Optional[float] = None
    key: str = ""
    time_signature: str = ""
    genre: str = ""
    mood: list[str] = []
    instruments: list[str] = []
    vocal_type: str = ""
    description: str = ""
    rhythm_analysis: str = ""
    composition_analysis: str = ""
    sections: list[SongSection] = []
    production_quality: str = ""
    danceability: Optional[float] = None
    energy: Optional[float] = None
    suno_prompt: str = ""
    track_info: Optional[TrackInfo] = None


class LyricsResult(CamelModel):
    text: str
