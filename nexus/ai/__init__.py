"""AI generation module."""
from .provider import CompletionProvider, GeminiProvider
from .proxy import AIProxy, strip_code_fences
from .requests import (
    AIKind, CompletionRequest, InlineData, GenerationRequest, REQUEST_TYPES,
    AnalyzeAudioRequest, AnalyzeMetadataRequest, GenerateCreativeRequest,
    GenerateRemixRequest, GenerateLyricsRequest, CreativeRequest,
)
from .schema import ANALYSIS_SCHEMA, AudioAnalysisResult, LyricsResult

__all__ = [
    "CompletionProvider", "GeminiProvider",
    "AIProxy", "strip_code_fences",
    "AIKind", "CompletionRequest", "InlineData", "GenerationRequest", "REQUEST_TYPES",
    "AnalyzeAudioRequest", "AnalyzeMetadataRequest", "GenerateCreativeRequest",
    "GenerateRemixRequest", "GenerateLyricsRequest", "CreativeRequest",
    "ANALYSIS_SCHEMA", "AudioAnalysisResult", "LyricsResult",
]
