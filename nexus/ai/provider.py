"""Completion provider used by the AI proxy."""
import logging
from abc import ABC, abstractmethod

import httpx
from google import genai
from google.genai import errors as genai_errors
from google.genai import types

from nexus.errors import ProviderError
from .requests import CompletionRequest


logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gemini-2.5-flash"


class CompletionProvider(ABC):
    """Abstract base class for text/JSON completion."""

    @abstractmethod
    async def complete(self, request: CompletionRequest, api_key: str) -> str:
        """Run one completion and return the raw model text."""
        pass


class GeminiProvider(CompletionProvider):
    """Completion provider using Google Gemini.

    A client is built per call because the API key can be changed by the
    admin console at any time.
    """

    def __init__(self, model: str = DEFAULT_MODEL, temperature: float = 0.4):
        self.model_name = model
        self.temperature = temperature

    def _build_contents(self, request: CompletionRequest) -> list:
        parts = []
        if request.inline_data is not None:
            parts.append(types.Part.from_bytes(
                data=request.inline_data.data,
                mime_type=request.inline_data.mime_type,
            ))
        parts.append(types.Part.from_text(text=request.prompt))
        return [types.Content(role="user", parts=parts)]

    def _build_config(self, request: CompletionRequest) -> types.GenerateContentConfig:
        options = {
            "temperature": self.temperature,
            "system_instruction": request.system_instruction,
        }
        if request.schema is not None:
            options["response_mime_type"] = "application/json"
            options["response_schema"] = request.schema
        return types.GenerateContentConfig(**options)

    async def complete(self, request: CompletionRequest, api_key: str) -> str:
        genai_client = genai.Client(api_key=api_key)
        client = genai_client.aio
        try:
            response = await client.models.generate_content(
                model=self.model_name,
                contents=self._build_contents(request),
                config=self._build_config(request),
            )
        except genai_errors.APIError as e:
            logger.error("[Gemini] API error: %s", e)
            raise ProviderError(f"Gemini API Error: {e.message or e}")
        except httpx.HTTPError as e:
            logger.error("[Gemini] Transport error: %s", e)
            raise ProviderError(f"Gemini API Error: {e}")
        finally:
            await client.aclose()
            genai_client.close()

        text = response.text
        if text is None and response.candidates:
            content = response.candidates[0].content
            parts = (content.parts if content else None) or []
            text = "".join(p.text or "" for p in parts)
        return text or ""
