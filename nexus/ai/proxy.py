"""Credit-gated AI proxy.

Per request: resolve the session, check credits, call the provider once,
validate the result, then debit one credit. Nothing is debited when any
step before the debit fails.
"""
import json
import logging
import re
from typing import Optional, Union

from pydantic import ValidationError as PydanticValidationError

from nexus.auth.service import AuthService
from nexus.db.content import ContentStore
from nexus.db.models import User
from nexus.errors import InsufficientCredits, InvalidProviderResponse, ServiceUnavailable
from nexus.ledger import CreditLedger
from .provider import CompletionProvider
from .requests import CompletionRequest, GenerationRequest
from .schema import AudioAnalysisResult, LyricsResult


logger = logging.getLogger(__name__)

_CODE_FENCE = re.compile(r"```(?:json)?", re.IGNORECASE)

GenerationResult = Union[AudioAnalysisResult, LyricsResult]


def strip_code_fences(text: str) -> str:
    """Remove markdown code fences the model sometimes wraps JSON in."""
    return _CODE_FENCE.sub("", text or "").strip()


def parse_analysis(text: str) -> AudioAnalysisResult:
    cleaned = strip_code_fences(text)
    try:
        return AudioAnalysisResult.model_validate(json.loads(cleaned))
    except (json.JSONDecodeError, PydanticValidationError):
        logger.error("JSON parse error, raw provider text: %.500s", text)
        raise InvalidProviderResponse()


class AIProxy:
    """Runs generation requests on behalf of logged-in users."""

    def __init__(
        self,
        auth: AuthService,
        ledger: CreditLedger,
        content: ContentStore,
        provider: CompletionProvider,
        default_api_key: str = "",
    ):
        self.auth = auth
        self.ledger = ledger
        self.content = content
        self.provider = provider
        self.default_api_key = default_api_key

    async def resolve_api_key(self) -> str:
        """Admin-configured key first, deployment default second."""
        config = await self.content.get_system_config()
        api_key = config.get("geminiApiKey") or self.default_api_key
        if not api_key:
            raise ServiceUnavailable()
        return api_key

    async def generate(self, token: Optional[str], request: GenerationRequest) -> GenerationResult:
        """Run one generation request for the session owner.

        Raises:
            Unauthorized: token missing, invalid or expired
            InsufficientCredits: no credits left (provider is not called)
            ValidationError: malformed payload
            ServiceUnavailable: no provider API key configured
            ProviderError: provider call failed
            InvalidProviderResponse: provider output unusable
        """
        user = await self.auth.require_user(token)
        return await self.generate_for_user(user, request)

    async def generate_for_user(self, user: User, request: GenerationRequest) -> GenerationResult:
        """Same as `generate` for a user whose session was already resolved."""
        if not self.ledger.has_credits(user):
            raise InsufficientCredits()

        completion = request.to_completion()
        api_key = await self.resolve_api_key()

        logger.info("AI %s for user %s", request.kind.value, user.id)
        text = await self.provider.complete(completion, api_key)
        result = self._parse(completion, text)

        await self.ledger.debit(user.id)
        return result

    @staticmethod
    def _parse(completion: CompletionRequest, text: str) -> GenerationResult:
        if completion.expects_json:
            return parse_analysis(text)
        text = (text or "").strip()
        if not text:
            raise InvalidProviderResponse("AI returned an empty response.")
        return LyricsResult(text=text)
