"""Encounter generator selection (settings.AI_PROVIDER)."""

from typing import Optional

from src.config import settings
from src.core.logging import get_logger
from src.services.ai.base import AIProvider
from src.services.ai.mock import MockProvider

logger = get_logger(__name__)


def _build_gemini() -> AIProvider:
    if not settings.AI_API_KEY:
        logger.warning("AI_API_KEY not set, encounters use MockProvider")
        return MockProvider()
    # google-generativeai 는 gemini 선택 시에만 import
    from src.services.ai.gemini import DEFAULT_MODEL, GeminiProvider

    model = settings.AI_MODEL or DEFAULT_MODEL
    logger.debug("Encounters use GeminiProvider (%s)", model)
    return GeminiProvider(
        api_key=settings.AI_API_KEY,
        model=model,
        temperature=settings.AI_TEMPERATURE,
    )


def get_ai_provider(provider_name: Optional[str] = None) -> AIProvider:
    """기연 생성기 선택.

    provider_name 생략 시 settings.AI_PROVIDER. 알 수 없는 이름이거나
    API 키가 없으면 MockProvider (게임은 AI 없이도 진행된다).
    """
    name = (provider_name or settings.AI_PROVIDER).lower()

    if name == "gemini":
        return _build_gemini()
    if name != "mock":
        logger.warning("Unknown provider '%s', encounters use MockProvider", name)
    return MockProvider()
