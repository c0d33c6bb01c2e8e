"""Gemini encounter generator."""

from typing import Any, Optional

import google.generativeai as genai

from src.core.logging import get_logger
from src.services.ai.base import AIProvider

logger = get_logger(__name__)

DEFAULT_MODEL = "gemini-2.0-flash"


class GeminiProvider(AIProvider):
    """Encounter generator backed by the Google Gemini API.

    Responses are requested as JSON (response_mime_type) so that the
    loot parser rarely needs the fenced-block fallback. One model handle
    is kept per system instruction; the encounter GM prompt is constant,
    so in practice a single handle is built per session.
    """

    def __init__(
        self,
        api_key: str,
        model: str = DEFAULT_MODEL,
        temperature: float = 0.95,
    ) -> None:
        self._api_key = api_key
        self._model_name = model
        self._temperature = temperature
        self._models: dict[Optional[str], Any] = {}

        if self._api_key:
            genai.configure(api_key=self._api_key)
            self._models[None] = genai.GenerativeModel(self._model_name)
            logger.info("GeminiProvider initialized with model: %s", self._model_name)

    @property
    def name(self) -> str:
        return "gemini"

    def is_available(self) -> bool:
        return bool(self._api_key) and None in self._models

    def _model_for(self, system_prompt: Optional[str]) -> Any:
        if system_prompt not in self._models:
            self._models[system_prompt] = genai.GenerativeModel(
                self._model_name,
                system_instruction=system_prompt,
            )
        return self._models[system_prompt]

    def generate(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        max_tokens: int = 1000,
    ) -> str:
        """Generate an encounter JSON string.

        Raises:
            RuntimeError: If the API call fails, the response is blocked or
                empty, or the provider is not available.
        """
        if not self.is_available():
            raise RuntimeError("GeminiProvider is not available. Check API key.")

        generation_config = genai.types.GenerationConfig(
            max_output_tokens=max_tokens,
            temperature=self._temperature,
            response_mime_type="application/json",
        )

        try:
            response = self._model_for(system_prompt).generate_content(
                prompt,
                generation_config=generation_config,
            )
            # 안전 필터에 막히면 .text 접근 자체가 ValueError
            text: str = response.text.strip()
        except Exception as e:
            logger.error("Gemini API error: %s", e)
            raise RuntimeError(f"Gemini API error: {e}") from e

        if not text:
            raise RuntimeError("Gemini returned an empty encounter")
        return text
