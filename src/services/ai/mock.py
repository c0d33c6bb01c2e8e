"""Mock encounter generator for testing and fallback."""

import json
from typing import Optional

from src.services.ai.base import AIProvider

MOCK_ENCOUNTER_RESPONSE = json.dumps(
    {
        "story": "你在山涧旁发现了一株灵气氤氲的草药，小心采下收入囊中。",
        "hpChange": 0,
        "expChange": 10,
        "spiritStonesChange": 5,
        "eventColor": "gain",
        "itemObtained": {
            "name": "凝血草",
            "type": "草药",
            "description": "常见的灵草，可用于炼制回血丹药。",
            "rarity": "普通",
            "isEquippable": False,
            "effect": {"hp": 10},
        },
    },
    ensure_ascii=False,
)


class MockProvider(AIProvider):
    """Mock provider that always returns the same encounter.

    Used for testing and as a fallback when no API key is configured.
    """

    def __init__(self, response: Optional[str] = None) -> None:
        self._response = response or MOCK_ENCOUNTER_RESPONSE
        self.prompts: list[str] = []

    @property
    def name(self) -> str:
        return "mock"

    def is_available(self) -> bool:
        return True

    def generate(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        max_tokens: int = 1000,
    ) -> str:
        """Record the prompt and return the canned JSON response."""
        self.prompts.append(prompt)
        return self._response
