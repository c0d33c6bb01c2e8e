"""Abstract base class for encounter generators."""

from abc import ABC, abstractmethod
from typing import Optional


class AIProvider(ABC):
    """Abstract base class for AI providers.

    A provider turns an encounter prompt into a raw text response.
    The response is untrusted: callers must run it through LootParser
    before anything reaches the player state.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the provider name."""
        ...

    @abstractmethod
    def is_available(self) -> bool:
        """Check if the provider is available and configured."""
        ...

    @abstractmethod
    def generate(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        max_tokens: int = 1000,
    ) -> str:
        """Generate an encounter response.

        Args:
            prompt: Encounter prompt describing the player state.
            system_prompt: Optional system instruction (GM role).
            max_tokens: Maximum tokens for the response.

        Returns:
            Raw response text, expected to hold one JSON object.

        Raises:
            RuntimeError: If the provider cannot produce a response.
        """
        ...
