"""
Text Generation Interface

Contract for the generative model used by the extraction adapter.
"""

from abc import ABC, abstractmethod


class TextGenerationInterface(ABC):
    """Prompt in, raw model text out.

    Implementations may raise on transport or provider errors; the
    extraction adapter maps any failure to its default record.
    """

    @abstractmethod
    async def generate(self, prompt: str) -> str:
        """Generate a completion for prompt.

        Args:
            prompt: Full prompt including the page excerpt

        Returns:
            Raw response text (expected to be a JSON object)
        """
        pass

    @property
    @abstractmethod
    def model_name(self) -> str:
        """Get the model name for logging."""
        pass
