"""
Generative model access for extraction.

Usage:
    from gemeinde_info.services.ai import create_text_generator

    generator = create_text_generator()
    if generator:
        raw = await generator.generate(prompt)
"""

from gemeinde_info.services.ai.interface import TextGenerationInterface
from gemeinde_info.services.ai.provider import OpenAICompatibleProvider, create_text_generator

__all__ = [
    "TextGenerationInterface",
    "OpenAICompatibleProvider",
    "create_text_generator",
]
