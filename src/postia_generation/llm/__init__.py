"""Generative-AI client layer: provider clients and the retrying GenerationService."""

from postia_generation.llm.base_client import BaseGenerativeClient
from postia_generation.llm.gemini_client import GeminiClient
from postia_generation.llm.service import GenerationService

__all__ = [
    "BaseGenerativeClient",
    "GeminiClient",
    "GenerationService",
]
