"""LLM package initialization."""

from stepflow.llm.factory import LLMFactory
from stepflow.llm.provider import LLMProvider

__all__ = [
    "LLMFactory",
    "LLMProvider",
]
