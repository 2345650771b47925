"""Core configuration and logging."""

from stepflow.core.config import LLMConfig

__all__ = ["LLMConfig"]
