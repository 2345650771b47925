"""Factory for creating document providers."""

import logging

from stepflow.core.config import LLMConfig
from stepflow.llm.openai_provider import OpenAIProvider
from stepflow.llm.provider import LLMProvider

logger = logging.getLogger(__name__)


class LLMFactory:
    """Factory for creating LLM provider instances."""

    @staticmethod
    def create(config: LLMConfig) -> LLMProvider:
        """Create an LLM provider based on configuration.

        Args:
            config: LLM configuration specifying the provider.

        Returns:
            Configured LLM provider instance.

        Raises:
            ValueError: If provider type is not supported or credentials are missing.
        """
        logger.info(f"Creating LLM provider: {config.provider}")

        if config.provider == "openai":
            return OpenAIProvider(config)
        else:
            raise ValueError(f"Unsupported LLM provider: {config.provider}")

    @staticmethod
    def create_if_configured(config: LLMConfig) -> LLMProvider | None:
        """Like :meth:`create`, but return ``None`` when no credential is set."""
        if not config.configured:
            logger.warning("No document model credential configured; generation disabled")
            return None
        return LLMFactory.create(config)
