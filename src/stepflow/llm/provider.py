"""Abstract base class for document-understanding providers."""

from abc import ABC, abstractmethod


class LLMProvider(ABC):
    """A model that reads a binary document and answers with free-form text.

    Output is untrusted: callers must pass it through ``repair_json`` and
    ``normalize`` before using it.
    """

    @abstractmethod
    def generate(
        self,
        document: bytes,
        *,
        prompt: str,
        filename: str | None = None,
        media_type: str = "application/pdf",
    ) -> str:
        """Run ``prompt`` against ``document``.

        Args:
            document: Raw document bytes.
            prompt: Extraction instructions.
            filename: Original filename, passed through as a hint.
            media_type: MIME type of ``document``.

        Returns:
            The model's text output.

        Raises:
            UpstreamError: If the provider call fails.
        """
        pass
