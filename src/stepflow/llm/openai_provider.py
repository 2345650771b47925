"""OpenAI document provider implementation."""

import base64
import logging

import openai
from openai import OpenAI

from stepflow.core.config import LLMConfig
from stepflow.llm.provider import LLMProvider
from stepflow.workflow.errors import UpstreamError

logger = logging.getLogger(__name__)


class OpenAIProvider(LLMProvider):
    """OpenAI API provider sending the document as an inline file part."""

    def __init__(self, config: LLMConfig, client: OpenAI | None = None) -> None:
        """Initialize the OpenAI provider.

        Args:
            config: LLM configuration.
            client: Pre-built client (tests inject a mock here).

        Raises:
            ValueError: If API key is not provided.
        """
        if client is None and not config.configured:
            raise ValueError("OpenAI API key is required")

        self.config = config
        self.client = client or OpenAI(api_key=config.openai_api_key)
        self.model = config.openai_model

        logger.info(f"OpenAI provider initialized with model: {self.model}")

    def generate(
        self,
        document: bytes,
        *,
        prompt: str,
        filename: str | None = None,
        media_type: str = "application/pdf",
    ) -> str:
        encoded = base64.b64encode(document).decode("ascii")
        logger.debug(f"Sending {len(document)} byte document to {self.model}")

        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {
                        "role": "user",
                        "content": [
                            {
                                "type": "file",
                                "file": {
                                    "filename": filename or "document.pdf",
                                    "file_data": f"data:{media_type};base64,{encoded}",
                                },
                            },
                            {"type": "text", "text": prompt},
                        ],
                    }
                ],  # type: ignore
                max_tokens=self.config.max_tokens,
                temperature=self.config.temperature,
            )
        except openai.APIStatusError as e:
            raise UpstreamError(
                f"Document model request failed ({e.status_code}): {e.message}",
                status_code=e.status_code,
            ) from e
        except openai.APIError as e:
            raise UpstreamError(f"Document model request failed: {e.message}") from e

        content = response.choices[0].message.content or ""
        logger.debug(f"Generated {len(content)} characters")

        return content
