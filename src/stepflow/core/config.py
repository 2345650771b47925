"""Configuration for the document model."""

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class LLMConfig(BaseSettings):
    """Configuration for the document-understanding provider.

    The API key is optional at startup: without it the generation endpoint
    reports an error while storage and playback keep working.
    """

    provider: Literal["openai"] = Field(
        default="openai",
        description="Document model provider to use",
    )

    openai_api_key: str | None = Field(
        default=None,
        description="OpenAI API key",
    )
    openai_model: str = Field(
        default="gpt-4o",
        description="OpenAI model to use; must accept PDF file inputs",
    )
    temperature: float = Field(
        default=0.2,
        ge=0.0,
        le=2.0,
        description="Sampling temperature for extraction",
    )
    max_tokens: int = Field(
        default=2048,
        gt=0,
        description="Upper bound on generated tokens per extraction",
    )

    model_config = SettingsConfigDict(
        env_prefix="STEPFLOW_LLM_",
        env_file=".env",
        extra="ignore",
    )

    @property
    def configured(self) -> bool:
        return bool((self.openai_api_key or "").strip())
