"""Configuration for the REST server.

The server starts without a document-model credential. Storage endpoints work
regardless; the generation endpoint checks for the credential per request.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from stepflow.core.config import LLMConfig


class ServerSettings(BaseSettings):
    """Settings for the workflow API.

    Environment variables:
    - HOST, PORT          (bind address)
    - DATA_DIR            (one JSON document per workflow is written here)
    - CORS_ORIGIN         (``*`` or a comma-separated list of origins)
    - LOG_LEVEL
    - MAX_DOCUMENT_BYTES  (decoded upload limit for generation)
    - STEPFLOW_LLM_*      (see :class:`stepflow.core.config.LLMConfig`)
    """

    host: str = Field(default="0.0.0.0", validation_alias="HOST")
    port: int = Field(default=10000, validation_alias="PORT", ge=1, le=65535)

    data_dir: Path = Field(
        default=Path("data/workflows"),
        validation_alias="DATA_DIR",
        description="Directory where workflow documents are persisted",
    )

    cors_origin: str = Field(
        default="*",
        validation_alias="CORS_ORIGIN",
        description="'*' or a comma-separated list of allowed CORS origins.",
    )

    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")

    max_document_bytes: int = Field(
        default=20 * 1024 * 1024,
        validation_alias="MAX_DOCUMENT_BYTES",
        gt=0,
        description="Largest decoded document accepted by the generation endpoint.",
    )

    llm: LLMConfig = Field(default_factory=LLMConfig)

    model_config = SettingsConfigDict(
        env_prefix="", env_file=".env", extra="ignore", populate_by_name=True
    )

    def parsed_cors_origins(self) -> list[str]:
        if self.cors_origin.strip() == "*":
            return ["*"]
        return [o.strip() for o in self.cors_origin.split(",") if o.strip()]
