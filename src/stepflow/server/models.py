"""Pydantic request models for the REST server.

Workflow bodies are deliberately not modelled here: they arrive as untyped JSON
and are narrowed by the normalizer, which owns the error messages.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel


def _text(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""


class GenerateRequest(BaseModel):
    # Any JSON type is accepted here; non-string documents count as missing.
    documentBase64: Any = None
    # Older clients only ever uploaded PDFs and used this name.
    pdfBase64: Any = None
    filename: Any = None

    @classmethod
    def from_body(cls, body: Any) -> GenerateRequest:
        return cls.model_validate(body) if isinstance(body, dict) else cls()

    def encoded_document(self) -> str:
        value = _text(self.documentBase64) or _text(self.pdfBase64)
        # Accept data URLs as produced by FileReader.readAsDataURL.
        if value.startswith("data:") and "," in value:
            value = value.split(",", 1)[1]
        return value

    def document_name(self) -> str | None:
        return _text(self.filename) or None


class PatchRequest(BaseModel):
    name: str | None = None
    steps: Any = None
