"""Test configuration and fixtures."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest

from stepflow.core.config import LLMConfig
from stepflow.llm.provider import LLMProvider
from stepflow.workflow.store import WorkflowStore


class FakeProvider(LLMProvider):
    """Returns canned model output and records what it was asked."""

    def __init__(self, output: str | Exception) -> None:
        self.output = output
        self.calls: list[dict[str, object]] = []

    def generate(
        self,
        document: bytes,
        *,
        prompt: str,
        filename: str | None = None,
        media_type: str = "application/pdf",
    ) -> str:
        self.calls.append({"document": document, "prompt": prompt, "filename": filename})
        if isinstance(self.output, Exception):
            raise self.output
        return self.output


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Keep a developer's `.env` and credentials out of the tests."""
    monkeypatch.chdir(tmp_path)
    for name in (
        "STEPFLOW_LLM_OPENAI_API_KEY",
        "DATA_DIR",
        "PORT",
        "HOST",
        "CORS_ORIGIN",
        "LOG_LEVEL",
        "MAX_DOCUMENT_BYTES",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def data_dir(tmp_path: Path) -> Path:
    """Provide a temporary workflow directory."""
    return tmp_path / "workflows"


@pytest.fixture
def store(data_dir: Path) -> WorkflowStore:
    return WorkflowStore(data_dir)


@pytest.fixture
def llm_config() -> LLMConfig:
    """Provide a test LLM configuration."""
    return LLMConfig(openai_api_key="test-key", openai_model="gpt-4o")


@pytest.fixture
def fake_provider() -> Callable[[str | Exception], FakeProvider]:
    return FakeProvider


@pytest.fixture
def sample_payload() -> dict[str, object]:
    return {
        "name": "Bookshelf",
        "steps": [
            {"title": "Unpack the panels", "description": "Lay them flat.", "page": 2},
            {"title": "Let the glue cure", "durationSec": 120, "page": 5},
            {"title": "Mount the back board"},
        ],
    }
