"""Workflow operations shared by the HTTP API and the CLI.

Generation runs provider -> repair -> normalize and persists nothing; a failed
extraction never leaves a partial workflow behind. Writes go through
``normalize`` so the store only ever sees canonical records.
"""

from __future__ import annotations

import logging
from pathlib import PurePath

from stepflow.llm.provider import LLMProvider
from stepflow.workflow.errors import NotFoundError, UpstreamError
from stepflow.workflow.models import Step, Workflow, WorkflowSummary
from stepflow.workflow.normalize import WorkflowIdentity, normalize, validate_incoming
from stepflow.workflow.repair import repair_json
from stepflow.workflow.store import WorkflowStore

logger = logging.getLogger(__name__)

EXTRACTION_PROMPT = """You are a workflow extraction engine that turns a manual into step-by-step instructions.

The document may be mostly images and diagrams (assembly manuals, recipes, equipment guides).
Treat the illustrations as the source of truth:
- Use diagrams, exploded views, arrows, part callouts and numbered panels to infer the steps.
- Ignore marketing copy and irrelevant labels.
- Use text only to disambiguate part names or to carry safety warnings.
- Produce concise, actionable, ordered steps: between 6 and 20. Summarize long documents.
- If a step implies waiting (cure, bake, dry, heat), set durationSec. Otherwise omit it.

Align every step to a page: include a 1-based "page" number for the page that best shows the
step. If a step spans several pages, pick the primary one.

Return STRICT JSON ONLY in exactly this schema, with no markdown, commentary or extra keys:

{
  "title": "short workflow name",
  "steps": [
    {
      "title": "Step title",
      "description": "1-3 sentences max",
      "durationSec": 120,
      "page": 3
    }
  ]
}"""


def name_from_filename(filename: str | None) -> str | None:
    """Derive a display name from an uploaded filename (``ikea_malm.pdf`` -> ``ikea malm``)."""

    if not filename:
        return None
    stem = PurePath(filename.replace("\\", "/")).stem
    name = " ".join(stem.replace("_", " ").replace("-", " ").split())
    return name or None


class WorkflowService:
    def __init__(self, store: WorkflowStore, provider: LLMProvider | None = None) -> None:
        self._store = store
        self._provider = provider

    @property
    def store(self) -> WorkflowStore:
        return self._store

    @property
    def generation_enabled(self) -> bool:
        return self._provider is not None

    def generate(self, document: bytes, *, filename: str | None = None) -> Workflow:
        """Extract a workflow from ``document`` without persisting it.

        Raises:
            UpstreamError: No provider is configured, or the provider failed or
                returned nothing.
            ExtractionError: The output holds no JSON object.
            ValidationError: The JSON does not describe a usable workflow.
        """

        if self._provider is None:
            raise UpstreamError(
                "Document model is not configured (set STEPFLOW_LLM_OPENAI_API_KEY)"
            )

        text = self._provider.generate(
            document, prompt=EXTRACTION_PROMPT, filename=filename
        ).strip()
        if not text:
            raise UpstreamError("Document model returned empty output")

        parsed = repair_json(text)
        workflow = normalize(parsed, fallback_name=name_from_filename(filename))
        logger.info(
            "Workflow extracted",
            extra={"document_name": filename, "steps": len(workflow.steps), "chars": len(text)},
        )
        return workflow

    def create(self, payload: object) -> Workflow:
        """Validate, normalize and persist a client-submitted workflow.

        Re-submitting an existing ``workflowId`` overwrites that record but keeps
        its original ``createdAt``.
        """

        validate_incoming(payload)
        workflow = normalize(payload)
        try:
            existing = self._store.get(workflow.workflow_id)
        except NotFoundError:
            existing = None
        if existing is not None:
            workflow = workflow.model_copy(update={"created_at": existing.created_at})
        return self._store.put(workflow)

    def patch(
        self,
        workflow_id: str,
        *,
        name: str | None = None,
        steps: object = None,
    ) -> Workflow:
        """Merge ``name``/``steps`` into a stored workflow and write it back.

        ``steps`` replaces the whole sequence; anything but a list is rejected by
        normalization.
        """

        existing = self._store.get(workflow_id)
        payload = existing.to_json()
        if name is not None:
            payload["name"] = name
        if isinstance(steps, list | tuple):
            payload["steps"] = [s.to_json() if isinstance(s, Step) else s for s in steps]
        elif steps is not None:
            payload["steps"] = steps
        merged = normalize(
            payload,
            WorkflowIdentity.of(existing),
            fallback_name=existing.name,
        )
        return self._store.put(merged)

    def get(self, workflow_id: str) -> Workflow:
        return self._store.get(workflow_id)

    def list(self) -> list[WorkflowSummary]:
        return self._store.list()

    def delete(self, workflow_id: str) -> None:
        self._store.delete(workflow_id)
