"""Workflow REST API.

Handlers are thin: they decode the request, call :class:`WorkflowService` and map
domain errors onto status codes. The service comes from ``app.state`` so tests and
the CLI can inject their own store and provider.
"""

from __future__ import annotations

import base64
import binascii
import logging
from typing import Any

from fastapi import APIRouter, Body, HTTPException, Request

from stepflow.server.config import ServerSettings
from stepflow.server.models import GenerateRequest, PatchRequest
from stepflow.workflow.errors import (
    ExtractionError,
    NotFoundError,
    StoreError,
    UpstreamError,
    ValidationError,
)
from stepflow.workflow.service import WorkflowService

logger = logging.getLogger(__name__)

router = APIRouter()


def _settings(request: Request) -> ServerSettings:
    settings = getattr(request.app.state, "settings", None)
    if not isinstance(settings, ServerSettings):
        raise HTTPException(status_code=500, detail="Server settings not configured")
    return settings


def _service(request: Request) -> WorkflowService:
    service = getattr(request.app.state, "workflow_service", None)
    if not isinstance(service, WorkflowService):
        raise HTTPException(status_code=500, detail="Workflow service not configured")
    return service


def _store_failure(e: StoreError, **context: object) -> HTTPException:
    logger.error("Workflow store failure", extra={"error": str(e), **context})
    return HTTPException(status_code=500, detail="Storage error; see server logs")


@router.get("/health")
def health() -> dict[str, bool]:
    return {"ok": True}


@router.post("/api/generate-workflow")
def generate_workflow(request: Request, body: Any = Body(default=None)) -> dict[str, object]:
    """Extract a workflow from an uploaded document. Nothing is persisted."""

    settings = _settings(request)
    req = GenerateRequest.from_body(body)
    encoded = req.encoded_document()
    if not encoded:
        raise HTTPException(status_code=400, detail="Missing documentBase64 in request body")
    try:
        document = base64.b64decode(encoded, validate=True)
    except (binascii.Error, ValueError) as e:
        raise HTTPException(status_code=400, detail="documentBase64 is not valid base64") from e
    if not document:
        raise HTTPException(status_code=400, detail="Document is empty")
    if len(document) > settings.max_document_bytes:
        raise HTTPException(
            status_code=400,
            detail=f"Document exceeds {settings.max_document_bytes} bytes",
        )

    service = _service(request)
    if not service.generation_enabled:
        raise HTTPException(
            status_code=500, detail="Server is missing STEPFLOW_LLM_OPENAI_API_KEY"
        )

    filename = req.document_name()
    try:
        workflow = service.generate(document, filename=filename)
    except UpstreamError as e:
        logger.error(
            "Document model call failed",
            extra={"document_name": filename, "upstream_status": e.status_code},
        )
        raise HTTPException(status_code=500, detail=f"Generation failed: {e.message}") from e
    except ExtractionError as e:
        raise HTTPException(
            status_code=500, detail=f"Could not read the model output: {e.message}"
        ) from e
    except ValidationError as e:
        logger.warning("Model output failed validation", extra={"reason": e.message})
        raise HTTPException(
            status_code=500, detail=f"Model output is not a valid workflow: {e.message}"
        ) from e

    return {"title": workflow.name, "steps": [s.to_json() for s in workflow.steps]}


@router.post("/api/workflows", status_code=201)
def create_workflow(request: Request, payload: Any = Body(default=None)) -> dict[str, object]:
    try:
        workflow = _service(request).create(payload)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=e.message) from e
    except StoreError as e:
        raise _store_failure(e) from e
    return workflow.to_json()


@router.get("/api/workflows")
def list_workflows(request: Request) -> dict[str, object]:
    items = _service(request).list()
    return {"items": [s.to_json() for s in items]}


@router.get("/api/workflows/{workflow_id}")
def get_workflow(request: Request, workflow_id: str) -> dict[str, object]:
    try:
        workflow = _service(request).get(workflow_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message) from e
    except StoreError as e:
        raise _store_failure(e, workflow_id=workflow_id) from e
    return workflow.to_json()


@router.delete("/api/workflows/{workflow_id}")
def delete_workflow(request: Request, workflow_id: str) -> dict[str, bool]:
    try:
        _service(request).delete(workflow_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message) from e
    except StoreError as e:
        raise _store_failure(e, workflow_id=workflow_id) from e
    return {"ok": True}


@router.patch("/api/workflows/{workflow_id}")
def patch_workflow(request: Request, workflow_id: str, req: PatchRequest) -> dict[str, object]:
    try:
        workflow = _service(request).patch(workflow_id, name=req.name, steps=req.steps)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message) from e
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=e.message) from e
    except StoreError as e:
        raise _store_failure(e, workflow_id=workflow_id) from e
    return workflow.to_json()
