"""FastAPI app factory.

The store and provider are built once per app and handed to the handlers through
``app.state``. Nothing is module-global, so tests can build as many isolated apps
as they need.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from stepflow import __version__
from stepflow.llm.factory import LLMFactory
from stepflow.llm.provider import LLMProvider
from stepflow.server.config import ServerSettings
from stepflow.server.workflows_router import router as workflows_router
from stepflow.workflow.service import WorkflowService
from stepflow.workflow.store import WorkflowStore

logger = logging.getLogger(__name__)


def create_app(
    settings: ServerSettings | None = None,
    *,
    store: WorkflowStore | None = None,
    provider: LLMProvider | None = None,
) -> FastAPI:
    """Build the API.

    Args:
        settings: Defaults to :class:`ServerSettings` read from the environment.
        store: Defaults to a :class:`WorkflowStore` rooted at ``settings.data_dir``.
        provider: Defaults to the configured document model, or none when no
            credential is set (generation then answers 500).
    """

    settings = settings or ServerSettings()
    store = store or WorkflowStore(settings.data_dir)
    if provider is None:
        provider = LLMFactory.create_if_configured(settings.llm)
    service = WorkflowService(store=store, provider=provider)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        store.ensure_root()
        logger.info(
            "Workflow API starting",
            extra={
                "data_dir": str(store.root),
                "generation_enabled": service.generation_enabled,
            },
        )
        yield
        logger.info("Workflow API stopped")

    app = FastAPI(
        title="stepflow",
        version=__version__,
        description="Extract, store and replay step-by-step workflows from manuals.",
        openapi_url="/api/openapi.json",
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.workflow_service = service

    origins = settings.parsed_cors_origins()
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=origins != ["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(workflows_router)
    return app
