"""Athanor Loom FastAPI application entry point."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from athanor.config import load_settings
from athanor.db.connection import Database
from athanor.documents.store import DocumentStore
from athanor.generation.service import WeaveService
from athanor.providers.openrouter import OpenRouterProvider
from athanor.providers.registry import clear_providers, get_all_providers, register_provider
from athanor.sessions.router import get_document_store, get_session_service, get_weave_service
from athanor.sessions.router import router as looms_router
from athanor.sessions.service import SessionService

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage database lifecycle and service wiring."""
    settings = load_settings()

    db = await Database.connect(settings.db_path)

    # Sessions live in memory; snapshots go to the database
    sessions = SessionService(layout_config=settings.layout)
    app.dependency_overrides[get_session_service] = lambda: sessions

    store = DocumentStore(db)
    app.dependency_overrides[get_document_store] = lambda: store

    weave_service = WeaveService(sessions, settings)
    app.dependency_overrides[get_weave_service] = lambda: weave_service

    if settings.api.api_key:
        register_provider(OpenRouterProvider(api_key=settings.api.api_key))
    else:
        logger.info("No OpenRouter API key configured; weaving is disabled")

    app.state.db = db
    app.state.settings = settings
    yield

    clear_providers()
    await db.close()


app = FastAPI(
    title="Athanor Loom",
    description="Branching text loom: fork, edit, and lay out alternative continuations",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:5173"],
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(looms_router)


@app.get("/api/health")
async def health() -> dict:
    return {"status": "ok", "version": "0.1.0"}


@app.get("/api/providers")
async def providers() -> list[dict]:
    return [
        {"name": p.name, "available": True, "models": p.suggested_models}
        for p in get_all_providers()
    ]
