"""Shared pytest fixtures for Athanor Loom tests."""

import pytest
from httpx import ASGITransport, AsyncClient

from athanor.db.connection import Database
from athanor.documents.store import DocumentStore
from athanor.main import app
from athanor.sessions.router import get_document_store, get_session_service
from athanor.sessions.service import SessionService
from athanor.trees.engine import LoomTree


@pytest.fixture
async def db():
    """In-memory database for tests."""
    database = await Database.connect(":memory:")
    yield database
    await database.close()


@pytest.fixture
async def document_store(db):
    """DocumentStore backed by in-memory database."""
    return DocumentStore(db)


@pytest.fixture
def tree():
    """A fresh tree seeded with the canonical opening line."""
    t = LoomTree()
    t.initialize("Once upon a time")
    return t


@pytest.fixture
def session_service():
    return SessionService()


@pytest.fixture
async def client(session_service, document_store):
    """Async test client with in-memory services wired into the app."""
    app.dependency_overrides[get_session_service] = lambda: session_service
    app.dependency_overrides[get_document_store] = lambda: document_store
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client
    app.dependency_overrides.clear()
