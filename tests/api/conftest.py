"""Pytest fixtures for API testing."""

import pytest
from fastapi import FastAPI
from httpx import AsyncClient, ASGITransport

from deepdive.api import conversations
from deepdive.api.errors import register_exception_handlers
from deepdive.services import AgentRunHandler, TranscriptSync


@pytest.fixture
async def client(db_conn, store, sandbox):
    """Create async HTTP client against a test app with a fake sandbox."""
    sync = TranscriptSync(sandbox, store)

    # Inject dependencies into routers
    conversations.db_conn = db_conn
    conversations.conv_store = store
    conversations.sandbox = sandbox
    conversations.transcript_sync = sync
    conversations.run_handler = AgentRunHandler(db_conn, sync)

    # Create a test app without lifespan (to avoid conflicts)
    test_app = FastAPI(title="Deep-Dive Test")
    register_exception_handlers(test_app)
    test_app.include_router(conversations.router)

    transport = ASGITransport(app=test_app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    conversations.db_conn = None
    conversations.conv_store = None
    conversations.sandbox = None
    conversations.transcript_sync = None
    conversations.run_handler = None
