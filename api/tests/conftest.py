"""Pytest configuration and shared fixtures.

This module provides:
- Environment defaults so Settings validates without a record store
- An in-memory record store (see ``fakes.py``)
- The FastAPI app wired to the fake store, and an async test client
- Per-test resets of cached settings and preview sessions
"""

# Set environment variables BEFORE any imports that trigger Settings validation
import os

os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("BASE_URL", "http://localhost:3000")
os.environ.setdefault("STORE_URL", "http://store.test")

from collections.abc import AsyncGenerator, Generator

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from core.config import clear_settings_cache
from fakes import InMemoryRecordStore
from services import preview_service


@pytest.fixture(autouse=True)
def _reset_settings() -> Generator[None]:
    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture(autouse=True)
def _reset_preview_sessions() -> Generator[None]:
    preview_service.clear_sessions()
    yield
    preview_service.clear_sessions()


@pytest.fixture
def store() -> InMemoryRecordStore:
    return InMemoryRecordStore()


@pytest.fixture
def app(store: InMemoryRecordStore) -> Generator[FastAPI]:
    """The application with its store replaced by the in-memory fake.

    ASGITransport does not run the lifespan, so ``app.state.store`` is set
    here directly.
    """
    from main import app as fastapi_app

    previous = getattr(fastapi_app.state, "store", None)
    fastapi_app.state.store = store
    yield fastapi_app
    fastapi_app.state.store = previous


@pytest_asyncio.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
