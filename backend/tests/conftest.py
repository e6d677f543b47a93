import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["REDIS_URL"] = ""
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["ENVIRONMENT"] = "test"
os.environ["JOIN_RATE_LIMIT"] = "1000/minute"
os.environ["SEARCH_RATE_LIMIT"] = "1000/minute"

import httpx
import pytest
from fastapi.testclient import TestClient
from sqlmodel import SQLModel

from classboard.core.security import create_access_token
from classboard.db import engine
from classboard.main import app
from classboard.services.change_feed import change_feed
from classboard.sync.session import AppContext
from classboard.sync.store import RemoteStore

from factories import API


@pytest.fixture(autouse=True)
def database():
    SQLModel.metadata.create_all(engine)
    yield
    change_feed.clear()
    SQLModel.metadata.drop_all(engine)


@pytest.fixture
def client():
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
async def remote_store():
    """Factory for RemoteStore clients bound to the app in-process."""
    stores = []

    def _make(profile, transport=None) -> RemoteStore:
        store = RemoteStore(
            base_url=f"http://testserver{API}",
            token=create_access_token(profile.id),
            transport=transport or httpx.ASGITransport(app=app),
        )
        stores.append(store)
        return store

    yield _make
    for store in stores:
        await store.aclose()


@pytest.fixture
async def app_context(remote_store):
    """Factory for a signed-in AppContext following the in-process feed."""
    contexts = []

    async def _make(profile, transport=None) -> AppContext:
        store = remote_store(profile, transport)
        context = AppContext(store, change_feed, await store.get_own_profile())
        contexts.append(context)
        return context

    yield _make
    for context in contexts:
        context.close()
