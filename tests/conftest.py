"""Pytest configuration and fixtures for Cellarbook tests.

Each test gets its own in-memory MongoDB database (mongomock-motor), so no
server is needed.
"""

import uuid
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import datetime, timezone

import pytest
import pytest_asyncio
from beanie import init_beanie
from httpx import ASGITransport, AsyncClient
from mongomock_motor import AsyncMongoMockClient

from cellarbook.database import get_document_models
from cellarbook.models import User
from cellarbook.services.auth import create_access_token, get_password_hash
from cellarbook.services.catalog import CatalogStore
from cellarbook.services.inventory import InventoryStore

FIXED_NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


# Create a test-specific app to avoid lifespan conflicts
def create_test_app(catalog_source=None):
    """Create a FastAPI app configured for testing (no database lifespan)."""
    from fastapi import FastAPI

    from cellarbook import __version__
    from cellarbook.main import app as main_app
    from cellarbook.main import limiter, register_exception_handlers

    # Empty lifespan for testing - we manage the database ourselves
    @asynccontextmanager
    async def test_lifespan(app: FastAPI):
        yield

    test_app = FastAPI(
        title="Cellarbook Test",
        version=__version__,
        lifespan=test_lifespan,
    )

    # Copy all routes from the main app
    for route in main_app.routes:
        test_app.routes.append(route)

    test_app.state.limiter = limiter
    register_exception_handlers(test_app)

    test_app.state.inventory_store = InventoryStore()
    test_app.state.catalog_store = CatalogStore(catalog_source)
    return test_app


@pytest.fixture(autouse=True)
def reset_rate_limits():
    """Start every test with empty rate limit counters."""
    from cellarbook.main import limiter
    from cellarbook.routers.auth import limiter as auth_limiter

    limiter.reset()
    auth_limiter.reset()
    yield


@pytest_asyncio.fixture(scope="function")
async def init_test_db():
    """Initialize Beanie on a fresh in-memory database."""
    mongo_client = AsyncMongoMockClient()
    db = mongo_client[f"test_cellarbook_{uuid.uuid4().hex[:8]}"]

    await init_beanie(
        database=db,
        document_models=get_document_models(),
    )
    yield db


@pytest.fixture
def test_user() -> dict:
    """Return test user credentials."""
    return {
        "email": "test@example.com",
        "password": "testpassword",
    }


@pytest_asyncio.fixture(scope="function")
async def owner(init_test_db, test_user) -> User:
    """A regular active user stored in the test database."""
    user = User(
        email=test_user["email"],
        hashed_password=get_password_hash(test_user["password"]),
        is_active=True,
        is_superuser=False,
    )
    await user.insert()
    return user


@pytest_asyncio.fixture(scope="function")
async def admin_user(init_test_db) -> User:
    """An admin user stored in the test database."""
    user = User(
        email="admin@example.com",
        hashed_password=get_password_hash("adminpassword"),
        is_active=True,
        is_superuser=True,
    )
    await user.insert()
    return user


@pytest.fixture
def inventory_store() -> InventoryStore:
    """Inventory store with a fixed clock (current year 2024)."""
    return InventoryStore(clock=lambda: FIXED_NOW)


@pytest.fixture
def catalog_source(tmp_path):
    """Path of a catalog CSV file inside a temporary directory."""
    return tmp_path / "catalog.csv"


@pytest.fixture
def test_app(catalog_source):
    return create_test_app(catalog_source)


@pytest_asyncio.fixture(scope="function")
async def client(test_app, owner) -> AsyncGenerator[AsyncClient, None]:
    """Async test client authenticated as the regular test user."""
    access_token = create_access_token(data={"sub": owner.email})

    transport = ASGITransport(app=test_app)
    async with AsyncClient(
        transport=transport,
        base_url="http://test",
        headers={"Authorization": f"Bearer {access_token}"},
    ) as ac:
        yield ac


@pytest_asyncio.fixture(scope="function")
async def admin_client(test_app, admin_user) -> AsyncGenerator[AsyncClient, None]:
    """Async test client authenticated as an admin."""
    access_token = create_access_token(data={"sub": admin_user.email})

    transport = ASGITransport(app=test_app)
    async with AsyncClient(
        transport=transport,
        base_url="http://test",
        headers={"Authorization": f"Bearer {access_token}"},
    ) as ac:
        yield ac


@pytest_asyncio.fixture(scope="function")
async def unauthenticated_client(test_app, init_test_db) -> AsyncGenerator[AsyncClient, None]:
    """Async test client without authentication."""
    transport = ASGITransport(app=test_app)
    async with AsyncClient(
        transport=transport,
        base_url="http://test",
    ) as ac:
        yield ac
