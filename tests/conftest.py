"""
Pytest configuration and fixtures for Interaction Capture API tests.
"""
import os
from pathlib import Path
from typing import AsyncGenerator

# Settings and the engine are created at import time: configure before importing the app.
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///./test_interaction_capture.db"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["GATEWAY_BACKEND"] = "database"
os.environ["SENTRY_DSN"] = ""

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from interaction_capture.database import AsyncSessionLocal, Base, engine
from interaction_capture.main import app
from interaction_capture.models.admin_user import AdminUser
from interaction_capture.services.auth import create_access_token, get_password_hash
from interaction_capture.services.option_cache import reset_option_cache

TEST_DB_PATH = Path("./test_interaction_capture.db")

ADMIN_EMAIL = "manager@example.com"
ADMIN_PASSWORD = "password123"


@pytest_asyncio.fixture
async def reset_db():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    reset_option_cache()
    yield
    app.dependency_overrides.clear()
    reset_option_cache()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture(scope="session", autouse=True)
def _cleanup_db_file():
    yield
    if TEST_DB_PATH.exists():
        TEST_DB_PATH.unlink()


@pytest_asyncio.fixture
async def client(reset_db) -> AsyncGenerator[AsyncClient, None]:
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver") as ac:
        yield ac


@pytest_asyncio.fixture
async def admin(reset_db) -> AdminUser:
    async with AsyncSessionLocal() as db:
        admin = AdminUser(
            email=ADMIN_EMAIL,
            name="Manager",
            password_hash=get_password_hash(ADMIN_PASSWORD),
            is_active=True,
        )
        db.add(admin)
        await db.commit()
        await db.refresh(admin)
        return admin


@pytest.fixture
def admin_headers(admin: AdminUser) -> dict:
    """Authorization headers with Bearer token."""
    token = create_access_token(admin.id, admin.email)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def phone_answers() -> dict:
    return {
        "staffName": "Shelly",
        "channel": "Phone",
        "category": "Games",
        "wantedItem": "Switch cartridge",
    }


@pytest.fixture
def in_store_answers() -> dict:
    return {
        "staffName": "Kemar",
        "channel": "In-store",
        "branch": "Bridgetown",
        "category": "Electronics",
        "purchased": False,
        "outOfStock": True,
        "wantedItem": "Charger",
    }
