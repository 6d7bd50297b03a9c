import asyncio
import io
import os

# Settings are read at import time, so the environment must be in place first
os.environ["DATABASE_URL"] = ""
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["JWT_SECRET_KEY"] = "test-secret-key"
os.environ["CLOUDINARY_CLOUD_NAME"] = ""

import httpx
import pytest
from PIL import Image

from school_directory.database import AsyncSessionLocal, create_tables, engine
from school_directory.main import app
from school_directory.models import UserRole
from school_directory.services import user_service
from school_directory.services.cloudinary_service import get_storage
from school_directory.services.errors import StorageError
from school_directory.services.row_store import RowStore
from school_directory.utils.jwt_auth import create_user_token


class FakeStorage:
    """In-memory object storage recording every upload."""

    def __init__(self, fail_on=None, delays=None):
        self.uploads = []
        self.fail_on = set(fail_on or [])
        self.delays = dict(delays or {})

    async def upload(self, key: str, data: bytes) -> str:
        delay = self.delays.get(data)
        if delay:
            await asyncio.sleep(delay)
        if data in self.fail_on:
            raise StorageError(f"Upload rejected for {key}")
        self.uploads.append((key, data))
        return f"https://cdn.example.test/{key}"


def make_png(color=(200, 30, 30), size=(8, 8)) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", size, color).save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
async def db():
    """Fresh in-memory database per test."""
    await create_tables()
    yield
    # Dropping the single pooled connection discards the in-memory database
    await engine.dispose()


@pytest.fixture
async def session(db):
    async with AsyncSessionLocal() as s:
        yield s


@pytest.fixture
def store(session):
    return RowStore(session)


@pytest.fixture
def storage():
    return FakeStorage()


@pytest.fixture
async def client(db, storage):
    app.dependency_overrides[get_storage] = lambda: storage
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()


async def create_account(email: str, password: str = "secret123", role: UserRole = UserRole.USER):
    async with AsyncSessionLocal() as s:
        return await user_service.create_user(RowStore(s), email, password, role=role)


def auth_headers(user) -> dict:
    return {"Authorization": f"Bearer {create_user_token(user)}"}


@pytest.fixture
async def admin_headers(db):
    admin = await create_account("admin@example.com", role=UserRole.ADMIN)
    return auth_headers(admin)


@pytest.fixture
async def user_headers(db):
    user = await create_account("parent@example.com")
    return auth_headers(user)
