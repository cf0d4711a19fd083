# tests/conftest.py
import os
import sys
from pathlib import Path
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
from sqlalchemy.pool import NullPool

# Resolve backend/ folder and add it to sys.path
BACKEND_DIR = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(BACKEND_DIR))

# Token secrets have no defaults; tests sign with throwaway values
os.environ.setdefault("ACCESS_TOKEN_SECRET_KEY", "test-access-secret")
os.environ.setdefault("REFRESH_TOKEN_SECRET_KEY", "test-refresh-secret")

from core.security import create_access_token  # noqa: E402
from core.store import ContentStore  # noqa: E402

ADMIN_CLAIMS = {"sub": "admin-1", "email": "admin@example.com", "name": "Admin"}

def make_sqlite_store(tmp_path) -> ContentStore:
    """A store on a throwaway SQLite file; NullPool keeps connections off shared event loops."""
    return ContentStore.from_url(f"sqlite:///{tmp_path / 'test.db'}", poolclass=NullPool)

@pytest.fixture
def mock_store():
    return AsyncMock(spec=ContentStore)

@pytest.fixture
def admin_token():
    return create_access_token(ADMIN_CLAIMS)

@pytest.fixture
def auth_headers(admin_token):
    return {"authorization": f"Bearer {admin_token}"}

@pytest_asyncio.fixture
async def store(tmp_path):
    content_store = make_sqlite_store(tmp_path)
    await content_store.init_schema()
    yield content_store
    await content_store.dispose()

@pytest.fixture
def client(tmp_path):
    """TestClient over a fresh SQLite file with one seeded admin (admin@example.com / secret)."""
    from fastapi.testclient import TestClient

    from core.security import hash_password
    from main import create_app
    from models.db_models import AdminUser

    content_store = make_sqlite_store(tmp_path)
    with TestClient(create_app(store=content_store)) as test_client:
        test_client.portal.call(content_store.create, AdminUser, {
            "email": "admin@example.com",
            "name": "Admin",
            "hashed_password": hash_password("secret"),
        })
        yield test_client
        test_client.portal.call(content_store.dispose)
