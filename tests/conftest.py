import pytest
import os
import sys
from typing import AsyncGenerator, Generator
from unittest.mock import AsyncMock, Mock

from fastapi.testclient import TestClient

# Add the parent directory to the path so we can import our modules
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from main import app
from api.dependencies import get_drive_provider, get_notifier, get_social_provider
from core.database import Database
from core.models import Caption, ContentItem, User, UserRole
from core.auth import PasswordManager
from services.notifier import OutboundNotifier

IN_MEMORY_DATABASE_URL = "sqlite+aiosqlite://"

ADMIN_EMAIL = "admin@example.com"
ADMIN_PASSWORD = "admin-password-1"


@pytest.fixture(autouse=True)
def setup_test_environment(monkeypatch):
    """Set up test environment variables."""
    monkeypatch.setenv("ENVIRONMENT", "test")
    monkeypatch.setenv("LOG_LEVEL", "DEBUG")
    monkeypatch.setenv("DATABASE_URL", IN_MEMORY_DATABASE_URL)
    monkeypatch.setenv("JWT_SECRET_KEY", "test-jwt-secret")
    monkeypatch.setenv("BCRYPT_ROUNDS", "4")
    monkeypatch.setenv("ADMIN_EMAIL", ADMIN_EMAIL)
    monkeypatch.setenv("ADMIN_PASSWORD", ADMIN_PASSWORD)
    monkeypatch.delenv("WEBHOOK_SECRET", raising=False)
    monkeypatch.delenv("N8N_WEBHOOK_URL", raising=False)


@pytest.fixture
async def database() -> AsyncGenerator[Database, None]:
    """Fresh in-memory database with all tables."""
    db = Database(IN_MEMORY_DATABASE_URL)
    await db.create_tables()
    yield db
    await db.dispose()


@pytest.fixture
async def session(database):
    async with database.session() as session:
        yield session


@pytest.fixture
async def content_item(session) -> ContentItem:
    item = ContentItem(
        drive_file_id="gdrive123456789",
        filename="ad.mp4",
        file_type="video",
        drive_url="https://drive.google.com/file/d/gdrive123456789/view",
    )
    session.add(item)
    await session.commit()
    return item


@pytest.fixture
async def other_content_item(session) -> ContentItem:
    item = ContentItem(
        drive_file_id="gdrive987654321",
        filename="banner.png",
        file_type="image",
    )
    session.add(item)
    await session.commit()
    return item


@pytest.fixture
async def caption(session, content_item) -> Caption:
    caption = Caption(
        content_item_id=content_item.id,
        tone="Professional",
        content="Meet the product that saves your team hours every week.",
    )
    session.add(caption)
    await session.commit()
    return caption


@pytest.fixture
async def reviewer(session) -> User:
    user = User(
        email="reviewer@example.com",
        password_hash=PasswordManager.hash_password("reviewer-password"),
        name="Reviewer",
        role=UserRole.USER.value,
    )
    session.add(user)
    await session.commit()
    return user


@pytest.fixture
def mock_notifier():
    """Notifier that records calls instead of posting."""
    notifier = Mock(spec=OutboundNotifier)
    notifier.send = AsyncMock(return_value=None)
    notifier.notify_best_effort = AsyncMock(return_value=True)
    return notifier


@pytest.fixture
def mock_drive_provider():
    provider = Mock()
    provider.list_media_files = AsyncMock(return_value=[])
    return provider


@pytest.fixture
def mock_social_provider():
    provider = Mock()
    provider.get_post_engagement = AsyncMock()
    provider.get_page = AsyncMock()
    return provider


@pytest.fixture
def test_client(
    mock_notifier, mock_drive_provider, mock_social_provider
) -> Generator[TestClient, None, None]:
    """Create a test client for the FastAPI app with outbound clients mocked."""
    app.dependency_overrides[get_notifier] = lambda: mock_notifier
    app.dependency_overrides[get_drive_provider] = lambda: mock_drive_provider
    app.dependency_overrides[get_social_provider] = lambda: mock_social_provider
    with TestClient(app) as client:
        yield client
    app.dependency_overrides.clear()


def login(client: TestClient, email: str, password: str) -> dict:
    response = client.post("/api/auth/login", json={"email": email, "password": password})
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['token']}"}


@pytest.fixture
def admin_headers(test_client) -> dict:
    """Bearer headers for the bootstrapped admin."""
    return login(test_client, ADMIN_EMAIL, ADMIN_PASSWORD)


@pytest.fixture
def user_headers(test_client, admin_headers) -> dict:
    """Bearer headers for a regular (non-admin) user created through the API."""
    response = test_client.post(
        "/api/users",
        json={"email": "editor@example.com", "password": "editor-password", "role": "user"},
        headers=admin_headers,
    )
    assert response.status_code == 201, response.text
    return login(test_client, "editor@example.com", "editor-password")


@pytest.fixture
def login_as(test_client):
    """Return a helper that logs in and returns bearer headers."""
    return lambda email, password: login(test_client, email, password)


class FakeResponse:
    """Stands in for an aiohttp response used as an async context manager."""

    def __init__(self, status=200, payload=None, text=""):
        self.status = status
        self.payload = payload
        self._text = text

    async def json(self, content_type="application/json"):
        if self.payload is None:
            raise ValueError("Response body is not JSON")
        return self.payload

    async def text(self):
        return self._text

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        return False


class FakeClientSession:
    """Replaces aiohttp.ClientSession; records requests and returns one canned response."""

    def __init__(self, response=None, error=None):
        self.response = response or FakeResponse()
        self.error = error
        self.requests = []

    def __call__(self, *args, **kwargs):
        return self

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        return False

    def _request(self, method, url, **kwargs):
        self.requests.append((method, url, kwargs))
        if self.error is not None:
            raise self.error
        return self.response

    def get(self, url, **kwargs):
        return self._request("GET", url, **kwargs)

    def post(self, url, **kwargs):
        return self._request("POST", url, **kwargs)


@pytest.fixture
def fake_http(monkeypatch):
    """Install a FakeClientSession in place of aiohttp.ClientSession."""
    import aiohttp

    def install(status=200, payload=None, text="", error=None):
        fake = FakeClientSession(FakeResponse(status, payload, text), error)
        monkeypatch.setattr(aiohttp, "ClientSession", fake)
        return fake

    return install
