"""Pytest configuration and fixtures."""

import sys
from pathlib import Path
from typing import AsyncGenerator, Callable

# Add the project root to Python path
sys.path.insert(0, str(Path(__file__).parent.parent))

import logfire
import pytest
from httpx import ASGITransport, AsyncClient

from vidshield.api.main import create_app
from vidshield.application.processing.strategies import (
    FixedDurationProvider,
    StaticClassifier,
)
from vidshield.domain.enums import Classification, UserRole
from vidshield.infrastructure.broadcasting.memory import InMemoryBroadcaster
from vidshield.infrastructure.config import DatabaseConfig, Settings
from vidshield.infrastructure.database.connection import Database
from vidshield.infrastructure.persistence.repositories.asset_repository import (
    SqlAlchemyAssetStore,
)
from vidshield.infrastructure.security.jwt_service import JWTService

MEMORY_DB_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture(scope="session", autouse=True)
def _quiet_logfire():
    """Keep spans local during tests."""
    logfire.configure(send_to_logfire=False, console=False)


@pytest.fixture
def test_settings(tmp_path: Path) -> Settings:
    """Test settings with overrides."""
    return Settings(
        app={"environment": "test"},
        database={"url": MEMORY_DB_URL},
        security={"jwt_secret_key": "test-secret-key-for-testing-only"},
        storage={"upload_dir": str(tmp_path / "uploads"), "max_upload_mb": 1},
        broadcast={"backend": "memory"},
        processing={"steps": 10, "min_duration_ms": 0, "max_duration_ms": 0},
        logfire={"enabled": False},
        logging={"level": "DEBUG", "json_output": False},
    )


@pytest.fixture
async def database() -> AsyncGenerator[Database, None]:
    """In-memory database with tables created."""
    db = Database(DatabaseConfig(url=MEMORY_DB_URL))
    await db.create_tables()
    yield db
    await db.drop_tables()
    await db.close()


@pytest.fixture
def store(database: Database) -> SqlAlchemyAssetStore:
    return SqlAlchemyAssetStore(database.session_factory)


@pytest.fixture
async def broadcaster() -> AsyncGenerator[InMemoryBroadcaster, None]:
    b = InMemoryBroadcaster(max_queue_size=64)
    await b.start()
    yield b
    await b.close()


@pytest.fixture
def jwt_service(test_settings: Settings) -> JWTService:
    return JWTService(test_settings.security)


@pytest.fixture
def make_token(jwt_service: JWTService) -> Callable[..., str]:
    """Mint an access token for a role and tenant."""

    def _make(role: UserRole = UserRole.EDITOR, tenant_id: str = "t1", user_id: str = "u1") -> str:
        return jwt_service.create_access_token(user_id, tenant_id, role)

    return _make


@pytest.fixture
def auth_headers(make_token):
    """Helper to create authorization headers."""

    def _auth_headers(role: UserRole = UserRole.EDITOR, tenant_id: str = "t1") -> dict[str, str]:
        return {"Authorization": f"Bearer {make_token(role, tenant_id)}"}

    return _auth_headers


@pytest.fixture
def app(test_settings: Settings):
    """Application wired with deterministic processing."""
    return create_app(
        test_settings,
        duration_provider=FixedDurationProvider(0),
        classifier=StaticClassifier(Classification.SAFE),
    )


@pytest.fixture
async def started_app(app):
    """Application with its lifespan entered."""
    async with app.router.lifespan_context(app):
        yield app


@pytest.fixture
async def client(started_app) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client talking to the app in-process."""
    transport = ASGITransport(app=started_app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def container(started_app):
    return started_app.state.container

