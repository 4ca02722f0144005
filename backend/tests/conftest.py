import uuid
from collections.abc import AsyncGenerator, Iterator
from contextlib import contextmanager
from pathlib import Path

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from pydantic import SecretStr
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession

from rfc_app.core.config import Settings, settings
from rfc_app.core.database import create_engine, create_session_factory
from rfc_app.core.schema import ensure_schema

# Security: This is a test-only secret. Production uses a real secret from env.
TEST_AUTH_SECRET = "test-secret-key-that-is-at-least-32-characters-long"  # nosec B105  # gitleaks:allow

TEST_EMAIL = "test@example.com"


def sqlite_url(path: Path) -> str:
    return f"sqlite+aiosqlite:///{path}"


@pytest.fixture
def database_path(tmp_path: Path) -> Path:
    """Fresh SQLite file per test."""
    return tmp_path / f"app-{uuid.uuid4().hex}.db"


@pytest_asyncio.fixture
async def raw_engine(database_path: Path) -> AsyncGenerator[AsyncEngine, None]:
    """Engine on an empty database, schema NOT created.

    For migration tests that seed a legacy layout first.
    """
    engine = create_engine(sqlite_url(database_path))
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def db_engine(raw_engine: AsyncEngine) -> AsyncEngine:
    """Engine on a database with the current schema."""
    await ensure_schema(raw_engine)
    return raw_engine


@pytest_asyncio.fixture
async def db_session(db_engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    """Create test database session."""
    async with create_session_factory(db_engine)() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture
async def test_user(db_session: AsyncSession):
    """A committed user with TEST_EMAIL."""
    from rfc_app.models import User

    user = User(email=TEST_EMAIL)
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


async def expire_tokens(session: AsyncSession, user_id: int) -> None:
    """Move every code of ``user_id`` one second past its expiry."""
    await session.execute(
        text(
            "UPDATE login_tokens "
            "SET expires_at = CAST(strftime('%s', 'now') AS INTEGER) - 1 "
            "WHERE user_id = :user_id"
        ),
        {"user_id": user_id},
    )


@contextmanager
def patched_session_settings() -> Iterator[None]:
    """Sign cookies with TEST_AUTH_SECRET and drop the Secure flag.

    The global settings are restored even if the body raises.
    """
    original_secret = settings.auth_secret
    original_secure = settings.auth_cookie_secure
    settings.auth_secret = SecretStr(TEST_AUTH_SECRET)
    settings.auth_cookie_secure = False
    try:
        yield
    finally:
        settings.auth_secret = original_secret
        settings.auth_cookie_secure = original_secure


@pytest_asyncio.fixture
async def client(database_path: Path) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client against a fully started app.

    Runs the real lifespan (store opened, schema ensured) on a temporary
    database, with a test signing secret and non-secure cookies so httpx
    sends them back over http://.
    """
    from rfc_app.main import create_app

    with patched_session_settings():
        app = create_app(
            Settings(
                database_path=database_path,
                auth_secret=SecretStr(TEST_AUTH_SECRET),
                auth_cookie_secure=False,
            )
        )
        async with app.router.lifespan_context(app):
            transport = ASGITransport(app=app)
            async with AsyncClient(transport=transport, base_url="http://test") as ac:
                yield ac


@pytest.fixture(autouse=True)
def disable_rate_limiting() -> Iterator[None]:
    """Disable rate limiting during tests.

    Rate limiting is tested separately; disable for other tests to avoid
    flaky failures from rate limit triggers.
    """
    from rfc_app.core.rate_limiting import limiter

    original_enabled = limiter.enabled
    limiter.enabled = False

    yield

    limiter.enabled = original_enabled
