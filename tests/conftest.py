"""Shared test fixtures and configuration."""

import os
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from unittest.mock import AsyncMock, MagicMock

import pyotp
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

# Set up test environment BEFORE importing app modules
os.environ["ENV"] = "test"
os.environ["LOG_FILE"] = ""

from app.config import Settings  # noqa: E402
from app.db import Base, get_db  # noqa: E402
from app.models import Account  # noqa: E402
from app.routers.deletion import get_deletion_service  # noqa: E402
from app.services.deletion import DeletionAuthorizationService  # noqa: E402
from app.services.deletion.challenge_issuer import ChallengeIssuer  # noqa: E402
from app.services.deletion.deletion_queue import NotificationDeletionQueue  # noqa: E402
from app.services.deletion.dispatcher import BackgroundDispatcher  # noqa: E402
from app.services.deletion.rate_limiter import InitiationRateLimiter  # noqa: E402
from app.services.deletion.token_store import DeletionTokenStore  # noqa: E402
from main import app  # noqa: E402

from tests.helpers import MANAGER_EMAIL, WORKER_EMAIL, WORKER_PHONE  # noqa: E402


@pytest_asyncio.fixture
async def db_engine(tmp_path):
    """File-backed SQLite so concurrent sessions really contend for the database."""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        echo=False,
        connect_args={"timeout": 30},
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return async_sessionmaker(
        bind=db_engine,
        class_=AsyncSession,
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
    )


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def email_service():
    service = MagicMock()
    service.send_deletion_code_email = AsyncMock(return_value=True)
    service.send_deletion_request_notification = AsyncMock(return_value=True)
    return service


@pytest.fixture
def sms_service():
    service = MagicMock()
    service.send_deletion_code_sms = AsyncMock(return_value=True)
    return service


@pytest.fixture
def background():
    return BackgroundDispatcher()


@pytest.fixture
def make_service(session_factory, email_service, sms_service, background):
    """Build a service wired to the test database and fake channels."""

    @asynccontextmanager
    async def session_scope():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    def _make(**overrides) -> DeletionAuthorizationService:
        config = Settings(**overrides)
        return DeletionAuthorizationService(
            config=config,
            store=DeletionTokenStore(),
            issuer=ChallengeIssuer(config, email_service, sms_service),
            limiter=InitiationRateLimiter(config),
            queue=NotificationDeletionQueue(config, email_service),
            background=background,
            session_factory=session_scope,
        )

    return _make


@pytest.fixture
def service(make_service) -> DeletionAuthorizationService:
    return make_service()


@pytest_asyncio.fixture
async def worker(db_session: AsyncSession) -> Account:
    account = Account(account_type="worker", email=WORKER_EMAIL, phone_number=WORKER_PHONE)
    db_session.add(account)
    await db_session.commit()
    return account


@pytest_asyncio.fixture
async def property_manager(db_session: AsyncSession) -> Account:
    account = Account(
        account_type="propertyManager",
        email=MANAGER_EMAIL,
        totp_secret=pyotp.random_base32(),
    )
    db_session.add(account)
    await db_session.commit()
    return account


@pytest_asyncio.fixture
async def client(session_factory, service) -> AsyncGenerator[AsyncClient, None]:
    """Create a test client with database and service overrides."""

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_deletion_service] = lambda: service

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac

    app.dependency_overrides.clear()
