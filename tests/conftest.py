"""Pytest fixtures for the verification core and API.

Provides:
- A fresh SQLite database per test (file under tmp_path, all tables created)
- A session bound to it, plus a factory for extra sessions
- Local byte storage rooted in tmp_path
- Account factories (agency / admin)
- An httpx AsyncClient wired to the FastAPI app with get_db / get_storage overridden

Usage:
    async def test_upload(client, agency):
        response = await client.post(..., headers=auth_headers(agency))
"""

import os

# Set environment variables BEFORE any app imports so settings pick them up
os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

import app.domain  # noqa: F401  (register all models on Base.metadata)
from app.core.enums import AccountRole
from app.core.identity import CALLER_HEADER
from app.db.base import Base, enable_sqlite_savepoints, get_db
from app.domain.account import Account
from app.main import app as fastapi_app
from app.storage import get_storage
from app.storage.local import LocalByteStorage

PDF_BYTES = b"%PDF-1.4\n1 0 obj << /Type /Catalog >> endobj\ntrailer << /Root 1 0 R >>\n%%EOF\n"
PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


def auth_headers(account: Account) -> dict[str, str]:
    return {CALLER_HEADER: account.id}


@pytest.fixture
async def engine(tmp_path):
    test_engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    enable_sqlite_savepoints(test_engine)
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield test_engine
    await test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest.fixture
async def session(session_factory):
    async with session_factory() as db_session:
        yield db_session


@pytest.fixture
def storage(tmp_path):
    return LocalByteStorage(tmp_path / "agency-docs")


@pytest.fixture
def make_account(session_factory):
    """Create and commit an account in its own session; returns the Account."""

    async def _make(role: AccountRole = AccountRole.AGENCY, name: str = "Test Account") -> Account:
        async with session_factory() as db_session:
            account = Account(role=role.value, full_name=name)
            db_session.add(account)
            await db_session.commit()
            return account

    return _make


@pytest.fixture
async def agency(make_account):
    return await make_account(AccountRole.AGENCY, "Sunrise Car Rental")


@pytest.fixture
async def other_agency(make_account):
    return await make_account(AccountRole.AGENCY, "Harbor Wheels")


@pytest.fixture
async def admin(make_account):
    return await make_account(AccountRole.ADMIN, "Back Office Admin")


@pytest.fixture
async def second_admin(make_account):
    return await make_account(AccountRole.ADMIN, "Night Shift Admin")


@pytest.fixture
async def client(session_factory, storage):
    async def _override_get_db():
        async with session_factory() as db_session:
            try:
                yield db_session
                await db_session.commit()
            except Exception:
                await db_session.rollback()
                raise

    fastapi_app.dependency_overrides[get_db] = _override_get_db
    fastapi_app.dependency_overrides[get_storage] = lambda: storage
    async with AsyncClient(transport=ASGITransport(app=fastapi_app), base_url="http://test") as ac:
        yield ac
    fastapi_app.dependency_overrides.clear()
