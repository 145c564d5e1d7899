"""Pytest fixtures for NEMBUS tests.

Databases are SQLite files under ``tmp_path``: one master registry and one
database per tenant. Tenant connection strings are stored the way the
registry stores them in production (plain ``sqlite:///`` URLs) so the async
driver normalization runs on every resolution.
"""

from collections.abc import AsyncGenerator
from pathlib import Path
from typing import Any

import pytest
import pytest_asyncio
import structlog
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from pydantic import SecretStr
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from nembus.config.settings import Settings
from nembus.core.auth import hash_password
from nembus.core.security import TokenService
from nembus.db.models import MasterBase, Tenant, TenantBase, User
from nembus.db.pool_cache import PoolCache
from nembus.db.registry import TenantDescriptor, TenantRegistry

TEST_JWT_SECRET = "test-jwt-secret-0123456789abcdef0123456789abcdef"
TEST_PASSWORD = "correct horse battery staple"


# =============================================================================
# Structlog Configuration Fixture
# =============================================================================


@pytest.fixture(scope="function", autouse=True)
def reset_structlog_after_test():
    """Reset structlog configuration after each test.

    Tests that run the app lifespan reconfigure logging globally.
    """
    yield
    structlog.reset_defaults()
    structlog.contextvars.clear_contextvars()


# =============================================================================
# Settings
# =============================================================================


@pytest.fixture
def test_settings(tmp_path: Path) -> Settings:
    """Development settings that ignore any dotenv file in the working directory."""
    return Settings(
        _env_file=None,
        ENV="development",
        MASTER_DB_URL=SecretStr(f"sqlite:///{tmp_path / 'master.db'}"),
        JWT_SECRET=SecretStr(TEST_JWT_SECRET),
        LOG_LEVEL="DEBUG",
        LOG_JSON=False,
        IMAGES_DIR=str(tmp_path / "images"),
        TENANT_RESOLVE_TIMEOUT=5.0,
    )


@pytest.fixture
def token_service() -> TokenService:
    return TokenService(TEST_JWT_SECRET)


# =============================================================================
# Database fixtures
# =============================================================================


async def _create_schema(url: str, metadata) -> AsyncEngine:
    engine = create_async_engine(url)
    async with engine.begin() as conn:
        await conn.run_sync(metadata.create_all)
    return engine


async def create_tenant_database(path: Path, users: list[dict[str, Any]]) -> str:
    """Create a tenant database with the given users and return its registry URL."""
    engine = await _create_schema(f"sqlite+aiosqlite:///{path}", TenantBase.metadata)
    try:
        session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
        async with session_factory() as session:
            session.add_all(User(**user) for user in users)
            await session.commit()
    finally:
        await engine.dispose()
    return f"sqlite:///{path}"


def _user(username: str, **overrides: Any) -> dict[str, Any]:
    user = {
        "username": username,
        "email": f"{username}@example.com",
        "password_hash": hash_password(TEST_PASSWORD, rounds=4),
        "first_name": username.capitalize(),
        "is_active": True,
    }
    user.update(overrides)
    return user


@pytest_asyncio.fixture
async def master_engine(tmp_path: Path) -> AsyncGenerator[AsyncEngine, None]:
    """Master registry seeded with tenants in every state.

    - ``acme``: active; users alice (active), bob (inactive), carol (no hash),
      dave (is_active = NULL)
    - ``globex``: active; user gina
    - ``dormant``: is_active = false
    - ``limbo``: is_active = NULL
    - ``broken``: active, but its database cannot be opened
    """
    engine = await _create_schema(
        f"sqlite+aiosqlite:///{tmp_path / 'master.db'}", MasterBase.metadata
    )

    acme_url = await create_tenant_database(
        tmp_path / "acme.db",
        [
            _user("alice"),
            _user("bob", is_active=False),
            _user("carol", password_hash=""),
            _user("dave", is_active=None),
        ],
    )
    globex_url = await create_tenant_database(tmp_path / "globex.db", [_user("gina")])

    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        session.add_all(
            [
                Tenant(tenant_name="Acme Retail", slug="acme", db_conn_str=acme_url, is_active=True),
                Tenant(tenant_name="Globex Foods", slug="globex", db_conn_str=globex_url, is_active=True),
                Tenant(tenant_name="Dormant Co", slug="dormant", db_conn_str=acme_url, is_active=False),
                Tenant(tenant_name="Limbo Ltd", slug="limbo", db_conn_str=acme_url, is_active=None),
                Tenant(
                    tenant_name="Broken Inc",
                    slug="broken",
                    db_conn_str=f"sqlite:///{tmp_path / 'missing-dir' / 'broken.db'}",
                    is_active=True,
                ),
            ]
        )
        await session.commit()

    yield engine

    await engine.dispose()


class CountingRegistry(TenantRegistry):
    """Registry that counts ``lookup_active`` calls."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.lookups: list[str] = []

    async def lookup_active(self, slug: str) -> TenantDescriptor:
        self.lookups.append(slug)
        return await super().lookup_active(slug)


@pytest.fixture
def registry(master_engine: AsyncEngine) -> CountingRegistry:
    return CountingRegistry(
        async_sessionmaker(master_engine, class_=AsyncSession, expire_on_commit=False)
    )


@pytest_asyncio.fixture
async def pool_cache(registry: CountingRegistry, test_settings: Settings) -> AsyncGenerator[PoolCache, None]:
    cache = PoolCache(registry, resolve_timeout=test_settings.TENANT_RESOLVE_TIMEOUT)
    yield cache
    await cache.close_all()


# =============================================================================
# API test fixtures
# =============================================================================


@pytest.fixture
def test_app(test_settings: Settings, pool_cache: PoolCache) -> FastAPI:
    """Create a FastAPI test application wired to the seeded registry."""
    from nembus.api.app import create_app

    return create_app(settings=test_settings, pool_cache=pool_cache)


@pytest_asyncio.fixture
async def test_client(test_app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client calling the application in-process."""
    async with AsyncClient(
        transport=ASGITransport(app=test_app),
        base_url="http://test",
    ) as client:
        yield client


@pytest.fixture
def auth_headers(token_service: TokenService):
    """Build headers for an authenticated request to a tenant."""

    def _headers(slug: str | None = "acme", user_id: str = "1", user_login: str = "alice") -> dict[str, str]:
        headers = {"Authorization": f"Bearer {token_service.mint(user_id, user_login)}"}
        if slug is not None:
            headers["x-tenant-id"] = slug
        return headers

    return _headers
