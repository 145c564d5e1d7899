"""Integration tests for public routes, CORS, static files and startup."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from httpx import ASGITransport, AsyncClient

from nembus.api.app import create_app
from nembus.core.exceptions import RegistryUnavailableError
from nembus.db.pool_cache import PoolCache

pytestmark = [pytest.mark.asyncio, pytest.mark.integration]


def client_for(app) -> AsyncClient:
    return AsyncClient(transport=ASGITransport(app=app), base_url="http://test")


class TestHealth:
    """Tests for GET /health and /health/ready."""

    async def test_health(self, test_client: AsyncClient):
        response = await test_client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "OK"}

    @pytest.mark.parametrize("path", ["/healthz", "/health-admin", "/swaggerx"])
    async def test_lookalike_paths_are_not_public(self, test_client: AsyncClient, path):
        response = await test_client.get(path)

        assert response.status_code == 401

    async def test_request_id_header(self, test_client: AsyncClient):
        first = await test_client.get("/health")
        second = await test_client.get("/health")

        assert first.headers["x-request-id"] != second.headers["x-request-id"]

    async def test_ready(self, test_client: AsyncClient, auth_headers):
        await test_client.get("/api/users", headers=auth_headers())

        response = await test_client.get("/health/ready")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "OK"
        assert data["master_db"] == "ok"
        assert data["tenant_pools"] == 1

    async def test_ready_when_registry_down(self, test_settings, pool_cache):
        registry = MagicMock()
        registry.ping = AsyncMock(side_effect=RegistryUnavailableError("", "OperationalError"))
        app = create_app(settings=test_settings, registry=registry, pool_cache=pool_cache)

        async with client_for(app) as client:
            response = await client.get("/health/ready")

        assert response.status_code == 503
        assert response.json()["master_db"] == "unreachable"


class TestDocs:
    """Swagger UI and the OpenAPI document are public."""

    async def test_swagger_ui(self, test_client: AsyncClient):
        response = await test_client.get("/swagger")

        assert response.status_code == 200
        assert "text/html" in response.headers["content-type"]

    async def test_openapi_document(self, test_client: AsyncClient):
        response = await test_client.get("/swagger/doc.json")

        assert response.status_code == 200
        paths = response.json()["paths"]
        assert "/api/auth/login" in paths
        assert "/dev/token" in paths

    async def test_dev_route_undocumented_in_production(self, test_settings, pool_cache):
        app = create_app(settings=test_settings.model_copy(update={"ENV": "production"}), pool_cache=pool_cache)

        async with client_for(app) as client:
            paths = (await client.get("/swagger/doc.json")).json()["paths"]

        assert "/dev/token" not in paths


class TestDevToken:
    """Tests for GET /dev/token."""

    async def test_dev_token(self, test_client: AsyncClient, token_service):
        response = await test_client.get("/dev/token")

        assert response.status_code == 200
        data = response.json()
        assert data["user_id"] == "00000000-0000-0000-0000-000000000000"
        assert data["user_login"] == "dev_user"
        assert data["type"] == "Bearer"
        assert token_service.verify(f"Bearer {data['token']}")["user_login"] == "dev_user"

    async def test_dev_token_works_on_protected_routes(self, test_client: AsyncClient):
        token = (await test_client.get("/dev/token")).json()["token"]

        response = await test_client.get(
            "/api/auth/me", headers={"Authorization": f"Bearer {token}", "x-tenant-id": "globex"}
        )

        assert response.status_code == 200
        assert response.json()["tenant_slug"] == "globex"

    @pytest.mark.parametrize("env", ["staging", "production"])
    async def test_forbidden_outside_development(self, test_settings, pool_cache, env):
        app = create_app(settings=test_settings.model_copy(update={"ENV": env}), pool_cache=pool_cache)

        async with client_for(app) as client:
            response = await client.get("/dev/token")

        assert response.status_code == 403
        assert "token" not in response.json()


class TestCORS:
    async def test_options_answered_without_auth_or_tenant(self, test_client: AsyncClient, registry):
        response = await test_client.options("/api/users")

        assert response.status_code == 204
        assert response.headers["access-control-allow-origin"] == "*"
        assert "x-tenant-id" in response.headers["access-control-allow-headers"]
        assert response.headers["access-control-allow-methods"] == "GET, POST, PUT, DELETE, OPTIONS"
        assert registry.lookups == []

    async def test_headers_on_error_responses(self, test_client: AsyncClient):
        response = await test_client.get("/api/users")

        assert response.status_code == 401
        assert response.headers["access-control-allow-origin"] == "*"


class TestStaticImages:
    async def test_images_served_without_auth(self, test_settings, pool_cache, tmp_path):
        images = tmp_path / "images"
        images.mkdir()
        (images / "logo.txt").write_text("nembus")
        app = create_app(settings=test_settings, pool_cache=pool_cache)

        async with client_for(app) as client:
            response = await client.get("/images/logo.txt")

        assert response.status_code == 200
        assert response.text == "nembus"

    async def test_missing_images_dir_not_mounted(self, test_client: AsyncClient):
        response = await test_client.get("/images/logo.txt")

        assert response.status_code == 404


class TestLifespan:
    """Startup builds the registry and cache; shutdown releases every pool."""

    async def test_startup_and_shutdown(self, test_settings, master_engine, auth_headers):
        app = create_app(settings=test_settings)

        async with app.router.lifespan_context(app):
            cache: PoolCache = app.state.pool_cache
            assert app.state.master_engine is not None

            async with client_for(app) as client:
                response = await client.get("/api/users", headers=auth_headers("acme"))
            assert response.status_code == 200
            assert cache.slugs() == ["acme"]

        assert cache.closed
        assert len(cache) == 0
        assert app.state.master_engine is None

    async def test_injected_cache_closed_on_shutdown(self, test_settings, pool_cache):
        app = create_app(settings=test_settings, pool_cache=pool_cache)

        async with app.router.lifespan_context(app):
            assert app.state.pool_cache is pool_cache

        assert pool_cache.closed
