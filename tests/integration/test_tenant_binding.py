"""Integration tests for resolving x-tenant-id to a tenant pool."""

import asyncio

import pytest
from httpx import AsyncClient

pytestmark = [pytest.mark.asyncio, pytest.mark.integration]


class TestTenantHeader:
    """Tests for the x-tenant-id header on tenant-scoped routes."""

    async def test_missing_header_rejected_before_lookup(self, test_client: AsyncClient, auth_headers, registry):
        response = await test_client.get("/api/users", headers=auth_headers(slug=None))

        assert response.status_code == 400
        assert response.json() == {"error": "x-tenant-id header required"}
        assert registry.lookups == []

    async def test_blank_header_rejected(self, test_client: AsyncClient, auth_headers, registry):
        response = await test_client.get("/api/users", headers=auth_headers(slug="   "))

        assert response.status_code == 400
        assert registry.lookups == []

    async def test_public_routes_need_no_tenant(self, test_client: AsyncClient, registry):
        response = await test_client.get("/health")

        assert response.status_code == 200
        assert registry.lookups == []

    async def test_active_tenant_served(self, test_client: AsyncClient, auth_headers):
        response = await test_client.get("/api/users", headers=auth_headers("acme"))

        assert response.status_code == 200
        assert response.json()["data"]["total"] == 4


class TestResolutionFailures:
    """Unknown and inactive tenants never get a pool."""

    async def test_unknown_tenant(self, test_client: AsyncClient, auth_headers, pool_cache):
        response = await test_client.get("/api/users", headers=auth_headers("initech"))

        assert response.status_code == 404
        assert response.json() == {"error": "tenant not found", "kind": "tenant_not_found", "slug": "initech"}
        assert "initech" not in pool_cache

    async def test_slug_is_case_sensitive(self, test_client: AsyncClient, auth_headers):
        response = await test_client.get("/api/users", headers=auth_headers("ACME"))

        assert response.status_code == 404
        assert response.json()["kind"] == "tenant_not_found"

    @pytest.mark.parametrize("slug", ["dormant", "limbo"])
    async def test_inactive_tenant(self, test_client: AsyncClient, auth_headers, pool_cache, slug):
        response = await test_client.get("/api/users", headers=auth_headers(slug))

        assert response.status_code == 404
        assert response.json() == {"error": "tenant is inactive", "kind": "tenant_inactive", "slug": slug}
        assert slug not in pool_cache

    async def test_null_status_is_stored_as_null(self, registry):
        descriptor = await registry.lookup("limbo")

        assert descriptor is not None
        assert descriptor.active is None
        assert not descriptor.is_servable

    async def test_failures_are_not_cached(self, test_client: AsyncClient, auth_headers, registry):
        for _ in range(2):
            response = await test_client.get("/api/users", headers=auth_headers("dormant"))
            assert response.status_code == 404

        assert registry.lookups == ["dormant", "dormant"]

    async def test_unreachable_tenant_database(self, test_client: AsyncClient, auth_headers, pool_cache):
        response = await test_client.get("/api/users", headers=auth_headers("broken"))

        assert response.status_code == 500
        assert response.json() == {"error": "internal server error", "kind": "pool_create_failed"}
        assert "broken" not in pool_cache
        assert "broken.db" not in response.text

    async def test_shutting_down(self, test_client: AsyncClient, auth_headers, pool_cache):
        await pool_cache.close_all()

        response = await test_client.get("/api/users", headers=auth_headers("acme"))

        assert response.status_code == 503
        assert response.json()["kind"] == "shutting_down"


class TestPoolReuse:
    """One pool per tenant, shared by every request."""

    async def test_pool_created_once(self, test_client: AsyncClient, auth_headers, registry, pool_cache):
        for _ in range(3):
            response = await test_client.get("/api/users", headers=auth_headers("acme"))
            assert response.status_code == 200

        assert registry.lookups == ["acme"]
        assert pool_cache.slugs() == ["acme"]

    async def test_concurrent_first_requests_share_lookup(self, test_client: AsyncClient, auth_headers, registry):
        responses = await asyncio.gather(
            *(test_client.get("/api/users", headers=auth_headers("acme")) for _ in range(10))
        )

        assert all(r.status_code == 200 for r in responses)
        assert registry.lookups == ["acme"]

    async def test_tenants_are_isolated(self, test_client: AsyncClient, auth_headers, pool_cache):
        acme, globex = await asyncio.gather(
            test_client.get("/api/users", headers=auth_headers("acme")),
            test_client.get("/api/users", headers=auth_headers("globex")),
        )

        assert [u["username"] for u in acme.json()["data"]["items"]] == ["alice", "bob", "carol", "dave"]
        assert [u["username"] for u in globex.json()["data"]["items"]] == ["gina"]
        assert pool_cache.get("acme").engine is not pool_cache.get("globex").engine

    async def test_bad_tenant_does_not_affect_good_one(self, test_client: AsyncClient, auth_headers):
        broken, acme = await asyncio.gather(
            test_client.get("/api/users", headers=auth_headers("broken")),
            test_client.get("/api/users", headers=auth_headers("acme")),
        )

        assert broken.status_code == 500
        assert acme.status_code == 200
