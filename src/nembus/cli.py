"""Command-line entry points.

``nembus [env]`` runs the gateway; ``nembus-check-tenant --slug S`` checks
whether a tenant would be accepted by the request path.
"""

import argparse
import asyncio
import sys
from typing import TextIO

import uvicorn

from nembus.config.settings import Settings, load_settings
from nembus.config.validation import validate_or_raise
from nembus.core.exceptions import RegistryUnavailableError
from nembus.core.logging import get_logger, setup_logging
from nembus.db.config import create_master_engine, create_session_factory, create_tenant_engine, verify_connectivity
from nembus.db.registry import TenantRegistry
from nembus.utils.exceptions import ConfigurationError

logger = get_logger("nembus.cli")

ENV_CHOICES = ("dev", "development", "stg", "staging", "prod", "production")


def main(argv: list[str] | None = None) -> int:
    """Run the gateway.

    Returns:
        Exit code: 0 after a clean shutdown, 1 on configuration errors
    """
    parser = argparse.ArgumentParser(prog="nembus", description="NEMBUS multi-tenant API gateway")
    parser.add_argument(
        "env",
        nargs="?",
        choices=ENV_CHOICES,
        help="Environment (default: ENV variable, then development)",
    )
    args = parser.parse_args(argv)

    try:
        settings = load_settings(args.env)
        setup_logging(settings)
        validate_or_raise(settings)
    except ConfigurationError as e:
        print(f"nembus: {e}", file=sys.stderr)
        return 1

    from nembus.api.app import create_app

    logger.info("gateway_starting", environment=settings.environment.value, port=settings.PORT)
    uvicorn.run(
        create_app(settings),
        host=settings.HOST,
        port=settings.PORT,
        log_config=None,
        access_log=False,
    )
    return 0


async def check_tenant(settings: Settings, slug: str, connect: bool = False, out: TextIO = sys.stdout) -> int:
    """Report how the registry sees a tenant slug.

    Args:
        settings: Settings providing MASTER_DB_URL
        slug: Tenant slug to check (case-sensitive)
        connect: Also try to connect to the tenant database
        out: Stream for the report

    Returns:
        0 if the request path would accept the tenant, 1 otherwise
    """
    engine = create_master_engine(settings)
    registry = TenantRegistry(create_session_factory(engine))
    try:
        print(f"\n=== Tenant check for slug: '{slug}' ===", file=out)
        descriptor = await registry.lookup(slug)

        if descriptor is None:
            print("Tenant NOT FOUND", file=out)
            print("\nAvailable tenants:", file=out)
            for tenant in await registry.list_tenants():
                status = "active" if tenant.is_servable else "inactive"
                print(f"  - {tenant.slug} ({tenant.display_name}) - {status}", file=out)
            return 1

        print("Tenant EXISTS", file=out)
        print(f"  Name: {descriptor.display_name}", file=out)
        if descriptor.active is None:
            print("  Status: is_active is NULL (treated as inactive)", file=out)
        elif descriptor.active:
            print("  Status: ACTIVE", file=out)
        else:
            print("  Status: INACTIVE (is_active = false)", file=out)
        print(f"  DB connection: {descriptor.connection_string}", file=out)

        if descriptor.is_servable:
            print(f"\nRequest path: ACCEPTED (tenant id {descriptor.id})", file=out)
        else:
            print("\nRequest path: REJECTED (requests for this tenant get 404)", file=out)

        if connect:
            print("\nTesting tenant database connection...", file=out)
            tenant_engine = create_tenant_engine(descriptor.connection_string.get_secret_value())
            try:
                await verify_connectivity(tenant_engine)
                print("Connected to tenant database", file=out)
            except Exception as e:
                print(f"Failed to connect: {type(e).__name__}", file=out)
                return 1
            finally:
                await tenant_engine.dispose()

        return 0 if descriptor.is_servable else 1
    finally:
        await engine.dispose()


def check_tenant_main(argv: list[str] | None = None) -> int:
    """Entry point for ``nembus-check-tenant``."""
    parser = argparse.ArgumentParser(
        prog="nembus-check-tenant",
        description="Check whether a tenant slug resolves to a servable tenant",
    )
    parser.add_argument("--slug", required=True, help="Tenant slug to check")
    parser.add_argument("--connect", action="store_true", help="Also test the tenant database connection")
    parser.add_argument("--env", choices=ENV_CHOICES, help="Environment whose settings to load")
    args = parser.parse_args(argv)

    try:
        settings = load_settings(args.env)
        settings.master_db_url()
    except ConfigurationError as e:
        print(f"nembus-check-tenant: {e}", file=sys.stderr)
        return 1

    try:
        return asyncio.run(check_tenant(settings, args.slug, connect=args.connect))
    except RegistryUnavailableError as e:
        print(f"nembus-check-tenant: master registry unavailable ({e.reason})", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
