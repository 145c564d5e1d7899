"""Unit tests for structured logging."""

import json
import logging

from pydantic import SecretStr

from nembus.config.settings import Settings
from nembus.core.context import create_context, request_context
from nembus.core.logging import (
    add_request_context,
    bind_contextvars,
    clear_contextvars,
    drop_color_message_key,
    get_logger,
    setup_logging,
)


def make_settings(**overrides) -> Settings:
    return Settings(_env_file=None, **overrides)


class TestAddRequestContext:
    """Tests for add_request_context processor."""

    def test_adds_context_when_available(self):
        """Test context fields are added when RequestContext is set."""
        ctx = create_context(tenant_slug="acme", data_access=object(), user_id="42")

        with request_context(ctx):
            result = add_request_context(None, "info", {})

        assert result == {"request_id": str(ctx.request_id), "tenant_slug": "acme", "user_id": "42"}

    def test_tenant_only_context_has_no_user(self):
        ctx = create_context(tenant_slug="acme", data_access=object())

        with request_context(ctx):
            result = add_request_context(None, "info", {})

        assert "user_id" not in result

    def test_no_context_available(self):
        """Test graceful handling when no context is set."""
        assert add_request_context(None, "info", {"event": "x"}) == {"event": "x"}

    def test_explicit_values_win(self):
        ctx = create_context(tenant_slug="acme", data_access=object())

        with request_context(ctx):
            result = add_request_context(None, "info", {"tenant_slug": "globex"})

        assert result["tenant_slug"] == "globex"


def test_drop_color_message_key():
    assert drop_color_message_key(None, "info", {"event": "x", "color_message": "y"}) == {"event": "x"}


class TestSetupLogging:
    """Tests for setup_logging function."""

    def test_level_from_settings(self):
        setup_logging(make_settings(LOG_LEVEL="warning"))

        assert logging.getLogger().level == logging.WARNING

    def test_override_level(self):
        setup_logging(make_settings(), log_level="DEBUG")

        assert logging.getLogger().level == logging.DEBUG

    def test_sqlalchemy_statements_not_logged(self):
        setup_logging(make_settings(LOG_LEVEL="DEBUG"))

        assert logging.getLogger("sqlalchemy.engine").level == logging.WARNING

    def test_json_output(self, capsys):
        setup_logging(make_settings(ENV="production"))
        clear_contextvars()
        bind_contextvars(request_id="req-1")

        get_logger("nembus.test").info("tenant_pool_published", tenant_slug="acme")

        line = capsys.readouterr().out.strip().splitlines()[-1]
        data = json.loads(line)
        assert data["event"] == "tenant_pool_published"
        assert data["tenant_slug"] == "acme"
        assert data["request_id"] == "req-1"
        assert data["environment"] == "production"
        assert data["level"] == "info"

    def test_filtered_below_level(self, capsys):
        setup_logging(make_settings(ENV="production", LOG_LEVEL="WARNING"))

        get_logger("nembus.test").info("quiet_event")

        assert "quiet_event" not in capsys.readouterr().out

    def test_secrets_not_in_settings_log(self, capsys):
        settings = make_settings(ENV="production", JWT_SECRET=SecretStr("very-secret-value"))
        setup_logging(settings)

        get_logger("nembus.test").info("settings_loaded", settings=repr(settings))

        assert "very-secret-value" not in capsys.readouterr().out
