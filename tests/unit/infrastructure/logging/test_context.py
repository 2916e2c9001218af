"""Unit tests for request context binding."""

import pytest
import structlog

from chatbot.infrastructure.logging import (
    bind_request_context,
    get_correlation_id,
    set_correlation_id,
)

pytestmark = pytest.mark.unit


class TestBindRequestContext:
    """Test suite for bind_request_context."""

    def test_binds_and_unbinds(self):
        with bind_request_context(
            correlation_id="cid-1", user_id="U1", channel_id="C1", command="ping"
        ) as correlation_id:
            context = structlog.contextvars.get_contextvars()
            assert correlation_id == "cid-1"
            assert context["correlation_id"] == "cid-1"
            assert context["user_id"] == "U1"
            assert context["channel_id"] == "C1"
            assert context["command"] == "ping"

        context = structlog.contextvars.get_contextvars()
        assert "correlation_id" not in context
        assert "command" not in context

    def test_generates_correlation_id(self):
        with bind_request_context() as correlation_id:
            assert correlation_id
            assert get_correlation_id() == correlation_id

        assert get_correlation_id() is None

    def test_omits_missing_identifiers(self):
        with bind_request_context(correlation_id="cid-2"):
            context = structlog.contextvars.get_contextvars()
            assert "user_id" not in context
            assert "channel_id" not in context

    def test_unbinds_on_exception(self):
        with pytest.raises(RuntimeError):
            with bind_request_context(correlation_id="cid-3"):
                raise RuntimeError("boom")

        assert get_correlation_id() is None

    def test_correlation_id_can_be_switched(self):
        with bind_request_context(correlation_id="message-1", user_id="U123"):
            set_correlation_id("command-1")

            assert get_correlation_id() == "command-1"
            assert structlog.contextvars.get_contextvars()["user_id"] == "U123"

        assert get_correlation_id() is None
