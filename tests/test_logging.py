"""
Tests for logging, configuration and error infrastructure.

Tests verify:
- Tokens are masked before they reach the logs
- Server-provided text is sanitized
- Log records carry the ref/topic of the frame in flight
- Exceptions log themselves with context
- Production settings validation
"""

import json
import logging

import pytest

from shared.config.logging import (
    DevelopmentFormatter,
    StructuredFormatter,
    get_logger,
    mask_token,
)
from shared.config.settings import Settings
from shared.infrastructure.correlation import CorrelationIdFilter, frame_scope, get_ref, get_topic
from shared.utils.exceptions import NotConnectedError, TopicNotJoinedError
from ws_channels.components.core.context import ConnectionContext, build_url, sanitize_log_data


class TestMaskToken:
    """Tests for mask_token()."""

    def test_long_token_shows_prefix_only(self):
        assert mask_token("eyJhbGciOiJIUzI1NiJ9.payload.sig") == "eyJhbGci..."

    def test_short_token_is_mostly_hidden(self):
        assert mask_token("abc123") == "ab***"

    @pytest.mark.parametrize("token", [None, ""])
    def test_missing_token(self, token):
        assert mask_token(token) == "<no-token>"


class TestSanitizeLogData:
    """Tests for sanitize_log_data()."""

    def test_plain_text_unchanged(self):
        assert sanitize_log_data("hello") == "hello"

    def test_control_and_direction_characters_removed(self):
        assert sanitize_log_data("a\x00b\nc\u202ed\u200be") == "abcde"

    def test_quotes_and_backslashes_escaped(self):
        assert sanitize_log_data('say "hi" \\o/') == 'say \\"hi\\" \\\\o/'

    def test_long_text_truncated(self):
        result = sanitize_log_data("x" * 150, max_length=100)

        assert result == "x" * 100 + "..."


class TestConnectionContext:
    """URL building and audit payloads."""

    def test_build_url_without_params(self):
        assert build_url("ws://host/socket", None) == "ws://host/socket"

    def test_build_url_encodes_values(self):
        assert build_url("ws://host/socket", {"token": "a b&c"}) == "ws://host/socket?token=a+b%26c"

    def test_token_split_from_params(self):
        ctx = ConnectionContext.from_params("ws://host/socket", {"token": "secret", "vsn": "2"}, "token")

        assert ctx.token == "secret"
        assert ctx.params == {"vsn": "2"}

    def test_audit_uses_given_logger_func(self):
        calls = []
        ctx = ConnectionContext(url="ws://host/socket", token="secret-token")

        ctx.audit("CONNECT", logger_func=lambda **kw: calls.append(kw), attempt=1)

        assert calls == [{
            "event_type": "CONNECT",
            "url": "ws://host/socket",
            "token": "secret-token",
            "attempt": 1,
        }]

    def test_audit_dict_omits_empty_fields(self):
        ctx = ConnectionContext(url="ws://host/socket")

        assert ctx.to_audit_dict("DISCONNECT", code=1000) == {
            "event_type": "DISCONNECT",
            "url": "ws://host/socket",
            "code": 1000,
        }


class TestFrameCorrelation:
    """Ref/topic context for log records."""

    def test_scope_sets_and_restores(self):
        assert get_ref() == ""

        with frame_scope("chat:room_1", "7"):
            assert get_ref() == "7"
            assert get_topic() == "chat:room_1"

        assert get_ref() == ""
        assert get_topic() == ""

    def test_filter_adds_fields(self):
        record = logging.LogRecord("t", logging.INFO, __file__, 1, "msg", (), None)

        with frame_scope("feed:user_7", None):
            CorrelationIdFilter().filter(record)

        assert record.ref == "-"
        assert record.topic == "feed:user_7"

    def test_structured_formatter_includes_frame_and_data(self):
        logger = get_logger("tests.structured")
        record = logger.makeRecord(
            "tests.structured", logging.INFO, __file__, 1, "SEND", (), None,
            extra={"extra_data": {"event": "message"}},
        )
        with frame_scope("chat:room_1", "3"):
            CorrelationIdFilter().filter(record)

        data = json.loads(StructuredFormatter().format(record))

        assert data["message"] == "SEND"
        assert data["ref"] == "3"
        assert data["topic"] == "chat:room_1"
        assert data["data"] == {"event": "message"}

    def test_development_formatter_shows_ref(self):
        record = logging.LogRecord("tests.dev", logging.INFO, __file__, 1, "RECV", (), None)
        record.ref = "5"
        record.extra_data = {"topic": "chat:room_1"}

        line = DevelopmentFormatter().format(record)

        assert "[ref 5]" in line
        assert "RECV" in line
        assert "topic=chat:room_1" in line


class TestStructuredLogger:
    """Keyword arguments become structured data."""

    def test_kwargs_stored_as_extra_data(self, caplog):
        caplog.set_level(logging.INFO, logger="tests.kwargs")

        get_logger("tests.kwargs").info("Joined topic", topic="chat:room_1")

        assert caplog.records[-1].extra_data == {"topic": "chat:room_1"}

    def test_exceptions_log_their_context(self, caplog):
        caplog.set_level(logging.WARNING)

        error = TopicNotJoinedError("feed:user_7", event="like_item")

        record = caplog.records[-1]
        assert record.getMessage() == "Topic feed:user_7 is not joined"
        assert record.extra_data == {
            "error": "TopicNotJoinedError",
            "topic": "feed:user_7",
            "event": "like_item",
        }
        assert error.context == {"topic": "feed:user_7", "event": "like_item"}

    def test_not_connected_message(self):
        error = NotConnectedError("push", topic="chat:room_1")

        assert str(error) == "Cannot push: socket is not connected"
        assert error.detail == str(error)


class TestSettings:
    """Tests for Settings and validate_production()."""

    def test_defaults(self):
        settings = Settings(_env_file=None)

        assert settings.token_param == "token"
        assert settings.join_ack_event == "phx_reply"
        assert settings.join_ack_status == "ok"
        assert settings.strict_joins is False
        assert settings.validate_production() == []

    def test_environment_override(self, monkeypatch):
        monkeypatch.setenv("WS_CHANNELS_JOIN_ACK_EVENT", "joined")
        monkeypatch.setenv("WS_CHANNELS_STRICT_JOINS", "true")

        settings = Settings(_env_file=None)

        assert settings.join_ack_event == "joined"
        assert settings.strict_joins is True

    def test_production_requires_wss_and_no_debug(self):
        settings = Settings(
            _env_file=None,
            environment="production",
            socket_url="ws://example.test/socket/websocket",
            debug=True,
        )

        errors = settings.validate_production()

        assert "SOCKET_URL must use wss:// in production" in errors
        assert "DEBUG must be False in production" in errors

    def test_production_with_wss_passes(self):
        settings = Settings(
            _env_file=None,
            environment="production",
            socket_url="wss://example.test/socket/websocket",
        )

        assert settings.validate_production() == []

    def test_invalid_timeouts_and_ack_event(self):
        settings = Settings(_env_file=None, open_timeout=0, join_ack_event="")

        errors = settings.validate_production()

        assert "JOIN_ACK_EVENT must not be empty" in errors
        assert "OPEN_TIMEOUT and CLOSE_TIMEOUT must be positive" in errors
