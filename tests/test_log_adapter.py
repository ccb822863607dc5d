"""
Tests for the logging integration.

Tests cover:
- RedactionFilter on positional and mapping arguments
- Declared values passed as the message itself
- Strict mode
- RedactedJsonFormatter payloads
"""

import io
import json
import logging
from dataclasses import dataclass
from typing import Annotated

import pytest

from typed_redaction import Secret, Sensitive, SensitiveValue, Token, redacted_json, sensitive, sensitive_display
from typed_redaction.sinks import RedactedJsonFormatter, RedactionFilter


@sensitive
@dataclass
class Login:
    user: str
    password: Annotated[str, Sensitive(Secret)]


@sensitive_display("login failed for {user} with {password}")
@dataclass
class LoginFailed(Exception):
    user: str
    password: Annotated[str, Sensitive(Secret)]


def make_logger(name, log_filter=None, formatter=None):
    stream = io.StringIO()
    handler = logging.StreamHandler(stream)
    handler.addFilter(log_filter or RedactionFilter())
    handler.setFormatter(formatter or logging.Formatter("%(message)s"))
    logger = logging.getLogger(name)
    logger.handlers = [handler]
    logger.setLevel(logging.INFO)
    logger.propagate = False
    return logger, stream


class TestRedactionFilter:
    """Test suite for RedactionFilter."""

    @pytest.fixture
    def captured(self, request):
        return make_logger(f"tests.filter.{request.node.name}")

    def test_declared_argument_is_redacted(self, captured):
        """Declared dataclasses render redacted."""
        logger, stream = captured
        logger.info("attempt: %s", Login("alice", "hunter2"))

        assert stream.getvalue().strip() == "attempt: Login(user='alice', password='[REDACTED]')"

    def test_display_argument_uses_template(self, captured):
        """Templated classes render through their template."""
        logger, stream = captured
        logger.info("error: %s", LoginFailed("alice", "hunter2"))

        assert stream.getvalue().strip() == "error: login failed for alice with [REDACTED]"

    def test_sensitive_value_argument(self, captured):
        """SensitiveValue renders its redacted text instead of raising."""
        logger, stream = captured
        logger.info("key %s", SensitiveValue("sk-live-abcd1234", Token))

        assert stream.getvalue().strip() == "key ************1234"

    def test_mapping_arguments(self, captured):
        """Mapping-style arguments are handled too."""
        logger, stream = captured
        logger.info("%(who)s", {"who": Login("alice", "hunter2")})

        assert "hunter2" not in stream.getvalue()
        assert "[REDACTED]" in stream.getvalue()

    def test_declared_message(self, captured):
        """A declared value logged directly is redacted."""
        logger, stream = captured
        logger.info(Login("alice", "hunter2"))

        assert stream.getvalue().strip() == "Login(user='alice', password='[REDACTED]')"

    def test_plain_arguments_pass_through(self, captured):
        """Non-strict filters leave plain values alone."""
        logger, stream = captured
        logger.info("user %s attempt %d", "alice", 3)

        assert stream.getvalue().strip() == "user alice attempt 3"

    def test_strict_mode(self):
        """Strict filters replace anything not declared or safe."""
        logger, stream = make_logger("tests.filter.strict", RedactionFilter(strict=True))
        logger.info("user %s key %s", "alice", SensitiveValue("sk-live-abcd1234", Token))

        assert stream.getvalue().strip() == "user [REDACTED] key ************1234"


class TestRedactedJsonFormatter:
    """Test suite for RedactedJsonFormatter."""

    @pytest.fixture
    def captured(self, request):
        return make_logger(f"tests.json.{request.node.name}", formatter=RedactedJsonFormatter())

    def test_basic_entry(self, captured):
        """Each record is one JSON object."""
        logger, stream = captured
        logger.info("started %s", "worker-1")
        entry = json.loads(stream.getvalue())

        assert entry["message"] == "started worker-1"
        assert entry["level"] == "INFO"
        assert entry["logger"] == logger.name
        assert "timestamp" in entry

    def test_safe_payload(self, captured):
        """LogSafe payloads are embedded as structured data."""
        logger, stream = captured
        logger.info("login", extra={"payload": redacted_json(Login("alice", "hunter2"))})
        entry = json.loads(stream.getvalue())

        assert entry["payload"] == {"user": "alice", "password": "[REDACTED]"}

    def test_declared_payload(self, captured):
        """Declared payloads are redacted before embedding."""
        logger, stream = captured
        logger.info("login", extra={"payload": Login("alice", "hunter2")})

        assert json.loads(stream.getvalue())["payload"] == {"user": "alice", "password": "[REDACTED]"}

    def test_raw_payload_is_replaced(self, captured):
        """Raw payloads never reach the output."""
        logger, stream = captured
        logger.info("login", extra={"payload": "hunter2"})

        assert json.loads(stream.getvalue())["payload"] == "[REDACTED]"

    def test_exception_text_is_redacted(self, captured):
        """Tracebacks use the redacted str() of declared exceptions."""
        logger, stream = captured
        password = "hunter" + "2"
        try:
            raise LoginFailed("alice", password)
        except LoginFailed:
            logger.exception("login failed")
        entry = json.loads(stream.getvalue())

        assert "hunter2" not in entry["exception"]
        assert "login failed for alice with [REDACTED]" in entry["exception"]
