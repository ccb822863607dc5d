"""
Tests for the CloudWatch Logs sink.

Tests cover:
- Emitting redacted output
- Refusing values that are not CloudWatchSafe
- Creating the log group and stream on demand
- Reading back recent events (newest first, truncated)
- AWS error and missing-credential handling
"""

import json
import time
from dataclasses import dataclass
from typing import Annotated

import boto3
import pytest
from botocore.exceptions import NoCredentialsError
from moto import mock_aws

from typed_redaction import (
    DeclarationError,
    RedactionSettings,
    Secret,
    Sensitive,
    SensitiveValue,
    Token,
    not_sensitive_str,
    redacted_display,
    redacted_json,
    sensitive,
)
from typed_redaction.sinks import CloudWatchSink


@sensitive
@dataclass
class Login:
    user: str
    password: Annotated[str, Sensitive(Secret)]


class NoCredentialsClient:
    """Stands in for a boto3 client whose credential lookup fails."""

    def __getattr__(self, name):
        def call(**kwargs):
            raise NoCredentialsError()

        return call


def read_messages(client, log_group, log_stream):
    events = client.get_log_events(logGroupName=log_group, logStreamName=log_stream, startFromHead=True)["events"]
    return [event["message"] for event in events]


class TestEmit:
    """Test suite for CloudWatchSink.emit."""

    def test_emits_redacted_json(self, cloudwatch_logs_client, sample_log_stream):
        """Should ship the redacted JSON form of a declared value."""
        log_group, log_stream = sample_log_stream
        sink = CloudWatchSink(log_group, log_stream, client=cloudwatch_logs_client)

        result = sink.emit(redacted_json(Login("alice", "hunter2")))

        assert result["status"] == "success"
        assert result["event_count"] == 1
        messages = read_messages(cloudwatch_logs_client, log_group, log_stream)
        assert json.loads(messages[0]) == {"user": "alice", "password": "[REDACTED]"}

    def test_emits_several_values_in_one_batch(self, cloudwatch_logs_client, sample_log_stream):
        """Should send every value as its own event."""
        log_group, log_stream = sample_log_stream
        sink = CloudWatchSink(log_group, log_stream, client=cloudwatch_logs_client)

        result = sink.emit(
            redacted_display(Login("alice", "hunter2")),
            SensitiveValue("sk-live-abcd1234", Token),
            not_sensitive_str("worker-1 started"),
        )

        assert result["event_count"] == 3
        assert read_messages(cloudwatch_logs_client, log_group, log_stream) == [
            "Login(user='alice', password='[REDACTED]')",
            "************1234",
            "worker-1 started",
        ]

    @pytest.mark.parametrize("value", ["hunter2", Login("alice", "hunter2")])
    def test_refuses_unsafe_values(self, cloudwatch_logs_client, sample_log_stream, value):
        """Should raise before sending anything."""
        log_group, log_stream = sample_log_stream
        sink = CloudWatchSink(log_group, log_stream, client=cloudwatch_logs_client)

        with pytest.raises(DeclarationError):
            sink.emit(redacted_json(Login("bob", "x")), value)

        assert read_messages(cloudwatch_logs_client, log_group, log_stream) == []

    def test_empty_emit(self, cloudwatch_logs_client, sample_log_stream):
        """Should succeed without calling AWS."""
        log_group, log_stream = sample_log_stream
        result = CloudWatchSink(log_group, log_stream, client=cloudwatch_logs_client).emit()

        assert result["status"] == "success"
        assert result["event_count"] == 0

    def test_missing_stream(self, cloudwatch_logs_client):
        """Should report AWS errors instead of raising."""
        sink = CloudWatchSink("/does/not/exist", "nope", client=cloudwatch_logs_client)

        result = sink.emit(redacted_json(Login("alice", "hunter2")))

        assert result["status"] == "error"
        assert "ResourceNotFoundException" in result["message"]

    def test_missing_credentials(self):
        """Should return a helpful error when credentials are missing."""
        sink = CloudWatchSink("/typed-redaction/test", "s", client=NoCredentialsClient())

        result = sink.emit(redacted_json(Login("alice", "hunter2")))

        assert result["status"] == "error"
        assert "credentials" in result["message"].lower()


class TestEnsureStream:
    """Test suite for CloudWatchSink.ensure_stream."""

    def test_creates_group_and_stream(self, cloudwatch_logs_client):
        """Should create both resources."""
        sink = CloudWatchSink("/typed-redaction/new", "worker-1", client=cloudwatch_logs_client)

        assert sink.ensure_stream()["status"] == "success"

        streams = cloudwatch_logs_client.describe_log_streams(logGroupName="/typed-redaction/new")["logStreams"]
        assert [stream["logStreamName"] for stream in streams] == ["worker-1"]

    def test_is_idempotent(self, cloudwatch_logs_client, sample_log_stream):
        """Should treat existing resources as success."""
        log_group, log_stream = sample_log_stream
        sink = CloudWatchSink(log_group, log_stream, client=cloudwatch_logs_client)

        assert sink.ensure_stream()["status"] == "success"
        assert sink.ensure_stream()["status"] == "success"

    def test_missing_credentials(self):
        """Should return a helpful error when credentials are missing."""
        result = CloudWatchSink("/g", "s", client=NoCredentialsClient()).ensure_stream()

        assert result["status"] == "error"
        assert "credentials" in result["message"].lower()


class TestRecentEvents:
    """Test suite for CloudWatchSink.recent_events."""

    def test_newest_first(self, cloudwatch_logs_client, sample_log_stream):
        """Should return events newest first."""
        log_group, log_stream = sample_log_stream
        timestamp = int(time.time() * 1000)
        cloudwatch_logs_client.put_log_events(
            logGroupName=log_group,
            logStreamName=log_stream,
            logEvents=[
                {"timestamp": timestamp - 2000, "message": "first"},
                {"timestamp": timestamp - 1000, "message": "second"},
            ],
        )

        result = CloudWatchSink(log_group, log_stream, client=cloudwatch_logs_client).recent_events()

        assert result["status"] == "success"
        assert [event["message"] for event in result["events"]] == ["second", "first"]

    def test_truncates_long_messages(self, cloudwatch_logs_client, sample_log_stream):
        """Should truncate messages longer than 500 characters."""
        log_group, log_stream = sample_log_stream
        cloudwatch_logs_client.put_log_events(
            logGroupName=log_group,
            logStreamName=log_stream,
            logEvents=[{"timestamp": int(time.time() * 1000), "message": "x" * 600}],
        )

        result = CloudWatchSink(log_group, log_stream, client=cloudwatch_logs_client).recent_events()

        message = result["events"][0]["message"]
        assert len(message) == 503
        assert message.endswith("...")


class TestConfiguration:
    """Test suite for sink defaults."""

    def test_defaults_come_from_settings(self):
        """Should use the configured group, stream and region."""
        settings = RedactionSettings(log_group="/app/audit", log_stream="api", aws_region="eu-west-1")
        sink = CloudWatchSink(settings=settings)

        assert sink.log_group == "/app/audit"
        assert sink.log_stream == "api"

    @mock_aws
    def test_builds_client_lazily(self):
        """Should create a boto3 client for the configured region on first use."""
        settings = RedactionSettings(log_group="/app/audit", log_stream="api", aws_region="eu-west-1")
        sink = CloudWatchSink(settings=settings)

        assert sink.ensure_stream()["status"] == "success"
        assert sink.client.meta.region_name == "eu-west-1"
        groups = boto3.client("logs", region_name="eu-west-1").describe_log_groups()["logGroups"]
        assert [group["logGroupName"] for group in groups] == ["/app/audit"]
