"""
Pytest configuration and shared fixtures for typed_redaction tests.

Uses moto to mock CloudWatch Logs for the sink tests, so no real AWS
credentials are needed.
"""

import os
import sys

import pytest

# Add parent directory to path for package imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from typed_redaction import RedactionSettings, set_settings  # noqa: E402


@pytest.fixture(autouse=True)
def set_aws_credentials():
    """
    Set mock AWS credentials for moto.
    This runs automatically before each test.
    """
    os.environ["AWS_ACCESS_KEY_ID"] = "testing"
    os.environ["AWS_SECRET_ACCESS_KEY"] = "testing"
    os.environ["AWS_REGION"] = "us-east-1"
    os.environ["AWS_DEFAULT_REGION"] = "us-east-1"
    yield


@pytest.fixture(autouse=True)
def default_settings():
    """Pin redacting defaults so a developer's environment cannot leak into tests."""
    set_settings(RedactionSettings())
    yield
    set_settings(None)


@pytest.fixture
def cloudwatch_logs_client():
    """Provide a mocked CloudWatch Logs client."""
    import boto3
    from moto import mock_aws

    with mock_aws():
        client = boto3.client("logs", region_name="us-east-1")
        yield client


@pytest.fixture
def sample_log_stream(cloudwatch_logs_client):
    """Create an empty log group and stream for sink tests."""
    log_group_name = "/typed-redaction/test"
    log_stream_name = "test-stream"

    cloudwatch_logs_client.create_log_group(logGroupName=log_group_name)
    cloudwatch_logs_client.create_log_stream(
        logGroupName=log_group_name,
        logStreamName=log_stream_name
    )

    return log_group_name, log_stream_name
