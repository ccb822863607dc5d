"""
CloudWatch Logs sink - ships redacted output to an AWS log stream.

Only CloudWatchSafe values are accepted (RedactedOutput, redacted_display /
redacted_json wrappers, SensitiveValue, NotSensitiveValue and the
not_sensitive_* escape hatches). Anything else is refused before any AWS call
is made, so a raw declared value can never be shipped by mistake.

Operations report their outcome as a dictionary:
    - status: "success" or "error"
    - message: error description (on error)

Example usage:
    sink = CloudWatchSink()
    sink.emit(redacted_json(login_attempt))
    sink.recent_events(limit=10)
"""

import logging
import os
import time
from typing import Any, Optional

import boto3
from botocore.exceptions import ClientError, NoCredentialsError

from ..config import RedactionSettings, get_settings
from ..engine import RedactionEngine, get_default_engine
from ..errors import DeclarationError
from ..output import is_cloudwatch_safe, to_redacted_output

logger = logging.getLogger(__name__)

MAX_BATCH_EVENTS = 10000
MAX_RESULTS = 20
MAX_MESSAGE_CHARS = 500

CREDENTIALS_MESSAGE = (
    "AWS credentials not found. Please set AWS_ACCESS_KEY_ID, AWS_SECRET_ACCESS_KEY, "
    "and AWS_REGION environment variables."
)


def get_cloudwatch_client(region: Optional[str] = None):
    """Create and return a CloudWatch Logs client using environment credentials."""
    return boto3.client(
        "logs",
        aws_access_key_id=os.getenv("AWS_ACCESS_KEY_ID"),
        aws_secret_access_key=os.getenv("AWS_SECRET_ACCESS_KEY"),
        region_name=region or os.getenv("AWS_REGION", "us-east-1"),
    )


def _client_error(e: ClientError) -> str:
    error_code = e.response.get("Error", {}).get("Code", "Unknown")
    error_message = e.response.get("Error", {}).get("Message", str(e))
    return f"AWS Error ({error_code}): {error_message}"


class CloudWatchSink:
    """
    Emits CloudWatchSafe values as log events.

    Example:
        sink = CloudWatchSink(log_group="/payments/audit", log_stream="worker-1")
        sink.ensure_stream()
        sink.emit(redacted_display(charge), redacted_json(charge))
    """

    def __init__(
        self,
        log_group: Optional[str] = None,
        log_stream: Optional[str] = None,
        client: Any = None,
        settings: Optional[RedactionSettings] = None,
        engine: Optional[RedactionEngine] = None,
    ):
        settings = settings if settings is not None else get_settings()
        self.log_group = log_group or settings.log_group
        self.log_stream = log_stream or settings.log_stream
        self._region = settings.aws_region
        self._client = client
        self._engine = engine if engine is not None else get_default_engine()

    @property
    def client(self):
        if self._client is None:
            self._client = get_cloudwatch_client(self._region)
        return self._client

    def render(self, value: Any) -> str:
        """
        Render one value to the message text that would be shipped.

        Raises:
            DeclarationError: value is not CloudWatchSafe.
        """
        if not is_cloudwatch_safe(value):
            raise DeclarationError(
                f"{type(value).__qualname__} is not safe for CloudWatch; wrap it with "
                "redacted_display()/redacted_json() or a not_sensitive_* escape hatch"
            )
        return to_redacted_output(value, engine=self._engine).render()

    def ensure_stream(self) -> dict[str, Any]:
        """Create the log group and stream if they do not exist yet."""
        try:
            for create, kwargs in (
                (self.client.create_log_group, {"logGroupName": self.log_group}),
                (
                    self.client.create_log_stream,
                    {"logGroupName": self.log_group, "logStreamName": self.log_stream},
                ),
            ):
                try:
                    create(**kwargs)
                except ClientError as e:
                    if e.response.get("Error", {}).get("Code") != "ResourceAlreadyExistsException":
                        raise
            return {"status": "success", "log_group": self.log_group, "log_stream": self.log_stream}

        except NoCredentialsError:
            return {"status": "error", "log_group": self.log_group, "message": CREDENTIALS_MESSAGE}
        except ClientError as e:
            logger.warning(f"Could not create {self.log_group}/{self.log_stream}: {_client_error(e)}")
            return {"status": "error", "log_group": self.log_group, "message": _client_error(e)}

    def emit(self, *values: Any) -> dict[str, Any]:
        """
        Ship values as one batch of log events.

        Values are rendered (and refused if unsafe) before anything is sent.

        Returns:
            A dictionary containing:
            - status: "success" or "error"
            - log_group / log_stream: the destination
            - event_count: number of events sent
            - rejected: True when CloudWatch dropped events outside its time window

        Raises:
            DeclarationError: one of the values is not CloudWatchSafe.
        """
        messages = [self.render(value) for value in values]
        if not messages:
            return {"status": "success", "log_group": self.log_group, "log_stream": self.log_stream, "event_count": 0}
        if len(messages) > MAX_BATCH_EVENTS:
            return {
                "status": "error",
                "log_group": self.log_group,
                "message": f"Too many events in one batch ({len(messages)} > {MAX_BATCH_EVENTS})",
            }

        timestamp = int(time.time() * 1000)
        events = [{"timestamp": timestamp, "message": message} for message in messages]
        try:
            response = self.client.put_log_events(
                logGroupName=self.log_group,
                logStreamName=self.log_stream,
                logEvents=events,
            )
            return {
                "status": "success",
                "log_group": self.log_group,
                "log_stream": self.log_stream,
                "event_count": len(events),
                "rejected": bool(response.get("rejectedLogEventsInfo")),
            }

        except NoCredentialsError:
            return {"status": "error", "log_group": self.log_group, "message": CREDENTIALS_MESSAGE}
        except ClientError as e:
            logger.warning(f"put_log_events to {self.log_group}/{self.log_stream} failed: {_client_error(e)}")
            return {"status": "error", "log_group": self.log_group, "message": _client_error(e)}
        except Exception as e:
            logger.warning(f"put_log_events to {self.log_group}/{self.log_stream} failed: {e}")
            return {"status": "error", "log_group": self.log_group, "message": f"Unexpected error: {str(e)}"}

    def recent_events(self, limit: int = MAX_RESULTS) -> dict[str, Any]:
        """
        Read back the newest events of the stream (max 20).

        Each message is truncated to 500 characters, newest first.
        """
        if limit < 1:
            limit = 1
        if limit > MAX_RESULTS:
            limit = MAX_RESULTS

        try:
            response = self.client.get_log_events(
                logGroupName=self.log_group,
                logStreamName=self.log_stream,
                limit=limit,
                startFromHead=False,
            )
            events = []
            for event in reversed(response.get("events", [])):
                message = event.get("message", "")
                events.append(
                    {
                        "timestamp": event.get("timestamp"),
                        "message": message[:MAX_MESSAGE_CHARS] + "..." if len(message) > MAX_MESSAGE_CHARS else message,
                    }
                )
            return {
                "status": "success",
                "log_group": self.log_group,
                "log_stream": self.log_stream,
                "count": len(events),
                "events": events,
            }

        except NoCredentialsError:
            return {"status": "error", "log_group": self.log_group, "message": CREDENTIALS_MESSAGE}
        except ClientError as e:
            return {"status": "error", "log_group": self.log_group, "message": _client_error(e)}
