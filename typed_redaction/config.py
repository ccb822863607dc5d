"""
Runtime settings for typed_redaction.

Settings are read from the environment (and a local .env file, if present)
the same way the CloudWatch tooling reads its AWS credentials. Entry points
that change output accept a RedactionSettings argument explicitly; the
environment only supplies the default used when none is passed.

Environment variables:
    REDACTION_SHOW_UNREDACTED: "1"/"true" renders raw values in templates and
                               reprs. Meant for local debugging only.
    REDACTION_LOG_GROUP:       CloudWatch log group used by CloudWatchSink.
    REDACTION_LOG_STREAM:      CloudWatch log stream used by CloudWatchSink.
    AWS_REGION:                Region for the CloudWatch client.
"""

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import find_dotenv, load_dotenv

_TRUTHY = {"1", "true", "yes", "on"}


def _env_flag(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in _TRUTHY


@dataclass(frozen=True)
class RedactionSettings:
    """Knobs that affect rendering and sinks, never classification."""

    show_unredacted: bool = False
    log_group: str = "/typed-redaction/events"
    log_stream: str = "default"
    aws_region: str = "us-east-1"

    @classmethod
    def from_env(cls) -> "RedactionSettings":
        """Build settings from environment variables (loading .env from the working directory first)."""
        load_dotenv(find_dotenv(usecwd=True))
        return cls(
            show_unredacted=_env_flag("REDACTION_SHOW_UNREDACTED"),
            log_group=os.getenv("REDACTION_LOG_GROUP", cls.log_group),
            log_stream=os.getenv("REDACTION_LOG_STREAM", cls.log_stream),
            aws_region=os.getenv("AWS_REGION", cls.aws_region),
        )


_settings: Optional[RedactionSettings] = None


def get_settings() -> RedactionSettings:
    """Return the process-wide default settings, reading the environment once."""
    global _settings
    if _settings is None:
        _settings = RedactionSettings.from_env()
    return _settings


def set_settings(settings: Optional[RedactionSettings]) -> None:
    """Replace the process-wide defaults. Passing None re-reads the environment on next use."""
    global _settings
    _settings = settings
