"""
Sinks Package

Adapters that hand redacted output to the outside world.

Available sinks:
    - log_adapter: RedactionFilter and RedactedJsonFormatter for stdlib logging
    - cloudwatch:  CloudWatchSink for AWS CloudWatch Logs
"""

from .cloudwatch import CloudWatchSink, get_cloudwatch_client
from .log_adapter import RedactedJsonFormatter, RedactionFilter

__all__ = [
    "CloudWatchSink",
    "RedactedJsonFormatter",
    "RedactionFilter",
    "get_cloudwatch_client",
]
