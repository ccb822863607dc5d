"""
Logging integration - redact declared values before a record is formatted.

    handler = logging.StreamHandler()
    handler.addFilter(RedactionFilter())
    handler.setFormatter(RedactedJsonFormatter())

    logger.info("login failed: %s", login_attempt)      # rendered redacted
    logger.info("token %s", SensitiveValue(token, Token))  # "token ************1234"

RedactionFilter rewrites record arguments (and a non-str message):
    - LogSafe values render through their RedactedOutput
    - declared (container-capable) values render redacted
    - everything else is left alone, or replaced by the placeholder when the
      filter is strict

Attach filters to handlers: filters on a logger do not see records
propagated from its children.
"""

import json
import logging
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any, Optional

from ..engine import RedactionEngine, get_default_engine
from ..output import is_log_safe, to_redacted_output
from ..text_policy import REDACTED_PLACEHOLDER


class RedactionFilter(logging.Filter):
    """
    Logging filter that renders declared values redacted.

    Args:
        strict: Replace arguments that are neither LogSafe nor declared
                (including raw str and int) with the placeholder.
        engine: RedactionEngine to use. Defaults to the shared engine.
    """

    def __init__(self, name: str = "", strict: bool = False, engine: Optional[RedactionEngine] = None):
        super().__init__(name)
        self.strict = strict
        self._engine = engine

    @property
    def engine(self) -> RedactionEngine:
        return self._engine if self._engine is not None else get_default_engine()

    def redact_arg(self, value: Any) -> Any:
        if is_log_safe(value) or self.engine.table(value) is not None:
            return to_redacted_output(value, engine=self.engine).render()
        if self.strict:
            return REDACTED_PLACEHOLDER
        return value

    def filter(self, record: logging.LogRecord) -> bool:
        if not isinstance(record.msg, str):
            record.msg = self.redact_arg(record.msg)
        if isinstance(record.args, Mapping):
            record.args = {key: self.redact_arg(value) for key, value in record.args.items()}
        elif record.args:
            record.args = tuple(self.redact_arg(value) for value in record.args)
        return True


class RedactedJsonFormatter(logging.Formatter):
    """
    One JSON object per record: timestamp, level, logger, message.

    A LogSafe value passed as extra={"payload": value} is added as
    structured data; any other payload is replaced by the placeholder.
    """

    def __init__(self, engine: Optional[RedactionEngine] = None):
        super().__init__()
        self._engine = engine

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        payload = getattr(record, "payload", None)
        if payload is not None:
            engine = self._engine if self._engine is not None else get_default_engine()
            if is_log_safe(payload) or engine.table(payload) is not None:
                output = to_redacted_output(payload, "structured", engine)
                entry["payload"] = getattr(output, "data", output.render())
            else:
                entry["payload"] = REDACTED_PLACEHOLDER
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, sort_keys=True, default=str)
