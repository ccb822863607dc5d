"""
Output adapters - the only way values reach a sink.

Sinks accept RedactedOutput, or values that are marked safe for them:

    - LogSafe:        may be handed to the logging integration
    - CloudWatchSafe: may be shipped to CloudWatch Logs

Raw str/int values and raw declared dataclass instances are not safe: pass
them through redacted_display() / redacted_json() (or redact() first), or
declare them safe explicitly with one of the not_sensitive_* escape hatches.

Example:
    to_redacted_output(login).render()                  # repr of the redacted copy
    to_redacted_output(login, "structured").render()    # '{"password": "[REDACTED]", "user": "alice"}'
"""

import dataclasses
import datetime
import decimal
import enum
import ipaddress
import json
import pathlib
import uuid
from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Literal, Optional

from .engine import RedactionEngine, get_default_engine, raw_reprs
from .errors import DeclarationError
from .wrappers import NotSensitiveValue, SensitiveValue

Representation = Literal["text", "structured"]


class LogSafe(ABC):
    """Values the logging integration may render."""


class CloudWatchSafe(ABC):
    """Values the CloudWatch sink may ship."""


class RedactedOutput(LogSafe, CloudWatchSafe):
    """Already-redacted text or JSON-compatible data, ready for a sink."""

    @abstractmethod
    def render(self) -> str:
        """The text a sink writes."""


@dataclass(frozen=True)
class RedactedText(RedactedOutput):
    text: str

    def render(self) -> str:
        return self.text


@dataclass(frozen=True)
class RedactedStructured(RedactedOutput):
    data: Any

    def render(self) -> str:
        return json.dumps(self.data, sort_keys=True, default=str)


def to_jsonable(value: Any, engine: Optional[RedactionEngine] = None) -> Any:
    """
    Convert an already-redacted value into JSON-compatible data.

    Dataclasses become objects of their fields (display-only classes their
    redacted template text), sets become sorted lists,
    tuples become lists, and dates, UUIDs, paths, decimals and addresses
    become strings. Wrappers contribute their redacted inner value.
    """
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    engine = engine if engine is not None else get_default_engine()
    if isinstance(value, SensitiveValue):
        return to_jsonable(value.__redact__().expose(), engine)
    if isinstance(value, NotSensitiveValue):
        return to_jsonable(value.inner(), engine)
    if isinstance(value, enum.Enum):
        return to_jsonable(value.value, engine)
    if isinstance(value, (datetime.datetime, datetime.date, datetime.time)):
        return value.isoformat()
    if isinstance(value, datetime.timedelta):
        return value.total_seconds()
    if isinstance(value, (uuid.UUID, decimal.Decimal, pathlib.PurePath, ipaddress.IPv4Address, ipaddress.IPv6Address)):
        return str(value)
    if isinstance(value, complex):
        return str(value)
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        table = engine.table(value)
        if table is not None and not (table.traversable or table.passthrough):
            return engine.format_redacted(value)
        return {field.name: to_jsonable(getattr(value, field.name), engine) for field in dataclasses.fields(value)}
    if isinstance(value, Mapping):
        return {str(key): to_jsonable(item, engine) for key, item in value.items()}
    if isinstance(value, (set, frozenset)):
        items = [to_jsonable(item, engine) for item in value]
        return sorted(items, key=lambda item: json.dumps(item, sort_keys=True, default=str))
    if isinstance(value, (list, tuple)):
        return [to_jsonable(item, engine) for item in value]
    with raw_reprs():
        return str(value)


def to_redacted_output(
    value: Any, representation: Representation = "text", engine: Optional[RedactionEngine] = None
) -> RedactedOutput:
    """
    Produce the sink-ready form of a value.

    Raises:
        DeclarationError: value is neither redacted output, a wrapper or
                          escape hatch, nor a declared (container-capable) value.
    """
    if representation not in ("text", "structured"):
        raise ValueError(f"representation must be 'text' or 'structured', got {representation!r}")
    if isinstance(value, RedactedOutput):
        return value
    hook = getattr(value, "to_redacted_output", None)
    if hook is not None:
        return hook(representation)

    engine = engine if engine is not None else get_default_engine()
    table = engine.table(value)
    if isinstance(value, SensitiveValue):
        if representation == "text":
            return RedactedText(value.redacted())
        return RedactedStructured(to_jsonable(value, engine))
    if isinstance(value, NotSensitiveValue):
        if representation == "text":
            return RedactedText(str(value))
        return RedactedStructured(to_jsonable(value, engine))
    if table is None:
        raise DeclarationError(
            f"{type(value).__qualname__} cannot be rendered for a sink: declare it with @sensitive, "
            "@sensitive_display or @not_sensitive, wrap it, or use a not_sensitive_* escape hatch"
        )

    if representation == "text":
        if engine.display_table(type(value)) is not None:
            return RedactedText(engine.format_redacted(value))
        return RedactedText(repr(value))
    if not (table.traversable or table.passthrough):
        return RedactedStructured(engine.format_redacted(value))
    return RedactedStructured(to_jsonable(engine.redact(value), engine))


class _SinkWrapper(LogSafe, CloudWatchSafe):
    __slots__ = ("value",)
    representation: Representation = "text"

    def __init__(self, value: Any):
        self.value = value

    def to_redacted_output(self, representation: Optional[Representation] = None) -> RedactedOutput:
        return to_redacted_output(self.value, self.representation)

    def __str__(self) -> str:
        return self.to_redacted_output().render()

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self})"


class RedactedDisplay(_SinkWrapper):
    """Renders a declared value as redacted text."""

    representation = "text"


class RedactedJson(_SinkWrapper):
    """Renders a declared value as redacted JSON."""

    representation = "structured"


def redacted_display(value: Any) -> RedactedDisplay:
    return RedactedDisplay(value)


def redacted_json(value: Any) -> RedactedJson:
    return RedactedJson(value)


class _NotSensitiveOutput(LogSafe, CloudWatchSafe):
    """Escape hatch: the caller vouches that value is safe to emit raw."""

    __slots__ = ("value",)

    def __init__(self, value: Any):
        self.value = value

    @abstractmethod
    def _text(self) -> str:
        """The raw text this escape hatch emits."""

    def to_redacted_output(self, representation: Optional[Representation] = None) -> RedactedOutput:
        return RedactedText(self._text())

    def __str__(self) -> str:
        return self._text()

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._text()!r})"


class NotSensitiveStr(_NotSensitiveOutput):
    def _text(self) -> str:
        return str(self.value)


class NotSensitiveRepr(_NotSensitiveOutput):
    def _text(self) -> str:
        with raw_reprs():
            return repr(self.value)


class NotSensitiveJson(_NotSensitiveOutput):
    def _text(self) -> str:
        return json.dumps(self.value, sort_keys=True, default=str)

    def to_redacted_output(self, representation: Optional[Representation] = None) -> RedactedOutput:
        return RedactedStructured(self.value)


def not_sensitive_str(value: Any) -> NotSensitiveStr:
    """Emit str(value) unredacted."""
    return NotSensitiveStr(value)


def not_sensitive_repr(value: Any) -> NotSensitiveRepr:
    """Emit repr(value) unredacted, including the raw repr of declared classes."""
    return NotSensitiveRepr(value)


def not_sensitive_json(value: Any) -> NotSensitiveJson:
    """Emit value as JSON unredacted. value must be JSON-compatible."""
    return NotSensitiveJson(value)


LogSafe.register(SensitiveValue)
LogSafe.register(NotSensitiveValue)
CloudWatchSafe.register(SensitiveValue)
CloudWatchSafe.register(NotSensitiveValue)


def is_log_safe(value: Any) -> bool:
    return isinstance(value, LogSafe)


def is_cloudwatch_safe(value: Any) -> bool:
    return isinstance(value, CloudWatchSafe)
