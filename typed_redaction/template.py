"""
Template Formatting Engine - redacted str() for declared classes.

A display template uses str.format syntax and is validated once, when
@sensitive_display decorates the class:

    @sensitive_display("login failed for {user} with {password}")
    @dataclass
    class LoginFailed:
        user: str
        password: Annotated[str, Sensitive(Secret)]

    format_redacted(LoginFailed("alice", "hunter2"))
    # "login failed for alice with [REDACTED]"

Supported placeholders: {name}, {0} (fields in declaration order), {}
(automatic numbering), {{ and }} escapes, !r / !s conversions and string
format specs ({user:>10}). Attribute access ({user.name}), indexing
({items[0]}) and nested replacement fields in a format spec are rejected.

Only the fields a placeholder references are classified or read.
"""

import string
from dataclasses import dataclass
from typing import Any, Optional

from .base_policy import RedactionPolicy
from .classifier import FieldSpec, FieldTreatment
from .config import RedactionSettings
from .engine import RedactionEngine, raw_reprs
from .errors import TemplateError
from .shapes import ContainerShape, OpaqueShape, TypeShape
from .text_policy import REDACTED_PLACEHOLDER
from .wrappers import SensitiveValue

_CONVERSIONS = {None, "r", "s"}


@dataclass(frozen=True)
class Placeholder:
    field: str
    as_repr: bool
    format_spec: str


def parse_template(source: str, field_names: list[str], owner: str = "") -> list[tuple[str, Optional[Placeholder]]]:
    """
    Split a template into (literal, placeholder) pieces, resolving positional
    placeholders to field names.

    Raises:
        TemplateError: on any syntax or reference problem.
    """
    if not isinstance(source, str):
        raise TemplateError(f"display template must be a str, got {source!r}", owner)
    try:
        parsed = list(string.Formatter().parse(source))
    except ValueError as e:
        raise TemplateError(f"malformed template {source!r}: {e}", owner) from e

    pieces: list[tuple[str, Optional[Placeholder]]] = []
    auto_index = 0
    numbering: Optional[str] = None
    for literal, field_name, format_spec, conversion in parsed:
        if field_name is None:
            pieces.append((literal, None))
            continue

        if field_name == "":
            if numbering == "manual":
                raise TemplateError("cannot switch from manual field numbering to automatic", owner)
            numbering = "auto"
            index: Optional[int] = auto_index
            auto_index += 1
        elif field_name.isdigit():
            if numbering == "auto":
                raise TemplateError("cannot switch from automatic field numbering to manual", owner)
            numbering = "manual"
            index = int(field_name)
        elif field_name.isidentifier():
            index = None
        else:
            raise TemplateError(
                f"placeholder {{{field_name}}} uses attribute or index access; reference fields by name only",
                owner,
            )

        if index is not None:
            if index >= len(field_names):
                raise TemplateError(
                    f"positional placeholder {{{index}}} is out of range ({len(field_names)} fields)", owner
                )
            name = field_names[index]
        elif field_name not in field_names:
            raise TemplateError(f"template references unknown field {field_name!r}", owner)
        else:
            name = field_name

        if conversion not in _CONVERSIONS:
            raise TemplateError(f"unsupported conversion !{conversion} (use !r or !s)", owner, name)
        if "{" in format_spec or "}" in format_spec:
            raise TemplateError("nested replacement fields in a format spec are not supported", owner, name)
        try:
            format("", format_spec)
        except ValueError as e:
            raise TemplateError(f"invalid format spec {format_spec!r} for text: {e}", owner, name) from e

        pieces.append((literal, Placeholder(name, conversion == "r", format_spec)))
    return pieces


def referenced_fields(pieces: list[tuple[str, Optional[Placeholder]]]) -> set[str]:
    return {placeholder.field for _, placeholder in pieces if placeholder is not None}


def raw_text(value: Any, as_repr: bool) -> str:
    if as_repr:
        return repr(value)
    redacted_str = getattr(value, "__redacted_str__", None)
    if redacted_str is not None:
        return redacted_str()
    return str(value)


def _unredacted_text(value: Any, as_repr: bool) -> str:
    if isinstance(value, SensitiveValue):
        value = value.expose()
    return repr(value) if as_repr else str(value)


class Template:
    """A compiled display template bound to the FieldSpecs it references."""

    def __init__(self, source: str, pieces: list[tuple[str, Optional[Placeholder]]], specs: dict[str, FieldSpec], owner: str = ""):
        self.source = source
        self.pieces = pieces
        self.specs = specs
        for name, spec in specs.items():
            if (
                spec.treatment is FieldTreatment.EXPLICIT_PASSTHROUGH
                and isinstance(spec.shape, ContainerShape)
                and issubclass(spec.shape.cls, SensitiveValue)
            ):
                raise TemplateError(
                    "a SensitiveValue field marked NotSensitive has no raw text form; drop the marker "
                    "or call .expose() yourself",
                    owner,
                    name,
                )

    def render(self, engine: RedactionEngine, value: Any, settings: RedactionSettings) -> str:
        """Render value with every referenced field redacted (or raw, when settings say so)."""
        parts = []
        for literal, placeholder in self.pieces:
            parts.append(literal)
            if placeholder is None:
                continue
            spec = self.specs[placeholder.field]
            field_value = getattr(value, spec.name)
            if settings.show_unredacted:
                text = self._render_unredacted(engine, field_value, placeholder.as_repr, settings)
            else:
                text = render_field(engine, field_value, spec, placeholder.as_repr, settings)
            parts.append(format(text, placeholder.format_spec))
        return "".join(parts)

    @staticmethod
    def _render_unredacted(engine: RedactionEngine, value: Any, as_repr: bool, settings: RedactionSettings) -> str:
        if not as_repr:
            if engine.display_table(type(value)) is not None:
                return engine.format_redacted(value, settings)
        with raw_reprs():
            return _unredacted_text(value, as_repr)

    def __repr__(self) -> str:
        return f"<Template {self.source!r}>"


def render_field(engine: RedactionEngine, value: Any, spec: FieldSpec, as_repr: bool, settings: RedactionSettings) -> str:
    if spec.treatment is FieldTreatment.EXPLICIT_PASSTHROUGH:
        with raw_reprs():
            return raw_text(value, as_repr)
    if spec.treatment is FieldTreatment.OPAQUE_REDACT:
        return raw_text(REDACTED_PLACEHOLDER, as_repr)
    return render_value(engine, value, spec.shape, spec.policy, as_repr, settings)


def render_value(
    engine: RedactionEngine,
    value: Any,
    shape: TypeShape,
    policy: Optional[RedactionPolicy],
    as_repr: bool,
    settings: RedactionSettings,
) -> str:
    """Text of one referenced field: the same redaction traversal applies, then str/repr."""
    if isinstance(shape, OpaqueShape):
        return raw_text(REDACTED_PLACEHOLDER, as_repr)
    if value is not None and policy is None and not as_repr:
        if engine.display_table(type(value)) is not None:
            return engine.format_redacted(value, settings)
    redacted = engine.walk(value, shape, policy)
    with raw_reprs():
        return raw_text(redacted, as_repr)
