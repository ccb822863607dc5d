"""
Declaration decorators - register dataclasses with the redaction engines.

    @sensitive                      structured redaction: redact(value) returns a
                                    redacted copy, repr() shows that copy
    @sensitive_display(template)    redacted str() through a display template
    @not_sensitive                  the class never carries sensitive data

Decorators go above @dataclass. @sensitive and @sensitive_display combine;
@not_sensitive excludes both.

Every field is classified when the decorator runs, so a bad declaration fails
at import time instead of when a value is first logged. Annotations that are
forward references are resolved on first use instead; call
check_declarations() (e.g. in a test) to force resolution and surface any
error early.

Subclasses of a @sensitive or @sensitive_display class are declared like
their base as they are created (their fields are classified on first use), so an undecorated subclass never falls back to a raw repr or an
unredacted copy. Decorate the subclass itself to give it its own template.
"""

import dataclasses
import logging
import typing
from typing import Any, Callable, Optional

from .classifier import CapabilityRegistry, ContainerTable, FieldSpec, default_registry
from .config import get_settings
from .engine import get_default_engine, reprs_are_raw, raw_reprs
from .errors import DeclarationError, PassthroughDeclarationError
from .markers import split_annotation
from .template import Template, parse_template, referenced_fields

logger = logging.getLogger(__name__)


def _require_dataclass(cls: Any, decorator: str) -> None:
    if not isinstance(cls, type) or not dataclasses.is_dataclass(cls):
        raise DeclarationError(f"@{decorator} must decorate a dataclass (place it above @dataclass), got {cls!r}")


def _type_hints(cls: type) -> dict[str, Any]:
    return typing.get_type_hints(cls, include_extras=True)


def _classify_fields(
    cls: type, registry: CapabilityRegistry, names: Optional[set[str]] = None
) -> tuple[FieldSpec, ...]:
    hints = _type_hints(cls)
    specs = []
    for index, field in enumerate(dataclasses.fields(cls)):
        if names is not None and field.name not in names:
            continue
        specs.append(registry.classify_field(cls, field.name, index, hints[field.name]))
    return tuple(specs)


def _declare(cls: type, registry: CapabilityRegistry, resolve: Callable[[], None]) -> None:
    """Run resolve now, or defer it until the class's forward references exist."""
    try:
        resolve()
    except NameError:
        registry.defer(cls, _strict(cls, resolve))


def _strict(cls: type, resolve: Callable[[], None]) -> Callable[[], None]:
    def strict_resolve() -> None:
        try:
            resolve()
        except NameError as e:
            raise DeclarationError(f"cannot resolve field annotation: {e}", cls.__qualname__) from e

    return strict_resolve


def _own_table(value: Any) -> ContainerTable:
    table = get_default_engine().registry.table_for(type(value))
    if table is None:
        raise DeclarationError(f"{type(value).__qualname__} is not declared")
    return table


def _redacted_repr(self) -> str:
    table = _own_table(self)
    if reprs_are_raw() or get_settings().show_unredacted:
        return table.raw_repr(self)
    redacted = get_default_engine().redact_container(self, table)
    with raw_reprs():
        return table.raw_repr(redacted)


def _redacted_str(self) -> str:
    return get_default_engine().format_redacted(self)


def _dataclass_repr(self) -> str:
    """The repr @dataclass would have generated."""
    shown = ", ".join(
        f"{field.name}={getattr(self, field.name)!r}" for field in dataclasses.fields(self) if field.repr
    )
    return f"{type(self).__qualname__}({shown})"


def _declare_subclass(sub: type, registry: CapabilityRegistry) -> None:
    """Declare a subclass of a decorated class the way its nearest declared base is."""
    base_table = next((t for t in map(registry.peek, sub.__mro__[1:]) if t is not None), None)
    if base_table is None or base_table.passthrough:
        return
    table = registry.container(sub)
    if table.traversable or table.template is not None:
        return
    # Set before @dataclass runs on sub, so it keeps these instead of generating raw ones.
    if base_table.traversable:
        table.traversable = True
        table.raw_repr = _dataclass_repr

        def resolve() -> None:
            _require_dataclass(sub, "sensitive")
            table.fields = _classify_fields(sub, registry)

        registry.defer(sub, _strict(sub, resolve))
        sub.__repr__ = _redacted_repr
    else:
        table.raw_repr = _dataclass_repr
        sub.__repr__ = _redacted_str
    logger.debug(f"Declared subclass {sub.__qualname__} like its base {base_table.cls.__qualname__}")


def _guard_subclasses(cls: type, registry: CapabilityRegistry) -> None:
    """Make every future subclass of cls redacted too, decorated or not."""
    if getattr(cls, "__redaction_guarded__", False):
        return
    own_hook = cls.__dict__.get("__init_subclass__")

    def __init_subclass__(sub, **kwargs):
        if own_hook is not None:
            own_hook.__get__(None, sub)(**kwargs)
        else:
            super(cls, sub).__init_subclass__(**kwargs)
        _declare_subclass(sub, registry)

    cls.__init_subclass__ = classmethod(__init_subclass__)
    cls.__redaction_guarded__ = True


def _install_redacted_repr(cls: type) -> None:
    cls.__repr__ = _redacted_repr


def _install_display(cls: type, table: ContainerTable) -> None:
    cls.__str__ = _redacted_str
    if not table.traversable:
        cls.__repr__ = _redacted_str


def sensitive(cls: Optional[type] = None):
    """
    Declare a dataclass for structured redaction.

    Every field is classified: nested declared classes are recursed into,
    fields annotated Sensitive(policy) are redacted with that policy, and
    everything else is copied unchanged.

    Example:
        @sensitive
        @dataclass
        class Login:
            user: str
            password: Annotated[str, Sensitive(Secret)]

        redact(Login("alice", "hunter2"))
        # Login(user='alice', password='[REDACTED]')

    Raises:
        DeclarationError: if any field cannot be classified.
    """
    registry = default_registry

    def decorate(cls: type) -> type:
        _require_dataclass(cls, "sensitive")
        table = registry.container(cls)
        if table.passthrough:
            raise DeclarationError("@sensitive cannot be combined with @not_sensitive", cls.__qualname__)
        if table.traversable:
            return cls

        def resolve() -> None:
            table.fields = _classify_fields(cls, registry)

        _declare(cls, registry, resolve)
        table.traversable = True
        if table.raw_repr is None:
            table.raw_repr = cls.__repr__
        _install_redacted_repr(cls)
        _guard_subclasses(cls, registry)
        if issubclass(cls, BaseException) and "__str__" not in cls.__dict__:
            # BaseException.__str__ would print the raw constructor arguments.
            cls.__str__ = cls.__repr__
        logger.debug(f"Declared sensitive class {cls.__qualname__}")
        return cls

    if cls is None:
        return decorate
    return decorate(cls)


def sensitive_display(template: str):
    """
    Give a dataclass a redacted str() rendered from a display template.

    Only the fields the template references are classified, so the class may
    hold fields of types the classifier knows nothing about.

    Example:
        @sensitive_display("login failed for {user} with {password}")
        @dataclass
        class LoginFailed(Exception):
            user: str
            password: Annotated[str, Sensitive(Secret)]

        str(LoginFailed("alice", "hunter2"))
        # "login failed for alice with [REDACTED]"

    Raises:
        TemplateError: malformed template or a reference to an unknown field.
        DeclarationError: a referenced field cannot be classified.
    """
    registry = default_registry

    def decorate(cls: type) -> type:
        _require_dataclass(cls, "sensitive_display")
        table = registry.container(cls)
        if table.passthrough:
            raise DeclarationError("@sensitive_display cannot be combined with @not_sensitive", cls.__qualname__)
        if table.template is not None:
            raise DeclarationError("a class carries a single display template", cls.__qualname__)

        owner = cls.__qualname__
        field_names = [field.name for field in dataclasses.fields(cls)]
        pieces = parse_template(template, field_names, owner)
        names = referenced_fields(pieces)

        def resolve() -> None:
            specs = {spec.name: spec for spec in _classify_fields(cls, registry, names)}
            table.template = Template(template, pieces, specs, owner)

        _declare(cls, registry, resolve)
        if table.raw_repr is None:
            table.raw_repr = cls.__repr__
        _install_display(cls, table)
        _guard_subclasses(cls, registry)
        logger.debug(f"Declared display template for {owner}: {template!r}")
        return cls

    return decorate


def not_sensitive(cls: Optional[type] = None):
    """
    Declare that a dataclass never carries sensitive data.

    Fields of this type are copied unchanged by traversal and rendered raw by
    templates. Sensitive/NotSensitive markers inside it are rejected: a
    passthrough class has nothing to redact and nothing to exempt.
    """
    registry = default_registry

    def decorate(cls: type) -> type:
        _require_dataclass(cls, "not_sensitive")
        table = registry.container(cls)
        if table.traversable or table.template is not None:
            raise DeclarationError(
                "@not_sensitive cannot be combined with @sensitive or @sensitive_display", cls.__qualname__
            )

        def resolve() -> None:
            hints = _type_hints(cls)
            for field in dataclasses.fields(cls):
                _, marker = split_annotation(hints[field.name], cls.__qualname__, field.name)
                if marker is not None:
                    raise PassthroughDeclarationError(
                        f"{marker!r} has no effect on a @not_sensitive class", cls.__qualname__, field.name
                    )

        _declare(cls, registry, resolve)
        table.passthrough = True
        cls.__redaction_passthrough__ = True
        logger.debug(f"Declared non-sensitive class {cls.__qualname__}")
        return cls

    if cls is None:
        return decorate
    return decorate(cls)


def check_declarations(registry: Optional[CapabilityRegistry] = None) -> list[type]:
    """Resolve every deferred declaration now. Returns the classes resolved."""
    registry = registry if registry is not None else default_registry
    return registry.resolve_pending()
