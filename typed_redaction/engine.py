"""
RedactionEngine - Core engine for producing redacted copies of structured values.

This engine orchestrates:
1. Lookup of the per-class field table built by the declaration decorators
2. Recursive traversal of every field according to its FieldTreatment
3. Leaf-level policy application (strings, scalars, opaque values)

The engine never mutates its input: redact() returns a new object of the same
shape. Only the fields a policy (or an opaque/always-redacted type) covers
change; everything else is copied as-is.

Thread-safe: the engine holds no mutable state after construction.
"""

import collections
import collections.abc
import copy
import logging
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, Iterator, Optional

from .base_policy import RedactionPolicy
from .classifier import CapabilityRegistry, ContainerTable, FieldSpec, FieldTreatment, default_registry
from .config import RedactionSettings, get_settings
from .errors import DeclarationError
from .leaves import SCALAR_DEFAULTS, scalar_default
from .shapes import (
    CollectionShape,
    ContainerShape,
    FixedTupleShape,
    LeafShape,
    MappingShape,
    OpaqueShape,
    TypeShape,
    UnionShape,
    ValueCapability,
)
from .text_policy import REDACTED_PLACEHOLDER

logger = logging.getLogger(__name__)

_raw_reprs: ContextVar[bool] = ContextVar("typed_redaction_raw_reprs", default=False)


@contextmanager
def raw_reprs() -> Iterator[None]:
    """
    Make the redacting __repr__ installed on declared classes print raw.

    Used while printing a copy that has already been redacted, so nested
    values are not redacted a second time.
    """
    token = _raw_reprs.set(True)
    try:
        yield
    finally:
        _raw_reprs.reset(token)


def reprs_are_raw() -> bool:
    return _raw_reprs.get()


def _slot_names(cls: type) -> Iterator[str]:
    for base in cls.__mro__:
        slots = base.__dict__.get("__slots__", ())
        if isinstance(slots, str):
            slots = (slots,)
        for name in slots:
            if name not in ("__dict__", "__weakref__"):
                yield name


def _shallow_copy(value: Any) -> Any:
    # Exceptions and frozen dataclasses cannot go through copy.copy() or __init__ reliably.
    cls = type(value)
    new = cls.__new__(cls)
    if hasattr(value, "__dict__"):
        new.__dict__.update(value.__dict__)
    for name in _slot_names(cls):
        if hasattr(value, name):
            object.__setattr__(new, name, getattr(value, name))
    if isinstance(value, BaseException):
        # args hold the raw constructor arguments.
        new.args = ()
    return new


def _rebuild_collection(value: Any, items: list) -> Any:
    cls = type(value)
    if cls in (list, tuple, set, frozenset):
        return cls(items)
    if isinstance(value, tuple) and hasattr(cls, "_make"):
        return cls._make(items)
    if isinstance(value, collections.deque):
        return cls(items, value.maxlen)
    try:
        return cls(items)
    except (TypeError, ValueError) as e:
        logger.debug(f"Cannot rebuild {cls.__qualname__} from its items ({e}); using a builtin collection")
    if isinstance(value, tuple):
        return tuple(items)
    if isinstance(value, frozenset):
        return frozenset(items)
    if isinstance(value, collections.abc.Set):
        return set(items)
    return list(items)


def _rebuild_mapping(value: Any, items: list) -> Any:
    if isinstance(value, dict):
        new = copy.copy(value)
        for key, item in items:
            new[key] = item
        return new
    try:
        return type(value)(dict(items))
    except (TypeError, ValueError) as e:
        logger.debug(f"Cannot rebuild {type(value).__qualname__} from a dict ({e}); using a dict")
    return dict(items)


def text_of(value: Any) -> str:
    """Text form of a value that is about to go through a policy. Never raises for wrappers."""
    redacted_str = getattr(value, "__redacted_str__", None)
    if redacted_str is not None:
        return redacted_str()
    return str(value)


class RedactionEngine:
    """
    Engine for producing redacted copies of declared values.

    Example:
        engine = RedactionEngine()

        @sensitive
        @dataclass
        class Login:
            user: str
            password: Annotated[str, Sensitive(Secret)]

        engine.redact(Login("alice", "hunter2"))
        # Login(user='alice', password='[REDACTED]')

    Thread Safety:
        redact() and format_redacted() are safe to call concurrently. The
        registry should only be populated at import/declaration time.
    """

    def __init__(
        self,
        registry: Optional[CapabilityRegistry] = None,
        settings: Optional[RedactionSettings] = None,
    ):
        """
        Initialize the RedactionEngine.

        Args:
            registry: Capability registry to consult. Defaults to the registry
                      the decorators populate.
            settings: Rendering settings. Defaults to the environment-derived
                      settings at call time.
        """
        self.registry = registry if registry is not None else default_registry
        self._settings = settings

    @property
    def settings(self) -> RedactionSettings:
        return self._settings if self._settings is not None else get_settings()

    def table(self, value: Any) -> Optional[ContainerTable]:
        return self.registry.table_for(type(value))

    def redact(self, value: Any) -> Any:
        """
        Return a redacted copy of value.

        value must be container-capable (a declared class or a wrapper), or a
        list/tuple/set/dict of such values. Leaves at the top level pass
        through unchanged, as they would inside an unannotated field.

        Raises:
            DeclarationError: value's type has no redaction capability.
        """
        if value is None or isinstance(value, (str, bytes)) or type(value) in SCALAR_DEFAULTS:
            return value
        table = self.table(value)
        if table is not None:
            if not (table.traversable or table.passthrough):
                raise DeclarationError(
                    f"{type(value).__qualname__} only declares a display template; "
                    "decorate it with @sensitive to produce redacted copies"
                )
            return self.redact_container(value, table)
        if hasattr(value, "__redact__"):
            return value.__redact__()
        if isinstance(value, collections.abc.Mapping):
            return _rebuild_mapping(value, [(k, self.redact(v)) for k, v in value.items()])
        if isinstance(value, (list, tuple, set, frozenset)):
            return _rebuild_collection(value, [self.redact(item) for item in value])
        if self.registry.is_passthrough(type(value)):
            return value
        raise DeclarationError(f"{type(value).__qualname__} has no redaction capability")

    def redact_batch(self, values: list[Any]) -> list[Any]:
        """Redact several values; each is handled exactly like redact()."""
        return [self.redact(value) for value in values]

    def format_redacted(self, value: Any, settings: Optional[RedactionSettings] = None) -> str:
        """
        Render value through its display template with every referenced field redacted.

        Raises:
            DeclarationError: value's type has no display template.
        """
        table = self.display_table(type(value))
        if table is None:
            raise DeclarationError(f"{type(value).__qualname__} has no display template")
        return table.template.render(self, value, settings if settings is not None else self.settings)

    def display_table(self, cls: type) -> Optional[ContainerTable]:
        """The nearest table in cls.__mro__ that carries a display template."""
        for base in cls.__mro__:
            table = self.registry.table_for(base)
            if table is not None and table.displayable:
                return table
        return None

    # -- traversal --------------------------------------------------------

    def redact_container(self, value: Any, table: ContainerTable) -> Any:
        if table.passthrough:
            return value
        if not table.traversable:
            # Display-only: its str/repr already render through the template.
            logger.debug(f"{type(value).__qualname__} has no structured field table; leaving it unchanged")
            return value
        new = _shallow_copy(value)
        for spec in table.fields:
            object.__setattr__(new, spec.name, self.redact_field(getattr(value, spec.name), spec))
        return new

    def redact_field(self, value: Any, spec: FieldSpec) -> Any:
        treatment = spec.treatment
        if treatment in (FieldTreatment.PASSTHROUGH_LEAF, FieldTreatment.EXPLICIT_PASSTHROUGH):
            return value
        if treatment is FieldTreatment.OPAQUE_REDACT:
            return REDACTED_PLACEHOLDER
        if treatment is FieldTreatment.POLICY_LEAF:
            return self.walk(value, spec.shape, spec.policy)
        return self.walk(value, spec.shape)

    def walk(self, value: Any, shape: TypeShape, policy: Optional[RedactionPolicy] = None) -> Any:
        """Apply a field's shape (and policy, if any) to a runtime value."""
        if isinstance(shape, OpaqueShape):
            return REDACTED_PLACEHOLDER
        if value is None:
            return None
        if isinstance(shape, UnionShape):
            chosen = shape.choose(value)
            if chosen is None:
                return self._mismatch(value, shape, policy)
            return self.walk(value, chosen, policy)
        if not shape.accepts(value):
            return self._mismatch(value, shape, policy)

        if isinstance(shape, LeafShape):
            if shape.capability is ValueCapability.SCALAR_LEAF:
                return scalar_default(value) if policy is not None else value
            if policy is not None:
                return shape.adapter.redact(value, policy)
            if shape.default_policy is not None:
                return shape.adapter.redact(value, shape.default_policy)
            return value
        if isinstance(shape, ContainerShape):
            return self._walk_container(value)
        if isinstance(shape, CollectionShape):
            return _rebuild_collection(value, [self.walk(item, shape.item, policy) for item in value])
        if isinstance(shape, FixedTupleShape):
            return _rebuild_collection(
                value, [self.walk(item, item_shape, policy) for item, item_shape in zip(value, shape.items)]
            )
        if isinstance(shape, MappingShape):
            return _rebuild_mapping(value, [(key, self.walk(item, shape.value, policy)) for key, item in value.items()])
        return value

    def _walk_container(self, value: Any) -> Any:
        # Dispatch on the runtime class so subclasses with their own table are covered.
        table = self.table(value)
        if table is not None:
            return self.redact_container(value, table)
        if hasattr(value, "__redact__"):
            return value.__redact__()
        logger.warning(f"{type(value).__qualname__} is not registered; leaving it unchanged")
        return value

    def _mismatch(self, value: Any, shape: TypeShape, policy: Optional[RedactionPolicy]) -> Any:
        if policy is None:
            if self.table(value) is not None or hasattr(value, "__redact__"):
                return self._walk_container(value)
            return value
        logger.warning(
            f"Value of type {type(value).__qualname__} does not match declared type "
            f"{shape.declared!r}; redacting it as text with policy {policy.name}"
        )
        if policy.is_full and type(value) in SCALAR_DEFAULTS:
            return scalar_default(value)
        return policy.apply(text_of(value))


# Singleton instance for convenience
_default_engine: Optional[RedactionEngine] = None


def get_default_engine() -> RedactionEngine:
    """
    Get the default RedactionEngine instance.

    This is a convenience function for simple use cases.
    For more control, instantiate RedactionEngine directly.
    """
    global _default_engine
    if _default_engine is None:
        _default_engine = RedactionEngine()
    return _default_engine


def redact(value: Any) -> Any:
    """Return a redacted copy of value using the default engine."""
    return get_default_engine().redact(value)


def format_redacted(value: Any, settings: Optional[RedactionSettings] = None) -> str:
    """Render value's display template with redaction, using the default engine."""
    return get_default_engine().format_redacted(value, settings)
