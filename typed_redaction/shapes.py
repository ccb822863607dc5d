"""
Type shapes - the resolved form of a field's declared type.

The classifier turns every annotation into a small tree of shapes once, when
a class is declared. Traversal and template formatting then walk the shape
tree alongside the runtime value instead of re-inspecting annotations.
"""

from enum import Enum
from typing import Any, Iterator, Optional


class ValueCapability(Enum):
    """What redaction can do with values of a type."""

    CONTAINER = "container"
    SCALAR_LEAF = "scalar_leaf"
    STRING_LEAF = "string_leaf"
    OPAQUE_FULL_REDACT = "opaque_full_redact"
    DELEGATING_CONTAINER = "delegating_container"


class TypeShape:
    capability: ValueCapability
    declared: Any

    def accepts(self, value: Any) -> bool:
        raise NotImplementedError

    def children(self) -> tuple["TypeShape", ...]:
        return ()

    def leaves(self) -> Iterator["TypeShape"]:
        """Yield the innermost shapes, looking through delegating containers and None."""
        if isinstance(self, NoneShape):
            return
        if self.capability is ValueCapability.DELEGATING_CONTAINER:
            for child in self.children():
                yield from child.leaves()
        else:
            yield self

    def needs_walk(self) -> bool:
        """True when an unannotated value of this shape may change under traversal."""
        return any(
            (
                leaf.capability in (ValueCapability.CONTAINER, ValueCapability.OPAQUE_FULL_REDACT)
                and not isinstance(leaf, PassthroughShape)
            )
            or getattr(leaf, "default_policy", None) is not None
            for leaf in self.leaves()
        )

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.declared!r}>"


class NoneShape(TypeShape):
    capability = ValueCapability.SCALAR_LEAF
    declared = type(None)

    def accepts(self, value: Any) -> bool:
        return value is None


class LeafShape(TypeShape):
    """A string-like or scalar leaf. String leaves carry the adapter used to redact them."""

    def __init__(self, declared: type, capability: ValueCapability, adapter: Any = None):
        self.declared = declared
        self.capability = capability
        self.adapter = adapter

    @property
    def default_policy(self):
        return getattr(self.adapter, "default_policy", None)

    def accepts(self, value: Any) -> bool:
        return isinstance(value, self.declared)


class PassthroughShape(TypeShape):
    """A registered non-sensitive type or a Literal: never transformed."""

    capability = ValueCapability.CONTAINER

    def __init__(self, declared: Any, runtime_types: tuple[type, ...]):
        self.declared = declared
        self.runtime_types = runtime_types

    def accepts(self, value: Any) -> bool:
        return isinstance(value, self.runtime_types)

    def needs_walk(self) -> bool:
        return False


class ContainerShape(TypeShape):
    """A registered container class. Its field table is looked up when walked."""

    capability = ValueCapability.CONTAINER

    def __init__(self, declared: Any, cls: type):
        self.declared = declared
        self.cls = cls

    def accepts(self, value: Any) -> bool:
        return isinstance(value, self.cls)


class OpaqueShape(TypeShape):
    capability = ValueCapability.OPAQUE_FULL_REDACT

    def __init__(self, declared: Any):
        self.declared = declared

    def accepts(self, value: Any) -> bool:
        return True


class UnionShape(TypeShape):
    capability = ValueCapability.DELEGATING_CONTAINER

    def __init__(self, declared: Any, options: tuple[TypeShape, ...]):
        self.declared = declared
        self.options = options

    def children(self) -> tuple[TypeShape, ...]:
        return self.options

    def accepts(self, value: Any) -> bool:
        return self.choose(value) is not None

    def choose(self, value: Any) -> Optional[TypeShape]:
        for option in self.options:
            if not isinstance(option, OpaqueShape) and option.accepts(value):
                return option
        for option in self.options:
            if isinstance(option, OpaqueShape):
                return option
        return None


class CollectionShape(TypeShape):
    """list, set, frozenset, homogeneous tuple and their abstract counterparts."""

    capability = ValueCapability.DELEGATING_CONTAINER

    def __init__(self, declared: Any, origin: type, item: TypeShape):
        self.declared = declared
        self.origin = origin
        self.item = item

    def children(self) -> tuple[TypeShape, ...]:
        return (self.item,)

    def accepts(self, value: Any) -> bool:
        return isinstance(value, self.origin) and not isinstance(value, (str, bytes))


class FixedTupleShape(TypeShape):
    capability = ValueCapability.DELEGATING_CONTAINER

    def __init__(self, declared: Any, items: tuple[TypeShape, ...]):
        self.declared = declared
        self.items = items

    def children(self) -> tuple[TypeShape, ...]:
        return self.items

    def accepts(self, value: Any) -> bool:
        return isinstance(value, tuple) and len(value) == len(self.items)


class MappingShape(TypeShape):
    """dict and Mapping: values are walked, keys are never redacted."""

    capability = ValueCapability.DELEGATING_CONTAINER

    def __init__(self, declared: Any, origin: type, value: TypeShape):
        self.declared = declared
        self.origin = origin
        self.value = value

    def children(self) -> tuple[TypeShape, ...]:
        return (self.value,)

    def accepts(self, value: Any) -> bool:
        return isinstance(value, self.origin)
