"""
Capability Classifier - decides, once per field declaration, how a field is redacted.

The registry maps types to capabilities:

    - container classes declared with @sensitive / @sensitive_display /
      @not_sensitive, plus self-redacting wrappers (SensitiveValue,
      NotSensitiveValue)
    - passthrough types (dates, UUIDs, enums, ... and anything passed to
      register_passthrough)
    - string leaves (str and registered StringLeafAdapters) and scalars
    - opaque types (Any, object, type variables), always fully redacted

classify_field() applies the decision order below to a field's declared
type and its marker; the first match wins:

    1. NotSensitive                 -> EXPLICIT_PASSTHROUGH
    2. Sensitive(policy)            -> POLICY_LEAF (leaf-capable types only)
    3. container, no marker         -> RECURSE
    4. leaf/delegating, no marker   -> PASSTHROUGH_LEAF (RECURSE when elements need it)
       opaque, no marker            -> OPAQUE_REDACT
    5. unknown type                 -> UnknownCapabilityError

All checks raise DeclarationError subclasses at declaration time.
"""

import collections.abc
import logging
import typing
from dataclasses import dataclass
from enum import Enum
from types import UnionType
from typing import Annotated, Any, Callable, Optional, Union, get_args, get_origin

from .base_policy import RedactionPolicy
from .errors import (
    DeclarationError,
    PassthroughDeclarationError,
    PolicyDeclarationError,
    UnknownCapabilityError,
)
from .leaves import DEFAULT_LEAF_ADAPTERS, DEFAULT_PASSTHROUGH_TYPES, SCALAR_DEFAULTS, StringLeafAdapter
from .markers import Sensitive, _NotSensitiveMarker, split_annotation
from .shapes import (
    CollectionShape,
    ContainerShape,
    FixedTupleShape,
    LeafShape,
    MappingShape,
    NoneShape,
    OpaqueShape,
    PassthroughShape,
    TypeShape,
    UnionShape,
    ValueCapability,
)

logger = logging.getLogger(__name__)

_COLLECTION_ORIGINS = {
    list: list,
    set: set,
    frozenset: frozenset,
    collections.abc.Sequence: collections.abc.Sequence,
    collections.abc.MutableSequence: collections.abc.MutableSequence,
    collections.abc.Set: collections.abc.Set,
    collections.abc.MutableSet: collections.abc.MutableSet,
    collections.abc.Collection: collections.abc.Collection,
    collections.abc.Iterable: collections.abc.Collection,
}

_MAPPING_ORIGINS = {
    dict: dict,
    collections.abc.Mapping: collections.abc.Mapping,
    collections.abc.MutableMapping: collections.abc.MutableMapping,
}


class FieldTreatment(Enum):
    RECURSE = "recurse"
    PASSTHROUGH_LEAF = "passthrough_leaf"
    POLICY_LEAF = "policy_leaf"
    EXPLICIT_PASSTHROUGH = "explicit_passthrough"
    OPAQUE_REDACT = "opaque_redact"


@dataclass(frozen=True)
class FieldSpec:
    """The fixed treatment of one declared field."""

    name: str
    index: int
    shape: TypeShape
    treatment: FieldTreatment
    policy: Optional[RedactionPolicy] = None


@dataclass
class ContainerTable:
    """
    Everything the engines need to know about one registered class.

    fields is the full table for structured traversal. The template carries
    its own specs for the fields it references, so display-only classes never
    classify the rest. raw_repr is the repr the class had before decoration.
    """

    cls: type
    traversable: bool = False
    passthrough: bool = False
    fields: tuple[FieldSpec, ...] = ()
    template: Any = None
    raw_repr: Optional[Callable[[Any], str]] = None
    pending: bool = False
    error: Optional[DeclarationError] = None

    @property
    def displayable(self) -> bool:
        return self.template is not None


class CapabilityRegistry:
    """
    Registry of container tables, passthrough types and leaf adapters.

    Example:
        registry = CapabilityRegistry()
        registry.register_passthrough(MyForeignId)
        shape = registry.shape_of(list[MyForeignId])
    """

    def __init__(self, load_defaults: bool = True):
        self._containers: dict[type, ContainerTable] = {}
        self._passthrough: set[type] = set()
        self._leaf_adapters: dict[type, StringLeafAdapter] = {}
        self._pending: dict[type, Callable[[], None]] = {}

        if load_defaults:
            self._passthrough.update(DEFAULT_PASSTHROUGH_TYPES)
            self._leaf_adapters.update(DEFAULT_LEAF_ADAPTERS)

    # -- registration -----------------------------------------------------

    def register_passthrough(self, *types: type) -> None:
        """Declare foreign types (and their subclasses) as never sensitive."""
        for tp in types:
            if not isinstance(tp, type):
                raise DeclarationError(f"register_passthrough expects classes, got {tp!r}")
            self._passthrough.add(tp)
            logger.debug(f"Registered passthrough type: {tp.__qualname__}")

    def register_string_leaf(self, tp: type, adapter: StringLeafAdapter) -> None:
        """Declare tp as a string leaf redacted through adapter."""
        self._leaf_adapters[tp] = adapter
        logger.debug(f"Registered string leaf type: {tp.__qualname__}")

    def container(self, cls: type) -> ContainerTable:
        """Return the table for cls, creating an empty one on first use."""
        table = self._containers.get(cls)
        if table is None:
            table = ContainerTable(cls)
            self._containers[cls] = table
        return table

    def peek(self, cls: type) -> Optional[ContainerTable]:
        """The table for cls as declared so far, without resolving deferred parts."""
        return self._containers.get(cls)

    def defer(self, cls: type, resolve: Callable[[], None]) -> None:
        """Postpone part of a declaration until its forward references resolve."""
        self.container(cls).pending = True
        previous = self._pending.get(cls)
        if previous is None:
            self._pending[cls] = resolve
        else:
            self._pending[cls] = lambda: (previous(), resolve())
        logger.debug(f"Deferred declaration of {cls.__qualname__}")

    def _resolve(self, cls: type) -> None:
        table = self._containers[cls]
        resolve = self._pending.pop(cls)
        table.pending = False
        try:
            resolve()
        except DeclarationError as e:
            table.error = e
            raise

    def resolve_pending(self) -> list[type]:
        """Resolve every deferred declaration; raises the first DeclarationError found."""
        resolved = []
        for cls in list(self._pending):
            self._resolve(cls)
            resolved.append(cls)
        return resolved

    def table_for(self, cls: type) -> Optional[ContainerTable]:
        """The table for cls, resolving a deferred declaration first. Broken declarations raise."""
        table = self._containers.get(cls)
        if table is None:
            return None
        if table.pending:
            self._resolve(cls)
        if table.error is not None:
            raise DeclarationError(str(table.error)) from table.error
        return table

    def leaf_adapter_for(self, tp: type) -> Optional[StringLeafAdapter]:
        for base in tp.__mro__:
            adapter = self._leaf_adapters.get(base)
            if adapter is not None:
                return adapter
        return None

    def is_passthrough(self, tp: type) -> bool:
        return any(base in self._passthrough for base in tp.__mro__)

    def _is_scalar(self, tp: type) -> bool:
        return any(base in SCALAR_DEFAULTS for base in tp.__mro__)

    # -- shapes -----------------------------------------------------------

    def shape_of(self, annotation: Any, owner: str = "", field_name: str = "") -> TypeShape:
        """Resolve a bare (marker-free) annotation into a shape tree."""
        if annotation is None or annotation is type(None):
            return NoneShape()
        if annotation is Any or annotation is object or isinstance(annotation, typing.TypeVar):
            return OpaqueShape(annotation)

        origin = get_origin(annotation)
        args = get_args(annotation)

        if origin is Annotated:
            base, marker = split_annotation(annotation, owner, field_name)
            if marker is not None:
                raise DeclarationError(
                    "Sensitive/NotSensitive must annotate the field itself, not a nested type",
                    owner,
                    field_name,
                )
            return self.shape_of(base, owner, field_name)

        if origin is typing.Literal:
            return PassthroughShape(annotation, tuple({type(arg) for arg in args}))

        if origin is Union or origin is UnionType:
            options = tuple(self.shape_of(arg, owner, field_name) for arg in args)
            return UnionShape(annotation, options)

        if origin is tuple:
            if len(args) == 2 and args[1] is Ellipsis:
                return CollectionShape(annotation, tuple, self.shape_of(args[0], owner, field_name))
            if not args:
                return CollectionShape(annotation, tuple, OpaqueShape(Any))
            if args == ((),):
                return FixedTupleShape(annotation, ())
            return FixedTupleShape(annotation, tuple(self.shape_of(arg, owner, field_name) for arg in args))

        if origin in _COLLECTION_ORIGINS:
            item = self.shape_of(args[0], owner, field_name) if args else OpaqueShape(Any)
            return CollectionShape(annotation, _COLLECTION_ORIGINS[origin], item)

        if origin in _MAPPING_ORIGINS:
            value = self.shape_of(args[1], owner, field_name) if len(args) == 2 else OpaqueShape(Any)
            return MappingShape(annotation, _MAPPING_ORIGINS[origin], value)

        if origin is not None and isinstance(origin, type):
            # Parameterised user generics (e.g. SensitiveValue[str]) classify by their origin.
            annotation_cls = origin
        elif isinstance(annotation, type):
            annotation_cls = annotation
        else:
            raise UnknownCapabilityError(
                f"unsupported type annotation {annotation!r}", owner, field_name
            )

        if annotation_cls is tuple:
            return CollectionShape(annotation, tuple, OpaqueShape(Any))
        if annotation_cls in _COLLECTION_ORIGINS:
            return CollectionShape(annotation, _COLLECTION_ORIGINS[annotation_cls], OpaqueShape(Any))
        if annotation_cls in _MAPPING_ORIGINS:
            return MappingShape(annotation, _MAPPING_ORIGINS[annotation_cls], OpaqueShape(Any))

        return self._shape_of_class(annotation, annotation_cls, owner, field_name)

    def _shape_of_class(self, annotation: Any, cls: type, owner: str, field_name: str) -> TypeShape:
        if cls in self._containers or hasattr(cls, "__redact__"):
            return ContainerShape(annotation, cls)
        if self.is_passthrough(cls):
            return PassthroughShape(annotation, (cls,))
        adapter = self.leaf_adapter_for(cls)
        if adapter is not None:
            return LeafShape(cls, ValueCapability.STRING_LEAF, adapter)
        if self._is_scalar(cls):
            return LeafShape(cls, ValueCapability.SCALAR_LEAF)
        raise UnknownCapabilityError(
            f"type {cls.__qualname__} has no redaction capability; decorate it with "
            "@sensitive or @not_sensitive, wrap it in SensitiveValue/NotSensitiveValue, "
            "register it with register_passthrough, or annotate the field NotSensitive",
            owner,
            field_name,
        )

    # -- classification ---------------------------------------------------

    def classify_field(self, owner: type, name: str, index: int, annotation: Any) -> FieldSpec:
        """Compute the FieldSpec for one field from its full (possibly Annotated) annotation."""
        owner_name = owner.__qualname__
        bare, marker = split_annotation(annotation, owner_name, name)

        if isinstance(marker, _NotSensitiveMarker):
            shape = self._shape_or_opaque(bare, owner_name, name)
            self._check_explicit_passthrough(shape, owner_name, name)
            return FieldSpec(name, index, shape, FieldTreatment.EXPLICIT_PASSTHROUGH)

        shape = self.shape_of(bare, owner_name, name)

        if isinstance(marker, Sensitive):
            self._check_policy(shape, marker.policy, owner_name, name)
            return FieldSpec(name, index, shape, FieldTreatment.POLICY_LEAF, marker.policy)

        if isinstance(shape, PassthroughShape):
            return FieldSpec(name, index, shape, FieldTreatment.PASSTHROUGH_LEAF)
        if shape.capability is ValueCapability.CONTAINER:
            return FieldSpec(name, index, shape, FieldTreatment.RECURSE)
        if shape.capability is ValueCapability.OPAQUE_FULL_REDACT:
            return FieldSpec(name, index, shape, FieldTreatment.OPAQUE_REDACT)
        if shape.needs_walk():
            return FieldSpec(name, index, shape, FieldTreatment.RECURSE)
        return FieldSpec(name, index, shape, FieldTreatment.PASSTHROUGH_LEAF)

    def _shape_or_opaque(self, bare: Any, owner: str, name: str) -> TypeShape:
        # NotSensitive skips the capability check, so unknown types are fine here.
        try:
            return self.shape_of(bare, owner, name)
        except UnknownCapabilityError:
            return PassthroughShape(bare, (object,))

    def _check_explicit_passthrough(self, shape: TypeShape, owner: str, name: str) -> None:
        for leaf in [shape, *shape.leaves()]:
            if isinstance(leaf, OpaqueShape):
                raise PassthroughDeclarationError(
                    "opaque values (Any, object, type variables) are always redacted and "
                    "cannot be marked NotSensitive; wrap the value in NotSensitiveValue instead",
                    owner,
                    name,
                )
        if isinstance(shape, ContainerShape):
            table = self._containers.get(shape.cls)
            if getattr(shape.cls, "__redaction_passthrough__", False) or (table is not None and table.passthrough):
                raise PassthroughDeclarationError(
                    f"NotSensitive is redundant: {shape.cls.__qualname__} is already non-sensitive",
                    owner,
                    name,
                )

    def _check_policy(self, shape: TypeShape, policy: RedactionPolicy, owner: str, name: str) -> None:
        leaves = list(shape.leaves())
        if not leaves:
            raise PolicyDeclarationError(f"policy {policy.name} applied to a field that is always None", owner, name)
        for leaf in leaves:
            if isinstance(leaf, OpaqueShape):
                continue
            if isinstance(leaf, LeafShape):
                if leaf.capability is ValueCapability.SCALAR_LEAF and not policy.is_full:
                    raise PolicyDeclarationError(
                        f"scalar field of type {leaf.declared.__qualname__} only accepts a full "
                        f"redaction policy (e.g. Secret), got {policy.name}",
                        owner,
                        name,
                    )
                required = getattr(leaf.adapter, "required_policy", None)
                if required is not None and policy != required:
                    raise PolicyDeclarationError(
                        f"{leaf.declared.__qualname__} only accepts the {required.name} policy, got {policy.name}",
                        owner,
                        name,
                    )
                continue
            declared = getattr(leaf, "cls", leaf.declared)
            label = getattr(declared, "__qualname__", repr(declared))
            raise PolicyDeclarationError(
                f"policy {policy.name} cannot be applied to {label}: policies are for leaf values "
                "(str, scalars); remove the policy to let traversal walk into containers, or wrap "
                "foreign values in SensitiveValue",
                owner,
                name,
            )


default_registry = CapabilityRegistry()


def register_passthrough(*types: type) -> None:
    """Declare foreign types as non-sensitive in the default registry."""
    default_registry.register_passthrough(*types)


def register_string_leaf(
    tp: type,
    to_text: Callable[[Any], str] = str,
    from_text: Optional[Callable[[str], Any]] = None,
) -> None:
    """Declare tp as a string leaf in the default registry."""
    default_registry.register_string_leaf(
        tp, StringLeafAdapter(to_text=to_text, from_text=from_text or tp)
    )
