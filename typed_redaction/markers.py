"""
Field markers carried in typing.Annotated metadata.

    password: Annotated[str, Sensitive(Secret)]
    cause: Annotated[ForeignError, NotSensitive]

A field carries at most one marker. Metadata that is not a marker is ignored,
so markers combine freely with other Annotated consumers.
"""

from typing import Annotated, Any, Optional, Union, get_args, get_origin

from .base_policy import RedactionPolicy
from .errors import PassthroughDeclarationError, PolicyDeclarationError


class Sensitive:
    """Marks a field as sensitive under the given policy."""

    __slots__ = ("policy",)

    def __init__(self, policy: RedactionPolicy):
        if not isinstance(policy, RedactionPolicy):
            raise PolicyDeclarationError(
                f"expected a RedactionPolicy (e.g. Sensitive(Secret), Sensitive(Token)), got {policy!r}"
            )
        self.policy = policy

    def __eq__(self, other: object) -> bool:
        return isinstance(other, Sensitive) and other.policy == self.policy

    def __hash__(self) -> int:
        return hash(("Sensitive", self.policy))

    def __repr__(self) -> str:
        return f"Sensitive({self.policy.name})"


class _NotSensitiveMarker:
    """Marks a field as explicitly exempt from redaction."""

    _instance: Optional["_NotSensitiveMarker"] = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __call__(self, *args, **kwargs):
        raise PassthroughDeclarationError("NotSensitive does not take arguments")

    def __repr__(self) -> str:
        return "NotSensitive"


NotSensitive = _NotSensitiveMarker()

Marker = Union[Sensitive, _NotSensitiveMarker]


def split_annotation(annotation: Any, owner: str = "", field: str = "") -> tuple[Any, Optional[Marker]]:
    """
    Strip Annotated layers from a field annotation.

    Returns the bare type and the single marker found in the metadata (or
    None). Raises PolicyDeclarationError for a bare Sensitive without a
    policy and for more than one marker on the same field.
    """
    marker: Optional[Marker] = None
    while get_origin(annotation) is Annotated:
        base, *metadata = get_args(annotation)
        for item in metadata:
            if item is Sensitive:
                raise PolicyDeclarationError(
                    "missing policy: use Sensitive(Policy) (e.g. Sensitive(Secret), Sensitive(Token))",
                    owner,
                    field,
                )
            if isinstance(item, (Sensitive, _NotSensitiveMarker)):
                if marker is not None:
                    raise PolicyDeclarationError(
                        "multiple Sensitive or NotSensitive markers on the same field",
                        owner,
                        field,
                    )
                marker = item
        annotation = base
    return annotation, marker
