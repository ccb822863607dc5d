"""
Foreign-type wrappers - attach redaction behaviour to values the classifier
cannot inspect.

    SensitiveValue(raw_token, Token)        # always redacted, read via expose()
    NotSensitiveValue(vendor_error)         # always passed through, read via inner()

Both are container-capable: a field typed SensitiveValue[str] or
NotSensitiveValue[VendorError] needs no marker.
"""

from typing import Any, Callable, Generic, Optional, TypeVar

from .base_policy import RedactionPolicy
from .classifier import default_registry
from .errors import DeclarationError, PolicyDeclarationError
from .policies import DEFAULT_POLICY

T = TypeVar("T")


class SensitiveValue(Generic[T]):
    """
    A value paired with the policy that redacts it.

    The raw value is only reachable through expose(). str() and format()
    raise TypeError so the value cannot be interpolated by accident; repr()
    shows the redacted text.

    Example:
        api_key = SensitiveValue("sk-live-abcd1234", Token)
        api_key.redacted()   # "************1234"
        api_key.expose()     # "sk-live-abcd1234"
        f"{api_key}"         # TypeError
    """

    __slots__ = ("_value", "_policy", "_extract", "_adapter", "_is_redacted")
    __redaction_passthrough__ = False

    def __init__(
        self,
        value: T,
        policy: RedactionPolicy = DEFAULT_POLICY,
        extract: Optional[Callable[[T], str]] = None,
    ):
        if not isinstance(policy, RedactionPolicy):
            raise PolicyDeclarationError(f"SensitiveValue expects a RedactionPolicy, got {policy!r}")
        adapter = None
        if extract is None:
            adapter = default_registry.leaf_adapter_for(type(value))
            if adapter is None:
                raise DeclarationError(
                    f"SensitiveValue cannot extract text from {type(value).__qualname__}; "
                    "pass extract= or register the type with register_string_leaf"
                )
            if adapter.required_policy is not None and policy != adapter.required_policy:
                raise PolicyDeclarationError(
                    f"{type(value).__qualname__} only accepts the {adapter.required_policy.name} policy, "
                    f"got {policy.name}"
                )
        self._value = value
        self._policy = policy
        self._extract = extract
        self._adapter = adapter
        self._is_redacted = False

    @property
    def policy(self) -> RedactionPolicy:
        return self._policy

    def expose(self) -> T:
        """Return the wrapped value. Whatever you do with it is no longer redacted."""
        return self._value

    def redacted(self) -> str:
        """The policy-applied text of the wrapped value."""
        if self._is_redacted:
            return self._text()
        if self._adapter is not None:
            return self._adapter.redacted_text(self._value, self._policy)
        return self._policy.apply(self._text())

    def _text(self) -> str:
        if self._extract is not None:
            return self._extract(self._value)
        if self._adapter is not None:
            return self._adapter.to_text(self._value)
        return str(self._value)

    def __redact__(self) -> "SensitiveValue[Any]":
        if self._is_redacted:
            return self
        if self._adapter is not None:
            copy = SensitiveValue(self._adapter.redact(self._value, self._policy), self._policy)
        else:
            copy = SensitiveValue(self.redacted(), self._policy)
        copy._is_redacted = True
        return copy

    def __redacted_str__(self) -> str:
        return self.redacted()

    def __str__(self) -> str:
        raise TypeError("SensitiveValue cannot be converted to str; use .redacted() or .expose()")

    def __format__(self, format_spec: str) -> str:
        raise TypeError("SensitiveValue cannot be formatted; use .redacted() or .expose()")

    def __repr__(self) -> str:
        return f"SensitiveValue({self.redacted()!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SensitiveValue):
            return NotImplemented
        return self._policy == other._policy and self._value == other._value

    def __hash__(self) -> int:
        return hash((SensitiveValue, self._policy, self._value))


class NotSensitiveValue(Generic[T]):
    """
    A value the caller asserts carries nothing sensitive.

    Traversal and template formatting pass it through unchanged; str() and
    repr() are those of the wrapped value.

    Example:
        @sensitive
        @dataclass
        class Failure:
            cause: NotSensitiveValue[VendorError]
    """

    __slots__ = ("_value",)
    __redaction_passthrough__ = True

    def __init__(self, value: T):
        self._value = value

    def inner(self) -> T:
        return self._value

    def __redact__(self) -> "NotSensitiveValue[T]":
        return self

    def __str__(self) -> str:
        return str(self._value)

    def __repr__(self) -> str:
        return repr(self._value)

    def __format__(self, format_spec: str) -> str:
        return format(self._value, format_spec)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, NotSensitiveValue):
            return NotImplemented
        return self._value == other._value

    def __hash__(self) -> int:
        return hash((NotSensitiveValue, self._value))
