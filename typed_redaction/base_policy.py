"""
Base Redaction Policy - Abstract base class for named redaction policies.

A policy is the identifier a field declares ("this is a Token", "this is an
Email"); the TextRedactionPolicy it maps to decides how the value is
transformed. Keeping the two apart lets a whole codebase change how tokens
are shown by editing one policy.

Each policy defines:
    - name: Unique identifier for the policy
    - description: Human-readable description
    - text_policy: The TextRedactionPolicy applied to string leaves
"""

from abc import ABC, abstractmethod
from typing import Callable

from .text_policy import TextRedactionPolicy, custom


class RedactionPolicy(ABC):
    """
    Abstract base class for redaction policies.

    Subclass this to add organisation-specific policies without touching the
    traversal engine.

    Example:
        class AccountNumber(RedactionPolicy):
            @property
            def name(self) -> str:
                return "account_number"

            @property
            def description(self) -> str:
                return "Bank account numbers, last 3 digits visible"

            @property
            def text_policy(self) -> TextRedactionPolicy:
                return keep_last(3)

        ACCOUNT_NUMBER = AccountNumber()
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Unique identifier for this policy (e.g., 'secret', 'token')."""
        pass

    @property
    @abstractmethod
    def description(self) -> str:
        """Human-readable description of what this policy protects."""
        pass

    @property
    @abstractmethod
    def text_policy(self) -> TextRedactionPolicy:
        """The transformation applied to string values."""
        pass

    @property
    def is_full(self) -> bool:
        """True when the policy discards the value entirely."""
        return self.text_policy.is_full

    def apply(self, text: str) -> str:
        return self.text_policy.apply_to(text)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, RedactionPolicy):
            return NotImplemented
        return type(self) is type(other) and self.name == other.name

    def __hash__(self) -> int:
        return hash((type(self), self.name))

    def __repr__(self) -> str:
        return f"<RedactionPolicy: {self.name}>"


class CustomPolicy(RedactionPolicy):
    """A policy built from a plain function, for one-off rules."""

    def __init__(self, name: str, func: Callable[[str], str], description: str = ""):
        self._name = name
        self._description = description or f"Custom policy '{name}'"
        self._text_policy = custom(func)

    @property
    def name(self) -> str:
        return self._name

    @property
    def description(self) -> str:
        return self._description

    @property
    def text_policy(self) -> TextRedactionPolicy:
        return self._text_policy
