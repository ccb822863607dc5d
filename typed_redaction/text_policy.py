"""
Text redaction policies - the string transformations behind every policy.

A TextRedactionPolicy is an immutable, stateless rule that turns a raw string
into a safe one. The built-in shapes are:

    - FullRedaction: replace the whole value with a fixed placeholder
    - KeepVisible:   keep a prefix and/or suffix, mask everything between
    - MaskVisible:   mask a prefix and/or suffix, keep everything between
    - EmailMask:     keep the first characters of the local part and the domain
    - CustomRedaction: any user function str -> str

Lengths are counted in code points (Python str indexing).

Example:
    from typed_redaction.text_policy import keep_last

    keep_last(4).apply_to("4111111111111234")
    # "************1234"
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, replace
from typing import Callable

from .errors import PolicyDeclarationError

REDACTED_PLACEHOLDER = "[REDACTED]"
MASK_CHAR = "*"


def _check_count(name: str, value: int) -> None:
    if not isinstance(value, int) or isinstance(value, bool) or value < 0:
        raise PolicyDeclarationError(f"{name} must be a non-negative integer, got {value!r}")


def _check_mask_char(mask_char: str) -> None:
    if not isinstance(mask_char, str) or len(mask_char) != 1:
        raise PolicyDeclarationError(f"mask_char must be a single character, got {mask_char!r}")


class TextRedactionPolicy(ABC):
    """Base class for string transformations."""

    @abstractmethod
    def apply_to(self, value: str) -> str:
        """Return the redacted form of value. Must be total over all strings."""

    @property
    def is_full(self) -> bool:
        """True when the policy discards the whole value (the only kind valid on scalars)."""
        return False

    def with_mask_char(self, mask_char: str) -> "TextRedactionPolicy":
        """Return a copy using mask_char. Policies without masking return themselves."""
        return self


@dataclass(frozen=True)
class FullRedaction(TextRedactionPolicy):
    placeholder: str = REDACTED_PLACEHOLDER

    def apply_to(self, value: str) -> str:
        return self.placeholder

    @property
    def is_full(self) -> bool:
        return True


@dataclass(frozen=True)
class KeepVisible(TextRedactionPolicy):
    """
    Keep visible_prefix leading and visible_suffix trailing characters.

    When the kept characters would cover the whole value (including the empty
    string) nothing is masked, so the value degrades to the full placeholder.
    """

    visible_prefix: int = 0
    visible_suffix: int = 0
    mask_char: str = MASK_CHAR

    def __post_init__(self):
        _check_count("visible_prefix", self.visible_prefix)
        _check_count("visible_suffix", self.visible_suffix)
        _check_mask_char(self.mask_char)

    def apply_to(self, value: str) -> str:
        total = len(value)
        if total == 0 or self.visible_prefix + self.visible_suffix >= total:
            return REDACTED_PLACEHOLDER
        end = total - self.visible_suffix
        masked = self.mask_char * (end - self.visible_prefix)
        return value[:self.visible_prefix] + masked + value[end:]

    def with_mask_char(self, mask_char: str) -> "KeepVisible":
        return replace(self, mask_char=mask_char)


@dataclass(frozen=True)
class MaskVisible(TextRedactionPolicy):
    """Mask mask_prefix leading and mask_suffix trailing characters, keep the middle."""

    mask_prefix: int = 0
    mask_suffix: int = 0
    mask_char: str = MASK_CHAR

    def __post_init__(self):
        _check_count("mask_prefix", self.mask_prefix)
        _check_count("mask_suffix", self.mask_suffix)
        _check_mask_char(self.mask_char)

    def apply_to(self, value: str) -> str:
        total = len(value)
        if total == 0:
            return REDACTED_PLACEHOLDER
        if self.mask_prefix + self.mask_suffix >= total:
            return self.mask_char * total
        end = total - self.mask_suffix
        return (
            self.mask_char * self.mask_prefix
            + value[self.mask_prefix:end]
            + self.mask_char * self.mask_suffix
        )

    def with_mask_char(self, mask_char: str) -> "MaskVisible":
        return replace(self, mask_char=mask_char)


@dataclass(frozen=True)
class EmailMask(TextRedactionPolicy):
    """
    Keep the first visible_prefix characters of the local part and the domain.

    "alice@example.com" -> "al***@example.com". A local part no longer than the
    visible prefix is masked entirely; values without "@" are treated like
    KeepVisible(visible_prefix).
    """

    visible_prefix: int = 2
    mask_char: str = MASK_CHAR

    def __post_init__(self):
        _check_count("visible_prefix", self.visible_prefix)
        _check_mask_char(self.mask_char)

    def apply_to(self, value: str) -> str:
        if not value:
            return REDACTED_PLACEHOLDER
        local, at, domain = value.partition("@")
        if not at:
            return KeepVisible(self.visible_prefix, 0, self.mask_char).apply_to(value)
        if self.visible_prefix >= len(local):
            return self.mask_char * len(local) + at + domain
        masked = self.mask_char * (len(local) - self.visible_prefix)
        return local[:self.visible_prefix] + masked + at + domain

    def with_mask_char(self, mask_char: str) -> "EmailMask":
        return replace(self, mask_char=mask_char)


@dataclass(frozen=True)
class CustomRedaction(TextRedactionPolicy):
    """Wrap a user function. The function must be pure and accept any string."""

    func: Callable[[str], str]

    def __post_init__(self):
        if not callable(self.func):
            raise PolicyDeclarationError(f"custom redaction needs a callable, got {self.func!r}")

    def apply_to(self, value: str) -> str:
        return str(self.func(value))


def full(placeholder: str = REDACTED_PLACEHOLDER) -> FullRedaction:
    return FullRedaction(placeholder)


def keep_first(visible_prefix: int) -> KeepVisible:
    return KeepVisible(visible_prefix=visible_prefix)


def keep_last(visible_suffix: int) -> KeepVisible:
    return KeepVisible(visible_suffix=visible_suffix)


def keep_both(visible_prefix: int, visible_suffix: int) -> KeepVisible:
    return KeepVisible(visible_prefix, visible_suffix)


def mask_first(mask_prefix: int) -> MaskVisible:
    return MaskVisible(mask_prefix=mask_prefix)


def mask_last(mask_suffix: int) -> MaskVisible:
    return MaskVisible(mask_suffix=mask_suffix)


def email_local(visible_prefix: int) -> EmailMask:
    return EmailMask(visible_prefix)


def custom(func: Callable[[str], str]) -> CustomRedaction:
    return CustomRedaction(func)
