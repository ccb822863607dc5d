"""
Tests for the foreign-type wrappers.

Tests cover:
- SensitiveValue construction, redacted() and expose()
- str()/format() refusal and redacted repr()
- Extraction for foreign types and IP addresses
- NotSensitiveValue passthrough
"""

import ipaddress
from dataclasses import dataclass

import pytest

from typed_redaction import (
    DeclarationError,
    IpAddress,
    NotSensitiveValue,
    PolicyDeclarationError,
    Secret,
    SensitiveValue,
    Token,
    redact,
    register_string_leaf,
)


@dataclass(frozen=True)
class AccountId:
    raw: str


register_string_leaf(AccountId, to_text=lambda account: account.raw, from_text=AccountId)


class VendorSecret:
    def __init__(self, key):
        self.key = key


class TestSensitiveValue:
    """Test suite for SensitiveValue."""

    def test_default_policy_is_secret(self):
        """Without a policy the value is fully redacted."""
        assert SensitiveValue("hunter2").redacted() == "[REDACTED]"

    def test_redacted_and_expose(self):
        """redacted() applies the policy, expose() returns the raw value."""
        api_key = SensitiveValue("sk-live-abcd1234", Token)

        assert api_key.redacted() == "************1234"
        assert api_key.expose() == "sk-live-abcd1234"
        assert api_key.policy is Token

    def test_str_is_refused(self):
        """Accidental interpolation raises."""
        with pytest.raises(TypeError):
            str(SensitiveValue("hunter2"))
        with pytest.raises(TypeError):
            f"{SensitiveValue('hunter2')}"

    def test_repr_is_redacted(self):
        """repr() shows only the redacted text."""
        assert repr(SensitiveValue("sk-live-abcd1234", Token)) == "SensitiveValue('************1234')"

    def test_redact_returns_redacted_wrapper(self):
        """Traversal yields a wrapper whose inner value is redacted."""
        redacted = redact(SensitiveValue("sk-live-abcd1234", Token))

        assert isinstance(redacted, SensitiveValue)
        assert redacted.expose() == "************1234"
        assert redacted.redacted() == "************1234"
        assert redact(redacted) is redacted

    def test_registered_leaf_type(self):
        """Registered string leaves are rebuilt from the redacted text."""
        wrapped = SensitiveValue(AccountId("acct-12345678"), Token)

        assert wrapped.redacted() == "*********5678"
        assert redact(wrapped).expose() == AccountId("*********5678")

    def test_foreign_type_needs_extract(self):
        """Types without a text form are rejected at construction."""
        with pytest.raises(DeclarationError, match="extract"):
            SensitiveValue(VendorSecret("k-1234567"), Token)

    def test_extract_callable(self):
        """An extract function supplies the text the policy sees."""
        wrapped = SensitiveValue(VendorSecret("k-1234567"), Token, extract=lambda secret: secret.key)

        assert wrapped.redacted() == "*****4567"
        assert redact(wrapped).expose() == "*****4567"

    def test_ip_address(self):
        """Addresses redact structurally."""
        wrapped = SensitiveValue(ipaddress.IPv4Address("192.168.1.100"), IpAddress)

        assert wrapped.redacted() == "0.0.0.100"
        assert redact(wrapped).expose() == ipaddress.IPv4Address("0.0.0.100")

    def test_ip_address_rejects_other_policies(self):
        """Only IpAddress applies to address objects."""
        with pytest.raises(PolicyDeclarationError):
            SensitiveValue(ipaddress.IPv4Address("192.168.1.100"), Secret)

    def test_policy_must_be_a_policy(self):
        """The policy argument is validated."""
        with pytest.raises(PolicyDeclarationError):
            SensitiveValue("hunter2", "secret")

    def test_equality(self):
        """Wrappers compare by value and policy."""
        assert SensitiveValue("a", Token) == SensitiveValue("a", Token)
        assert SensitiveValue("a", Token) != SensitiveValue("a", Secret)


class TestNotSensitiveValue:
    """Test suite for NotSensitiveValue."""

    def test_inner(self):
        """inner() returns the wrapped value."""
        client = VendorSecret("public")
        assert NotSensitiveValue(client).inner() is client

    def test_raw_str_and_repr(self):
        """str() and repr() are those of the wrapped value."""
        wrapped = NotSensitiveValue("build-42")

        assert str(wrapped) == "build-42"
        assert repr(wrapped) == "'build-42'"
        assert f"{wrapped:>10}" == "  build-42"

    def test_redact_returns_itself(self):
        """Traversal never touches it."""
        wrapped = NotSensitiveValue(VendorSecret("public"))
        assert redact(wrapped) is wrapped
