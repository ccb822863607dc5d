"""
Tests for text redaction policies and named policies.

Tests cover:
- Full redaction, keep-N and mask-N shapes
- Degrade-to-placeholder rules and empty input
- Email masking
- Non-idempotence of re-application
- Built-in and custom named policies
"""

import pytest

from typed_redaction import (
    DEFAULT_POLICY,
    BlockchainAddress,
    CreditCard,
    CustomPolicy,
    Email,
    IpAddress,
    Pii,
    PhoneNumber,
    PolicyDeclarationError,
    RedactionPolicy,
    Secret,
    Token,
)
from typed_redaction.policies import BUILTIN_POLICIES
from typed_redaction.text_policy import (
    REDACTED_PLACEHOLDER,
    EmailMask,
    FullRedaction,
    KeepVisible,
    TextRedactionPolicy,
    custom,
    full,
    keep_both,
    keep_first,
    keep_last,
    mask_first,
    mask_last,
)


class TestFullRedaction:
    """Test suite for the full-redaction shape."""

    def test_replaces_any_value(self):
        """Should replace the whole value with the placeholder."""
        assert full().apply_to("hunter2") == "[REDACTED]"

    def test_empty_string(self):
        """Should return the placeholder for empty input too."""
        assert full().apply_to("") == "[REDACTED]"

    def test_custom_placeholder(self):
        """Should use a caller-supplied placeholder."""
        assert FullRedaction("<hidden>").apply_to("hunter2") == "<hidden>"

    def test_is_full(self):
        """Only full redaction reports is_full."""
        assert full().is_full is True
        assert keep_last(4).is_full is False


class TestKeepVisible:
    """Test suite for keep-first / keep-last / keep-both."""

    def test_card_number_keeps_last_four(self):
        """Should mask everything but the last four digits."""
        assert keep_last(4).apply_to("4111111111111234") == "************1234"

    def test_keep_first(self):
        """Should keep the leading characters."""
        assert keep_first(2).apply_to("hello") == "he***"

    def test_keep_both(self):
        """Should keep both ends and mask the middle."""
        assert keep_both(1, 1).apply_to("hello") == "h***o"

    @pytest.mark.parametrize("value", ["", "ab", "abcd"])
    def test_degrades_to_placeholder_when_nothing_would_be_masked(self, value):
        """Should return the placeholder when the kept span covers the value."""
        assert keep_last(4).apply_to(value) == REDACTED_PLACEHOLDER

    def test_one_character_longer_than_kept_span(self):
        """Should mask a single character once the value outgrows the kept span."""
        assert keep_last(4).apply_to("abcde") == "*bcde"

    def test_counts_code_points(self):
        """Should count Python characters, not bytes."""
        assert keep_last(1).apply_to("héllo") == "****o"
        assert keep_first(1).apply_to("日本語テキスト") == "日******"

    def test_deterministic(self):
        """Should give the same result for the same input."""
        policy = keep_last(4)
        assert policy.apply_to("sk-live-abcd1234") == policy.apply_to("sk-live-abcd1234")

    def test_not_idempotent(self):
        """Should treat mask characters and placeholders as ordinary text when re-applied."""
        assert keep_last(4).apply_to("[REDACTED]") == "******TED]"

    def test_with_mask_char(self):
        """Should return a copy using another mask character."""
        policy = keep_last(2).with_mask_char("#")
        assert policy.apply_to("abcd") == "##cd"
        assert keep_last(2).apply_to("abcd") == "**cd"

    def test_rejects_negative_counts(self):
        """Should refuse negative visible counts at construction."""
        with pytest.raises(PolicyDeclarationError):
            keep_last(-1)

    def test_rejects_multi_character_mask(self):
        """Should refuse a mask that is not exactly one character."""
        with pytest.raises(PolicyDeclarationError):
            KeepVisible(0, 4, "**")


class TestMaskVisible:
    """Test suite for mask-first / mask-last."""

    def test_mask_first(self):
        """Should mask the leading characters and keep the rest."""
        assert mask_first(2).apply_to("hello") == "**llo"

    def test_mask_last(self):
        """Should mask the trailing characters and keep the rest."""
        assert mask_last(3).apply_to("hello") == "he***"

    def test_full_coverage_masks_everything(self):
        """Should mask every character when the masked span covers the value."""
        assert mask_last(5).apply_to("hi") == "**"

    def test_empty_string(self):
        """Should return the placeholder for empty input."""
        assert mask_first(2).apply_to("") == REDACTED_PLACEHOLDER


class TestEmailMask:
    """Test suite for email masking."""

    def test_keeps_prefix_and_domain(self):
        """Should keep two characters of the local part and the domain."""
        assert EmailMask(2).apply_to("alice@example.com") == "al***@example.com"

    def test_short_local_part_is_fully_masked(self):
        """Should mask a local part no longer than the visible prefix."""
        assert EmailMask(2).apply_to("al@example.com") == "**@example.com"

    def test_without_at_sign_behaves_like_keep_first(self):
        """Should fall back to keep-first on values that are not addresses."""
        assert EmailMask(2).apply_to("alice") == "al***"

    def test_empty_string(self):
        """Should return the placeholder for empty input."""
        assert EmailMask(2).apply_to("") == REDACTED_PLACEHOLDER


class TestCustomRedaction:
    """Test suite for user-supplied functions."""

    def test_applies_function(self):
        """Should delegate to the wrapped function."""
        assert custom(str.upper).apply_to("abc") == "ABC"

    def test_rejects_non_callable(self):
        """Should refuse something that cannot be called."""
        with pytest.raises(PolicyDeclarationError):
            custom("not callable")


class TestBuiltinPolicies:
    """Test suite for the named policy vocabulary."""

    def test_default_is_secret(self):
        """Secret is the default policy and fully redacts."""
        assert DEFAULT_POLICY is Secret
        assert Secret.is_full is True
        assert Secret.apply("hunter2") == "[REDACTED]"

    @pytest.mark.parametrize(
        "policy,value,expected",
        [
            (Token, "sk_live_abc123", "**********c123"),
            (CreditCard, "4111111111111111", "************1111"),
            (PhoneNumber, "+1-555-123-4567", "***********4567"),
            (IpAddress, "192.168.1.100", "*********.100"),
            (Pii, "John Doe", "******oe"),
            (Email, "bob.smith@corp.io", "bo*******@corp.io"),
            (BlockchainAddress, "0x1234567890abcdef", "************abcdef"),
        ],
    )
    def test_policy_text(self, policy, value, expected):
        """Each built-in policy should produce its documented shape."""
        assert policy.apply(value) == expected

    def test_all_builtins_have_unique_names(self):
        """Policy names identify policies and must not collide."""
        names = [policy.name for policy in BUILTIN_POLICIES]
        assert len(names) == len(set(names))

    def test_repr(self):
        """Should show the policy name."""
        assert repr(Token) == "<RedactionPolicy: token>"


class TestCustomPolicies:
    """Test adding organisation-specific policies."""

    def test_custom_policy_from_function(self):
        """CustomPolicy should wrap a plain function."""
        last_two = CustomPolicy("last_two", lambda s: "*" * max(len(s) - 2, 0) + s[-2:])

        assert last_two.apply("secret") == "****et"
        assert last_two.is_full is False
        assert "last_two" in last_two.description

    def test_subclassing_redaction_policy(self):
        """Should be able to subclass RedactionPolicy directly."""

        class AccountNumber(RedactionPolicy):
            @property
            def name(self) -> str:
                return "account_number"

            @property
            def description(self) -> str:
                return "Bank account numbers"

            @property
            def text_policy(self) -> TextRedactionPolicy:
                return keep_last(3)

        policy = AccountNumber()

        assert policy.apply("12345678") == "*****678"
        assert policy == AccountNumber()
        assert policy != Token

    def test_abstract_policy_cannot_be_instantiated(self):
        """RedactionPolicy without its properties is abstract."""
        with pytest.raises(TypeError):
            RedactionPolicy()
