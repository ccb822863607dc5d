"""
typed_redaction - Declarative redaction of sensitive values in structured data

This package redacts secrets, tokens and personal data inside dataclasses
before they reach logs, telemetry or any other display surface. Every
redaction is driven by an explicit field declaration; nothing is guessed
from the content.

Architecture:
    - classifier: decides once per field whether to recurse, transform or pass through
    - RedactionEngine: produces redacted copies (structured traversal)
    - Template: produces redacted strings from display templates
    - RedactionPolicy: named policies (Secret, Token, Email, ...) mapped to text rules
    - output / sinks: the only path from a value to logging or CloudWatch

Example:
    from dataclasses import dataclass
    from typing import Annotated

    from typed_redaction import Secret, Sensitive, format_redacted, redact, sensitive, sensitive_display

    @sensitive
    @sensitive_display("login failed for {user} with {password}")
    @dataclass
    class LoginFailed:
        user: str
        password: Annotated[str, Sensitive(Secret)]

    redact(LoginFailed("alice", "hunter2"))
    # LoginFailed(user='alice', password='[REDACTED]')
    format_redacted(LoginFailed("alice", "hunter2"))
    # "login failed for alice with [REDACTED]"
"""

from .base_policy import CustomPolicy, RedactionPolicy
from .classifier import (
    CapabilityRegistry,
    FieldSpec,
    FieldTreatment,
    default_registry,
    register_passthrough,
    register_string_leaf,
)
from .config import RedactionSettings, get_settings, set_settings
from .decorators import check_declarations, not_sensitive, sensitive, sensitive_display
from .engine import RedactionEngine, format_redacted, get_default_engine, redact
from .errors import (
    DeclarationError,
    PassthroughDeclarationError,
    PolicyDeclarationError,
    RedactionError,
    TemplateError,
    UnknownCapabilityError,
)
from .markers import NotSensitive, Sensitive
from .output import (
    CloudWatchSafe,
    LogSafe,
    RedactedOutput,
    RedactedStructured,
    RedactedText,
    is_cloudwatch_safe,
    is_log_safe,
    not_sensitive_json,
    not_sensitive_repr,
    not_sensitive_str,
    redacted_display,
    redacted_json,
    to_redacted_output,
)
from .policies import (
    DEFAULT_POLICY,
    BlockchainAddress,
    CreditCard,
    Email,
    IpAddress,
    Pii,
    PhoneNumber,
    Secret,
    Token,
)
from .shapes import ValueCapability
from .text_policy import (
    REDACTED_PLACEHOLDER,
    CustomRedaction,
    EmailMask,
    FullRedaction,
    KeepVisible,
    MaskVisible,
    TextRedactionPolicy,
)
from .wrappers import NotSensitiveValue, SensitiveValue

__all__ = [
    "DEFAULT_POLICY",
    "REDACTED_PLACEHOLDER",
    "BlockchainAddress",
    "CapabilityRegistry",
    "CloudWatchSafe",
    "CreditCard",
    "CustomPolicy",
    "CustomRedaction",
    "DeclarationError",
    "Email",
    "EmailMask",
    "FieldSpec",
    "FieldTreatment",
    "FullRedaction",
    "IpAddress",
    "KeepVisible",
    "LogSafe",
    "MaskVisible",
    "NotSensitive",
    "NotSensitiveValue",
    "PassthroughDeclarationError",
    "Pii",
    "PhoneNumber",
    "PolicyDeclarationError",
    "RedactedOutput",
    "RedactedStructured",
    "RedactedText",
    "RedactionEngine",
    "RedactionError",
    "RedactionPolicy",
    "RedactionSettings",
    "Secret",
    "Sensitive",
    "SensitiveValue",
    "TemplateError",
    "TextRedactionPolicy",
    "Token",
    "UnknownCapabilityError",
    "ValueCapability",
    "check_declarations",
    "default_registry",
    "format_redacted",
    "get_default_engine",
    "get_settings",
    "is_cloudwatch_safe",
    "is_log_safe",
    "not_sensitive",
    "not_sensitive_json",
    "not_sensitive_repr",
    "not_sensitive_str",
    "redact",
    "redacted_display",
    "redacted_json",
    "register_passthrough",
    "register_string_leaf",
    "sensitive",
    "sensitive_display",
    "set_settings",
    "to_redacted_output",
]
