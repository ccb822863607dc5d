"""
Redaction Policies Package

This package contains the named policies fields can declare.

Available policies:
    - builtin: Secret (default), Token, CreditCard, PhoneNumber, IpAddress,
      Pii, Email, BlockchainAddress

To add a new policy:
    1. Subclass RedactionPolicy (or instantiate StandardPolicy / CustomPolicy)
    2. Return a TextRedactionPolicy from text_policy
    3. Use it in a field annotation: Annotated[str, Sensitive(MY_POLICY)]

Example:
    from typed_redaction import CustomPolicy

    LAST_TWO = CustomPolicy("last_two", lambda s: "*" * max(len(s) - 2, 0) + s[-2:])
"""

from .builtin import (
    BUILTIN_POLICIES,
    DEFAULT_POLICY,
    BlockchainAddress,
    CreditCard,
    Email,
    IpAddress,
    Pii,
    PhoneNumber,
    Secret,
    StandardPolicy,
    Token,
)

__all__ = [
    "BUILTIN_POLICIES",
    "DEFAULT_POLICY",
    "BlockchainAddress",
    "CreditCard",
    "Email",
    "IpAddress",
    "Pii",
    "PhoneNumber",
    "Secret",
    "StandardPolicy",
    "Token",
]
