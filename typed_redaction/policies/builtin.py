"""
Built-in policies - the default vocabulary for sensitive fields.

Policies covered:
    - Secret:            full redaction (also the only policy valid on scalars)
    - Token:             API keys and bearer tokens, last 4 visible
    - CreditCard:        card numbers / PANs, last 4 visible (PCI-DSS display rule)
    - PhoneNumber:       last 4 digits visible
    - IpAddress:         last 4 characters of text; address objects keep their last octet
    - Pii:               names and free-form personal data, last 2 visible
    - Email:             first 2 characters of the local part plus the domain
    - BlockchainAddress: wallet addresses, last 6 visible
"""

from ..base_policy import RedactionPolicy
from ..text_policy import TextRedactionPolicy, email_local, full, keep_last


class StandardPolicy(RedactionPolicy):
    """A named policy bound to a fixed TextRedactionPolicy."""

    def __init__(self, name: str, description: str, text_policy: TextRedactionPolicy):
        self._name = name
        self._description = description
        self._text_policy = text_policy

    @property
    def name(self) -> str:
        return self._name

    @property
    def description(self) -> str:
        return self._description

    @property
    def text_policy(self) -> TextRedactionPolicy:
        return self._text_policy


Secret = StandardPolicy(
    "secret",
    "Passwords, private keys and anything that must never be shown",
    full(),
)

Token = StandardPolicy(
    "token",
    "Authentication tokens and API keys ('sk_live_abc123' -> '**********c123')",
    keep_last(4),
)

CreditCard = StandardPolicy(
    "credit_card",
    "Credit card numbers ('4111111111111111' -> '************1111')",
    keep_last(4),
)

PhoneNumber = StandardPolicy(
    "phone_number",
    "Phone numbers ('+1-555-123-4567' -> '***********4567')",
    keep_last(4),
)

IpAddress = StandardPolicy(
    "ip_address",
    "IP addresses ('192.168.1.100' -> '*********.100')",
    keep_last(4),
)

Pii = StandardPolicy(
    "pii",
    "Names and other personal data ('John Doe' -> '******oe')",
    keep_last(2),
)

Email = StandardPolicy(
    "email",
    "Email addresses ('alice@example.com' -> 'al***@example.com')",
    email_local(2),
)

BlockchainAddress = StandardPolicy(
    "blockchain_address",
    "Wallet addresses ('0x1234567890abcdef' -> '************abcdef')",
    keep_last(6),
)

DEFAULT_POLICY = Secret

BUILTIN_POLICIES = (Secret, Token, CreditCard, PhoneNumber, IpAddress, Pii, Email, BlockchainAddress)
