"""
Leaf adapters and the built-in leaf and passthrough type tables.

A string leaf is any type that can be viewed as text and rebuilt from the
redacted text. str (and its subclasses) is the canonical one. Other types
join by registering a StringLeafAdapter:

    register_string_leaf(AccountId, to_text=lambda a: a.raw, from_text=AccountId.unchecked)

IP addresses are built in: they redact to a valid address that keeps only
the last octet (IPv4) or segment (IPv6), and they are redacted even when the
field carries no annotation.
"""

import datetime
import decimal
import enum
import ipaddress
import pathlib
import uuid
from dataclasses import dataclass
from typing import Any, Callable, Optional

from .base_policy import RedactionPolicy
from .policies import IpAddress

SCALAR_DEFAULTS: dict[type, Any] = {
    bool: False,
    int: 0,
    float: 0.0,
    complex: 0j,
    decimal.Decimal: decimal.Decimal(0),
}

# Registered as non-sensitive at import; projects add their own with register_passthrough.
DEFAULT_PASSTHROUGH_TYPES: tuple[type, ...] = (
    bytes,
    datetime.datetime,
    datetime.date,
    datetime.time,
    datetime.timedelta,
    datetime.timezone,
    uuid.UUID,
    pathlib.PurePath,
    enum.Enum,
)


def scalar_default(value: Any) -> Any:
    """Zero value for a scalar, picked by the runtime type (bool before int)."""
    for scalar_type in type(value).__mro__:
        if scalar_type in SCALAR_DEFAULTS:
            return SCALAR_DEFAULTS[scalar_type]
    return 0


@dataclass(frozen=True)
class StringLeafAdapter:
    """
    How to redact a string-like leaf type.

    to_text/from_text convert between the value and the text the policy sees.
    redact_hook, when set, replaces text round-tripping entirely and
    required_policy restricts which policy may be declared on the type.
    default_policy is applied even when a field carries no annotation.
    """

    to_text: Callable[[Any], str]
    from_text: Callable[[str], Any]
    redact_hook: Optional[Callable[[Any], Any]] = None
    required_policy: Optional[RedactionPolicy] = None
    default_policy: Optional[RedactionPolicy] = None

    def redact(self, value: Any, policy: RedactionPolicy) -> Any:
        if self.redact_hook is not None:
            return self.redact_hook(value)
        return self.from_text(policy.apply(self.to_text(value)))

    def redacted_text(self, value: Any, policy: RedactionPolicy) -> str:
        if self.redact_hook is not None:
            return self.to_text(self.redact_hook(value))
        return policy.apply(self.to_text(value))


STR_ADAPTER = StringLeafAdapter(to_text=str.__str__, from_text=str)


def _redact_ipv4(addr: ipaddress.IPv4Address) -> ipaddress.IPv4Address:
    return ipaddress.IPv4Address(int(addr) & 0xFF)


def _redact_ipv6(addr: ipaddress.IPv6Address) -> ipaddress.IPv6Address:
    return ipaddress.IPv6Address(int(addr) & 0xFFFF)


IPV4_ADAPTER = StringLeafAdapter(
    to_text=str,
    from_text=ipaddress.IPv4Address,
    redact_hook=_redact_ipv4,
    required_policy=IpAddress,
    default_policy=IpAddress,
)

IPV6_ADAPTER = StringLeafAdapter(
    to_text=str,
    from_text=ipaddress.IPv6Address,
    redact_hook=_redact_ipv6,
    required_policy=IpAddress,
    default_policy=IpAddress,
)

DEFAULT_LEAF_ADAPTERS: dict[type, StringLeafAdapter] = {
    str: STR_ADAPTER,
    ipaddress.IPv4Address: IPV4_ADAPTER,
    ipaddress.IPv6Address: IPV6_ADAPTER,
}
