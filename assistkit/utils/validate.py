"""Predicates that check the shape of short strings."""

from __future__ import annotations

import ipaddress
import re
from urllib.parse import urlsplit

_HAN_RANGES = (
    "\u2e80-\u2e99\u2e9b-\u2ef3\u2f00-\u2fd5\u3005\u3007\u3021-\u3029"
    "\u3038-\u303b\u3400-\u4dbf\u4e00-\u9fff\uf900-\ufa6d\ufa70-\ufad9"
    "\U00016fe2\U00016fe3\U00016ff0-\U00016ff1"
    "\U00020000-\U0002a6df\U0002a700-\U0002b73f\U0002b740-\U0002b81d"
    "\U0002b820-\U0002cea1\U0002ceb0-\U0002ebe0\U0002f800-\U0002fa1d"
    "\U00030000-\U0003134a"
)

_NUMBER = re.compile(r"[0-9]+")
_LETTER = re.compile(r"[a-zA-Z]+")
_LETTER_OR_NUMBER = re.compile(r"[a-zA-Z0-9]+")
_LETTER_NUMBER_OR_SYMBOL = re.compile(r"[a-zA-Z0-9_,.\-/+:!@#$%^&*\[\](){}<> ]+")
_CHINESE = re.compile(f"[{_HAN_RANGES}]+")
_EMAIL = re.compile(r"[\w._%+\-]+@[\w.\-]+\.[a-zA-Z]{2,}", re.ASCII)
_PHONE_CN = re.compile(
    r"1(3\d|4[5-9]|5[0-35-9]|6[2567]|7[0-8]|8\d|9[0-35-9])\d{8}", re.ASCII
)


def is_number(s: str) -> bool:
    """True if *s* is one or more ASCII digits."""
    return _NUMBER.fullmatch(s) is not None


def is_letter(s: str) -> bool:
    """True if *s* is one or more ASCII letters."""
    return _LETTER.fullmatch(s) is not None


def is_letter_or_number(s: str) -> bool:
    """True if *s* is one or more ASCII letters or digits."""
    return _LETTER_OR_NUMBER.fullmatch(s) is not None


def is_letter_or_number_or_symbol(s: str) -> bool:
    """True if *s* holds only ASCII letters, digits, spaces and common symbols."""
    return _LETTER_NUMBER_OR_SYMBOL.fullmatch(s) is not None


def is_chinese(s: str) -> bool:
    """True if *s* is one or more Han characters."""
    return _CHINESE.fullmatch(s) is not None


def is_email(s: str) -> bool:
    """True if *s* looks like an e-mail address."""
    return _EMAIL.fullmatch(s) is not None


def is_phone(s: str) -> bool:
    """True if *s* looks like a mainland Chinese mobile number."""
    return _PHONE_CN.fullmatch(s) is not None


def is_url(s: str) -> bool:
    """True if *s* is an http or https URL with a host."""
    if any(ch in s for ch in " \t\r\n"):
        return False
    try:
        parts = urlsplit(s)
    except ValueError:
        return False
    if parts.scheme not in ("http", "https"):
        return False
    host = parts.netloc.rpartition("@")[2]
    return host != ""


def _parse_ip(s: str) -> ipaddress.IPv4Address | ipaddress.IPv6Address | None:
    if "%" in s:
        return None
    try:
        return ipaddress.ip_address(s)
    except ValueError:
        return None


def is_ipv4(s: str) -> bool:
    """True if *s* is a dotted IPv4 address, including IPv4-mapped IPv6 forms."""
    ip = _parse_ip(s)
    if ip is None:
        return False
    is_v4 = isinstance(ip, ipaddress.IPv4Address) or ip.ipv4_mapped is not None
    return is_v4 and s.count(".") == 3


def is_ipv6(s: str) -> bool:
    """True if *s* is an address written in IPv6 notation."""
    return _parse_ip(s) is not None and ":" in s


def is_ip(s: str) -> bool:
    """True if *s* is an IPv4 or IPv6 address."""
    return is_ipv4(s) or is_ipv6(s)