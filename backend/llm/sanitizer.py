"""Sample sanitizer: the privacy boundary in front of every LLM provider.

Raw sample values are replaced by structural descriptors before anything is
sent out of the process. A descriptor only ever contains a fixed label and
counts, never a fragment of the value itself::

    "Rahul Kumar"       -> "[TEXT: 2 words]"
    "rahul@example.com" -> "[EMAIL: format valid]"
    "2345 6789 0123"    -> "[AADHAAR: 12 digits]"
    "ABCDE1234F"        -> "[PAN: format valid]"
    "192.168.1.1"       -> "[IP: v4]"
"""

from __future__ import annotations

import ipaddress
import re

# ---------------------------------------------------------------------------
# Classifiers, checked most specific first
# ---------------------------------------------------------------------------

_EMAIL_RE = re.compile(r"^[a-zA-Z0-9._%+\-]+@[a-zA-Z0-9.\-]+\.[a-zA-Z]{2,}$")
_AADHAAR_RE = re.compile(r"^\d{4}[\s-]?\d{4}[\s-]?\d{4}$")
_PAN_RE = re.compile(r"^[A-Z]{5}[0-9]{4}[A-Z]$")
_CARD_RE = re.compile(r"^\d{4}[\s-]?\d{4}[\s-]?\d{4}[\s-]?\d{4}$")
_PHONE_RE = re.compile(r"^(?:\+?91[\s-]?)?[6-9]\d{9}$")
_DATE_RE = re.compile(
    r"^(?:\d{1,2}[/\-]\d{1,2}[/\-]\d{2,4}|\d{4}[/\-]\d{1,2}[/\-]\d{1,2})$"
)


def _is_ipv4(value: str) -> bool:
    try:
        ipaddress.IPv4Address(value)
    except ValueError:
        return False
    return True


def _count_digits(value: str) -> int:
    return sum(1 for ch in value if ch.isdigit())


def _is_all_alpha(value: str) -> bool:
    return all(ch.isalpha() or ch.isspace() for ch in value)


class Sanitizer:
    """Converts raw values into safe pattern descriptions."""

    def sanitize(self, value: str) -> str:
        """Return the descriptor for a single raw *value*."""
        trimmed = value.strip()
        if not trimmed:
            return "[EMPTY]"

        if _EMAIL_RE.match(trimmed):
            return "[EMAIL: format valid]"
        if _AADHAAR_RE.match(trimmed):
            return "[AADHAAR: 12 digits]"
        if _PAN_RE.match(trimmed):
            return "[PAN: format valid]"
        if _CARD_RE.match(trimmed):
            return f"[CARD: {_count_digits(trimmed)} digits]"
        if _is_ipv4(trimmed):
            return "[IP: v4]"
        if _PHONE_RE.match(trimmed):
            return f"[PHONE: {_count_digits(trimmed)} digits]"
        if _DATE_RE.match(trimmed):
            return "[DATE: format detected]"

        # Generic shape
        if trimmed.isdigit():
            return f"[NUMERIC: {len(trimmed)} digits]"
        words = trimmed.split()
        if _is_all_alpha(trimmed):
            if len(words) > 1:
                return f"[TEXT: {len(words)} words]"
            return f"[TEXT: {len(trimmed)} chars]"
        return f"[MIXED: {len(trimmed)} chars, {len(words)} words]"

    def sanitize_samples(self, samples: list[str] | tuple[str, ...]) -> list[str]:
        """Sanitize every value in *samples*, preserving order."""
        return [self.sanitize(s) for s in samples]
