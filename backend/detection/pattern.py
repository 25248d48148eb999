from __future__ import annotations

import re
from dataclasses import dataclass

from detection.strategy import DetectionInput, Result, Strategy
from schemas.entities import DetectionMethod, PIICategory, PIIType, SensitivityLevel

_BASE_CONFIDENCE = 0.90


@dataclass(frozen=True)
class _PIIPattern:
    name: str
    category: PIICategory
    pii_type: PIIType
    sensitivity: SensitivityLevel
    regex: re.Pattern[str]


# ---------------------------------------------------------------------------
# Compiled sample-value patterns (whole-value matches)
# ---------------------------------------------------------------------------

_PII_PATTERNS: list[_PIIPattern] = [
    _PIIPattern(
        "email", PIICategory.CONTACT, PIIType.EMAIL, SensitivityLevel.MEDIUM,
        re.compile(r"^[a-zA-Z0-9._%+\-]+@[a-zA-Z0-9.\-]+\.[a-zA-Z]{2,}$", re.IGNORECASE),
    ),
    _PIIPattern(
        "phone_india", PIICategory.CONTACT, PIIType.PHONE, SensitivityLevel.MEDIUM,
        re.compile(r"^(?:\+?91[\s\-]?)?[6-9]\d{9}$"),
    ),
    _PIIPattern(
        "phone_us", PIICategory.CONTACT, PIIType.PHONE, SensitivityLevel.MEDIUM,
        re.compile(r"^\(?[2-9]\d{2}\)?[\s.\-]?\d{3}[\s.\-]?\d{4}$"),
    ),
    _PIIPattern(
        "aadhaar", PIICategory.GOVERNMENT_ID, PIIType.AADHAAR, SensitivityLevel.CRITICAL,
        re.compile(r"^[2-9]\d{3}[\s\-]?\d{4}[\s\-]?\d{4}$"),
    ),
    _PIIPattern(
        "pan", PIICategory.GOVERNMENT_ID, PIIType.PAN, SensitivityLevel.HIGH,
        re.compile(r"^[A-Z]{5}[0-9]{4}[A-Z]$"),
    ),
    # Visa, MasterCard, Amex, Discover prefixes
    _PIIPattern(
        "credit_card", PIICategory.FINANCIAL, PIIType.CREDIT_CARD, SensitivityLevel.CRITICAL,
        re.compile(
            r"^(?:4\d{3}|5[1-5]\d{2}|3[47]\d{2}|6(?:011|5\d{2}))"
            r"[\s\-]?\d{4}[\s\-]?\d{4}[\s\-]?\d{4}$"
        ),
    ),
    _PIIPattern(
        "ssn", PIICategory.GOVERNMENT_ID, PIIType.SSN, SensitivityLevel.CRITICAL,
        re.compile(r"^\d{3}-\d{2}-\d{4}$"),
    ),
    _PIIPattern(
        "ip_v4", PIICategory.BEHAVIORAL, PIIType.IP_ADDRESS, SensitivityLevel.LOW,
        re.compile(
            r"^(?:(?:25[0-5]|2[0-4]\d|[01]?\d\d?)\.){3}(?:25[0-5]|2[0-4]\d|[01]?\d\d?)$"
        ),
    ),
    _PIIPattern(
        "dob", PIICategory.IDENTITY, PIIType.DATE_OF_BIRTH, SensitivityLevel.MEDIUM,
        re.compile(r"^(?:\d{1,2}[/\-]\d{1,2}[/\-]\d{2,4}|\d{4}[/\-]\d{1,2}[/\-]\d{1,2})$"),
    ),
    _PIIPattern(
        "passport_india", PIICategory.GOVERNMENT_ID, PIIType.PASSPORT, SensitivityLevel.HIGH,
        re.compile(r"^[A-Z][1-9]\d{6}[1-9]$"),
    ),
]


class PatternStrategy(Strategy):
    """Regex matching over raw sample values.

    Confidence scales with the share of samples that match:
    ``0.90 * (0.7 + 0.3 * match_rate)``.
    """

    name = "pattern"
    method = DetectionMethod.REGEX

    def __init__(self, patterns: list[_PIIPattern] | None = None) -> None:
        self._patterns = patterns if patterns is not None else _PII_PATTERNS

    @property
    def weight(self) -> float:
        return 0.90

    async def detect(self, input: DetectionInput) -> list[Result]:
        if not input.samples:
            return []

        # pii_type -> (first matching pattern, number of matching samples)
        counts: dict[PIIType, tuple[_PIIPattern, int]] = {}
        for sample in input.samples:
            value = sample.strip()
            matched: set[PIIType] = set()
            for pattern in self._patterns:
                if pattern.pii_type in matched:
                    continue
                if pattern.regex.match(value):
                    matched.add(pattern.pii_type)
                    first, n = counts.get(pattern.pii_type, (pattern, 0))
                    counts[pattern.pii_type] = (first, n + 1)

        total = len(input.samples)
        results: list[Result] = []
        for pattern, matches in counts.values():
            rate = matches / total
            results.append(
                Result(
                    category=pattern.category,
                    pii_type=pattern.pii_type,
                    sensitivity=pattern.sensitivity,
                    confidence=_BASE_CONFIDENCE * (0.7 + 0.3 * rate),
                    method=DetectionMethod.REGEX,
                    reasoning="Regex pattern matched",
                )
            )
        return results
