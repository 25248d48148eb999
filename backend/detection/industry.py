from __future__ import annotations

import re
from dataclasses import dataclass

from detection.strategy import DetectionInput, Result, Strategy
from schemas.entities import DetectionMethod, PIICategory, PIIType, SensitivityLevel

# Regex matches never claim more than this.
_MAX_CONFIDENCE = 0.95


@dataclass(frozen=True)
class _IndustryPattern:
    name: str
    regex: re.Pattern[str]
    pii_type: PIIType
    category: PIICategory
    sensitivity: SensitivityLevel


# ---------------------------------------------------------------------------
# Pattern packs per industry bucket
# ---------------------------------------------------------------------------

_INDUSTRY_PATTERNS: dict[str, list[_IndustryPattern]] = {
    "healthcare": [
        _IndustryPattern(
            "NPI (National Provider Identifier)",
            re.compile(r"^\d{10}$"),
            PIIType.NATIONAL_ID, PIICategory.PROFESSIONAL, SensitivityLevel.MEDIUM,
        ),
        _IndustryPattern(
            "DEA Number",
            re.compile(r"^[A-Z]{2}\d{7}$"),
            PIIType.NATIONAL_ID, PIICategory.PROFESSIONAL, SensitivityLevel.HIGH,
        ),
        _IndustryPattern(
            "ICD-10 Code",
            re.compile(r"^[A-Z][0-9][0-9A-Z](\.[0-9A-Z]{1,4})?$"),
            PIIType.MEDICAL_RECORD, PIICategory.HEALTH, SensitivityLevel.MEDIUM,
        ),
    ],
    "bfsi": [
        _IndustryPattern(
            "SWIFT/BIC Code",
            re.compile(r"^[A-Z]{6}[A-Z0-9]{2}([A-Z0-9]{3})?$"),
            PIIType.BANK_ACCOUNT, PIICategory.FINANCIAL, SensitivityLevel.MEDIUM,
        ),
        _IndustryPattern(
            "IBAN",
            re.compile(r"^[A-Z]{2}\d{2}[A-Z0-9]{11,30}$"),
            PIIType.BANK_ACCOUNT, PIICategory.FINANCIAL, SensitivityLevel.HIGH,
        ),
    ],
    "hr": [
        _IndustryPattern(
            "Employee ID",
            re.compile(r"^EMP-?\d{3,6}$", re.IGNORECASE),
            PIIType.NATIONAL_ID, PIICategory.PROFESSIONAL, SensitivityLevel.LOW,
        ),
    ],
}


def normalize_industry(industry: str) -> str:
    """Map a free-form industry label onto a pattern bucket."""
    ind = industry.lower()
    if "health" in ind or "medical" in ind:
        return "healthcare"
    if "financ" in ind or "bank" in ind or "bfsi" in ind or "insur" in ind:
        return "bfsi"
    if "hr" in ind or "human" in ind or "recru" in ind:
        return "hr"
    return ind


class IndustryStrategy(Strategy):
    """Sector-specific identifiers (NPI, SWIFT, employee IDs, ...).

    Precision-oriented: does nothing without an industry hint.
    """

    name = "industry_pattern"
    method = DetectionMethod.INDUSTRY

    def __init__(self, patterns: dict[str, list[_IndustryPattern]] | None = None) -> None:
        self._patterns = patterns if patterns is not None else _INDUSTRY_PATTERNS

    @property
    def weight(self) -> float:
        return 0.90

    async def detect(self, input: DetectionInput) -> list[Result]:
        if not input.industry:
            return []

        patterns = self._patterns.get(normalize_industry(input.industry))
        if not patterns:
            return []

        samples = input.sanitized_samples or input.samples
        values = [s for s in samples if s]
        if not values:
            return []

        results: list[Result] = []
        for pattern in patterns:
            matches = sum(1 for v in values if pattern.regex.match(v))
            if matches == 0:
                continue
            results.append(
                Result(
                    category=pattern.category,
                    pii_type=pattern.pii_type,
                    sensitivity=pattern.sensitivity,
                    confidence=min(matches / len(values), _MAX_CONFIDENCE),
                    method=DetectionMethod.INDUSTRY,
                    reasoning=f"Matched industry pattern: {pattern.name}",
                )
            )
        return results
