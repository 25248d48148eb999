"""Tests for detection.pattern: regex matching over raw samples."""

from __future__ import annotations

import pytest

from detection.pattern import PatternStrategy
from detection.strategy import DetectionInput
from schemas.entities import DetectionMethod, PIICategory, PIIType, SensitivityLevel


@pytest.fixture
def strategy() -> PatternStrategy:
    return PatternStrategy()


def _by_type(results):
    return {r.pii_type: r for r in results}


class TestPatternStrategy:
    def test_identity(self, strategy: PatternStrategy):
        assert strategy.name == "pattern"
        assert strategy.method == DetectionMethod.REGEX
        assert strategy.weight == 0.90

    @pytest.mark.asyncio
    async def test_no_samples_returns_nothing(self, strategy: PatternStrategy):
        assert await strategy.detect(DetectionInput(column_name="email")) == []

    @pytest.mark.asyncio
    async def test_all_emails_full_confidence(self, strategy: PatternStrategy):
        results = await strategy.detect(
            DetectionInput(column_name="x", samples=("a@b.com", "c@d.org", "e@f.net"))
        )
        assert len(results) == 1
        r = results[0]
        assert r.pii_type == PIIType.EMAIL
        assert r.category == PIICategory.CONTACT
        assert r.sensitivity == SensitivityLevel.MEDIUM
        assert r.confidence == pytest.approx(0.90)
        assert r.reasoning == "Regex pattern matched"

    @pytest.mark.asyncio
    async def test_confidence_scales_with_match_rate(self, strategy: PatternStrategy):
        results = await strategy.detect(
            DetectionInput(column_name="x", samples=("a@b.com", "hello", "world", "foo"))
        )
        email = _by_type(results)[PIIType.EMAIL]
        assert email.confidence == pytest.approx(0.90 * (0.7 + 0.3 * 0.25))

    @pytest.mark.asyncio
    async def test_sample_counted_once_per_type(self, strategy: PatternStrategy):
        # 9876543210 matches both the Indian and the US phone pattern
        results = await strategy.detect(
            DetectionInput(column_name="x", samples=("9876543210", "9123456789"))
        )
        phone = _by_type(results)[PIIType.PHONE]
        assert phone.confidence == pytest.approx(0.90)
        assert len([r for r in results if r.pii_type == PIIType.PHONE]) == 1

    @pytest.mark.asyncio
    async def test_samples_are_trimmed(self, strategy: PatternStrategy):
        results = await strategy.detect(
            DetectionInput(column_name="x", samples=("  ABCDE1234F  ",))
        )
        assert _by_type(results)[PIIType.PAN].sensitivity == SensitivityLevel.HIGH

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "sample, pii_type",
        [
            ("2345 6789 0123", PIIType.AADHAAR),
            ("4111 1111 1111 1111", PIIType.CREDIT_CARD),
            ("123-45-6789", PIIType.SSN),
            ("10.0.0.1", PIIType.IP_ADDRESS),
            ("1990-08-15", PIIType.DATE_OF_BIRTH),
            ("J83698541", PIIType.PASSPORT),
        ],
    )
    async def test_recognised_formats(self, strategy: PatternStrategy, sample: str, pii_type: PIIType):
        results = await strategy.detect(DetectionInput(column_name="x", samples=(sample,)))
        assert pii_type in _by_type(results)

    @pytest.mark.asyncio
    async def test_unstructured_text_finds_nothing(self, strategy: PatternStrategy):
        results = await strategy.detect(
            DetectionInput(column_name="x", samples=("lorem ipsum", "dolor"))
        )
        assert results == []
