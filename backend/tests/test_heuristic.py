"""Tests for detection.heuristic: column-name dictionary lookup."""

from __future__ import annotations

import pytest

from detection.heuristic import HeuristicStrategy, normalize_column_name
from detection.strategy import DetectionInput
from schemas.entities import DetectionMethod, PIICategory, PIIType, SensitivityLevel


@pytest.fixture
def strategy() -> HeuristicStrategy:
    return HeuristicStrategy()


class TestNormalizeColumnName:
    def test_strips_separators_and_case(self):
        assert normalize_column_name("E-Mail_Address") == "emailaddress"
        assert normalize_column_name("Date Of Birth") == "dateofbirth"


class TestHeuristicStrategy:
    def test_identity(self, strategy: HeuristicStrategy):
        assert strategy.name == "heuristic"
        assert strategy.method == DetectionMethod.HEURISTIC
        assert strategy.weight == 0.70

    @pytest.mark.asyncio
    @pytest.mark.parametrize("column", ["email", "EMAIL_ADDRESS", "Email-Id", "user email"])
    async def test_email_variants(self, strategy: HeuristicStrategy, column: str):
        results = await strategy.detect(DetectionInput(column_name=column))
        assert len(results) == 1
        r = results[0]
        assert r.pii_type == PIIType.EMAIL
        assert r.category == PIICategory.CONTACT
        assert r.confidence == pytest.approx(0.70)
        assert r.reasoning == f"Column name '{column}' matches known PII pattern"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "column, pii_type, sensitivity",
        [
            ("aadhaar_number", PIIType.AADHAAR, SensitivityLevel.CRITICAL),
            ("pan_card", PIIType.PAN, SensitivityLevel.HIGH),
            ("dob", PIIType.DATE_OF_BIRTH, SensitivityLevel.MEDIUM),
            ("zip_code", PIIType.ADDRESS, SensitivityLevel.LOW),
            ("client_ip", PIIType.IP_ADDRESS, SensitivityLevel.LOW),
            ("last_name", PIIType.NAME, SensitivityLevel.LOW),
        ],
    )
    async def test_known_columns(
        self, strategy: HeuristicStrategy, column: str, pii_type: PIIType, sensitivity: SensitivityLevel
    ):
        results = await strategy.detect(DetectionInput(column_name=column))
        assert results[0].pii_type == pii_type
        assert results[0].sensitivity == sensitivity

    @pytest.mark.asyncio
    async def test_ignores_samples(self, strategy: HeuristicStrategy):
        results = await strategy.detect(
            DetectionInput(column_name="order_total", samples=("a@b.com",))
        )
        assert results == []

    @pytest.mark.asyncio
    async def test_unknown_column(self, strategy: HeuristicStrategy):
        assert await strategy.detect(DetectionInput(column_name="created_at")) == []
