from __future__ import annotations

import logging

from detection.strategy import DetectionInput, Result, Strategy
from llm.gateway import Gateway, PIIDetectionInput, PIIDetectionResult
from llm.sanitizer import Sanitizer
from schemas.entities import DetectionMethod, PIICategory, PIIType, SensitivityLevel

logger = logging.getLogger(__name__)

DEFAULT_AI_WEIGHT = 0.8

_CATEGORY_BY_TYPE: dict[PIIType, PIICategory] = {
    PIIType.NAME: PIICategory.IDENTITY,
    PIIType.DATE_OF_BIRTH: PIICategory.IDENTITY,
    PIIType.GENDER: PIICategory.IDENTITY,
    PIIType.PHOTO: PIICategory.IDENTITY,
    PIIType.SIGNATURE: PIICategory.IDENTITY,
    PIIType.EMAIL: PIICategory.CONTACT,
    PIIType.PHONE: PIICategory.CONTACT,
    PIIType.ADDRESS: PIICategory.CONTACT,
    PIIType.AADHAAR: PIICategory.GOVERNMENT_ID,
    PIIType.PAN: PIICategory.GOVERNMENT_ID,
    PIIType.PASSPORT: PIICategory.GOVERNMENT_ID,
    PIIType.SSN: PIICategory.GOVERNMENT_ID,
    PIIType.NATIONAL_ID: PIICategory.GOVERNMENT_ID,
    PIIType.BANK_ACCOUNT: PIICategory.FINANCIAL,
    PIIType.CREDIT_CARD: PIICategory.FINANCIAL,
    PIIType.IP_ADDRESS: PIICategory.BEHAVIORAL,
    PIIType.MAC_ADDRESS: PIICategory.BEHAVIORAL,
    PIIType.DEVICE_ID: PIICategory.BEHAVIORAL,
    PIIType.BIOMETRIC: PIICategory.BIOMETRIC,
    PIIType.MEDICAL_RECORD: PIICategory.HEALTH,
}

_SENSITIVITY_BY_CATEGORY: dict[PIICategory, SensitivityLevel] = {
    PIICategory.BIOMETRIC: SensitivityLevel.CRITICAL,
    PIICategory.GENETIC: SensitivityLevel.CRITICAL,
    PIICategory.HEALTH: SensitivityLevel.CRITICAL,
    PIICategory.MINOR: SensitivityLevel.CRITICAL,
    PIICategory.GOVERNMENT_ID: SensitivityLevel.HIGH,
    PIICategory.FINANCIAL: SensitivityLevel.HIGH,
    PIICategory.IDENTITY: SensitivityLevel.MEDIUM,
    PIICategory.CONTACT: SensitivityLevel.MEDIUM,
    PIICategory.LOCATION: SensitivityLevel.MEDIUM,
    PIICategory.BEHAVIORAL: SensitivityLevel.LOW,
    PIICategory.PROFESSIONAL: SensitivityLevel.LOW,
}


def infer_category(pii_type: str) -> PIICategory:
    """Most likely category for *pii_type*; IDENTITY when unknown."""
    try:
        return _CATEGORY_BY_TYPE.get(PIIType(pii_type), PIICategory.IDENTITY)
    except ValueError:
        return PIICategory.IDENTITY


def infer_sensitivity(category: PIICategory | str) -> SensitivityLevel:
    """Default sensitivity for *category*; MEDIUM when unknown."""
    try:
        return _SENSITIVITY_BY_CATEGORY.get(PIICategory(category), SensitivityLevel.MEDIUM)
    except ValueError:
        return SensitivityLevel.MEDIUM


def _coerce(enum_cls, value: str):
    try:
        return enum_cls(value.strip().upper())
    except ValueError:
        return None


class AIStrategy(Strategy):
    """LLM-backed classification through the AI gateway.

    Raw samples are turned into structural descriptors before the gateway
    sees them. Gateway errors (including quota rejections) propagate so the
    detector can record them against this strategy.
    """

    name = "ai"
    method = DetectionMethod.AI

    def __init__(self, gateway: Gateway, weight: float = DEFAULT_AI_WEIGHT) -> None:
        self._gateway = gateway
        self._sanitizer = Sanitizer()
        if weight <= 0 or weight > 1:
            weight = DEFAULT_AI_WEIGHT
        self._weight = weight

    @property
    def weight(self) -> float:
        return self._weight

    async def detect(self, input: DetectionInput) -> list[Result]:
        if input.samples:
            sanitized = self._sanitizer.sanitize_samples(input.samples)
        else:
            sanitized = list(input.sanitized_samples)

        request = PIIDetectionInput(
            table_name=input.table_name,
            column_name=input.column_name,
            data_type=input.data_type,
            sanitized_samples=sanitized,
            adjacent_columns=[c.name for c in input.adjacent_columns],
            industry=input.industry,
        )
        response = await self._gateway.detect_pii(request)

        if not response.is_pii:
            return []
        return [self._to_result(response)]

    @staticmethod
    def _to_result(response: PIIDetectionResult) -> Result:
        pii_type: PIIType | str = _coerce(PIIType, response.type) or response.type

        category: PIICategory | str
        if response.category:
            category = _coerce(PIICategory, response.category) or response.category
        else:
            category = infer_category(pii_type)

        sensitivity = _coerce(SensitivityLevel, response.sensitivity) if response.sensitivity else None
        if sensitivity is None:
            sensitivity = infer_sensitivity(category)

        return Result(
            category=category,
            pii_type=pii_type,
            sensitivity=sensitivity,
            confidence=min(max(response.confidence, 0.0), 1.0),
            method=DetectionMethod.AI,
            reasoning=response.reasoning,
        )
