from __future__ import annotations

from enum import Enum


class PIICategory(str, Enum):
    """Universal categories of personal data."""
    IDENTITY = "IDENTITY"
    CONTACT = "CONTACT"
    FINANCIAL = "FINANCIAL"
    HEALTH = "HEALTH"
    BIOMETRIC = "BIOMETRIC"
    GENETIC = "GENETIC"
    LOCATION = "LOCATION"
    BEHAVIORAL = "BEHAVIORAL"
    PROFESSIONAL = "PROFESSIONAL"
    GOVERNMENT_ID = "GOVERNMENT_ID"
    MINOR = "MINOR"


class PIIType(str, Enum):
    """Specific kinds of personal data."""
    NAME = "NAME"
    EMAIL = "EMAIL"
    PHONE = "PHONE"
    ADDRESS = "ADDRESS"
    AADHAAR = "AADHAAR"
    PAN = "PAN"
    PASSPORT = "PASSPORT"
    SSN = "SSN"
    NATIONAL_ID = "NATIONAL_ID"
    DATE_OF_BIRTH = "DATE_OF_BIRTH"
    GENDER = "GENDER"
    BANK_ACCOUNT = "BANK_ACCOUNT"
    CREDIT_CARD = "CREDIT_CARD"
    IP_ADDRESS = "IP_ADDRESS"
    MAC_ADDRESS = "MAC_ADDRESS"
    DEVICE_ID = "DEVICE_ID"
    BIOMETRIC = "BIOMETRIC"
    MEDICAL_RECORD = "MEDICAL_RECORD"
    PHOTO = "PHOTO"
    SIGNATURE = "SIGNATURE"


class SensitivityLevel(str, Enum):
    """Ordinal sensitivity tier: LOW < MEDIUM < HIGH < CRITICAL."""
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"

    @property
    def rank(self) -> int:
        return _SENSITIVITY_RANK[self]


_SENSITIVITY_RANK: dict[SensitivityLevel, int] = {
    SensitivityLevel.LOW: 1,
    SensitivityLevel.MEDIUM: 2,
    SensitivityLevel.HIGH: 3,
    SensitivityLevel.CRITICAL: 4,
}


class DetectionMethod(str, Enum):
    AI = "AI"
    REGEX = "REGEX"
    HEURISTIC = "HEURISTIC"
    INDUSTRY = "INDUSTRY"
    MANUAL = "MANUAL"


class ConfidenceLevel(str, Enum):
    """Verification workflow a detection is routed to."""
    AUTO_VERIFY = "AUTO_VERIFY"        # >= 0.95, no human review
    QUICK_VERIFY = "QUICK_VERIFY"      # 0.80-0.95, one-click confirm
    MANUAL_REVIEW = "MANUAL_REVIEW"    # 0.50-0.80, human inspects
    LOW_CONFIDENCE = "LOW_CONFIDENCE"  # < 0.50, flagged
