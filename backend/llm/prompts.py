"""Prompt templates for the AI gateway.

Only sanitized sample descriptors and column metadata are ever rendered into
these prompts. ``build_pii_detection_prompt`` and
``build_purpose_suggestion_prompt`` turn gateway inputs into the final
user message.
"""

from __future__ import annotations

PII_SYSTEM_PROMPT = (
    "You are a data privacy analysis assistant specializing in PII detection. "
    "Always respond with valid JSON only. No markdown fences."
)

PURPOSE_SYSTEM_PROMPT = (
    "You are a data privacy compliance assistant. Suggest processing purposes "
    "based on GDPR, DPDPA, and other regulations. Respond with valid JSON only."
)

PII_CATEGORIES = (
    "IDENTITY, CONTACT, FINANCIAL, HEALTH, BIOMETRIC, GENETIC, LOCATION, "
    "BEHAVIORAL, PROFESSIONAL, GOVERNMENT_ID, MINOR"
)

PII_TYPES = (
    "NAME, EMAIL, PHONE, ADDRESS, AADHAAR, PAN, PASSPORT, SSN, NATIONAL_ID, "
    "DATE_OF_BIRTH, GENDER, BANK_ACCOUNT, CREDIT_CARD, IP_ADDRESS, MAC_ADDRESS, "
    "DEVICE_ID, BIOMETRIC, MEDICAL_RECORD, PHOTO, SIGNATURE"
)

LEGAL_BASES = (
    "CONSENT, CONTRACT, LEGAL_OBLIGATION, VITAL_INTEREST, PUBLIC_INTEREST, "
    "LEGITIMATE_INTEREST, EMPLOYMENT"
)

PII_DETECTION_PROMPT = """\
You are an expert data privacy analyst specializing in PII (Personally Identifiable Information) detection.

CONTEXT:
- Table name: {table_name}
- Column name: {column_name}
- Data type: {data_type}
- Sample value patterns (anonymized):{samples}
- Adjacent columns in same table:{adjacent}{industry}

TASK:
Determine if this column contains PII. If yes, classify it precisely.

RULES:
1. Consider the column name AND sample patterns together for context
2. Consider adjacent columns: "first_name" next to "last_name" and "email" is very likely a person record
3. Be conservative: if confidence < 0.50, mark requires_review as true
4. Consider Indian data formats: Aadhaar (12 digits), PAN (XXXXX1234X), Indian phone (+91)
5. Data types matter: VARCHAR/TEXT columns are more likely to contain PII than INT/BOOLEAN

VALID PII CATEGORIES: {categories}

VALID PII TYPES: {types}

SENSITIVITY LEVELS:
- CRITICAL: Direct identity theft risk (Aadhaar, SSN, Credit Card, Bank Account)
- HIGH: Significant identity impact (PAN, Passport)
- MEDIUM: Moderate privacy impact (Email, Phone, Address, DOB, Location)
- LOW: Limited individual impact (Name, Postal Code, IP Address)

Respond ONLY with valid JSON, no markdown:
{{
  "is_pii": true/false,
  "category": "CATEGORY_FROM_LIST",
  "type": "TYPE_FROM_LIST",
  "sensitivity": "CRITICAL|HIGH|MEDIUM|LOW",
  "confidence": 0.00-1.00,
  "reasoning": "brief explanation of your decision",
  "requires_review": true/false
}}"""

PURPOSE_SUGGESTION_PROMPT = """\
You are a data governance expert helping organizations comply with data protection regulations (DPDPA, GDPR).

CONTEXT:
- Data source type: {data_source_type}
- Table/Entity: {entity_name}
- Column: {column_name}
- Detected PII type: {pii_type}{industry}

TASK:
Suggest the most likely data processing purpose(s) for collecting this data.

LEGAL BASES (pick one per purpose): {legal_bases}

Respond ONLY with a valid JSON array, no markdown:
[
  {{
    "purpose_code": "short_purpose_code",
    "confidence": 0.00-1.00,
    "reasoning": "Why this purpose applies",
    "legal_basis": "LEGAL_BASIS_FROM_LIST",
    "requires_explicit_consent": true/false
  }}
]"""


def _bullets(items: list[str]) -> str:
    return "".join(f"\n  - {item}" for item in items)


def _industry_line(industry: str) -> str:
    return f"\n- Industry: {industry}" if industry else ""


def build_pii_detection_prompt(
    table_name: str,
    column_name: str,
    data_type: str,
    sanitized_samples: list[str],
    adjacent_columns: list[str],
    industry: str = "",
) -> str:
    return PII_DETECTION_PROMPT.format(
        table_name=table_name,
        column_name=column_name,
        data_type=data_type,
        samples=_bullets(sanitized_samples),
        adjacent=_bullets(adjacent_columns),
        industry=_industry_line(industry),
        categories=PII_CATEGORIES,
        types=PII_TYPES,
    )


def build_purpose_suggestion_prompt(
    data_source_type: str,
    entity_name: str,
    column_name: str,
    pii_type: str,
    industry: str = "",
) -> str:
    return PURPOSE_SUGGESTION_PROMPT.format(
        data_source_type=data_source_type,
        entity_name=entity_name,
        column_name=column_name,
        pii_type=pii_type,
        industry=_industry_line(industry),
        legal_bases=LEGAL_BASES,
    )
