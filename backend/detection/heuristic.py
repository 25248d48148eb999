from __future__ import annotations

from dataclasses import dataclass

from detection.strategy import DetectionInput, Result, Strategy
from schemas.entities import DetectionMethod, PIICategory, PIIType, SensitivityLevel


@dataclass(frozen=True)
class _HeuristicMatch:
    category: PIICategory
    pii_type: PIIType
    sensitivity: SensitivityLevel


# ---------------------------------------------------------------------------
# Known column-name variants -> classification
# ---------------------------------------------------------------------------

_COLUMN_NAME_GROUPS: list[tuple[list[str], PIICategory, PIIType, SensitivityLevel]] = [
    (
        ["email", "e_mail", "emailaddress", "email_address", "mail",
         "emailid", "email_id", "user_email", "useremail"],
        PIICategory.CONTACT, PIIType.EMAIL, SensitivityLevel.MEDIUM,
    ),
    (
        ["phone", "phonenumber", "phone_number", "mobile", "mobilenumber",
         "mobile_number", "cell", "cellphone", "telephone", "contact",
         "contactnumber", "contact_number", "tel", "fax"],
        PIICategory.CONTACT, PIIType.PHONE, SensitivityLevel.MEDIUM,
    ),
    (
        ["name", "fullname", "full_name", "username", "user_name",
         "displayname", "display_name", "customername", "customer_name",
         "firstname", "first_name", "fname", "givenname", "given_name",
         "lastname", "last_name", "lname", "surname", "familyname", "family_name"],
        PIICategory.IDENTITY, PIIType.NAME, SensitivityLevel.LOW,
    ),
    (
        ["address", "street", "streetaddress", "street_address", "addr",
         "address1", "address2", "addressline1", "addressline2",
         "city", "state", "country"],
        PIICategory.CONTACT, PIIType.ADDRESS, SensitivityLevel.MEDIUM,
    ),
    (
        ["postal", "postalcode", "postal_code", "zip", "zipcode", "zip_code",
         "pincode", "pin_code"],
        PIICategory.CONTACT, PIIType.ADDRESS, SensitivityLevel.LOW,
    ),
    (
        ["aadhaar", "aadhar", "aadhaarnumber", "aadhaar_number",
         "aadhaarid", "aadhaar_id", "uid"],
        PIICategory.GOVERNMENT_ID, PIIType.AADHAAR, SensitivityLevel.CRITICAL,
    ),
    (
        ["pan", "pannumber", "pan_number", "pancard", "pan_card"],
        PIICategory.GOVERNMENT_ID, PIIType.PAN, SensitivityLevel.HIGH,
    ),
    (
        ["ssn", "socialsecurity", "social_security", "socialsecuritynumber",
         "social_security_number"],
        PIICategory.GOVERNMENT_ID, PIIType.SSN, SensitivityLevel.CRITICAL,
    ),
    (
        ["dob", "dateofbirth", "date_of_birth", "birthdate", "birth_date", "birthday"],
        PIICategory.IDENTITY, PIIType.DATE_OF_BIRTH, SensitivityLevel.MEDIUM,
    ),
    (
        ["creditcard", "credit_card", "cardnumber", "card_number",
         "ccnumber", "cc_number", "ccn"],
        PIICategory.FINANCIAL, PIIType.CREDIT_CARD, SensitivityLevel.CRITICAL,
    ),
    (
        ["bankaccount", "bank_account", "accountnumber", "account_number",
         "acctno", "acct_no", "iban", "ifsc"],
        PIICategory.FINANCIAL, PIIType.BANK_ACCOUNT, SensitivityLevel.CRITICAL,
    ),
    (
        ["ip", "ipaddress", "ip_address", "ipaddr", "ip_addr",
         "clientip", "client_ip", "remoteaddr", "remote_addr"],
        PIICategory.BEHAVIORAL, PIIType.IP_ADDRESS, SensitivityLevel.LOW,
    ),
    (
        ["location", "latitude", "longitude", "lat", "lng", "lon",
         "geolocation", "geo_location", "coordinates"],
        PIICategory.LOCATION, PIIType.ADDRESS, SensitivityLevel.MEDIUM,
    ),
    (
        ["gender", "sex"],
        PIICategory.IDENTITY, PIIType.GENDER, SensitivityLevel.LOW,
    ),
    (
        ["passport", "passportnumber", "passport_number", "passportno", "passport_no"],
        PIICategory.GOVERNMENT_ID, PIIType.PASSPORT, SensitivityLevel.HIGH,
    ),
    (
        ["nationalid", "national_id", "idnumber", "id_number",
         "governmentid", "government_id"],
        PIICategory.GOVERNMENT_ID, PIIType.NATIONAL_ID, SensitivityLevel.HIGH,
    ),
]


def normalize_column_name(name: str) -> str:
    """Lowercase and strip underscores, hyphens and spaces."""
    return name.lower().replace("_", "").replace("-", "").replace(" ", "")


def _build_column_map() -> dict[str, _HeuristicMatch]:
    column_map: dict[str, _HeuristicMatch] = {}
    for names, category, pii_type, sensitivity in _COLUMN_NAME_GROUPS:
        match = _HeuristicMatch(category, pii_type, sensitivity)
        for n in names:
            column_map[normalize_column_name(n)] = match
    return column_map


class HeuristicStrategy(Strategy):
    """Column-name dictionary lookup. Never looks at sample values."""

    name = "heuristic"
    method = DetectionMethod.HEURISTIC

    def __init__(self) -> None:
        self._column_map = _build_column_map()

    @property
    def weight(self) -> float:
        return 0.70

    async def detect(self, input: DetectionInput) -> list[Result]:
        match = self._column_map.get(normalize_column_name(input.column_name))
        if match is None:
            return []
        return [
            Result(
                category=match.category,
                pii_type=match.pii_type,
                sensitivity=match.sensitivity,
                confidence=0.70,
                method=DetectionMethod.HEURISTIC,
                reasoning=f"Column name '{input.column_name}' matches known PII pattern",
            )
        ]
