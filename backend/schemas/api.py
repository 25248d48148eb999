from __future__ import annotations

from pydantic import BaseModel, Field

from schemas.entities import ConfidenceLevel, DetectionMethod, SensitivityLevel


# --- Detection Schemas ---

class AdjacentColumn(BaseModel):
    name: str = Field(..., min_length=1)
    data_type: str = ""


class DetectRequest(BaseModel):
    column_name: str = Field(..., min_length=1, max_length=255)
    data_type: str = ""
    table_name: str = ""
    industry: str = ""
    samples: list[str] = Field(default_factory=list, max_length=100)
    adjacent_columns: list[AdjacentColumn] = Field(default_factory=list)


class DetectionResponse(BaseModel):
    category: str
    pii_type: str
    sensitivity: SensitivityLevel
    confidence: float
    confidence_level: ConfidenceLevel
    methods: list[DetectionMethod]
    reasoning: str
    requires_review: bool


class StrategyOutcomeResponse(BaseModel):
    name: str
    method: DetectionMethod
    found: bool
    result_count: int
    duration_ms: float
    error: str | None = None


class DetectResponse(BaseModel):
    column_name: str
    is_pii: bool
    detections: list[DetectionResponse] = []
    top_match: DetectionResponse | None = None
    strategies: list[StrategyOutcomeResponse] = []
    duration_ms: float


# --- Provider Schemas ---

class ProviderStatus(BaseModel):
    name: str
    type: str
    default_model: str
    fast_model: str = ""
    available: bool


class ProvidersResponse(BaseModel):
    providers: list[ProviderStatus]
    fallback_chain: list[str]
    ai_enabled: bool
