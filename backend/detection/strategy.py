"""Detection strategy contract and the data types flowing through the engine.

Each strategy independently analyses a single field and returns zero or more
``Result`` objects. The ``ComposableDetector`` runs every strategy and merges
their findings into a ``Report`` using the strategy weights.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field

from schemas.entities import (
    ConfidenceLevel,
    DetectionMethod,
    PIICategory,
    SensitivityLevel,
)

# Detections below this merged confidence need a human to look at them.
REVIEW_THRESHOLD = 0.80


# ---------------------------------------------------------------------------
# Input / output types
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ColumnContext:
    """Minimal metadata about a neighbouring column."""

    name: str
    data_type: str = ""


@dataclass(frozen=True)
class DetectionInput:
    """Everything known about one field to classify.

    ``samples`` hold raw values and never leave the process; only the
    ``sanitized_samples`` (structural descriptors) may be sent to a provider.
    """

    column_name: str
    data_type: str = ""
    table_name: str = ""
    industry: str = ""
    samples: tuple[str, ...] = ()
    sanitized_samples: tuple[str, ...] = ()
    adjacent_columns: tuple[ColumnContext, ...] = ()


@dataclass
class Result:
    """A single finding produced by one strategy. Always merged, never stored."""

    category: PIICategory | str
    pii_type: str
    sensitivity: SensitivityLevel
    confidence: float
    method: DetectionMethod
    reasoning: str = ""


@dataclass(frozen=True)
class MergedDetection:
    """One detected PII type after merging all strategies that reported it."""

    category: PIICategory | str
    pii_type: str
    sensitivity: SensitivityLevel
    final_confidence: float
    methods: tuple[DetectionMethod, ...]
    reasoning: str
    requires_review: bool

    @property
    def confidence_level(self) -> ConfidenceLevel:
        return route_by_confidence(self.final_confidence)


@dataclass(frozen=True)
class StrategyOutcome:
    """What a single strategy found (or why it failed)."""

    name: str
    method: DetectionMethod
    found: bool
    result_count: int
    duration: float
    error: str | None = None


@dataclass(frozen=True)
class Report:
    """Final, read-only output of the detector for one field."""

    column_name: str
    is_pii: bool
    detections: tuple[MergedDetection, ...] = ()
    top_match: MergedDetection | None = None
    strategy_outcomes: tuple[StrategyOutcome, ...] = field(default_factory=tuple)
    duration: float = 0.0


# ---------------------------------------------------------------------------
# Strategy interface
# ---------------------------------------------------------------------------


class Strategy(ABC):
    """A single PII detection technique."""

    name: str = "base"
    method: DetectionMethod

    @property
    @abstractmethod
    def weight(self) -> float:
        """Confidence weight (0.0-1.0) used when merging across strategies."""
        ...

    @abstractmethod
    async def detect(self, input: DetectionInput) -> list[Result]:
        """Analyse *input* and return zero or more findings."""
        ...


# ---------------------------------------------------------------------------
# Confidence routing
# ---------------------------------------------------------------------------


def route_by_confidence(confidence: float) -> ConfidenceLevel:
    """Map a confidence score to its verification workflow.

    Each band is inclusive on its lower edge.
    """
    if confidence >= 0.95:
        return ConfidenceLevel.AUTO_VERIFY
    if confidence >= REVIEW_THRESHOLD:
        return ConfidenceLevel.QUICK_VERIFY
    if confidence >= 0.50:
        return ConfidenceLevel.MANUAL_REVIEW
    return ConfidenceLevel.LOW_CONFIDENCE
