from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field

from detection.ai_strategy import AIStrategy
from detection.heuristic import HeuristicStrategy
from detection.industry import IndustryStrategy
from detection.pattern import PatternStrategy
from detection.strategy import (
    REVIEW_THRESHOLD,
    DetectionInput,
    MergedDetection,
    Report,
    Result,
    Strategy,
    StrategyOutcome,
)
from llm.gateway import Gateway
from schemas.entities import DetectionMethod, PIICategory, SensitivityLevel

logger = logging.getLogger(__name__)

# Confidence multipliers when independent methods agree on the same PII type.
_TWO_METHOD_BOOST = 1.05
_MULTI_METHOD_BOOST = 1.10


# ---------------------------------------------------------------------------
# Merge bookkeeping
# ---------------------------------------------------------------------------


@dataclass
class _TaggedResult:
    result: Result
    weight: float


@dataclass
class _Group:
    category: PIICategory | str
    pii_type: str
    sensitivity: SensitivityLevel
    methods: list[DetectionMethod] = field(default_factory=list)
    reasoning: list[str] = field(default_factory=list)
    weighted_sum: float = 0.0
    total_weight: float = 0.0


# ---------------------------------------------------------------------------
# Detector
# ---------------------------------------------------------------------------


class ComposableDetector:
    """Chains detection strategies and merges their results.

    Strategies run sequentially in the order given. A failing strategy is
    recorded in the report's ``strategy_outcomes`` and never aborts the
    whole detection.

    Confidence routing of the merged detections::

        >= 0.95     AUTO_VERIFY    (no human review)
        0.80-0.95   QUICK_VERIFY   (one-click confirm)
        0.50-0.80   MANUAL_REVIEW  (human inspects)
        < 0.50      LOW_CONFIDENCE (flagged)
    """

    def __init__(self, *strategies: Strategy) -> None:
        self._strategies: tuple[Strategy, ...] = strategies

    @property
    def strategies(self) -> tuple[Strategy, ...]:
        return self._strategies

    async def detect(self, input: DetectionInput) -> Report:
        """Run all strategies against *input* and return the merged report."""
        start = time.perf_counter()
        outcomes: list[StrategyOutcome] = []
        tagged: list[_TaggedResult] = []

        for strategy in self._strategies:
            strat_start = time.perf_counter()
            error: str | None = None
            try:
                results = await strategy.detect(input)
            except Exception as exc:
                logger.warning(
                    "Strategy %s failed on column %r: %s",
                    strategy.name, input.column_name, exc,
                )
                results = []
                error = str(exc) or type(exc).__name__

            outcomes.append(
                StrategyOutcome(
                    name=strategy.name,
                    method=strategy.method,
                    found=len(results) > 0,
                    result_count=len(results),
                    duration=time.perf_counter() - strat_start,
                    error=error,
                )
            )
            weight = strategy.weight
            tagged.extend(_TaggedResult(result=r, weight=weight) for r in results)

        if not tagged:
            return Report(
                column_name=input.column_name,
                is_pii=False,
                strategy_outcomes=tuple(outcomes),
                duration=time.perf_counter() - start,
            )

        detections = self._merge_results(tagged)
        return Report(
            column_name=input.column_name,
            is_pii=len(detections) > 0,
            detections=tuple(detections),
            top_match=detections[0] if detections else None,
            strategy_outcomes=tuple(outcomes),
            duration=time.perf_counter() - start,
        )

    # -- Merge ---------------------------------------------------------------

    @staticmethod
    def _merge_results(tagged: list[_TaggedResult]) -> list[MergedDetection]:
        """Group findings by PII type and compute a weighted confidence.

        Sensitivity within a group only ever escalates. Groups confirmed by
        more than one detection method get a consensus boost before the
        1.0 cap is applied.
        """
        groups: dict[str, _Group] = {}

        for t in tagged:
            r = t.result
            group = groups.get(r.pii_type)
            if group is None:
                group = _Group(
                    category=r.category,
                    pii_type=r.pii_type,
                    sensitivity=r.sensitivity,
                )
                groups[r.pii_type] = group

            if r.method not in group.methods:
                group.methods.append(r.method)
            group.reasoning.append(r.reasoning)
            group.weighted_sum += t.weight * r.confidence
            group.total_weight += t.weight

            if r.sensitivity.rank > group.sensitivity.rank:
                group.sensitivity = r.sensitivity

        merged: list[MergedDetection] = []
        for group in groups.values():
            if group.total_weight > 0:
                final = group.weighted_sum / group.total_weight
            else:
                final = 0.0
            final = min(boost_multi_method(final, len(group.methods)), 1.0)
            final = max(final, 0.0)

            merged.append(
                MergedDetection(
                    category=group.category,
                    pii_type=group.pii_type,
                    sensitivity=group.sensitivity,
                    final_confidence=final,
                    methods=tuple(group.methods),
                    reasoning=merge_reasoning(group.reasoning),
                    requires_review=final < REVIEW_THRESHOLD,
                )
            )

        # sorted() is stable, so ties keep grouping order.
        merged = sorted(merged, key=lambda d: d.final_confidence, reverse=True)
        return merged


def boost_multi_method(confidence: float, method_count: int) -> float:
    """Raise *confidence* when several independent methods agree.

    Two methods: +5%. Three or more: +10%. The result is not capped here.
    """
    if method_count >= 3:
        return confidence * _MULTI_METHOD_BOOST
    if method_count == 2:
        return confidence * _TWO_METHOD_BOOST
    return confidence


def merge_reasoning(reasons: list[str]) -> str:
    """Deduplicate reasoning strings (first seen wins) and join them."""
    unique = [r for r in dict.fromkeys(reasons) if r]
    return "; ".join(unique)


# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------


def build_default_detector(
    gateway: Gateway | None = None,
    ai_weight: float = 0.8,
) -> ComposableDetector:
    """Standard stack: pattern, heuristic, industry and (if a gateway is
    given) the AI strategy. Pass ``None`` to run fully offline."""
    strategies: list[Strategy] = [
        PatternStrategy(),
        HeuristicStrategy(),
        IndustryStrategy(),
    ]
    if gateway is not None:
        strategies.append(AIStrategy(gateway, weight=ai_weight))
    return ComposableDetector(*strategies)


def build_offline_detector() -> ComposableDetector:
    """Pattern, heuristic and industry strategies only, no LLM calls."""
    return build_default_detector(None)
