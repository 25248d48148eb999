from __future__ import annotations

import logging

from detection.detector import ComposableDetector
from detection.strategy import ColumnContext, DetectionInput, MergedDetection, Report
from schemas.api import (
    DetectionResponse,
    DetectRequest,
    DetectResponse,
    StrategyOutcomeResponse,
)
from tenancy import tenant_scope

logger = logging.getLogger(__name__)


def to_detection_input(body: DetectRequest) -> DetectionInput:
    return DetectionInput(
        column_name=body.column_name,
        data_type=body.data_type,
        table_name=body.table_name,
        industry=body.industry,
        samples=tuple(body.samples),
        adjacent_columns=tuple(
            ColumnContext(name=c.name, data_type=c.data_type) for c in body.adjacent_columns
        ),
    )


def _detection_response(d: MergedDetection) -> DetectionResponse:
    return DetectionResponse(
        category=str(getattr(d.category, "value", d.category)),
        pii_type=str(getattr(d.pii_type, "value", d.pii_type)),
        sensitivity=d.sensitivity,
        confidence=round(d.final_confidence, 4),
        confidence_level=d.confidence_level,
        methods=list(d.methods),
        reasoning=d.reasoning,
        requires_review=d.requires_review,
    )


def to_response(report: Report) -> DetectResponse:
    return DetectResponse(
        column_name=report.column_name,
        is_pii=report.is_pii,
        detections=[_detection_response(d) for d in report.detections],
        top_match=_detection_response(report.top_match) if report.top_match else None,
        strategies=[
            StrategyOutcomeResponse(
                name=o.name,
                method=o.method,
                found=o.found,
                result_count=o.result_count,
                duration_ms=o.duration * 1000,
                error=o.error,
            )
            for o in report.strategy_outcomes
        ],
        duration_ms=report.duration * 1000,
    )


async def classify_column(
    detector: ComposableDetector,
    body: DetectRequest,
    tenant_id: str | None = None,
) -> DetectResponse:
    """Classify one column, charging AI usage to *tenant_id* when given."""
    with tenant_scope(tenant_id):
        report = await detector.detect(to_detection_input(body))

    failed = [o.name for o in report.strategy_outcomes if o.error]
    if failed:
        logger.warning("Column %r classified with failed strategies: %s", body.column_name, failed)
    return to_response(report)
