"""Classification endpoints.

POST /api/detect     classify one column from its metadata and samples
POST /api/purposes   suggest processing purposes for a detected PII column

Both accept an optional ``X-Tenant-ID`` header that scopes AI token
budgets and usage accounting.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Header

from api.dependencies import get_ai_stack, get_detector
from detection.detector import ComposableDetector
from llm.client import AIStack
from llm.gateway import PurposeSuggestion, PurposeSuggestionInput
from schemas.api import DetectRequest, DetectResponse
from services.classification_service import classify_column
from tenancy import tenant_scope

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/detect", response_model=DetectResponse)
async def detect(
    body: DetectRequest,
    detector: ComposableDetector = Depends(get_detector),
    x_tenant_id: str | None = Header(None),
):
    """Run every detection strategy against a column and return the merged report."""
    return await classify_column(detector, body, tenant_id=x_tenant_id)


@router.post("/purposes", response_model=list[PurposeSuggestion])
async def suggest_purposes(
    body: PurposeSuggestionInput,
    stack: AIStack = Depends(get_ai_stack),
    x_tenant_id: str | None = Header(None),
):
    """Ask the AI gateway for likely processing purposes and legal bases."""
    with tenant_scope(x_tenant_id):
        return await stack.gateway.suggest_purposes(body)
