"""Provider status endpoint.

GET /api/providers  registered LLM providers, availability and fallback order
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Request

from schemas.api import ProvidersResponse, ProviderStatus

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("", response_model=ProvidersResponse)
async def list_providers(request: Request):
    """List registered providers. API keys are never returned."""
    stack = request.app.state.ai_stack
    if stack is None:
        return ProvidersResponse(providers=[], fallback_chain=[], ai_enabled=False)

    available = set(await stack.registry.list_available())
    providers: list[ProviderStatus] = []
    for name in stack.registry.list():
        config = stack.registry.get_config(name)
        providers.append(ProviderStatus(
            name=name,
            type=config.type.value,
            default_model=config.default_model,
            fast_model=config.fast_model,
            available=name in available,
        ))

    return ProvidersResponse(
        providers=providers,
        fallback_chain=stack.selector.fallback_chain,
        ai_enabled=True,
    )
