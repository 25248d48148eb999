"""AI stack factory.

``build_ai_stack()`` turns settings into the provider registry, the
fallback selector and the gateway (wrapped in the Redis cache when a store
is given). Built once at startup and shared by every request.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import httpx

from cache.store import CacheStore
from config import Settings
from llm.cached_gateway import CachedGateway
from llm.gateway import DefaultGateway, Gateway
from llm.providers import ProviderConfig, ProviderType
from llm.registry import ProviderRegistry, build_registry
from llm.selector import ProviderSelector

logger = logging.getLogger(__name__)


@dataclass
class AIStack:
    registry: ProviderRegistry
    selector: ProviderSelector
    gateway: Gateway


def provider_configs(settings: Settings) -> list[ProviderConfig]:
    """Provider configs for every backend the settings describe."""
    timeout = settings.ai_request_timeout
    configs = [
        ProviderConfig(
            name="openai",
            type=ProviderType.OPENAI_COMPATIBLE,
            endpoint=settings.openai_base_url,
            api_key=settings.openai_api_key,
            default_model=settings.openai_model,
            fast_model=settings.openai_fast_model,
            timeout=timeout,
        ),
        ProviderConfig(
            name="anthropic",
            type=ProviderType.ANTHROPIC,
            endpoint=settings.anthropic_base_url,
            api_key=settings.anthropic_api_key,
            default_model=settings.anthropic_model,
            fast_model=settings.anthropic_fast_model,
            timeout=timeout,
            anthropic_version=settings.anthropic_version,
        ),
        ProviderConfig(
            name="ollama",
            type=ProviderType.OPENAI_COMPATIBLE,
            endpoint=settings.ollama_base_url,
            default_model=settings.ollama_model,
            timeout=timeout,
        ),
    ]

    if settings.generic_http_endpoint:
        configs.append(
            ProviderConfig(
                name=settings.generic_http_name,
                type=ProviderType.GENERIC_HTTP,
                endpoint=settings.generic_http_endpoint,
                api_key=settings.generic_http_api_key,
                default_model=settings.generic_http_model,
                timeout=timeout,
                completion_path=settings.generic_http_completion_path,
                request_body_template=settings.generic_http_request_template,
                response_content_path=settings.generic_http_response_content_path,
                response_tokens_path=settings.generic_http_response_tokens_path,
            )
        )
    return configs


def build_ai_stack(
    settings: Settings,
    store: CacheStore | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> AIStack:
    registry = build_registry(provider_configs(settings), transport)

    selector = ProviderSelector(registry, settings.fallback_chain)
    for use_case, provider in settings.use_case_preferences.items():
        selector.set_use_case_preference(use_case, provider)
        logger.info("Use case %s prefers provider %s", use_case, provider)

    gateway: Gateway = DefaultGateway(selector)
    if store is not None:
        gateway = CachedGateway(
            gateway,
            store,
            default_budget=settings.ai_default_token_budget,
            budget_fail_mode=settings.ai_budget_fail_mode,
            pii_ttl=settings.ai_pii_cache_ttl_seconds,
            purpose_ttl=settings.ai_purpose_cache_ttl_seconds,
        )

    logger.info(
        "AI gateway ready: providers=%s chain=%s cached=%s",
        registry.list(), selector.fallback_chain, store is not None,
    )
    return AIStack(registry=registry, selector=selector, gateway=gateway)
