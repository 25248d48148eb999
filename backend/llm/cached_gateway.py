"""Gateway decorator adding a Redis response cache and per-tenant token budgets.

Request flow::

    budget check -> reject (QuotaExceededError)
                 -> cache lookup -> hit: return
                                 -> miss / store down: delegate -> store + account -> return

The cache and usage accounting always fail open. Budget enforcement during
a store outage follows ``budget_fail_mode``: ``"open"`` lets the request
through, ``"closed"`` rejects it with ``BudgetUnavailableError``.
"""

from __future__ import annotations

import hashlib
import json
import logging
from dataclasses import asdict
from datetime import datetime, timezone
from typing import Literal

from pydantic import ValidationError

from cache.store import CacheStore, CacheUnavailableError
from llm.gateway import (
    Gateway,
    PIIDetectionInput,
    PIIDetectionResult,
    PurposeSuggestion,
    PurposeSuggestionInput,
    PURPOSE_LIST,
    fingerprint_payload,
)
from llm.providers import CompletionOptions, CompletionResult
from tenancy import current_tenant

logger = logging.getLogger(__name__)

PII_CACHE_TTL = 24 * 60 * 60
PURPOSE_CACHE_TTL = 48 * 60 * 60
USAGE_RETENTION = 30 * 24 * 60 * 60

CACHED_SUFFIX = " (cached)"


class QuotaExceededError(Exception):
    """The tenant has used up its daily AI token budget."""

    def __init__(self, tenant_id: str, usage: int, budget: int) -> None:
        self.tenant_id = tenant_id
        self.usage = usage
        self.budget = budget
        super().__init__(f"AI token budget exceeded ({usage}/{budget})")


class BudgetUnavailableError(QuotaExceededError):
    """Budget could not be verified and the gateway is configured to fail closed."""

    def __init__(self, tenant_id: str, reason: str) -> None:
        self.tenant_id = tenant_id
        self.usage = 0
        self.budget = 0
        Exception.__init__(self, f"AI token budget unavailable: {reason}")


def cache_key(prefix: str, payload: object) -> str:
    digest = hashlib.sha256(fingerprint_payload(payload).encode()).hexdigest()
    return f"ai:{prefix}:{digest}"


def usage_key(tenant_id: str, day: datetime | None = None) -> str:
    day = day or datetime.now(timezone.utc)
    return f"tenant:{tenant_id}:ai:tokens:{day.strftime('%Y%m%d')}"


def budget_key(tenant_id: str) -> str:
    return f"tenant:{tenant_id}:ai:budget"


class CachedGateway(Gateway):
    def __init__(
        self,
        inner: Gateway,
        store: CacheStore,
        *,
        default_budget: int = 0,
        budget_fail_mode: Literal["open", "closed"] = "open",
        pii_ttl: int = PII_CACHE_TTL,
        purpose_ttl: int = PURPOSE_CACHE_TTL,
    ) -> None:
        self._inner = inner
        self._store = store
        self._default_budget = default_budget
        self._fail_closed = budget_fail_mode == "closed"
        self._pii_ttl = pii_ttl
        self._purpose_ttl = purpose_ttl

    # -- Gateway interface ---------------------------------------------------

    async def detect_pii(self, input: PIIDetectionInput) -> PIIDetectionResult:
        await self._check_budget()

        key = cache_key("pii", input.model_dump())
        raw = await self._cache_get(key)
        if raw is not None:
            try:
                cached = PIIDetectionResult.model_validate_json(raw)
            except ValidationError as exc:
                logger.warning("Discarding corrupt cache entry %s: %s", key, exc)
            else:
                cached.provider = cached.provider + CACHED_SUFFIX
                cached.duration = 0.0
                return cached

        result = await self._inner.detect_pii(input)
        await self._cache_set(key, result.model_dump_json(), self._pii_ttl)
        await self._track_usage(result.tokens_used)
        return result

    async def suggest_purposes(self, input: PurposeSuggestionInput) -> list[PurposeSuggestion]:
        await self._check_budget()

        key = cache_key("purposes", input.model_dump())
        raw = await self._cache_get(key)
        if raw is not None:
            try:
                return PURPOSE_LIST.validate_json(raw)
            except ValidationError as exc:
                logger.warning("Discarding corrupt cache entry %s: %s", key, exc)

        suggestions = await self._inner.suggest_purposes(input)
        if suggestions:
            await self._cache_set(
                key, PURPOSE_LIST.dump_json(suggestions).decode(), self._purpose_ttl,
            )
        return suggestions

    async def complete(self, prompt: str, opts: CompletionOptions) -> CompletionResult:
        await self._check_budget()

        key = cache_key("completion", {"prompt": prompt, "opts": asdict(opts)})
        if opts.cache_ttl > 0:
            raw = await self._cache_get(key)
            if raw is not None:
                try:
                    data = json.loads(raw)
                    return CompletionResult(**{**data, "cached": True})
                except (TypeError, ValueError) as exc:  # JSONDecodeError is a ValueError
                    logger.warning("Discarding corrupt cache entry %s: %s", key, exc)

        result = await self._inner.complete(prompt, opts)
        if opts.cache_ttl > 0:
            await self._cache_set(key, json.dumps(asdict(result)), opts.cache_ttl)
        await self._track_usage(result.tokens_used)
        return result

    # -- Cache ---------------------------------------------------------------

    async def _cache_get(self, key: str) -> str | None:
        try:
            return await self._store.get(key)
        except CacheUnavailableError as exc:
            logger.warning("Cache lookup failed, treating as miss: %s", exc)
            return None

    async def _cache_set(self, key: str, value: str, ttl: int) -> None:
        try:
            await self._store.set(key, value, ttl)
        except CacheUnavailableError as exc:
            logger.warning("Failed to cache AI result: %s", exc)

    # -- Budgeting -----------------------------------------------------------

    async def _track_usage(self, tokens: int) -> None:
        if tokens <= 0:
            return
        tenant_id = current_tenant()
        if tenant_id is None:
            return
        try:
            await self._store.incr_with_expiry(usage_key(tenant_id), tokens, USAGE_RETENTION)
        except CacheUnavailableError as exc:
            logger.warning("Failed to track token usage for tenant %s: %s", tenant_id, exc)

    async def _check_budget(self) -> None:
        tenant_id = current_tenant()
        if tenant_id is None:
            return

        try:
            budget = await self._load_budget(tenant_id)
            if budget <= 0:
                return
            usage_raw = await self._store.get(usage_key(tenant_id))
        except CacheUnavailableError as exc:
            if self._fail_closed:
                raise BudgetUnavailableError(tenant_id, str(exc)) from exc
            logger.error("Budget check failed for tenant %s, allowing request: %s", tenant_id, exc)
            return

        usage = _parse_int(usage_raw) or 0
        if usage >= budget:
            raise QuotaExceededError(tenant_id, usage, budget)

    async def _load_budget(self, tenant_id: str) -> int:
        raw = await self._store.get(budget_key(tenant_id))
        if raw is None:
            return self._default_budget
        budget = _parse_int(raw)
        if budget is None:
            logger.warning("Ignoring malformed AI budget %r for tenant %s", raw, tenant_id)
            return self._default_budget
        return budget


def _parse_int(raw: str | None) -> int | None:
    if raw is None:
        return None
    try:
        return int(raw)
    except ValueError:
        return None
