"""AI gateway: the single entry point application code uses to talk to LLMs.

``DefaultGateway`` renders prompts, routes them through the
``ProviderSelector`` and parses the structured JSON answers. Inputs carry
sanitized sample descriptors only; raw values never reach this layer.
"""

from __future__ import annotations

import json
import logging
import re
import time
from abc import ABC, abstractmethod

from pydantic import BaseModel, Field, TypeAdapter, ValidationError

from llm.prompts import (
    PII_SYSTEM_PROMPT,
    PURPOSE_SYSTEM_PROMPT,
    build_pii_detection_prompt,
    build_purpose_suggestion_prompt,
)
from llm.providers import CompletionOptions, CompletionResult
from llm.selector import ProviderSelector

logger = logging.getLogger(__name__)

PII_DETECTION_USE_CASE = "pii_detection"
PURPOSE_SUGGESTION_USE_CASE = "purpose_suggestion"

_CODE_FENCE_RE = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.DOTALL)


# ---------------------------------------------------------------------------
# Gateway request / response models
# ---------------------------------------------------------------------------


class PIIDetectionInput(BaseModel):
    table_name: str = ""
    column_name: str
    data_type: str = ""
    sanitized_samples: list[str] = Field(default_factory=list)
    adjacent_columns: list[str] = Field(default_factory=list)
    industry: str = ""


class PIIDetectionResult(BaseModel):
    is_pii: bool = False
    category: str = ""
    type: str = ""
    sensitivity: str = ""
    confidence: float = 0.0
    reasoning: str = ""
    requires_review: bool = False
    provider: str = ""
    tokens_used: int = 0
    duration: float = 0.0


class PurposeSuggestionInput(BaseModel):
    data_source_type: str = ""
    entity_name: str = ""
    column_name: str = ""
    pii_type: str = ""
    industry: str = ""


class PurposeSuggestion(BaseModel):
    purpose_code: str
    confidence: float = 0.0
    reasoning: str = ""
    legal_basis: str = ""
    requires_explicit_consent: bool = False


PURPOSE_LIST = TypeAdapter(list[PurposeSuggestion])


# ---------------------------------------------------------------------------
# Interface
# ---------------------------------------------------------------------------


class Gateway(ABC):
    """Unified AI abstraction over providers, fallback and caching."""

    @abstractmethod
    async def detect_pii(self, input: PIIDetectionInput) -> PIIDetectionResult:
        ...

    @abstractmethod
    async def suggest_purposes(self, input: PurposeSuggestionInput) -> list[PurposeSuggestion]:
        ...

    @abstractmethod
    async def complete(self, prompt: str, opts: CompletionOptions) -> CompletionResult:
        ...


def strip_code_fence(text: str) -> str:
    """Remove a surrounding Markdown code fence, if the model added one."""
    stripped = text.strip()
    match = _CODE_FENCE_RE.match(stripped)
    return match.group(1) if match else stripped


# ---------------------------------------------------------------------------
# Default implementation
# ---------------------------------------------------------------------------


class DefaultGateway(Gateway):
    """Gateway backed by a ``ProviderSelector``."""

    def __init__(self, selector: ProviderSelector) -> None:
        self._selector = selector

    async def detect_pii(self, input: PIIDetectionInput) -> PIIDetectionResult:
        start = time.perf_counter()
        prompt = build_pii_detection_prompt(
            table_name=input.table_name,
            column_name=input.column_name,
            data_type=input.data_type,
            sanitized_samples=input.sanitized_samples,
            adjacent_columns=input.adjacent_columns,
            industry=input.industry,
        )
        opts = CompletionOptions(
            use_case=PII_DETECTION_USE_CASE,
            priority="accuracy",
            max_tokens=512,
            temperature=0.1,
            system_prompt=PII_SYSTEM_PROMPT,
        )
        result = await self._selector.complete_with_fallback(prompt, opts)

        try:
            parsed = PIIDetectionResult.model_validate_json(strip_code_fence(result.response))
        except ValidationError as exc:
            logger.warning(
                "Failed to parse structured PII response from %s, returning raw: %s",
                result.provider, exc,
            )
            parsed = PIIDetectionResult(reasoning=result.response)

        parsed.provider = result.provider
        parsed.tokens_used = result.tokens_used
        parsed.duration = time.perf_counter() - start
        return parsed

    async def suggest_purposes(self, input: PurposeSuggestionInput) -> list[PurposeSuggestion]:
        prompt = build_purpose_suggestion_prompt(
            data_source_type=input.data_source_type,
            entity_name=input.entity_name,
            column_name=input.column_name,
            pii_type=input.pii_type,
            industry=input.industry,
        )
        opts = CompletionOptions(
            use_case=PURPOSE_SUGGESTION_USE_CASE,
            priority="accuracy",
            max_tokens=512,
            temperature=0.2,
            system_prompt=PURPOSE_SYSTEM_PROMPT,
        )
        result = await self._selector.complete_with_fallback(prompt, opts)

        try:
            return PURPOSE_LIST.validate_json(strip_code_fence(result.response))
        except ValidationError as exc:
            logger.warning("Failed to parse purpose suggestions from %s: %s", result.provider, exc)
            return []

    async def complete(self, prompt: str, opts: CompletionOptions) -> CompletionResult:
        return await self._selector.complete_with_fallback(prompt, opts)


def fingerprint_payload(payload: object) -> str:
    """Canonical JSON for cache keys (sorted keys, no whitespace)."""
    return json.dumps(payload, sort_keys=True, separators=(",", ":"), default=str)
