"""Provider selection with use-case routing and a fallback chain.

Example chain ``["openai", "anthropic", "ollama"]``: OpenAI is tried first;
if it is unavailable, errors out or answers with nothing, Anthropic is
tried, then the local Ollama server.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from llm.providers import CompletionOptions, CompletionResult
from llm.registry import ProviderRegistry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProviderAttempt:
    """Why one provider in the chain did not produce the answer."""

    provider: str
    reason: str


class AllProvidersFailedError(Exception):
    """No provider in the chain produced a non-empty completion."""

    def __init__(self, use_case: str, attempts: list[ProviderAttempt]) -> None:
        self.use_case = use_case
        self.attempts = attempts
        if attempts:
            detail = "; ".join(f"{a.provider}: {a.reason}" for a in attempts)
            message = f"all providers failed: {detail}"
        else:
            message = "no providers in fallback chain"
        super().__init__(message)


class ProviderSelector:
    """Picks providers for a request and falls through them in order."""

    def __init__(self, registry: ProviderRegistry, fallback_chain: list[str]) -> None:
        self._registry = registry
        self._fallback_chain = list(fallback_chain)
        self._use_case_map: dict[str, str] = {}

    @property
    def registry(self) -> ProviderRegistry:
        return self._registry

    @property
    def fallback_chain(self) -> list[str]:
        return list(self._fallback_chain)

    def set_use_case_preference(self, use_case: str, provider_name: str) -> None:
        """Route *use_case* requests to *provider_name* first."""
        self._use_case_map[use_case] = provider_name

    def build_chain(self, use_case: str) -> list[str]:
        """Preferred provider first, then the fallback chain, deduplicated."""
        chain: list[str] = []
        preferred = self._use_case_map.get(use_case)
        if preferred:
            chain.append(preferred)
        for name in self._fallback_chain:
            if name not in chain:
                chain.append(name)
        return chain

    async def complete_with_fallback(
        self, prompt: str, opts: CompletionOptions
    ) -> CompletionResult:
        chain = self.build_chain(opts.use_case)
        attempts: list[ProviderAttempt] = []

        for name in chain:
            provider = self._registry.get(name)
            if provider is None:
                attempts.append(ProviderAttempt(name, "not registered"))
                continue

            try:
                available = await provider.is_available()
            except Exception as exc:
                logger.warning("Provider %s health check failed, skipping: %s", name, exc)
                attempts.append(ProviderAttempt(name, f"health check failed: {exc}"))
                continue

            if not available:
                logger.warning(
                    "Provider %s unavailable, skipping (use_case=%s)", name, opts.use_case,
                )
                attempts.append(ProviderAttempt(name, "unavailable"))
                continue

            try:
                result = await provider.complete(prompt, opts)
            except Exception as exc:
                logger.error(
                    "Provider %s failed, trying next (use_case=%s): %s",
                    name, opts.use_case, exc,
                )
                attempts.append(ProviderAttempt(name, str(exc) or type(exc).__name__))
                continue

            if not result.response:
                logger.warning("Provider %s returned empty response, trying next", name)
                attempts.append(ProviderAttempt(name, "empty response"))
                continue

            return result

        raise AllProvidersFailedError(opts.use_case, attempts)
