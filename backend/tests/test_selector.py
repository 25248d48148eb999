"""Tests for llm.registry and llm.selector: provider lookup and fallback."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from llm.providers import (
    CompletionOptions,
    CompletionResult,
    LLMProvider,
    ProviderConfig,
    ProviderError,
    ProviderType,
)
from llm.registry import ProviderRegistry, build_registry
from llm.selector import AllProvidersFailedError, ProviderSelector


def _provider(name: str, response: str = "ok", available: bool = True, error: Exception | None = None) -> AsyncMock:
    provider = AsyncMock(spec=LLMProvider)
    provider.name = name
    provider.is_available.return_value = available
    if error is not None:
        provider.complete.side_effect = error
    else:
        provider.complete.return_value = CompletionResult(response=response, provider=name)
    return provider


def _registry(*providers: AsyncMock) -> ProviderRegistry:
    registry = ProviderRegistry()
    for p in providers:
        registry.register(p.name, p, ProviderConfig(name=p.name, type=ProviderType.OPENAI_COMPATIBLE))
    return registry


# -----------------------------------------------------------------------
# Registry
# -----------------------------------------------------------------------


class TestRegistry:
    @pytest.mark.asyncio
    async def test_register_get_list_remove(self):
        b, a = _provider("b"), _provider("a", available=False)
        registry = _registry(b, a)

        assert registry.get("a") is a
        assert registry.get("zzz") is None
        assert registry.get_config("b").name == "b"
        assert registry.list() == ["a", "b"]
        assert await registry.list_available() == ["b"]

        registry.remove("a")
        assert registry.list() == ["b"]
        assert registry.get_config("a") is None
        assert "a" not in registry

    def test_build_registry_from_configs(self):
        registry = build_registry([
            ProviderConfig(name="openai", type=ProviderType.OPENAI_COMPATIBLE, api_key="k"),
            ProviderConfig(name="claude", type=ProviderType.ANTHROPIC, api_key="k"),
        ])
        assert registry.list() == ["claude", "openai"]
        assert len(registry) == 2

    def test_build_registry_rejects_unknown_type(self):
        with pytest.raises(ValueError):
            build_registry([ProviderConfig(name="x", type="nope")])

    @pytest.mark.asyncio
    async def test_list_available_skips_failing_health_check(self):
        ok, flaky = _provider("ok"), _provider("flaky")
        flaky.is_available.side_effect = RuntimeError("bad endpoint")
        assert await _registry(ok, flaky).list_available() == ["ok"]


# -----------------------------------------------------------------------
# Selector
# -----------------------------------------------------------------------


class TestBuildChain:
    def test_preference_first_then_deduplicated_chain(self):
        selector = ProviderSelector(ProviderRegistry(), ["a", "b", "c", "b"])
        selector.set_use_case_preference("pii_detection", "c")
        assert selector.build_chain("pii_detection") == ["c", "a", "b"]
        assert selector.build_chain("other") == ["a", "b", "c"]


class TestCompleteWithFallback:
    @pytest.mark.asyncio
    async def test_preferred_provider_served_first(self):
        default, preferred = _provider("default"), _provider("preferred")
        selector = ProviderSelector(_registry(default, preferred), ["default", "preferred"])
        selector.set_use_case_preference("pii_detection", "preferred")

        result = await selector.complete_with_fallback("p", CompletionOptions(use_case="pii_detection"))

        assert result.provider == "preferred"
        default.complete.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_skips_unavailable_and_failing(self):
        down = _provider("down", available=False)
        broken = _provider("broken", error=ProviderError("broken", "API error 500"))
        good = _provider("good")
        selector = ProviderSelector(_registry(down, broken, good), ["down", "broken", "good"])

        result = await selector.complete_with_fallback("p", CompletionOptions())

        assert result.provider == "good"
        down.complete.assert_not_awaited()
        broken.complete.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_empty_response_advances(self):
        empty, good = _provider("empty", response=""), _provider("good")
        selector = ProviderSelector(_registry(empty, good), ["empty", "good"])
        result = await selector.complete_with_fallback("p", CompletionOptions())
        assert result.provider == "good"

    @pytest.mark.asyncio
    async def test_each_provider_tried_once(self):
        broken = _provider("broken", error=RuntimeError("x"))
        selector = ProviderSelector(_registry(broken), ["broken", "broken"])
        selector.set_use_case_preference("u", "broken")
        with pytest.raises(AllProvidersFailedError):
            await selector.complete_with_fallback("p", CompletionOptions(use_case="u"))
        broken.complete.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_all_failed_carries_attempts(self):
        broken = _provider("broken", error=ProviderError("broken", "timeout"))
        selector = ProviderSelector(_registry(broken), ["missing", "broken"])

        with pytest.raises(AllProvidersFailedError) as exc_info:
            await selector.complete_with_fallback("p", CompletionOptions(use_case="u"))

        attempts = exc_info.value.attempts
        assert [a.provider for a in attempts] == ["missing", "broken"]
        assert attempts[0].reason == "not registered"
        assert "timeout" in attempts[1].reason
        assert exc_info.value.use_case == "u"

    @pytest.mark.asyncio
    async def test_empty_chain(self):
        selector = ProviderSelector(ProviderRegistry(), [])
        with pytest.raises(AllProvidersFailedError, match="no providers"):
            await selector.complete_with_fallback("p", CompletionOptions())

    @pytest.mark.asyncio
    async def test_health_check_error_advances(self):
        flaky, good = _provider("flaky"), _provider("good")
        flaky.is_available.side_effect = RuntimeError("port out of range")
        selector = ProviderSelector(_registry(flaky, good), ["flaky", "good"])

        result = await selector.complete_with_fallback("p", CompletionOptions())

        assert result.provider == "good"
        flaky.complete.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_health_check_error_recorded_in_attempts(self):
        flaky = _provider("flaky")
        flaky.is_available.side_effect = RuntimeError("port out of range")
        selector = ProviderSelector(_registry(flaky), ["flaky"])

        with pytest.raises(AllProvidersFailedError) as exc_info:
            await selector.complete_with_fallback("p", CompletionOptions())

        assert exc_info.value.attempts[0].reason == "health check failed: port out of range"
