"""Name -> provider registry, built once at startup."""

from __future__ import annotations

import logging

import httpx

from llm.providers import LLMProvider, ProviderConfig, build_provider

logger = logging.getLogger(__name__)


class ProviderRegistry:
    """Holds provider instances together with the config they were built from."""

    def __init__(self) -> None:
        self._providers: dict[str, LLMProvider] = {}
        self._configs: dict[str, ProviderConfig] = {}

    def register(self, name: str, provider: LLMProvider, config: ProviderConfig) -> None:
        """Add *provider* under *name*, replacing any previous entry."""
        self._providers[name] = provider
        self._configs[name] = config

    def get(self, name: str) -> LLMProvider | None:
        return self._providers.get(name)

    def get_config(self, name: str) -> ProviderConfig | None:
        return self._configs.get(name)

    def list(self) -> list[str]:
        """Registered provider names, sorted."""
        return sorted(self._providers)

    async def list_available(self) -> list[str]:
        """Sorted names of providers currently reporting available."""
        available: list[str] = []
        for name in self.list():
            try:
                ok = await self._providers[name].is_available()
            except Exception as exc:
                logger.warning("Provider %s health check failed: %s", name, exc)
                continue
            if ok:
                available.append(name)
        return available

    def remove(self, name: str) -> None:
        self._providers.pop(name, None)
        self._configs.pop(name, None)

    def __contains__(self, name: object) -> bool:
        return name in self._providers

    def __len__(self) -> int:
        return len(self._providers)


def build_registry(
    configs: list[ProviderConfig],
    transport: httpx.AsyncBaseTransport | None = None,
) -> ProviderRegistry:
    """Build a registry from *configs*.

    Raises ``ValueError`` for an unknown provider type; nothing is
    registered in that case.
    """
    providers = [(cfg, build_provider(cfg, transport)) for cfg in configs]

    registry = ProviderRegistry()
    for cfg, provider in providers:
        registry.register(cfg.name, provider, cfg)
        logger.info("Registered LLM provider %s (%s)", cfg.name, cfg.type.value)
    return registry
