"""LLM provider abstraction layer.

Three adapters cover every supported backend:
  - OpenAI-compatible (OpenAI, Azure, Ollama, vLLM, Groq, Together, LiteLLM, ...)
  - Anthropic (Messages API)
  - Generic HTTP (any REST endpoint, mapped through a body template and
    dot-path response selectors)

All adapters implement the same interface so the selector doesn't need to
know which backend answers. Privacy guarantee: providers only ever receive
prompts built from sanitized sample descriptors.
"""

from __future__ import annotations

import json
import logging
import string
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum

import httpx

logger = logging.getLogger(__name__)

DEFAULT_SYSTEM_PROMPT = (
    "You are a data privacy analysis assistant. Always respond with valid JSON only."
)
DEFAULT_MAX_TOKENS = 1024
DEFAULT_TEMPERATURE = 0.1  # low temperature for structured JSON output

# Response bodies larger than this are rejected.
MAX_RESPONSE_BYTES = 1 << 20

_LOCAL_HOSTS = ("localhost", "127.0.0.1", "0.0.0.0", "host.docker.internal")
_HEALTH_CHECK_INTERVAL = 60.0


# ---------------------------------------------------------------------------
# Configuration / request / response types
# ---------------------------------------------------------------------------


class ProviderType(str, Enum):
    OPENAI_COMPATIBLE = "openai_compatible"
    ANTHROPIC = "anthropic"
    GENERIC_HTTP = "generic_http"


@dataclass
class ProviderConfig:
    """Static configuration for one provider."""

    name: str
    type: ProviderType
    endpoint: str = ""
    api_key: str = ""
    default_model: str = ""
    fast_model: str = ""
    timeout: float = 30.0
    headers: dict[str, str] = field(default_factory=dict)

    # Generic HTTP only
    request_body_template: str = ""
    response_content_path: str = ""
    response_tokens_path: str = ""
    completion_path: str = ""

    # Anthropic only
    anthropic_version: str = "2023-06-01"


@dataclass
class CompletionOptions:
    use_case: str = ""
    priority: str = ""  # "accuracy" (default model) or "speed" (fast model)
    max_tokens: int = 0
    temperature: float = 0.0
    system_prompt: str = ""
    cache_ttl: int = 0  # seconds; only honoured by the cached gateway


@dataclass
class CompletionResult:
    response: str
    provider: str
    model: str = ""
    tokens_used: int = 0
    duration: float = 0.0
    cached: bool = False


class ProviderError(Exception):
    """A provider call failed (transport, HTTP status or malformed body)."""

    def __init__(self, provider: str, message: str) -> None:
        self.provider = provider
        super().__init__(f"{provider}: {message}")


def is_local_endpoint(endpoint: str) -> bool:
    return any(host in endpoint for host in _LOCAL_HOSTS)


# ---------------------------------------------------------------------------
# Base class
# ---------------------------------------------------------------------------


class LLMProvider(ABC):
    """Abstract base class for all LLM providers."""

    def __init__(
        self,
        config: ProviderConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config
        self._transport = transport

    @property
    def name(self) -> str:
        return self.config.name

    @abstractmethod
    async def complete(self, prompt: str, opts: CompletionOptions) -> CompletionResult:
        """Send *prompt* and return the completion."""
        ...

    @abstractmethod
    async def is_available(self) -> bool:
        """Whether the provider is configured and reachable."""
        ...

    # -- shared helpers ------------------------------------------------------

    def _client(self, timeout: float | None = None) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=timeout if timeout is not None else self.config.timeout,
            transport=self._transport,
        )

    def _model_for(self, opts: CompletionOptions) -> str:
        if opts.priority == "speed" and self.config.fast_model:
            return self.config.fast_model
        return self.config.default_model

    @staticmethod
    def _tuning(opts: CompletionOptions) -> tuple[int, float, str]:
        return (
            opts.max_tokens or DEFAULT_MAX_TOKENS,
            opts.temperature or DEFAULT_TEMPERATURE,
            opts.system_prompt or DEFAULT_SYSTEM_PROMPT,
        )

    async def _post(self, url: str, headers: dict[str, str], content: bytes) -> bytes:
        """POST *content* and return the raw body of a 200 response."""
        merged = {"Content-Type": "application/json", **headers, **self.config.headers}
        try:
            async with self._client() as client:
                response = await client.post(url, headers=merged, content=content)
        except httpx.HTTPError as exc:
            raise ProviderError(self.name, f"request failed: {exc}") from exc

        body = response.content
        if len(body) > MAX_RESPONSE_BYTES:
            raise ProviderError(self.name, f"response too large ({len(body)} bytes)")
        if response.status_code != 200:
            raise ProviderError(
                self.name,
                f"API error {response.status_code}: {body.decode(errors='replace')[:500]}",
            )
        return body

    def _parse_json(self, body: bytes) -> dict:
        try:
            data = json.loads(body)
        except json.JSONDecodeError as exc:
            raise ProviderError(self.name, f"unmarshal response: {exc}") from exc
        if not isinstance(data, dict):
            raise ProviderError(self.name, "unexpected response shape")
        return data


# ---------------------------------------------------------------------------
# OpenAI-compatible
# ---------------------------------------------------------------------------


class OpenAICompatProvider(LLMProvider):
    """Any API speaking the OpenAI chat-completions format."""

    def __init__(
        self,
        config: ProviderConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        super().__init__(config, transport)
        self._healthy = False
        self._last_health_check: float | None = None

    def _headers(self) -> dict[str, str]:
        if self.config.api_key:
            return {"Authorization": f"Bearer {self.config.api_key}"}
        return {}

    async def complete(self, prompt: str, opts: CompletionOptions) -> CompletionResult:
        start = time.perf_counter()
        model = self._model_for(opts)
        max_tokens, temperature, system_prompt = self._tuning(opts)

        payload = {
            "model": model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": prompt},
            ],
            "max_tokens": max_tokens,
            "temperature": temperature,
        }
        endpoint = self.config.endpoint.rstrip("/")
        path = self.config.completion_path or "/chat/completions"
        body = await self._post(endpoint + path, self._headers(), json.dumps(payload).encode())

        data = self._parse_json(body)
        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as exc:
            raise ProviderError(self.name, "no choices in response") from exc

        usage = data.get("usage") or {}
        return CompletionResult(
            response=content or "",
            provider=self.name,
            model=model,
            tokens_used=int(usage.get("total_tokens", 0) or 0),
            duration=time.perf_counter() - start,
        )

    async def is_available(self) -> bool:
        # Cloud endpoints: a key is all we can check without spending tokens.
        if not is_local_endpoint(self.config.endpoint):
            return bool(self.config.api_key)

        now = time.monotonic()
        if (
            self._last_health_check is not None
            and now - self._last_health_check < _HEALTH_CHECK_INTERVAL
        ):
            return self._healthy

        try:
            async with self._client(timeout=1.0) as client:
                await client.get(self.config.endpoint.rstrip("/"))
            # Any response, even 404, means the server is up.
            self._healthy = True
        except Exception as exc:
            logger.warning(
                "Local provider %s unreachable at %s: %s", self.name, self.config.endpoint, exc,
            )
            self._healthy = False
        self._last_health_check = now
        return self._healthy


# ---------------------------------------------------------------------------
# Anthropic
# ---------------------------------------------------------------------------


class AnthropicProvider(LLMProvider):
    """Anthropic Messages API."""

    def _headers(self) -> dict[str, str]:
        return {
            "x-api-key": self.config.api_key,
            "anthropic-version": self.config.anthropic_version or "2023-06-01",
        }

    async def complete(self, prompt: str, opts: CompletionOptions) -> CompletionResult:
        start = time.perf_counter()
        model = self._model_for(opts)
        max_tokens, temperature, system_prompt = self._tuning(opts)

        payload = {
            "model": model,
            "max_tokens": max_tokens,
            "system": system_prompt,
            "messages": [{"role": "user", "content": prompt}],
            "temperature": temperature,
        }
        endpoint = (self.config.endpoint or "https://api.anthropic.com").rstrip("/")
        body = await self._post(endpoint + "/v1/messages", self._headers(), json.dumps(payload).encode())

        data = self._parse_json(body)
        text = "".join(
            block.get("text", "")
            for block in data.get("content") or []
            if isinstance(block, dict) and block.get("type") == "text"
        )
        usage = data.get("usage") or {}
        tokens = int(usage.get("input_tokens", 0) or 0) + int(usage.get("output_tokens", 0) or 0)
        return CompletionResult(
            response=text,
            provider=self.name,
            model=model,
            tokens_used=tokens,
            duration=time.perf_counter() - start,
        )

    async def is_available(self) -> bool:
        return bool(self.config.api_key)


# ---------------------------------------------------------------------------
# Generic HTTP
# ---------------------------------------------------------------------------


class GenericHTTPProvider(LLMProvider):
    """Arbitrary REST endpoint.

    The request body is rendered from ``request_body_template`` with
    ``${Prompt}``, ``${MaxTokens}``, ``${Temperature}`` and ``${Model}``
    placeholders (the prompt is JSON-escaped). The answer and token count
    are pulled out with dot-path selectors like ``result.text`` or
    ``choices.0.message.content``.
    """

    def __init__(
        self,
        config: ProviderConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        super().__init__(config, transport)
        self._template = (
            string.Template(config.request_body_template)
            if config.request_body_template
            else None
        )

    def _headers(self) -> dict[str, str]:
        if self.config.api_key:
            return {"Authorization": f"Bearer {self.config.api_key}"}
        return {}

    def _render_body(self, prompt: str, max_tokens: int, temperature: float, model: str) -> bytes:
        if self._template is None:
            return json.dumps({
                "prompt": prompt,
                "max_tokens": max_tokens,
                "temperature": temperature,
                "model": model,
            }).encode()
        try:
            rendered = self._template.substitute(
                Prompt=json.dumps(prompt)[1:-1],
                MaxTokens=max_tokens,
                Temperature=temperature,
                Model=model,
            )
        except (KeyError, ValueError) as exc:
            raise ProviderError(self.name, f"template execution: {exc}") from exc
        return rendered.encode()

    async def complete(self, prompt: str, opts: CompletionOptions) -> CompletionResult:
        start = time.perf_counter()
        model = self.config.default_model
        max_tokens, temperature, _ = self._tuning(opts)

        content = self._render_body(prompt, max_tokens, temperature, model)
        url = self.config.endpoint.rstrip("/") + self.config.completion_path
        body = await self._post(url, self._headers(), content)

        text, tokens = self._extract_response(body)
        return CompletionResult(
            response=text,
            provider=self.name,
            model=model,
            tokens_used=tokens,
            duration=time.perf_counter() - start,
        )

    def _extract_response(self, body: bytes) -> tuple[str, int]:
        try:
            data = json.loads(body)
        except json.JSONDecodeError:
            # Plain-text APIs: the whole body is the answer.
            return body.decode(errors="replace"), 0

        path = self.config.response_content_path or "generated_text"
        text = extract_json_path(data, path)
        if not text:
            text = body.decode(errors="replace")

        tokens = 0
        if self.config.response_tokens_path:
            raw = extract_json_path(data, self.config.response_tokens_path)
            try:
                tokens = int(float(raw))
            except (TypeError, ValueError, OverflowError):
                tokens = 0
        return text, tokens

    async def is_available(self) -> bool:
        if self.config.api_key or is_local_endpoint(self.config.endpoint):
            return True
        return any(k.lower() in ("authorization", "x-api-key") for k in self.config.headers)


def extract_json_path(data: object, path: str) -> str:
    """Walk *data* along a dot-separated path and return the leaf as text.

    Numeric segments index into lists: ``"choices.0.message.content"``.
    Missing segments yield ``""``.
    """
    current = data
    for part in path.split("."):
        if isinstance(current, dict):
            if part not in current:
                return ""
            current = current[part]
        elif isinstance(current, list):
            try:
                idx = int(part)
            except ValueError:
                return ""
            if idx < 0 or idx >= len(current):
                return ""
            current = current[idx]
        else:
            return ""

    if current is None:
        return ""
    if isinstance(current, str):
        return current
    if isinstance(current, bool):
        return "true" if current else "false"
    if isinstance(current, (int, float)):
        return str(current)
    return json.dumps(current)


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------


def build_provider(
    config: ProviderConfig,
    transport: httpx.AsyncBaseTransport | None = None,
) -> LLMProvider:
    """Create a provider instance from *config*, chosen by ``config.type``."""
    if config.type == ProviderType.OPENAI_COMPATIBLE:
        return OpenAICompatProvider(config, transport)
    elif config.type == ProviderType.ANTHROPIC:
        return AnthropicProvider(config, transport)
    elif config.type == ProviderType.GENERIC_HTTP:
        return GenericHTTPProvider(config, transport)
    else:
        raise ValueError(
            f"Unknown provider type: {config.type!r} "
            "(use openai_compatible, anthropic, or generic_http)"
        )
