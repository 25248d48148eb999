"""Tests for the HTTP surface (detection, purposes, providers, health)."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from detection.detector import build_default_detector, build_offline_detector
from llm.cached_gateway import QuotaExceededError
from llm.client import AIStack
from llm.gateway import Gateway, PIIDetectionResult, PurposeSuggestion
from llm.providers import ProviderConfig, ProviderType
from llm.registry import build_registry
from llm.selector import ProviderSelector
from main import create_app
from tenancy import current_tenant


def _stack(gateway: AsyncMock) -> AIStack:
    registry = build_registry([
        ProviderConfig(name="openai", type=ProviderType.OPENAI_COMPATIBLE,
                       api_key="sk-test", default_model="gpt-4o", fast_model="gpt-4o-mini"),
        ProviderConfig(name="anthropic", type=ProviderType.ANTHROPIC, default_model="claude"),
    ])
    return AIStack(
        registry=registry,
        selector=ProviderSelector(registry, ["openai", "anthropic"]),
        gateway=gateway,
    )


@pytest.fixture
def offline_client():
    with TestClient(create_app(detector=build_offline_detector())) as client:
        yield client


class TestDetectEndpoint:
    def test_email_column(self, offline_client: TestClient):
        resp = offline_client.post("/api/detect", json={
            "column_name": "email_address",
            "samples": ["user@example.com", "admin@test.org", "info@company.co"],
        })
        assert resp.status_code == 200
        body = resp.json()
        assert body["is_pii"] is True
        top = body["top_match"]
        assert top["pii_type"] == "EMAIL"
        assert top["category"] == "CONTACT"
        assert set(top["methods"]) == {"REGEX", "HEURISTIC"}
        assert top["confidence_level"] == "QUICK_VERIFY"
        assert [s["name"] for s in body["strategies"]] == ["pattern", "heuristic", "industry_pattern"]

    def test_not_pii(self, offline_client: TestClient):
        resp = offline_client.post("/api/detect", json={"column_name": "created_at"})
        assert resp.status_code == 200
        assert resp.json()["is_pii"] is False
        assert resp.json()["top_match"] is None

    def test_validation(self, offline_client: TestClient):
        assert offline_client.post("/api/detect", json={"column_name": ""}).status_code == 422

    def test_tenant_header_scopes_gateway_calls(self, mock_gateway: AsyncMock):
        seen: list[str | None] = []

        async def record(_input):
            seen.append(current_tenant())
            return PIIDetectionResult(is_pii=False)

        mock_gateway.detect_pii.side_effect = record
        app = create_app(detector=build_default_detector(mock_gateway), ai_stack=_stack(mock_gateway))
        with TestClient(app) as client:
            client.post("/api/detect", json={"column_name": "x"}, headers={"X-Tenant-ID": "acme"})
        assert seen == ["acme"]

    def test_quota_error_reported_as_strategy_failure(self, mock_gateway: AsyncMock):
        mock_gateway.detect_pii.side_effect = QuotaExceededError("acme", 10, 10)
        app = create_app(detector=build_default_detector(mock_gateway), ai_stack=_stack(mock_gateway))
        with TestClient(app) as client:
            resp = client.post("/api/detect", json={"column_name": "email"})
        assert resp.status_code == 200
        ai = [s for s in resp.json()["strategies"] if s["name"] == "ai"][0]
        assert "budget exceeded" in ai["error"]
        assert resp.json()["is_pii"] is True


class TestPurposesEndpoint:
    def test_returns_suggestions(self):
        gateway = AsyncMock(spec=Gateway)
        gateway.suggest_purposes.return_value = [
            PurposeSuggestion(purpose_code="billing", confidence=0.8, legal_basis="CONTRACT"),
        ]
        app = create_app(detector=build_offline_detector(), ai_stack=_stack(gateway))
        with TestClient(app) as client:
            resp = client.post("/api/purposes", json={"column_name": "card", "pii_type": "CREDIT_CARD"})
        assert resp.status_code == 200
        assert resp.json()[0]["purpose_code"] == "billing"

    def test_quota_maps_to_429(self):
        gateway = AsyncMock(spec=Gateway)
        gateway.suggest_purposes.side_effect = QuotaExceededError("acme", 5, 5)
        app = create_app(detector=build_offline_detector(), ai_stack=_stack(gateway))
        with TestClient(app) as client:
            resp = client.post("/api/purposes", json={}, headers={"X-Tenant-ID": "acme"})
        assert resp.status_code == 429

    def test_disabled_ai_is_503(self, offline_client: TestClient):
        assert offline_client.post("/api/purposes", json={}).status_code == 503


class TestProvidersEndpoint:
    def test_lists_providers_without_keys(self, mock_gateway: AsyncMock):
        app = create_app(detector=build_offline_detector(), ai_stack=_stack(mock_gateway))
        with TestClient(app) as client:
            resp = client.get("/api/providers")
        assert resp.status_code == 200
        body = resp.json()
        assert body["fallback_chain"] == ["openai", "anthropic"]
        by_name = {p["name"]: p for p in body["providers"]}
        assert by_name["openai"]["available"] is True
        assert by_name["openai"]["fast_model"] == "gpt-4o-mini"
        assert by_name["anthropic"]["available"] is False
        assert "sk-test" not in resp.text

    def test_ai_disabled(self, offline_client: TestClient):
        body = offline_client.get("/api/providers").json()
        assert body == {"providers": [], "fallback_chain": [], "ai_enabled": False}


def test_health(offline_client: TestClient):
    assert offline_client.get("/api/health").json() == {"status": "ok"}
