"""HTTP collaborators over httpx.MockTransport."""

import json

import httpx
import pytest
from storage_import.analysis.actions import ActionsServiceClient
from storage_import.analysis.deal_health import DealHealthClient
from storage_import.analysis.tokens import ProviderNotConnectedError, TokenServiceClient
from storage_import.core.http import MAX_ERROR_BODY_CHARS
from storage_import.pipeline.errors import ExternalServiceError


def mock_client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


# ── Token service ───────────────────────────────────────


async def test_token_lookup():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/users/user-1/tokens/outlook"
        assert request.headers["Authorization"] == "Bearer svc-key"
        return httpx.Response(200, json={"access_token": "tok-123"})

    async with mock_client(handler) as client:
        tokens = TokenServiceClient("http://tokens.test", api_key="svc-key", client=client)
        assert await tokens.get_access_token("user-1", "outlook") == "tok-123"


async def test_token_404_means_not_connected():
    async with mock_client(lambda request: httpx.Response(404, json={"detail": "none"})) as client:
        tokens = TokenServiceClient("http://tokens.test", client=client)
        with pytest.raises(ProviderNotConnectedError) as exc_info:
            await tokens.get_access_token("user-1", "googledrive")

    assert exc_info.value.status_code == 404
    assert exc_info.value.code == "PROVIDER_NOT_CONNECTED"


async def test_token_missing_from_body():
    async with mock_client(lambda request: httpx.Response(200, json={})) as client:
        tokens = TokenServiceClient("http://tokens.test", client=client)
        with pytest.raises(ExternalServiceError):
            await tokens.get_access_token("user-1", "outlook")


# ── Error translation ───────────────────────────────────


async def test_error_body_is_truncated():
    async with mock_client(lambda request: httpx.Response(503, text="x" * 2000)) as client:
        health = DealHealthClient("http://health.test", client=client)
        with pytest.raises(ExternalServiceError) as exc_info:
            await health.score_deal("deal-9", "user-1")

    assert exc_info.value.status_code == 503
    assert len(exc_info.value.response_body) == MAX_ERROR_BODY_CHARS


async def test_transport_error_becomes_external_service_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    async with mock_client(handler) as client:
        actions = ActionsServiceClient("http://actions.test", client=client)
        with pytest.raises(ExternalServiceError) as exc_info:
            await actions.generate_for_import("rec-1", "user-1")

    assert exc_info.value.status_code is None
    assert "connection refused" in exc_info.value.message


# ── Deal health ─────────────────────────────────────────


async def test_deal_health_calls():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append((request.url.path, json.loads(request.content)))
        if request.url.path.endswith("/signals"):
            return httpx.Response(200, json={"signals": [{"name": "budget_confirmed", "impact": 8}]})
        if request.url.path.endswith("/competitors/detect"):
            return httpx.Response(200, json={"competitors": {"Acme": {"mentions": 2}}})
        return httpx.Response(200, json={"score": 72, "health": "green", "previous": 65})

    async with mock_client(handler) as client:
        health = DealHealthClient("http://health.test", client=client)
        signals = await health.apply_signals("deal-9", "budget confirmed", "onedrive_document", "user-1")
        competitors = await health.detect_competitors("deal-9", "user-1", "Acme is cheaper")
        score = await health.score_deal("deal-9", "user-1")

    assert signals == [{"name": "budget_confirmed", "impact": 8}]
    assert competitors == [{"name": "Acme", "mentions": 2}]
    assert score == {"score": 72, "health": "green"}
    assert seen[0] == (
        "/deals/deal-9/signals",
        {"text": "budget confirmed", "source_type": "onedrive_document", "user_id": "user-1"},
    )
    assert [path for path, _ in seen] == [
        "/deals/deal-9/signals",
        "/deals/deal-9/competitors/detect",
        "/deals/deal-9/score",
    ]


async def test_actions_generate():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.method == "POST"
        assert request.url.path == "/imports/rec-1/actions/generate"
        assert json.loads(request.content) == {"user_id": "user-1", "source": "storage_file"}
        return httpx.Response(200, json={"generated": 3})

    async with mock_client(handler) as client:
        actions = ActionsServiceClient("http://actions.test", client=client)
        assert await actions.generate_for_import("rec-1", "user-1") == {"generated": 3}
