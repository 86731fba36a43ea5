"""Tests for the HTTP endpoint dispatcher."""

from __future__ import annotations

import json

import httpx
import pytest

from backfill.services.dispatch import EndpointDispatcher
from backfill.utils.progress import DispatchStatus
from tests.fakes import ENDPOINT, TOKEN, make_config


def _client_for(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


@pytest.mark.unit
@pytest.mark.asyncio
async def test_dispatch_posts_video_id_with_bearer_token(tmp_path, console):
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"ok": True})

    async with _client_for(handler) as client:
        outcome = await EndpointDispatcher(make_config(tmp_path), client=client, console=console).dispatch("dQw4w9WgXcQ")

    assert outcome.ok
    assert outcome.status_code == 200
    [request] = seen
    assert request.method == "POST"
    assert str(request.url) == ENDPOINT
    assert request.headers["Authorization"] == f"Bearer {TOKEN}"
    assert request.headers["Content-Type"] == "application/json"
    assert json.loads(request.content) == {"videoId": "dQw4w9WgXcQ"}


@pytest.mark.unit
@pytest.mark.asyncio
async def test_dispatch_uses_configured_item_key(tmp_path, console):
    bodies: list[dict] = []

    def handler(request: httpx.Request) -> httpx.Response:
        bodies.append(json.loads(request.content))
        return httpx.Response(202)

    config = make_config(tmp_path, item_key="video")
    async with _client_for(handler) as client:
        outcome = await EndpointDispatcher(config, client=client, console=console).dispatch("dQw4w9WgXcQ")

    assert outcome.ok
    assert bodies == [{"video": "dQw4w9WgXcQ"}]


@pytest.mark.unit
@pytest.mark.asyncio
async def test_dispatch_http_500_is_a_failure_outcome(tmp_path, console):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500)

    async with _client_for(handler) as client:
        outcome = await EndpointDispatcher(make_config(tmp_path), client=client, console=console).dispatch("dQw4w9WgXcQ")

    assert outcome.status is DispatchStatus.FAILURE
    assert outcome.status_code == 500
    assert outcome.reason == "HTTP 500: Internal Server Error"


@pytest.mark.unit
@pytest.mark.asyncio
async def test_dispatch_redirect_status_is_not_success(tmp_path, console):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(302, headers={"Location": "https://elsewhere.example.com"})

    async with _client_for(handler) as client:
        outcome = await EndpointDispatcher(make_config(tmp_path), client=client, console=console).dispatch("dQw4w9WgXcQ")

    assert not outcome.ok
    assert outcome.status_code == 302


@pytest.mark.unit
@pytest.mark.asyncio
async def test_dispatch_transport_error_is_captured(tmp_path, console):
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    async with _client_for(handler) as client:
        outcome = await EndpointDispatcher(make_config(tmp_path), client=client, console=console).dispatch("dQw4w9WgXcQ")

    assert not outcome.ok
    assert outcome.status_code is None
    assert "ConnectError" in (outcome.reason or "")
    assert "connection refused" in (outcome.reason or "")


@pytest.mark.unit
@pytest.mark.asyncio
async def test_dispatch_timeout_is_captured(tmp_path, console):
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    async with _client_for(handler) as client:
        outcome = await EndpointDispatcher(make_config(tmp_path), client=client, console=console).dispatch("dQw4w9WgXcQ")

    assert not outcome.ok
    assert "ReadTimeout" in (outcome.reason or "")


@pytest.mark.unit
@pytest.mark.asyncio
async def test_create_client_applies_request_timeout(tmp_path):
    config = make_config(tmp_path, request_timeout_seconds=12.5)

    async with EndpointDispatcher.create_client(config) as client:
        assert client.timeout.read == 12.5
