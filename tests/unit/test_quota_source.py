# tests/unit/test_quota_source.py
"""Tests for the status query, error mapping and polling loop."""

import asyncio
import json
from unittest.mock import patch

import httpx
import pytest
import respx

from gravity_guard.core import EndpointInfo, NotConnectedError, QuotaFetchError
from gravity_guard.core.constants import CSRF_HEADER, STATUS_RPC_PATH
from gravity_guard.quota import QuotaSource

TOKEN = "a1b2c3d4-e5f6-7890-abcd-ef1234567890"
ENDPOINT = EndpointInfo(extension_port=42100, connect_port=42101, csrf_token=TOKEN)
STATUS_URL = f"https://127.0.0.1:42101{STATUS_RPC_PATH}"

PAYLOAD = {
    "userStatus": {
        "cascadeModelConfigData": {
            "clientModelConfigs": [
                {
                    "label": "Gemini Pro",
                    "modelOrAlias": {"model": "gemini-pro"},
                    "quotaInfo": {"remainingFraction": 0.4, "resetTime": "2026-01-15T13:00:00Z"},
                }
            ]
        }
    }
}


def attached_source():
    source = QuotaSource()
    source.attach(ENDPOINT)
    errors = []
    updates = []
    source.on_error(errors.append)
    source.on_update(updates.append)
    return source, errors, updates


@pytest.mark.asyncio
@respx.mock
async def test_fetch_success_notifies_and_stores():
    route = respx.post(STATUS_URL).mock(return_value=httpx.Response(200, json=PAYLOAD))
    source, errors, updates = attached_source()

    snapshot = await source.fetch_quota()

    assert snapshot is not None
    assert snapshot.models[0].remaining_percentage == pytest.approx(40.0)
    assert updates == [snapshot]
    assert errors == []
    assert source.get_last_snapshot() is snapshot

    request = route.calls.last.request
    assert request.headers[CSRF_HEADER] == TOKEN
    assert request.headers["Connect-Protocol-Version"] == "1"
    body = json.loads(request.content)
    assert body["metadata"]["extensionName"] == "antigravity"
    await source.aclose()


@pytest.mark.asyncio
@respx.mock
async def test_http_error_keeps_last_snapshot():
    respx.post(STATUS_URL).mock(
        side_effect=[httpx.Response(200, json=PAYLOAD), httpx.Response(500)]
    )
    source, errors, updates = attached_source()

    first = await source.fetch_quota()
    second = await source.fetch_quota()

    assert second is None
    assert source.get_last_snapshot() is first
    assert len(updates) == 1
    assert len(errors) == 1
    assert isinstance(errors[0], QuotaFetchError)
    assert errors[0].status_code == 500
    await source.aclose()


@pytest.mark.asyncio
@respx.mock
async def test_timeout_reported():
    respx.post(STATUS_URL).mock(side_effect=httpx.ReadTimeout("slow"))
    source, errors, _ = attached_source()

    assert await source.fetch_quota() is None
    assert str(errors[0]) == "Request timeout"
    await source.aclose()


@pytest.mark.asyncio
@respx.mock
async def test_transport_error_reported():
    respx.post(STATUS_URL).mock(side_effect=httpx.ConnectError("refused"))
    source, errors, _ = attached_source()

    assert await source.fetch_quota() is None
    assert isinstance(errors[0], QuotaFetchError)
    assert errors[0].status_code is None
    await source.aclose()


@pytest.mark.asyncio
@respx.mock
async def test_invalid_json_reported():
    respx.post(STATUS_URL).mock(return_value=httpx.Response(200, text="not json"))
    source, errors, _ = attached_source()

    assert await source.fetch_quota() is None
    assert str(errors[0]) == "Invalid JSON response"
    await source.aclose()


@pytest.mark.asyncio
@respx.mock
async def test_non_object_body_reported():
    respx.post(STATUS_URL).mock(return_value=httpx.Response(200, json=[1, 2]))
    source, errors, _ = attached_source()

    assert await source.fetch_quota() is None
    assert str(errors[0]) == "Unexpected response shape"
    await source.aclose()


@pytest.mark.asyncio
async def test_fetch_without_endpoint():
    source = QuotaSource()
    errors = []
    source.on_error(errors.append)

    assert await source.fetch_quota() is None
    assert isinstance(errors[0], NotConnectedError)
    await source.aclose()


@pytest.mark.asyncio
@respx.mock
async def test_failing_callback_does_not_break_fetch():
    respx.post(STATUS_URL).mock(return_value=httpx.Response(200, json=PAYLOAD))
    source, _, updates = attached_source()

    def broken(snapshot):
        raise RuntimeError("boom")

    source.on_update(broken)
    source.on_update(updates.append)

    snapshot = await source.fetch_quota()
    assert snapshot is not None
    assert updates == [snapshot, snapshot]
    await source.aclose()


@pytest.mark.asyncio
@respx.mock
async def test_polling_fetches_immediately_and_stops():
    respx.post(STATUS_URL).mock(return_value=httpx.Response(200, json=PAYLOAD))
    source, _, _ = attached_source()
    fetched = asyncio.Event()
    source.on_update(lambda snapshot: fetched.set())

    source.start_polling(60)
    assert source.is_polling
    await asyncio.wait_for(fetched.wait(), timeout=1)

    source.stop_polling()
    assert not source.is_polling
    await source.aclose()


@pytest.mark.asyncio
async def test_detach_clears_endpoint():
    source = QuotaSource()
    source.attach(ENDPOINT)
    assert source.endpoint == ENDPOINT
    source.detach()
    assert source.endpoint is None
    await source.aclose()


async def wait_until(condition, timeout=1.0):
    async def poll():
        while not condition():
            await asyncio.sleep(0.01)

    await asyncio.wait_for(poll(), timeout=timeout)


@pytest.mark.asyncio
@respx.mock
async def test_wrongly_shaped_payload_keeps_polling():
    respx.post(STATUS_URL).mock(return_value=httpx.Response(200, json={"userStatus": ["x"]}))
    source, errors, updates = attached_source()

    source.start_polling(0.01)
    await wait_until(lambda: len(updates) >= 2)

    assert source.is_polling
    assert errors == []
    assert updates[0].models == []
    source.stop_polling()
    await source.aclose()


@pytest.mark.asyncio
@respx.mock
async def test_parse_failure_reported_and_polling_survives():
    respx.post(STATUS_URL).mock(return_value=httpx.Response(200, json=PAYLOAD))
    source, errors, updates = attached_source()

    with patch(
        "gravity_guard.quota.source.parse_user_status",
        side_effect=AttributeError("'list' object has no attribute 'get'"),
    ):
        source.start_polling(0.01)
        await wait_until(lambda: len(errors) >= 2)
        assert source.is_polling

    assert isinstance(errors[0], QuotaFetchError)
    assert str(errors[0]).startswith("Malformed status payload")
    assert source.get_last_snapshot() is None

    await wait_until(lambda: len(updates) >= 1)
    assert updates[0].models[0].model_id == "gemini-pro"
    source.stop_polling()
    await source.aclose()


@pytest.mark.asyncio
@respx.mock
async def test_unexpected_error_does_not_kill_polling():
    respx.post(STATUS_URL).mock(return_value=httpx.Response(200, json=PAYLOAD))
    source, errors, _ = attached_source()

    with patch.object(source, "_parse", side_effect=RuntimeError("boom")):
        source.start_polling(0.01)
        await wait_until(lambda: len(errors) >= 2)
        assert source.is_polling

    assert isinstance(errors[0], RuntimeError)
    source.stop_polling()
    await source.aclose()
