"""Tests for the httpx generation client."""

import asyncio
import json
from datetime import UTC, datetime

import httpx
import pytest

from voice_to_code.adapters.generation_client import HttpxGenerationClient
from voice_to_code.errors import (
    BackendUnavailableError,
    EmptyInputError,
    InvalidRequestError,
    ServiceError,
    ServiceRejectedError,
    TimedOutError,
    UnknownTransportError,
)


def _client(handler) -> HttpxGenerationClient:  # type: ignore[no-untyped-def]
    transport = httpx.MockTransport(handler)
    return HttpxGenerationClient(
        base_url="http://backend.test/api",
        http_client=httpx.AsyncClient(transport=transport),
    )


def test_submit_posts_trimmed_transcript_and_parses_envelope() -> None:
    seen: list[dict[str, object]] = []

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.method == "POST"
        assert request.url.path == "/api/generate-code"
        seen.append(json.loads(request.content.decode()))
        return httpx.Response(
            200,
            json={
                "success": True,
                "data": {
                    "code": "<button>Click</button>",
                    "transcript": "create a button",
                    "timestamp": "2024-05-01T12:00:00Z",
                },
            },
        )

    result = asyncio.run(_client(handler).submit("  create a button \n"))

    assert seen[0]["transcript"] == "create a button"
    assert str(seen[0]["sessionId"]).startswith("session_")
    assert result.code == "<button>Click</button>"
    assert result.source_transcript == "create a button"
    assert result.produced_at == datetime(2024, 5, 1, 12, 0, tzinfo=UTC)


def test_submit_uses_unique_session_ids() -> None:
    session_ids: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        session_ids.append(json.loads(request.content.decode())["sessionId"])
        return httpx.Response(200, json={"success": True, "data": {"code": "<p/>"}})

    client = _client(handler)
    first = asyncio.run(client.submit("one"))
    asyncio.run(client.submit("two"))

    assert len(set(session_ids)) == 2
    assert first.source_transcript == "one"


def test_blank_transcript_never_reaches_network() -> None:
    calls: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(200, json={"success": True, "data": {"code": ""}})

    with pytest.raises(EmptyInputError):
        asyncio.run(_client(handler).submit("   "))

    assert calls == []


def test_unsuccessful_envelope_raises_service_rejected() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"success": False, "message": "Quota used"})

    with pytest.raises(ServiceRejectedError) as excinfo:
        asyncio.run(_client(handler).submit("create a button"))

    assert excinfo.value.detail == "Quota used"


def test_unsuccessful_envelope_without_message_uses_default() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"success": False})

    with pytest.raises(ServiceRejectedError) as excinfo:
        asyncio.run(_client(handler).submit("create a button"))

    assert excinfo.value.detail == "Failed to generate code"


def test_connection_refused_is_backend_unavailable() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("Connection refused", request=request)

    with pytest.raises(BackendUnavailableError):
        asyncio.run(_client(handler).submit("make a login form"))


def test_timeout_is_classified() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    with pytest.raises(TimedOutError):
        asyncio.run(_client(handler).submit("create a button"))


@pytest.mark.parametrize(
    ("status_code", "error_type"),
    [
        (400, InvalidRequestError),
        (422, InvalidRequestError),
        (500, ServiceError),
        (503, ServiceError),
    ],
)
def test_http_status_is_classified(status_code: int, error_type: type) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status_code, json={"success": False})

    with pytest.raises(error_type) as excinfo:
        asyncio.run(_client(handler).submit("create a button"))

    assert excinfo.value.status_code == status_code


def test_other_transport_errors_are_unknown() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.RemoteProtocolError("peer closed", request=request)

    with pytest.raises(UnknownTransportError):
        asyncio.run(_client(handler).submit("create a button"))


def test_malformed_body_is_unknown() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=b"<html>not json</html>")

    with pytest.raises(UnknownTransportError):
        asyncio.run(_client(handler).submit("create a button"))


def test_success_without_data_is_unknown() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"success": True})

    with pytest.raises(UnknownTransportError):
        asyncio.run(_client(handler).submit("create a button"))


def test_check_health() -> None:
    statuses = iter([200, 503])

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/api/health"
        return httpx.Response(next(statuses), json={"status": "ok"})

    client = _client(handler)

    assert asyncio.run(client.check_health()) is True
    assert asyncio.run(client.check_health()) is False


def test_check_health_transport_error_is_unavailable() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("Connection refused", request=request)

    assert asyncio.run(_client(handler).check_health()) is False


def test_create_and_close() -> None:
    client = HttpxGenerationClient.create("http://backend.test/api", 5.0)

    assert client.timeout_seconds == 5.0
    asyncio.run(client.close())


def test_slow_response_hits_total_deadline() -> None:
    async def handler(request: httpx.Request) -> httpx.Response:
        await asyncio.sleep(5)
        return httpx.Response(200, json={"success": True, "data": {"code": "<p/>"}})

    client = HttpxGenerationClient(
        base_url="http://backend.test/api",
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
        timeout_seconds=0.05,
    )

    with pytest.raises(TimedOutError):
        asyncio.run(client.submit("create a button"))


def test_slow_health_check_is_unavailable() -> None:
    async def handler(request: httpx.Request) -> httpx.Response:
        await asyncio.sleep(5)
        return httpx.Response(200, json={"status": "ok"})

    client = HttpxGenerationClient(
        base_url="http://backend.test/api",
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
        timeout_seconds=0.05,
    )

    assert asyncio.run(client.check_health()) is False
