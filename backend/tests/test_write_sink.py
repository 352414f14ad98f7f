import json
from datetime import datetime

import httpx
import pytest

from mac_schedule.services.write_sink import WebhookWriteSink, build_booking_payload
from mac_schedule.utils.config import WEBHOOK_PLACEHOLDER

URL = "https://script.example.test/macros/s/abc/exec"


def test_payload_shape():
    payload = build_booking_payload("s1", ["Carol", "Dave"])

    assert payload["sessionId"] == "s1"
    assert payload["names"] == "Carol, Dave"
    assert payload["count"] == 2
    assert datetime.fromisoformat(payload["timestamp"]).tzinfo is not None


@pytest.mark.asyncio
async def test_push_posts_json_and_ignores_response_body():
    requests = []

    def handler(request):
        requests.append(request)
        return httpx.Response(302, text="<html>opaque</html>")

    sink = WebhookWriteSink(URL, client=httpx.AsyncClient(transport=httpx.MockTransport(handler)))

    assert await sink.push("s1", ["Carol", "Dave"]) is True
    assert len(requests) == 1
    body = json.loads(requests[0].content)
    assert body["sessionId"] == "s1"
    assert body["names"] == "Carol, Dave"
    assert body["count"] == 2
    assert requests[0].headers["content-type"] == "application/json"


@pytest.mark.asyncio
async def test_push_returns_false_on_timeout():
    def handler(request):
        raise httpx.ConnectTimeout("timed out", request=request)

    sink = WebhookWriteSink(URL, client=httpx.AsyncClient(transport=httpx.MockTransport(handler)))

    assert await sink.push("s1", ["Carol"]) is False


@pytest.mark.asyncio
async def test_unconfigured_webhook_is_not_dispatched():
    calls = []
    sink = WebhookWriteSink(
        WEBHOOK_PLACEHOLDER,
        client=httpx.AsyncClient(transport=httpx.MockTransport(lambda request: calls.append(request))),
    )

    assert sink.is_configured() is False
    assert await sink.push("s1", ["Carol"]) is False
    assert calls == []


@pytest.mark.asyncio
async def test_unserializable_payload_is_not_dispatched():
    calls = []
    sink = WebhookWriteSink(
        URL,
        client=httpx.AsyncClient(transport=httpx.MockTransport(lambda request: calls.append(request))),
    )

    assert await sink.dispatch({"when": object()}) is False
    assert calls == []
