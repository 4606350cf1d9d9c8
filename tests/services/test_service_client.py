"""Unit tests for ServiceClient.

All networking goes through ``httpx.MockTransport``; retry back-off sleeps
are patched out.
"""

from __future__ import annotations

import base64
import json

import httpx
import pytest

from braindump_cli.models.config_models import ServiceConfig
from braindump_cli.services.api.client import ServiceClient, _extract_json, build_service_client
from braindump_cli.services.api.exceptions import (
    ClassificationError,
    ServiceError,
    TimetableParseError,
)

# ---------------------------------------------------------------------------
# Helpers & fixtures
# ---------------------------------------------------------------------------

CLASSIFICATION = {
    "top3": ["write report"],
    "shallow": ["buy milk"],
    "deep": [],
    "micro": ["open the doc"],
    "timeblocks": [{"label": "Report", "minutes": 120}],
}

TIMETABLE = {
    "freeHours": 2.5,
    "totalFreeMinutes": 1050,
    "slots": [{"day": "Tue", "start": "13:00", "end": "15:30", "label": "Free"}],
    "summary": "Tuesday afternoons",
}


def _client(handler, retry: int = 0) -> ServiceClient:
    config = ServiceConfig(endpoint="https://svc.example.com/api/", retry=retry)
    return ServiceClient(config, transport=httpx.MockTransport(handler))


@pytest.fixture(autouse=True)
def no_backoff(mocker):
    return mocker.patch(
        "braindump_cli.services.api.client.asyncio.sleep", new=mocker.AsyncMock()
    )


# ---------------------------------------------------------------------------
# classify
# ---------------------------------------------------------------------------


class TestClassify:
    @pytest.mark.asyncio
    async def test_posts_text_and_hours(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json=CLASSIFICATION)

        async with _client(handler) as client:
            result = await client.classify("buy milk\nwrite report", 2)

        assert seen["url"] == "https://svc.example.com/api/analyze"
        assert seen["body"] == {"text": "buy milk\nwrite report", "hours": 2}
        assert result.top3 == ["write report"]
        assert result.groups == []

    @pytest.mark.asyncio
    async def test_missing_top3_is_a_classification_error(self):
        def handler(request):
            return httpx.Response(200, json={"shallow": ["buy milk"]})

        async with _client(handler) as client:
            with pytest.raises(ClassificationError):
                await client.classify("buy milk", 1)

    @pytest.mark.asyncio
    async def test_string_top3_is_a_classification_error(self):
        def handler(request):
            return httpx.Response(200, json={"top3": "write report"})

        async with _client(handler) as client:
            with pytest.raises(ClassificationError):
                await client.classify("write report", 1)

    @pytest.mark.asyncio
    async def test_non_json_body_is_a_classification_error(self):
        def handler(request):
            return httpx.Response(200, text="<html>oops</html>")

        async with _client(handler) as client:
            with pytest.raises(ClassificationError):
                await client.classify("buy milk", 1)

    @pytest.mark.asyncio
    async def test_client_error_is_not_retried(self, no_backoff):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(400, json={"error": "text required"})

        async with _client(handler, retry=3) as client:
            with pytest.raises(ClassificationError):
                await client.classify("", 1)

        assert len(calls) == 1
        no_backoff.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_server_error_is_retried(self, no_backoff):
        responses = iter(
            [httpx.Response(500, json={"error": "busy"}), httpx.Response(200, json=CLASSIFICATION)]
        )

        async with _client(lambda request: next(responses), retry=2) as client:
            result = await client.classify("buy milk", 1)

        assert result.shallow == ["buy milk"]
        no_backoff.assert_awaited_once_with(1)

    @pytest.mark.asyncio
    async def test_connection_error_after_retries(self, no_backoff):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        async with _client(handler, retry=2) as client:
            with pytest.raises(ServiceError):
                await client.classify("buy milk", 1)

        assert [c.args[0] for c in no_backoff.await_args_list] == [1, 2]


# ---------------------------------------------------------------------------
# parse_timetable
# ---------------------------------------------------------------------------


class TestParseTimetable:
    @pytest.mark.asyncio
    async def test_sends_base64_image(self):
        seen = {}

        def handler(request):
            seen["url"] = request.url.path
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json=TIMETABLE)

        async with _client(handler) as client:
            result = await client.parse_timetable(b"\x89PNG", "image/png")

        assert seen["url"] == "/api/parse-timetable"
        assert seen["body"] == {
            "imageBase64": base64.b64encode(b"\x89PNG").decode("ascii"),
            "mimeType": "image/png",
        }
        assert result.free_hours == 2.5
        assert result.slots[0].day == "Tue"

    @pytest.mark.asyncio
    async def test_json_wrapped_in_prose(self):
        def handler(request):
            return httpx.Response(200, text=f"Here you go:\n```json\n{json.dumps(TIMETABLE)}\n```")

        async with _client(handler) as client:
            result = await client.parse_timetable(b"img")

        assert result.total_free_minutes == 1050

    @pytest.mark.asyncio
    async def test_no_json_at_all(self):
        async with _client(lambda request: httpx.Response(200, text="I can't read that")) as client:
            with pytest.raises(TimetableParseError):
                await client.parse_timetable(b"img")

    @pytest.mark.asyncio
    async def test_incomplete_payload(self):
        async with _client(lambda request: httpx.Response(200, json={"summary": "?"})) as client:
            with pytest.raises(TimetableParseError):
                await client.parse_timetable(b"img")

    @pytest.mark.asyncio
    async def test_server_error(self):
        async with _client(lambda request: httpx.Response(500)) as client:
            with pytest.raises(TimetableParseError):
                await client.parse_timetable(b"img")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


class TestExtractJson:
    def test_plain_json(self):
        assert _extract_json('{"a": 1}') == {"a": 1}

    def test_embedded_block(self):
        assert _extract_json('prefix {"a": {"b": 2}} suffix') == {"a": {"b": 2}}

    def test_nothing_usable(self):
        assert _extract_json("no braces here") is None
        assert _extract_json("{broken") is None


class TestLifecycle:
    def test_build_service_client(self):
        client = build_service_client(ServiceConfig(endpoint=" http://localhost:3000/api/ "))
        assert client.base_url == "http://localhost:3000/api"

    @pytest.mark.asyncio
    async def test_close_is_idempotent(self):
        client = _client(lambda request: httpx.Response(200, json=CLASSIFICATION))
        await client.classify("x", 1)
        await client.close()
        await client.close()
        assert client._client is None
