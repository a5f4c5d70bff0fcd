from unittest.mock import AsyncMock

import httpx
import pytest

from radiko_watch.utils import http_client
from radiko_watch.utils.http_client import fetch_bytes, fetch_json


@pytest.fixture(autouse=True)
def no_backoff(monkeypatch):
    sleep = AsyncMock()
    monkeypatch.setattr(http_client.asyncio, "sleep", sleep)
    return sleep


def _client(responses):
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return responses[min(len(calls), len(responses)) - 1]

    return httpx.AsyncClient(transport=httpx.MockTransport(handler)), calls


async def test_server_errors_are_retried(no_backoff):
    client, calls = _client([httpx.Response(503), httpx.Response(200, content=b"<ok/>")])
    async with client:
        assert await fetch_bytes(client, "https://radiko.jp/x.xml") == b"<ok/>"

    assert len(calls) == 2
    no_backoff.assert_awaited_once_with(1.0)


async def test_client_errors_are_not_retried():
    client, calls = _client([httpx.Response(404)])
    async with client:
        with pytest.raises(httpx.HTTPStatusError):
            await fetch_bytes(client, "https://radiko.jp/x.xml")

    assert len(calls) == 1


async def test_last_error_raised_after_retries():
    client, calls = _client([httpx.Response(500)])
    async with client:
        with pytest.raises(httpx.HTTPStatusError):
            await fetch_bytes(client, "https://radiko.jp/x.xml", max_retries=2)

    assert len(calls) == 2


async def test_transport_errors_are_retried():
    attempts = []

    def handler(request: httpx.Request) -> httpx.Response:
        attempts.append(request)
        if len(attempts) == 1:
            raise httpx.ConnectError("refused", request=request)
        return httpx.Response(200, json={"data": []})

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        assert await fetch_json(client, "https://api.radiko.jp/noas/TBS") == {"data": []}

    assert len(attempts) == 2
