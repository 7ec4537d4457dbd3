"""HttpTransport against a local aiohttp test server."""

from __future__ import annotations

import json
import os
from typing import Any

import aiohttp
import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer as _TestServer

from quotegen._api.posts import fetch_remote_quotes, post_quote
from quotegen._transport import HttpTransport
from quotegen.config import QuoteConfig
from quotegen.exceptions import QuoteDecodeError, QuoteTransportError
from quotegen.models import Quote, QuoteOrigin
from quotegen.storage import MemoryStorage
from quotegen.store import QuoteStore
from quotegen.sync import QuoteSync


def _app(received: list[Any], *, status: int = 200, body: str | None = None) -> web.Application:
    async def list_posts(_request: web.Request) -> web.Response:
        if body is not None:
            return web.Response(status=status, text=body, content_type="application/json")
        return web.json_response(
            [
                {"userId": 1, "id": 1, "title": "sunt aut facere", "body": "..."},
                {"userId": 1, "id": 2, "title": "qui est esse", "body": "..."},
                {"userId": 1, "id": 3, "title": "", "body": "no title"},
            ],
            status=status,
        )

    async def create_post(request: web.Request) -> web.Response:
        received.append(await request.json())
        return web.json_response({"id": 101}, status=201)

    app = web.Application()
    app.router.add_get("/posts", list_posts)
    app.router.add_post("/posts", create_post)
    return app


def _config(server: _TestServer, tmp_path) -> QuoteConfig:
    return QuoteConfig(
        base_url=str(server.make_url("/")).rstrip("/"),
        storage_path=tmp_path / "s.json",
        request_timeout=5.0,
    )


@pytest.mark.asyncio
async def test_fetch_maps_posts_to_remote_quotes(tmp_path) -> None:
    async with _TestServer(_app([])) as server, aiohttp.ClientSession() as session:
        config = _config(server, tmp_path)
        quotes = await fetch_remote_quotes(config, HttpTransport(config, session))

    assert quotes == [
        Quote(id=1, text="sunt aut facere", category="Server", origin=QuoteOrigin.REMOTE),
        Quote(id=2, text="qui est esse", category="Server", origin=QuoteOrigin.REMOTE),
    ]


@pytest.mark.asyncio
async def test_post_sends_serialized_quote(tmp_path) -> None:
    received: list[Any] = []
    quote = Quote(id=1_700_000_000_000, text="Stay hungry.", category="Motivation")

    async with _TestServer(_app(received)) as server, aiohttp.ClientSession() as session:
        config = _config(server, tmp_path)
        response = await post_quote(config, HttpTransport(config, session), quote)

    assert response == {"id": 101}
    assert received == [{"id": 1_700_000_000_000, "text": "Stay hungry.", "category": "Motivation", "origin": "local"}]


@pytest.mark.asyncio
async def test_non_2xx_raises_transport_error(tmp_path) -> None:
    app = _app([], status=503, body='{"error": "down"}')
    async with _TestServer(app) as server, aiohttp.ClientSession() as session:
        config = _config(server, tmp_path)
        with pytest.raises(QuoteTransportError) as exc_info:
            await HttpTransport(config, session).get_json("/posts")

    assert exc_info.value.status_code == 503
    assert exc_info.value.endpoint == "/posts"
    assert not isinstance(exc_info.value, QuoteDecodeError)


@pytest.mark.asyncio
async def test_invalid_json_raises_decode_error(tmp_path) -> None:
    async with _TestServer(_app([], body="<html>oops</html>")) as server, aiohttp.ClientSession() as session:
        config = _config(server, tmp_path)
        with pytest.raises(QuoteDecodeError):
            await HttpTransport(config, session).get_json("/posts")


@pytest.mark.asyncio
async def test_non_array_body_raises_decode_error(tmp_path) -> None:
    body = json.dumps({"posts": []})
    async with _TestServer(_app([], body=body)) as server, aiohttp.ClientSession() as session:
        config = _config(server, tmp_path)
        with pytest.raises(QuoteDecodeError):
            await fetch_remote_quotes(config, HttpTransport(config, session))


@pytest.mark.asyncio
async def test_connection_failure_raises_transport_error(tmp_path) -> None:
    async with _TestServer(_app([])) as server:
        config = _config(server, tmp_path)
    # The server is closed now; connecting must fail.
    async with aiohttp.ClientSession() as session:
        with pytest.raises(QuoteTransportError) as exc_info:
            await HttpTransport(config, session).get_json("/posts")
    assert exc_info.value.status_code is None


def _raw_app(*, get_body: bytes = b"[]", post_status: int = 201, post_body: bytes = b"{}") -> web.Application:
    async def list_posts(_request: web.Request) -> web.Response:
        return web.Response(body=get_body, content_type="application/json", charset="utf-8")

    async def create_post(_request: web.Request) -> web.Response:
        return web.Response(status=post_status, body=post_body, content_type="text/html", charset="utf-8")

    app = web.Application()
    app.router.add_get("/posts", list_posts)
    app.router.add_post("/posts", create_post)
    return app


@pytest.mark.asyncio
async def test_undecodable_body_fails_sync_without_raising(tmp_path) -> None:
    store = QuoteStore(MemoryStorage())
    before = store.load()

    async with _TestServer(_raw_app(get_body=b"\xff\xfe[]")) as server, aiohttp.ClientSession() as session:
        config = _config(server, tmp_path)
        transport = HttpTransport(config, session)
        with pytest.raises(QuoteDecodeError) as exc_info:
            await transport.get_json("/posts")
        result = await QuoteSync(config, store, transport).sync()

    assert exc_info.value.status_code == 200
    assert not result.success
    assert result.message.startswith("Sync failed")
    assert store.quotes == before


@pytest.mark.asyncio
async def test_successful_post_with_html_body_counts_as_published(tmp_path) -> None:
    quote = Quote(id=1_700_000_000_000, text="Stay hungry.", category="Motivation")

    async with _TestServer(_raw_app(post_body=b"<html>created</html>")) as server, aiohttp.ClientSession() as session:
        config = _config(server, tmp_path)
        transport = HttpTransport(config, session)
        response = await post_quote(config, transport, quote)
        published = await QuoteSync(config, QuoteStore(MemoryStorage()), transport).publish(quote)

    assert response is None
    assert published is True


@pytest.mark.asyncio
async def test_failed_post_status_still_raises(tmp_path) -> None:
    quote = Quote(id=1_700_000_000_000, text="Stay hungry.", category="Motivation")

    async with _TestServer(_raw_app(post_status=500, post_body=b"<html>oops</html>")) as server:
        async with aiohttp.ClientSession() as session:
            config = _config(server, tmp_path)
            with pytest.raises(QuoteTransportError) as exc_info:
                await post_quote(config, HttpTransport(config, session), quote)

    assert exc_info.value.status_code == 500


@pytest.mark.e2e
@pytest.mark.asyncio
@pytest.mark.skipif(not os.environ.get("QUOTEGEN_E2E"), reason="set QUOTEGEN_E2E=1 to hit the real endpoint")
async def test_live_endpoint_round_trip(tmp_path) -> None:
    config = QuoteConfig(storage_path=tmp_path / "s.json")
    quote = Quote(id=1_700_000_000_000, text="Stay hungry.", category="Motivation")

    async with aiohttp.ClientSession() as session:
        transport = HttpTransport(config, session)
        quotes = await fetch_remote_quotes(config, transport)
        await post_quote(config, transport, quote)

    assert 0 < len(quotes) <= 10
    assert all(q.origin == QuoteOrigin.REMOTE for q in quotes)
