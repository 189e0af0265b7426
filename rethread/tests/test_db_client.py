"""
Tests for DbClient

Request shape and failure handling of the store transport.
"""

import json
import pytest
import httpx


def _client(handler):
    from rethread.common.db_client import DbClient
    return DbClient(
        base_url="https://store.example.com/",
        token="c2VjcmV0",
        transport=httpx.MockTransport(handler),
    )


class TestDbClient:
    """Tests for DbClient.do_query"""

    @pytest.mark.asyncio
    async def test_request_shape(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["method"] = request.method
            seen["path"] = request.url.path
            seen["mode"] = request.url.params.get("mode")
            seen["auth"] = request.headers.get("authorization")
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"results": [{"x": 1}]})

        client = _client(handler)
        result = await client.do_query("SELECT ?", [1], mode="multi")
        await client.close()

        assert result == {"results": [{"x": 1}]}
        assert seen == {
            "method": "POST",
            "path": "/db/query",
            "mode": "multi",
            "auth": "Basic c2VjcmV0",
            "body": {"args": [1], "query": "SELECT ?"},
        }

    @pytest.mark.asyncio
    async def test_defaults(self):
        seen = {}

        def handler(request):
            seen["mode"] = request.url.params.get("mode")
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"results": []})

        client = _client(handler)
        await client.do_query("SELECT 1")
        await client.close()

        assert seen["mode"] == "single"
        assert seen["body"]["args"] == []

    @pytest.mark.asyncio
    async def test_invalid_mode(self, caplog):
        import logging

        def handler(request):
            raise AssertionError("no request expected")

        client = _client(handler)
        with caplog.at_level(logging.ERROR, logger="rethread.common.db_client"):
            assert await client.do_query("SELECT 1", mode="batch") is None
        await client.close()
        assert "Invalid query mode" in caplog.text

    @pytest.mark.asyncio
    async def test_http_error_status(self):
        client = _client(lambda request: httpx.Response(500, text="oops"))

        assert await client.do_query("SELECT 1") is None
        await client.close()

    @pytest.mark.asyncio
    async def test_transport_error(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        client = _client(handler)

        assert await client.do_query("SELECT 1") is None
        await client.close()

    @pytest.mark.asyncio
    async def test_non_json_body(self):
        client = _client(lambda request: httpx.Response(200, text="<html>"))

        assert await client.do_query("SELECT 1") is None
        await client.close()
