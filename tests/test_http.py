"""Tests for the HTTP helpers and the API call node."""

import json
from unittest.mock import AsyncMock
from unittest.mock import MagicMock
from unittest.mock import patch

import aiohttp
import pytest

from conftest import entries
from pydantic_nodes import default_registry
from pydantic_nodes.core import ExternalCallError
from pydantic_nodes.core.http import download
from pydantic_nodes.core.http import request_json


def fake_session(status=200, text="", data=b"", content_type="application/json"):
    """Build a session whose request context managers yield one response."""
    response = MagicMock(status=status, content_type=content_type)
    response.text = AsyncMock(return_value=text)
    response.read = AsyncMock(return_value=data)
    cm = MagicMock()
    cm.__aenter__ = AsyncMock(return_value=response)
    cm.__aexit__ = AsyncMock(return_value=False)
    session = MagicMock()
    session.request = MagicMock(return_value=cm)
    session.get = MagicMock(return_value=cm)
    session.close = AsyncMock()
    return session


class TestRequestJson:
    """Tests for request_json."""

    @pytest.mark.asyncio
    async def test_decodes_json(self):
        """JSON responses are decoded and the method is upper-cased."""
        session = fake_session(text='{"ok": true}')

        data = await request_json(
            "post", "https://api.test/x", timeout=5, body={"a": 1}, session=session
        )

        assert data == {"ok": True}
        args, kwargs = session.request.call_args
        assert args == ("POST", "https://api.test/x")
        assert kwargs["json"] == {"a": 1}
        assert kwargs["timeout"].total == 5
        session.close.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_get_never_sends_a_body(self):
        """GET requests drop the body."""
        session = fake_session(text="plain")

        data = await request_json(
            "GET", "https://api.test", timeout=5, body={"a": 1}, session=session
        )

        assert data == "plain"
        assert "json" not in session.request.call_args.kwargs

    @pytest.mark.asyncio
    async def test_error_status_raises(self):
        """Error statuses raise with the status code and body."""
        session = fake_session(status=404, text="missing")

        with pytest.raises(ExternalCallError) as excinfo:
            await request_json("GET", "https://api.test", timeout=5, session=session)

        assert excinfo.value.status_code == 404
        assert excinfo.value.body == "missing"

    @pytest.mark.asyncio
    async def test_network_errors_are_wrapped(self):
        """Transport errors become external call errors."""
        session = MagicMock()
        refused = aiohttp.ClientConnectionError("refused")
        session.request = MagicMock(side_effect=refused)

        with pytest.raises(ExternalCallError, match="refused"):
            await request_json("GET", "https://api.test", timeout=5, session=session)

    @pytest.mark.asyncio
    async def test_owned_session_is_closed(self):
        """A session opened by the helper is closed afterwards."""
        session = fake_session(text="{}")
        with patch(
            "pydantic_nodes.core.http.aiohttp.ClientSession", return_value=session
        ):
            await request_json("GET", "https://api.test", timeout=5)

        session.close.assert_awaited_once()


@pytest.mark.asyncio
async def test_download_returns_bytes_and_type():
    """Downloads return the raw bytes and the content type."""
    session = fake_session(data=b"\x89PNG", content_type="image/png")

    data, content_type = await download(
        "https://cdn.test/a", timeout=5, session=session
    )

    assert data == b"\x89PNG"
    assert content_type == "image/png"


class TestApiNode:
    """Tests for api_node."""

    @pytest.mark.asyncio
    async def test_direct_call(self, console, server):
        """Fields are turned into one request and the response is emitted."""
        with patch(
            "pydantic_nodes.catalog.http.request_json",
            new=AsyncMock(return_value={"id": 1}),
        ) as call:
            result = await default_registry.create("api_node").run(
                [],
                entries(
                    method="post",
                    endpoint="https://api.test/items",
                    body='{"name": "x"}',
                    headers={"X-Token": 1},
                ),
                console,
                server,
            )

        assert result["output"] == {"id": 1}
        assert result["Tool"].name == "apiCallTool"
        call.assert_awaited_once_with(
            "POST",
            "https://api.test/items",
            timeout=30.0,
            headers={"X-Token": "1"},
            body={"name": "x"},
        )

    @pytest.mark.asyncio
    async def test_failed_call_reports_error_output(self, console, server):
        """A failed request is reported in the output at zero credit."""
        error = ExternalCallError("GET https://api.test failed with status 500")
        with patch(
            "pydantic_nodes.catalog.http.request_json", new=AsyncMock(side_effect=error)
        ):
            node = default_registry.create("api_node")
            result = await node.run(
                [], entries(endpoint="https://api.test"), console, server
            )

        assert result["output"] == {"error": str(error)}
        assert result["Credits"] == 0

    @pytest.mark.asyncio
    async def test_missing_endpoint(self, console, server):
        """Without an endpoint only the tool is returned."""
        result = await default_registry.create("api_node").run([], [], console, server)

        assert result["output"] is None
        assert result["Tool"] is not None

    @pytest.mark.asyncio
    async def test_tool_mode(self, console, server):
        """The tool wraps the response in a success envelope."""
        with patch(
            "pydantic_nodes.catalog.http.request_json",
            new=AsyncMock(return_value=[1, 2]),
        ):
            result = await default_registry.create("api_node").run(
                [], [], console, server
            )
            content, _ = await result["Tool"].invoke({"endpoint": "https://api.test"})

        assert json.loads(content) == {"success": True, "data": [1, 2]}
