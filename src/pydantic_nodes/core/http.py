"""Outbound HTTP helpers shared by nodes that call third-party APIs."""

import json
import logging
from typing import Any

import aiohttp

from pydantic_nodes.core.errors import ExternalCallError

logger = logging.getLogger(__name__)

BODY_PREVIEW_CHARS = 500


def _decode(raw: str) -> Any:
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        return raw


async def request_json(
    method: str,
    url: str,
    *,
    timeout: float,
    headers: dict[str, str] | None = None,
    body: Any = None,
    session: aiohttp.ClientSession | None = None,
) -> Any:
    """Send one request and decode the response body.

    JSON bodies are decoded; anything else is returned as text. ``body`` is
    sent as JSON for every method except GET.

    Args:
        method: HTTP method.
        url: Absolute URL.
        timeout: Total timeout in seconds.
        headers: Extra request headers.
        body: JSON-serializable request body.
        session: Session to reuse; a short-lived one is opened otherwise.

    Raises:
        ExternalCallError: On a non-2xx status, a network failure or a
            timeout.

    """
    method = method.upper()
    kwargs: dict[str, Any] = {
        "headers": headers or {},
        "timeout": aiohttp.ClientTimeout(total=timeout),
    }
    if body is not None and method != "GET":
        kwargs["json"] = body

    logger.debug("%s %s", method, url)
    owned = session is None
    client = session or aiohttp.ClientSession()
    try:
        async with client.request(method, url, **kwargs) as response:
            raw = await response.text()
            if response.status >= 400:
                msg = f"{method} {url} failed with status {response.status}"
                raise ExternalCallError(
                    msg,
                    status_code=response.status,
                    body=raw[:BODY_PREVIEW_CHARS],
                )
            return _decode(raw)
    except (aiohttp.ClientError, TimeoutError) as e:
        msg = f"{method} {url} failed: {str(e) or type(e).__name__}"
        raise ExternalCallError(msg) from e
    finally:
        if owned:
            await client.close()


async def download(
    url: str,
    *,
    timeout: float,
    session: aiohttp.ClientSession | None = None,
) -> tuple[bytes, str]:
    """Fetch ``url`` and return its bytes and content type.

    Raises:
        ExternalCallError: On a non-2xx status or a network failure.

    """
    owned = session is None
    client = session or aiohttp.ClientSession()
    try:
        async with client.get(
            url, timeout=aiohttp.ClientTimeout(total=timeout)
        ) as response:
            if response.status >= 400:
                msg = f"Download of {url} failed with status {response.status}"
                raise ExternalCallError(msg, status_code=response.status)
            data = await response.read()
            return data, response.content_type or "application/octet-stream"
    except (aiohttp.ClientError, TimeoutError) as e:
        msg = f"Download of {url} failed: {str(e) or type(e).__name__}"
        raise ExternalCallError(msg) from e
    finally:
        if owned:
            await client.close()
