"""
Thin async client for the Notion REST API.

Every request carries the bearer token, the pinned ``Notion-Version``
header and JSON content negotiation.  Failures are raised once as
``UpstreamAPIError`` with the upstream status and body untouched; there
are no retries.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx

from config.settings import config
from core.exceptions import UpstreamAPIError

logger = logging.getLogger(__name__)


def notion_headers(token: str, version: str) -> Dict[str, str]:
    """Standard Notion API headers."""
    return {
        "Authorization": f"Bearer {token}",
        "Notion-Version": version,
        "Content-Type": "application/json",
        "Accept": "application/json",
    }


def response_body(resp: httpx.Response) -> Any:
    """Decoded JSON body, or the raw text when the body is not JSON."""
    try:
        return resp.json()
    except ValueError:
        return resp.text


class NotionAPI:
    """One authenticated session against the Notion API for a single user."""

    def __init__(
        self,
        token: str,
        *,
        base_url: Optional[str] = None,
        version: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._client = httpx.AsyncClient(
            base_url=(base_url or config.notion_api_base).rstrip("/") + "/",
            headers=notion_headers(token, version or config.notion_version),
            timeout=timeout if timeout is not None else config.upstream_timeout_seconds,
            transport=transport,
        )

    async def __aenter__(self) -> "NotionAPI":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def request(
        self,
        method: str,
        path: str,
        *,
        json: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """Send one request and return the decoded JSON body."""
        try:
            resp = await self._client.request(method, path.lstrip("/"), json=json, params=params)
        except httpx.HTTPError as exc:
            logger.error("Notion %s %s failed: %s", method, path, exc)
            raise UpstreamAPIError(body=str(exc)) from exc

        body = response_body(resp)
        if not resp.is_success:
            logger.error("Notion %s %s — %d body=%s", method, path, resp.status_code, body)
            raise UpstreamAPIError(status=resp.status_code, body=body)
        return body

    async def get(self, path: str, *, params: Optional[Dict[str, Any]] = None) -> Any:
        return await self.request("GET", path, params=params)

    async def post(self, path: str, json: Optional[Dict[str, Any]] = None) -> Any:
        return await self.request("POST", path, json=json)

    async def patch(self, path: str, json: Optional[Dict[str, Any]] = None) -> Any:
        return await self.request("PATCH", path, json=json)
