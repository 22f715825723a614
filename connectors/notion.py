"""
NotionConnector — OAuth2 for a Notion public integration.

Authorization URL:  {api_base}/oauth/authorize
Token exchange:     {api_base}/oauth/token, HTTP Basic auth with the
                    client id / secret, JSON body.

Notion access tokens do not expire, so there is no refresh step.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional
from urllib.parse import urlencode

import httpx

from config.settings import Settings, config
from connectors.base import BaseConnector
from core.exceptions import UpstreamAuthError
from core.notion_api import response_body

logger = logging.getLogger(__name__)


class NotionConnector(BaseConnector):
    """OAuth2 connector for Notion."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._settings = settings or config
        self._transport = transport

    @property
    def provider_name(self) -> str:
        return "notion"

    @property
    def display_name(self) -> str:
        return "Notion"

    def is_configured(self) -> bool:
        return self._settings.is_oauth_configured()

    @property
    def redirect_uri(self) -> str:
        return self._settings.notion_redirect_uri

    def get_auth_url(self, state: str) -> str:
        params = {
            "client_id": self._settings.notion_client_id,
            "redirect_uri": self.redirect_uri,
            "response_type": "code",
            "owner": self._settings.notion_owner,
            "state": state,
        }
        return f"{self._settings.notion_authorize_url}?{urlencode(params)}"

    async def handle_callback(self, code: str) -> Dict[str, Any]:
        """
        Exchange the one-time ``code`` for an access token.

        The redirect URI must match the one sent on the authorize step.
        Raises ``UpstreamAuthError`` with the upstream body on any failure.
        """
        try:
            async with httpx.AsyncClient(
                transport=self._transport,
                timeout=self._settings.upstream_timeout_seconds,
            ) as client:
                resp = await client.post(
                    self._settings.notion_token_url,
                    json={
                        "grant_type": "authorization_code",
                        "code": code,
                        "redirect_uri": self.redirect_uri,
                    },
                    auth=(self._settings.notion_client_id, self._settings.notion_client_secret),
                    headers={"Content-Type": "application/json", "Accept": "application/json"},
                )
        except httpx.HTTPError as exc:
            logger.error("Notion token exchange failed: %s", exc)
            raise UpstreamAuthError(
                "Could not reach the Notion token endpoint", details=str(exc)
            ) from exc

        body = response_body(resp)
        if not resp.is_success:
            logger.error("Notion token exchange returned %d: %s", resp.status_code, body)
            raise UpstreamAuthError("Could not fetch token", details=body)

        if not isinstance(body, dict) or not isinstance(body.get("access_token"), str):
            logger.error("Notion token response without access_token: %s", body)
            raise UpstreamAuthError("Malformed token response", details=body)

        return {
            "access_token": body["access_token"],
            "workspace_id": body.get("workspace_id"),
            "workspace_name": body.get("workspace_name"),
            "bot_id": body.get("bot_id"),
        }
