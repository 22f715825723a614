"""
ActionDispatcher — turns ``(user_id, action, parameters)`` into Notion API
calls and a normalized result.

Order of checks (each one happens before any upstream traffic):

  1. ``user_id`` present                   → else ``InvalidRequest``
  2. stored credential for the user       → else ``NotConnected``
  3. ``action`` is a row of the table     → else ``UnsupportedAction``
  4. required parameters present          → else ``InvalidRequest``

Only then is the action's call builder run.  Upstream failures surface as
``UpstreamAPIError`` carrying the upstream status/body verbatim; nothing is
retried.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx

from actions.registry import ActionRegistry, ActionSpec
from config.settings import Settings, config
from connectors.credential_manager import CredentialManager
from core.exceptions import NotConnected, UnsupportedAction
from core.notion_api import NotionAPI
from utils.validators import require_field, validate_parameters

logger = logging.getLogger(__name__)

# Pagination cursors are surfaced next to the payload untouched.
_PAGINATION_FIELDS = ("has_more", "next_cursor")


def shape_result(spec: ActionSpec, body: Any) -> Dict[str, Any]:
    """Wrap an upstream body into the action's success envelope."""
    if spec.result_field is None:
        return {spec.result_key: body}

    if not isinstance(body, dict):
        return {spec.result_key: body}

    result: Dict[str, Any] = {spec.result_key: body.get(spec.result_field)}
    for field in _PAGINATION_FIELDS:
        if field in body:
            result[field] = body[field]
    return result


class ActionDispatcher:
    """Executes action requests on behalf of connected users."""

    def __init__(
        self,
        credentials: CredentialManager,
        registry: Optional[ActionRegistry] = None,
        *,
        settings: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.credentials = credentials
        self.registry = registry or ActionRegistry()
        self.registry.auto_discover_actions()
        self._settings = settings or config
        self._transport = transport

    def _open_api(self, token: str) -> NotionAPI:
        return NotionAPI(
            token,
            base_url=self._settings.notion_api_base,
            version=self._settings.notion_version,
            timeout=self._settings.upstream_timeout_seconds,
            transport=self._transport,
        )

    async def dispatch(
        self,
        user_id: Optional[str],
        action: Optional[str],
        parameters: Any = None,
    ) -> Dict[str, Any]:
        """
        Run ``action`` for ``user_id`` and return the result envelope,
        e.g. ``{"results": [...]}`` for ``query_database``.

        Raises
        ------
        InvalidRequest     – missing user_id / action / required parameter
        NotConnected       – no stored credential for the user
        UnsupportedAction  – action not in the table
        UpstreamAPIError   – the Notion call failed
        CredentialStoreError – the credential store is unavailable
        """
        user_id = require_field("user_id", user_id)
        logger.info("Received request: user=%s, action=%s", user_id, action)

        token = await self.credentials.get_credential(user_id)
        if not token:
            logger.warning("No token found for user: %s", user_id)
            raise NotConnected(user_id)

        action = require_field("action", action)
        if not self.registry.has_action(action):
            logger.warning("Unsupported action: %s", action)
            raise UnsupportedAction(action)
        spec = self.registry.get(action)

        params = validate_parameters(action, parameters, spec.required)

        async with self._open_api(token) as api:
            body = await spec.handler(api, params)

        logger.debug("Action %s completed for user %s", action, user_id)
        return shape_result(spec, body)
