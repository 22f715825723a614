"""
Credential manager — the three-legged OAuth flow plus per-user token lookup.

This is the single interface the dispatcher uses to get the bearer token
for a given user.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from connectors.base import BaseConnector
from connectors.store import CredentialStore
from core.exceptions import InvalidRequest
from utils.validators import require_field

logger = logging.getLogger(__name__)


class CredentialManager:
    """Owns the OAuth handshake and the ``user_id`` → token mapping."""

    def __init__(self, store: CredentialStore, connector: BaseConnector) -> None:
        self.store = store
        self.connector = connector

    def begin_authorization(self, user_id: Optional[str]) -> str:
        """
        Return the provider authorization URL for ``user_id``.

        ``state`` is the raw user_id; it correlates the callback with the
        user and is not an anti-forgery token.
        """
        user_id = require_field("user_id", user_id)
        return self.connector.get_auth_url(state=user_id)

    async def complete_authorization(
        self,
        code: Optional[str],
        user_id: Optional[str],
    ) -> Dict[str, Any]:
        """
        Exchange ``code`` for a token and upsert it for ``user_id``.

        The exchange happens before any write, so a failed exchange
        (``UpstreamAuthError``) never leaves a partial credential behind.
        """
        missing = [name for name, value in (("code", code), ("state", user_id)) if not value]
        if missing:
            raise InvalidRequest(
                f"Missing {' and '.join(missing)}", details={"missing": missing}
            )

        token_data = await self.connector.handle_callback(code)
        meta = {k: v for k, v in token_data.items() if k != "access_token"}
        await self.store.put(user_id, token_data["access_token"], meta)

        logger.info("Token stored for user: %s", user_id)
        return {
            "user_id": user_id,
            "workspace_id": token_data.get("workspace_id"),
            "workspace_name": token_data.get("workspace_name"),
        }

    async def get_credential(self, user_id: str) -> Optional[str]:
        """Return the stored token or ``None``; never raises for unknown users."""
        return await self.store.get(user_id)
