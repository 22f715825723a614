"""
BaseConnector — abstract interface for OAuth2 connectors.

A provider subclasses this and implements the authorization-URL builder
and the code → token exchange.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict


class BaseConnector(ABC):
    """Abstract base for OAuth2 connectors."""

    # ── Identity ────────────────────────────────────────────────────────
    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Unique slug, e.g. 'notion'."""
        ...

    @property
    @abstractmethod
    def display_name(self) -> str:
        """Human-readable name, e.g. 'Notion'."""
        ...

    # ── OAuth flow ──────────────────────────────────────────────────────

    @abstractmethod
    def get_auth_url(self, state: str) -> str:
        """
        Build the provider's OAuth2 authorization URL.

        Parameters
        ----------
        state : str
            Value echoed back on the callback; carries the caller's user_id.

        Returns
        -------
        The full URL to redirect the user to.
        """
        ...

    @abstractmethod
    async def handle_callback(self, code: str) -> Dict[str, Any]:
        """
        Exchange the authorization code for a bearer token.

        Returns
        -------
        dict with at least ``access_token``; any further keys are
        provider metadata stored alongside the token.
        """
        ...

    # ── Helpers ─────────────────────────────────────────────────────────

    def is_configured(self) -> bool:
        """Return True if the client id / secret are present."""
        return True
