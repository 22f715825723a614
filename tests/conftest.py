"""
Shared fixtures: test settings, an in-memory store and a fake Notion upstream.
"""

from __future__ import annotations

import json
from typing import Any, Dict, List, Optional, Tuple

import httpx
import pytest

from actions.registry import ActionRegistry
from config.settings import Settings
from connectors.credential_manager import CredentialManager
from connectors.notion import NotionConnector
from connectors.store import InMemoryCredentialStore
from core.dispatcher import ActionDispatcher


class FakeNotion:
    """
    ``httpx.MockTransport`` handler that records every request.

    Routes are keyed by ``(METHOD, path)``; a route value is
    ``(status, body)`` where body is JSON-able, a raw string, or an
    exception class to raise.
    """

    def __init__(self, default: Tuple[int, Any] = (200, {"results": []})) -> None:
        self.default = default
        self.routes: Dict[Tuple[str, str], Tuple[int, Any]] = {}
        self.calls: List[httpx.Request] = []

    def route(self, method: str, path: str, status: int, body: Any) -> None:
        self.routes[(method.upper(), path)] = (status, body)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        status, body = self.routes.get((request.method, request.url.path), self.default)
        if isinstance(body, type) and issubclass(body, Exception):
            raise body("upstream unreachable", request=request)
        if isinstance(body, str):
            return httpx.Response(status, text=body)
        return httpx.Response(status, json=body)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def last_json(self) -> Optional[Dict[str, Any]]:
        content = self.calls[-1].content
        return json.loads(content) if content else None


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        notion_client_id="client-123",
        notion_client_secret="secret-xyz",
        notion_redirect_uri="https://bridge.example.com/oauth/callback",
        notion_api_base="https://api.notion.com/v1",
        notion_version="2022-06-28",
        credential_backend="memory",
    )


@pytest.fixture
def store() -> InMemoryCredentialStore:
    return InMemoryCredentialStore()


@pytest.fixture
def notion() -> FakeNotion:
    return FakeNotion()


@pytest.fixture
def manager(settings, store, notion) -> CredentialManager:
    connector = NotionConnector(settings, transport=notion.transport)
    return CredentialManager(store, connector)


@pytest.fixture
def dispatcher(settings, manager, notion) -> ActionDispatcher:
    ActionRegistry.reset()
    return ActionDispatcher(manager, settings=settings, transport=notion.transport)
