"""
Tests for the OAuth flow and per-user credential persistence.
"""

import asyncio
import base64
import json
from urllib.parse import parse_qs, urlparse

import httpx
import pytest

from connectors.credential_manager import CredentialManager
from connectors.notion import NotionConnector
from core.exceptions import InvalidRequest, UpstreamAuthError

_TOKEN_PATH = "/v1/oauth/token"


def _token_body(token: str, **extra) -> dict:
    return {
        "access_token": token,
        "token_type": "bearer",
        "bot_id": "bot-1",
        "workspace_id": "ws-1",
        "workspace_name": "Acme",
        **extra,
    }


class TestBeginAuthorization:
    def test_url_carries_client_redirect_and_state(self, manager):
        url = manager.begin_authorization("user-42")
        parsed = urlparse(url)
        query = parse_qs(parsed.query)

        assert f"{parsed.scheme}://{parsed.netloc}{parsed.path}" == (
            "https://api.notion.com/v1/oauth/authorize"
        )
        assert query["client_id"] == ["client-123"]
        assert query["redirect_uri"] == ["https://bridge.example.com/oauth/callback"]
        assert query["response_type"] == ["code"]
        assert query["owner"] == ["user"]
        assert query["state"] == ["user-42"]

    def test_state_is_url_encoded(self, manager):
        url = manager.begin_authorization("a b&c=d")
        assert parse_qs(urlparse(url).query)["state"] == ["a b&c=d"]

    @pytest.mark.parametrize("user_id", [None, ""])
    def test_missing_user_id(self, manager, user_id):
        with pytest.raises(InvalidRequest, match="user_id"):
            manager.begin_authorization(user_id)


class TestCompleteAuthorization:
    @pytest.mark.asyncio
    async def test_exchange_stores_token(self, manager, store, notion):
        notion.route("POST", _TOKEN_PATH, 200, _token_body("secret_token_1"))

        result = await manager.complete_authorization("code-1", "u1")

        assert result == {"user_id": "u1", "workspace_id": "ws-1", "workspace_name": "Acme"}
        assert await manager.get_credential("u1") == "secret_token_1"
        assert store.meta("u1")["workspace_name"] == "Acme"

    @pytest.mark.asyncio
    async def test_exchange_request_shape(self, manager, notion):
        notion.route("POST", _TOKEN_PATH, 200, _token_body("t"))

        await manager.complete_authorization("code-1", "u1")

        request = notion.calls[0]
        assert request.method == "POST"
        assert request.url.path == _TOKEN_PATH
        expected = base64.b64encode(b"client-123:secret-xyz").decode()
        assert request.headers["Authorization"] == f"Basic {expected}"
        assert notion.last_json() == {
            "grant_type": "authorization_code",
            "code": "code-1",
            "redirect_uri": "https://bridge.example.com/oauth/callback",
        }

    @pytest.mark.asyncio
    async def test_reconnect_overwrites_previous_token(self, manager, notion):
        notion.route("POST", _TOKEN_PATH, 200, _token_body("old"))
        await manager.complete_authorization("code-1", "u1")

        notion.route("POST", _TOKEN_PATH, 200, _token_body("new"))
        await manager.complete_authorization("code-2", "u1")

        assert await manager.get_credential("u1") == "new"

    @pytest.mark.asyncio
    async def test_upstream_rejection_writes_nothing(self, manager, store, notion):
        body = {"object": "error", "status": 400, "code": "invalid_grant", "message": "bad code"}
        notion.route("POST", _TOKEN_PATH, 400, body)

        with pytest.raises(UpstreamAuthError) as exc_info:
            await manager.complete_authorization("used-code", "u1")

        assert exc_info.value.details == body
        assert await manager.get_credential("u1") is None
        assert len(store) == 0

    @pytest.mark.asyncio
    async def test_failed_reconnect_keeps_previous_token(self, manager, notion):
        notion.route("POST", _TOKEN_PATH, 200, _token_body("keep-me"))
        await manager.complete_authorization("code-1", "u1")

        notion.route("POST", _TOKEN_PATH, 401, {"error": "invalid_client"})
        with pytest.raises(UpstreamAuthError):
            await manager.complete_authorization("code-2", "u1")

        assert await manager.get_credential("u1") == "keep-me"

    @pytest.mark.asyncio
    async def test_malformed_body(self, manager, store, notion):
        notion.route("POST", _TOKEN_PATH, 200, {"token_type": "bearer"})

        with pytest.raises(UpstreamAuthError, match="Malformed"):
            await manager.complete_authorization("code-1", "u1")
        assert len(store) == 0

    @pytest.mark.asyncio
    async def test_non_json_body(self, manager, notion):
        notion.route("POST", _TOKEN_PATH, 502, "<html>Bad Gateway</html>")

        with pytest.raises(UpstreamAuthError) as exc_info:
            await manager.complete_authorization("code-1", "u1")
        assert exc_info.value.details == "<html>Bad Gateway</html>"

    @pytest.mark.asyncio
    async def test_network_error(self, manager, store, notion):
        notion.route("POST", _TOKEN_PATH, 0, httpx.ConnectError)

        with pytest.raises(UpstreamAuthError):
            await manager.complete_authorization("code-1", "u1")
        assert len(store) == 0

    @pytest.mark.asyncio
    @pytest.mark.parametrize("code,state", [(None, "u1"), ("code-1", None), ("", "")])
    async def test_missing_code_or_state(self, manager, notion, code, state):
        with pytest.raises(InvalidRequest):
            await manager.complete_authorization(code, state)
        assert notion.calls == []

    @pytest.mark.asyncio
    async def test_concurrent_users_do_not_cross_contaminate(self, settings, store):
        def handler(request: httpx.Request) -> httpx.Response:
            code = json.loads(request.content)["code"]
            token = "token-for-" + code.removeprefix("code-")
            return httpx.Response(200, json={"access_token": token})

        connector = NotionConnector(settings, transport=httpx.MockTransport(handler))
        manager = CredentialManager(store, connector)

        await asyncio.gather(
            *[
                manager.complete_authorization(f"code-{uid}", uid)
                for _ in range(10)
                for uid in ("u1", "u2")
            ]
        )

        assert await manager.get_credential("u1") == "token-for-u1"
        assert await manager.get_credential("u2") == "token-for-u2"


class TestGetCredential:
    @pytest.mark.asyncio
    async def test_unknown_user_is_absent(self, manager):
        assert await manager.get_credential("nobody") is None
