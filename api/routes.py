"""
HTTP routes — authorization redirect, OAuth callback, action queries.
"""

from __future__ import annotations

import html
import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import HTMLResponse, PlainTextResponse, RedirectResponse

from actions.registry import ActionRegistry
from api.dependencies import get_credential_manager, get_dispatcher
from connectors.credential_manager import CredentialManager
from core.dispatcher import ActionDispatcher
from core.exceptions import CredentialStoreError, InvalidRequest, UpstreamAuthError
from utils.schemas import ActionDescription, ErrorEnvelope, QueryRequest

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/", response_class=PlainTextResponse)
async def health() -> str:
    return "Notion GPT Bridge is running."


@router.get("/authorize")
@router.get("/notion/connect", include_in_schema=False)
async def authorize(
    user_id: Optional[str] = Query(default=None),
    credentials: CredentialManager = Depends(get_credential_manager),
) -> RedirectResponse:
    """Redirect the user to Notion's consent screen."""
    return RedirectResponse(credentials.begin_authorization(user_id))


@router.get("/oauth/callback", response_class=HTMLResponse)
async def oauth_callback(
    code: Optional[str] = Query(default=None),
    state: Optional[str] = Query(default=None),
    error: Optional[str] = Query(default=None),
    credentials: CredentialManager = Depends(get_credential_manager),
) -> HTMLResponse:
    """
    OAuth callback — Notion redirects here after consent.

    ``state`` carries the user_id set on ``/authorize``.  Returns a small
    human-readable page.
    """
    if error:
        logger.warning("OAuth consent declined for user %s: %s", state, error)
        return HTMLResponse(
            _callback_html(success=False, message=f"Authorization was not granted ({error})."),
            status_code=400,
        )

    try:
        result = await credentials.complete_authorization(code, state)
    except InvalidRequest as exc:
        return HTMLResponse(_callback_html(success=False, message=exc.message), status_code=400)
    except UpstreamAuthError as exc:
        logger.error("OAuth error for user %s: %s", state, exc.details)
        return HTMLResponse(
            _callback_html(success=False, message="OAuth Error: Could not fetch token"),
            status_code=500,
        )
    except CredentialStoreError:
        return HTMLResponse(
            _callback_html(success=False, message="Could not save the connection, please retry."),
            status_code=500,
        )

    workspace = result.get("workspace_name")
    message = f"Connected to {workspace}." if workspace else "Connected!"
    return HTMLResponse(
        _callback_html(success=True, message=f"{message} You may now return to your app."),
        status_code=200,
    )


@router.post(
    "/query",
    responses={
        400: {"model": ErrorEnvelope},
        401: {"model": ErrorEnvelope},
        500: {"model": ErrorEnvelope},
    },
)
@router.post("/notion/query", include_in_schema=False)
async def query(
    request: QueryRequest,
    dispatcher: ActionDispatcher = Depends(get_dispatcher),
) -> Dict[str, Any]:
    """Run one action for a connected user."""
    return await dispatcher.dispatch(request.user_id, request.action, request.parameters)


@router.get("/actions", response_model=List[ActionDescription])
async def list_actions() -> List[Dict[str, Any]]:
    """Supported actions and their parameters."""
    registry = ActionRegistry()
    registry.auto_discover_actions()
    return registry.describe()


# ── Callback HTML template ─────────────────────────────────────────────


def _callback_html(success: bool, message: str) -> str:
    """Result page shown in the browser after the OAuth redirect."""
    status_emoji = "✅" if success else "❌"
    status_text = "Connected!" if success else "Connection failed"
    color = "#00d992" if success else "#ef4444"

    return f"""<!DOCTYPE html>
<html>
<head>
    <title>Notion — {status_text}</title>
    <style>
        body {{
            font-family: system-ui, sans-serif;
            display: flex; align-items: center; justify-content: center;
            height: 100vh; margin: 0;
        }}
        .card {{ text-align: center; padding: 40px; max-width: 400px; }}
        h2 {{ color: {color}; }}
    </style>
</head>
<body>
    <div class="card">
        <h2>{status_emoji} {status_text}</h2>
        <p>{html.escape(message)}</p>
    </div>
</body>
</html>"""
