"""
Error taxonomy for the broker and the FastAPI handlers that turn it into
the JSON error envelope.

Operations raise a ``BrokerError`` subclass; the handlers registered by
``register_exception_handlers`` render it as::

    {"error": "<kind>", "message": "<human text>", "details": <optional>}
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.encoders import jsonable_encoder

logger = logging.getLogger(__name__)


class ErrorKind(str, Enum):
    INVALID_REQUEST = "invalid_request"
    UNSUPPORTED_ACTION = "unsupported_action"
    NOT_CONNECTED = "not_connected"
    UPSTREAM_AUTH_ERROR = "upstream_auth_error"
    UPSTREAM_API_ERROR = "upstream_api_error"
    CREDENTIAL_STORE_ERROR = "credential_store_error"


def error_payload(kind: ErrorKind, message: str, details: Any = None) -> Dict[str, Any]:
    payload: Dict[str, Any] = {"error": kind.value, "message": message}
    if details is not None:
        payload["details"] = details
    return payload


class BrokerError(Exception):
    """Base class for every error the broker surfaces to its callers."""

    kind: ErrorKind = ErrorKind.INVALID_REQUEST
    status_code: int = 400

    def __init__(self, message: str, *, details: Any = None) -> None:
        self.message = message
        self.details = details
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        return error_payload(self.kind, self.message, self.details)


class InvalidRequest(BrokerError):
    """Malformed request or missing required field."""

    kind = ErrorKind.INVALID_REQUEST
    status_code = 400


class UnsupportedAction(BrokerError):
    """The requested action is not in the action table."""

    kind = ErrorKind.UNSUPPORTED_ACTION
    status_code = 400

    def __init__(self, action: Any) -> None:
        super().__init__(f"Unsupported action: {action}", details={"action": action})
        self.action = action


class NotConnected(BrokerError):
    """No stored credential for the user; remediable by the authorization flow."""

    kind = ErrorKind.NOT_CONNECTED
    status_code = 401

    def __init__(self, user_id: str) -> None:
        super().__init__("User not connected to Notion")
        self.user_id = user_id


class UpstreamAuthError(BrokerError):
    """The OAuth code exchange failed."""

    kind = ErrorKind.UPSTREAM_AUTH_ERROR
    status_code = 500


class UpstreamAPIError(BrokerError):
    """
    A Notion API call failed after authentication.

    ``details`` is the upstream body verbatim (the exception text for
    network failures); no local interpretation is layered on top.  The
    HTTP status is kept on ``upstream_status``.
    """

    kind = ErrorKind.UPSTREAM_API_ERROR
    status_code = 500

    def __init__(
        self,
        message: str = "Notion API error",
        *,
        status: Optional[int] = None,
        body: Any = None,
    ) -> None:
        super().__init__(message, details=body)
        self.upstream_status = status
        self.upstream_body = body


class CredentialStoreError(BrokerError):
    """The credential store could not be read or written."""

    kind = ErrorKind.CREDENTIAL_STORE_ERROR
    status_code = 500


def register_exception_handlers(app: FastAPI) -> None:
    """Register the error-envelope handlers on a FastAPI app."""

    @app.exception_handler(BrokerError)
    async def _broker_error_handler(_request: Request, exc: BrokerError) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content=jsonable_encoder(exc.to_dict()),
        )

    @app.exception_handler(RequestValidationError)
    async def _validation_error_handler(
        _request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=400,
            content=jsonable_encoder(
                error_payload(ErrorKind.INVALID_REQUEST, "Malformed request", exc.errors())
            ),
        )
