"""
Pydantic schemas for the HTTP surface.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class QueryRequest(BaseModel):
    """
    Body of ``POST /query``.

    Every field is optional at the schema level so a missing ``user_id``
    or ``action`` surfaces as the broker's own ``invalid_request`` error
    rather than a schema failure.
    """

    user_id: Optional[str] = None
    action: Optional[str] = None
    parameters: Optional[Dict[str, Any]] = Field(default=None)


class ErrorEnvelope(BaseModel):
    error: str
    message: str
    details: Optional[Any] = None


class ActionDescription(BaseModel):
    action: str
    required: List[str] = Field(default_factory=list)
    optional: List[str] = Field(default_factory=list)
    result_key: str
    description: str = ""

