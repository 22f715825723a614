"""
Request validators used by the dispatcher before any upstream call.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Mapping, Optional

from core.exceptions import InvalidRequest


def missing_parameters(params: Mapping[str, Any], required: Iterable[str]) -> List[str]:
    """Return the required keys that are absent, ``None`` or ``""``, in declaration order."""
    return [key for key in required if params.get(key) in (None, "")]


def validate_parameters(action: str, params: Any, required: Iterable[str]) -> Dict[str, Any]:
    """
    Check ``params`` is a mapping holding every ``required`` key.

    Returns the parameters as a plain dict.  Raises ``InvalidRequest``
    naming every missing field at once.
    """
    if params is None:
        params = {}
    if not isinstance(params, Mapping):
        raise InvalidRequest(
            "parameters must be an object",
            details={"action": action, "parameters": type(params).__name__},
        )

    missing = missing_parameters(params, required)
    if missing:
        raise InvalidRequest(
            f"Missing {', '.join(missing)}",
            details={"action": action, "missing": missing},
        )
    return dict(params)


def require_field(name: str, value: Optional[str]) -> str:
    if not value:
        raise InvalidRequest(f"Missing {name}", details={"missing": [name]})
    return value
