"""
@action decorator — marks a coroutine as a row of the action table.

Usage:
    from actions import action

    @action("query_database", required=("database_id",), result_key="results",
            result_field="results")
    async def query_database(api: NotionAPI, params: Dict[str, Any]) -> Any:
        ...

The decorated coroutine receives an authenticated ``NotionAPI`` and the
caller's parameters (already checked for the required keys) and returns
the raw upstream body.  The dispatcher wraps it into the result envelope.
"""

from __future__ import annotations

from typing import Callable, Iterable, Optional


def action(
    name: str,
    *,
    result_key: str,
    required: Iterable[str] = (),
    optional: Iterable[str] = (),
    result_field: Optional[str] = None,
) -> Callable:
    """
    Decorator that tags a function as a dispatchable action.

    Parameters
    ----------
    name : the action name callers send.
    result_key : key of the payload in the success envelope.
    required : parameter keys that must be present (and not ``None``).
    optional : parameter keys forwarded verbatim when present.
    result_field : field of the upstream body to surface; ``None`` means
        the whole body.
    """

    def decorator(func: Callable) -> Callable:
        func.is_action = True  # type: ignore[attr-defined]
        func.action_name = name  # type: ignore[attr-defined]
        func.result_key = result_key  # type: ignore[attr-defined]
        func.required_params = tuple(required)  # type: ignore[attr-defined]
        func.optional_params = tuple(optional)  # type: ignore[attr-defined]
        func.result_field = result_field  # type: ignore[attr-defined]
        return func

    return decorator
