"""
Notion actions — the rows of the action table.

Architecture:
  • ``ActionDispatcher.dispatch()`` looks up the user's token once per
    request and opens a ``NotionAPI`` session with it.
  • Required keys are checked by the dispatcher before any of these
    builders runs, so a builder can index ``params`` directly.
  • Fields are forwarded verbatim; each builder returns the raw upstream
    body and the dispatcher shapes the result envelope.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable
from urllib.parse import quote

from actions import action
from core.notion_api import NotionAPI

_PAGINATION = ("start_cursor", "page_size")


def _pass_through(params: Dict[str, Any], keys: Iterable[str]) -> Dict[str, Any]:
    """Copy the keys the caller actually supplied."""
    return {key: params[key] for key in keys if params.get(key) is not None}


def _object_id(value: Any) -> str:
    return quote(str(value), safe="-")


# ── Databases ─────────────────────────────────────────────────────────────


@action("list_databases", optional=_PAGINATION, result_key="databases", result_field="results")
async def list_databases(api: NotionAPI, params: Dict[str, Any]) -> Any:
    """List the databases shared with the integration."""
    body = {"filter": {"property": "object", "value": "database"}}
    body.update(_pass_through(params, _PAGINATION))
    return await api.post("search", json=body)


@action(
    "query_database",
    required=("database_id",),
    optional=("filter", "sorts") + _PAGINATION,
    result_key="results",
    result_field="results",
)
async def query_database(api: NotionAPI, params: Dict[str, Any]) -> Any:
    """Query a database; ``filter`` and ``sorts`` are passed through as given."""
    body = _pass_through(params, ("filter", "sorts") + _PAGINATION)
    return await api.post(f"databases/{_object_id(params['database_id'])}/query", json=body)


@action(
    "create_database",
    required=("parent", "title", "properties"),
    optional=("icon", "cover", "is_inline"),
    result_key="database",
)
async def create_database(api: NotionAPI, params: Dict[str, Any]) -> Any:
    """Create a database under a parent page."""
    body = {
        "parent": params["parent"],
        "title": params["title"],
        "properties": params["properties"],
    }
    body.update(_pass_through(params, ("icon", "cover", "is_inline")))
    return await api.post("databases", json=body)


# ── Pages ─────────────────────────────────────────────────────────────────


@action(
    "create_page",
    required=("parent", "properties"),
    optional=("children", "icon", "cover"),
    result_key="page",
)
async def create_page(api: NotionAPI, params: Dict[str, Any]) -> Any:
    """Create a page in a database or under a page."""
    body = {"parent": params["parent"], "properties": params["properties"]}
    body.update(_pass_through(params, ("children", "icon", "cover")))
    return await api.post("pages", json=body)


@action(
    "update_page",
    required=("page_id", "properties"),
    optional=("archived", "icon", "cover"),
    result_key="page",
)
async def update_page(api: NotionAPI, params: Dict[str, Any]) -> Any:
    """Partially update a page's properties."""
    body = {"properties": params["properties"]}
    body.update(_pass_through(params, ("archived", "icon", "cover")))
    return await api.patch(f"pages/{_object_id(params['page_id'])}", json=body)


@action("retrieve_page", required=("page_id",), result_key="page")
async def retrieve_page(api: NotionAPI, params: Dict[str, Any]) -> Any:
    """Fetch a single page object."""
    return await api.get(f"pages/{_object_id(params['page_id'])}")


# ── Blocks ────────────────────────────────────────────────────────────────


@action(
    "create_blocks",
    required=("block_id", "children"),
    optional=("after",),
    result_key="blocks",
    result_field="results",
)
async def create_blocks(api: NotionAPI, params: Dict[str, Any]) -> Any:
    """Append child blocks to a page or block."""
    body = {"children": params["children"]}
    body.update(_pass_through(params, ("after",)))
    return await api.patch(f"blocks/{_object_id(params['block_id'])}/children", json=body)


@action(
    "list_block_children",
    required=("block_id",),
    optional=_PAGINATION,
    result_key="blocks",
    result_field="results",
)
async def list_block_children(api: NotionAPI, params: Dict[str, Any]) -> Any:
    """List the children of a page or block."""
    return await api.get(
        f"blocks/{_object_id(params['block_id'])}/children",
        params=_pass_through(params, _PAGINATION) or None,
    )
