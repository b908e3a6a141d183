# RETS Client
# File: tools/tasks.py
# Version: v5
#
# NOTE: This module is the single place where we define the RETS operations
# exposed as MCP tools. The MCP transport simply calls
# `register_tools(server)` to wire these up.

from __future__ import annotations

import logging
from dataclasses import asdict
from typing import Any, Awaitable, Callable, Dict, List, Optional
from urllib.parse import urlparse

from ..client import RetsClient
from ..config import RetsConfig
from ..errors import ProtocolError
from ..models import Outcome
from ..update import DelegateAuth

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _make_error(exc: BaseException) -> Dict[str, Any]:
    """Small, LLM-friendly error shape."""
    err: Dict[str, Any] = {"code": type(exc).__name__, "message": str(exc)}
    if isinstance(exc, ProtocolError):
        err["details"] = {
            "reply_code": exc.reply_code,
            "reply_text": exc.reply_text,
            "errors": [asdict(e) for e in exc.errors],
            "warnings": [asdict(w) for w in exc.warnings],
        }
    return err


def _make_client(cfg: Optional[RetsConfig] = None) -> RetsClient:
    """Create a RetsClient from environment variables.

    Callers should invoke this with *no arguments* so that tests can
    monkeypatch it with a no-arg lambda.
    """
    return RetsClient(config=cfg or RetsConfig.from_env())


async def _with_session(
    operation: Callable[[RetsClient], Awaitable[Outcome]],
) -> Outcome:
    """Log in, run one operation and log out again."""
    client = _make_client()
    try:
        login = await client.login()
        if not login.ok:
            return login

        outcome = await operation(client)
        await client.logout()
        return outcome
    finally:
        await client.aclose()


def _result(outcome: Outcome, shape: Callable[[Any], Dict[str, Any]]) -> Dict[str, Any]:
    if not outcome.ok:
        return {"ok": False, "error": _make_error(outcome.error)}
    out = shape(outcome.data)
    out["ok"] = True
    return out


# ---------------------------------------------------------------------------
# Core async tasks (library-style)
# ---------------------------------------------------------------------------


async def ping() -> Dict[str, Any]:
    cfg = RetsConfig.from_env()
    return {"ok": bool(cfg.login_url)}


async def login_info() -> Dict[str, Any]:
    """Log in and describe the session without exposing secrets."""

    async def _noop(client: RetsClient) -> Outcome:
        return Outcome(event="connection", data=client.context)

    outcome = await _with_session(_noop)

    def shape(context: Any) -> Dict[str, Any]:
        return {
            "host": urlparse(context.login_url).hostname,
            "capabilities": sorted(context.capabilities),
            "rets_version": context.rets_version,
            "rets_server": context.rets_server,
            "member_name": context.member_name,
            "metadata_version": context.metadata_version,
        }

    return _result(outcome, shape)


async def get_system() -> Dict[str, Any]:
    outcome = await _with_session(lambda c: c.get_system())
    return _result(outcome, lambda s: {"system": asdict(s)})


async def get_resources() -> Dict[str, Any]:
    outcome = await _with_session(lambda c: c.get_resources())
    return _result(outcome, lambda r: {"resources": r})


async def get_classes(resource_type: str) -> Dict[str, Any]:
    outcome = await _with_session(lambda c: c.get_class(resource_type))
    return _result(outcome, lambda r: {"resource_type": resource_type, "classes": r})


async def get_table(resource_type: str, class_type: Optional[str] = None) -> Dict[str, Any]:
    outcome = await _with_session(lambda c: c.get_table(resource_type, class_type))
    return _result(
        outcome,
        lambda r: {"resource_type": resource_type, "class_type": class_type, "table": r},
    )


async def get_lookup_types(
    resource_type: str, lookup_type: Optional[str] = None
) -> Dict[str, Any]:
    outcome = await _with_session(lambda c: c.get_lookup_types(resource_type, lookup_type))
    return _result(outcome, lambda r: {"resource_type": resource_type, "lookup_types": r})


async def search(
    resource_type: str,
    class_type: str,
    query: str,
    limit: Optional[int] = None,
) -> Dict[str, Any]:
    outcome = await _with_session(
        lambda c: c.query(resource_type, class_type, query, limit=limit)
    )

    def shape(result: Any) -> Dict[str, Any]:
        return {
            "columns": result.columns,
            "records": result.records,
            "meta": {
                "count": result.count,
                "returned": len(result.records),
                "max_rows": result.max_rows,
            },
        }

    return _result(outcome, shape)


async def get_photos(resource_type: str, photo_type: str, listing_id: str) -> Dict[str, Any]:
    """Photo parts without their binary payload (locations and ids only)."""
    outcome = await _with_session(
        lambda c: c.get_photos(resource_type, photo_type, listing_id)
    )

    def shape(parts: List[Any]) -> Dict[str, Any]:
        items = [
            {
                "content_id": p.content_id,
                "object_id": p.object_id,
                "mime": p.mime,
                "location": p.location,
                "description": p.description,
                "size": len(p.data),
            }
            for p in parts
        ]
        return {"photos": items, "meta": {"count": len(items)}}

    return _result(outcome, shape)


async def update(
    resource_type: str,
    class_type: str,
    fields: Dict[str, Any],
    delegate_id: Optional[str] = None,
    delegate_hash: Optional[str] = None,
    delegate_password: Optional[str] = None,
) -> Dict[str, Any]:
    auth = DelegateAuth(delegate_id, delegate_hash, delegate_password)
    outcome = await _with_session(
        lambda c: c.update(resource_type, class_type, fields, auth=auth)
    )
    return _result(
        outcome,
        lambda r: {
            "transaction_id": r.transaction_id,
            "data": r.data,
            "errors": [asdict(e) for e in r.errors],
            "warnings": [asdict(w) for w in r.warnings],
        },
    )


# ---------------------------------------------------------------------------
# MCP tool registration
# ---------------------------------------------------------------------------


def register_tools(server: Any) -> None:
    """Register MCP tools on an MCP Server-like instance."""
    if server is None or not hasattr(server, "tool"):
        raise ValueError(
            "register_tools(server) expects an MCP Server-like object that exposes a .tool() decorator."
        )

    @server.tool(name="rets_ping", description="Check that a RETS login URL is configured.")
    async def mcp_ping() -> Dict[str, Any]:
        return await ping()

    @server.tool(
        name="rets_login_info",
        description="Log in to the RETS server and describe the session (no secrets).",
    )
    async def mcp_login_info() -> Dict[str, Any]:
        return await login_info()

    @server.tool(name="rets_get_system", description="Return RETS system metadata.")
    async def mcp_get_system() -> Dict[str, Any]:
        return await get_system()

    @server.tool(name="rets_get_resources", description="List RETS resources (METADATA-RESOURCE).")
    async def mcp_get_resources() -> Dict[str, Any]:
        return await get_resources()

    @server.tool(
        name="rets_get_classes",
        description="List classes of a RETS resource (METADATA-CLASS); use 0 for all.",
    )
    async def mcp_get_classes(resource_type: str) -> Dict[str, Any]:
        return await get_classes(resource_type=resource_type)

    @server.tool(
        name="rets_get_table",
        description="List fields of a RETS resource/class (METADATA-TABLE).",
    )
    async def mcp_get_table(resource_type: str, class_type: Optional[str] = None) -> Dict[str, Any]:
        return await get_table(resource_type=resource_type, class_type=class_type)

    @server.tool(
        name="rets_get_lookup_types",
        description="List lookup values of a RETS resource (METADATA-LOOKUP_TYPE).",
    )
    async def mcp_get_lookup_types(
        resource_type: str, lookup_type: Optional[str] = None
    ) -> Dict[str, Any]:
        return await get_lookup_types(resource_type=resource_type, lookup_type=lookup_type)

    @server.tool(
        name="rets_search",
        description="Run a DMQL2 search against a RETS resource/class and decode the records.",
    )
    async def mcp_search(
        resource_type: str,
        class_type: str,
        query: str,
        limit: Optional[int] = None,
    ) -> Dict[str, Any]:
        return await search(
            resource_type=resource_type, class_type=class_type, query=query, limit=limit
        )

    @server.tool(
        name="rets_get_photos",
        description="List photo objects (ids, locations, sizes) for a listing.",
    )
    async def mcp_get_photos(resource_type: str, photo_type: str, listing_id: str) -> Dict[str, Any]:
        return await get_photos(
            resource_type=resource_type, photo_type=photo_type, listing_id=listing_id
        )

    @server.tool(
        name="rets_update",
        description="Update a RETS record, optionally on behalf of a delegate.",
    )
    async def mcp_update(
        resource_type: str,
        class_type: str,
        fields: Dict[str, Any],
        delegate_id: Optional[str] = None,
        delegate_hash: Optional[str] = None,
        delegate_password: Optional[str] = None,
    ) -> Dict[str, Any]:
        return await update(
            resource_type=resource_type,
            class_type=class_type,
            fields=fields,
            delegate_id=delegate_id,
            delegate_hash=delegate_hash,
            delegate_password=delegate_password,
        )

    logger.info("Registered RETS MCP tools")
