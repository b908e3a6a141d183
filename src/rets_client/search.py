# RETS Client
# File: search.py
# Version: v4

"""Search transaction.

The DMQL2 query string is supplied by the caller as-is.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Mapping, Optional

from .compact import parse_compact_block
from .errors import DecodeError, InvalidArgument
from .models import SearchResult
from .reply import parse_reply_text, raise_for_reply_code
from .session import BoundSession, check_status, require_session

logger = logging.getLogger(__name__)

# ReplyCode for "No Records Found"; an empty result, not a failure.
NO_RECORDS_FOUND = 20201

DEFAULT_SEARCH_OPTIONS: Dict[str, Any] = {
    "QueryType": "DMQL2",
    "Format": "COMPACT-DECODED",
    "Count": 1,
    "StandardNames": 0,
    "RestrictedIndicator": "***",
    "Limit": "NONE",
}


class SearchModule:
    """Issues Search requests through its bound session."""

    def __init__(self, session: Optional[BoundSession]) -> None:
        self.session = session

    async def search(self, options: Mapping[str, Any]) -> str:
        """Run a Search with raw RETS query options and return the XML reply.

        ``SearchType``, ``Class`` and ``Query`` are required; the other
        options default to :data:`DEFAULT_SEARCH_OPTIONS`.
        """
        params = {**DEFAULT_SEARCH_OPTIONS, **dict(options or {})}
        logger.debug("RETS method search with params %s", params)

        missing = [k for k in ("SearchType", "Class", "Query") if not params.get(k)]
        if missing:
            raise InvalidArgument(f"All params are required: {', '.join(missing)}")

        session = require_session(self.session)
        response = await session.request(params=params)
        check_status(response, "search")
        return response.text

    async def query(
        self,
        resource_type: str,
        class_type: str,
        query: str,
        limit: Optional[int] = None,
    ) -> SearchResult:
        """Search ``resource_type``/``class_type`` and decode the records."""
        if not resource_type or not class_type or not query:
            raise InvalidArgument("All params are required: resourceType, classType, query")

        options: Dict[str, Any] = {
            "SearchType": resource_type,
            "Class": class_type,
            "Query": query,
        }
        if limit is not None:
            try:
                options["Limit"] = int(limit)
            except (TypeError, ValueError) as exc:
                raise InvalidArgument("limit must be an integer") from exc

        xml_text = await self.search(options)
        root, reply = parse_reply_text(xml_text)
        raise_for_reply_code(reply, accept=(NO_RECORDS_FOUND,))

        count: Optional[int] = None
        count_node = root.first("COUNT")
        if count_node is not None and "Records" in count_node.attributes:
            try:
                count = int(count_node.attributes["Records"])
            except ValueError as exc:
                raise DecodeError(
                    f"Non-numeric COUNT Records: {count_node.attributes['Records']!r}"
                ) from exc

        if reply.reply_code == NO_RECORDS_FOUND:
            return SearchResult(count=count or 0, columns=[], records=[], reply=reply)

        block = parse_compact_block(root, reply.delimiter)
        return SearchResult(
            count=count,
            columns=block.columns,
            records=block.records(),
            max_rows=root.first("MAXROWS") is not None,
            reply=reply,
        )
