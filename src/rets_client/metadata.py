# RETS Client
# File: metadata.py
# Version: v6

"""GetMetadata transaction and typed helpers for each metadata kind.

Implements:

- get_metadata() returning the raw XML reply
- get_system() for METADATA-SYSTEM
- get_resources(), get_class(), get_table(), get_lookups(),
  get_lookup_types(), get_foreign_keys() and get_object_metadata() for the
  COMPACT-encoded metadata tables
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence

from .compact import decode_compact_nodes
from .errors import DecodeError, InvalidArgument
from .models import SystemMetadata
from .reply import parse_reply_text, raise_for_reply_code
from .session import BoundSession, check_status, require_session
from .xmltree import XmlNode

logger = logging.getLogger(__name__)

ALL = "0"


def _join_id(resource_type: str, sub_type: Optional[str]) -> str:
    return f"{resource_type}:{sub_type}" if sub_type else resource_type


class MetadataModule:
    """Issues GetMetadata requests through its bound session."""

    def __init__(self, session: Optional[BoundSession]) -> None:
        self.session = session

    # ------------------------------------------------------------------
    # Raw transaction
    # ------------------------------------------------------------------

    async def get_metadata(self, type: str, id: str, format: str) -> str:
        """Retrieve RETS metadata.

        Args:
            type: Metadata type (e.g. METADATA-RESOURCE, METADATA-CLASS).
            id: Metadata id (``0`` for all, ``Property``, ``Property:RESI``, ...).
            format: Data format (e.g. COMPACT, COMPACT-DECODED).
        """
        logger.debug(
            "RETS method metadata with params type=%s, id=%s, format=%s", type, id, format
        )

        if not type or not id or not format:
            raise InvalidArgument("All params are required: type, id, format")

        session = require_session(self.session)
        response = await session.request(
            params={"Type": type, "Id": id, "Format": format}
        )
        check_status(response, "getMetadata")
        return response.text

    async def _fetch(self, type: str, id: str) -> XmlNode:
        xml_text = await self.get_metadata(type, id, "COMPACT")
        root, reply = parse_reply_text(xml_text)
        raise_for_reply_code(reply)
        return root

    async def _compact(
        self,
        type: str,
        id: str,
        data_key: str,
        tags: Sequence[str],
    ) -> Any:
        root = await self._fetch(type, id)

        nodes: List[XmlNode] = []
        for tag in tags:
            nodes = root.all(tag)
            if nodes:
                break

        if not nodes:
            raise DecodeError(f"Unexpected {type} reply: no {' / '.join(tags)} element")

        return decode_compact_nodes(nodes, data_key)

    # ------------------------------------------------------------------
    # Typed helpers
    # ------------------------------------------------------------------

    async def get_system(self) -> SystemMetadata:
        root = await self._fetch("METADATA-SYSTEM", ALL)

        system_xml = root.first("METADATA-SYSTEM")
        if system_xml is None:
            raise DecodeError("Unexpected METADATA-SYSTEM reply: no METADATA-SYSTEM element")

        system = system_xml.first("SYSTEM")
        system_attrs: Dict[str, str] = system.attributes if system is not None else {}
        comments = system_xml.first("COMMENTS")

        return SystemMetadata(
            metadata_version=system_xml.attributes.get("Version"),
            metadata_date=system_xml.attributes.get("Date"),
            system_id=system_attrs.get("SystemID", ""),
            system_description=system_attrs.get("SystemDescription", ""),
            timezone_offset=system_attrs.get("TimeZoneOffset", ""),
            comments=comments.text if comments is not None else "",
        )

    async def get_resources(self) -> Dict[str, Any]:
        return await self._compact(
            "METADATA-RESOURCE", ALL, "Resources", ("METADATA-RESOURCE",)
        )

    async def get_foreign_keys(self, resource_type: str) -> Dict[str, Any]:
        """Foreign key metadata for ``resource_type`` (``0`` for all)."""
        logger.debug("RETS method getForeignKeys")
        if not resource_type:
            raise InvalidArgument("Missing resource type")

        root = await self._fetch("METADATA-FOREIGNKEYS", resource_type)

        # The element name varies between servers; older ones nest the
        # table inside a ForeignKey child.
        nodes = root.all("METADATA-FOREIGNKEYS")
        if not nodes:
            container = root.first("METADATA-FOREIGN_KEYS")
            if container is not None:
                nodes = container.all("ForeignKey") or [container]

        if not nodes:
            raise DecodeError("Unexpected METADATA-FOREIGNKEYS reply: no foreign key element")

        return decode_compact_nodes(nodes, "ForeignKeys")

    async def get_all_foreign_keys(self) -> Dict[str, Any]:
        return await self.get_foreign_keys(ALL)

    async def get_class(self, resource_type: str) -> Dict[str, Any]:
        logger.debug("RETS method getClass")
        if not resource_type:
            raise InvalidArgument("Missing resource type")
        return await self._compact(
            "METADATA-CLASS", resource_type, "Classes", ("METADATA-CLASS",)
        )

    async def get_all_class(self) -> Dict[str, Any]:
        return await self.get_class(ALL)

    async def get_table(
        self, resource_type: str, class_type: Optional[str] = None
    ) -> Dict[str, Any]:
        logger.debug("RETS method getTable")
        if not resource_type:
            raise InvalidArgument("Missing resource type")
        return await self._compact(
            "METADATA-TABLE",
            _join_id(resource_type, class_type),
            "Fields",
            ("METADATA-TABLE",),
        )

    async def get_all_table(self) -> Dict[str, Any]:
        return await self.get_table(ALL)

    async def get_lookups(self, resource_type: str) -> Dict[str, Any]:
        logger.debug("RETS method getLookups")
        if not resource_type:
            raise InvalidArgument("Missing resource type")
        return await self._compact(
            "METADATA-LOOKUP", resource_type, "Lookups", ("METADATA-LOOKUP",)
        )

    async def get_all_lookups(self) -> Dict[str, Any]:
        return await self.get_lookups(ALL)

    async def get_lookup_types(
        self, resource_type: str, lookup_type: Optional[str] = None
    ) -> List[Dict[str, Any]]:
        """Lookup values; one entry per METADATA-LOOKUP_TYPE node."""
        logger.debug("RETS method getLookupTypes")
        if not resource_type:
            raise InvalidArgument("Missing resource type")
        return await self._compact(
            "METADATA-LOOKUP_TYPE",
            _join_id(resource_type, lookup_type),
            "LookupTypes",
            ("METADATA-LOOKUP_TYPE",),
        )

    async def get_all_lookup_types(self) -> List[Dict[str, Any]]:
        return await self.get_lookup_types(ALL)

    async def get_object_metadata(self, resource_type: str) -> Dict[str, Any]:
        logger.debug("RETS method getObject metadata")
        if not resource_type:
            raise InvalidArgument("Missing resource type")
        return await self._compact(
            "METADATA-OBJECT", resource_type, "Objects", ("METADATA-OBJECT",)
        )
