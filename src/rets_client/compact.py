# RETS Client
# File: compact.py
# Version: v5

"""Decoder for the RETS COMPACT tabular encoding.

A COMPACT block is an XML node holding an optional ``DELIMITER`` child
(``value`` = two hex digits), a ``COLUMNS`` line and zero or more ``DATA``
lines. Every line starts and ends with the delimiter, so splitting yields a
blank field at both ends which is not part of the data.

Values are returned as strings; typed interpretation is left to callers.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence, Union

from .errors import DecodeError
from .models import CompactBlock
from .xmltree import XmlNode

logger = logging.getLogger(__name__)

DEFAULT_DELIMITER = "\t"

# Metadata kinds decoded to one result per XML node instead of a single one.
PER_NODE_DATA_KEYS = frozenset({"LookupTypes"})


def hex_to_char(value: str) -> str:
    """Decode a hex-encoded delimiter such as ``"09"`` into its character."""
    raw = (value or "").strip()
    if not raw:
        return ""
    if len(raw) % 2:
        raw = "0" + raw
    try:
        return bytes.fromhex(raw).decode("latin-1")
    except ValueError as exc:
        raise DecodeError(f"Invalid hex-encoded delimiter: {value!r}") from exc


def resolve_delimiter(node: XmlNode, default: str = DEFAULT_DELIMITER) -> str:
    """Return the node's DELIMITER, or ``default`` when absent or empty."""
    delim_node = node.first("DELIMITER")
    if delim_node is None:
        return default
    return hex_to_char(delim_node.attributes.get("value", "")) or default


def split_line(line: str, delimiter: str) -> List[str]:
    """Split one COMPACT line, dropping the leading and trailing boundary fields."""
    parts = (line or "").split(delimiter)
    return parts[1:-1]


def _fit_row(values: List[str], width: int, line_no: int) -> List[str]:
    if len(values) == width:
        return values

    # Some servers pad rows with extra trailing delimiters.
    if len(values) > width and not any(values[width:]):
        return values[:width]

    raise DecodeError(
        f"Ragged COMPACT row {line_no}: expected {width} fields, got {len(values)}"
    )


def parse_compact_block(
    node: XmlNode,
    delimiter: str = DEFAULT_DELIMITER,
) -> CompactBlock:
    """Split the COLUMNS and DATA lines of ``node`` into a :class:`CompactBlock`."""
    delimiter = resolve_delimiter(node, delimiter)

    columns_node = node.first("COLUMNS")
    columns = split_line(columns_node.text, delimiter) if columns_node is not None else []

    rows: List[List[str]] = []
    if columns:
        for i, data_node in enumerate(node.all("DATA"), start=1):
            rows.append(_fit_row(split_line(data_node.text, delimiter), len(columns), i))

    return CompactBlock(delimiter=delimiter, columns=columns, rows=rows)


def decode_compact(
    node: XmlNode,
    data_key: Optional[str] = None,
    delimiter: str = DEFAULT_DELIMITER,
) -> Dict[str, Any]:
    """Decode one COMPACT node.

    The result holds the node's own XML attributes (e.g. ``Resource``,
    ``Version``, ``Date``) plus ``data_key`` mapped to the list of records.
    """
    data_key = data_key or "Data"
    block = parse_compact_block(node, delimiter)

    out: Dict[str, Any] = dict(node.attributes)
    out[data_key] = block.records()
    return out


def decode_compact_nodes(
    nodes: Sequence[XmlNode],
    data_key: Optional[str] = None,
) -> Union[Dict[str, Any], List[Dict[str, Any]], None]:
    """Decode a list of sibling COMPACT nodes.

    Returns the list of per-node results for ``LookupTypes`` and the last
    node's result for every other metadata kind. A delimiter declared on one
    node stays in effect for the nodes after it.
    """
    data_key = data_key or "Data"
    delimiter = DEFAULT_DELIMITER
    results: List[Dict[str, Any]] = []

    for node in nodes:
        delimiter = resolve_delimiter(node, delimiter)
        results.append(decode_compact(node, data_key, delimiter))

    logger.debug("Decoded %d COMPACT node(s) for %s", len(results), data_key)

    if data_key in PER_NODE_DATA_KEYS:
        return results
    return results[-1] if results else None
