# RETS Client
# File: reply.py
# Version: v3

"""Validation of RETS transactional XML replies.

Every RETS reply is wrapped in a ``<RETS ReplyCode="..." ReplyText="...">``
envelope. Update replies may additionally carry a transaction id, a
delimiter override and ERRORBLOCK / WARNINGBLOCK sections.
"""

from __future__ import annotations

from typing import Iterable, List, Optional, Tuple, Union

from .compact import DEFAULT_DELIMITER, resolve_delimiter
from .errors import DecodeError, MalformedReply, ProtocolError
from .models import ErrorEntry, TransactionReply, WarningEntry
from .xmltree import XmlNode, parse

TRANSACTION_ID_TAGS = ("TRANSACTIONID", "TRANSACTION-ID")


def _reply_code(root: XmlNode) -> int:
    raw = root.attributes.get("ReplyCode")
    if raw is None:
        raise MalformedReply("RETS reply is missing the ReplyCode attribute")
    try:
        return int(raw.strip())
    except ValueError as exc:
        raise MalformedReply(f"Non-numeric ReplyCode in RETS reply: {raw!r}") from exc


def extract_transaction_id(root: XmlNode) -> Optional[str]:
    """Return the transaction id in either of its two shapes.

    Servers send it as ``<TRANSACTIONID value="..."/>`` (attribute form) or
    as ``<TRANSACTIONID>...</TRANSACTIONID>`` (text form), under either the
    plain or the hyphenated tag.
    """
    for tag in TRANSACTION_ID_TAGS:
        node = root.first(tag)
        if node is None:
            continue

        if "value" in node.attributes:
            return node.attributes["value"]

        text = node.text.strip()
        if text:
            return text

        raise DecodeError(f"{tag} carries neither a value attribute nor text")

    return None


def _fields(line: str, delimiter: str, count: int) -> List[Optional[str]]:
    parts = line.split(delimiter)
    # Position 0 is the grouping marker, not data.
    values: List[Optional[str]] = list(parts[1 : count + 1])
    values.extend([None] * (count - len(values)))
    return values


def _data_lines(root: XmlNode, block_tag: str, data_tag: str) -> Iterable[str]:
    for block in root.all(block_tag):
        for data in block.all(data_tag):
            yield data.text


def parse_error_warning_blocks(
    root: XmlNode,
    delimiter: str = DEFAULT_DELIMITER,
) -> Tuple[List[ErrorEntry], List[WarningEntry]]:
    """Parse ERRORBLOCK / WARNINGBLOCK sections into structured entries."""
    errors = [
        ErrorEntry(*_fields(line, delimiter, 4))
        for line in _data_lines(root, "ERRORBLOCK", "ERRORDATA")
    ]
    warnings = [
        WarningEntry(*_fields(line, delimiter, 5))
        for line in _data_lines(root, "WARNINGBLOCK", "WARNINGDATA")
    ]
    return errors, warnings


def validate(root: XmlNode) -> TransactionReply:
    """Decode the envelope of a RETS reply.

    Raises :class:`MalformedReply` when the envelope itself is unusable.
    A non-zero ReplyCode is *not* raised here: the returned reply still
    carries every diagnostic the server sent, and callers decide what to do
    with it (see :func:`raise_for_reply_code`).
    """
    if root is None or root.tag != "RETS":
        tag = getattr(root, "tag", None)
        raise MalformedReply(f"Expected a RETS envelope, got {tag!r}")

    reply_code = _reply_code(root)
    delimiter = resolve_delimiter(root)
    errors, warnings = parse_error_warning_blocks(root, delimiter)

    return TransactionReply(
        reply_code=reply_code,
        reply_text=root.attributes.get("ReplyText", ""),
        transaction_id=extract_transaction_id(root),
        delimiter=delimiter,
        errors=errors,
        warnings=warnings,
    )


def raise_for_reply_code(
    reply: TransactionReply,
    accept: Iterable[int] = (),
) -> TransactionReply:
    """Raise :class:`ProtocolError` unless the reply code is 0 or accepted."""
    if reply.reply_code == 0 or reply.reply_code in set(accept):
        return reply
    raise ProtocolError(reply)


def parse_reply_text(xml_text: Union[str, bytes]) -> Tuple[XmlNode, TransactionReply]:
    """Parse XML text and validate its RETS envelope."""
    root = parse(xml_text)
    return root, validate(root)
