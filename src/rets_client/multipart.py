# RETS Client
# File: multipart.py
# Version: v2

"""Multipart helpers for GetObject responses."""

from __future__ import annotations

import re
from email.message import Message
from email.parser import BytesParser
from email.policy import HTTP
from typing import Dict, List, Optional

from .errors import MalformedContentType
from .models import PhotoPart

_BOUNDARY_RE = re.compile(r'boundary=(?:"([^"]+)"|([^;]+))', re.IGNORECASE)

SUCCESS_ENVELOPE = b'<RETS ReplyCode="0" ReplyText="SUCCESS" ></RETS>'


def extract_boundary(content_type: Optional[str]) -> str:
    """Return the multipart boundary token of a Content-Type header value."""
    match = _BOUNDARY_RE.search(content_type or "")
    if not match:
        raise MalformedContentType(f"Bad contentType: {content_type}")
    return (match.group(1) or match.group(2)).strip()


def normalize_body(data: bytes) -> bytes:
    """Insert a success envelope after every blank line of a multipart body.

    Some servers omit the per-part body that the multipart parser expects
    after the header block; an empty RETS success envelope is inserted right
    after each blank line so every part has content.
    """
    lines = data.split(b"\r\n")
    out: List[bytes] = []
    for line in lines:
        out.append(line)
        if line == b"":
            out.append(SUCCESS_ENVELOPE)
    return b"\r\n".join(out)


def split_multipart(data: bytes, boundary: str) -> List[Message]:
    """Split a multipart body into its parts (headers + raw payload)."""
    head = f'Content-Type: multipart/mixed; boundary="{boundary}"\r\n\r\n'.encode("ascii")
    message = BytesParser(policy=HTTP).parsebytes(head + data)
    if not message.is_multipart():
        return []
    return list(message.iter_parts())


def _part_headers(part: Message) -> Dict[str, str]:
    return {str(k): str(v) for k, v in part.items()}


def to_photo_part(part: Message) -> PhotoPart:
    payload = part.get_payload(decode=True) or b""
    return PhotoPart(
        data=payload,
        mime=part.get("Content-Type"),
        description=part.get("Description"),
        content_description=part.get("Content-Description"),
        content_id=part.get("Content-ID"),
        object_id=part.get("Object-ID"),
        location=part.get("Location"),
        preferred=part.get("Preferred"),
        headers=_part_headers(part),
    )
