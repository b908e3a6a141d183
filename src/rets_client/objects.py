# RETS Client
# File: objects.py
# Version: v4

"""GetObject transaction: raw objects and multipart photo lists."""

from __future__ import annotations

import enum
import logging
from typing import List, Optional

from .errors import InvalidArgument, TransportError
from .models import ObjectResult, PhotoPart
from .multipart import extract_boundary, normalize_body, split_multipart, to_photo_part
from .reply import parse_reply_text, raise_for_reply_code
from .session import BoundSession, require_session

logger = logging.getLogger(__name__)


class ObjectState(str, enum.Enum):
    REQUESTED = "requested"
    STREAMING = "streaming"
    COMPLETE = "complete"
    FAILED = "failed"


class ObjectFetch:
    """One GetObject request streamed into an in-memory buffer."""

    def __init__(self, session: BoundSession, params: dict) -> None:
        self.session = session
        self.params = params
        self.state = ObjectState.REQUESTED
        self.content_type: Optional[str] = None
        self.buffer = bytearray()

    async def run(self) -> ObjectResult:
        try:
            async with self.session.stream(
                params=self.params, headers={"Accept": "image/*"}
            ) as response:
                self.content_type = response.headers.get("Content-Type")
                if response.status_code != 200:
                    raise TransportError(
                        "RETS method getObject returned unexpected status code "
                        f"{response.status_code} from '{self.session.url}'.",
                        status_code=response.status_code,
                    )

                self.state = ObjectState.STREAMING
                async for chunk in response.aiter_bytes():
                    self.buffer.extend(chunk)
        except Exception:
            self.state = ObjectState.FAILED
            raise

        self.state = ObjectState.COMPLETE
        return ObjectResult(content_type=self.content_type, data=bytes(self.buffer))


def _is_xml(content_type: Optional[str]) -> bool:
    return (content_type or "").split(";")[0].strip().lower() == "text/xml"


class ObjectModule:
    """Issues GetObject requests through its bound session."""

    def __init__(self, session: Optional[BoundSession]) -> None:
        self.session = session

    async def get_object(
        self,
        resource_type: str,
        object_type: str,
        object_id: str,
    ) -> ObjectResult:
        """Retrieve object data.

        Args:
            resource_type: RETS resource (e.g. Property).
            object_type: Object type (e.g. LargePhoto).
            object_id: Object identifier (``<id>:<index>``, ``<id>:*``, ...).

        A ``text/xml`` response is a RETS reply in place of the object; a
        non-zero ReplyCode in it raises :class:`~rets_client.errors.ProtocolError`.
        """
        logger.debug(
            "RETS method getObject with params resourceType=%s, objectType=%s, objectId=%s",
            resource_type,
            object_type,
            object_id,
        )

        if not object_type or not object_id or not resource_type:
            raise InvalidArgument(
                "All params are required: objectType, objectId, resourceType"
            )

        session = require_session(self.session)
        params = {
            "Type": object_type,
            "Id": object_id,
            "Resource": resource_type,
            "Location": 1,
        }
        result = await ObjectFetch(session, params).run()

        if _is_xml(result.content_type):
            _, reply = parse_reply_text(result.data)
            raise_for_reply_code(reply)

        return result

    async def get_photos(
        self,
        resource_type: str,
        photo_type: str,
        listing_id: str,
    ) -> List[PhotoPart]:
        """Retrieve a multipart list of photo objects for one listing."""
        result = await self.get_object(resource_type, photo_type, listing_id)

        boundary = extract_boundary(result.content_type)
        parts = split_multipart(normalize_body(result.data), boundary)

        logger.debug("Decoded %d photo part(s)", len(parts))
        return [to_photo_part(p) for p in parts]
