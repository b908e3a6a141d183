# RETS Client
# File: update.py
# Version: v5

"""Update transaction, including delegated updates."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Mapping, Optional

from .auth import compute_delegate_auth
from .compact import decode_compact
from .errors import DecodeError, InvalidArgument, ProtocolError
from .models import UpdateResult
from .reply import parse_reply_text
from .session import BoundSession, check_status, require_session

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DelegateAuth:
    """Credentials of the party an update is performed on behalf of."""

    delegate_id: Optional[str] = None
    delegate_hash: Optional[str] = None
    delegate_password: Optional[str] = None

    @property
    def complete(self) -> bool:
        return bool(self.delegate_id and self.delegate_hash and self.delegate_password)


def delegate_headers(
    base_headers: Mapping[str, str],
    auth: Optional[DelegateAuth],
) -> Dict[str, str]:
    """Build the per-call delegation headers.

    Nothing is returned unless all three delegate values are present. The
    authorization digest is chained from the session's RETS-UA-Authorization
    digest, so it is only sent when that header exists.
    """
    if auth is None or not auth.complete:
        return {}

    headers = {"X-Delegate-ID": str(auth.delegate_id)}

    ua_auth = base_headers.get("RETS-UA-Authorization")
    if ua_auth:
        parts = ua_auth.split()
        ua_digest = parts[1] if len(parts) > 1 else parts[0]
        digest = compute_delegate_auth(
            ua_digest,
            str(auth.delegate_password),
            str(auth.delegate_hash),
            str(auth.delegate_id),
        )
        headers["X-Delegate-Authorization"] = f"Digest {digest}"

    return headers


def encode_record(fields: Mapping[str, object], delimiter: str) -> str:
    return delimiter.join(f"{name}={value}" for name, value in fields.items())


class UpdateModule:
    """Issues Update requests through its bound session."""

    def __init__(self, session: Optional[BoundSession], delimiter: str = "|") -> None:
        self.session = session
        self.delimiter = delimiter

    async def update(
        self,
        resource_type: str,
        class_type: str,
        fields: Mapping[str, object],
        auth: Optional[DelegateAuth] = None,
        update_type: str = "Change",
    ) -> UpdateResult:
        """Perform a RETS Update.

        Args:
            resource_type: RETS resource (e.g. Property).
            class_type: RETS class (e.g. RESI).
            fields: Field values to send.
            auth: Optional delegation credentials.
            update_type: Update type advertised in METADATA-UPDATE.

        A non-zero ReplyCode raises :class:`ProtocolError` whose ``result``
        holds the decoded :class:`UpdateResult` (errors, warnings, data).
        """
        logger.debug("RETS method update")

        if not resource_type or not class_type or not fields:
            raise InvalidArgument("All params are required: resourceType, classType, fields")

        session = require_session(self.session)

        params = {
            "Resource": resource_type,
            "ClassName": class_type,
            "Validate": "0",
            "Type": update_type,
            "Delimiter": self.delimiter,
            "Record": encode_record(fields, self.delimiter),
        }
        response = await session.request(
            params=params,
            headers=delegate_headers(session.headers, auth),
        )
        check_status(response, "update")

        root, reply = parse_reply_text(response.content)
        try:
            updated = decode_compact(root, "Updates", reply.delimiter)["Updates"]
        except DecodeError:
            # Keep the diagnostics of a failed reply even if its data is ragged.
            if reply.ok:
                raise
            updated = []

        result = UpdateResult(
            transaction_id=reply.transaction_id,
            data=updated[0] if updated else None,
            errors=reply.errors,
            warnings=reply.warnings,
            reply=reply,
        )

        if not reply.ok:
            raise ProtocolError(reply, result=result)

        return result
