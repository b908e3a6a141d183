# RETS Client
# File: errors.py
# Version: v2

"""Error taxonomy for RETS transactions.

Every failure raised by this package derives from :class:`RetsError` so that
callers (and the result dispatcher) can treat them uniformly.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, List, Optional

if TYPE_CHECKING:
    from .models import ErrorEntry, TransactionReply, WarningEntry


class RetsError(RuntimeError):
    """Base class for all RETS client failures."""


class InvalidArgument(RetsError):
    """Required call parameters are missing (checked before any I/O)."""


class InvalidState(RetsError):
    """Operation invoked before login, or after logout."""


class FeatureUnsupported(InvalidState):
    """The server did not advertise the capability needed for the call."""


class TransportError(RetsError):
    """Network failure or unexpected HTTP status."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class MalformedReply(RetsError):
    """The XML reply is missing the RETS envelope or its ReplyCode."""


class MalformedContentType(RetsError):
    """An object response carries no usable multipart boundary."""


class DecodeError(RetsError):
    """Ragged compact rows or unexpected node shapes."""


class ProtocolError(RetsError):
    """Well-formed reply with a non-zero ReplyCode.

    The decoded reply is kept on the exception so diagnostics (errors,
    warnings, transaction id) are never lost. Operations that decode a
    richer payload before failing attach it as ``result``.
    """

    def __init__(
        self,
        reply: "TransactionReply",
        message: Optional[str] = None,
        result: Any = None,
    ) -> None:
        super().__init__(message or _reply_message(reply))
        self.reply = reply
        self.result = result

    @property
    def reply_code(self) -> int:
        return self.reply.reply_code

    @property
    def reply_text(self) -> str:
        return self.reply.reply_text

    @property
    def errors(self) -> List["ErrorEntry"]:
        return self.reply.errors

    @property
    def warnings(self) -> List["WarningEntry"]:
        return self.reply.warnings


def _reply_message(reply: "TransactionReply") -> str:
    base = f"{reply.reply_text or 'RETS error'} (ReplyCode {reply.reply_code})"
    if not reply.errors:
        return base

    details = "; ".join(
        f"{e.field or '?'}: {e.text or ''} [{e.code or ''}]" for e in reply.errors
    )
    return f"{base}: {details}"
