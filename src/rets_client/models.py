# RETS Client
# File: models.py
# Version: v3

"""Domain models used by the RETS client."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class Credentials:
    """Login credentials and user-agent identity."""

    username: str
    password: str
    user_agent: str
    rets_version: str
    user_agent_password: Optional[str] = None


@dataclass(frozen=True)
class LoginContext:
    """Result of a successful login.

    ``capabilities`` maps capability names (Login, Search, GetMetadata, ...)
    to the URLs advertised by the server, exactly as sent (they may be
    relative to ``login_url``).
    """

    login_url: str
    capabilities: Dict[str, str]
    rets_version: Optional[str] = None
    rets_server: Optional[str] = None
    session_id: Optional[str] = None
    member_name: Optional[str] = None
    user: Optional[str] = None
    broker: Optional[str] = None
    metadata_version: Optional[str] = None
    metadata_timestamp: Optional[str] = None
    min_metadata_timestamp: Optional[str] = None


@dataclass
class CompactBlock:
    """Decoded COMPACT table: delimiter, column names and raw rows."""

    delimiter: str
    columns: List[str]
    rows: List[List[str]]

    def records(self) -> List[Dict[str, str]]:
        return [dict(zip(self.columns, row)) for row in self.rows]


@dataclass
class ErrorEntry:
    field: Optional[str]
    code: Optional[str]
    offset: Optional[str]
    text: Optional[str]


@dataclass
class WarningEntry:
    field: Optional[str]
    code: Optional[str]
    offset: Optional[str]
    text: Optional[str]
    response_required: Optional[str] = None


@dataclass
class TransactionReply:
    """Top-level status of a RETS XML reply.

    ``reply_code == 0`` is success; anything else still carries whatever
    diagnostics the server sent.
    """

    reply_code: int
    reply_text: str
    transaction_id: Optional[str] = None
    delimiter: str = "\t"
    errors: List[ErrorEntry] = field(default_factory=list)
    warnings: List[WarningEntry] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.reply_code == 0


@dataclass
class SystemMetadata:
    metadata_version: Optional[str]
    metadata_date: Optional[str]
    system_id: str = ""
    system_description: str = ""
    timezone_offset: str = ""
    comments: str = ""


@dataclass
class UpdateResult:
    transaction_id: Optional[str]
    data: Optional[Dict[str, str]]
    errors: List[ErrorEntry]
    warnings: List[WarningEntry]
    reply: TransactionReply


@dataclass
class SearchResult:
    count: Optional[int]
    columns: List[str]
    records: List[Dict[str, str]]
    max_rows: bool = False

    # Envelope of the search reply, for transaction id and diagnostics.
    reply: Optional[TransactionReply] = None


@dataclass
class ObjectResult:
    content_type: Optional[str]
    data: bytes


@dataclass
class PhotoPart:
    """One part of a multipart GetObject response."""

    data: bytes
    mime: Optional[str] = None
    description: Optional[str] = None
    content_description: Optional[str] = None
    content_id: Optional[str] = None
    object_id: Optional[str] = None
    location: Optional[str] = None
    preferred: Optional[str] = None

    # All part headers, for anything not surfaced above.
    headers: Dict[str, str] = field(default_factory=dict)


@dataclass
class Outcome:
    """The single result value of an operation, fanned out to all sinks."""

    event: str
    data: Any = None
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> Any:
        """Return the payload, or raise the recorded error."""
        if self.error is not None:
            raise self.error
        return self.data
