# RETS Client
# File: session.py
# Version: v3

"""Per-capability request templates derived from a login.

Each :class:`BoundSession` targets one capability URL. All of them share the
``httpx.AsyncClient`` (and therefore its cookie jar) that performed the
login; everything else is private to the session and immutable.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from types import MappingProxyType
from typing import Any, AsyncIterator, Dict, Mapping, Optional
from urllib.parse import urljoin

import httpx
from httpx import RequestError

from .auth import build_base_headers
from .errors import InvalidState, TransportError
from .models import Credentials, LoginContext

logger = logging.getLogger(__name__)

# Capabilities that get a bound session when advertised by the server.
SESSION_CAPABILITIES = (
    "Search",
    "GetMetadata",
    "GetObject",
    "Update",
    "Logout",
    "PostObject",
    "Action",
)


class BoundSession:
    """HTTP request template: URL, shared cookie jar and base headers."""

    def __init__(
        self,
        http: httpx.AsyncClient,
        url: str,
        headers: Optional[Mapping[str, str]] = None,
    ) -> None:
        self.http = http
        self.url = url
        self._headers: Mapping[str, str] = MappingProxyType(dict(headers or {}))

    @property
    def headers(self) -> Mapping[str, str]:
        """Read-only view of the base headers."""
        return self._headers

    def merged_headers(self, extra: Optional[Mapping[str, str]] = None) -> Dict[str, str]:
        """Return a fresh dict of base headers overlaid with ``extra``."""
        headers = dict(self._headers)
        if extra:
            headers.update(extra)
        return headers

    async def request(
        self,
        params: Optional[Mapping[str, Any]] = None,
        headers: Optional[Mapping[str, str]] = None,
        method: str = "GET",
    ) -> httpx.Response:
        try:
            return await self.http.request(
                method,
                self.url,
                params=dict(params) if params else None,
                headers=self.merged_headers(headers),
            )
        except RequestError as exc:
            raise TransportError(f"Error calling RETS endpoint '{self.url}': {exc}") from exc

    @asynccontextmanager
    async def stream(
        self,
        params: Optional[Mapping[str, Any]] = None,
        headers: Optional[Mapping[str, str]] = None,
        method: str = "GET",
    ) -> AsyncIterator[httpx.Response]:
        """Like :meth:`request` but yields the response before the body is read."""
        try:
            async with self.http.stream(
                method,
                self.url,
                params=dict(params) if params else None,
                headers=self.merged_headers(headers),
            ) as response:
                yield response
        except RequestError as exc:
            raise TransportError(f"Error calling RETS endpoint '{self.url}': {exc}") from exc


def require_session(session: Optional[BoundSession]) -> BoundSession:
    if session is None:
        raise InvalidState("System data not set; invoke login first.")
    return session


def check_status(response: httpx.Response, method: str) -> httpx.Response:
    """Raise :class:`TransportError` unless the response is a 200 with a body."""
    if response.status_code != 200:
        raise TransportError(
            f"RETS method {method} returned unexpected status code "
            f"{response.status_code} from '{response.request.url}'. "
            f"Response snippet: {response.text[:500]}",
            status_code=response.status_code,
        )
    if not response.content:
        raise TransportError(f"RETS method {method} returned no response body")
    return response


def derive_sessions(
    context: LoginContext,
    http: httpx.AsyncClient,
    credentials: Credentials,
) -> Dict[str, BoundSession]:
    """Build one :class:`BoundSession` per advertised capability.

    Relative capability URLs are resolved against the login URL. The
    RETS-UA-Authorization digest is recomputed with the session id issued
    at login.
    """
    headers = build_base_headers(credentials, context.session_id)

    sessions: Dict[str, BoundSession] = {}
    for name in SESSION_CAPABILITIES:
        path = context.capabilities.get(name)
        if not path:
            continue
        sessions[name] = BoundSession(http, urljoin(context.login_url, path), headers)

    logger.debug("Derived RETS sessions: %s", ", ".join(sessions))
    return sessions
