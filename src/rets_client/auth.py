# RETS Client
# File: auth.py
# Version: v5

"""RETS authentication: login/logout exchanges and digest header values.

Login itself uses HTTP Digest authentication (handled by httpx). On top of
that, RETS defines its own MD5 digests identifying the user-agent
(``RETS-UA-Authorization``) and, for delegated updates, the delegate
(``X-Delegate-Authorization``).
"""

from __future__ import annotations

import hashlib
import logging
from typing import TYPE_CHECKING, Dict, Optional
from urllib.parse import urljoin

import httpx
from httpx import RequestError

from .errors import TransportError
from .models import Credentials, LoginContext
from .reply import parse_reply_text, raise_for_reply_code

if TYPE_CHECKING:
    from .session import BoundSession

logger = logging.getLogger(__name__)

SESSION_COOKIE = "RETS-Session-ID"

CAPABILITY_KEYS = (
    "Login",
    "Logout",
    "Search",
    "GetMetadata",
    "GetObject",
    "Update",
    "PostObject",
    "Action",
)

# Login response keys surfaced on LoginContext (key -> attribute name).
_INFO_KEYS = {
    "MemberName": "member_name",
    "User": "user",
    "Broker": "broker",
    "MetadataVersion": "metadata_version",
    "MetadataTimestamp": "metadata_timestamp",
    "MinMetadataTimestamp": "min_metadata_timestamp",
}


def _md5hex(*parts: str) -> str:
    return hashlib.md5(":".join(parts).encode("utf-8")).hexdigest()


def compute_ua_auth(
    user_agent: str,
    user_agent_password: Optional[str],
    session_id: Optional[str],
    version: str,
) -> Optional[str]:
    """Compute the RETS-UA-Authorization digest.

    Returns None when no user-agent password is configured, in which case
    the header must not be sent at all.
    """
    if not user_agent_password:
        return None

    a1 = _md5hex(user_agent, user_agent_password)
    return _md5hex(a1, "", session_id or "", version)


def compute_delegate_auth(
    ua_auth_digest: str,
    delegate_password: str,
    delegate_hash: str,
    delegate_id: str,
) -> str:
    """Compute the X-Delegate-Authorization digest for delegated updates."""
    return _md5hex(ua_auth_digest, delegate_password, delegate_hash, delegate_id)


def build_base_headers(
    credentials: Credentials,
    session_id: Optional[str] = None,
) -> Dict[str, str]:
    """Headers sent with every RETS request for the given session."""
    headers = {
        "User-Agent": credentials.user_agent,
        "RETS-Version": credentials.rets_version,
    }

    ua_auth = compute_ua_auth(
        credentials.user_agent,
        credentials.user_agent_password,
        session_id,
        credentials.rets_version,
    )
    if ua_auth:
        headers["RETS-UA-Authorization"] = f"Digest {ua_auth}"

    return headers


def parse_login_body(text: str) -> Dict[str, str]:
    """Parse the ``key=value`` lines of a login RETS-RESPONSE body."""
    values: Dict[str, str] = {}
    for line in (text or "").splitlines():
        key, sep, value = line.partition("=")
        if sep and key.strip():
            values[key.strip()] = value.strip()
    return values


async def login(
    http: httpx.AsyncClient,
    credentials: Credentials,
    login_url: str,
) -> LoginContext:
    """Perform the RETS login transaction.

    The cookie jar of ``http`` receives the session cookies and must be
    reused for every later request of the session.
    """
    logger.debug("RETS method login at %s", login_url)

    try:
        response = await http.get(
            login_url,
            headers=build_base_headers(credentials),
            auth=httpx.DigestAuth(credentials.username, credentials.password),
        )
    except RequestError as exc:
        raise TransportError(f"Error calling RETS login at '{login_url}': {exc}") from exc

    if response.status_code != 200:
        raise TransportError(
            "RETS method login returned unexpected HTTP status code "
            f"{response.status_code} from '{login_url}'. "
            f"Response snippet: {response.text[:500]}",
            status_code=response.status_code,
        )

    root, reply = parse_reply_text(response.content)
    raise_for_reply_code(reply)

    # RETS 1.5 servers put the key/value lines straight into the envelope.
    body_node = root.first("RETS-RESPONSE")
    body = body_node.text if body_node is not None else root.text
    values = parse_login_body(body)

    capabilities = {k: values[k] for k in CAPABILITY_KEYS if k in values}
    info = {attr: values.get(key) for key, attr in _INFO_KEYS.items()}

    context = LoginContext(
        login_url=urljoin(login_url, capabilities.get("Login") or login_url),
        capabilities=capabilities,
        rets_version=response.headers.get("RETS-Version"),
        rets_server=response.headers.get("Server"),
        session_id=http.cookies.get(SESSION_COOKIE),
        **info,
    )

    logger.debug(
        "RETS login succeeded; capabilities: %s", ", ".join(sorted(capabilities))
    )
    return context


async def logout(session: "BoundSession") -> bool:
    """Perform the RETS logout transaction on its bound session."""
    logger.debug("RETS method logout")

    response = await session.request()
    if response.status_code != 200:
        raise TransportError(
            "RETS method logout returned unexpected status code "
            f"{response.status_code} from '{session.url}'.",
            status_code=response.status_code,
        )

    logger.debug("Logout success")
    return True
