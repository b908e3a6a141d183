# RETS Client
# File: tests/test_auth.py
# Version: v2

from __future__ import annotations

import hashlib

import httpx
import pytest

from rets_client.auth import (
    build_base_headers,
    compute_delegate_auth,
    compute_ua_auth,
    login,
    parse_login_body,
)
from rets_client.errors import ProtocolError, TransportError

from .conftest import LOGIN_URL, FakeRetsServer, make_config


def _md5(text: str) -> str:
    return hashlib.md5(text.encode("utf-8")).hexdigest()


def test_ua_auth_matches_rets_digest() -> None:
    a1 = _md5("TestAgent/1.0:ua-secret")
    expected = _md5(f"{a1}::sess-123:RETS/1.7.2")

    assert compute_ua_auth("TestAgent/1.0", "ua-secret", "sess-123", "RETS/1.7.2") == expected


def test_ua_auth_is_deterministic_and_session_bound() -> None:
    first = compute_ua_auth("ua", "pw", "s1", "RETS/1.7")
    assert first == compute_ua_auth("ua", "pw", "s1", "RETS/1.7")
    assert first != compute_ua_auth("ua", "pw", "s2", "RETS/1.7")
    assert len(first) == 32


@pytest.mark.parametrize("password", [None, ""])
def test_ua_auth_absent_without_password(password) -> None:
    assert compute_ua_auth("ua", password, "s1", "RETS/1.7") is None


def test_no_ua_header_without_password() -> None:
    headers = build_base_headers(make_config(user_agent_password=None).credentials(), "s1")
    assert "RETS-UA-Authorization" not in headers
    assert headers["User-Agent"] == "TestAgent/1.0"
    assert headers["RETS-Version"] == "RETS/1.7.2"


def test_ua_header_has_digest_prefix() -> None:
    headers = build_base_headers(make_config().credentials(), "s1")
    scheme, digest = headers["RETS-UA-Authorization"].split()
    assert scheme == "Digest"
    assert digest == compute_ua_auth("TestAgent/1.0", "ua-secret", "s1", "RETS/1.7.2")


def test_delegate_auth() -> None:
    expected = _md5("uadigest:dpw:dhash:D42")
    assert compute_delegate_auth("uadigest", "dpw", "dhash", "D42") == expected


def test_parse_login_body_splits_on_first_equals() -> None:
    body = "\r\nSearch=/search?a=b\r\nMemberName=Jane\r\nnot a pair\r\n"
    values = parse_login_body(body)
    assert values == {"Search": "/search?a=b", "MemberName": "Jane"}


@pytest.mark.asyncio
async def test_login_builds_context(server: FakeRetsServer) -> None:
    async with httpx.AsyncClient(transport=server.transport) as http:
        context = await login(http, make_config().credentials(), LOGIN_URL)

    assert context.session_id == "sess-123"
    assert context.rets_version == "RETS/1.7.2"
    assert context.rets_server == "FakeRETS/1.0"
    assert context.member_name == "Jane Agent"
    assert context.broker == "BRK01"
    assert context.capabilities["Search"] == "/rets/search"
    assert context.capabilities["Update"] == "/rets/update"
    assert "MemberName" not in context.capabilities

    sent = server.calls("/rets/login")[0]
    assert sent.headers["User-Agent"] == "TestAgent/1.0"
    # No session id is known yet when logging in.
    assert sent.headers["RETS-UA-Authorization"] == "Digest " + compute_ua_auth(
        "TestAgent/1.0", "ua-secret", "", "RETS/1.7.2"
    )


@pytest.mark.asyncio
async def test_login_non_200_is_transport_error(server: FakeRetsServer) -> None:
    server.route("/rets/login", httpx.Response(401, text="Unauthorized"))

    async with httpx.AsyncClient(transport=server.transport) as http:
        with pytest.raises(TransportError) as excinfo:
            await login(http, make_config().credentials(), LOGIN_URL)

    assert excinfo.value.status_code == 401


@pytest.mark.asyncio
async def test_login_non_zero_reply_code(server: FakeRetsServer) -> None:
    server.route(
        "/rets/login",
        httpx.Response(200, text='<RETS ReplyCode="20036" ReplyText="Miscellaneous server login error"/>'),
    )

    async with httpx.AsyncClient(transport=server.transport) as http:
        with pytest.raises(ProtocolError) as excinfo:
            await login(http, make_config().credentials(), LOGIN_URL)

    assert excinfo.value.reply_code == 20036


@pytest.mark.asyncio
async def test_login_rets_15_body_without_response_element() -> None:
    body = '<RETS ReplyCode="0" ReplyText="OK">\nSearch=/s\nLogout=/lo\n</RETS>'
    server = FakeRetsServer(login_body=body)

    async with httpx.AsyncClient(transport=server.transport) as http:
        context = await login(http, make_config().credentials(), LOGIN_URL)

    assert context.capabilities == {"Search": "/s", "Logout": "/lo"}
    assert context.login_url == LOGIN_URL
