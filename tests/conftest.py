# RETS Client
# File: tests/conftest.py
# Version: v2

"""Shared fixtures: an in-process fake RETS server behind httpx.MockTransport."""

from __future__ import annotations

from typing import Callable, Dict, List, Optional, Union

import httpx
import pytest

from rets_client.client import RetsClient
from rets_client.config import RetsConfig

LOGIN_URL = "https://rets.example.com/rets/login"

LOGIN_BODY = """<RETS ReplyCode="0" ReplyText="Operation Successful">
<RETS-RESPONSE>
MemberName=Jane Agent
User=jdoe,1,AGENT,jdoe
Broker=BRK01
MetadataVersion=1.00.000
MetadataTimestamp=2024-01-01T00:00:00Z
MinMetadataTimestamp=2024-01-01T00:00:00Z
Login=https://rets.example.com/rets/login
Logout=/rets/logout
Search=/rets/search
GetMetadata=/rets/getmetadata
GetObject=/rets/getobject
Update=/rets/update
</RETS-RESPONSE>
</RETS>
"""

Route = Union[httpx.Response, Callable[[httpx.Request], httpx.Response]]


class FakeRetsServer:
    """Path-routed fake RETS server that records every request."""

    def __init__(self, login_body: str = LOGIN_BODY) -> None:
        self.requests: List[httpx.Request] = []
        self.routes: Dict[str, Route] = {
            "/rets/login": httpx.Response(
                200,
                text=login_body,
                headers={
                    "RETS-Version": "RETS/1.7.2",
                    "Server": "FakeRETS/1.0",
                    "Set-Cookie": "RETS-Session-ID=sess-123; Path=/",
                },
            ),
            "/rets/logout": httpx.Response(200, text='<RETS ReplyCode="0" ReplyText="Bye"/>'),
        }

    def route(self, path: str, response: Route) -> None:
        self.routes[path] = response

    def calls(self, path: str) -> List[httpx.Request]:
        return [r for r in self.requests if r.url.path == path]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self.routes.get(request.url.path)
        if route is None:
            return httpx.Response(404, text="not found")
        if callable(route):
            return route(request)
        return route

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


def make_config(**overrides) -> RetsConfig:
    values = dict(
        login_url=LOGIN_URL,
        username="jdoe",
        password="secret",
        user_agent="TestAgent/1.0",
        user_agent_password="ua-secret",
        rets_version="RETS/1.7.2",
    )
    values.update(overrides)
    return RetsConfig(**values)


@pytest.fixture
def server() -> FakeRetsServer:
    return FakeRetsServer()


@pytest.fixture
def make_client(server: FakeRetsServer) -> Callable[..., RetsClient]:
    def _factory(config: Optional[RetsConfig] = None, **overrides) -> RetsClient:
        return RetsClient(config=config or make_config(**overrides), transport=server.transport)

    return _factory
