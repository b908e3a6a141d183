# RETS Client
# File: tests/test_update.py
# Version: v2

from __future__ import annotations

import asyncio

import httpx
import pytest

from rets_client.auth import compute_delegate_auth
from rets_client.errors import InvalidArgument, InvalidState, ProtocolError
from rets_client.session import BoundSession
from rets_client.update import DelegateAuth, UpdateModule, delegate_headers, encode_record

UPDATE_URL = "https://rets.example.com/rets/update"
BASE_HEADERS = {"User-Agent": "TestAgent/1.0", "RETS-UA-Authorization": "Digest uadigest"}

SUCCESS_XML = (
    '<RETS ReplyCode="0" ReplyText="Operation Successful">'
    '<TRANSACTIONID value="TX-77"/>'
    '<DELIMITER value="09"/>'
    "<COLUMNS>\tListingID\tListPrice\t</COLUMNS>"
    "<DATA>\tL123\t250000\t</DATA>"
    "</RETS>"
)

FAILURE_XML = (
    '<RETS ReplyCode="20022" ReplyText="Update failed">'
    "<TRANSACTIONID>TX-78</TRANSACTIONID>"
    "<ERRORBLOCK>"
    "<ERRORDATA>E\tListPrice\t20302\t0\tValue out of range</ERRORDATA>"
    "</ERRORBLOCK>"
    "<WARNINGBLOCK>"
    "<WARNINGDATA>W\tRemarks\t20401\t3\tTruncated\t0</WARNINGDATA>"
    "</WARNINGBLOCK>"
    "</RETS>"
)


def _module(body: str = SUCCESS_XML, delay_for=None):
    seen = []

    async def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        if delay_for and request.headers.get("X-Delegate-ID") == delay_for:
            await asyncio.sleep(0.01)
        return httpx.Response(200, text=body)

    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return UpdateModule(BoundSession(http, UPDATE_URL, BASE_HEADERS)), seen


def test_encode_record() -> None:
    assert encode_record({"ListPrice": 1, "Status": "A"}, "|") == "ListPrice=1|Status=A"


def test_delegate_headers_require_all_values() -> None:
    assert delegate_headers(BASE_HEADERS, None) == {}
    assert delegate_headers(BASE_HEADERS, DelegateAuth(delegate_id="D1")) == {}


def test_delegate_headers_chain_ua_digest() -> None:
    auth = DelegateAuth(delegate_id="D1", delegate_hash="h", delegate_password="pw")

    headers = delegate_headers(BASE_HEADERS, auth)

    assert headers["X-Delegate-ID"] == "D1"
    expected = compute_delegate_auth("uadigest", "pw", "h", "D1")
    assert headers["X-Delegate-Authorization"] == f"Digest {expected}"


def test_delegate_headers_without_ua_auth() -> None:
    auth = DelegateAuth(delegate_id="D1", delegate_hash="h", delegate_password="pw")
    headers = delegate_headers({"User-Agent": "x"}, auth)
    assert headers == {"X-Delegate-ID": "D1"}


@pytest.mark.asyncio
async def test_update_request_payload() -> None:
    module, seen = _module()

    result = await module.update("Property", "RESI", {"ListingID": "L123", "ListPrice": 250000})

    params = seen[0].url.params
    assert params["Resource"] == "Property"
    assert params["ClassName"] == "RESI"
    assert params["Validate"] == "0"
    assert params["Type"] == "Change"
    assert params["Delimiter"] == "|"
    assert params["Record"] == "ListingID=L123|ListPrice=250000"
    assert "X-Delegate-ID" not in seen[0].headers

    assert result.transaction_id == "TX-77"
    assert result.data == {"ListingID": "L123", "ListPrice": "250000"}
    assert result.errors == []


@pytest.mark.asyncio
async def test_update_missing_params_and_unbound() -> None:
    module, seen = _module()
    with pytest.raises(InvalidArgument):
        await module.update("Property", "RESI", {})
    assert seen == []

    with pytest.raises(InvalidState):
        await UpdateModule(None).update("Property", "RESI", {"A": 1})


@pytest.mark.asyncio
async def test_failed_update_keeps_diagnostics() -> None:
    module, _ = _module(FAILURE_XML)

    with pytest.raises(ProtocolError) as excinfo:
        await module.update("Property", "RESI", {"ListPrice": -1})

    err = excinfo.value
    assert err.reply_code == 20022
    assert err.result.transaction_id == "TX-78"
    assert err.result.errors[0].field == "ListPrice"
    assert err.result.errors[0].text == "Value out of range"
    assert err.result.warnings[0].response_required == "0"
    assert err.result.data is None


@pytest.mark.asyncio
async def test_concurrent_delegated_updates_do_not_share_headers() -> None:
    module, seen = _module(delay_for="D1")
    first = DelegateAuth(delegate_id="D1", delegate_hash="h1", delegate_password="p1")
    second = DelegateAuth(delegate_id="D2", delegate_hash="h2", delegate_password="p2")

    await asyncio.gather(
        module.update("Property", "RESI", {"ListingID": "A"}, auth=first),
        module.update("Property", "RESI", {"ListingID": "B"}, auth=second),
        module.update("Property", "RESI", {"ListingID": "C"}),
    )

    by_record = {r.url.params["Record"]: r.headers for r in seen}
    assert by_record["ListingID=A"]["X-Delegate-ID"] == "D1"
    assert by_record["ListingID=A"]["X-Delegate-Authorization"] == (
        "Digest " + compute_delegate_auth("uadigest", "p1", "h1", "D1")
    )
    assert by_record["ListingID=B"]["X-Delegate-ID"] == "D2"
    assert by_record["ListingID=B"]["X-Delegate-Authorization"] == (
        "Digest " + compute_delegate_auth("uadigest", "p2", "h2", "D2")
    )
    assert "X-Delegate-ID" not in by_record["ListingID=C"]

    # The session's base headers never pick up per-call values.
    assert dict(module.session.headers) == BASE_HEADERS
