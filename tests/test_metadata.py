# RETS Client
# File: tests/test_metadata.py
# Version: v2

"""Tests for the GetMetadata module against a fake RETS endpoint."""

from __future__ import annotations

import httpx
import pytest

from rets_client.errors import (
    DecodeError,
    InvalidArgument,
    InvalidState,
    ProtocolError,
    TransportError,
)
from rets_client.metadata import MetadataModule
from rets_client.session import BoundSession

METADATA_URL = "https://rets.example.com/rets/getmetadata"

SYSTEM_XML = """<RETS ReplyCode="0" ReplyText="Success">
<METADATA-SYSTEM Version="1.12.30" Date="2024-02-01T10:00:00">
<SYSTEM SystemID="FAKE" SystemDescription="Fake MLS" TimeZoneOffset="-05:00"/>
<COMMENTS>Test system</COMMENTS>
</METADATA-SYSTEM>
</RETS>"""

CLASS_XML = (
    '<RETS ReplyCode="0" ReplyText="Success">'
    '<METADATA-CLASS Resource="Property" Version="1.0" Date="2024-01-01">'
    "<COLUMNS>\tClassName\tVisibleName\t</COLUMNS>"
    "<DATA>\tRESI\tResidential\t</DATA>"
    "<DATA>\tLAND\tLand\t</DATA>"
    "</METADATA-CLASS>"
    "</RETS>"
)

FOREIGN_KEYS_XML = (
    '<RETS ReplyCode="0">'
    "<METADATA-FOREIGN_KEYS><ForeignKey>"
    "<COLUMNS>\tForeignKeyID\tParentResourceID\t</COLUMNS>"
    "<DATA>\tFK1\tProperty\t</DATA>"
    "</ForeignKey></METADATA-FOREIGN_KEYS>"
    "</RETS>"
)


def _module(responses: dict, seen: list) -> MetadataModule:
    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        body = responses.get(request.url.params["Type"])
        if body is None:
            return httpx.Response(500, text="boom")
        return httpx.Response(200, text=body)

    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return MetadataModule(BoundSession(http, METADATA_URL, {"User-Agent": "t"}))


@pytest.mark.asyncio
async def test_get_metadata_sends_type_id_format() -> None:
    seen: list = []
    module = _module({"METADATA-CLASS": CLASS_XML}, seen)

    text = await module.get_metadata("METADATA-CLASS", "Property", "COMPACT")

    assert "RESI" in text
    params = seen[0].url.params
    assert (params["Type"], params["Id"], params["Format"]) == (
        "METADATA-CLASS",
        "Property",
        "COMPACT",
    )


@pytest.mark.asyncio
async def test_missing_params_fail_before_io() -> None:
    seen: list = []
    module = _module({}, seen)

    with pytest.raises(InvalidArgument):
        await module.get_metadata("METADATA-CLASS", "", "COMPACT")
    with pytest.raises(InvalidArgument):
        await module.get_class("")

    assert seen == []


@pytest.mark.asyncio
async def test_unbound_module_is_invalid_state() -> None:
    with pytest.raises(InvalidState):
        await MetadataModule(None).get_resources()


@pytest.mark.asyncio
async def test_get_system() -> None:
    module = _module({"METADATA-SYSTEM": SYSTEM_XML}, [])
    system = await module.get_system()

    assert system.metadata_version == "1.12.30"
    assert system.system_id == "FAKE"
    assert system.timezone_offset == "-05:00"
    assert system.comments == "Test system"


@pytest.mark.asyncio
async def test_get_class_and_table_ids() -> None:
    seen: list = []
    table_xml = CLASS_XML.replace("METADATA-CLASS", "METADATA-TABLE")
    module = _module({"METADATA-CLASS": CLASS_XML, "METADATA-TABLE": table_xml}, seen)

    classes = await module.get_class("Property")
    assert classes["Resource"] == "Property"
    assert [c["ClassName"] for c in classes["Classes"]] == ["RESI", "LAND"]

    fields = await module.get_table("Property", "RESI")
    assert len(fields["Fields"]) == 2
    assert seen[-1].url.params["Id"] == "Property:RESI"

    await module.get_all_table()
    assert seen[-1].url.params["Id"] == "0"


@pytest.mark.asyncio
async def test_get_foreign_keys_nested_shape() -> None:
    module = _module({"METADATA-FOREIGNKEYS": FOREIGN_KEYS_XML}, [])
    result = await module.get_all_foreign_keys()
    assert result["ForeignKeys"] == [{"ForeignKeyID": "FK1", "ParentResourceID": "Property"}]


@pytest.mark.asyncio
async def test_non_zero_reply_is_protocol_error() -> None:
    module = _module(
        {"METADATA-LOOKUP": '<RETS ReplyCode="20502" ReplyText="Invalid Identifier"/>'}, []
    )
    with pytest.raises(ProtocolError) as excinfo:
        await module.get_lookups("Nope")
    assert excinfo.value.reply_code == 20502


@pytest.mark.asyncio
async def test_missing_metadata_element_is_decode_error() -> None:
    module = _module({"METADATA-OBJECT": '<RETS ReplyCode="0" ReplyText="OK"/>'}, [])
    with pytest.raises(DecodeError):
        await module.get_object_metadata("Property")


@pytest.mark.asyncio
async def test_http_failure_is_transport_error() -> None:
    module = _module({}, [])
    with pytest.raises(TransportError) as excinfo:
        await module.get_resources()
    assert excinfo.value.status_code == 500
