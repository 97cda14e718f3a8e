"""Unit tests for the Sui JSON-RPC adapter."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import json

import httpx
import pytest
from app.exceptions import ChainError, ChainObjectNotFoundError
from app.services.sui_client import SuiClient, parse_event_content

PACKAGE = "0x" + "c" * 64
EVENT_ID = "0x" + "a" * 64


def make_client(result=None, error=None, status_code=200, calls=None, registry_id=""):
    def handler(request):
        body = json.loads(request.content)
        if calls is not None:
            calls.append(body)
        payload = {"jsonrpc": "2.0", "id": body["id"]}
        if error is not None:
            payload["error"] = error
        else:
            payload["result"] = result
        return httpx.Response(status_code, json=payload)

    return SuiClient("https://rpc.test", PACKAGE, registry_id, transport=httpx.MockTransport(handler))


class TestParseEventContent:
    def test_returns_move_fields(self):
        obj = {"data": {"content": {"dataType": "moveObject", "fields": {"name": "Gig"}}}}
        assert parse_event_content(obj) == {"name": "Gig"}

    def test_missing_object_is_not_found(self):
        with pytest.raises(ChainObjectNotFoundError):
            parse_event_content({"error": {"code": "notExists", "object_id": EVENT_ID}})

    def test_missing_content_fails(self):
        with pytest.raises(ChainError, match="Invalid event data structure"):
            parse_event_content({"data": {"objectId": EVENT_ID}})

    def test_package_content_rejected(self):
        obj = {"data": {"content": {"dataType": "package", "disassembled": {}}}}
        with pytest.raises(ChainError, match="not a Move object"):
            parse_event_content(obj)


class TestSuiClient:
    def test_event_types_use_package(self):
        client = make_client()
        assert client.event_types["EVENT_CREATED"] == f"{PACKAGE}::event::EventCreated"
        assert client.event_types["SEATS_RESERVED"] == f"{PACKAGE}::event::SeatsReserved"
        assert client.event_struct_type == f"{PACKAGE}::event::Event"

    @pytest.mark.asyncio
    async def test_get_object_request_shape(self):
        calls = []
        client = make_client(result={"data": {"objectId": EVENT_ID}}, calls=calls)
        result = await client.get_object(EVENT_ID)

        assert result == {"data": {"objectId": EVENT_ID}}
        assert calls[0]["method"] == "sui_getObject"
        assert calls[0]["params"] == [EVENT_ID, {"showContent": True, "showOwner": True, "showType": True}]

    @pytest.mark.asyncio
    async def test_multi_get_objects(self):
        calls = []
        client = make_client(result=[{"data": {}}, {"data": {}}], calls=calls)
        result = await client.multi_get_objects([EVENT_ID, EVENT_ID])
        assert len(result) == 2
        assert calls[0]["method"] == "sui_multiGetObjects"

    @pytest.mark.asyncio
    async def test_query_events_filter_and_cursor(self):
        calls = []
        page = {"data": [], "nextCursor": None, "hasNextPage": False}
        client = make_client(result=page, calls=calls)
        cursor = {"txDigest": "abc", "eventSeq": "0"}
        assert await client.query_events("x::event::EventCreated", cursor, 20) == page
        assert calls[0]["method"] == "suix_queryEvents"
        assert calls[0]["params"] == [{"MoveEventType": "x::event::EventCreated"}, cursor, 20, True]

    @pytest.mark.asyncio
    async def test_get_transaction(self):
        calls = []
        client = make_client(result={"digest": "abc"}, calls=calls)
        assert (await client.get_transaction("abc"))["digest"] == "abc"
        assert calls[0]["method"] == "sui_getTransactionBlock"
        assert calls[0]["params"][1]["showEvents"] is True

    @pytest.mark.asyncio
    async def test_get_owned_objects_filters_struct(self):
        calls = []
        client = make_client(result={"data": [{"data": {"objectId": EVENT_ID}}]}, calls=calls)
        objects = await client.get_owned_objects("0x" + "b" * 64)
        assert objects == [{"data": {"objectId": EVENT_ID}}]
        assert calls[0]["params"][1]["filter"] == {"StructType": f"{PACKAGE}::event::Event"}

    @pytest.mark.asyncio
    async def test_rpc_error_raises(self):
        client = make_client(error={"code": -32602, "message": "Invalid params"})
        with pytest.raises(ChainError, match="Invalid params"):
            await client.get_object(EVENT_ID)

    @pytest.mark.asyncio
    async def test_http_error_raises(self):
        client = make_client(result={}, status_code=503)
        with pytest.raises(ChainError):
            await client.get_object(EVENT_ID)

    @pytest.mark.asyncio
    async def test_transport_error_raises(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        client = SuiClient("https://rpc.test", PACKAGE, transport=httpx.MockTransport(handler))
        with pytest.raises(ChainError):
            await client.get_chain_identifier()

    @pytest.mark.asyncio
    async def test_verify_contract_deployment(self):
        found = make_client(result={"data": {"objectId": "0x1"}}, registry_id="0x1")
        missing = make_client(result={"error": {"code": "notExists"}}, registry_id="0x1")
        failing = make_client(error={"code": -1, "message": "boom"}, registry_id="0x1")
        unset = make_client(result={"data": {}})

        assert await found.verify_contract_deployment() is True
        assert await missing.verify_contract_deployment() is False
        assert await failing.verify_contract_deployment() is False
        assert await unset.verify_contract_deployment() is False
