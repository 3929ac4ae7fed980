"""
Tests for the response variants.

The dispatch variant answers from the method table; the fault variants must
return identical responses however many times they are invoked, so that
repeated failures seen by a client come from the client, not the simulator.
"""

import json

import pytest
from pydantic import ValidationError

from chainsim.faults import (
    DispatchVariant,
    ProtocolFaultVariant,
    TransportFaultVariant,
    build_variant,
)
from chainsim.schemas import FaultConfig, FaultKind


def _body(payload) -> bytes:
    return json.dumps(payload).encode("utf-8")


def _call(rpc_id, method="eth_chainId", params=None):
    return {"jsonrpc": "2.0", "id": rpc_id, "method": method, "params": params or []}


def test_dispatch_single_call_echoes_id():
    response = DispatchVariant().respond(_body(_call("req-9")))

    assert response.status == 200
    assert response.headers["content-type"] == "application/json"
    assert json.loads(response.body) == {"jsonrpc": "2.0", "id": "req-9", "result": "0xc7"}


def test_dispatch_batch_keeps_positions():
    calls = [
        _call(3, "eth_blockNumber"),
        _call(1, "net_version"),
        _call("x", "eth_getTransactionReceipt", ["0xdeadbeef"]),
        _call(None, "eth_somethingElse"),
    ]

    payload = json.loads(DispatchVariant().respond(_body(calls)).body)

    assert isinstance(payload, list)
    assert len(payload) == len(calls)
    assert [item["id"] for item in payload] == [3, 1, "x", None]
    assert [item["result"] for item in payload[:2]] == ["0x2", "199"]
    assert payload[2]["result"]["transactionHash"] == "0xdeadbeef"
    assert payload[3]["result"] == "0x1"


def test_dispatch_answers_invalid_batch_elements_in_place():
    calls = [_call(1), {"id": 2}, {"id": "c", "method": "eth_call", "params": {}}, 7]

    payload = json.loads(DispatchVariant().respond(_body(calls)).body)

    assert payload == [
        {"jsonrpc": "2.0", "id": 1, "result": "0xc7"},
        {"jsonrpc": "2.0", "id": 2, "result": "0x1"},
        {"jsonrpc": "2.0", "id": "c", "result": "0x1"},
        {"jsonrpc": "2.0", "id": None, "result": "0x1"},
    ]


@pytest.mark.parametrize("body", [b"not json", b"", b'{"id":5}', b"[]"])
def test_dispatch_absorbs_malformed_payload(body):
    response = DispatchVariant().respond(body)

    assert response.status == 200
    assert json.loads(response.body) == {"jsonrpc": "2.0", "id": 1, "result": "0x1"}


def test_transport_fault_default_status():
    response = TransportFaultVariant().respond(_body(_call(1)))

    assert response.status == 429
    assert response.headers["content-type"] == "application/json"
    assert json.loads(response.body) == {"error": "mock http 429"}


def test_transport_fault_ignores_body_shape():
    variant = TransportFaultVariant(503)
    bodies = [_body(_call(1)), _body([_call(1), _call(2)]), b"garbage"]

    responses = {(r.status, r.body) for r in (variant.respond(b) for b in bodies)}

    assert responses == {(503, b'{"error": "mock http 503"}')}


def test_protocol_fault_repeated_calls_are_identical():
    variant = ProtocolFaultVariant(-32005, "rate limited")
    body = _body(_call(1, "eth_getBalance", ["0x1", "latest"]))

    responses = [variant.respond(body) for _ in range(5)]

    assert len({r.body for r in responses}) == 1
    for response in responses:
        assert response.status == 200
        assert json.loads(response.body) == {
            "jsonrpc": "2.0",
            "id": 1,
            "error": {"code": -32005, "message": "rate limited"},
        }


def test_protocol_fault_applies_to_every_batch_element():
    calls = [_call(10), _call("b", "eth_call"), _call(None, "net_version")]

    payload = json.loads(ProtocolFaultVariant(-32000, "header not found").respond(_body(calls)).body)

    assert [item["id"] for item in payload] == [10, "b", None]
    assert all(item["error"] == {"code": -32000, "message": "header not found"} for item in payload)
    assert all("result" not in item for item in payload)


def test_protocol_fault_answers_invalid_batch_elements_in_place():
    calls = [_call(1), {"id": 2}, {"id": True, "method": "net_version"}]

    payload = json.loads(ProtocolFaultVariant().respond(_body(calls)).body)

    assert [item["id"] for item in payload] == [1, 2, None]
    assert all(item["error"] == {"code": -32005, "message": "rate limited"} for item in payload)


def test_protocol_fault_malformed_payload_uses_default_id():
    payload = json.loads(ProtocolFaultVariant().respond(b"{").body)

    assert payload == {"jsonrpc": "2.0", "id": 1, "error": {"code": -32005, "message": "rate limited"}}


def test_build_variant():
    assert isinstance(build_variant(None), DispatchVariant)

    transport = build_variant(FaultConfig(kind=FaultKind.TRANSPORT, status=502))
    assert isinstance(transport, TransportFaultVariant)
    assert transport.status == 502

    protocol = build_variant(FaultConfig(kind="protocol", code=-32603, message="internal"))
    assert isinstance(protocol, ProtocolFaultVariant)
    assert (protocol.code, protocol.message) == (-32603, "internal")


def test_fault_config_defaults_and_immutability():
    config = FaultConfig(kind=FaultKind.PROTOCOL)

    assert (config.status, config.code, config.message) == (429, -32005, "rate limited")
    with pytest.raises(ValidationError):
        config.code = -1


@pytest.mark.parametrize("status", [200, 204, 99, 101, 199, 600])
def test_fault_config_rejects_success_or_invalid_status(status):
    with pytest.raises(ValidationError):
        FaultConfig(kind=FaultKind.TRANSPORT, status=status)
