"""Tests for the JSON-RPC envelope codec."""

import json

import pytest

from chainsim import envelope
from chainsim.errors import MalformedPayload
from chainsim.schemas import InvalidCall, RpcRequest


def test_parse_single_call():
    call = envelope.parse(b'{"jsonrpc":"2.0","id":7,"method":"eth_chainId","params":[]}')

    assert isinstance(call, RpcRequest)
    assert call.id == 7
    assert call.method == "eth_chainId"
    assert call.params == []


def test_parse_batch_keeps_order():
    body = json.dumps([
        {"jsonrpc": "2.0", "id": "a", "method": "eth_blockNumber"},
        {"jsonrpc": "2.0", "id": 2, "method": "eth_getBalance", "params": ["0x1", "latest"]},
    ])

    calls = envelope.parse(body)

    assert [c.id for c in calls] == ["a", 2]
    assert calls[1].params == ["0x1", "latest"]


def test_parse_defaults_missing_or_null_params():
    assert envelope.parse('{"id":1,"method":"eth_chainId"}').params == []
    assert envelope.parse('{"id":1,"method":"eth_chainId","params":null}').params == []


def test_parse_keeps_null_id():
    assert envelope.parse('{"id":null,"method":"net_version"}').id is None


@pytest.mark.parametrize(
    "body",
    [
        b"not json",
        b"",
        b"[]",
        b'"eth_chainId"',
        b'{"id":1,"params":[]}',
        b'{"id":1,"method":"eth_chainId","params":{"a":1}}',
        b'{"id":true,"method":"eth_chainId"}',
    ],
)
def test_parse_rejects_malformed_bodies(body):
    with pytest.raises(MalformedPayload):
        envelope.parse(body)


def test_parse_batch_keeps_invalid_elements_in_place():
    body = json.dumps([
        {"id": 1, "method": "eth_chainId"},
        {"id": 2},
        {"id": 3, "method": "eth_call", "params": {"to": "0x1"}},
        {"id": True, "method": "net_version"},
        "eth_blockNumber",
    ])

    calls = envelope.parse(body)

    assert len(calls) == 5
    assert isinstance(calls[0], RpcRequest)
    assert all(isinstance(call, InvalidCall) for call in calls[1:])
    assert [call.id for call in calls] == [1, 2, 3, None, None]


def test_serialize_success_and_error():
    success = envelope.serialize(envelope.build_success(7, "0xc7"))
    failure = envelope.serialize(envelope.build_error("x", -32005, "rate limited"))

    assert json.loads(success) == {"jsonrpc": "2.0", "id": 7, "result": "0xc7"}
    assert json.loads(failure) == {
        "jsonrpc": "2.0",
        "id": "x",
        "error": {"code": -32005, "message": "rate limited"},
    }


def test_serialize_batch_is_array():
    body = envelope.serialize([envelope.build_success(1, "0x2"), envelope.build_success(None, {"a": 1})])

    assert json.loads(body) == [
        {"jsonrpc": "2.0", "id": 1, "result": "0x2"},
        {"jsonrpc": "2.0", "id": None, "result": {"a": 1}},
    ]


def test_default_envelope():
    assert json.loads(envelope.serialize(envelope.default_envelope())) == {
        "jsonrpc": "2.0",
        "id": 1,
        "result": "0x1",
    }
