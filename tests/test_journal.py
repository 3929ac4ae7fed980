"""Tests for the traffic journal."""

import json

import pytest

from chainsim.database import build_engine
from chainsim.journal import MAX_BODY_CHARS, REDACTED, TrafficJournal, clip, describe_body, redact_payload

RPC_URL = "https://rpc.bittorrentchain.io/"


@pytest.fixture
def journal():
    return TrafficJournal(engine=build_engine("sqlite://"))


def _call(method, params=None, rpc_id=1):
    return {"jsonrpc": "2.0", "id": rpc_id, "method": method, "params": params or []}


def test_redacts_raw_transaction_params():
    raw = "0x" + "ab" * 200

    redacted = redact_payload(_call("eth_sendRawTransaction", [raw]))

    assert redacted["params"] == [REDACTED]
    assert redacted["method"] == "eth_sendRawTransaction"


def test_shortens_long_hex_but_keeps_hashes_and_addresses():
    data = "0x" + "12" * 100
    tx_hash = "0x" + "a" * 64
    address = "0x" + "b" * 40

    redacted = redact_payload(_call("eth_call", [{"to": address, "data": data}, tx_hash]))

    assert redacted["params"][0]["to"] == address
    assert redacted["params"][0]["data"] == "0x" + "12" * 8 + "..." + "12" * 8
    assert redacted["params"][1] == tx_hash


def test_clip():
    assert clip("abc", 5) == "abc"
    assert clip("abcdef", 3) == "abc..."


def test_describe_body():
    single = describe_body(json.dumps(_call("eth_chainId")).encode())
    batch = describe_body(json.dumps([_call("net_version"), _call("eth_chainId")]))
    garbage = describe_body(b"not json")

    assert single[:3] == ("eth_chainId", False, 1)
    assert batch[:3] == ("net_version", True, 2)
    assert garbage == (None, False, 0, "not json")
    assert describe_body(b"") == (None, False, 0, None)


def test_stored_body_is_clipped(journal):
    body = json.dumps(_call("eth_getBalance", ["x" * (MAX_BODY_CHARS * 2)]))

    journal.record(http_method="post", url=RPC_URL, status=200, variant="dispatch", body=body)

    (event,) = journal.events()
    assert event.http_method == "POST"
    assert len(event.request_body) == MAX_BODY_CHARS + 3


def test_rolling_buffer_drops_oldest():
    journal = TrafficJournal(engine=build_engine("sqlite://"), max_events=3)

    for i in range(5):
        journal.record(
            http_method="POST", url=RPC_URL, status=200, variant="dispatch",
            body=json.dumps(_call("eth_blockNumber", rpc_id=i)),
        )

    events = journal.events()
    assert len(events) == 3
    assert [json.loads(e.request_body)["id"] for e in events] == [2, 3, 4]


def test_count_filter_and_clear(journal):
    for method in ("eth_chainId", "eth_chainId", "net_version"):
        journal.record(http_method="POST", url=RPC_URL, status=200, variant="dispatch", body=json.dumps(_call(method)))

    assert journal.count() == 3
    assert journal.count("eth_chainId") == 2
    assert journal.clear() == 3
    assert journal.count() == 0
