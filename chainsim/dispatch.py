"""
Closed method table for the simulated chain.

Every supported method is a member of `RpcMethod` bound to a pure handler.
Anything outside the table resolves to `DEFAULT_RESULT` instead of failing,
so the simulator never blocks the caller.
"""

from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from eth_utils import keccak

from chainsim.abi_router import AbiCallRouter, default_fixtures
from chainsim.envelope import DEFAULT_RESULT
from chainsim.quantity import is_hex_data, to_quantity

DEFAULT_CHAIN_ID = 199

MOCK_TX_HASH = "0x" + "a" * 64
MOCK_BLOCK_HASH = "0x" + "b" * 64
MOCK_PARENT_HASH = "0x" + "c" * 64
MOCK_ROOT = "0x" + "d" * 64
MOCK_ROOT2 = "0x" + "e" * 64
MOCK_ROOT3 = "0x" + "f" * 64
ZERO_ADDRESS = "0x" + "0" * 40
EMPTY_BLOOM = "0x" + "0" * 512

BLOCK_NUMBER = 2
BALANCE_WEI = 10**18
ACCOUNT_NONCE = 1
GAS_PRICE_WEI = 1_000_000_000
PRIORITY_FEE_WEI = 2_000_000_000
TRANSFER_GAS = 21_000
BLOCK_GAS_LIMIT = 30_000_000
BLOCK_TIMESTAMP = 5
RECEIPT_STATUS_SUCCESS = 1


class RpcMethod(str, Enum):
    CHAIN_ID = "eth_chainId"
    NET_VERSION = "net_version"
    BLOCK_NUMBER = "eth_blockNumber"
    GET_BALANCE = "eth_getBalance"
    GET_TRANSACTION_COUNT = "eth_getTransactionCount"
    GET_CODE = "eth_getCode"
    CALL = "eth_call"
    GAS_PRICE = "eth_gasPrice"
    MAX_PRIORITY_FEE_PER_GAS = "eth_maxPriorityFeePerGas"
    FEE_HISTORY = "eth_feeHistory"
    GET_BLOCK_BY_NUMBER = "eth_getBlockByNumber"
    ESTIMATE_GAS = "eth_estimateGas"
    SEND_RAW_TRANSACTION = "eth_sendRawTransaction"
    GET_TRANSACTION_RECEIPT = "eth_getTransactionReceipt"


def _first(params: List[Any]) -> Any:
    return params[0] if params else None


class MethodDispatcher:
    """Maps RPC method names to deterministic results."""

    def __init__(self, router: Optional[AbiCallRouter] = None, chain_id: int = DEFAULT_CHAIN_ID):
        self.router = router or AbiCallRouter(default_fixtures())
        self.chain_id = chain_id
        self._table: Dict[RpcMethod, Callable[[List[Any]], Any]] = {
            RpcMethod.CHAIN_ID: lambda params: to_quantity(self.chain_id),
            RpcMethod.NET_VERSION: lambda params: str(self.chain_id),
            RpcMethod.BLOCK_NUMBER: lambda params: to_quantity(BLOCK_NUMBER),
            RpcMethod.GET_BALANCE: lambda params: to_quantity(BALANCE_WEI),
            RpcMethod.GET_TRANSACTION_COUNT: lambda params: to_quantity(ACCOUNT_NONCE),
            RpcMethod.GET_CODE: self._get_code,
            RpcMethod.CALL: self._call,
            RpcMethod.GAS_PRICE: lambda params: to_quantity(GAS_PRICE_WEI),
            RpcMethod.MAX_PRIORITY_FEE_PER_GAS: lambda params: to_quantity(PRIORITY_FEE_WEI),
            RpcMethod.FEE_HISTORY: self._fee_history,
            RpcMethod.GET_BLOCK_BY_NUMBER: self._block,
            RpcMethod.ESTIMATE_GAS: lambda params: to_quantity(TRANSFER_GAS),
            RpcMethod.SEND_RAW_TRANSACTION: self._send_raw_transaction,
            RpcMethod.GET_TRANSACTION_RECEIPT: self._receipt,
        }

    def dispatch(self, method: str, params: Optional[List[Any]] = None) -> Any:
        try:
            key = RpcMethod(method)
        except ValueError:
            return DEFAULT_RESULT
        return self._table[key](list(params or []))

    def _get_code(self, params):
        return self.router.code_at(_first(params))

    def _call(self, params):
        call = _first(params)
        if not isinstance(call, dict):
            call = {}
        data = call.get("data") or call.get("input")
        return self.router.resolve_call(call.get("to"), data)

    def _fee_history(self, params):
        return {
            "oldestBlock": to_quantity(1),
            "baseFeePerGas": [to_quantity(GAS_PRICE_WEI), to_quantity(GAS_PRICE_WEI)],
            "gasUsedRatio": [0.5],
            "reward": [[to_quantity(PRIORITY_FEE_WEI)]],
        }

    def _block(self, params):
        return {
            "number": to_quantity(BLOCK_NUMBER),
            "hash": MOCK_BLOCK_HASH,
            "parentHash": MOCK_PARENT_HASH,
            "nonce": "0x0000000000000000",
            "sha3Uncles": MOCK_ROOT,
            "logsBloom": EMPTY_BLOOM,
            "transactionsRoot": MOCK_ROOT2,
            "stateRoot": MOCK_ROOT3,
            "receiptsRoot": MOCK_ROOT,
            "miner": ZERO_ADDRESS,
            "difficulty": to_quantity(0),
            "totalDifficulty": to_quantity(0),
            "extraData": "0x",
            "size": to_quantity(1),
            "gasLimit": to_quantity(BLOCK_GAS_LIMIT),
            "gasUsed": to_quantity(TRANSFER_GAS),
            "timestamp": to_quantity(BLOCK_TIMESTAMP),
            "transactions": [],
            "uncles": [],
            "baseFeePerGas": to_quantity(GAS_PRICE_WEI),
        }

    def _send_raw_transaction(self, params):
        raw = _first(params)
        if is_hex_data(raw):
            return "0x" + keccak(hexstr=raw).hex()
        return MOCK_TX_HASH

    def _receipt(self, params):
        return {
            "transactionHash": _first(params) or MOCK_TX_HASH,
            "blockNumber": to_quantity(BLOCK_NUMBER),
            "status": to_quantity(RECEIPT_STATUS_SUCCESS),
        }
