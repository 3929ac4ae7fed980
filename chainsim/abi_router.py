"""
Table-driven eth_call stubbing.

Each fixture maps 4-byte selectors to handlers that ABI-encode a fixed value.
No EVM execution takes place: an unknown target or selector returns empty
bytes, the same thing a real node returns for a call to an address without
code or to a missing function.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Callable, Dict, Iterable, Mapping

from eth_abi import encode
from eth_utils import function_signature_to_4byte_selector, to_checksum_address

EMPTY_RETURN = "0x"

TOKEN_ADDRESS = "0x00000000000000000000000000000000000000aa"
SAFE_ADDRESS = "0x000000000000000000000000000000000000dead"
SAFE_OWNER = "0xf39fd6e51aad88f6f4ce6ab8827279cfffb92266"

TOKEN_NAME = "Mock Token"
TOKEN_SYMBOL = "MCK"
TOKEN_DECIMALS = 18
TOKEN_BALANCE = 10**18
SAFE_THRESHOLD = 1
SAFE_NONCE = 5
SAFE_CODE = "0x60806040"

Handler = Callable[[], bytes]


def selector(signature: str) -> str:
    """Lowercase 0x-prefixed 4-byte selector of a function signature."""
    return "0x" + function_signature_to_4byte_selector(signature).hex()


def returns(types, *values) -> Handler:
    """Build a handler that always encodes `values` as `types`."""
    types = list(types)
    encoded = encode(types, list(values))
    return lambda: encoded


@dataclass(frozen=True)
class ContractFixture:
    address: str
    handlers: Mapping[str, Handler] = field(default_factory=dict)
    # Returned by eth_getCode for this address.
    code: str = EMPTY_RETURN

    def __post_init__(self):
        object.__setattr__(self, "address", self.address.lower())
        object.__setattr__(
            self,
            "handlers",
            MappingProxyType({sel.lower(): fn for sel, fn in self.handlers.items()}),
        )


def token_fixture(address: str = TOKEN_ADDRESS) -> ContractFixture:
    return ContractFixture(
        address=address,
        handlers={
            selector("name()"): returns(["string"], TOKEN_NAME),
            selector("symbol()"): returns(["string"], TOKEN_SYMBOL),
            selector("decimals()"): returns(["uint8"], TOKEN_DECIMALS),
            selector("balanceOf(address)"): returns(["uint256"], TOKEN_BALANCE),
        },
    )


def safe_fixture(address: str = SAFE_ADDRESS, owner: str = SAFE_OWNER) -> ContractFixture:
    return ContractFixture(
        address=address,
        code=SAFE_CODE,
        handlers={
            selector("getOwners()"): returns(["address[]"], [to_checksum_address(owner)]),
            selector("getThreshold()"): returns(["uint256"], SAFE_THRESHOLD),
            selector("nonce()"): returns(["uint256"], SAFE_NONCE),
        },
    )


def default_fixtures():
    return [token_fixture(), safe_fixture()]


class AbiCallRouter:
    """Resolves (target, call data) pairs against a fixed set of fixtures."""

    def __init__(self, fixtures: Iterable[ContractFixture]):
        self._fixtures: Dict[str, ContractFixture] = {f.address: f for f in fixtures}

    def code_at(self, address) -> str:
        fixture = self._fixtures.get(str(address or "").lower())
        if fixture is None:
            return EMPTY_RETURN
        return fixture.code

    def resolve_call(self, target, data) -> str:
        fixture = self._fixtures.get(str(target or "").lower())
        if fixture is None:
            return EMPTY_RETURN

        handler = fixture.handlers.get(str(data or "").lower()[:10])
        if handler is None:
            return EMPTY_RETURN
        return "0x" + handler().hex()
