import itertools
from typing import Any, List, Optional, Sequence, Tuple
from urllib.parse import urlsplit

import httpx

from chainsim.quantity import parse_quantity


class RpcClientError(Exception):
    """Base class for errors surfaced by RPCClient."""


class RpcHTTPError(RpcClientError):
    def __init__(self, status: int, body: str = ""):
        super().__init__(f"RPC responded with HTTP {status}")
        self.status = status
        self.body = body


class RpcResponseError(RpcClientError):
    def __init__(self, code: int, message: str):
        super().__init__(f"RPC error {code}: {message}")
        self.code = code
        self.message = message


class RPCClient:
    """
    Minimal JSON-RPC client used to drive an endpoint from the consumer side.

    Pass a `SimulatorTransport` as `transport` to talk to the simulator
    without a network. Errors are raised as-is; this client never retries.
    """

    def __init__(self, rpc_url: str, transport: Optional[httpx.BaseTransport] = None, timeout: float = 5.0):
        self.rpc_url = rpc_url
        self._client = httpx.Client(transport=transport, timeout=timeout)
        self._ids = itertools.count(1)

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()

    def close(self) -> None:
        self._client.close()

    def request(self, method: str, params: Optional[Sequence[Any]] = None) -> Any:
        return self._unwrap(self._post(self._call(method, params)))

    def batch(self, calls: Sequence[Tuple[str, Sequence[Any]]]) -> List[Any]:
        """
        Send several calls in one HTTP request.

        Results are returned in request order; the first error envelope is
        raised.
        """
        data = self._post([self._call(method, params) for method, params in calls])
        if not isinstance(data, list):
            raise RpcClientError("RPC returned a non-array response to a batch")
        return [self._unwrap(item) for item in data]

    def chain_id(self) -> int:
        value = self.request("eth_chainId")
        if not isinstance(value, str) or not value.startswith("0x"):
            raise RpcClientError("Invalid RPC response for eth_chainId")
        try:
            return parse_quantity(value)
        except ValueError as e:
            raise RpcClientError("Invalid RPC response for eth_chainId") from e

    def validate_endpoint(self, expected_chain_id: int) -> Tuple[bool, str]:
        """Check that the endpoint is reachable over http(s) and serves the expected chain."""
        if urlsplit(self.rpc_url).scheme not in ("http", "https"):
            return False, "RPC URL must start with http(s)://"
        try:
            chain_id = self.chain_id()
        except (RpcClientError, httpx.HTTPError) as e:
            return False, f"RPC validation failed: {e}"
        if chain_id != expected_chain_id:
            return False, f"RPC chainId mismatch: expected {expected_chain_id}, got {chain_id}"
        return True, ""

    def _call(self, method: str, params: Optional[Sequence[Any]]) -> dict:
        return {"jsonrpc": "2.0", "id": next(self._ids), "method": method, "params": list(params or [])}

    def _post(self, payload: Any) -> Any:
        response = self._client.post(self.rpc_url, json=payload)
        if not response.is_success:
            raise RpcHTTPError(response.status_code, response.text)
        try:
            return response.json()
        except ValueError as e:
            raise RpcClientError("RPC endpoint returned non-json response") from e

    @staticmethod
    def _unwrap(item: Any) -> Any:
        if not isinstance(item, dict):
            raise RpcClientError("RPC response must be an object")
        error = item.get("error")
        if error is not None:
            raise RpcResponseError(int(error.get("code", 0)), str(error.get("message", "")))
        return item.get("result")
