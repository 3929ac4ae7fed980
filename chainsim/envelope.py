"""
JSON-RPC 2.0 envelope codec.

Batch detection is structural: an array body is a batch, an object body is a
single call. Responses keep the shape of the request.
"""

import json
from typing import Any, List, Sequence, Union

from pydantic import ValidationError

from chainsim.errors import MalformedPayload
from chainsim.schemas import InvalidCall, RpcErrorObject, RpcFailure, RpcRequest, RpcResponse, RpcSuccess

DEFAULT_ID = 1
DEFAULT_RESULT = "0x1"


def build_success(rpc_id, result: Any) -> RpcSuccess:
    return RpcSuccess(id=rpc_id, result=result)


def build_error(rpc_id, code: int, message: str) -> RpcFailure:
    return RpcFailure(id=rpc_id, error=RpcErrorObject(code=code, message=message))


def default_envelope() -> RpcSuccess:
    """The envelope returned in place of a parse failure."""
    return build_success(DEFAULT_ID, DEFAULT_RESULT)


def serialize(response: Union[RpcResponse, Sequence[RpcResponse]]) -> bytes:
    if isinstance(response, (list, tuple)):
        payload = [item.model_dump(mode="json") for item in response]
    else:
        payload = response.model_dump(mode="json")
    return json.dumps(payload, separators=(",", ":")).encode("utf-8")


def parse(body) -> Union[RpcRequest, List[Union[RpcRequest, InvalidCall]]]:
    """
    Parse a request body into one call or a batch of calls.

    Batch elements are parsed one by one: an element that is not a valid call
    becomes an `InvalidCall` in its own slot, so the batch keeps its length.

    Raises:
        MalformedPayload: The body is not JSON, is neither an object nor an
            array, is an empty batch, or is a single call that is invalid.
    """
    try:
        payload = json.loads(body)
    except (TypeError, ValueError) as e:
        raise MalformedPayload(f"body is not valid JSON: {e}") from e

    if isinstance(payload, list):
        if not payload:
            raise MalformedPayload("batch must not be empty")
        return [_parse_batch_item(item) for item in payload]
    return _parse_call(payload)


def _parse_batch_item(item: Any) -> Union[RpcRequest, InvalidCall]:
    try:
        return _parse_call(item)
    except MalformedPayload as e:
        return InvalidCall(id=_scalar_id(item), reason=e.reason)


def _scalar_id(item: Any):
    if not isinstance(item, dict):
        return None
    rpc_id = item.get("id")
    if isinstance(rpc_id, bool) or not isinstance(rpc_id, (int, float, str)):
        return None
    return rpc_id


def _parse_call(item: Any) -> RpcRequest:
    if not isinstance(item, dict):
        raise MalformedPayload("call must be a JSON object")
    if "method" not in item:
        raise MalformedPayload("call lacks a method field")
    try:
        return RpcRequest.model_validate(item)
    except ValidationError as e:
        raise MalformedPayload(f"invalid call: {e.errors()[0]['msg']}") from e
