from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, StrictFloat, StrictInt, StrictStr, field_validator

# JSON-RPC ids are echoed verbatim, so no coercion between scalar types.
RpcId = Optional[Union[StrictInt, StrictFloat, StrictStr]]


class RpcRequest(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    jsonrpc: Optional[str] = "2.0"
    id: RpcId = None
    method: StrictStr
    params: List[Any] = Field(default_factory=list)

    @field_validator("params", mode="before")
    @classmethod
    def default_params(cls, v):
        if v is None:
            return []
        if not isinstance(v, list):
            raise ValueError("params must be an array")
        return v


class InvalidCall(BaseModel):
    """A batch element that could not be read as a call; answered in its own slot."""

    model_config = ConfigDict(frozen=True)

    id: RpcId = None
    reason: str


class RpcErrorObject(BaseModel):
    model_config = ConfigDict(frozen=True)

    code: int
    message: str


class RpcSuccess(BaseModel):
    model_config = ConfigDict(frozen=True)

    jsonrpc: Literal["2.0"] = "2.0"
    id: RpcId = None
    result: Any = None


class RpcFailure(BaseModel):
    model_config = ConfigDict(frozen=True)

    jsonrpc: Literal["2.0"] = "2.0"
    id: RpcId = None
    error: RpcErrorObject


RpcResponse = Union[RpcSuccess, RpcFailure]


class FaultKind(str, Enum):
    TRANSPORT = "transport"
    PROTOCOL = "protocol"


class FaultConfig(BaseModel):
    """
    Fault injection settings for one test scenario.

    `status` applies to the transport variant, `code` and `message` to the
    protocol variant.
    """

    model_config = ConfigDict(frozen=True)

    kind: FaultKind
    status: int = 429
    code: int = -32005
    message: str = "rate limited"

    @field_validator("status")
    @classmethod
    def validate_status(cls, v):
        # 1xx cannot be a final response and 2xx is not a failure.
        if v < 300 or v > 599:
            raise ValueError("status must be a 3xx, 4xx or 5xx HTTP status code")
        return v


class SyntheticResponse(BaseModel):
    """An HTTP response produced without touching the network."""

    model_config = ConfigDict(frozen=True)

    status: int
    headers: Dict[str, str] = Field(default_factory=dict)
    body: bytes = b""


class TrafficEventOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    created_at: Optional[datetime] = None
    http_method: str
    url: str
    host: str
    status: int
    variant: str
    rpc_method: Optional[str] = None
    is_batch: bool
    batch_size: int
    request_body: Optional[str] = None
