"""
Response variants for matched JSON-RPC POST requests.

One variant is chosen per scenario. `DispatchVariant` answers from the method
table; the two fault variants replace it wholesale. All of them are stateless,
so the number of invocations never changes the response.
"""

import json
from typing import Optional

from loguru import logger

from chainsim import envelope
from chainsim.dispatch import MethodDispatcher
from chainsim.errors import MalformedPayload
from chainsim.schemas import FaultConfig, FaultKind, InvalidCall, SyntheticResponse

JSON_HEADERS = {"content-type": "application/json"}


def json_response(status: int, body: bytes) -> SyntheticResponse:
    return SyntheticResponse(status=status, headers=dict(JSON_HEADERS), body=body)


class ResponseVariant:
    name = "base"

    def respond(self, body) -> SyntheticResponse:
        raise NotImplementedError


class DispatchVariant(ResponseVariant):
    """Answers every call from the method dispatch table."""

    name = "dispatch"

    def __init__(self, dispatcher: Optional[MethodDispatcher] = None):
        self.dispatcher = dispatcher or MethodDispatcher()

    def respond(self, body) -> SyntheticResponse:
        try:
            parsed = envelope.parse(body)
        except MalformedPayload as e:
            logger.warning(f"Malformed JSON-RPC payload absorbed: {e.reason}")
            return json_response(200, envelope.serialize(envelope.default_envelope()))

        if isinstance(parsed, list):
            # Position i of the response answers position i of the batch.
            responses = [self._answer(call) for call in parsed]
            return json_response(200, envelope.serialize(responses))

        return json_response(200, envelope.serialize(self._answer(parsed)))

    def _answer(self, call):
        if isinstance(call, InvalidCall):
            return envelope.build_success(call.id, envelope.DEFAULT_RESULT)
        return envelope.build_success(call.id, self.dispatcher.dispatch(call.method, call.params))


class TransportFaultVariant(ResponseVariant):
    """Fails below the JSON-RPC layer with a non-2xx status."""

    name = "transport"

    def __init__(self, status: int = 429):
        self.status = status
        self._body = json.dumps({"error": f"mock http {status}"}).encode("utf-8")

    def respond(self, body) -> SyntheticResponse:
        return json_response(self.status, self._body)


class ProtocolFaultVariant(ResponseVariant):
    """Answers HTTP 200 with a JSON-RPC error envelope for every call."""

    name = "protocol"

    def __init__(self, code: int = -32005, message: str = "rate limited"):
        self.code = code
        self.message = message

    def respond(self, body) -> SyntheticResponse:
        try:
            parsed = envelope.parse(body)
        except MalformedPayload as e:
            logger.warning(f"Malformed JSON-RPC payload absorbed: {e.reason}")
            failure = envelope.build_error(envelope.DEFAULT_ID, self.code, self.message)
            return json_response(200, envelope.serialize(failure))

        if isinstance(parsed, list):
            # Unreadable elements still get their own failure in their own slot.
            failures = [envelope.build_error(call.id, self.code, self.message) for call in parsed]
            return json_response(200, envelope.serialize(failures))
        return json_response(200, envelope.serialize(envelope.build_error(parsed.id, self.code, self.message)))


def build_variant(
    fault: Optional[FaultConfig] = None, dispatcher: Optional[MethodDispatcher] = None
) -> ResponseVariant:
    """Pick the variant for a scenario: the dispatch table unless a fault is configured."""
    if fault is None:
        return DispatchVariant(dispatcher)
    if fault.kind == FaultKind.TRANSPORT:
        return TransportFaultVariant(fault.status)
    return ProtocolFaultVariant(fault.code, fault.message)
