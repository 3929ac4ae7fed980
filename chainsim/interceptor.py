"""
Boundary adapter between a host HTTP stack and the simulator.

The interceptor decides, per outbound request, whether to pass it through or
answer it synthetically. `SimulatorTransport` and `AsyncSimulatorTransport`
plug it into httpx clients; any other host only needs to call `handle` and
either fulfill the returned response or pass the request through on None.
"""

from typing import Optional

import httpx
from loguru import logger

from chainsim.dispatch import MethodDispatcher
from chainsim.faults import DispatchVariant, ResponseVariant, build_variant
from chainsim.journal import TrafficJournal
from chainsim.schemas import SyntheticResponse

PREFLIGHT_HEADERS = {
    "access-control-allow-origin": "*",
    "access-control-allow-methods": "POST, OPTIONS",
    "access-control-allow-headers": "content-type",
}


def preflight_response() -> SyntheticResponse:
    return SyntheticResponse(status=204, headers=dict(PREFLIGHT_HEADERS), body=b"")


class Interceptor:
    def __init__(
        self,
        target_host: str,
        variant: Optional[ResponseVariant] = None,
        journal: Optional[TrafficJournal] = None,
    ):
        self.target_host = target_host
        self.variant = variant or DispatchVariant()
        self.journal = journal

    def should_intercept(self, url) -> bool:
        return self.target_host in str(url)

    def handle(self, method: str, url, body=None) -> Optional[SyntheticResponse]:
        """
        Answer a request aimed at the target host.

        Returns None when the request must pass through untouched: a
        different host, or a method other than POST and OPTIONS.
        """
        if not self.should_intercept(url):
            return None
        return self.synthesize(method, url, body)

    def variant_for(self, method: str) -> str:
        """Name of what answers `method`, as stored in the journal."""
        return "preflight" if method.upper() == "OPTIONS" else self.variant.name

    def synthesize(self, method: str, url, body=None) -> Optional[SyntheticResponse]:
        """Like `handle`, for requests already known to target the simulated node."""
        method = method.upper()
        if method == "OPTIONS":
            response = preflight_response()
        elif method == "POST":
            response = self.variant.respond(body)
        else:
            return None

        variant = self.variant_for(method)
        logger.debug(f"Synthesized {method} {url} via {variant}: HTTP {response.status}")
        if self.journal is not None:
            self.journal.record(
                http_method=method, url=str(url), status=response.status, variant=variant, body=body
            )
        return response


def to_httpx_response(synthetic: SyntheticResponse, request: httpx.Request) -> httpx.Response:
    return httpx.Response(
        synthetic.status,
        headers=synthetic.headers,
        content=synthetic.body,
        request=request,
    )


class SimulatorTransport(httpx.BaseTransport):
    """httpx transport that answers target-host traffic from the simulator."""

    def __init__(self, interceptor: Interceptor, passthrough: Optional[httpx.BaseTransport] = None):
        self.interceptor = interceptor
        self.passthrough = passthrough or httpx.HTTPTransport()

    def handle_request(self, request: httpx.Request) -> httpx.Response:
        if self.interceptor.should_intercept(request.url):
            synthetic = self.interceptor.synthesize(request.method, request.url, request.read())
            if synthetic is not None:
                return to_httpx_response(synthetic, request)
        return self.passthrough.handle_request(request)

    def close(self) -> None:
        self.passthrough.close()


class AsyncSimulatorTransport(httpx.AsyncBaseTransport):
    """Async counterpart of `SimulatorTransport`."""

    def __init__(self, interceptor: Interceptor, passthrough: Optional[httpx.AsyncBaseTransport] = None):
        self.interceptor = interceptor
        self.passthrough = passthrough or httpx.AsyncHTTPTransport()

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        if self.interceptor.should_intercept(request.url):
            synthetic = self.interceptor.synthesize(request.method, request.url, await request.aread())
            if synthetic is not None:
                return to_httpx_response(synthetic, request)
        return await self.passthrough.handle_async_request(request)

    async def aclose(self) -> None:
        await self.passthrough.aclose()


def build_interceptor(settings, journal: Optional[TrafficJournal] = None) -> Interceptor:
    """Interceptor for a scenario described by `Settings`."""
    dispatcher = MethodDispatcher(chain_id=settings.chain_id)
    variant = build_variant(settings.fault_config(), dispatcher)
    return Interceptor(settings.target_host, variant, journal)
