"""Error types raised by the simulator."""


class SimulatorError(Exception):
    """Base class for simulator errors."""


class MalformedPayload(SimulatorError):
    """
    Raised when a request body cannot be read as JSON-RPC.

    Variants absorb this and answer with a default envelope instead of
    surfacing it to the transport layer.
    """

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason
