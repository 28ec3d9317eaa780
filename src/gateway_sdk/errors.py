"""
Error taxonomy for the gateway SDK.

Every public operation either returns a result or raises exactly one of the
exceptions below. Transport failures (we could not reach or trust the gateway)
are kept apart from gateway errors (the gateway answered with a non-2xx status).
"""

from typing import Optional


class GatewaySdkError(Exception):
    """Base class for all SDK errors."""


class ConfigError(GatewaySdkError):
    """Required context (merchant id, region) is missing."""


class ValidationError(GatewaySdkError, ValueError):
    """Caller-supplied input is invalid (api version, ids, map paths, JSON)."""


class TypeMismatchError(ValidationError):
    """A map path runs through a value that is not a map."""


class MapParseError(ValidationError):
    """A JSON document could not be parsed into a GatewayMap."""


class TransportError(GatewaySdkError):
    CONNECT_TIMEOUT = "CONNECT_TIMEOUT"
    RESPONSE_TIMEOUT = "RESPONSE_TIMEOUT"
    TLS_FAILURE = "TLS_FAILURE"
    NETWORK_FAILURE = "NETWORK_FAILURE"
    MALFORMED_RESPONSE = "MALFORMED_RESPONSE"

    def __init__(self, message: str, error_code: str = NETWORK_FAILURE):
        super().__init__(message)
        self.error_code = error_code


class GatewayError(GatewaySdkError):
    """The gateway answered with a non-2xx status.

    Attributes:
        status_code: HTTP status returned by the gateway
        error_response: the full parsed response body (a GatewayMap)
    """

    def __init__(self, message: str, status_code: int, error_response=None):
        super().__init__(message)
        self.status_code = status_code
        self.error_response = error_response

    @property
    def message(self) -> str:
        return str(self)

    def __repr__(self) -> str:
        return f"GatewayError(status_code={self.status_code}, message={self.message!r})"


class ProtocolViolation(GatewaySdkError):
    """A 3-D Secure hand-off broke its single-shot contract."""

    def __init__(self, message: str, transaction_id: Optional[str] = None):
        super().__init__(message)
        self.transaction_id = transaction_id
