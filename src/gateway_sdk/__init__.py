from .auth import create_auth_header
from .errors import (
    ConfigError,
    GatewayError,
    GatewaySdkError,
    MapParseError,
    ProtocolViolation,
    TransportError,
    TypeMismatchError,
    ValidationError,
)
from .gateway import CallbackHandler, Gateway, GatewayCallback
from .gateway_map import GatewayMap
from .gateway_request import SDK_VERSION, GatewayRequest, Method, Region
from .request_builder import RequestBuilder
from .threeds import (
    AuthenticationState,
    BrowserChallengeSurface,
    ThreeDSecureAuthentication,
    ThreeDSecureCallback,
    ThreeDSecureCoordinator,
    ThreeDSecureListener,
    handle_3ds_result_uri,
)
from .wallet import WalletCallback, WalletOutcome, build_wallet_payload, handle_wallet_result

__version__ = SDK_VERSION

__all__ = [
    "AuthenticationState",
    "BrowserChallengeSurface",
    "CallbackHandler",
    "ConfigError",
    "Gateway",
    "GatewayCallback",
    "GatewayError",
    "GatewayMap",
    "GatewayRequest",
    "GatewaySdkError",
    "MapParseError",
    "Method",
    "ProtocolViolation",
    "Region",
    "RequestBuilder",
    "ThreeDSecureAuthentication",
    "ThreeDSecureCallback",
    "ThreeDSecureCoordinator",
    "ThreeDSecureListener",
    "TransportError",
    "TypeMismatchError",
    "ValidationError",
    "WalletCallback",
    "WalletOutcome",
    "build_wallet_payload",
    "create_auth_header",
    "handle_3ds_result_uri",
    "handle_wallet_result",
]
