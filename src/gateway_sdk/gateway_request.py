from dataclasses import dataclass, field
from enum import Enum
from typing import Dict

from .gateway_map import GatewayMap

MIN_API_VERSION = 39
# version 50 of the API dropped apiOperation from Update Session in favour of the auth header
AUTH_HEADER_API_VERSION = 50

API_OPERATION_UPDATE_PAYER_DATA = "UPDATE_PAYER_DATA"
API_OPERATION_INITIATE_AUTHENTICATION = "INITIATE_AUTHENTICATION"
API_OPERATION_AUTHENTICATE_PAYER = "AUTHENTICATE_PAYER"

SDK_VERSION = "1.0.0"
USER_AGENT = f"Gateway-Python-SDK/{SDK_VERSION}"
GATEWAY_HOST = "gateway.mastercard.com"


class Region(Enum):
    """The available gateway regions, mapped to their host prefix."""
    ASIA_PACIFIC = "ap-"
    EUROPE = "eu-"
    NORTH_AMERICA = "na-"
    TEST = "test-"
    MTF = "test-"

    @property
    def prefix(self) -> str:
        return self.value


class Method(Enum):
    """Internally supported request methods."""
    PUT = "PUT"


@dataclass
class GatewayRequest:
    url: str
    method: Method
    payload: GatewayMap = field(default_factory=GatewayMap)
    headers: Dict[str, str] = field(default_factory=dict)
