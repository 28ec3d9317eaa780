"""
RequestBuilder: turns gateway operations into request descriptors.

Building is pure: nothing is sent, and the caller's payload is copied, so the
returned GatewayRequest owns its payload and headers outright.
"""

import logging
from typing import Any, Mapping, Optional, Union

from .auth import create_auth_header
from .errors import ConfigError, ValidationError
from .gateway_map import GatewayMap
from .gateway_request import (
    API_OPERATION_AUTHENTICATE_PAYER,
    API_OPERATION_INITIATE_AUTHENTICATION,
    API_OPERATION_UPDATE_PAYER_DATA,
    AUTH_HEADER_API_VERSION,
    GATEWAY_HOST,
    MIN_API_VERSION,
    USER_AGENT,
    GatewayRequest,
    Method,
    Region,
)

logger = logging.getLogger(__name__)

ApiVersion = Union[str, int]


def parse_api_version(api_version: ApiVersion) -> int:
    """Parse an api version string as an integer, enforcing the minimum."""
    try:
        version = int(str(api_version).strip())
    except (TypeError, ValueError):
        raise ValidationError(f"API version must be an integer, got {api_version!r}")

    if version < MIN_API_VERSION:
        raise ValidationError(f"API version must be >= {MIN_API_VERSION}")
    return version


def _require(name: str, value: Optional[str]) -> str:
    if value is None or value == "":
        raise ValidationError(f"{name} may not be empty")
    return value


class RequestBuilder:
    """
    Builds GatewayRequest descriptors for one merchant and region.

    Merchant id and region may be set after construction; they are expected
    to be written by one thread and then only read while requests are built.
    """

    def __init__(self, merchant_id: Optional[str] = None, region: Optional[Region] = None):
        self.merchant_id = merchant_id
        self.region = region

    def _check_config(self) -> None:
        if not self.merchant_id:
            raise ConfigError("You must initialize the Gateway instance with a Merchant Id before use")
        if self.region is None:
            raise ConfigError("You must initialize the Gateway instance with a Region before use")

    def api_url(self, api_version: ApiVersion) -> str:
        self._check_config()
        version = parse_api_version(api_version)
        return f"https://{self.region.prefix}{GATEWAY_HOST}/api/rest/version/{version}"

    def merchant_url(self, api_version: ApiVersion) -> str:
        return f"{self.api_url(api_version)}/merchant/{self.merchant_id}"

    def update_session_url(self, session_id: str, api_version: ApiVersion) -> str:
        self._check_config()
        _require("Session Id", session_id)
        return f"{self.merchant_url(api_version)}/session/{session_id}"

    def authentication_url(
        self, order_id: str, transaction_id: str, api_version: ApiVersion
    ) -> str:
        self._check_config()
        _require("Order Id", order_id)
        _require("Transaction Id", transaction_id)
        return f"{self.merchant_url(api_version)}/order/{order_id}/transaction/{transaction_id}"

    def build_update_session_request(
        self,
        session_id: str,
        api_version: ApiVersion,
        payload: Optional[Mapping[str, Any]] = None,
    ) -> GatewayRequest:
        """Build an Update Session request.

        Below API version 50 the session is updated with the UPDATE_PAYER_DATA
        operation and no auth header; from 50 on, the standard Update Session
        API is used, which requires the auth header instead.
        """
        url = self.update_session_url(session_id, api_version)

        request = GatewayRequest(url=url, method=Method.PUT, payload=GatewayMap(payload))
        request.payload["device.browser"] = USER_AGENT

        if parse_api_version(api_version) < AUTH_HEADER_API_VERSION:
            request.payload["apiOperation"] = API_OPERATION_UPDATE_PAYER_DATA
        else:
            request.headers["Authorization"] = create_auth_header(self.merchant_id, session_id)

        logger.debug(f"Built update session request for session {session_id}")
        return request

    def build_initiate_authentication_request(
        self,
        session_id: str,
        order_id: str,
        transaction_id: str,
        api_version: ApiVersion,
        payload: Optional[Mapping[str, Any]] = None,
    ) -> GatewayRequest:
        return self._build_authentication_request(
            session_id, order_id, transaction_id, api_version, payload,
            API_OPERATION_INITIATE_AUTHENTICATION,
        )

    def build_authenticate_payer_request(
        self,
        session_id: str,
        order_id: str,
        transaction_id: str,
        api_version: ApiVersion,
        payload: Optional[Mapping[str, Any]] = None,
    ) -> GatewayRequest:
        return self._build_authentication_request(
            session_id, order_id, transaction_id, api_version, payload,
            API_OPERATION_AUTHENTICATE_PAYER,
        )

    def _build_authentication_request(
        self,
        session_id: str,
        order_id: str,
        transaction_id: str,
        api_version: ApiVersion,
        payload: Optional[Mapping[str, Any]],
        api_operation: str,
    ) -> GatewayRequest:
        self._check_config()
        _require("Session Id", session_id)
        url = self.authentication_url(order_id, transaction_id, api_version)

        request = GatewayRequest(url=url, method=Method.PUT, payload=GatewayMap(payload))
        request.payload["session.id"] = session_id
        request.payload["apiOperation"] = api_operation
        request.headers["Authorization"] = create_auth_header(self.merchant_id, session_id)

        logger.debug(f"Built {api_operation} request for order {order_id}, transaction {transaction_id}")
        return request
