"""
3-D Secure coordination.

ThreeDSecureCoordinator drives one payer authentication per order
transaction:

    INITIATED -> REDIRECTED_3DS1 | CHALLENGED_3DS2 | (no challenge)
              -> COMPLETED | CANCELLED | TIMED_OUT | PROTOCOL_ERROR | RUNTIME_ERROR

The challenge itself runs outside the SDK: a BrowserChallengeSurface renders
the 3DS1 redirect HTML, and the vendor 3DS2 SDK (see threeds2) runs the
in-app challenge. Both report back through receivers bound to one attempt;
the coordinator accepts the first terminal report for the current attempt and
logs and ignores any later one, or any report from an attempt that has since
been retried. A card without 3-D Secure (version NONE or absent) completes
without a challenge.
"""

import logging
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Mapping, Optional
from urllib.parse import parse_qs, urlparse

from .errors import ConfigError, ProtocolViolation
from .gateway import Gateway
from .gateway_map import GatewayMap
from .request_builder import ApiVersion
from .threeds2 import (
    ChallengeParameters,
    ChallengeStatusReceiver,
    CompletionEvent,
    ProtocolErrorEvent,
    RuntimeErrorEvent,
    ThreeDS2Service,
    Transaction,
)

logger = logging.getLogger(__name__)

VERSION_3DS1 = "3DS1"
VERSION_3DS2 = "3DS2"
# the card is not enrolled, or 3-D Secure is unavailable; payment may proceed
VERSION_NONE = "NONE"

RECOMMENDATION_DO_NOT_PROCEED = "DO_NOT_PROCEED"
RECOMMENDATION_PATHS = ("response.gatewayRecommendation", "gatewayRecommendation")

DEFAULT_MESSAGE_VERSION = "2.1.0"
DEFAULT_CHALLENGE_TIMEOUT = 300

ACS_RESULT_SCHEME = "gatewaysdk"
ACS_RESULT_HOST = "3dsecure"
ACS_RESULT_PARAM = "acsResult"


class AuthenticationState(Enum):
    INITIATED = "INITIATED"
    REDIRECTED_3DS1 = "REDIRECTED_3DS1"
    CHALLENGED_3DS2 = "CHALLENGED_3DS2"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"
    TIMED_OUT = "TIMED_OUT"
    PROTOCOL_ERROR = "PROTOCOL_ERROR"
    RUNTIME_ERROR = "RUNTIME_ERROR"

    @property
    def terminal(self) -> bool:
        return self in TERMINAL_STATES


TERMINAL_STATES = frozenset({
    AuthenticationState.COMPLETED,
    AuthenticationState.CANCELLED,
    AuthenticationState.TIMED_OUT,
    AuthenticationState.PROTOCOL_ERROR,
    AuthenticationState.RUNTIME_ERROR,
})


@dataclass
class ThreeDSecureAuthentication:
    """One payer authentication, keyed by its order transaction id."""
    session_id: str
    order_id: str
    transaction_id: str
    api_version: ApiVersion
    state: AuthenticationState = AuthenticationState.INITIATED
    version: Optional[str] = None
    result: Optional[GatewayMap] = None
    error: Optional[BaseException] = None
    threeds2_transaction: Optional[Transaction] = None

    @property
    def terminal(self) -> bool:
        return self.state.terminal


class ThreeDSecureCallback(ABC):
    """Receives the outcome of a browser-based (3DS1) challenge."""

    @abstractmethod
    def on_3ds_complete(self, acs_result: GatewayMap) -> None:
        ...

    @abstractmethod
    def on_3ds_cancel(self) -> None:
        ...


class BrowserChallengeSurface(ABC):
    """Renders 3DS1 redirect HTML (typically in a web view) for the payer."""

    @abstractmethod
    def present(self, html: str, title: Optional[str], callback: ThreeDSecureCallback) -> None:
        ...


class ThreeDSecureListener(ABC):
    """Downstream of the coordinator; told once per authentication."""

    @abstractmethod
    def on_proceed(self, authentication: ThreeDSecureAuthentication) -> None:
        """Authentication completed; continue to payment."""

    @abstractmethod
    def on_failure(self, authentication: ThreeDSecureAuthentication) -> None:
        ...


def is_do_not_proceed(payload: Optional[Mapping[str, Any]]) -> bool:
    if not payload:
        return False
    if not isinstance(payload, GatewayMap):
        payload = GatewayMap(payload)

    for path in RECOMMENDATION_PATHS:
        value = payload.get(path)
        if isinstance(value, str) and value.upper() == RECOMMENDATION_DO_NOT_PROCEED:
            return True
    return False


def acs_result_from_uri(uri: str) -> Optional[GatewayMap]:
    """Read the ACS result from a ``gatewaysdk://3dsecure?acsResult=...`` URI.

    Returns None if the URI is not a 3-D Secure result redirect.
    """
    parsed = urlparse(uri)
    if parsed.scheme != ACS_RESULT_SCHEME or parsed.netloc != ACS_RESULT_HOST:
        return None

    values = parse_qs(parsed.query).get(ACS_RESULT_PARAM)
    return GatewayMap.from_json(values[0] if values else None)


def handle_3ds_result_uri(uri: str, callback: ThreeDSecureCallback) -> bool:
    """Route a 3-D Secure result redirect to ``callback``. True if handled."""
    acs_result = acs_result_from_uri(uri)
    if acs_result is None:
        return False

    callback.on_3ds_complete(acs_result)
    return True


class _BrowserCallback(ThreeDSecureCallback):
    """Bound to one hand-off; reports for a replaced attempt are ignored."""

    def __init__(self, coordinator: "ThreeDSecureCoordinator", authentication: "ThreeDSecureAuthentication"):
        self.coordinator = coordinator
        self.authentication = authentication

    def on_3ds_complete(self, acs_result: GatewayMap) -> None:
        self.coordinator._complete(self.authentication, GatewayMap(acs_result))

    def on_3ds_cancel(self) -> None:
        self.coordinator._finish(self.authentication, AuthenticationState.CANCELLED)


class _ChallengeReceiver(ChallengeStatusReceiver):

    def __init__(self, coordinator: "ThreeDSecureCoordinator", authentication: "ThreeDSecureAuthentication"):
        self.coordinator = coordinator
        self.authentication = authentication

    def completed(self, completion_event: CompletionEvent) -> None:
        result = GatewayMap()
        result["sdkTransactionId"] = completion_event.sdk_transaction_id
        result["transactionStatus"] = completion_event.transaction_status
        self.coordinator._complete(self.authentication, result)

    def cancelled(self) -> None:
        self.coordinator._finish(self.authentication, AuthenticationState.CANCELLED)

    def timedout(self) -> None:
        self.coordinator._finish(self.authentication, AuthenticationState.TIMED_OUT)

    def protocol_error(self, protocol_error_event: ProtocolErrorEvent) -> None:
        message = protocol_error_event.error_message
        result = GatewayMap({
            "sdkTransactionId": protocol_error_event.sdk_transaction_id,
            "error": {
                "code": message.error_code,
                "component": message.error_component,
                "description": message.error_description,
                "details": message.error_details,
            },
        })
        self.coordinator._finish(self.authentication, AuthenticationState.PROTOCOL_ERROR, result=result)

    def runtime_error(self, runtime_error_event: RuntimeErrorEvent) -> None:
        result = GatewayMap({
            "error": {
                "code": runtime_error_event.error_code,
                "message": runtime_error_event.error_message,
            },
        })
        self.coordinator._finish(self.authentication, AuthenticationState.RUNTIME_ERROR, result=result)


class ThreeDSecureCoordinator:
    """
    Runs 3-D Secure authentications on top of a Gateway.

    Args:
        gateway: the configured Gateway
        listener: told COMPLETED via on_proceed, any other terminal state via
            on_failure
        browser_surface: renders 3DS1 redirect HTML
        threeds2_service: the vendor 3DS2 SDK
        challenge_title: optional title for the 3DS1 challenge page
        force_version: debug only; skips the server's authentication.version
            and always runs the given flow
    """

    def __init__(
        self,
        gateway: Gateway,
        listener: ThreeDSecureListener,
        browser_surface: Optional[BrowserChallengeSurface] = None,
        threeds2_service: Optional[ThreeDS2Service] = None,
        challenge_title: Optional[str] = None,
        force_version: Optional[str] = None,
    ):
        self.gateway = gateway
        self.listener = listener
        self.browser_surface = browser_surface
        self.threeds2_service = threeds2_service
        self.challenge_title = challenge_title
        self.force_version = force_version
        if force_version is not None:
            logger.warning(f"3-D Secure version forced to {force_version}; server version is ignored")

        self._authentications: Dict[str, ThreeDSecureAuthentication] = {}
        self._lock = threading.Lock()

    # ---- inspection ----

    def authentication(self, transaction_id: str) -> Optional[ThreeDSecureAuthentication]:
        with self._lock:
            return self._authentications.get(transaction_id)

    def state(self, transaction_id: str) -> Optional[AuthenticationState]:
        authentication = self.authentication(transaction_id)
        return authentication.state if authentication else None

    # ---- flow ----

    def authenticate(
        self,
        session_id: str,
        order_id: str,
        transaction_id: str,
        api_version: ApiVersion,
        payload: Optional[Mapping[str, Any]] = None,
        payer_payload: Optional[Mapping[str, Any]] = None,
    ) -> ThreeDSecureAuthentication:
        """Initiate authentication and hand off to the matching challenge flow.

        Blocks for the gateway calls; the challenge outcome arrives later
        through the listener. When the card has no 3-D Secure, the listener's
        on_proceed runs before this returns.

        Args:
            payload: extra data for the Initiate Authentication request
            payer_payload: extra data for the Authenticate Payer request
                (order amount, redirect response url, ...)

        Raises:
            ProtocolViolation: an authentication for this transaction is
                already in flight
            GatewaySdkError: a gateway call failed; the authentication ends
                in RUNTIME_ERROR
        """
        with self._lock:
            existing = self._authentications.get(transaction_id)
            if existing is not None and not existing.terminal:
                raise ProtocolViolation(
                    f"Authentication already in flight for transaction {transaction_id}", transaction_id
                )
            authentication = ThreeDSecureAuthentication(session_id, order_id, transaction_id, api_version)
            self._authentications[transaction_id] = authentication

        logger.info(f"Initiating authentication for order {order_id}, transaction {transaction_id}")
        try:
            response = self.gateway.initiate_authentication(
                session_id, order_id, transaction_id, api_version, payload
            )
            version = self.force_version or response.get("authentication.version")
            authentication.version = version

            if version == VERSION_3DS1:
                self._start_3ds1(authentication, response, payer_payload)
            elif version == VERSION_3DS2:
                self._start_3ds2(authentication, response, payer_payload)
            elif version is None or version == VERSION_NONE:
                logger.info(f"No 3-D Secure challenge for transaction {transaction_id}")
                self._complete(authentication, response)
            else:
                self._violation(authentication, f"Unrecognized authentication version {version!r}")

        except Exception as e:
            if not authentication.terminal:
                logger.error(f"Authentication for transaction {transaction_id} failed: {e}")
                self._finish(authentication, AuthenticationState.RUNTIME_ERROR, error=e, notify=False)
            raise

        return authentication

    def _start_3ds1(self, authentication, response, payer_payload) -> None:
        if self.browser_surface is None:
            raise ConfigError("A browser challenge surface is required for 3DS1 authentication")
        if is_do_not_proceed(response):
            self._finish(authentication, AuthenticationState.PROTOCOL_ERROR, result=response)
            return

        html = response.get("authentication.redirectHtml")
        if not html:
            payer_response = self.gateway.authenticate_payer(
                authentication.session_id,
                authentication.order_id,
                authentication.transaction_id,
                authentication.api_version,
                payer_payload,
            )
            if is_do_not_proceed(payer_response):
                self._finish(authentication, AuthenticationState.PROTOCOL_ERROR, result=payer_response)
                return
            html = payer_response.get("authentication.redirectHtml")

        if not html:
            self._violation(authentication, "Gateway returned no redirect HTML for 3DS1 authentication")
            return

        self._transition(authentication, AuthenticationState.REDIRECTED_3DS1)
        self.browser_surface.present(
            html, self.challenge_title, _BrowserCallback(self, authentication)
        )

    def _start_3ds2(self, authentication, response, payer_payload) -> None:
        if self.threeds2_service is None:
            raise ConfigError("A 3DS2 service is required for 3DS2 authentication")

        directory_server_id = response.get("authentication.3ds2.directoryServerId")
        if not directory_server_id:
            self._violation(authentication, "Gateway returned no directory server id for 3DS2 authentication")
            return
        message_version = response.get("authentication.3ds2.messageVersion") or DEFAULT_MESSAGE_VERSION

        transaction = self.threeds2_service.create_transaction(directory_server_id, message_version)
        authentication.threeds2_transaction = transaction
        params = transaction.get_authentication_request_parameters()

        request = (
            GatewayMap(payer_payload)
            .set("authentication.3ds2.sdk.appId", params.sdk_app_id)
            .set("authentication.3ds2.sdk.encryptedData", params.device_data)
            .set("authentication.3ds2.sdk.ephemeralPublicKey", params.sdk_ephemeral_public_key)
            .set("authentication.3ds2.sdk.referenceNumber", params.sdk_reference_number)
            .set("authentication.3ds2.sdk.transactionId", params.sdk_transaction_id)
        )

        payer_response = self.gateway.authenticate_payer(
            authentication.session_id,
            authentication.order_id,
            authentication.transaction_id,
            authentication.api_version,
            request,
        )
        if is_do_not_proceed(payer_response):
            self._finish(authentication, AuthenticationState.PROTOCOL_ERROR, result=payer_response)
            return

        challenge_parameters = ChallengeParameters(
            three_ds_server_transaction_id=params.sdk_transaction_id,
            acs_transaction_id=payer_response.get("authentication.3ds2.acsTransactionId"),
            acs_ref_number=payer_response.get("authentication.3ds2.acsRefNumber"),
            acs_signed_content=payer_response.get("authentication.3ds2.acsSignedContent"),
        )
        try:
            timeout = int(payer_response.get("authentication.3ds2.sdk.timeout", DEFAULT_CHALLENGE_TIMEOUT))
        except (TypeError, ValueError):
            timeout = DEFAULT_CHALLENGE_TIMEOUT

        self._transition(authentication, AuthenticationState.CHALLENGED_3DS2)
        transaction.do_challenge(
            challenge_parameters, _ChallengeReceiver(self, authentication), timeout
        )

    # ---- terminal callbacks ----

    def on_3ds_complete(self, transaction_id: str, acs_result: Mapping[str, Any]) -> bool:
        """3DS1 completion; the ACS result still has to clear the gateway recommendation."""
        authentication = self._current(transaction_id, "on_3ds_complete")
        if authentication is None:
            return False
        return self._complete(authentication, GatewayMap(acs_result))

    def on_3ds_cancel(self, transaction_id: str) -> bool:
        authentication = self._current(transaction_id, "on_3ds_cancel")
        if authentication is None:
            return False
        return self._finish(authentication, AuthenticationState.CANCELLED)

    def forget(self, transaction_id: str) -> bool:
        """Drop the record of a finished authentication.

        Returns False if there is no record. Raises ProtocolViolation while
        the authentication is still in flight.
        """
        with self._lock:
            authentication = self._authentications.get(transaction_id)
            if authentication is None:
                return False
            if not authentication.terminal:
                raise ProtocolViolation(
                    f"Authentication for transaction {transaction_id} is still {authentication.state.name}",
                    transaction_id,
                )
            del self._authentications[transaction_id]
            return True

    def _current(self, transaction_id: str, report: str) -> Optional[ThreeDSecureAuthentication]:
        authentication = self.authentication(transaction_id)
        if authentication is None:
            logger.warning(f"Protocol violation: {report} for unknown transaction {transaction_id}")
        return authentication

    def _complete(self, authentication: ThreeDSecureAuthentication, result: GatewayMap) -> bool:
        if is_do_not_proceed(result):
            logger.info(f"Gateway recommends not to proceed with transaction {authentication.transaction_id}")
            return self._finish(authentication, AuthenticationState.PROTOCOL_ERROR, result=result)
        return self._finish(authentication, AuthenticationState.COMPLETED, result=result)

    def _transition(self, authentication: ThreeDSecureAuthentication, state: AuthenticationState) -> None:
        with self._lock:
            logger.info(f"Transaction {authentication.transaction_id}: {authentication.state.name} -> {state.name}")
            authentication.state = state

    def _violation(self, authentication: ThreeDSecureAuthentication, message: str) -> None:
        violation = ProtocolViolation(message, authentication.transaction_id)
        logger.warning(f"Protocol violation for transaction {authentication.transaction_id}: {message}")
        self._finish(authentication, AuthenticationState.PROTOCOL_ERROR, error=violation)

    def _finish(
        self,
        authentication: ThreeDSecureAuthentication,
        state: AuthenticationState,
        result: Optional[GatewayMap] = None,
        error: Optional[BaseException] = None,
        notify: bool = True,
    ) -> bool:
        """Move one authentication attempt to a terminal state, once. False if ignored."""
        transaction_id = authentication.transaction_id
        with self._lock:
            if authentication.terminal:
                logger.warning(
                    f"Protocol violation: {state.name} for transaction {transaction_id} "
                    f"already {authentication.state.name}; ignored"
                )
                return False
            if self._authentications.get(transaction_id) is not authentication:
                logger.warning(
                    f"Protocol violation: {state.name} for a replaced attempt of transaction {transaction_id}; ignored"
                )
                return False

            logger.info(f"Transaction {transaction_id}: {authentication.state.name} -> {state.name}")
            authentication.state = state
            authentication.result = result
            authentication.error = error

        if authentication.threeds2_transaction is not None:
            authentication.threeds2_transaction.close()

        if notify:
            if state is AuthenticationState.COMPLETED:
                self.listener.on_proceed(authentication)
            else:
                self.listener.on_failure(authentication)
        return True
