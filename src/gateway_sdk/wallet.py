"""
Hand-off from a wallet (Google Pay) payment sheet to a gateway session.

The wallet SDK runs in the embedding application. Once it finishes, pass its
outcome to handle_wallet_result(); a successful outcome carries the wallet's
payment data JSON, whose token is sent to the gateway with
build_wallet_payload() and Gateway.update_session().
"""

import json
import logging
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Union

from .errors import ValidationError
from .gateway_map import GatewayMap

logger = logging.getLogger(__name__)

PAYMENT_TOKEN_PATH = "paymentMethodData.tokenizationData.token"
PAYMENT_DESCRIPTION_PATH = "paymentMethodData.description"
SESSION_TOKEN_PATH = "sourceOfFunds.provided.card.devicePayment.paymentToken"

INTERNAL_ERROR = "INTERNAL_ERROR"


class WalletOutcome(Enum):
    OK = "OK"
    CANCELLED = "CANCELLED"
    ERROR = "ERROR"


class WalletCallback(ABC):

    @abstractmethod
    def on_received_payment_data(self, payment_data: Dict[str, Any]) -> None:
        ...

    @abstractmethod
    def on_wallet_cancelled(self) -> None:
        ...

    @abstractmethod
    def on_wallet_error(self, status: Any) -> None:
        ...


def _parse_payment_data(data: Union[str, bytes, Mapping[str, Any], None]) -> Dict[str, Any]:
    if isinstance(data, GatewayMap):
        return data.to_dict()
    if isinstance(data, Mapping):
        return dict(data)

    if isinstance(data, bytes):
        data = data.decode("utf-8")
    if not isinstance(data, str):
        raise ValidationError(f"Payment data must be JSON, got {type(data).__name__}")

    parsed = json.loads(data)
    if not isinstance(parsed, dict):
        raise ValidationError("Payment data must be a JSON object")
    return parsed


def handle_wallet_result(
    outcome: WalletOutcome,
    data: Union[str, bytes, Mapping[str, Any], None],
    callback: Optional[WalletCallback],
) -> bool:
    """Report a wallet result to a callback.

    Args:
        outcome: how the wallet payment sheet finished
        data: the payment data JSON on OK, the wallet's status on ERROR
        callback: receives exactly one notification

    Returns:
        True if the result was delivered, False when there is no callback.
    """
    if callback is None:
        return False

    if outcome is WalletOutcome.CANCELLED:
        callback.on_wallet_cancelled()
        return True

    if outcome is WalletOutcome.ERROR:
        callback.on_wallet_error(data)
        return True

    try:
        payment_data = _parse_payment_data(data)
    except (ValueError, UnicodeDecodeError) as e:
        logger.warning(f"Unable to read wallet payment data: {e}")
        callback.on_wallet_error(INTERNAL_ERROR)
        return True

    callback.on_received_payment_data(payment_data)
    return True


def _read(payment_data: Mapping[str, Any], path: str) -> str:
    value = GatewayMap(payment_data).get(path)
    if not isinstance(value, str) or not value:
        raise ValidationError(f"Payment data has no {path}")
    return value


def payment_token(payment_data: Mapping[str, Any]) -> str:
    """The gateway token inside the wallet's payment data."""
    return _read(payment_data, PAYMENT_TOKEN_PATH)


def payment_description(payment_data: Mapping[str, Any]) -> str:
    """Card description for display, e.g. 'Visa •••• 1234'."""
    return _read(payment_data, PAYMENT_DESCRIPTION_PATH)


def build_wallet_payload(payment_data: Mapping[str, Any]) -> GatewayMap:
    return GatewayMap().set(SESSION_TOKEN_PATH, payment_token(payment_data))
