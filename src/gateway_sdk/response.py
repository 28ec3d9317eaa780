"""
Response classification: the single definition of what an ok gateway
response is, and how a failed one becomes a GatewayError.
"""

from .errors import GatewayError
from .gateway_map import GatewayMap

DEFAULT_ERROR_MESSAGE = "An error occurred"


def is_status_ok(status_code: int) -> bool:
    return 200 <= status_code <= 299


def error_message(response: GatewayMap) -> str:
    message = response.get("error.explanation")
    if not isinstance(message, str) or not message:
        return DEFAULT_ERROR_MESSAGE
    return message


def handle_response(status_code: int, response: GatewayMap) -> GatewayMap:
    """Return the parsed body of an ok response, raise GatewayError otherwise."""
    if is_status_ok(status_code):
        return response

    raise GatewayError(error_message(response), status_code, response)
