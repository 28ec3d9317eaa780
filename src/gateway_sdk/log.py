import logging
from typing import Mapping, Optional

logger = logging.getLogger("gateway_sdk.http")

MASKED_HEADERS = {"authorization"}


def _mask(key: str, value: str) -> str:
    return "********" if key.lower() in MASKED_HEADERS else value


def _log_multiline(message: str) -> None:
    for line in message.split("\n"):
        if line:
            logger.debug(line)


def log_request(method: str, url: str, headers: Mapping[str, str], data: Optional[str]) -> None:
    if not logger.isEnabledFor(logging.DEBUG):
        return

    log = f"REQUEST: {method} {url}"
    if data is not None:
        log += f"\n-- Data: {data}"
    for key, value in headers.items():
        log += f"\n-- {key}: {_mask(key, value)}"

    _log_multiline(log)


def log_response(status_code: int, headers: Mapping[str, str], data: Optional[str]) -> None:
    if not logger.isEnabledFor(logging.DEBUG):
        return

    log = f"RESPONSE: {status_code}"
    if data:
        log += f"\n-- Data: {data}"
    for key, value in headers.items():
        log += f"\n-- {key}: {value}"

    _log_multiline(log)
