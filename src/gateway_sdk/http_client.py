"""
Transport: executes a GatewayRequest over HTTPS with a pinned trust anchor.

execute() is blocking. It owns its connection for the duration of the call
and shares nothing mutable with other calls, so callers may run it on any
worker thread, executor or task wrapper they like.
"""

import logging
import ssl
import time
from typing import Any, Dict, Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.ssl_ import create_urllib3_context

from .certs import pinned_ca_file
from .errors import MapParseError, TransportError
from .gateway_map import GatewayMap
from .gateway_request import USER_AGENT, GatewayRequest
from .log import log_request, log_response
from .response import handle_response

logger = logging.getLogger(__name__)

DEFAULT_CONFIG = {
    "connect_timeout_ms": 15000,
    "response_timeout_ms": 60000,
    # path to a PEM file replacing the pinned gateway CA, e.g. for a test host
    "ca_cert": None,
}


class PinnedTrustAdapter(HTTPAdapter):
    """HTTPS adapter whose SSL context accepts an intermediate CA as the anchor.

    The CA file itself is supplied through ``verify``; this context never
    loads the system defaults.
    """

    def init_poolmanager(self, *args, **kwargs):
        context = create_urllib3_context()
        context.verify_flags |= getattr(ssl, "VERIFY_X509_PARTIAL_CHAIN", 0)
        kwargs["ssl_context"] = context
        return super().init_poolmanager(*args, **kwargs)


def create_session() -> requests.Session:
    session = requests.Session()
    # environment CA bundles and proxies must not widen the pinned trust
    session.trust_env = False
    session.mount("https://", PinnedTrustAdapter())
    return session


def resolve_options(options: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    resolved = dict(DEFAULT_CONFIG)
    if options:
        resolved.update({k: v for k, v in options.items() if v is not None})
    return resolved


def execute(request: GatewayRequest, options: Optional[Dict[str, Any]] = None) -> GatewayMap:
    """Send a request to the gateway and classify the response.

    Args:
        request: the request descriptor produced by RequestBuilder
        options: overrides for DEFAULT_CONFIG

    Returns:
        The parsed response body of a 2xx response.

    Raises:
        GatewayError: the gateway answered with a non-2xx status
        TransportError: the gateway could not be reached or trusted, or its
            response could not be read
    """
    options = resolve_options(options)
    connect_timeout = options["connect_timeout_ms"] / 1000.0
    response_timeout = options["response_timeout_ms"] / 1000.0
    ca_cert = options["ca_cert"] or pinned_ca_file()

    method = request.method.value
    headers = {"User-Agent": USER_AGENT, "Content-Type": "application/json"}
    headers.update(request.headers)

    request_data = request.payload.to_json()
    log_request(method, request.url, headers, request_data)

    start_time = time.time()
    try:
        with create_session() as session:
            response = session.request(
                method=method,
                url=request.url,
                headers=headers,
                data=request_data.encode("utf-8"),
                timeout=(connect_timeout, response_timeout),
                verify=ca_cert,
                allow_redirects=False,
            )
            status_code = response.status_code
            response_data = response.content.decode("utf-8")
            response_headers = {k.lower(): v for k, v in response.headers.items()}

    except requests.exceptions.ConnectTimeout as e:
        raise TransportError(f"Connection Timeout: {request.url}", TransportError.CONNECT_TIMEOUT) from e
    except requests.exceptions.ReadTimeout as e:
        raise TransportError(f"Response Timeout: {request.url}", TransportError.RESPONSE_TIMEOUT) from e
    except requests.exceptions.SSLError as e:
        raise TransportError(f"TLS Failure: {e}", TransportError.TLS_FAILURE) from e
    except (requests.exceptions.ChunkedEncodingError, requests.exceptions.ContentDecodingError) as e:
        raise TransportError(f"Malformed Response: {e}", TransportError.MALFORMED_RESPONSE) from e
    except UnicodeDecodeError as e:
        raise TransportError("Malformed Response: body is not UTF-8", TransportError.MALFORMED_RESPONSE) from e
    except requests.exceptions.RequestException as e:
        raise TransportError(f"Network Error: {e}", TransportError.NETWORK_FAILURE) from e

    latency = (time.time() - start_time) * 1000
    logger.debug(f"{method} {request.url} -> {status_code} in {latency:.0f} ms")
    log_response(status_code, response_headers, response_data)

    try:
        response_map = GatewayMap.from_json(response_data)
    except MapParseError as e:
        raise TransportError(
            f"Malformed Response (HTTP {status_code}): {e}", TransportError.MALFORMED_RESPONSE
        ) from e

    return handle_response(status_code, response_map)
