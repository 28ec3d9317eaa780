"""
Gateway: the public interface to the gateway SDK.

Example set up:

    gateway = Gateway()
    gateway.set_merchant_id("your-merchant-id").set_region(Region.NORTH_AMERICA)

    # blocking
    response = gateway.update_session(session_id, "61", payload)

    # future
    future = gateway.update_session_async(session_id, "61", payload)
    response = future.result()

    # callbacks delivered on the thread that drains the handler
    handler = CallbackHandler()
    gateway.update_session_async(session_id, "61", payload, callback=my_callback, handler=handler)
    ...
    handler.process_pending()

Every operation is built on the calling thread (so configuration and
validation errors raise immediately) and executed by http_client.execute,
which blocks. The async shapes only decide where that blocking call runs.
"""

import logging
import queue
import threading
from abc import ABC, abstractmethod
from concurrent import futures
from typing import Any, Dict, Mapping, Optional

from . import http_client
from .gateway_map import GatewayMap
from .gateway_request import GatewayRequest, Region
from .request_builder import ApiVersion, RequestBuilder

logger = logging.getLogger(__name__)

DEFAULT_MAX_WORKERS = 4


class GatewayCallback(ABC):
    """Receives the outcome of an asynchronous gateway request."""

    @abstractmethod
    def on_success(self, response: GatewayMap) -> None:
        ...

    @abstractmethod
    def on_error(self, error: BaseException) -> None:
        ...


def deliver(callback: GatewayCallback, future: futures.Future) -> None:
    """Hand a finished future's outcome to exactly one callback method."""
    if future.cancelled():
        callback.on_error(futures.CancelledError())
        return

    error = future.exception()
    if error is not None:
        callback.on_error(error)
    else:
        callback.on_success(future.result())


class CallbackHandler:
    """
    Marshals request outcomes back to an originating thread.

    Worker threads post finished futures onto a queue; the thread that owns
    the handler calls process_pending() (e.g. from its event loop) and the
    callbacks run there.
    """

    def __init__(self):
        self._queue: "queue.Queue[tuple]" = queue.Queue()

    def attach(self, future: futures.Future, callback: GatewayCallback) -> None:
        future.add_done_callback(lambda f: self._queue.put((callback, f)))

    def process_pending(self, block: bool = False, timeout: Optional[float] = None) -> int:
        """Run queued callbacks on the calling thread.

        Args:
            block: wait for at least one message if the queue is empty
            timeout: how long to wait when blocking

        Returns:
            The number of callbacks delivered.
        """
        delivered = 0
        try:
            callback, future = self._queue.get(block=block, timeout=timeout)
        except queue.Empty:
            return delivered

        while True:
            deliver(callback, future)
            delivered += 1
            try:
                callback, future = self._queue.get_nowait()
            except queue.Empty:
                return delivered


class Gateway:
    """
    Constructs a new gateway client.

    Args:
        merchant_id: the gateway merchant id
        region: the gateway region to target
        options: transport overrides, see http_client.DEFAULT_CONFIG
        executor: executor for the async shapes; a thread pool owned by this
            instance is created on first use when omitted
        max_workers: size of the owned thread pool
    """

    def __init__(
        self,
        merchant_id: Optional[str] = None,
        region: Optional[Region] = None,
        options: Optional[Dict[str, Any]] = None,
        executor: Optional[futures.Executor] = None,
        max_workers: int = DEFAULT_MAX_WORKERS,
    ):
        self.builder = RequestBuilder(merchant_id, region)
        self.options = dict(options or {})
        self._executor = executor
        self._owns_executor = executor is None
        self._max_workers = max_workers
        self._executor_lock = threading.Lock()

    # ---- configuration ----

    @property
    def merchant_id(self) -> Optional[str]:
        return self.builder.merchant_id

    @merchant_id.setter
    def merchant_id(self, merchant_id: Optional[str]) -> None:
        self.builder.merchant_id = merchant_id

    @property
    def region(self) -> Optional[Region]:
        return self.builder.region

    @region.setter
    def region(self, region: Optional[Region]) -> None:
        self.builder.region = region

    def set_merchant_id(self, merchant_id: str) -> "Gateway":
        self.merchant_id = merchant_id
        return self

    def set_region(self, region: Region) -> "Gateway":
        self.region = region
        return self

    @property
    def executor(self) -> futures.Executor:
        with self._executor_lock:
            if self._executor is None:
                self._executor = futures.ThreadPoolExecutor(
                    max_workers=self._max_workers, thread_name_prefix="gateway"
                )
            return self._executor

    def close(self) -> None:
        with self._executor_lock:
            if self._owns_executor and self._executor is not None:
                self._executor.shutdown(wait=True)
                self._executor = None

    def __enter__(self) -> "Gateway":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    # ---- execution ----

    def execute(self, request: GatewayRequest) -> GatewayMap:
        return http_client.execute(request, self.options)

    def submit(
        self,
        request: GatewayRequest,
        callback: Optional[GatewayCallback] = None,
        handler: Optional[CallbackHandler] = None,
    ) -> futures.Future:
        """Run a request on the executor.

        With a callback and a handler, the callback runs on whichever thread
        drains the handler; with a callback alone, it runs on the worker.
        """
        logger.debug(f"Submitting {request.method.value} {request.url}")
        future = self.executor.submit(self.execute, request)
        if callback is not None:
            if handler is not None:
                handler.attach(future, callback)
            else:
                future.add_done_callback(lambda f: deliver(callback, f))
        return future

    # ---- operations ----

    def update_session(
        self, session_id: str, api_version: ApiVersion, payload: Optional[Mapping[str, Any]] = None
    ) -> GatewayMap:
        """Update a gateway session with the provided information.

        The API version MUST match the version used when the session was created.
        """
        request = self.builder.build_update_session_request(session_id, api_version, payload)
        return self.execute(request)

    def update_session_async(
        self,
        session_id: str,
        api_version: ApiVersion,
        payload: Optional[Mapping[str, Any]] = None,
        callback: Optional[GatewayCallback] = None,
        handler: Optional[CallbackHandler] = None,
    ) -> futures.Future:
        request = self.builder.build_update_session_request(session_id, api_version, payload)
        return self.submit(request, callback, handler)

    def initiate_authentication(
        self,
        session_id: str,
        order_id: str,
        transaction_id: str,
        api_version: ApiVersion,
        payload: Optional[Mapping[str, Any]] = None,
    ) -> GatewayMap:
        """Start payer authentication for an order transaction.

        The response's ``authentication.version`` tells which 3-D Secure flow
        (if any) the card supports.
        """
        request = self.builder.build_initiate_authentication_request(
            session_id, order_id, transaction_id, api_version, payload
        )
        return self.execute(request)

    def initiate_authentication_async(
        self,
        session_id: str,
        order_id: str,
        transaction_id: str,
        api_version: ApiVersion,
        payload: Optional[Mapping[str, Any]] = None,
        callback: Optional[GatewayCallback] = None,
        handler: Optional[CallbackHandler] = None,
    ) -> futures.Future:
        request = self.builder.build_initiate_authentication_request(
            session_id, order_id, transaction_id, api_version, payload
        )
        return self.submit(request, callback, handler)

    def authenticate_payer(
        self,
        session_id: str,
        order_id: str,
        transaction_id: str,
        api_version: ApiVersion,
        payload: Optional[Mapping[str, Any]] = None,
    ) -> GatewayMap:
        request = self.builder.build_authenticate_payer_request(
            session_id, order_id, transaction_id, api_version, payload
        )
        return self.execute(request)

    def authenticate_payer_async(
        self,
        session_id: str,
        order_id: str,
        transaction_id: str,
        api_version: ApiVersion,
        payload: Optional[Mapping[str, Any]] = None,
        callback: Optional[GatewayCallback] = None,
        handler: Optional[CallbackHandler] = None,
    ) -> futures.Future:
        request = self.builder.build_authenticate_payer_request(
            session_id, order_id, transaction_id, api_version, payload
        )
        return self.submit(request, callback, handler)
