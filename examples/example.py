#!/usr/bin/env python3
"""
Gateway SDK example: build requests offline, then an optional live round-trip.

Demonstrates two usage patterns:
  1. Offline: use RequestBuilder to see exactly what would be sent
  2. Live: update a session and run 3-D Secure against the test gateway,
     with the mock 3DS2 SDK standing in for a vendor SDK

The live demo needs a merchant id and a session created by your server:
  GATEWAY_MERCHANT_ID=TESTMERCHANT GATEWAY_SESSION_ID=SESSION0002... python3 example.py

The built-in pinned CA has expired; point GATEWAY_CA_CERT at a PEM file with
the gateway's current issuing CA to reach the live gateway.
"""

import json
import logging
import os
import sys
import uuid

from gateway_sdk import (
    Gateway,
    GatewayMap,
    GatewaySdkError,
    Region,
    RequestBuilder,
    ThreeDSecureCoordinator,
    ThreeDSecureListener,
)
from gateway_sdk.threeds2 import MockThreeDS2Service

API_VERSION = "61"
AMOUNT = "1.00"
CURRENCY = "USD"


def build_card_payload() -> GatewayMap:
    """Test card details for an Update Session request."""
    return (
        GatewayMap()
        .set("sourceOfFunds.provided.card.nameOnCard", "Test User")
        .set("sourceOfFunds.provided.card.number", "5123450000000008")
        .set("sourceOfFunds.provided.card.securityCode", "100")
        .set("sourceOfFunds.provided.card.expiry.month", "01")
        .set("sourceOfFunds.provided.card.expiry.year", "39")
    )


class PrintingListener(ThreeDSecureListener):

    def on_proceed(self, authentication):
        print(f"  3-D Secure completed: {authentication.result}")

    def on_failure(self, authentication):
        print(f"  3-D Secure ended in {authentication.state.name}: {authentication.result or authentication.error}")


def demo_build_requests():
    """Demo 1: build requests without sending them."""
    print("=== Demo 1: Request building (RequestBuilder) ===\n")

    builder = RequestBuilder("TESTMERCHANT", Region.TEST)

    for version in ("45", API_VERSION):
        request = builder.build_update_session_request("SESSION0001", version, build_card_payload())
        print(f"Update Session, API version {version}:")
        print(f"  URL:     {request.url}")
        print(f"  Method:  {request.method.value}")
        print(f"  Headers: {list(request.headers.keys())}")
        print(json.dumps(request.payload.to_dict(), indent=2))
        print()

    request = builder.build_initiate_authentication_request("SESSION0001", "order-1", "txn-1", API_VERSION)
    print("Initiate Authentication:")
    print(f"  URL:     {request.url}")
    print(json.dumps(request.payload.to_dict(), indent=2))


def demo_full_round_trip():
    """Demo 2: update a session and authenticate the payer."""
    print("\n=== Demo 2: Full round-trip (Gateway) ===\n")

    merchant_id = os.getenv("GATEWAY_MERCHANT_ID", "")
    session_id = os.getenv("GATEWAY_SESSION_ID", "")
    if not merchant_id or not session_id:
        print("Skipping full round-trip: GATEWAY_MERCHANT_ID / GATEWAY_SESSION_ID not set.")
        return

    options = {"ca_cert": os.getenv("GATEWAY_CA_CERT")}
    with Gateway(merchant_id, Region.TEST, options=options) as gateway:
        try:
            response = gateway.update_session(session_id, API_VERSION, build_card_payload())
            print(f"Session updated: {response.get('session.updateStatus')}")

            future = gateway.update_session_async(session_id, API_VERSION, GatewayMap().set("order.amount", AMOUNT))
            print(f"Async update: {future.result().get('session.updateStatus')}")

            order_id = str(uuid.uuid4())[:10]
            transaction_id = str(uuid.uuid4())[:10]
            coordinator = ThreeDSecureCoordinator(
                gateway, PrintingListener(), threeds2_service=MockThreeDS2Service()
            )
            authentication = coordinator.authenticate(
                session_id,
                order_id,
                transaction_id,
                API_VERSION,
                payload={"authentication.channel": "PAYER_APP", "order.currency": CURRENCY},
                payer_payload={"order.amount": AMOUNT, "order.currency": CURRENCY},
            )
            print(f"Authentication {transaction_id}: {authentication.state.name}")

        except GatewaySdkError as e:
            print(f"Error during round-trip: {e!r}", file=sys.stderr)


if __name__ == "__main__":
    logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO"))
    demo_build_requests()
    demo_full_round_trip()
