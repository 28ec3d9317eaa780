import pytest

from gateway_sdk import GatewayMap, Method, Region, RequestBuilder
from gateway_sdk.auth import create_auth_header
from gateway_sdk.errors import ConfigError, ValidationError
from gateway_sdk.gateway_request import USER_AGENT
from gateway_sdk.request_builder import parse_api_version

from .conftest import MERCHANT_ID, SESSION_ID


# =============================================================================
# Api version
# =============================================================================

class TestParseApiVersion:

    @pytest.mark.parametrize("value, expected", [("39", 39), ("61", 61), (50, 50), (" 45 ", 45)])
    def test_valid(self, value, expected):
        assert parse_api_version(value) == expected

    @pytest.mark.parametrize("value", ["38", "0", "-1", "abc", "", None, "50.5"])
    def test_invalid(self, value):
        with pytest.raises(ValidationError):
            parse_api_version(value)


# =============================================================================
# URLs
# =============================================================================

class TestUrls:

    @pytest.mark.parametrize("region, host", [
        (Region.ASIA_PACIFIC, "ap-gateway.mastercard.com"),
        (Region.EUROPE, "eu-gateway.mastercard.com"),
        (Region.NORTH_AMERICA, "na-gateway.mastercard.com"),
        (Region.TEST, "test-gateway.mastercard.com"),
        (Region.MTF, "test-gateway.mastercard.com"),
    ])
    def test_region_hosts(self, region, host):
        builder = RequestBuilder(MERCHANT_ID, region)
        assert builder.api_url("61") == f"https://{host}/api/rest/version/61"

    def test_update_session_url(self, builder):
        assert builder.update_session_url("sess1", "61") == (
            "https://test-gateway.mastercard.com/api/rest/version/61/merchant/MERCHANT_ID/session/sess1"
        )

    def test_authentication_url(self, builder):
        assert builder.authentication_url("order1", "txn1", 52) == (
            "https://test-gateway.mastercard.com/api/rest/version/52"
            "/merchant/MERCHANT_ID/order/order1/transaction/txn1"
        )

    def test_missing_merchant_id(self):
        with pytest.raises(ConfigError):
            RequestBuilder(None, Region.TEST).update_session_url("s", "61")

    def test_missing_region(self):
        with pytest.raises(ConfigError):
            RequestBuilder(MERCHANT_ID, None).update_session_url("s", "61")

    def test_config_is_checked_before_version(self):
        with pytest.raises(ConfigError):
            RequestBuilder(None, None).api_url("1")

    def test_config_is_checked_before_ids(self):
        builder = RequestBuilder(MERCHANT_ID, None)
        with pytest.raises(ConfigError):
            builder.update_session_url("", "61")
        with pytest.raises(ConfigError):
            builder.authentication_url("", None, "61")
        with pytest.raises(ConfigError):
            builder.build_initiate_authentication_request("", "order1", "txn1", "61")

    def test_empty_ids(self, builder):
        with pytest.raises(ValidationError):
            builder.update_session_url("", "61")
        with pytest.raises(ValidationError):
            builder.authentication_url("", "txn", "61")
        with pytest.raises(ValidationError):
            builder.authentication_url("order", None, "61")


# =============================================================================
# Update session
# =============================================================================

class TestUpdateSession:

    @pytest.mark.parametrize("version", ["39", "49"])
    def test_below_50_uses_api_operation(self, builder, version):
        request = builder.build_update_session_request(SESSION_ID, version, {"order.amount": "1.00"})

        assert request.method is Method.PUT
        assert request.payload["apiOperation"] == "UPDATE_PAYER_DATA"
        assert request.payload["device.browser"] == USER_AGENT
        assert request.payload["order.amount"] == "1.00"
        assert "Authorization" not in request.headers

    def test_from_50_uses_auth_header(self, builder):
        request = builder.build_update_session_request(SESSION_ID, "50", {"order.amount": "1.00"})

        assert "apiOperation" not in request.payload
        assert request.payload["device.browser"] == USER_AGENT
        assert request.headers["Authorization"] == "Basic bWVyY2hhbnQuTUVSQ0hBTlRfSUQ6c29tZXNlc3Npb24="

    def test_without_payload(self, builder):
        request = builder.build_update_session_request(SESSION_ID, "61")
        assert request.payload.to_dict() == {"device": {"browser": USER_AGENT}}

    def test_caller_payload_is_not_mutated(self, builder):
        payload = GatewayMap().set("sourceOfFunds.provided.card.number", "5123450000000008")
        request = builder.build_update_session_request(SESSION_ID, "45", payload)

        request.payload.set("sourceOfFunds.provided.card.number", "changed")
        assert payload.to_dict() == {"sourceOfFunds": {"provided": {"card": {"number": "5123450000000008"}}}}

    def test_invalid_version(self, builder):
        with pytest.raises(ValidationError):
            builder.build_update_session_request(SESSION_ID, "38")

    def test_payload_type_mismatch(self, builder):
        with pytest.raises(ValidationError):
            builder.build_update_session_request(SESSION_ID, "61", {"device": "not a map"})


# =============================================================================
# Authentication
# =============================================================================

class TestAuthentication:

    def test_initiate_authentication(self, builder):
        request = builder.build_initiate_authentication_request(
            SESSION_ID, "order1", "txn1", "52", {"authentication.channel": "PAYER_APP"}
        )

        assert request.url.endswith("/merchant/MERCHANT_ID/order/order1/transaction/txn1")
        assert request.payload.to_dict() == {
            "authentication": {"channel": "PAYER_APP"},
            "session": {"id": SESSION_ID},
            "apiOperation": "INITIATE_AUTHENTICATION",
        }
        assert request.headers == {"Authorization": create_auth_header(MERCHANT_ID, SESSION_ID)}

    def test_authenticate_payer(self, builder):
        request = builder.build_authenticate_payer_request(SESSION_ID, "order1", "txn1", "52")

        assert request.payload["apiOperation"] == "AUTHENTICATE_PAYER"
        assert request.payload["session.id"] == SESSION_ID
        assert request.headers["Authorization"].startswith("Basic ")

    def test_missing_session(self, builder):
        with pytest.raises(ValidationError):
            builder.build_initiate_authentication_request("", "order1", "txn1", "52")

    def test_builds_are_independent(self, builder):
        first = builder.build_authenticate_payer_request(SESSION_ID, "order1", "txn1", "52")
        second = builder.build_authenticate_payer_request(SESSION_ID, "order1", "txn1", "52")

        first.payload["extra"] = True
        first.headers["X-Extra"] = "1"
        assert "extra" not in second.payload
        assert "X-Extra" not in second.headers
