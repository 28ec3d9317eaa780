import base64

from gateway_sdk.auth import create_auth_header


def test_known_header():
    assert create_auth_header("MERCHANT_ID", "somesession") == "Basic bWVyY2hhbnQuTUVSQ0hBTlRfSUQ6c29tZXNlc3Npb24="


def test_credential_format():
    header = create_auth_header("TEST123", "SESSION0001")
    scheme, encoded = header.split(" ")
    assert scheme == "Basic"
    assert base64.b64decode(encoded).decode("utf-8") == "merchant.TEST123:SESSION0001"


def test_non_ascii_is_utf8_encoded():
    header = create_auth_header("MÉRCHANT", "séssion")
    encoded = header[len("Basic "):]
    assert base64.b64decode(encoded) == "merchant.MÉRCHANT:séssion".encode("utf-8")


def test_long_values_are_not_wrapped():
    header = create_auth_header("M" * 200, "S" * 200)
    assert "\n" not in header
