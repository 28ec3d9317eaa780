import base64


def create_auth_header(merchant_id: str, session_id: str) -> str:
    """Build the Basic auth header value for a merchant session.

    The credential is ``merchant.<merchant_id>:<session_id>``, UTF-8 encoded
    and base64'd without line wrapping.
    """
    value = f"merchant.{merchant_id}:{session_id}"
    return "Basic " + base64.b64encode(value.encode("utf-8")).decode("ascii")
