import json
from unittest.mock import MagicMock

import pytest

from gateway_sdk import Gateway, Region, RequestBuilder
from gateway_sdk.threeds import BrowserChallengeSurface, ThreeDSecureListener

MERCHANT_ID = "MERCHANT_ID"
SESSION_ID = "somesession"


@pytest.fixture
def builder():
    return RequestBuilder(MERCHANT_ID, Region.TEST)


@pytest.fixture
def gateway():
    gateway = Gateway(MERCHANT_ID, Region.TEST)
    yield gateway
    gateway.close()


@pytest.fixture
def fake_response():
    """Build a stand-in for requests.Response."""

    def make(status_code=200, body=None, headers=None):
        if isinstance(body, (dict, list)):
            body = json.dumps(body)
        content = body.encode("utf-8") if isinstance(body, str) else (body or b"")
        return MagicMock(status_code=status_code, content=content, headers=headers or {})

    return make


class RecordingListener(ThreeDSecureListener):

    def __init__(self):
        self.proceeded = []
        self.failed = []

    def on_proceed(self, authentication):
        self.proceeded.append(authentication)

    def on_failure(self, authentication):
        self.failed.append(authentication)


class RecordingSurface(BrowserChallengeSurface):

    def __init__(self):
        self.presented = []

    def present(self, html, title, callback):
        self.presented.append((html, title, callback))

    @property
    def last_callback(self):
        return self.presented[-1][2]


@pytest.fixture
def listener():
    return RecordingListener()


@pytest.fixture
def surface():
    return RecordingSurface()
