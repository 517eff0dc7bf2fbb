"""
Shared fixtures for the API Gateway SDK test suite
"""

from datetime import datetime, timezone

import pytest

from apigateway_sdk.exceptions import TransportError
from apigateway_sdk.http_clients.types import HttpResponse

# AWS SigV4 test suite credentials (get-vanilla)
ACCESS_KEY = "AKIDEXAMPLE"
SECRET_KEY = "wJalrXUtnFEMI/K7MDENG+bPxRfiCYEXAMPLEKEY"
REGION = "us-east-1"
SERVICE = "service"
VANILLA_TIME = datetime(2015, 8, 30, 12, 36, 0, tzinfo=timezone.utc)
VANILLA_SIGNATURE = "5fa00fa31553b73ebf1942676e86291e8372ff2a2260956d9b8aae1d763fbf31"


class FakeTransport:
    """Transport returning scripted responses and recording every request sent"""

    def __init__(self, responses=None):
        self.responses = list(responses or [])
        self.sent = []
        self.closed = False

    async def send(self, request):
        self.sent.append(request)
        if self.responses:
            outcome = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        else:
            outcome = 200

        if isinstance(outcome, Exception):
            raise outcome
        if isinstance(outcome, HttpResponse):
            return outcome
        return HttpResponse(status_code=outcome, headers={}, content=b'{"ok":true}', url=request.url)

    async def close(self):
        self.closed = True


@pytest.fixture
def fake_transport():
    return FakeTransport()


@pytest.fixture
def frozen_clock():
    return lambda: VANILLA_TIME


@pytest.fixture
def network_failure():
    return TransportError("Connection error: refused", None, "CONNECTION_ERROR")
