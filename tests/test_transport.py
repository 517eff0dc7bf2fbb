"""
Test suite for HTTP transports

The requests transport is exercised with a mocked Session and the httpx
transport with httpx.MockTransport, so no network access is needed.
"""

from unittest.mock import Mock

import httpx
import pytest
import requests

from apigateway_sdk.exceptions import TransportError
from apigateway_sdk.http_clients import HttpTransport, RequestsTransport, HttpxTransport
from apigateway_sdk.http_clients.transport import DEFAULT_TIMEOUT, resolve_timeout
from apigateway_sdk.http_clients.types import SignedRequest


@pytest.fixture
def signed_request():
    return SignedRequest(
        url="https://example.amazonaws.com/prod/pets?a=1",
        method="POST",
        headers={"Content-Type": "application/json", "Authorization": "AWS4-HMAC-SHA256 ..."},
        body='{"name":"rex"}',
        timeout=0,
    )


def mock_session_response(status_code=200, content=b'{"ok":true}', reason="OK"):
    response = Mock()
    response.status_code = status_code
    response.headers = {"Content-Type": "application/json"}
    response.content = content
    response.url = "https://example.amazonaws.com/prod/pets?a=1"
    response.reason = reason
    return response


class TestResolveTimeout:
    """Test timeout resolution"""

    def test_zero_uses_default(self):
        assert resolve_timeout(0, DEFAULT_TIMEOUT) == DEFAULT_TIMEOUT

    def test_milliseconds_converted(self):
        assert resolve_timeout(1500, DEFAULT_TIMEOUT) == 1.5


class TestRequestsTransport:
    """Test the requests-based transport"""

    def test_implements_protocol(self):
        assert isinstance(RequestsTransport(session=Mock()), HttpTransport)

    def test_default_session_has_no_adapter_retries(self):
        transport = RequestsTransport()
        adapter = transport.session.get_adapter("https://example.com")
        assert adapter.max_retries.total == 0

    @pytest.mark.asyncio
    async def test_send(self, signed_request):
        session = Mock()
        session.request.return_value = mock_session_response()
        transport = RequestsTransport(session=session, timeout=10)

        response = await transport.send(signed_request)

        session.request.assert_called_once_with(
            "POST",
            signed_request.url,
            headers=signed_request.headers,
            data=signed_request.body,
            timeout=10,
            verify=True,
        )
        assert response.status_code == 200
        assert response.json() == {"ok": True}
        assert response.reason == "OK"

    @pytest.mark.asyncio
    async def test_non_2xx_returned_not_raised(self, signed_request):
        session = Mock()
        session.request.return_value = mock_session_response(503, b"unavailable", "Service Unavailable")

        response = await RequestsTransport(session=session).send(signed_request)

        assert response.status_code == 503
        assert not response.ok
        assert response.text == "unavailable"

    @pytest.mark.asyncio
    async def test_request_timeout_in_milliseconds(self, signed_request):
        session = Mock()
        session.request.return_value = mock_session_response()
        request = SignedRequest(url=signed_request.url, method="GET", headers={}, timeout=2500)

        await RequestsTransport(session=session).send(request)

        assert session.request.call_args.kwargs["timeout"] == 2.5

    @pytest.mark.asyncio
    async def test_timeout_mapped(self, signed_request):
        session = Mock()
        session.request.side_effect = requests.exceptions.Timeout("read timed out")

        with pytest.raises(TransportError) as exc_info:
            await RequestsTransport(session=session).send(signed_request)

        assert exc_info.value.error_code == "TIMEOUT"
        assert exc_info.value.request is signed_request

    @pytest.mark.asyncio
    async def test_connection_error_mapped(self, signed_request):
        session = Mock()
        session.request.side_effect = requests.exceptions.ConnectionError("refused")

        with pytest.raises(TransportError) as exc_info:
            await RequestsTransport(session=session).send(signed_request)

        assert exc_info.value.error_code == "CONNECTION_ERROR"

    @pytest.mark.asyncio
    async def test_other_request_exception_mapped(self, signed_request):
        session = Mock()
        session.request.side_effect = requests.exceptions.TooManyRedirects("loop")

        with pytest.raises(TransportError) as exc_info:
            await RequestsTransport(session=session).send(signed_request)

        assert exc_info.value.error_code == "TRANSPORT_ERROR"

    @pytest.mark.asyncio
    async def test_close(self):
        session = Mock()
        await RequestsTransport(session=session).close()
        session.close.assert_called_once()


class TestHttpxTransport:
    """Test the httpx-based transport"""

    @pytest.mark.asyncio
    async def test_send(self, signed_request):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(201, json={"id": 1})

        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        transport = HttpxTransport(client=client)

        response = await transport.send(signed_request)
        await transport.close()

        assert response.status_code == 201
        assert response.json() == {"id": 1}
        assert response.reason == "Created"
        assert seen[0].method == "POST"
        assert str(seen[0].url) == signed_request.url
        assert seen[0].headers["authorization"] == "AWS4-HMAC-SHA256 ..."
        assert seen[0].content == b'{"name":"rex"}'

    @pytest.mark.asyncio
    async def test_non_2xx_returned_not_raised(self, signed_request):
        client = httpx.AsyncClient(transport=httpx.MockTransport(lambda request: httpx.Response(500)))

        response = await HttpxTransport(client=client).send(signed_request)

        assert response.status_code == 500

    @pytest.mark.asyncio
    async def test_timeout_mapped(self, signed_request):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))

        with pytest.raises(TransportError) as exc_info:
            await HttpxTransport(client=client).send(signed_request)

        assert exc_info.value.error_code == "TIMEOUT"

    @pytest.mark.asyncio
    async def test_connection_error_mapped(self, signed_request):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))

        with pytest.raises(TransportError) as exc_info:
            await HttpxTransport(client=client).send(signed_request)

        assert exc_info.value.error_code == "CONNECTION_ERROR"
