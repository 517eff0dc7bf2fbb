"""
Test suite for the request dispatcher

Covers signed and unsigned request building, header finalization, URL
construction and retry behaviour through a scripted transport.
"""

import asyncio
from datetime import timedelta

import pytest

from apigateway_sdk.exceptions import ConfigurationError, ResponseError, ValidationError
from apigateway_sdk.http_clients import (
    ApiRequest,
    DispatcherConfig,
    FixedDelay,
    RequestDispatcher,
    RetryPolicy,
)
from apigateway_sdk.signing import Credentials

from conftest import (
    ACCESS_KEY,
    SECRET_KEY,
    REGION,
    SERVICE,
    VANILLA_SIGNATURE,
    VANILLA_TIME,
    FakeTransport,
)


def signing_config(**overrides):
    options = dict(
        endpoint="https://example.amazonaws.com",
        credentials=Credentials(ACCESS_KEY, SECRET_KEY),
        region=REGION,
        service=SERVICE,
    )
    options.update(overrides)
    return DispatcherConfig(**options)


def make_dispatcher(config, transport=None, clock=None):
    return RequestDispatcher(config, transport or FakeTransport(), clock or (lambda: VANILLA_TIME))


class TestDispatcherConfig:
    """Test dispatcher configuration validation"""

    def test_unsigned_needs_only_endpoint(self):
        config = DispatcherConfig(endpoint="https://example.com")
        assert not config.signing_enabled

    def test_missing_endpoint(self):
        with pytest.raises(ConfigurationError):
            DispatcherConfig(endpoint="")

    def test_invalid_endpoint(self):
        with pytest.raises(ConfigurationError):
            DispatcherConfig(endpoint="example.com")

    def test_signing_requires_region(self):
        with pytest.raises(ConfigurationError) as exc_info:
            signing_config(region=None)
        assert exc_info.value.error_code == "MISSING_REGION"

    def test_signing_requires_service(self):
        with pytest.raises(ConfigurationError) as exc_info:
            signing_config(service="")
        assert exc_info.value.error_code == "MISSING_SERVICE"

    def test_clock_offset_must_be_number(self):
        with pytest.raises(ConfigurationError):
            signing_config(system_clock_offset_ms="1000")

    def test_retry_policy_type(self):
        with pytest.raises(ConfigurationError):
            signing_config(retry_policy=3)


class TestSignedRequestBuilding:
    """Test build_signed_request with credentials"""

    def test_get_vanilla(self):
        """Test the dispatcher reproduces the AWS get-vanilla signature"""
        dispatcher = make_dispatcher(signing_config(default_accept_type=None))

        signed = dispatcher.build_signed_request(ApiRequest(verb="GET", path="/"))

        assert signed.method == "GET"
        assert signed.url == "https://example.amazonaws.com/"
        assert signed.headers["x-amz-date"] == "20150830T123600Z"
        assert signed.headers["Authorization"] == (
            "AWS4-HMAC-SHA256 Credential=AKIDEXAMPLE/20150830/us-east-1/service/aws4_request, "
            f"SignedHeaders=host;x-amz-date, Signature={VANILLA_SIGNATURE}"
        )

    def test_host_not_sent(self):
        signed = make_dispatcher(signing_config()).build_signed_request(ApiRequest(verb="GET", path="/"))
        assert "host" not in {name.lower() for name in signed.headers}

    def test_empty_body_excludes_content_type_from_signature(self):
        """Body-less requests sign without Content-Type but still send the default"""
        dispatcher = make_dispatcher(signing_config())

        signed, result = dispatcher.prepare_request(ApiRequest(verb="POST", path="/pets"))

        assert "content-type" not in result.canonical_request
        assert "content-type" not in result.signed_headers.split(";")
        assert signed.headers["Content-Type"] == "application/json"
        assert signed.body is None

    def test_explicit_content_type_dropped_for_empty_body(self):
        dispatcher = make_dispatcher(signing_config())

        signed, result = dispatcher.prepare_request(
            ApiRequest(verb="GET", path="/", headers={"Content-Type": "text/plain"}, body="")
        )

        assert "content-type" not in result.signed_headers
        assert signed.headers["Content-Type"] == "application/json"

    def test_body_signs_content_type(self):
        dispatcher = make_dispatcher(signing_config())

        signed, result = dispatcher.prepare_request(ApiRequest(verb="POST", path="/pets", body='{"a":1}'))

        assert result.signed_headers == "accept;content-type;host;x-amz-date"
        assert signed.body == '{"a":1}'

    def test_structured_body_serialized_compactly(self):
        dispatcher = make_dispatcher(signing_config())

        signed = dispatcher.build_signed_request(
            ApiRequest(verb="POST", path="/pets", body={"name": "rex", "tags": [1, 2]})
        )

        assert signed.body == '{"name":"rex","tags":[1,2]}'

    def test_structured_body_with_non_json_content_type(self):
        dispatcher = make_dispatcher(signing_config())

        with pytest.raises(ValidationError):
            dispatcher.build_signed_request(
                ApiRequest(verb="POST", path="/", headers={"Content-Type": "text/plain"}, body={"a": 1})
            )

    def test_json_content_type_with_charset(self):
        dispatcher = make_dispatcher(signing_config())

        signed = dispatcher.build_signed_request(
            ApiRequest(verb="PUT", path="/", headers={"content-type": "application/json; charset=utf-8"}, body=[1])
        )

        assert signed.body == "[1]"
        assert signed.headers["content-type"] == "application/json; charset=utf-8"

    def test_caller_accept_kept(self):
        dispatcher = make_dispatcher(signing_config())

        signed = dispatcher.build_signed_request(ApiRequest(verb="GET", path="/", headers={"accept": "text/csv"}))

        assert signed.headers["accept"] == "text/csv"
        assert "Accept" not in signed.headers

    def test_session_token_sent_but_not_signed(self):
        config = signing_config(credentials=Credentials(ACCESS_KEY, SECRET_KEY, "session-token"))

        signed, result = make_dispatcher(config).prepare_request(ApiRequest(verb="GET", path="/"))

        assert signed.headers["x-amz-security-token"] == "session-token"
        assert "x-amz-security-token" not in result.signed_headers

    def test_no_session_token_header_without_token(self):
        signed = make_dispatcher(signing_config()).build_signed_request(ApiRequest(verb="GET", path="/"))
        assert "x-amz-security-token" not in signed.headers

    def test_clock_offset_applied(self):
        dispatcher = make_dispatcher(signing_config(system_clock_offset_ms=60_000))

        signed, result = dispatcher.prepare_request(ApiRequest(verb="GET", path="/"))

        assert signed.headers["x-amz-date"] == "20150830T123700Z"
        assert result.date_time == "20150830T123700Z"

    def test_one_timestamp_for_header_and_scope(self):
        ticks = iter([VANILLA_TIME, VANILLA_TIME + timedelta(days=1)])
        dispatcher = make_dispatcher(signing_config(), clock=lambda: next(ticks))

        signed, result = dispatcher.prepare_request(ApiRequest(verb="GET", path="/"))

        assert signed.headers["x-amz-date"] == result.date_time
        assert result.credential_scope.startswith(result.date_time[:8])

    def test_host_override(self):
        dispatcher = make_dispatcher(signing_config(host="api.example.com:8443"))

        _, result = dispatcher.prepare_request(ApiRequest(verb="GET", path="/"))

        assert "host:api.example.com:8443\n" in result.canonical_request

    def test_query_string_sorted_and_encoded(self):
        dispatcher = make_dispatcher(signing_config())

        signed, result = dispatcher.prepare_request(
            ApiRequest(verb="GET", path="/pets", query_params={"type": "dog's", "limit": 10})
        )

        assert signed.url == "https://example.amazonaws.com/pets?limit=10&type=dog%27s"
        assert result.canonical_request.split("\n")[2] == "limit=10&type=dog%27s"

    def test_verb_uppercased(self):
        signed = make_dispatcher(signing_config()).build_signed_request(ApiRequest(verb="delete", path="/pets/1"))
        assert signed.method == "DELETE"

    def test_timeout_carried(self):
        signed = make_dispatcher(signing_config()).build_signed_request(
            ApiRequest(verb="GET", path="/", timeout=5000)
        )
        assert signed.timeout == 5000

    def test_none_header_values_dropped(self):
        signed = make_dispatcher(signing_config()).build_signed_request(
            ApiRequest(verb="GET", path="/", headers={"X-Trace": None, "X-Count": 3})
        )
        assert "X-Trace" not in signed.headers
        assert signed.headers["X-Count"] == "3"

    def test_missing_verb(self):
        with pytest.raises(ValidationError) as exc_info:
            make_dispatcher(signing_config()).build_signed_request(ApiRequest(verb="", path="/"))
        assert exc_info.value.error_code == "MISSING_VERB"

    def test_missing_path(self):
        with pytest.raises(ValidationError) as exc_info:
            make_dispatcher(signing_config()).build_signed_request(ApiRequest(verb="GET", path=None))
        assert exc_info.value.error_code == "MISSING_PATH"


class TestUnsignedRequests:
    """Test pass-through without credentials"""

    def test_no_signing_headers(self):
        dispatcher = make_dispatcher(DispatcherConfig(endpoint="https://example.com"))

        signed, result = dispatcher.prepare_request(
            ApiRequest(verb="GET", path="/pets", query_params={"b": "2", "a": "1"})
        )

        assert result is None
        assert "Authorization" not in signed.headers
        assert "x-amz-date" not in signed.headers
        assert signed.headers["Content-Type"] == "application/json"
        assert signed.headers["Accept"] == "application/json"
        assert signed.url == "https://example.com/pets?a=1&b=2"

    def test_caller_headers_forwarded(self):
        dispatcher = make_dispatcher(DispatcherConfig(endpoint="https://example.com"))

        signed = dispatcher.build_signed_request(ApiRequest(verb="GET", path="/", headers={"x-api-key": "k"}))

        assert signed.headers["x-api-key"] == "k"


class TestMakeRequest:
    """Test sending through the transport"""

    @pytest.mark.asyncio
    async def test_success(self):
        transport = FakeTransport([200])
        dispatcher = make_dispatcher(signing_config(), transport)

        response = await dispatcher.make_request(ApiRequest(verb="GET", path="/"))

        assert response.status_code == 200
        assert len(transport.sent) == 1

    @pytest.mark.asyncio
    async def test_non_2xx_raises_response_error(self):
        dispatcher = make_dispatcher(signing_config(), FakeTransport([403]))

        with pytest.raises(ResponseError) as exc_info:
            await dispatcher.make_request(ApiRequest(verb="GET", path="/"))

        assert exc_info.value.http_status == 403
        assert exc_info.value.request.method == "GET"

    @pytest.mark.asyncio
    async def test_validation_error_before_sending(self):
        transport = FakeTransport()
        dispatcher = make_dispatcher(signing_config(), transport)

        with pytest.raises(ValidationError):
            await dispatcher.make_request(ApiRequest(verb=None, path="/"))

        assert transport.sent == []

    @pytest.mark.asyncio
    async def test_retries_replay_same_signed_request(self):
        """Retries resend the originally signed request without re-signing"""
        ticks = iter(VANILLA_TIME + timedelta(seconds=i) for i in range(10))
        transport = FakeTransport([500, 500, 500, 500, 200])
        config = signing_config(retry_policy=RetryPolicy(max_retries=4, delay=FixedDelay(0)))
        dispatcher = make_dispatcher(config, transport, clock=lambda: next(ticks))

        response = await dispatcher.make_request(ApiRequest(verb="GET", path="/"))

        assert response.status_code == 200
        assert len(transport.sent) == 5
        assert all(request is transport.sent[0] for request in transport.sent)
        assert transport.sent[0].headers["x-amz-date"] == "20150830T123600Z"

    @pytest.mark.asyncio
    async def test_retries_exhausted(self):
        transport = FakeTransport([500])
        config = signing_config(retry_policy=RetryPolicy(max_retries=4, delay=FixedDelay(0)))

        with pytest.raises(ResponseError):
            await make_dispatcher(config, transport).make_request(ApiRequest(verb="GET", path="/"))

        assert len(transport.sent) == 5

    @pytest.mark.asyncio
    async def test_network_error_retried(self, network_failure):
        transport = FakeTransport([network_failure, 200])
        config = signing_config(retry_policy=RetryPolicy(max_retries=1, delay=FixedDelay(0)))

        response = await make_dispatcher(config, transport).make_request(ApiRequest(verb="POST", path="/"))

        assert response.status_code == 200
        assert len(transport.sent) == 2

    @pytest.mark.asyncio
    async def test_concurrent_requests_independent(self):
        transport = FakeTransport([200])
        dispatcher = make_dispatcher(signing_config(), transport)

        responses = await asyncio.gather(*[
            dispatcher.make_request(ApiRequest(verb="GET", path=f"/pets/{i}")) for i in range(5)
        ])

        assert all(response.ok for response in responses)
        assert sorted(request.url for request in transport.sent) == [
            f"https://example.amazonaws.com/pets/{i}" for i in range(5)
        ]

    @pytest.mark.asyncio
    async def test_close_closes_transport(self):
        transport = FakeTransport()
        await make_dispatcher(signing_config(), transport).close()
        assert transport.closed
