"""
Request dispatcher with SigV4 signing and retries

This module turns a resolved :class:`ApiRequest` into a :class:`SignedRequest`
(default headers, timestamp, host, Authorization) and sends it through an
HTTP transport, retrying per the configured :class:`RetryPolicy`.
"""

import json
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict, Optional, Tuple, Union
from urllib.parse import urlparse

from requests.structures import CaseInsensitiveDict

from ..exceptions import ConfigurationError, ResponseError, ValidationError
from ..signing.constants import (
    ACCEPT,
    AUTHORIZATION,
    CONTENT_TYPE,
    DEFAULT_ACCEPT_TYPE,
    DEFAULT_CONTENT_TYPE,
    DEFAULT_SERVICE,
    HOST,
    JSON_CONTENT_TYPE,
    X_AMZ_DATE,
    X_AMZ_SECURITY_TOKEN,
)
from ..signing.canonical_request import build_canonical_query_string
from ..signing.sigv4_signer import SigV4Signer
from ..signing.types import Credentials, SigningResult
from ..signing.utils import format_amz_date, utc_now
from .retry import RetryPolicy
from .transport import HttpTransport, RequestsTransport
from .types import ApiRequest, HttpResponse, SignedRequest

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DispatcherConfig:
    """
    Immutable dispatcher configuration

    Attributes:
        endpoint: scheme://host[:port] every request path is appended to
        credentials: Credentials to sign with, None for unsigned requests
        region: AWS region (required when signing)
        service: Service name (required when signing)
        host: Explicit host header value, defaults to the endpoint hostname
        default_content_type: Content-Type used when the request sets none
        default_accept_type: Accept used when the request sets none
        system_clock_offset_ms: Correction applied to the local clock
        retry_policy: Retry policy, None to issue a single attempt
        debug_logging: Log canonical requests and strings to sign
    """
    endpoint: str
    credentials: Optional[Credentials] = None
    region: Optional[str] = None
    service: str = DEFAULT_SERVICE
    host: Optional[str] = None
    default_content_type: Optional[str] = DEFAULT_CONTENT_TYPE
    default_accept_type: Optional[str] = DEFAULT_ACCEPT_TYPE
    system_clock_offset_ms: float = 0
    retry_policy: Optional[RetryPolicy] = None
    debug_logging: bool = False

    def __post_init__(self):
        """Validate dispatcher configuration"""
        if not self.endpoint:
            raise ConfigurationError("endpoint must be defined", "MISSING_ENDPOINT")

        parsed = urlparse(self.endpoint)
        if parsed.scheme not in ('http', 'https') or not parsed.netloc:
            raise ConfigurationError(f"Invalid endpoint format: {self.endpoint}", "INVALID_ENDPOINT")

        if self.credentials is not None:
            if not self.region:
                raise ConfigurationError("region must be defined when signing requests", "MISSING_REGION")
            if not self.service:
                raise ConfigurationError("serviceName must be defined when signing requests", "MISSING_SERVICE")

        if isinstance(self.system_clock_offset_ms, bool) or not isinstance(self.system_clock_offset_ms, (int, float)):
            raise ConfigurationError(
                f"system_clock_offset_ms must be a number, got {self.system_clock_offset_ms!r}",
                "INVALID_CLOCK_OFFSET"
            )

        if self.retry_policy is not None and not isinstance(self.retry_policy, RetryPolicy):
            raise ConfigurationError("retry_policy must be a RetryPolicy", "INVALID_RETRY_POLICY")

    @property
    def signing_enabled(self) -> bool:
        return self.credentials is not None


class RequestDispatcher:
    """
    Signs and sends API requests

    The dispatcher keeps no per-request state, so one instance can serve any
    number of concurrent ``make_request`` calls.
    """

    def __init__(
        self,
        config: DispatcherConfig,
        transport: Optional[HttpTransport] = None,
        clock: Optional[Callable[[], datetime]] = None
    ):
        """
        Initialize the dispatcher.

        Args:
            config: Dispatcher configuration
            transport: HTTP transport (a RequestsTransport by default)
            clock: Function returning the current time, for signing
        """
        self.config = config
        self.transport = transport or RequestsTransport()
        self.clock = clock or utc_now
        self.signer = (
            SigV4Signer(config.credentials, config.region, config.service)
            if config.credentials else None
        )

        if self.signer:
            logger.debug(f"Request signing enabled for region {config.region}, service {config.service}")
        else:
            logger.debug("No credentials configured; requests will be sent unsigned")

    def _normalize_headers(self, headers: Optional[Dict[str, Any]]) -> CaseInsensitiveDict:
        normalized = CaseInsensitiveDict()
        for name, value in (headers or {}).items():
            if value is not None:
                normalized[name] = str(value)
        return normalized

    def _normalize_query_params(self, query_params: Optional[Dict[str, Any]]) -> Dict[str, str]:
        return {
            str(name): str(value)
            for name, value in (query_params or {}).items()
            if value is not None
        }

    def _serialize_body(self, body: Any, content_type: Optional[str]) -> Union[str, bytes, None]:
        """
        Serialize the request body for signing and sending.

        Args:
            body: Body from the request descriptor
            content_type: Effective Content-Type header value

        Returns:
            str, bytes or None

        Raises:
            ValidationError: If a structured body has a non-JSON content type
        """
        if body is None or isinstance(body, (str, bytes)):
            return body

        media_type = (content_type or '').split(';')[0].strip().lower()
        if media_type != JSON_CONTENT_TYPE:
            raise ValidationError(
                f"Cannot serialize {type(body).__name__} body for content type {content_type!r}",
                "UNSERIALIZABLE_BODY",
                {"content_type": content_type}
            )

        try:
            return json.dumps(body, separators=(',', ':'))
        except (TypeError, ValueError) as e:
            raise ValidationError(f"Request body is not JSON serializable: {e}", "UNSERIALIZABLE_BODY")

    def _resolve_host(self) -> str:
        if self.config.host:
            return self.config.host
        return urlparse(self.config.endpoint).hostname

    def _build_url(self, path: str, query_params: Dict[str, str]) -> str:
        url = self.config.endpoint + path
        query_string = build_canonical_query_string(query_params)
        if query_string:
            url += '?' + query_string
        return url

    def build_signed_request(self, request: ApiRequest) -> SignedRequest:
        """
        Build the outbound call for a request, signing it when credentials
        are configured.

        Args:
            request: Request descriptor

        Returns:
            SignedRequest: Final method, URL, headers, body and timeout

        Raises:
            ValidationError: If the verb or path is missing, or the body
                cannot be serialized
        """
        signed, _ = self.prepare_request(request)
        return signed

    def prepare_request(self, request: ApiRequest) -> Tuple[SignedRequest, Optional[SigningResult]]:
        """
        Build the outbound call and return the signing details with it.

        Args:
            request: Request descriptor

        Returns:
            tuple: SignedRequest and SigningResult (None when unsigned)

        Raises:
            ValidationError: If the verb or path is missing, or the body
                cannot be serialized
        """
        if not request.verb:
            raise ValidationError("verb must be defined", "MISSING_VERB")
        if request.path is None:
            raise ValidationError("path must be defined", "MISSING_PATH")

        verb = request.verb.upper()
        path = request.path
        query_params = self._normalize_query_params(request.query_params)
        timeout = request.timeout or 0
        headers = self._normalize_headers(request.headers)

        # Content negotiation defaults
        if CONTENT_TYPE not in headers and self.config.default_content_type:
            headers[CONTENT_TYPE] = self.config.default_content_type
        if ACCEPT not in headers and self.config.default_accept_type:
            headers[ACCEPT] = self.config.default_accept_type

        body = self._serialize_body(request.body, headers.get(CONTENT_TYPE))
        if body in ('', b''):
            body = None

        signing_result = None
        if self.signer:
            signing_result = self._sign_headers(verb, path, query_params, headers, body)
        else:
            logger.debug(f"Sending unsigned {verb} request to {path}")

        signed_request = SignedRequest(
            url=self._build_url(path, query_params),
            method=verb,
            headers=dict(headers),
            body=body,
            timeout=timeout,
        )
        return signed_request, signing_result

    def _sign_headers(
        self,
        verb: str,
        path: str,
        query_params: Dict[str, str],
        headers: CaseInsensitiveDict,
        body: Union[str, bytes, None]
    ) -> SigningResult:
        """Sign in place: adds Authorization and session token headers."""
        # A body-less request must not carry Content-Type in the signature
        if body is None:
            headers.pop(CONTENT_TYPE, None)

        # One timestamp for both the header and the credential scope
        date_time = format_amz_date(self.clock(), self.config.system_clock_offset_ms)
        headers[X_AMZ_DATE] = date_time
        headers[HOST] = self._resolve_host()

        result = self.signer.sign(verb, path, query_params, headers, body, date_time)

        if self.config.debug_logging:
            logger.debug(f"Canonical request:\n{result.canonical_request}")
            logger.debug(f"String to sign:\n{result.string_to_sign}")

        headers[AUTHORIZATION] = result.authorization
        session_token = self.config.credentials.session_token
        if session_token:
            headers[X_AMZ_SECURITY_TOKEN] = session_token

        # Host is implied by the target URL
        del headers[HOST]

        if CONTENT_TYPE not in headers and self.config.default_content_type:
            headers[CONTENT_TYPE] = self.config.default_content_type

        return result

    async def _send_once(self, signed_request: SignedRequest) -> HttpResponse:
        response = await self.transport.send(signed_request)

        if not response.ok:
            message = f"HTTP {response.status_code}"
            if response.reason:
                message += f": {response.reason}"
            raise ResponseError(
                f"Server request failed: {message}",
                response,
                signed_request,
                details={'status_code': response.status_code}
            )

        return response

    async def dispatch(self, signed_request: SignedRequest) -> HttpResponse:
        """
        Send an already signed request, applying the retry policy.

        Retries replay ``signed_request`` verbatim; it is never re-signed.

        Args:
            signed_request: Request to send

        Returns:
            HttpResponse: Successful (2xx) response

        Raises:
            TransportError: If no response could be obtained
            ResponseError: If the final response has a non-2xx status
        """
        policy = self.config.retry_policy
        if policy is not None and policy.enabled:
            return await policy.execute(lambda: self._send_once(signed_request))
        return await self._send_once(signed_request)

    async def make_request(self, request: ApiRequest) -> HttpResponse:
        """
        Sign and send a request.

        Args:
            request: Request descriptor

        Returns:
            HttpResponse: Successful (2xx) response

        Raises:
            ValidationError: If the request descriptor is malformed
            TransportError: If no response could be obtained
            ResponseError: If the final response has a non-2xx status
        """
        signed_request = self.build_signed_request(request)
        logger.debug(f"Dispatching {signed_request.method} {signed_request.url}")
        return await self.dispatch(signed_request)

    async def close(self) -> None:
        """Close the underlying transport."""
        await self.transport.close()
