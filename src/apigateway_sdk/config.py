"""
Client configuration for the API Gateway Python SDK
"""

import re
from dataclasses import dataclass, field
from typing import Dict, Optional

from .exceptions import ConfigurationError
from .signing.constants import DEFAULT_ACCEPT_TYPE, DEFAULT_CONTENT_TYPE, DEFAULT_SERVICE
from .signing.types import Credentials
from .http_clients.retry import RetryPolicy
from .http_clients.dispatcher import DispatcherConfig
from .http_clients.transport import DEFAULT_TIMEOUT

_ENDPOINT_PATTERN = re.compile(r'^(https?://[^/?#]+)', re.IGNORECASE)


@dataclass(frozen=True)
class ClientConfig:
    """
    Configuration for an API Gateway client

    Attributes:
        invoke_url: Stage invoke URL, e.g. https://abc.execute-api.us-east-1.amazonaws.com/prod
        access_key: AWS access key (empty for unsigned requests)
        secret_key: AWS secret key (empty for unsigned requests)
        session_token: Optional session token for temporary credentials
        region: AWS region, required when signing
        service: Service name used in the signing scope
        api_key: Optional API key sent as x-api-key
        host: Explicit host header value for signing
        default_content_type: Content-Type used when a request sets none
        default_accept_type: Accept used when a request sets none
        system_clock_offset_ms: Correction applied to the local clock
        headers: Headers added to every request unless overridden
        retry_policy: Optional retry policy
        timeout: Default transport timeout in seconds
        verify_ssl: Whether to verify TLS certificates
        debug_logging: Log canonical requests and strings to sign
    """
    invoke_url: str
    access_key: Optional[str] = None
    secret_key: Optional[str] = None
    session_token: Optional[str] = None
    region: Optional[str] = None
    service: str = DEFAULT_SERVICE
    api_key: Optional[str] = None
    host: Optional[str] = None
    default_content_type: Optional[str] = DEFAULT_CONTENT_TYPE
    default_accept_type: Optional[str] = DEFAULT_ACCEPT_TYPE
    system_clock_offset_ms: float = 0
    headers: Dict[str, str] = field(default_factory=dict)
    retry_policy: Optional[RetryPolicy] = None
    timeout: float = DEFAULT_TIMEOUT
    verify_ssl: bool = True
    debug_logging: bool = False

    def __post_init__(self):
        """Validate client configuration."""
        if not self.invoke_url:
            raise ConfigurationError("invokeUrl must be specified", "MISSING_INVOKE_URL")

        if not _ENDPOINT_PATTERN.match(self.invoke_url):
            raise ConfigurationError(f"Invalid invoke URL format: {self.invoke_url}", "INVALID_INVOKE_URL")

        if self.timeout <= 0:
            raise ConfigurationError("Timeout must be positive", "INVALID_TIMEOUT")

        # Copy so later changes to the caller's dict cannot leak in
        object.__setattr__(self, 'headers', dict(self.headers or {}))

        # Raises on inconsistent keys
        credentials = Credentials.from_keys(self.access_key, self.secret_key, self.session_token)
        object.__setattr__(self, '_credentials', credentials)
        if credentials is not None and not self.region:
            raise ConfigurationError("region must be defined when signing requests", "MISSING_REGION")

    @property
    def endpoint(self) -> str:
        """scheme://host[:port] part of the invoke URL"""
        return _ENDPOINT_PATTERN.match(self.invoke_url).group(1)

    @property
    def path_prefix(self) -> str:
        """Path part of the invoke URL (e.g. the stage), without a trailing slash"""
        return self.invoke_url[len(self.endpoint):].rstrip('/')

    @property
    def credentials(self) -> Optional[Credentials]:
        """Signing credentials, None when no keys are configured"""
        return self._credentials

    @property
    def auth_type(self) -> str:
        """AWS_IAM when requests are signed, NONE otherwise"""
        return "AWS_IAM" if self.credentials is not None else "NONE"

    def to_dispatcher_config(self) -> DispatcherConfig:
        """Build the dispatcher configuration for this client."""
        return DispatcherConfig(
            endpoint=self.endpoint,
            credentials=self.credentials,
            region=self.region,
            service=self.service,
            host=self.host,
            default_content_type=self.default_content_type,
            default_accept_type=self.default_accept_type,
            system_clock_offset_ms=self.system_clock_offset_ms,
            retry_policy=self.retry_policy,
            debug_logging=self.debug_logging,
        )
