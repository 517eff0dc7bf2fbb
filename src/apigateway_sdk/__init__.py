"""
API Gateway Python SDK
Signed (AWS SigV4) and unsigned invocation of API Gateway endpoints
"""

from .version import __version__
from .exceptions import (
    ApiGatewaySDKError,
    ConfigurationError,
    ValidationError,
    TransportError,
    ResponseError,
)
from .config import ClientConfig
from .client import (
    ApiGatewayClient,
    create_client,
)
from .http_clients import (
    ApiRequest,
    SignedRequest,
    HttpResponse,
    RetryPolicy,
    FixedDelay,
    ExponentialDelay,
    CustomDelay,
    create_retry_policy,
    is_network_or_idempotent_request_error,
    HttpTransport,
    RequestsTransport,
    HttpxTransport,
    DispatcherConfig,
    RequestDispatcher,
)
from .signing import (
    Credentials,
    SigningScope,
    SigningResult,
    SigV4Signer,
    create_signer,
    sign_request,
    build_canonical_request,
)

__all__ = [
    '__version__',
    # Exceptions
    'ApiGatewaySDKError',
    'ConfigurationError',
    'ValidationError',
    'TransportError',
    'ResponseError',
    # Client
    'ClientConfig',
    'ApiGatewayClient',
    'create_client',
    # HTTP dispatch
    'ApiRequest',
    'SignedRequest',
    'HttpResponse',
    'RetryPolicy',
    'FixedDelay',
    'ExponentialDelay',
    'CustomDelay',
    'create_retry_policy',
    'is_network_or_idempotent_request_error',
    'HttpTransport',
    'RequestsTransport',
    'HttpxTransport',
    'DispatcherConfig',
    'RequestDispatcher',
    # Signing
    'Credentials',
    'SigningScope',
    'SigningResult',
    'SigV4Signer',
    'create_signer',
    'sign_request',
    'build_canonical_request',
]
