"""
HTTP dispatch for the API Gateway Python SDK

This module provides the request dispatcher (signing, default headers,
retries) and the HTTP transports it sends requests through.
"""

from .types import (
    ApiRequest,
    SignedRequest,
    HttpResponse,
)
from .retry import (
    RetryPolicy,
    FixedDelay,
    ExponentialDelay,
    CustomDelay,
    RetryCondition,
    create_retry_policy,
    is_network_error,
    is_retryable_response_error,
    is_network_or_idempotent_request_error,
)
from .transport import (
    HttpTransport,
    RequestsTransport,
    HttpxTransport,
)
from .dispatcher import (
    DispatcherConfig,
    RequestDispatcher,
)

__all__ = [
    # Types
    'ApiRequest',
    'SignedRequest',
    'HttpResponse',
    # Retry
    'RetryPolicy',
    'FixedDelay',
    'ExponentialDelay',
    'CustomDelay',
    'RetryCondition',
    'create_retry_policy',
    'is_network_error',
    'is_retryable_response_error',
    'is_network_or_idempotent_request_error',
    # Transports
    'HttpTransport',
    'RequestsTransport',
    'HttpxTransport',
    # Dispatcher
    'DispatcherConfig',
    'RequestDispatcher',
]
