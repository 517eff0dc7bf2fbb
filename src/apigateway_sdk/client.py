"""
API Gateway client

This module provides the public entry point: a client bound to one stage
invoke URL that turns ``invoke_api`` calls into dispatched requests, signing
them when credentials are configured.
"""

import asyncio
import logging
from collections.abc import Mapping, Sequence
from datetime import datetime
from typing import Any, Callable, Dict, Optional

from .config import ClientConfig
from .http_clients.dispatcher import RequestDispatcher
from .http_clients.transport import HttpTransport, RequestsTransport
from .http_clients.types import ApiRequest, HttpResponse, SignedRequest
from .signing.constants import X_API_KEY

logger = logging.getLogger(__name__)


def _run_blocking(coro, caller: str):
    """Run a coroutine to completion from synchronous code."""
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(coro)

    coro.close()
    raise RuntimeError(f"{caller} cannot be used inside a running event loop; use the async API instead")


def _is_empty_body(body: Any) -> bool:
    if body is None or body == '' or body == b'':
        return True
    if isinstance(body, (Mapping, Sequence)) and not isinstance(body, (str, bytes)):
        return len(body) == 0
    return False


class ApiGatewayClient:
    """
    Client for one API Gateway stage

    Usage::

        async with ApiGatewayClient(config) as client:
            response = await client.invoke_api('GET', '/pets', query_params={'limit': '10'})
    """

    def __init__(
        self,
        config: ClientConfig,
        transport: Optional[HttpTransport] = None,
        clock: Optional[Callable[[], datetime]] = None
    ):
        """
        Initialize the client.

        Args:
            config: Client configuration
            transport: Optional HTTP transport (requests-based by default)
            clock: Optional clock used for request timestamps

        Raises:
            ConfigurationError: If the configuration is incomplete
        """
        self.config = config
        self.transport = transport or RequestsTransport(timeout=config.timeout, verify_ssl=config.verify_ssl)
        self.dispatcher = RequestDispatcher(config.to_dispatcher_config(), self.transport, clock)

        logger.info(f"Initialized API Gateway client for {config.invoke_url} (auth: {self.auth_type})")

    @property
    def auth_type(self) -> str:
        return self.config.auth_type

    def build_request(
        self,
        method: str,
        path: str,
        body: Any = None,
        headers: Optional[Dict[str, str]] = None,
        query_params: Optional[Dict[str, str]] = None,
        timeout: Optional[int] = None
    ) -> ApiRequest:
        """
        Resolve an invocation into a request descriptor.

        Args:
            method: HTTP method (any case)
            path: Path below the stage invoke URL
            body: Request body
            headers: Per-call headers, overriding configured defaults
            query_params: Query parameters
            timeout: Timeout in milliseconds

        Returns:
            ApiRequest: Request for the dispatcher
        """
        merged_headers = dict(self.config.headers)
        merged_headers.update(headers or {})

        if self.config.api_key:
            merged_headers[X_API_KEY] = self.config.api_key

        return ApiRequest(
            verb=method.upper() if method else method,
            path=self.config.path_prefix + (path or ''),
            headers=merged_headers,
            query_params=dict(query_params or {}),
            timeout=timeout or 0,
            body=None if _is_empty_body(body) else body,
        )

    def sign(
        self,
        method: str,
        path: str,
        body: Any = None,
        headers: Optional[Dict[str, str]] = None,
        query_params: Optional[Dict[str, str]] = None,
        timeout: Optional[int] = None
    ) -> SignedRequest:
        """Build the signed request for an invocation without sending it."""
        request = self.build_request(method, path, body, headers, query_params, timeout)
        return self.dispatcher.build_signed_request(request)

    async def invoke_api(
        self,
        method: str,
        path: str,
        body: Any = None,
        headers: Optional[Dict[str, str]] = None,
        query_params: Optional[Dict[str, str]] = None,
        timeout: Optional[int] = None
    ) -> HttpResponse:
        """
        Invoke an API method.

        Args:
            method: HTTP method (any case)
            path: Path below the stage invoke URL
            body: Request body
            headers: Per-call headers, overriding configured defaults
            query_params: Query parameters
            timeout: Timeout in milliseconds

        Returns:
            HttpResponse: Successful response

        Raises:
            ValidationError: If the request is malformed
            TransportError: If no response could be obtained
            ResponseError: If the API returned a non-2xx status
        """
        request = self.build_request(method, path, body, headers, query_params, timeout)
        return await self.dispatcher.make_request(request)

    def invoke_api_sync(
        self,
        method: str,
        path: str,
        body: Any = None,
        headers: Optional[Dict[str, str]] = None,
        query_params: Optional[Dict[str, str]] = None,
        timeout: Optional[int] = None
    ) -> HttpResponse:
        """
        Blocking variant of :meth:`invoke_api`.

        Sync-only: each call runs on a fresh event loop, so use it with
        RequestsTransport. Inside a running event loop use ``await invoke_api``.

        Raises:
            RuntimeError: If called from a running event loop
        """
        return _run_blocking(
            self.invoke_api(method, path, body, headers, query_params, timeout),
            "invoke_api_sync"
        )

    async def close(self) -> None:
        """Close the underlying transport."""
        await self.dispatcher.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        # Sync-only, like invoke_api_sync; async code uses "async with"
        _run_blocking(self.close(), "with ApiGatewayClient")

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()


def create_client(
    invoke_url: str,
    transport: Optional[HttpTransport] = None,
    **config_kwargs
) -> ApiGatewayClient:
    """
    Create an API Gateway client with default configuration.

    Args:
        invoke_url: Stage invoke URL
        transport: Optional HTTP transport
        **config_kwargs: Additional ClientConfig fields

    Returns:
        ApiGatewayClient: Configured client
    """
    config = ClientConfig(invoke_url=invoke_url, **config_kwargs)
    return ApiGatewayClient(config, transport)
