"""
HTTP transports for the request dispatcher

A transport issues exactly one HTTP exchange for a :class:`SignedRequest` and
returns an :class:`HttpResponse`, or raises :class:`TransportError` when no
response could be obtained. Retrying is the dispatcher's job, so transports
never retry on their own.
"""

import asyncio
import functools
import logging
from typing import Optional, Protocol, runtime_checkable

import httpx
import requests
from requests.adapters import HTTPAdapter

from ..exceptions import TransportError
from .types import HttpResponse, SignedRequest

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0


@runtime_checkable
class HttpTransport(Protocol):
    """Protocol for HTTP transports"""

    async def send(self, request: SignedRequest) -> HttpResponse:
        """Issue one HTTP request"""
        ...

    async def close(self) -> None:
        """Release pooled connections"""
        ...


def resolve_timeout(timeout_ms: int, default_timeout: Optional[float]) -> Optional[float]:
    """
    Convert a per-request timeout to seconds.

    Args:
        timeout_ms: Timeout in milliseconds, 0 for the default
        default_timeout: Default timeout in seconds

    Returns:
        float: Timeout in seconds
    """
    if timeout_ms and timeout_ms > 0:
        return timeout_ms / 1000
    return default_timeout


class RequestsTransport:
    """
    Transport backed by a requests Session

    The blocking ``Session.request`` call runs in the event loop's default
    thread pool so concurrent requests do not block each other.
    """

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        timeout: float = DEFAULT_TIMEOUT,
        verify_ssl: bool = True
    ):
        """
        Initialize the transport.

        Args:
            session: Optional existing session to use
            timeout: Default timeout in seconds
            verify_ssl: Whether to verify TLS certificates
        """
        self.session = session or self._create_session()
        self.timeout = timeout
        self.verify_ssl = verify_ssl

    def _create_session(self) -> requests.Session:
        """Create HTTP session without adapter-level retries"""
        session = requests.Session()

        adapter = HTTPAdapter(max_retries=0)
        session.mount("http://", adapter)
        session.mount("https://", adapter)

        return session

    def _send_sync(self, request: SignedRequest) -> HttpResponse:
        timeout = resolve_timeout(request.timeout, self.timeout)

        try:
            logger.debug(f"Making {request.method} request to {request.url}")
            response = self.session.request(
                request.method,
                request.url,
                headers=request.headers,
                data=request.body,
                timeout=timeout,
                verify=self.verify_ssl,
            )
        except requests.exceptions.Timeout as e:
            raise TransportError(f"Request timeout after {timeout} seconds", request, "TIMEOUT", {"original_error": str(e)})
        except requests.exceptions.ConnectionError as e:
            raise TransportError(f"Connection error: {e}", request, "CONNECTION_ERROR")
        except requests.exceptions.RequestException as e:
            raise TransportError(f"Request failed: {e}", request)

        return HttpResponse(
            status_code=response.status_code,
            headers=dict(response.headers),
            content=response.content,
            url=response.url,
            reason=response.reason or "",
        )

    async def send(self, request: SignedRequest) -> HttpResponse:
        """
        Issue one HTTP request.

        Args:
            request: Signed request to send

        Returns:
            HttpResponse: Response of any status

        Raises:
            TransportError: On timeout or connection failure
        """
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, functools.partial(self._send_sync, request))

    async def close(self) -> None:
        """Close the HTTP session."""
        self.session.close()
        logger.debug("HTTP session closed")


class HttpxTransport:
    """Transport backed by an httpx AsyncClient"""

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = DEFAULT_TIMEOUT,
        verify_ssl: bool = True
    ):
        """
        Initialize the transport.

        Args:
            client: Optional existing AsyncClient to use
            timeout: Default timeout in seconds
            verify_ssl: Whether to verify TLS certificates (ignored when a
                client is supplied)
        """
        self.client = client or httpx.AsyncClient(timeout=timeout, verify=verify_ssl)
        self.timeout = timeout

    async def send(self, request: SignedRequest) -> HttpResponse:
        """
        Issue one HTTP request.

        Args:
            request: Signed request to send

        Returns:
            HttpResponse: Response of any status

        Raises:
            TransportError: On timeout or connection failure
        """
        timeout = resolve_timeout(request.timeout, self.timeout)

        try:
            logger.debug(f"Making {request.method} request to {request.url}")
            response = await self.client.request(
                request.method,
                request.url,
                headers=request.headers,
                content=request.body,
                timeout=timeout,
            )
        except httpx.TimeoutException as e:
            raise TransportError(f"Request timeout after {timeout} seconds", request, "TIMEOUT", {"original_error": str(e)})
        except httpx.TransportError as e:
            raise TransportError(f"Connection error: {e}", request, "CONNECTION_ERROR")
        except httpx.HTTPError as e:
            raise TransportError(f"Request failed: {e}", request)

        return HttpResponse(
            status_code=response.status_code,
            headers=dict(response.headers),
            content=response.content,
            url=str(response.url),
            reason=response.reason_phrase or "",
        )

    async def close(self) -> None:
        """Close the underlying AsyncClient."""
        await self.client.aclose()
        logger.debug("httpx client closed")
