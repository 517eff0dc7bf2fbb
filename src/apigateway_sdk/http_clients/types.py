"""
Request and response types for the HTTP dispatch layer
"""

import json
from typing import Any, Dict, Optional, Union
from dataclasses import dataclass, field


@dataclass
class ApiRequest:
    """
    Fully resolved request handed to the dispatcher

    Attributes:
        verb: HTTP method
        path: Request path, already template-expanded
        headers: Request headers
        query_params: Query parameters
        timeout: Timeout in milliseconds, 0 for the transport default
        body: String, bytes, JSON-serializable value, or None
    """
    verb: Optional[str]
    path: Optional[str]
    headers: Optional[Dict[str, str]] = None
    query_params: Optional[Dict[str, str]] = None
    timeout: Optional[int] = None
    body: Any = None


@dataclass(frozen=True)
class SignedRequest:
    """
    Outbound HTTP call produced by the dispatcher

    Attributes:
        url: Complete URL including the canonical query string
        method: HTTP method
        headers: Final wire headers
        body: Serialized body or None
        timeout: Timeout in milliseconds, 0 for the transport default
    """
    url: str
    method: str
    headers: Dict[str, str]
    body: Union[str, bytes, None] = None
    timeout: int = 0


@dataclass
class HttpResponse:
    """
    Response returned by an HTTP transport

    Attributes:
        status_code: HTTP status code
        headers: Response headers
        content: Raw response body
        url: Final URL of the exchange
        reason: Status reason phrase, if known
    """
    status_code: int
    headers: Dict[str, str] = field(default_factory=dict)
    content: bytes = b""
    url: str = ""
    reason: str = ""

    @property
    def ok(self) -> bool:
        """True for 2xx statuses"""
        return 200 <= self.status_code < 300

    @property
    def text(self) -> str:
        """Response body decoded as UTF-8"""
        return self.content.decode('utf-8', errors='replace')

    def json(self) -> Any:
        """Parse the response body as JSON."""
        return json.loads(self.content)
