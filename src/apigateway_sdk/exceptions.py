"""
Exception classes for the API Gateway Python SDK
"""

from typing import Optional, Dict, Any, TYPE_CHECKING

if TYPE_CHECKING:
    from .http_clients.types import SignedRequest, HttpResponse


class ApiGatewaySDKError(Exception):
    """Base exception for all API Gateway SDK errors"""

    def __init__(self, message: str, error_code: str = "UNKNOWN_ERROR", details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.error_code = error_code
        self.details = details or {}


class ConfigurationError(ApiGatewaySDKError):
    """Exception raised for missing or inconsistent client configuration"""

    def __init__(self, message: str, error_code: str = "INVALID_CONFIG", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, error_code, details)


class ValidationError(ApiGatewaySDKError):
    """Exception raised for malformed request descriptors"""

    def __init__(self, message: str, error_code: str = "INVALID_REQUEST", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, error_code, details)


class TransportError(ApiGatewaySDKError):
    """Exception raised when the HTTP exchange could not be completed"""

    def __init__(self, message: str, request: Optional['SignedRequest'] = None,
                 error_code: str = "TRANSPORT_ERROR", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, error_code, details)
        self.request = request


class ResponseError(ApiGatewaySDKError):
    """Exception raised for a completed exchange with a non-success status"""

    def __init__(self, message: str, response: 'HttpResponse', request: Optional['SignedRequest'] = None,
                 error_code: str = "HTTP_ERROR", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, error_code, details)
        self.response = response
        self.request = request
        self.http_status = response.status_code
