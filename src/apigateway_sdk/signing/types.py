"""
Type definitions for SigV4 request signing

This module provides the immutable value types passed between the
canonicalizer, the signer and the request dispatcher.
"""

from typing import Optional
from dataclasses import dataclass

from ..exceptions import ConfigurationError
from .constants import TERMINATOR, DATE_STAMP_LENGTH


@dataclass(frozen=True)
class Credentials:
    """
    AWS credentials used to sign requests

    Attributes:
        access_key: Access key identifier
        secret_key: Secret access key
        session_token: Optional session token for temporary credentials
    """
    access_key: str
    secret_key: str
    session_token: Optional[str] = None

    def __post_init__(self):
        """Validate credentials"""
        if not self.access_key:
            raise ConfigurationError("accessKey must be defined", "MISSING_ACCESS_KEY")

        if not self.secret_key:
            raise ConfigurationError("secretKey must be defined", "MISSING_SECRET_KEY")

    @classmethod
    def from_keys(
        cls,
        access_key: Optional[str],
        secret_key: Optional[str],
        session_token: Optional[str] = None
    ) -> Optional['Credentials']:
        """
        Build credentials from possibly-empty key values.

        Args:
            access_key: Access key or None/empty
            secret_key: Secret key or None/empty
            session_token: Optional session token

        Returns:
            Credentials, or None when both keys are absent (unsigned mode)

        Raises:
            ConfigurationError: If only one of the two keys is present
        """
        if not access_key and not secret_key:
            return None

        if not access_key or not secret_key:
            missing = "accessKey" if not access_key else "secretKey"
            raise ConfigurationError(
                f"{missing} must be defined when the other key is set",
                "INCONSISTENT_CREDENTIALS",
                {"missing": missing}
            )

        return cls(access_key=access_key, secret_key=secret_key, session_token=session_token or None)

    def __repr__(self) -> str:
        return f"Credentials(access_key='{self.access_key}', secret_key='***', session_token={'***' if self.session_token else None})"


@dataclass(frozen=True)
class SigningScope:
    """
    Date, region and service a signature is bound to

    Attributes:
        date_stamp: Date in YYYYMMDD form
        region: AWS region name
        service: Service name, e.g. execute-api
    """
    date_stamp: str
    region: str
    service: str

    @classmethod
    def from_date_time(cls, date_time: str, region: str, service: str) -> 'SigningScope':
        """Build a scope from an x-amz-date timestamp."""
        return cls(date_stamp=date_time[:DATE_STAMP_LENGTH], region=region, service=service)

    @property
    def credential_scope(self) -> str:
        """Scope string: <YYYYMMDD>/<region>/<service>/aws4_request"""
        return f"{self.date_stamp}/{self.region}/{self.service}/{TERMINATOR}"


@dataclass(frozen=True)
class SigningResult:
    """
    Everything derived while signing one request

    Attributes:
        date_time: x-amz-date value the request was signed with
        canonical_request: Canonical request string
        string_to_sign: String that was signed
        credential_scope: Credential scope string
        signed_headers: ';'-joined lowercase header names covered by the signature
        signature: Hex-encoded signature
        authorization: Complete Authorization header value
    """
    date_time: str
    canonical_request: str
    string_to_sign: str
    credential_scope: str
    signed_headers: str
    signature: str
    authorization: str
