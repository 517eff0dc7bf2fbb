"""
AWS Signature Version 4 signer

This module derives the scoped signing key, computes the request signature
and formats the Authorization header. It works on the canonical request
produced by :mod:`apigateway_sdk.signing.canonical_request`.
"""

from typing import Mapping, Optional

from .constants import ALGORITHM, KEY_PREFIX, TERMINATOR
from .types import Credentials, SigningScope, SigningResult
from .utils import RequestBody, hmac_sha256, to_hex
from .canonical_request import (
    build_canonical_request,
    build_signed_headers,
    hash_canonical_request,
)


def build_credential_scope(date_stamp: str, region: str, service: str) -> str:
    """
    Build the credential scope.

    Args:
        date_stamp: Date in YYYYMMDD form
        region: AWS region
        service: Service name

    Returns:
        str: <YYYYMMDD>/<region>/<service>/aws4_request
    """
    return SigningScope(date_stamp=date_stamp, region=region, service=service).credential_scope


def build_string_to_sign(date_time: str, credential_scope: str, hashed_canonical_request: str) -> str:
    """
    Build the string to sign.

    Args:
        date_time: x-amz-date timestamp
        credential_scope: Credential scope string
        hashed_canonical_request: Hex SHA-256 of the canonical request

    Returns:
        str: Algorithm, timestamp, scope and hash separated by newlines
    """
    return f"{ALGORITHM}\n{date_time}\n{credential_scope}\n{hashed_canonical_request}"


def derive_signing_key(secret_key: str, date_stamp: str, region: str, service: str) -> bytes:
    """
    Derive the scoped signing key.

    DateKey              = HMAC-SHA256("AWS4"+"<SecretAccessKey>", "<YYYYMMDD>")
    DateRegionKey        = HMAC-SHA256(<DateKey>, "<aws-region>")
    DateRegionServiceKey = HMAC-SHA256(<DateRegionKey>, "<aws-service>")
    SigningKey           = HMAC-SHA256(<DateRegionServiceKey>, "aws4_request")

    Args:
        secret_key: Secret access key
        date_stamp: Date in YYYYMMDD form
        region: AWS region
        service: Service name

    Returns:
        bytes: Binary signing key
    """
    k_date = hmac_sha256(f"{KEY_PREFIX}{secret_key}".encode('utf-8'), date_stamp)
    k_region = hmac_sha256(k_date, region)
    k_service = hmac_sha256(k_region, service)
    return hmac_sha256(k_service, TERMINATOR)


def calculate_signature(signing_key: bytes, string_to_sign: str) -> str:
    """Hex HMAC-SHA256 of the string to sign."""
    return to_hex(hmac_sha256(signing_key, string_to_sign))


def build_authorization_header(
    access_key: str,
    credential_scope: str,
    signed_headers: str,
    signature: str
) -> str:
    """
    Format the Authorization header value.

    Args:
        access_key: Access key identifier
        credential_scope: Credential scope string
        signed_headers: ';'-joined signed header names
        signature: Hex signature

    Returns:
        str: Authorization header value
    """
    return (
        f"{ALGORITHM} Credential={access_key}/{credential_scope}, "
        f"SignedHeaders={signed_headers}, Signature={signature}"
    )


class SigV4Signer:
    """
    Signs requests with AWS Signature Version 4

    The signer holds only immutable credentials and scope settings, so one
    instance can sign any number of concurrent requests.
    """

    def __init__(self, credentials: Credentials, region: str, service: str):
        """
        Initialize the signer.

        Args:
            credentials: Credentials to sign with
            region: AWS region
            service: Service name
        """
        self.credentials = credentials
        self.region = region
        self.service = service

    def sign(
        self,
        method: str,
        path: str,
        query_params: Optional[Mapping[str, str]],
        headers: Mapping[str, str],
        body: RequestBody,
        date_time: str
    ) -> SigningResult:
        """
        Sign a request.

        The headers passed in are exactly the headers covered by the
        signature; they must already include host and x-amz-date.

        Args:
            method: HTTP method
            path: Request path
            query_params: Query parameters
            headers: Headers to sign
            body: Serialized request body
            date_time: x-amz-date timestamp (YYYYMMDDTHHMMSSZ)

        Returns:
            SigningResult: Derived signing values and Authorization header
        """
        canonical_request = build_canonical_request(method, path, query_params, headers, body)
        scope = SigningScope.from_date_time(date_time, self.region, self.service)
        credential_scope = scope.credential_scope
        string_to_sign = build_string_to_sign(
            date_time,
            credential_scope,
            hash_canonical_request(canonical_request)
        )
        signing_key = derive_signing_key(
            self.credentials.secret_key,
            scope.date_stamp,
            scope.region,
            scope.service
        )
        signature = calculate_signature(signing_key, string_to_sign)
        signed_headers = build_signed_headers(headers)

        return SigningResult(
            date_time=date_time,
            canonical_request=canonical_request,
            string_to_sign=string_to_sign,
            credential_scope=credential_scope,
            signed_headers=signed_headers,
            signature=signature,
            authorization=build_authorization_header(
                self.credentials.access_key,
                credential_scope,
                signed_headers,
                signature
            )
        )


def create_signer(credentials: Credentials, region: str, service: str) -> SigV4Signer:
    """
    Create a new SigV4 signer.

    Args:
        credentials: Credentials to sign with
        region: AWS region
        service: Service name

    Returns:
        SigV4Signer: Configured signer instance
    """
    return SigV4Signer(credentials, region, service)


def sign_request(
    credentials: Credentials,
    region: str,
    service: str,
    method: str,
    path: str,
    query_params: Optional[Mapping[str, str]],
    headers: Mapping[str, str],
    body: RequestBody,
    date_time: str
) -> SigningResult:
    """Sign a single request without keeping a signer around."""
    signer = create_signer(credentials, region, service)
    return signer.sign(method, path, query_params, headers, body, date_time)
