"""
Utility functions for request signing

This module provides the hashing, encoding and timestamp helpers used by the
SigV4 canonicalizer and signer.
"""

import hashlib
import hmac
from datetime import datetime, timedelta, timezone
from typing import Optional, Union
from urllib.parse import quote

from .constants import AMZ_DATE_FORMAT

RequestBody = Union[str, bytes, None]


def to_bytes(value: RequestBody) -> bytes:
    """
    Convert a body or message to bytes.

    Args:
        value: String (encoded as UTF-8), bytes, or None

    Returns:
        bytes: Encoded value, empty for None
    """
    if value is None:
        return b""
    if isinstance(value, bytes):
        return value
    return value.encode('utf-8')


def sha256_hex(value: RequestBody) -> str:
    """
    Calculate lowercase hex SHA-256 digest.

    Args:
        value: Content to hash

    Returns:
        str: Hex digest
    """
    return hashlib.sha256(to_bytes(value)).hexdigest()


def hmac_sha256(key: bytes, message: str) -> bytes:
    """
    Calculate binary HMAC-SHA256 of a message.

    Args:
        key: HMAC key bytes
        message: Message to authenticate

    Returns:
        bytes: Raw HMAC digest
    """
    return hmac.new(key, message.encode('utf-8'), hashlib.sha256).digest()


def to_hex(data: bytes) -> str:
    """Convert bytes to lowercase hex string."""
    return data.hex()


def encode_uri_component(value: str) -> str:
    """
    Percent-encode a query name or value per RFC 3986.

    Only unreserved characters (A-Z a-z 0-9 - _ . ~) are left as-is, so
    characters such as ! ' ( ) * are escaped as %XX.

    Args:
        value: Raw component

    Returns:
        str: Encoded component
    """
    return quote(str(value), safe='')


def encode_uri_path(path: str) -> str:
    """
    Percent-encode a URI path per RFC 3986, preserving '/'.

    Args:
        path: Raw path

    Returns:
        str: Encoded path
    """
    return quote(path, safe='/')


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def format_amz_date(moment: Optional[datetime] = None, clock_offset_ms: float = 0) -> str:
    """
    Format a timestamp as basic ISO 8601 (YYYYMMDDTHHMMSSZ).

    Args:
        moment: Time to format (current UTC time if None); naive values are
            treated as UTC
        clock_offset_ms: Correction added to the time, in milliseconds

    Returns:
        str: Formatted timestamp
    """
    if moment is None:
        moment = utc_now()
    elif moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)

    if clock_offset_ms:
        moment = moment + timedelta(milliseconds=clock_offset_ms)

    return moment.astimezone(timezone.utc).strftime(AMZ_DATE_FORMAT)
