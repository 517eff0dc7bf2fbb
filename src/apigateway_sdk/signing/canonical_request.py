"""
Canonical request construction for AWS Signature Version 4

This module turns a request's method, path, query parameters, headers and
body into the canonical request string that is hashed and signed. Every
function here is pure: identical arguments always produce byte-identical
output, which is what lets the server recompute and verify the signature.
"""

from typing import Dict, List, Mapping, Optional

from .utils import (
    RequestBody,
    encode_uri_component,
    encode_uri_path,
    sha256_hex,
)


def build_canonical_uri(path: str) -> str:
    """
    Build the canonical URI component.

    Args:
        path: Request path (already template-expanded)

    Returns:
        str: Percent-encoded path, '/' for an empty path
    """
    if not path:
        return '/'
    return encode_uri_path(path)


def build_canonical_query_string(query_params: Optional[Mapping[str, str]]) -> str:
    """
    Build the canonical query string.

    Names and values are encoded individually, then the pairs are sorted by
    encoded name.

    Args:
        query_params: Query parameter mapping (may be None or empty)

    Returns:
        str: 'name=value' pairs joined with '&', or '' when there are none
    """
    if not query_params:
        return ''

    encoded_pairs = sorted(
        (encode_uri_component(name), encode_uri_component(value))
        for name, value in query_params.items()
    )
    return '&'.join(f"{name}={value}" for name, value in encoded_pairs)


def normalize_headers(headers: Mapping[str, str]) -> Dict[str, str]:
    """
    Lowercase header names and sort them by ordinal order.

    Args:
        headers: Header mapping with arbitrary name casing

    Returns:
        dict: Sorted mapping of lowercase name to raw value
    """
    lowered = {name.lower(): str(value) for name, value in headers.items()}
    return dict(sorted(lowered.items()))


def build_canonical_headers(headers: Mapping[str, str]) -> str:
    """
    Build the canonical headers block.

    Args:
        headers: Headers that participate in the signature

    Returns:
        str: One 'name:value\\n' line per header, sorted by lowercase name
    """
    return ''.join(f"{name}:{value}\n" for name, value in normalize_headers(headers).items())


def signed_header_names(headers: Mapping[str, str]) -> List[str]:
    """Sorted lowercase names of the signed headers."""
    return list(normalize_headers(headers).keys())


def build_signed_headers(headers: Mapping[str, str]) -> str:
    """
    Build the signed headers list.

    Args:
        headers: Headers that participate in the signature

    Returns:
        str: Sorted lowercase header names joined with ';'
    """
    return ';'.join(signed_header_names(headers))


def hash_payload(body: RequestBody) -> str:
    """
    Hash the request payload.

    Args:
        body: Request body, None for no body

    Returns:
        str: Lowercase hex SHA-256 of the body
    """
    return sha256_hex(body)


def build_canonical_request(
    method: str,
    path: str,
    query_params: Optional[Mapping[str, str]],
    headers: Mapping[str, str],
    body: RequestBody
) -> str:
    """
    Build the canonical request string.

    Args:
        method: HTTP method
        path: Request path
        query_params: Query parameters
        headers: Headers to sign
        body: Request body

    Returns:
        str: Canonical request
    """
    return (
        f"{method.upper()}\n"
        f"{build_canonical_uri(path)}\n"
        f"{build_canonical_query_string(query_params)}\n"
        f"{build_canonical_headers(headers)}\n"
        f"{build_signed_headers(headers)}\n"
        f"{hash_payload(body)}"
    )


def hash_canonical_request(canonical_request: str) -> str:
    """Hex SHA-256 of the canonical request."""
    return sha256_hex(canonical_request)
