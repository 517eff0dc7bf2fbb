"""
API Gateway Python SDK - Request Signing Module

AWS Signature Version 4 implementation: canonical request construction,
scoped key derivation and Authorization header generation.
"""

from .types import (
    Credentials,
    SigningScope,
    SigningResult,
)

from .canonical_request import (
    build_canonical_uri,
    build_canonical_query_string,
    build_canonical_headers,
    build_signed_headers,
    build_canonical_request,
    hash_canonical_request,
    hash_payload,
)

from .sigv4_signer import (
    SigV4Signer,
    create_signer,
    sign_request,
    build_credential_scope,
    build_string_to_sign,
    derive_signing_key,
    calculate_signature,
    build_authorization_header,
)

from .utils import (
    encode_uri_component,
    encode_uri_path,
    format_amz_date,
    sha256_hex,
)

# Public API exports
__all__ = [
    # Types
    'Credentials',
    'SigningScope',
    'SigningResult',
    # Canonical request
    'build_canonical_uri',
    'build_canonical_query_string',
    'build_canonical_headers',
    'build_signed_headers',
    'build_canonical_request',
    'hash_canonical_request',
    'hash_payload',
    # Signer
    'SigV4Signer',
    'create_signer',
    'sign_request',
    'build_credential_scope',
    'build_string_to_sign',
    'derive_signing_key',
    'calculate_signature',
    'build_authorization_header',
    # Utilities
    'encode_uri_component',
    'encode_uri_path',
    'format_amz_date',
    'sha256_hex',
]
