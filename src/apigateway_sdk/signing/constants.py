"""
Constants shared by the SigV4 canonicalizer, signer and dispatcher
"""

# Signing algorithm identifiers
ALGORITHM = "AWS4-HMAC-SHA256"
TERMINATOR = "aws4_request"
KEY_PREFIX = "AWS4"

# Well-known header names
AUTHORIZATION = "Authorization"
X_AMZ_DATE = "x-amz-date"
X_AMZ_SECURITY_TOKEN = "x-amz-security-token"
X_API_KEY = "x-api-key"
HOST = "host"
CONTENT_TYPE = "Content-Type"
ACCEPT = "Accept"

# Basic ISO 8601 format used by x-amz-date, e.g. 20150830T123600Z
AMZ_DATE_FORMAT = "%Y%m%dT%H%M%SZ"
DATE_STAMP_LENGTH = 8

EMPTY_SHA256_HASH = "e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855"

DEFAULT_SERVICE = "execute-api"
DEFAULT_CONTENT_TYPE = "application/json"
DEFAULT_ACCEPT_TYPE = "application/json"
JSON_CONTENT_TYPE = "application/json"
