"""
QiniuSign Authentication Module.

Provides the access-key credential and the request canonicalization
formats used by Qiniu authorization headers.

Author: QiniuSign Team
"""

from qiniusign.auth.exceptions import (
    SigningError,
    TimeRangeError,
    UrlParseError,
)
from qiniusign.auth.canonicalizer import (
    SignatureVersion,
    build_canonical_v1,
    build_canonical_v2,
    canonicalize_header_name,
    collect_x_qiniu_headers,
    parse_url,
)
from qiniusign.auth.credential import Credential

__all__ = [
    # Exceptions
    "SigningError",
    "TimeRangeError",
    "UrlParseError",
    # Canonicalization
    "SignatureVersion",
    "build_canonical_v1",
    "build_canonical_v2",
    "canonicalize_header_name",
    "collect_x_qiniu_headers",
    "parse_url",
    # Signing
    "Credential",
]
