"""
Access-key credential and request signing for Qiniu-compatible services.

Implements the Qiniu token algorithm:

    token = AccessKey + ":" + URLSafeBase64(HMAC-SHA1(SecretKey, data))

and the two request canonicalization formats built on top of it
(``QBox`` v1 and ``Qiniu`` v2 authorization headers).

Reference: https://developer.qiniu.com/kodo/manual/1201/access-token

Author: QiniuSign Team
"""

import hashlib
import hmac
import logging
from dataclasses import dataclass, field
from typing import Optional, Union

from qiniusign.auth.canonicalizer import (
    Body,
    Headers,
    SignatureVersion,
    build_canonical_v1,
    build_canonical_v2,
)
from qiniusign.utils import urlsafe_b64encode

logger = logging.getLogger(__name__)


@dataclass(frozen=True, init=False)
class Credential:
    """
    Access key / secret key pair.

    Instances are immutable and may be shared freely between threads.
    The secret key is stored as bytes and kept out of ``repr``.

    Example:
        credential = Credential("access-key", "secret-key")
        header = credential.authorization_v2(
            "POST",
            "http://upload.qiniup.com/",
            {"Content-Type": "application/json"},
            b'{"name":"test"}',
        )
    """

    access_key: str
    secret_key: bytes = field(repr=False)

    def __init__(self, access_key: str, secret_key: Union[str, bytes]):
        if isinstance(secret_key, str):
            secret_key = secret_key.encode("utf-8")
        object.__setattr__(self, "access_key", access_key)
        object.__setattr__(self, "secret_key", secret_key)

    def sign(self, data: bytes) -> str:
        """
        Sign data with the secret key.

        Args:
            data: Bytes to sign

        Returns:
            ``access_key:signature`` where signature is the URL-safe base64
            HMAC-SHA1 digest
        """
        return f"{self.access_key}:{self._base64_hmac_digest(data)}"

    def sign_with_data(self, data: bytes) -> str:
        """
        Sign data and embed it in the token.

        The data is URL-safe base64 encoded, the encoded form is signed,
        and the encoded form is appended after a final colon so the
        recipient can recover it.

        Args:
            data: Bytes to sign and embed

        Returns:
            ``access_key:signature:encoded_data``
        """
        encoded_data = urlsafe_b64encode(data)
        return f"{self.sign(encoded_data.encode('ascii'))}:{encoded_data}"

    def sign_request_v1(
        self,
        url: str,
        content_type: Optional[str] = None,
        body: Body = None,
    ) -> str:
        """
        Sign a request with the v1 canonicalization.

        Args:
            url: Absolute request URL
            content_type: Request Content-Type, may be empty
            body: Request body; only signed for form-urlencoded requests

        Returns:
            Token without the authorization scheme prefix

        Raises:
            UrlParseError: If the URL cannot be parsed
        """
        data = build_canonical_v1(url, content_type, body)
        logger.debug(f"Signing v1 request: {len(data)} canonical bytes")
        return self.sign(data)

    def sign_request_v2(
        self,
        method: str,
        url: str,
        headers: Optional[Headers] = None,
        body: Body = None,
    ) -> str:
        """
        Sign a request with the v2 canonicalization.

        Args:
            method: HTTP method token (GET, POST, ...)
            url: Absolute request URL
            headers: Request headers as a mapping or (name, value) pairs
            body: Request body; signed when a non-binary Content-Type is set

        Returns:
            Token without the authorization scheme prefix

        Raises:
            UrlParseError: If the URL cannot be parsed or has no host
        """
        data = build_canonical_v2(method, url, headers, body)
        logger.debug(f"Signing v2 {method} request: {len(data)} canonical bytes")
        return self.sign(data)

    def authorization_v1(
        self,
        url: str,
        content_type: Optional[str] = None,
        body: Body = None,
    ) -> str:
        """Return the ``QBox`` Authorization header value for a request."""
        token = self.sign_request_v1(url, content_type, body)
        return f"{SignatureVersion.V1.value} {token}"

    def authorization_v2(
        self,
        method: str,
        url: str,
        headers: Optional[Headers] = None,
        body: Body = None,
    ) -> str:
        """Return the ``Qiniu`` Authorization header value for a request."""
        token = self.sign_request_v2(method, url, headers, body)
        return f"{SignatureVersion.V2.value} {token}"

    def _base64_hmac_digest(self, data: bytes) -> str:
        digest = hmac.new(self.secret_key, data, hashlib.sha1).digest()
        return urlsafe_b64encode(digest)
