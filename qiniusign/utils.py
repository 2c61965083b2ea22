"""Encoding and checksum helpers shared by the signing modules."""

import base64
import zlib
from typing import Union


def urlsafe_b64encode(data: bytes) -> str:
    """
    Encode bytes with the URL-safe base64 alphabet.

    Padding is kept, since the server compares tokens verbatim.

    Args:
        data: Raw bytes

    Returns:
        Base64 text using '-' and '_' in place of '+' and '/'
    """
    return base64.urlsafe_b64encode(data).decode("ascii")


def urlsafe_b64decode(data: Union[str, bytes]) -> bytes:
    """Decode URL-safe base64, restoring any stripped padding."""
    if isinstance(data, str):
        data = data.encode("ascii")
    return base64.urlsafe_b64decode(data + b"=" * (-len(data) % 4))


def crc32_bytes(data: bytes) -> int:
    """Return the IEEE CRC32 checksum of ``data`` as an unsigned integer."""
    return zlib.crc32(data) & 0xFFFFFFFF
