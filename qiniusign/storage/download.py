"""
Time-limited download URLs for private buckets.

A private download URL carries an expiry (``e``) and a token computed over
the URL, so the object can be fetched without further credentials until the
deadline passes.

Reference: https://developer.qiniu.com/kodo/manual/1202/download-token
"""

import logging
import math
from datetime import datetime, timedelta, timezone
from typing import Union

from qiniusign.auth.canonicalizer import parse_url
from qiniusign.auth.credential import Credential
from qiniusign.auth.exceptions import TimeRangeError

logger = logging.getLogger(__name__)

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

# Deadlines are 32-bit unsigned on the server; later values saturate
MAX_DEADLINE = 2 ** 32 - 1

Deadline = Union[datetime, int, float]
Lifetime = Union[timedelta, int, float]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def deadline_to_timestamp(deadline: Deadline) -> int:
    """
    Convert a deadline into whole seconds since the Unix epoch.

    Args:
        deadline: Aware or naive (treated as UTC) datetime, or epoch seconds

    Returns:
        Seconds since the epoch, truncated and clamped to 2**32 - 1

    Raises:
        TimeRangeError: If the deadline is before the epoch or NaN
    """
    if isinstance(deadline, datetime):
        if deadline.tzinfo is None:
            deadline = deadline.replace(tzinfo=timezone.utc)
        delta = deadline - EPOCH
        seconds = delta.days * 86400 + delta.seconds
    elif math.isnan(deadline):
        raise TimeRangeError(f"Deadline {deadline!r} is not a number")
    else:
        seconds = deadline

    if seconds < 0:
        raise TimeRangeError(f"Deadline {deadline!r} is earlier than the Unix epoch")

    # Compared before flooring so that infinity saturates too
    if seconds > MAX_DEADLINE:
        logger.debug(f"Deadline {seconds} exceeds 32 bits, clamping to {MAX_DEADLINE}")
        return MAX_DEADLINE
    return math.floor(seconds)


def sign_download_url_with_deadline(
    credential: Credential,
    url: str,
    deadline: Deadline,
    only_path: bool = False,
) -> str:
    """
    Sign a download URL that expires at ``deadline``.

    Args:
        credential: Signing credential
        url: Absolute download URL, optionally with a query string
        deadline: Expiry as a datetime or epoch seconds
        only_path: Sign only the path and query instead of the full URL

    Returns:
        The URL with ``e=<deadline>&token=<token>`` appended

    Raises:
        UrlParseError: If the URL is not a valid absolute URL
        TimeRangeError: If the deadline is before the epoch
    """
    parsed = parse_url(url)
    signed_url = parsed.geturl()

    if only_path:
        to_sign = parsed.request_target
    else:
        to_sign = signed_url

    separator = "&e=" if "?" in to_sign else "?e="
    timestamp = str(deadline_to_timestamp(deadline))

    to_sign = f"{to_sign}{separator}{timestamp}"
    token = credential.sign(to_sign.encode("utf-8"))

    logger.debug(f"Signed download URL for {parsed.host}{parsed.path}, e={timestamp}")
    return f"{signed_url}{separator}{timestamp}&token={token}"


def sign_download_url_with_lifetime(
    credential: Credential,
    url: str,
    lifetime: Lifetime,
    only_path: bool = False,
) -> str:
    """
    Sign a download URL that stays valid for ``lifetime`` from now.

    Args:
        credential: Signing credential
        url: Absolute download URL
        lifetime: timedelta or number of seconds
        only_path: Sign only the path and query instead of the full URL

    Returns:
        Signed download URL
    """
    if not isinstance(lifetime, timedelta):
        lifetime = timedelta(seconds=lifetime)
    return sign_download_url_with_deadline(
        credential, url, _utcnow() + lifetime, only_path
    )
