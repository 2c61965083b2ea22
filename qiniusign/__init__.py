"""
QiniuSign: access tokens for Qiniu cloud object storage

Signs management requests (QBox / Qiniu authorization headers), embedded-data
tokens and time-limited private download URLs.
"""

__version__ = "0.1.0"

from .auth.credential import Credential
from .auth.exceptions import SigningError, TimeRangeError, UrlParseError
from .storage.download import (
    sign_download_url_with_deadline,
    sign_download_url_with_lifetime,
)

__all__ = [
    "Credential",
    "SigningError",
    "TimeRangeError",
    "UrlParseError",
    "sign_download_url_with_deadline",
    "sign_download_url_with_lifetime",
    "__version__",
]
