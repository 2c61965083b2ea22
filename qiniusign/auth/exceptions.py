"""
Signing exceptions for QiniuSign.

Author: QiniuSign Team
"""


class SigningError(Exception):
    """Base exception for signing errors."""

    def __init__(self, message: str, error_code: str = "SigningFailed"):
        self.message = message
        self.error_code = error_code
        super().__init__(message)


class UrlParseError(SigningError, ValueError):
    """Raised when a URL handed to a signing routine is not a valid absolute URL."""

    def __init__(self, url: str, reason: str = "not a valid absolute URL"):
        self.url = url
        super().__init__(f"Cannot parse URL '{url}': {reason}", "InvalidUrl")


class TimeRangeError(SigningError, ValueError):
    """Raised when a download deadline lies before the Unix epoch."""

    def __init__(self, message: str = "Deadline is earlier than the Unix epoch"):
        super().__init__(message, "InvalidDeadline")
