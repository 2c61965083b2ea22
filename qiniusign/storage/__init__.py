"""Storage helpers built on top of the signing credential."""

from qiniusign.storage.download import (
    deadline_to_timestamp,
    sign_download_url_with_deadline,
    sign_download_url_with_lifetime,
)

__all__ = [
    "deadline_to_timestamp",
    "sign_download_url_with_deadline",
    "sign_download_url_with_lifetime",
]
