"""Tests for signed download URLs."""

from datetime import datetime, timedelta, timezone
from unittest.mock import patch

import pytest

from qiniusign.auth.credential import Credential
from qiniusign.auth.exceptions import TimeRangeError, UrlParseError
from qiniusign.storage.download import (
    EPOCH,
    MAX_DEADLINE,
    deadline_to_timestamp,
    sign_download_url_with_deadline,
    sign_download_url_with_lifetime,
)


DEADLINE = EPOCH + timedelta(seconds=1_234_567_890 + 3600)


@pytest.fixture
def credential():
    """Credential used by the published test vectors."""
    return Credential("abcdefghklmnopq", "1234567890")


class TestDeadlineConversion:
    """Test deadline to epoch-seconds conversion."""

    def test_aware_datetime(self):
        assert deadline_to_timestamp(DEADLINE) == 1234571490

    def test_naive_datetime_is_utc(self):
        """Test naive datetimes are read as UTC."""
        assert deadline_to_timestamp(datetime(2009, 2, 14, 0, 31, 30)) == 1234571490

    def test_other_timezone(self):
        """Test aware datetimes in other zones convert correctly."""
        tz = timezone(timedelta(hours=8))
        assert deadline_to_timestamp(datetime(2009, 2, 14, 8, 31, 30, tzinfo=tz)) == 1234571490

    def test_numeric_deadline_truncated(self):
        """Test fractional seconds are truncated."""
        assert deadline_to_timestamp(1234571490.9) == 1234571490

    def test_sub_second_datetime_truncated(self):
        assert deadline_to_timestamp(DEADLINE + timedelta(microseconds=999_999)) == 1234571490

    def test_epoch_is_valid(self):
        assert deadline_to_timestamp(EPOCH) == 0

    def test_overflow_saturates(self):
        """Test deadlines past 32 bits clamp instead of failing."""
        assert deadline_to_timestamp(2 ** 32 + 5) == MAX_DEADLINE
        assert deadline_to_timestamp(datetime(2200, 1, 1, tzinfo=timezone.utc)) == 4294967295
        assert deadline_to_timestamp(float("inf")) == MAX_DEADLINE

    @pytest.mark.parametrize(
        "deadline",
        [
            -1,
            -0.5,
            float("-inf"),
            float("nan"),
            datetime(1969, 12, 31, 23, 59, 59, tzinfo=timezone.utc),
        ],
    )
    def test_before_epoch(self, deadline):
        """Test deadlines before the epoch, or NaN, raise TimeRangeError."""
        with pytest.raises(TimeRangeError) as exc_info:
            deadline_to_timestamp(deadline)

        assert exc_info.value.error_code == "InvalidDeadline"


class TestSignWithDeadline:
    """Test download URL signing with an absolute deadline."""

    def test_full_url(self, credential):
        """Test the published full-URL vector."""
        assert sign_download_url_with_deadline(
            credential, "http://www.qiniu.com/?go=1", DEADLINE, only_path=False
        ) == (
            "http://www.qiniu.com/?go=1&e=1234571490"
            "&token=abcdefghklmnopq:KjQtlGAkEOhSwtFjJfYtYa2-reE="
        )

    def test_only_path(self, credential):
        """Test the published path-only vector."""
        assert sign_download_url_with_deadline(
            credential, "http://www.qiniu.com/?go=1", DEADLINE, only_path=True
        ) == (
            "http://www.qiniu.com/?go=1&e=1234571490"
            "&token=abcdefghklmnopq:86uQeCB9GsFFvL2wA0mgBcOMsmk="
        )

    def test_url_without_query(self, credential):
        """Test '?e=' is used when nothing has been queried yet."""
        url = "http://www.qiniu.com/photo.jpg"

        signed = sign_download_url_with_deadline(credential, url, 1234571490)

        expected_token = credential.sign(b"http://www.qiniu.com/photo.jpg?e=1234571490")
        assert signed == f"{url}?e=1234571490&token={expected_token}"

    def test_only_path_without_query(self, credential):
        """Test path-only signing covers just the path and expiry."""
        url = "http://www.qiniu.com/photo.jpg"

        signed = sign_download_url_with_deadline(credential, url, 1234571490, only_path=True)

        expected_token = credential.sign(b"/photo.jpg?e=1234571490")
        assert signed == f"{url}?e=1234571490&token={expected_token}"

    def test_empty_path_gets_root(self, credential):
        """Test a bare host is signed with the root path."""
        signed = sign_download_url_with_deadline(credential, "http://www.qiniu.com", 1234571490)

        expected_token = credential.sign(b"http://www.qiniu.com/?e=1234571490")
        assert signed == f"http://www.qiniu.com/?e=1234571490&token={expected_token}"

    def test_only_path_empty_query(self, credential):
        """Test a trailing '?' is kept, so the expiry joins with '&e='."""
        signed = sign_download_url_with_deadline(
            credential, "http://www.qiniu.com/a?", 1234571490, only_path=True
        )

        expected_token = credential.sign(b"/a?&e=1234571490")
        assert "??" not in signed
        assert signed == f"http://www.qiniu.com/a?&e=1234571490&token={expected_token}"

    def test_full_url_empty_query(self, credential):
        signed = sign_download_url_with_deadline(credential, "http://www.qiniu.com/a?", 1234571490)

        expected_token = credential.sign(b"http://www.qiniu.com/a?&e=1234571490")
        assert signed == f"http://www.qiniu.com/a?&e=1234571490&token={expected_token}"

    @pytest.mark.parametrize(
        "url,expected",
        [
            ("http://www.qiniu.com/a b.jpg", "http://www.qiniu.com/a%20b.jpg"),
            ("HTTP://WWW.Qiniu.com:80/a.jpg", "http://www.qiniu.com/a.jpg"),
            ("http://www.qiniu.com/a.jpg#top", "http://www.qiniu.com/a.jpg"),
        ],
    )
    def test_url_is_normalized(self, credential, url, expected):
        """Test the URL is serialized the way the server sees it before signing."""
        signed = sign_download_url_with_deadline(credential, url, 1234571490)

        expected_token = credential.sign(f"{expected}?e=1234571490".encode("utf-8"))
        assert signed == f"{expected}?e=1234571490&token={expected_token}"

    def test_saturated_deadline(self, credential):
        """Test overflowing deadlines are written as 2**32 - 1."""
        signed = sign_download_url_with_deadline(
            credential, "http://www.qiniu.com/?go=1", 2 ** 40
        )

        expected_token = credential.sign(b"http://www.qiniu.com/?go=1&e=4294967295")
        assert signed == f"http://www.qiniu.com/?go=1&e=4294967295&token={expected_token}"

    def test_deadline_before_epoch(self, credential):
        with pytest.raises(TimeRangeError):
            sign_download_url_with_deadline(credential, "http://www.qiniu.com/", -10)

    def test_invalid_url(self, credential):
        with pytest.raises(UrlParseError):
            sign_download_url_with_deadline(credential, "www.qiniu.com/photo.jpg", DEADLINE)


class TestSignWithLifetime:
    """Test download URL signing relative to now."""

    NOW = datetime(2009, 2, 13, 23, 31, 30, tzinfo=timezone.utc)

    def test_timedelta_lifetime(self, credential):
        """Test deadline is now plus lifetime."""
        with patch("qiniusign.storage.download._utcnow", return_value=self.NOW):
            signed = sign_download_url_with_lifetime(
                credential, "http://www.qiniu.com/?go=1", timedelta(hours=1)
            )

        assert signed == (
            "http://www.qiniu.com/?go=1&e=1234571490"
            "&token=abcdefghklmnopq:KjQtlGAkEOhSwtFjJfYtYa2-reE="
        )

    def test_seconds_lifetime(self, credential):
        """Test lifetimes may be given in seconds."""
        with patch("qiniusign.storage.download._utcnow", return_value=self.NOW):
            signed = sign_download_url_with_lifetime(
                credential, "http://www.qiniu.com/?go=1", 3600, only_path=True
            )

        assert signed.endswith("&token=abcdefghklmnopq:86uQeCB9GsFFvL2wA0mgBcOMsmk=")

    def test_real_clock(self, credential):
        """Test the embedded deadline lies in the future."""
        before = int(datetime.now(timezone.utc).timestamp())

        signed = sign_download_url_with_lifetime(credential, "http://www.qiniu.com/a", 600)

        e = int(signed.split("?e=")[1].split("&")[0])
        assert before + 599 <= e <= before + 602
