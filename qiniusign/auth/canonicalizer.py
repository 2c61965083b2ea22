"""Request canonicalization for Qiniu access-token signatures.

This module builds the exact byte strings that the Qiniu API signs and
verifies. Two formats exist:

- v1 (``QBox`` tokens): path and query, plus the body for form posts.
- v2 (``Qiniu`` tokens): method, path and query, host, content type,
  ``X-Qiniu-*`` headers, plus the body for anything but binary uploads.

Reference: https://developer.qiniu.com/kodo/manual/1201/access-token
"""

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Mapping, Optional, Tuple, Union
from urllib.parse import quote, urlsplit

from qiniusign.auth.exceptions import UrlParseError

HeaderValue = Union[str, bytes]
Headers = Union[Mapping[str, HeaderValue], Iterable[Tuple[str, HeaderValue]]]
Body = Optional[Union[str, bytes]]

FORM_MIME = "application/x-www-form-urlencoded"
JSON_MIME = "application/json"
BINARY_MIME = "application/octet-stream"

X_QINIU_PREFIX = "X-Qiniu-"

# Ports omitted from the Host line because they are implied by the scheme
DEFAULT_PORTS = {
    "http": 80,
    "https": 443,
    "ws": 80,
    "wss": 443,
    "ftp": 21,
}

# Characters left alone when percent-encoding; '%' is kept so existing
# escapes are not encoded twice
_PATH_SAFE = "!$%&'()*+,-./:;=@[\\]^_|~"
_QUERY_SAFE = "!$%&()*+,-./:;=?@[\\]^_`{|}~"


class SignatureVersion(str, Enum):
    """Authorization header schemes, one per canonicalization format."""
    V1 = "QBox"
    V2 = "Qiniu"


@dataclass(frozen=True)
class ParsedUrl:
    """The URL components that take part in a signature."""

    path: str
    query: str
    host: str
    port: Optional[int]
    scheme: str = "http"
    userinfo: str = ""
    has_query: bool = False

    @property
    def path_and_query(self) -> str:
        """Path followed by ``?query`` when the query is non-empty."""
        if self.query:
            return f"{self.path}?{self.query}"
        return self.path

    @property
    def request_target(self) -> str:
        """Path followed by ``?query`` whenever the URL has a ``?``, even an empty query."""
        if self.has_query:
            return f"{self.path}?{self.query}"
        return self.path

    @property
    def host_line(self) -> str:
        if self.port is None:
            return self.host
        return f"{self.host}:{self.port}"

    def geturl(self) -> str:
        """Serialize back to an absolute URL without the fragment."""
        userinfo = f"{self.userinfo}@" if self.userinfo else ""
        return f"{self.scheme}://{userinfo}{self.host_line}{self.request_target}"


def parse_url(url: str) -> ParsedUrl:
    """
    Parse an absolute URL into the parts used for signing.

    The parts come back normalized the way the Qiniu servers see them:
    scheme and host lowercased, default ports dropped, and characters that
    are not allowed in a path or query percent-encoded (``/a b`` becomes
    ``/a%20b``). Existing ``%XX`` escapes are kept as they are.

    Args:
        url: Absolute URL such as ``http://upload.qiniup.com/find?v=2``

    Returns:
        ParsedUrl with path (``/`` when empty), query, host and the
        port, which is None when absent or equal to the scheme default

    Raises:
        UrlParseError: If the URL is relative, has no host or a bad port
    """
    try:
        parts = urlsplit(url)
    except ValueError as exc:
        raise UrlParseError(url, str(exc)) from exc

    if not parts.scheme or not parts.netloc:
        raise UrlParseError(url)

    host = parts.hostname
    if not host:
        raise UrlParseError(url, "host is missing")
    if ":" in host:
        host = f"[{host}]"

    scheme = parts.scheme.lower()
    try:
        port = parts.port
    except ValueError as exc:
        raise UrlParseError(url, str(exc)) from exc
    if port is not None and DEFAULT_PORTS.get(scheme) == port:
        port = None

    userinfo, _, _ = parts.netloc.rpartition("@")

    return ParsedUrl(
        path=quote(parts.path, safe=_PATH_SAFE) or "/",
        query=quote(parts.query, safe=_QUERY_SAFE),
        host=host,
        port=port,
        scheme=scheme,
        userinfo=userinfo,
        has_query="?" in url.split("#", 1)[0],
    )


def canonicalize_header_name(name: str) -> str:
    """
    Normalize header name casing.

    The first letter and every letter after a ``-`` are uppercased, the
    rest lowercased: ``x-qiniu-axxxx`` becomes ``X-Qiniu-Axxxx``.
    """
    return "-".join(part[:1].upper() + part[1:].lower() for part in name.split("-"))


def _to_bytes(value: Union[str, bytes, None]) -> bytes:
    if value is None:
        return b""
    if isinstance(value, bytes):
        return value
    return value.encode("utf-8")


def _header_items(headers: Optional[Headers]) -> List[Tuple[str, HeaderValue]]:
    if headers is None:
        return []
    if isinstance(headers, Mapping):
        return list(headers.items())
    return list(headers)


def get_content_type(headers: Optional[Headers]) -> Optional[bytes]:
    """Return the first ``Content-Type`` value (name matched case-insensitively)."""
    for name, value in _header_items(headers):
        if name.lower() == "content-type":
            return _to_bytes(value)
    return None


def collect_x_qiniu_headers(headers: Optional[Headers]) -> List[Tuple[str, bytes]]:
    """
    Collect the ``X-Qiniu-*`` headers that take part in a v2 signature.

    Names are normalized first; only names strictly longer than the
    ``X-Qiniu-`` prefix qualify. When several headers normalize to the
    same name the first one wins.

    Args:
        headers: Mapping or iterable of (name, value) pairs

    Returns:
        (normalized name, value bytes) pairs sorted by name
    """
    collected = {}
    for name, value in _header_items(headers):
        normalized = canonicalize_header_name(name)
        if len(normalized) <= len(X_QINIU_PREFIX):
            continue
        if not normalized.startswith(X_QINIU_PREFIX):
            continue
        collected.setdefault(normalized, _to_bytes(value))

    return sorted(collected.items(), key=lambda item: item[0])


def _will_push_body_v1(content_type: str) -> bool:
    return content_type.lower() == FORM_MIME


def _will_push_body_v2(content_type: bytes) -> bool:
    return content_type.decode("latin-1").lower() != BINARY_MIME


def build_canonical_v1(url: str, content_type: Optional[str], body: Body) -> bytes:
    """
    Build the v1 canonical buffer.

    Format:
        path[?query]\\n
        body (only for non-empty form-urlencoded bodies)
    """
    parsed = parse_url(url)
    body_bytes = _to_bytes(body)

    data = bytearray(parsed.path_and_query.encode("utf-8"))
    data += b"\n"
    if content_type and body_bytes and _will_push_body_v1(content_type):
        data += body_bytes
    return bytes(data)


def _x_qiniu_block(headers: Optional[Headers]) -> bytes:
    block = bytearray()
    for name, value in collect_x_qiniu_headers(headers):
        block += name.encode("utf-8") + b": " + value + b"\n"
    return bytes(block)


def build_canonical_v2(
    method: str,
    url: str,
    headers: Optional[Headers],
    body: Body,
) -> bytes:
    """
    Build the v2 canonical buffer.

    Format:
        METHOD path[?query]\\n
        Host: host[:port]\\n
        [Content-Type: value\\n]
        X-Qiniu-Name: value\\n   (zero or more, sorted)
        \\n
        body (only with a Content-Type other than application/octet-stream)
    """
    parsed = parse_url(url)
    body_bytes = _to_bytes(body)

    data = bytearray(f"{method} {parsed.path_and_query}".encode("utf-8"))
    data += b"\nHost: " + parsed.host_line.encode("utf-8") + b"\n"

    content_type = get_content_type(headers)
    if content_type is not None:
        data += b"Content-Type: " + content_type + b"\n"
        data += _x_qiniu_block(headers)
        data += b"\n"
        if body_bytes and _will_push_body_v2(content_type):
            data += body_bytes
    else:
        data += _x_qiniu_block(headers)
        data += b"\n"
    return bytes(data)
