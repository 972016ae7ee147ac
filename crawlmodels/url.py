"""Crawled URLs and the canonical string form used to identify them."""

from __future__ import annotations

import logging
import re
import threading
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, replace
from typing import IO, Any

import idna
from bs4 import BeautifulSoup
from urllib.parse import quote, quote_plus, unquote_to_bytes

logger = logging.getLogger(__name__)

# Query strings on these hosts carry signatures and must be left untouched.
_UNENCODED_QUERY_HOSTS = frozenset(
    {"external-preview.redd.it", "styles.redditmedia.com", "preview.redd.it"}
)

_SCHEME_RE = re.compile(r"([A-Za-z][A-Za-z0-9+.\-]*):")
_BAD_ESCAPE_RE = re.compile(r"%(?![0-9A-Fa-f]{2})")
_PORT_RE = re.compile(r"(:[0-9]*)?")
_USERINFO_RE = re.compile(r"[A-Za-z0-9\-._:~!$&'()*+,;=%@]*")
_VALID_RAW_PATH_RE = re.compile(r"[A-Za-z0-9\-._~!$&'()*+,;=:@\[\]/%]*")
_HOST_ASCII_ALLOWED = frozenset(
    "abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789"
    "-._~!$&'()*+,;=:[]<>\"%"
)
_PATH_SAFE = "$&+,/:;=@"


def _unescape(text: str, plus_as_space: bool = False) -> str:
    """Decode percent escapes, rejecting malformed ones."""
    bad = _BAD_ESCAPE_RE.search(text)
    if bad:
        raise ValueError(f"invalid URL escape {text[bad.start():bad.start() + 3]!r}")
    if plus_as_space:
        text = text.replace("+", " ")
    return unquote_to_bytes(text).decode("utf-8", "surrogateescape")


def _query_escape(text: str) -> str:
    return quote_plus(text, safe="", encoding="utf-8", errors="surrogateescape")


def _parse_query(raw_query: str) -> dict[str, list[str]]:
    """Split a raw query into keys and their values, skipping malformed pairs."""
    values: dict[str, list[str]] = {}
    for pair in raw_query.split("&"):
        if not pair or ";" in pair:
            continue
        key, _, value = pair.partition("=")
        try:
            key = _unescape(key, plus_as_space=True)
            value = _unescape(value, plus_as_space=True)
        except ValueError:
            continue
        values.setdefault(key, []).append(value)
    return values


@dataclass
class ParsedURL:
    """Components of an absolute URL or request path."""

    scheme: str = ""
    opaque: str = ""
    userinfo: str | None = None
    host: str = ""
    path: str = ""
    raw_path: str = ""
    raw_query: str = ""
    force_query: bool = False

    def query(self) -> dict[str, list[str]]:
        """The query string decoded into keys and values, in order of appearance."""
        return _parse_query(self.raw_query)

    def escaped_path(self) -> str:
        """The path as written if it is validly encoded, otherwise re-escaped."""
        if _VALID_RAW_PATH_RE.fullmatch(self.raw_path):
            return self.raw_path
        return quote(self.path, safe=_PATH_SAFE, encoding="utf-8", errors="surrogateescape")

    def __str__(self) -> str:
        parts: list[str] = []
        if self.scheme:
            parts.append(self.scheme + ":")
        if self.opaque:
            parts.append(self.opaque)
        else:
            if self.scheme or self.host or self.userinfo is not None:
                if self.host or self.path or self.userinfo is not None:
                    parts.append("//")
                if self.userinfo is not None:
                    parts.append(self.userinfo + "@")
                parts.append(self.host)
            path = self.escaped_path()
            if path and not path.startswith("/") and self.host:
                parts.append("/")
            parts.append(path)
        if self.force_query or self.raw_query:
            parts.append("?" + self.raw_query)
        return "".join(parts)


def _check_port(port: str) -> None:
    if not _PORT_RE.fullmatch(port):
        raise ValueError(f"invalid port {port!r} after host")


def _parse_host(host: str) -> str:
    if host.startswith("["):
        end = host.rfind("]")
        if end < 0:
            raise ValueError("missing ']' in host")
        _check_port(host[end + 1:])
    elif ":" in host:
        _check_port(host[host.rfind(":"):])
    for char in host:
        if char.isascii() and char not in _HOST_ASCII_ALLOWED:
            raise ValueError(f"invalid character {char!r} in host name")
    if _BAD_ESCAPE_RE.search(host):
        raise ValueError(f"invalid URL escape in host {host!r}")
    return host


def _parse_authority(authority: str) -> tuple[str | None, str]:
    at = authority.rfind("@")
    if at < 0:
        return None, _parse_host(authority)
    userinfo = authority[:at]
    if not _USERINFO_RE.fullmatch(userinfo):
        raise ValueError("invalid userinfo")
    return userinfo, _parse_host(authority[at + 1:])


def _parse_request_uri(raw: str) -> ParsedURL:
    """Parse a URL that must be absolute or an absolute path; fragments are not split off."""
    if any(ord(char) < 0x20 or ord(char) == 0x7F for char in raw):
        raise ValueError("invalid control character in URL")
    if not raw:
        raise ValueError("empty url")
    if raw.startswith(":"):
        raise ValueError("missing protocol scheme")

    match = _SCHEME_RE.match(raw)
    if match:
        scheme, rest = match[1].lower(), raw[match.end():]
    else:
        scheme, rest = "", raw

    force_query = False
    raw_query = ""
    if rest.endswith("?") and rest.count("?") == 1:
        force_query, rest = True, rest[:-1]
    else:
        rest, _, raw_query = rest.partition("?")

    if not rest.startswith("/"):
        if scheme:
            return ParsedURL(
                scheme=scheme, opaque=rest, raw_query=raw_query, force_query=force_query
            )
        raise ValueError("invalid URI for request")

    userinfo: str | None = None
    host = ""
    if scheme and rest.startswith("//"):
        authority, slash, remainder = rest[2:].partition("/")
        rest = slash + remainder
        userinfo, host = _parse_authority(authority)

    return ParsedURL(
        scheme=scheme,
        userinfo=userinfo,
        host=host,
        path=_unescape(rest),
        raw_path=rest,
        raw_query=raw_query,
        force_query=force_query,
    )


def _label_to_ascii(label: str) -> str:
    if label.isascii():
        return label
    try:
        return idna.alabel(label).decode("ascii")
    except UnicodeError:
        return "xn--" + label.encode("punycode").decode("ascii")


def _host_to_ascii(host: str) -> str:
    if host.isascii() or host.startswith("["):
        return host
    if ":" in host:
        name, colon, port = host.rpartition(":")
    else:
        name, colon, port = host, "", ""
    try:
        labels = [_label_to_ascii(label) for label in name.split(".")]
    except UnicodeError as exc:
        logger.warning("cannot encode punycode host to ASCII: %s", exc)
        return host
    return ".".join(labels) + colon + port


def encode_query(pairs: Mapping[str, Sequence[str]]) -> str:
    """Encode keys and values in URL-encoded form, keeping their order."""
    return "&".join(
        f"{_query_escape(key)}={_query_escape(value)}"
        for key, values in pairs.items()
        for value in values
    )


def url_to_string(parsed: ParsedURL) -> str:
    """Canonical string for a parsed URL: re-encoded query and ASCII host."""
    if parsed.host in _UNENCODED_QUERY_HOSTS:
        raw_query = parsed.raw_query
    else:
        raw_query = encode_query(parsed.query())
    return str(replace(parsed, host=_host_to_ascii(parsed.host), raw_query=raw_query))


class URL:
    """A URL being crawled, with its fetched response data and hop count."""

    def __init__(self, raw: str, hops: int = 0, redirects: int = 0) -> None:
        self.raw = raw
        self.hops = hops
        self.redirects = redirects
        self.parsed: ParsedURL | None = None
        self.request: Any = None
        self.response: Any = None
        self.body: IO[bytes] | None = None
        self.document: BeautifulSoup | None = None
        self.mimetype: Any = None
        self._string_cache: str | None = None
        self._lock = threading.Lock()

    def parse(self) -> None:
        """Parse the raw URL; raises ValueError if it is not a valid request URI."""
        self.parsed = None
        self.parsed = _parse_request_uri(self.raw)

    def get_document(self) -> BeautifulSoup:
        """The body parsed as HTML, parsed once and cached."""
        if self.document is None:
            if self.body is None:
                raise ValueError("URL has no body to parse")
            self.document = BeautifulSoup(self.body, "html.parser")
            self.rewind_body()
        return self.document

    def rewind_body(self) -> None:
        """Seek the body back to its start."""
        if self.body is None:
            raise ValueError("URL has no body to rewind")
        self.body.seek(0)

    def inc_redirects(self) -> None:
        self.redirects += 1

    def __str__(self) -> str:
        if self._string_cache is None:
            with self._lock:
                if self._string_cache is None:
                    if self.parsed is None:
                        raise ValueError("URL has not been parsed")
                    self._string_cache = url_to_string(self.parsed)
        return self._string_cache

    def __repr__(self) -> str:
        return f"URL({self.raw!r}, hops={self.hops}, redirects={self.redirects})"