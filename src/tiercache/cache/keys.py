"""Cache key generation — namespaced, hash-based, filesystem-safe."""

from __future__ import annotations

import hashlib
import re
from urllib.parse import ParseResult, SplitResult, urlsplit, urlunsplit

_UNSAFE_PREFIX_CHARS = re.compile(r"[^A-Za-z0-9_.-]")


def key_for(prefix: str, identifier: str | ParseResult | SplitResult) -> str:
    """Derive a cache key from a namespace prefix and a URL or string.

    Parsed URLs go through ``key_for_url``; plain strings are hashed as-is.
    """
    if isinstance(identifier, (ParseResult, SplitResult)):
        return key_for_url(prefix, identifier)
    return key_for_string(prefix, identifier)


def key_for_url(prefix: str, url: str | ParseResult | SplitResult) -> str:
    """Derive a key from a URL, normalizing scheme and host case first."""
    return _join(prefix, hash_identifier(normalize_url(url)))


def key_for_string(prefix: str, string: str) -> str:
    """Derive a key from an arbitrary string."""
    return _join(prefix, hash_identifier(string))


def hash_identifier(identifier: str) -> str:
    """SHA256 hex digest of an identifier's UTF-8 bytes."""
    return hashlib.sha256(identifier.encode("utf-8")).hexdigest()


def normalize_url(url: str | ParseResult | SplitResult) -> str:
    """Lower-case the scheme and host of a URL; leave path and query alone."""
    if isinstance(url, ParseResult):
        url = url.geturl()
    parts = urlsplit(url) if isinstance(url, str) else url
    # Userinfo is case-sensitive; host and port are not
    userinfo, at, hostport = parts.netloc.rpartition("@")
    netloc = userinfo + at + hostport.lower()
    return urlunsplit((parts.scheme.lower(), netloc, parts.path, parts.query, parts.fragment))


def sanitize_prefix(prefix: str) -> str:
    """Make a prefix usable as the start of a file name."""
    return _UNSAFE_PREFIX_CHARS.sub("_", prefix).lstrip(".")


def _join(prefix: str, digest: str) -> str:
    safe = sanitize_prefix(prefix)
    return f"{safe}-{digest}" if safe else digest
