"""Tests for cache key generation."""

from urllib.parse import urlparse, urlsplit

from tiercache.cache.disk import validate_key
from tiercache.cache.keys import (
    hash_identifier,
    key_for,
    key_for_string,
    key_for_url,
    normalize_url,
    sanitize_prefix,
)


class TestHashIdentifier:
    def test_deterministic(self):
        assert hash_identifier("abc") == hash_identifier("abc")

    def test_different_data_different_hash(self):
        assert hash_identifier("aaa") != hash_identifier("bbb")

    def test_returns_hex_string(self):
        h = hash_identifier("test")
        assert len(h) == 64  # SHA256 hex digest
        assert all(c in "0123456789abcdef" for c in h)


class TestKeyFor:
    def test_deterministic(self):
        assert key_for("img", "https://example.com/a.png") == key_for(
            "img", "https://example.com/a.png"
        )

    def test_prefix_is_kept(self):
        key = key_for("thumbs", "x")
        assert key.startswith("thumbs-")
        assert key == f"thumbs-{hash_identifier('x')}"

    def test_different_prefix_different_key(self):
        assert key_for("a", "same") != key_for("b", "same")

    def test_no_collisions_in_large_sample(self):
        keys = {key_for("p", f"https://example.com/item/{i}") for i in range(10_000)}
        assert len(keys) == 10_000

    def test_empty_prefix_is_bare_digest(self):
        assert key_for("", "x") == hash_identifier("x")

    def test_parsed_url_goes_through_url_normalization(self):
        parsed = urlparse("HTTP://Example.COM/a/b?q=1")
        assert key_for("p", parsed) == key_for_url("p", "http://example.com/a/b?q=1")

    def test_split_url_accepted(self):
        split = urlsplit("https://example.com/x")
        assert key_for("p", split) == key_for_url("p", "https://example.com/x")

    def test_string_identifier_not_normalized(self):
        # Plain strings are hashed verbatim, even when they look like URLs
        assert key_for("p", "HTTP://A.com/") == key_for_string("p", "HTTP://A.com/")
        assert key_for("p", "HTTP://A.com/") != key_for("p", "http://a.com/")

    def test_keys_are_valid_file_names(self):
        for prefix in ["user", "a/b", "../../etc", ".hidden", "spaces here", "ünï"]:
            key = key_for(prefix, "anything")
            assert validate_key(key) == key


class TestKeyForUrl:
    def test_scheme_and_host_case_insensitive(self):
        assert key_for_url("p", "HTTPS://Example.com/path") == key_for_url(
            "p", "https://example.com/path"
        )

    def test_path_case_sensitive(self):
        assert key_for_url("p", "https://example.com/A") != key_for_url(
            "p", "https://example.com/a"
        )


class TestNormalizeUrl:
    def test_lowercases_scheme_and_host(self):
        assert normalize_url("HTTP://WWW.Example.Com:8080/Path?Q=1") == (
            "http://www.example.com:8080/Path?Q=1"
        )

    def test_keeps_userinfo_case(self):
        assert normalize_url("http://User:Pw@Host.com/") == "http://User:Pw@host.com/"


class TestSanitizePrefix:
    def test_replaces_unsafe_chars(self):
        assert sanitize_prefix("a/b c") == "a_b_c"

    def test_strips_leading_dots(self):
        assert sanitize_prefix("..x") == "x"

    def test_safe_prefix_unchanged(self):
        assert sanitize_prefix("img-v2.thumb_1") == "img-v2.thumb_1"
