"""
Unit tests for the header collection.
"""

from bodyrewrite.http.headers import Headers, canonical_header_name


class TestCanonicalName:
    """Tests for header name canonicalization."""

    def test_lowercase(self):
        assert canonical_header_name("content-length") == "Content-Length"

    def test_uppercase(self):
        assert canonical_header_name("X-REQUEST-ID") == "X-Request-Id"

    def test_single_word(self):
        assert canonical_header_name("etag") == "Etag"


class TestHeaders:
    """Tests for Headers."""

    def test_case_insensitive_get(self):
        """Lookups ignore case."""
        headers = Headers({"Content-Type": "text/html"})
        assert headers.get("content-type") == "text/html"
        assert headers.get("CONTENT-TYPE") == "text/html"
        assert "content-TYPE" in headers

    def test_get_default(self):
        """Missing headers return the default."""
        headers = Headers()
        assert headers.get("X-Missing") == ""
        assert headers.get("X-Missing", "none") == "none"

    def test_add_keeps_values(self):
        """add() appends, set() replaces."""
        headers = Headers()
        headers.add("Set-Cookie", "a=1")
        headers.add("set-cookie", "b=2")
        assert headers.get_all("Set-Cookie") == ["a=1", "b=2"]

        headers.set("SET-COOKIE", "c=3")
        assert headers.get_all("Set-Cookie") == ["c=3"]

    def test_delete(self):
        """delete() removes every value and ignores missing names."""
        headers = Headers({"Vary": "Accept"})
        headers.delete("vary")
        headers.delete("vary")
        assert "Vary" not in headers

    def test_item_access_uses_lists(self):
        """Item access reads and writes whole value lists."""
        headers = Headers()
        headers["vary"] = ["Accept", "Accept-Encoding"]
        assert headers["Vary"] == ["Accept", "Accept-Encoding"]
        assert list(headers) == ["Vary"]

    def test_pairs(self):
        """pairs() yields one entry per value."""
        headers = Headers([("X-A", "1"), ("X-A", "2"), ("X-B", "3")])
        assert list(headers.pairs()) == [("X-A", "1"), ("X-A", "2"), ("X-B", "3")]

    def test_copy_is_deep(self):
        """Changing a copy leaves the original alone."""
        headers = Headers({"Vary": "Accept"})
        clone = headers.copy()
        clone.add("Vary", "Origin")
        assert headers.get_all("Vary") == ["Accept"]
        assert clone == Headers([("Vary", "Accept"), ("Vary", "Origin")])

    def test_construct_from_headers(self):
        """A Headers instance can seed another."""
        original = Headers([("X-A", "1"), ("X-A", "2")])
        assert Headers(original) == original

    def test_values_are_strings(self):
        """Non-string values are converted."""
        headers = Headers()
        headers.set("Content-Length", 42)
        assert headers.get("Content-Length") == "42"
