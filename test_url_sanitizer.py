import pytest

from utils.url_sanitizer import DEFAULT_MAX_URL_LENGTH, sanitize_url


class TestSanitizeUrlAccepts:
    """
    Tests for inputs that sanitize_url turns into canonical URLs.
    """

    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("example.com", "https://example.com/"),
            ("https://www.google.com", "https://www.google.com/"),
            ("  https://github.com  ", "https://github.com/"),
            ("HTTP://Example.COM/Path", "http://example.com/Path"),
            ("https://example.com:443/a", "https://example.com/a"),
            ("http://example.com:80", "http://example.com/"),
            ("http://example.com:8080/x", "http://example.com:8080/x"),
            ("https://example.com/a b", "https://example.com/a%20b"),
            ("https://example.com/search?q=a b#top", "https://example.com/search?q=a%20b#top"),
            ("https://user:pw@example.com/", "https://user:pw@example.com/"),
            ("http://[::1]:8080/", "http://[::1]:8080/"),
            ("mailto:a@b.com", "mailto:a@b.com"),
            ("https://x.com/%zz", "https://x.com/%25zz"),
            ("https://x.com/a%20b?p=100%", "https://x.com/a%20b?p=100%25"),
        ],
        ids=[
            "bare-host", "https", "surrounding-whitespace", "upper-case-scheme-and-host",
            "default-https-port", "default-http-port", "custom-port", "space-in-path",
            "query-and-fragment", "userinfo", "ipv6", "mailto", "stray-percent",
            "escape-kept-trailing-percent-encoded",
        ]
    )
    def test_returns_canonical_url(self, raw, expected):
        """
        Test that valid input is trimmed, prefixed where needed and canonicalized.

        Args:
            raw: Input text
            expected: Canonical URL
        """
        assert sanitize_url(raw) == expected

    def test_url_at_length_limit_is_accepted(self):
        """Test that a URL exactly max_length characters long is kept."""
        raw = "https://example.com/" + "a" * (DEFAULT_MAX_URL_LENGTH - len("https://example.com/"))
        assert len(raw) == DEFAULT_MAX_URL_LENGTH
        assert sanitize_url(raw) == raw


class TestSanitizeUrlRejects:
    """
    Tests for inputs that sanitize_url rejects.
    """

    @pytest.mark.parametrize(
        "raw",
        [
            None,
            "",
            "   \t ",
            "javascript:alert(1)",
            "javascript://alert(1)",
            "file:///etc/passwd",
            "data:text/html,<script>alert(1)</script>",
            "ftp://example.com/file",
            "https://",
            "https://exa mple.com",
            "https://.example.com",
            "https://example..com",
            "https://example.com:99999/",
            "mailto:",
            "mailto:nobody",
        ],
        ids=[
            "none", "empty", "whitespace", "javascript", "javascript-slashes", "file",
            "data", "ftp", "missing-host", "space-in-host", "leading-dot",
            "double-dot", "port-out-of-range", "empty-mailto", "mailto-without-at",
        ]
    )
    def test_returns_none(self, raw):
        """
        Test that blank, malformed or disallowed input yields None.

        Args:
            raw: Input text
        """
        assert sanitize_url(raw) is None

    def test_rejects_input_longer_than_default_limit(self):
        """Test that 2001 characters exceed the default limit of 2000."""
        assert sanitize_url("a" * 2001) is None

    def test_custom_limit_is_applied_after_trimming(self):
        """Test that max_length is measured on the trimmed text."""
        assert sanitize_url("   example.com   ", max_length=11) == "https://example.com/"
        assert sanitize_url("example.com", max_length=10) is None
