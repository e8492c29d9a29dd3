"""
URL validation and normalization for hyperlink targets.

Free text typed into a spreadsheet cell is turned into a safe absolute URL
before it is embedded as a hyperlink relationship. Anything that cannot be
expressed as an http, https or mailto URI is rejected.
"""
import logging
import re
from typing import Optional
from urllib.parse import SplitResult, quote, urlsplit, urlunsplit

logger = logging.getLogger(__name__)

DEFAULT_MAX_URL_LENGTH = 2000
ALLOWED_SCHEMES = ("http", "https", "mailto")
DEFAULT_PORTS = {"http": 80, "https": 443}

_KNOWN_PREFIXES = ("http://", "https://", "mailto:")
_INVALID_HOST_CHARS = set(" \t\r\n<>\"{}|\\^`%")
# Characters left untouched when re-encoding path, query and fragment
_SAFE_CHARS = "/:@!$&'()*+,;=-._~%?#[]"
# A "%" that does not start a two-digit hex escape
_STRAY_PERCENT = re.compile(r"%(?![0-9A-Fa-f]{2})")


def sanitize_url(raw: Optional[str], max_length: int = DEFAULT_MAX_URL_LENGTH) -> Optional[str]:
    """
    Validate and canonicalize a URL typed by a user.

    Rules, applied in order:
        1. None or blank input is rejected.
        2. Surrounding whitespace is trimmed.
        3. Input longer than max_length is rejected.
        4. Input without an http://, https:// or mailto: prefix gets https://.
        5. The result must parse as an absolute URI.
        6. Only the http, https and mailto schemes are accepted.

    Args:
        raw: The text to sanitize
        max_length: Longest accepted input, measured after trimming

    Returns:
        The canonical absolute URL (lower-case scheme and host, default port
        dropped, "/" for an empty http path, unsafe characters
        percent-encoded), or None when the input is rejected.
    """
    if raw is None or not raw.strip():
        return None

    url = raw.strip()
    if len(url) > max_length:
        logger.debug("Rejected URL longer than limit", extra={"length": len(url), "max_length": max_length})
        return None

    if not url.lower().startswith(_KNOWN_PREFIXES):
        url = "https://" + url

    try:
        parts = urlsplit(url)
        if parts.scheme not in ALLOWED_SCHEMES:
            return None
        if parts.scheme == "mailto":
            return _canonical_mailto(parts)
        return _canonical_web_url(parts)
    except ValueError as e:
        logger.debug("Rejected malformed URL", extra={"error": str(e)})
        return None


def _canonical_mailto(parts: SplitResult) -> str:
    address = parts.path
    if not address or "@" not in address or any(ch.isspace() for ch in address):
        raise ValueError("mailto URI without a valid address")
    return urlunsplit((parts.scheme, "", _encode(address), _encode(parts.query), ""))


def _canonical_web_url(parts: SplitResult) -> str:
    host = parts.hostname
    if not host or any(ch in _INVALID_HOST_CHARS for ch in host):
        raise ValueError(f"Invalid host in '{parts.geturl()}'")
    if host.startswith(".") or ".." in host:
        raise ValueError(f"Invalid host '{host}'")
    # urlsplit reports "host:" as having no port; "file:///x" would otherwise pass as host "file"
    if parts.netloc.endswith(":"):
        raise ValueError(f"Empty port in '{parts.netloc}'")

    # parts.port raises ValueError for a non-numeric or out-of-range port
    port = parts.port
    netloc = f"[{host}]" if ":" in host else host
    if port is not None and port != DEFAULT_PORTS[parts.scheme]:
        netloc = f"{netloc}:{port}"

    userinfo, has_userinfo, _ = parts.netloc.rpartition("@")
    if has_userinfo:
        netloc = f"{_encode(userinfo)}@{netloc}"

    path = _encode(parts.path) or "/"
    return urlunsplit((
        parts.scheme,
        netloc,
        path,
        _encode(parts.query),
        _encode(parts.fragment),
    ))


def _encode(component: str) -> str:
    """Percent-encode unsafe characters, keeping valid %XX escapes as they are."""
    return quote(_STRAY_PERCENT.sub("%25", component), safe=_SAFE_CHARS)
