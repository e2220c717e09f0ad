"""Input sanitization for request payloads.

Four kinds of string cleaning are supported:
- plain_text: HTML-escape ``& < > " ' /``
- email: trim, then escape
- url: keep only absolute http/https URLs, normalized
- rich_text: allow-list HTML cleaning with nh3

``sanitize_payload`` walks a decoded JSON value and picks the kind for each
string from the key it is stored under.
"""

from __future__ import annotations

import logging
import re
from enum import Enum
from typing import Mapping, Sequence, Union
from urllib.parse import urlsplit, urlunsplit

import nh3

logger = logging.getLogger(__name__)

JsonValue = Union[
    str,
    int,
    float,
    bool,
    None,
    Mapping[str, "JsonValue"],
    Sequence["JsonValue"],
]


class SanitizeKind(str, Enum):
    PLAIN_TEXT = "plain_text"
    EMAIL = "email"
    URL = "url"
    RICH_TEXT = "rich_text"


ALLOWED_TAGS = {
    "b", "i", "em", "strong", "a", "p", "br", "ul", "ol", "li",
    "h1", "h2", "h3", "h4", "h5", "h6", "span", "div", "hr",
}
ALLOWED_ATTRIBUTES = {"href", "target", "rel", "class", "style"}
# Dropped together with everything inside them
FORBIDDEN_CONTENT_TAGS = {"script", "style", "iframe", "object", "embed"}

ALLOWED_URL_SCHEMES = {"http", "https"}
FORBIDDEN_HOST_MARKERS = ("javascript:", "data:", "vbscript:")

_ESCAPES = {
    "<": "&lt;",
    ">": "&gt;",
    '"': "&quot;",
    "'": "&#x27;",
    "/": "&#x2F;",
}
_ESCAPE_TABLE = str.maketrans(_ESCAPES)
# "&" that does not already start one of the entities produced above
_BARE_AMPERSAND = re.compile(r"&(?!(?:amp|lt|gt|quot|#x27|#x2F);)")

_KIND_KEY_MARKERS: tuple[tuple[SanitizeKind, tuple[str, ...]], ...] = (
    (SanitizeKind.EMAIL, ("email",)),
    (SanitizeKind.URL, ("url", "website")),
    (SanitizeKind.RICH_TEXT, ("description", "content")),
)


def escape_html(value: str) -> str:
    """Escape HTML-reserved characters.

    Entities this function produces are not escaped again, so applying it
    twice gives the same result as applying it once.

    Examples:
        >>> escape_html("<b>Tom & Jerry</b>")
        '&lt;b&gt;Tom &amp; Jerry&lt;&#x2F;b&gt;'
    """
    if not value:
        return ""
    return _BARE_AMPERSAND.sub("&amp;", value).translate(_ESCAPE_TABLE)


def sanitize_email(value: str) -> str:
    """Trim and escape an email address (no HTML allowed)."""
    if not value:
        return ""
    return escape_html(value.strip())


def sanitize_url(value: str) -> str:
    """Return a normalized absolute http(s) URL, or ``""`` if it is unsafe.

    Examples:
        >>> sanitize_url("javascript:alert(1)")
        ''
        >>> sanitize_url("HTTPS://Example.com")
        'https://example.com/'
    """
    if not value:
        return ""

    try:
        parts = urlsplit(value.strip())
        # Accessing .port validates it
        parts.port
    except ValueError:
        return ""

    scheme = parts.scheme.lower()
    if scheme not in ALLOWED_URL_SCHEMES or not parts.hostname:
        return ""

    userinfo, at, hostport = parts.netloc.rpartition("@")
    host = hostport.lower()
    if any(marker in host for marker in FORBIDDEN_HOST_MARKERS):
        return ""

    return urlunsplit((scheme, f"{userinfo}{at}{host}", parts.path or "/", parts.query, parts.fragment))


def sanitize_html(value: str) -> str:
    """Clean rich text down to the allowed tags and attributes."""
    if not value:
        return ""
    return nh3.clean(
        value,
        tags=ALLOWED_TAGS,
        clean_content_tags=FORBIDDEN_CONTENT_TAGS,
        attributes={"*": ALLOWED_ATTRIBUTES},
        url_schemes=ALLOWED_URL_SCHEMES | {"mailto"},
        link_rel=None,
    )


def sanitize(value: str, kind: SanitizeKind = SanitizeKind.PLAIN_TEXT) -> str:
    """Sanitize a single string according to ``kind``."""
    if kind is SanitizeKind.EMAIL:
        return sanitize_email(value)
    if kind is SanitizeKind.URL:
        return sanitize_url(value)
    if kind is SanitizeKind.RICH_TEXT:
        return sanitize_html(value)
    return escape_html(value)


def kind_for_key(key: str) -> SanitizeKind:
    """Pick the sanitization kind for a payload field from its name."""
    lowered = key.lower()
    for kind, markers in _KIND_KEY_MARKERS:
        if any(marker in lowered for marker in markers):
            return kind
    return SanitizeKind.PLAIN_TEXT


def _sanitize_field(value: str, kind: SanitizeKind) -> str:
    if kind is SanitizeKind.PLAIN_TEXT:
        return escape_html(value.strip())
    return sanitize(value, kind)


def sanitize_payload(value: JsonValue, kind: SanitizeKind = SanitizeKind.PLAIN_TEXT) -> JsonValue:
    """Return a sanitized copy of a decoded JSON payload.

    Strings are cleaned with ``kind``; mapping values use the kind derived
    from their key; sequence items keep the kind of the enclosing key.
    Numbers, booleans and None pass through unchanged.

    Args:
        value: Decoded JSON value.
        kind: Kind applied to strings at this level.

    Returns:
        Sanitized value with the same shape (tuples become lists).
    """
    if isinstance(value, str):
        return _sanitize_field(value, kind)
    if isinstance(value, Mapping):
        return {
            key: sanitize_payload(item, kind_for_key(str(key)))
            for key, item in value.items()
        }
    if isinstance(value, (list, tuple)):
        return [sanitize_payload(item, kind) for item in value]
    return value
