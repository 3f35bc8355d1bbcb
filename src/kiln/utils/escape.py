"""Built-in escaping styles.

Each style is a pure function ``value -> str``. Values are coerced the same
way for every style: ``None`` renders as the empty string, ``bytes`` are
UTF-8 text, everything else goes through ``str()``.

Complexity:
    ``xml_escape`` is a single pass via ``str.translate()``.
    ``uri_escape`` is a single pass via ``urllib.parse.quote``.

"""

from __future__ import annotations

from typing import Any
from urllib.parse import quote

# Numeric character references, valid in both XML and HTML
_XML_ESCAPE_TABLE = str.maketrans(
    {
        "&": "&#38;",
        "<": "&#60;",
        ">": "&#62;",
        '"': "&#34;",
        "'": "&#39;",
    }
)

# quote() always keeps the RFC 3986 unreserved set (letters, digits, "-._~").
# Nothing else is left unencoded, "/" included.
_URI_SAFE = ""


def to_text(value: Any) -> str:
    """Coerce an interpolated value to text."""
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).decode("utf-8", errors="replace")
    return str(value)


def xml_escape(value: Any) -> str:
    """Replace ``& < > " '`` with numeric character references.

    Example:
        >>> xml_escape("Tom & Jerry")
        'Tom &#38; Jerry'
    """
    return to_text(value).translate(_XML_ESCAPE_TABLE)


def uri_escape(value: Any) -> str:
    """Percent-encode every UTF-8 byte outside the unreserved URI set.

    Example:
        >>> uri_escape("a b/c?d=é")
        'a%20b%2Fc%3Fd%3D%C3%A9'
    """
    if isinstance(value, (bytes, bytearray)):
        return quote(bytes(value), safe=_URI_SAFE)
    return quote(to_text(value), safe=_URI_SAFE, encoding="utf-8", errors="strict")


def raw(value: Any) -> str:
    """Identity style: the value is emitted unescaped."""
    return to_text(value)
