"""Sanitizers applied to submission fields once they pass validation."""

from __future__ import annotations

# Entities used by escape_html; covers the characters that can break out of HTML or attributes.
_HTML_ESCAPES = str.maketrans(
    {
        "&": "&amp;",
        '"': "&quot;",
        "'": "&#x27;",
        "<": "&lt;",
        ">": "&gt;",
        "/": "&#x2F;",
        "\\": "&#x5C;",
        "`": "&#96;",
    }
)

_GMAIL_DOMAINS = {"gmail.com", "googlemail.com"}
_PLUS_TAG_DOMAINS = {
    "hotmail.com",
    "live.com",
    "outlook.com",
    "icloud.com",
    "me.com",
}
_YAHOO_DOMAINS = {"yahoo.com", "ymail.com", "rocketmail.com"}


def escape_html(text: str) -> str:
    """Replace HTML-significant characters with entities.

    Examples:
        >>> escape_html("<b>Tom & Jerry</b>")
        '&lt;b&gt;Tom &amp; Jerry&lt;&#x2F;b&gt;'
    """
    return text.translate(_HTML_ESCAPES)


def normalize_email(address: str) -> str:
    """Canonicalize an e-mail address.

    The whole address is lower-cased. For providers that ignore them, dots and
    ``+tag`` sub-addresses are dropped from the local part (Gmail), or only the
    sub-address (Outlook, iCloud; ``-tag`` for Yahoo). ``googlemail.com``
    becomes ``gmail.com``.

    Examples:
        >>> normalize_email("Ada.Lovelace+site@GoogleMail.com")
        'adalovelace@gmail.com'
        >>> normalize_email("Ada@Example.com")
        'ada@example.com'
    """
    original_local, _, domain = address.strip().rpartition("@")
    original_local = original_local.lower()
    local = original_local
    domain = domain.lower()

    if domain in _GMAIL_DOMAINS:
        local = local.split("+", 1)[0].replace(".", "")
        domain = "gmail.com"
    elif domain in _PLUS_TAG_DOMAINS:
        local = local.split("+", 1)[0]
    elif domain in _YAHOO_DOMAINS:
        head, sep, _ = local.rpartition("-")
        if sep and head:
            local = head

    # A local part made only of a tag or dots is kept as typed.
    if not local:
        local = original_local

    return f"{local}@{domain}"


def sanitize_email(address: str) -> str:
    """Normalize an already validated address and escape ``&``.

    Valid unquoted addresses cannot contain ``<``, ``>`` or quotes, but ``&``
    is legal in the local part.
    """
    return normalize_email(address).replace("&", "&amp;")
