"""Shared text processing utilities.

Consolidates slug generation, tag stripping, and excerpt helpers used by the
content loader, renderer, and feed builders.
"""

import re
import html as htmllib
import unicodedata
from typing import Optional


def strip_accents(text: str) -> str:
    """Return text with accent marks removed via Unicode normalization.

    Examples:
        >>> strip_accents("José García")
        'Jose Garcia'
    """
    return "".join(
        c for c in unicodedata.normalize("NFKD", text)
        if not unicodedata.combining(c)
    )


def slugify(text: Optional[str], fallback: str = "post") -> str:
    """Turn a title or file stem into a URL path segment.

    Word characters from any script are kept so CJK titles still produce
    readable slugs; everything else collapses into single hyphens.

    Args:
        text: Title, tag, or file name
        fallback: Returned when nothing usable is left

    Returns:
        Lowercase slug

    Examples:
        >>> slugify("Hello, World!")
        'hello-world'
        >>> slugify("Déjà vu_notes")
        'deja-vu-notes'
        >>> slugify("   ")
        'post'
    """
    s = strip_accents(text or "").lower()
    s = re.sub(r"[^\w]+", "-", s, flags=re.UNICODE)
    s = s.replace("_", "-")
    s = re.sub(r"-{2,}", "-", s).strip("-")
    return s or fallback


def strip_tags(text: Optional[str]) -> str:
    """Remove HTML tags and unescape entities.

    Examples:
        >>> strip_tags("<p>Fish &amp; <em>chips</em></p>")
        'Fish & chips'
    """
    if not text:
        return ""
    text = re.sub(r"<(script|style)[^>]*>.*?</\1>", "", text, flags=re.IGNORECASE | re.DOTALL)
    text = re.sub(r"<[^>]+>", " ", text)
    text = htmllib.unescape(text)
    return re.sub(r"\s+", " ", text).strip()


def truncate(text: str, length: int = 150, ellipsis: str = "...") -> str:
    """Shorten *text* to at most *length* characters, breaking on a word boundary.

    Examples:
        >>> truncate("one two three", 8)
        'one two...'
    """
    if len(text) <= length:
        return text
    cut = text[:length].rsplit(" ", 1)[0].rstrip(",.;:")
    return (cut or text[:length]) + ellipsis
