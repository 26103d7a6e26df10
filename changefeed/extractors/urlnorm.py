"""URL resolution, anchors, and slugs for feed entries."""

from __future__ import annotations

import re
from urllib.parse import urljoin, urlparse

_SLUG_SAFE_RE = re.compile(r"[^\w\-]")
_MULTI_DASH_RE = re.compile(r"-{2,}")
_LEADING_TRAILING_DASH_RE = re.compile(r"^-+|-+$")

# GitHub-style heading anchors drop everything that is not an ASCII word char
_ANCHOR_STRIP_RE = re.compile(r"[^\w]", re.ASCII)

_LINK_SCHEMES: frozenset[str] = frozenset({"http", "https"})


def resolve_link(href: str | None, base_url: str) -> str | None:
    """Return *href* as an absolute http(s) URL, or None if it cannot be one.

    Relative references are resolved against *base_url*.  Fragment-only,
    ``mailto:``, ``javascript:`` and other non-web references yield None.
    """
    if not href:
        return None
    href = href.strip()
    if not href or href.startswith("#"):
        return None

    absolute = urljoin(base_url, href) if base_url else href
    parsed = urlparse(absolute)
    if parsed.scheme.lower() not in _LINK_SCHEMES or not parsed.netloc:
        return None
    return absolute


def version_anchor(version: str) -> str:
    """Anchor id for a changelog version heading (``1.2.0`` -> ``120``)."""
    return _ANCHOR_STRIP_RE.sub("", version.lower())


def slugify(text: str, max_length: int = 100) -> str:
    """Convert free text into a lowercase, dash-separated slug.

    Example:
        Claude Code → claude-code
    """
    slug = _SLUG_SAFE_RE.sub("-", text.strip().lower())
    slug = _MULTI_DASH_RE.sub("-", slug)
    slug = _LEADING_TRAILING_DASH_RE.sub("", slug)
    slug = slug[:max_length]
    slug = _LEADING_TRAILING_DASH_RE.sub("", slug)

    return slug or "feed"
