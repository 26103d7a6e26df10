"""Turn one fragment into a normalized :class:`~changefeed.items.FeedItem`.

Every field has its own fallback chain, so a fragment with unusual markup
loses individual fields (generic title, page link, no date) instead of being
dropped.  Building is pure: no network access happens here.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from bs4 import Tag

from changefeed import settings
from changefeed.extractors.dates import DateParseError, normalize_date, parse_date
from changefeed.extractors.markdown import render_markdown
from changefeed.extractors.urlnorm import resolve_link, version_anchor
from changefeed.items import Document, FeedItem, Fragment

if TYPE_CHECKING:
    from datetime import datetime

    from changefeed.sources import FeedSource

logger = logging.getLogger(__name__)

TITLE_SELECTORS: tuple[str, ...] = (
    "h1",
    "h2",
    "h3",
    "h4",
    ".title",
    '[class*="title"]',
    '[class*="heading"]',
)

DATE_SELECTORS: tuple[str, ...] = (
    "time",
    ".date",
    '[class*="date"]',
    '[class*="time"]',
)


# ---------------------------------------------------------------------------
# Field helpers (HTML)
# ---------------------------------------------------------------------------

def fallback_title(text: str) -> str:
    """Title from the first line of *text*.

    The line is cut to 100 characters, then anything still over 50 is cut
    again to 50 and marked with ``...``.
    """
    first_line = text.strip().split("\n")[0]
    title = first_line[: settings.TITLE_FIRST_LINE_MAX].strip()
    if len(title) > settings.TITLE_SHORT_MAX:
        title = title[: settings.TITLE_SHORT_MAX] + "..."
    return title


def _html_title(node: Tag) -> str:
    for selector in TITLE_SELECTORS:
        el = node.select_one(selector)
        if el is not None:
            # First selector that matches decides, even when its text is blank
            return el.get_text().strip()
    return ""


def _html_date(node: Tag) -> datetime | None:
    for selector in DATE_SELECTORS:
        el = node.select_one(selector)
        if el is None:
            continue
        raw = el.get("datetime") or el.get_text().strip()
        if isinstance(raw, list):
            raw = " ".join(raw)
        try:
            return parse_date(raw)
        except DateParseError as exc:
            logger.debug("Date candidate %r rejected: %s", selector, exc)
    return None


def _html_link(node: Tag, page_url: str) -> str:
    for anchor in node.select("a[href]"):
        href = anchor.get("href")
        link = resolve_link(href if isinstance(href, str) else None, page_url)
        if link:
            return link
    return page_url


# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------

def build_markdown_entry(fragment: Fragment, source: FeedSource) -> FeedItem:
    """Build an entry from a changelog version section."""
    version = fragment.version or ""
    if source.entry_link:
        link = source.entry_link.format(anchor=version_anchor(version), version=version)
    else:
        link = source.link

    return FeedItem(
        title=f"{source.product} {version}",
        link=link,
        pub_date=normalize_date(fragment.date_text),
        description=render_markdown(fragment.raw_text),
        guid=f"{source.slug}-{version}",
    )


def build_html_entry(fragment: Fragment, page_url: str, source: FeedSource) -> FeedItem:
    """Build an entry from a release-note node selected on *page_url*."""
    node = fragment.node
    if node is None:
        raise ValueError("HTML fragment has no node")

    title = _html_title(node) or fallback_title(node.get_text())
    link = _html_link(node, page_url)

    return FeedItem(
        title=title or source.default_entry_title,
        link=link,
        pub_date=_html_date(node),
        description=node.decode_contents() or node.get_text(),
        guid=link,
    )


def build_entry(fragment: Fragment, document: Document, source: FeedSource) -> FeedItem:
    """Build the entry for *fragment* according to the document's format."""
    if document.format == "markdown":
        return build_markdown_entry(fragment, source)
    return build_html_entry(fragment, document.url, source)
