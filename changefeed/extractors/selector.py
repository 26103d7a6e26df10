"""Fragment selection: split a document into one span per feed entry.

Markdown changelogs are split on their version headers::

    ## [1.2.0] - 2024-03-01

HTML release-note pages go through an ordered strategy cascade.  Each
strategy pairs a CSS selector with an acceptance predicate; strategies run
strictly in order and the first one that accepts at least one node wins
(later strategies are never consulted, results are never merged).  When no
strategy produces anything, the page's main content region becomes a single
fragment, and only when that too is missing does extraction fail.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable
from typing import NamedTuple

from bs4 import BeautifulSoup, Tag

from changefeed import settings
from changefeed.items import Document, Fragment

logger = logging.getLogger(__name__)

_VERSION_HEADER_RE = re.compile(
    r"^## \[([^\]]+)\] - (\d{4}-\d{2}-\d{2})",
    re.MULTILINE,
)

# A candidate node must mention at least one of these to count as an entry;
# navigation and footer blocks rarely do.
LIFECYCLE_KEYWORDS: tuple[str, ...] = (
    "release",
    "version",
    "update",
    "fix",
    "feature",
    "improvement",
    "change",
)

FALLBACK_CONTENT_SELECTOR = 'main, article, .content, [class*="content"]'


class NoEntriesFoundError(RuntimeError):
    """Raised when every extraction strategy, fallback included, came up empty."""

    def __init__(self, message: str, url: str = "") -> None:
        super().__init__(message)
        self.url = url


def looks_like_release_note(node: Tag) -> bool:
    """Default acceptance predicate: long enough and uses lifecycle vocabulary."""
    text = node.get_text().lower()
    return len(text) > settings.MIN_CANDIDATE_TEXT and any(
        kw in text for kw in LIFECYCLE_KEYWORDS
    )


class HtmlStrategy(NamedTuple):
    selector: str
    accept: Callable[[Tag], bool] = looks_like_release_note


# Most specific first
HTML_STRATEGIES: tuple[HtmlStrategy, ...] = (
    HtmlStrategy("article"),
    HtmlStrategy('section[class*="release"]'),
    HtmlStrategy('div[class*="release"]'),
    HtmlStrategy('div[class*="note"]'),
    HtmlStrategy('div[class*="entry"]'),
    HtmlStrategy('div[class*="post"]'),
    HtmlStrategy('div[class*="item"]'),
    HtmlStrategy(".release-note"),
    HtmlStrategy(".changelog-entry"),
    HtmlStrategy("li"),
)


# ---------------------------------------------------------------------------
# Markdown
# ---------------------------------------------------------------------------

def markdown_fragments(text: str) -> list[Fragment]:
    """Split a changelog into one fragment per version header.

    Each fragment spans ``[header start, next header start)``; the last one
    runs to the end of *text*.  Content before the first header is not part
    of any fragment.  Returns an empty list when there are no headers.
    """
    matches = list(_VERSION_HEADER_RE.finditer(text))
    fragments: list[Fragment] = []
    for i, match in enumerate(matches):
        start = match.start()
        end = matches[i + 1].start() if i + 1 < len(matches) else len(text)
        fragments.append(
            Fragment(
                raw_text=text[start:end],
                start=start,
                end=end,
                version=match.group(1),
                date_text=match.group(2),
            ),
        )
    logger.debug("Markdown strategy: %d version header(s)", len(fragments))
    return fragments


# ---------------------------------------------------------------------------
# HTML
# ---------------------------------------------------------------------------

def _run_strategies(
    soup: BeautifulSoup,
    strategies: tuple[HtmlStrategy, ...],
) -> list[Tag]:
    for strategy in strategies:
        candidates = [el for el in soup.select(strategy.selector) if isinstance(el, Tag)]
        if not candidates:
            continue
        accepted = [el for el in candidates if strategy.accept(el)]
        logger.debug(
            "Selector %r: %d candidate(s), %d accepted",
            strategy.selector, len(candidates), len(accepted),
        )
        if accepted:
            logger.info("HTML strategy %r matched %d node(s)", strategy.selector, len(accepted))
            return accepted
    return []


def html_fragments(
    html: str,
    url: str = "",
    strategies: tuple[HtmlStrategy, ...] = HTML_STRATEGIES,
) -> list[Fragment]:
    """Select entry nodes from a release-notes page.

    Raises:
        NoEntriesFoundError: when no strategy accepts a node and the page
            has no main content region with more than 100 characters of text.
    """
    soup = BeautifulSoup(html, "lxml")

    nodes = _run_strategies(soup, strategies)
    if not nodes:
        content = soup.select_one(FALLBACK_CONTENT_SELECTOR)
        if content is not None and len(content.get_text()) > settings.MIN_FALLBACK_TEXT:
            logger.info("No strategy matched; using main content region <%s> of %s", content.name, url)
            nodes = [content]
        else:
            raise NoEntriesFoundError(f"No release note entries found on {url or 'page'}", url=url)

    return [Fragment(raw_text=node.get_text(), node=node) for node in nodes]


def select_fragments(document: Document) -> list[Fragment]:
    """Return the entry fragments of *document* in document order."""
    if document.format == "markdown":
        return markdown_fragments(document.text)
    return html_fragments(document.text, url=document.url)
