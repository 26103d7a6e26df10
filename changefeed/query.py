"""changefeed.query - build one feed from one source.

Basic usage::

    from changefeed import generate_feed, get_source

    feed = generate_feed(get_source("devin-release-notes"), limit=10)
    for item in feed.items:
        print(item.pub_date, item.title, item.link)

    # Plain dict for a serializer (``pubDate``/``item`` keys)
    data = feed.model_dump(by_alias=True)

Testing without a network::

    feed = generate_feed(source, fetcher=lambda url, **kw: "<html>…</html>")

``generate_feed`` always returns a feed.  When the source cannot be fetched
or yields nothing recognisable, the feed holds a single error item instead.
"""

from __future__ import annotations

import logging
from typing import Any

from changefeed import settings
from changefeed.assemble import assemble_error_feed, assemble_feed, clamp_limit
from changefeed.cache import Cache
from changefeed.enrich import enrich_entries
from changefeed.extractors.entry import build_entry
from changefeed.extractors.selector import NoEntriesFoundError, select_fragments
from changefeed.fetch import EmptyResponseError, FetchError, Fetcher, fetch_html
from changefeed.items import Document, Feed, FeedItem
from changefeed.sources import FeedSource, get_source, load_sources

logger = logging.getLogger(__name__)


def fetch_document(source: FeedSource, *, fetcher: Fetcher = fetch_html) -> Document:
    """Fetch the source document.

    Raises:
        FetchError: when the request fails or times out.
        EmptyResponseError: when the body is missing or shorter than
            ``source.min_body_length``.
    """
    body = fetcher(source.url, timeout=settings.PRIMARY_TIMEOUT)
    if not isinstance(body, str) or len(body.strip()) < source.min_body_length:
        size = len(body) if isinstance(body, str) else 0
        raise EmptyResponseError(
            f"Invalid or empty response from {source.url} ({size} chars)",
            url=source.url,
        )
    logger.info("Fetched %d chars from %s", len(body), source.url)
    return Document(text=body, format=source.kind, url=source.page_url)


def extract_entries(document: Document, source: FeedSource, limit: int | None = None) -> list[FeedItem]:
    """Select fragments of *document* and build one entry per fragment.

    Raises:
        NoEntriesFoundError: for HTML documents where nothing matched.
    """
    fragments = select_fragments(document)
    if limit is not None:
        fragments = fragments[:limit]
    logger.info("Extracted %d fragment(s) from %s", len(fragments), document.url)
    return [build_entry(fragment, document, source) for fragment in fragments]


def generate_feed(
    source: FeedSource,
    limit: Any = None,
    *,
    fetcher: Fetcher = fetch_html,
    cache: Cache | None = None,
) -> Feed:
    """Fetch, extract, enrich and assemble the feed for *source*.

    Args:
        source:  Source definition (see :mod:`changefeed.sources`).
        limit:   Caller-supplied entry cap (int or numeric string); falls
                 back to ``source.default_limit`` and is clamped to
                 ``[1, source.max_limit]``.
        fetcher: HTTP fetch callable, :func:`~changefeed.fetch.fetch_html`
                 by default.
        cache:   Cache for detail pages; the process-wide cache by default.

    Returns:
        The feed, or a single-item error feed when the source could not be
        fetched or no entries were found.
    """
    capped = clamp_limit(limit, default=source.default_limit, upper=source.max_limit)
    try:
        document = fetch_document(source, fetcher=fetcher)
        entries = extract_entries(document, source, limit=capped)
        if source.enrich and entries:
            entries = enrich_entries(entries, document.url, fetcher=fetcher, cache=cache)
    except (FetchError, NoEntriesFoundError) as exc:
        logger.error("Failed to build feed %s: %s", source.name, exc)
        return assemble_error_feed(source, exc)

    if not entries:
        logger.info("No entries to publish for %s", source.name)
    return assemble_feed(entries, source, capped)


def generate_feed_by_name(
    name: str,
    limit: Any = None,
    *,
    config_path: str | None = None,
    fetcher: Fetcher = fetch_html,
    cache: Cache | None = None,
) -> Feed:
    """Convenience wrapper: look up *name* among the configured sources.

    Raises:
        KeyError: for an unknown source name.
    """
    source = get_source(name, load_sources(config_path))
    return generate_feed(source, limit, fetcher=fetcher, cache=cache)
