"""changefeed - turn changelogs and release-notes pages into feeds.

Quick usage::

    from changefeed import generate_feed_by_name

    feed = generate_feed_by_name("claude-code-changelog")
    print(feed.title)
    for item in feed.items:
        print(item.guid, item.title)

Custom source::

    from changefeed import FeedSource, generate_feed

    source = FeedSource(
        name="acme",
        kind="markdown",
        url="https://example.com/CHANGELOG.md",
        title="Acme Changelog",
        product="Acme",
    )
    feed = generate_feed(source, limit=10)
"""

from changefeed.cache import Cache, MemoryCache
from changefeed.enrich import EnrichmentError
from changefeed.extractors.dates import DateParseError
from changefeed.extractors.selector import NoEntriesFoundError
from changefeed.fetch import EmptyResponseError, FetchError, fetch_html
from changefeed.items import Feed, FeedItem
from changefeed.query import generate_feed, generate_feed_by_name
from changefeed.sources import FeedSource, get_source, load_sources

__version__ = "0.1.0"
__all__ = [
    "Cache",
    "DateParseError",
    "EmptyResponseError",
    "EnrichmentError",
    "Feed",
    "FeedItem",
    "FeedSource",
    "FetchError",
    "MemoryCache",
    "NoEntriesFoundError",
    "fetch_html",
    "generate_feed",
    "generate_feed_by_name",
    "get_source",
    "load_sources",
]
