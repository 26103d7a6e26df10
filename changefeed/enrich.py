"""Detail-page enrichment for entries that link to their own page.

Entries pointing somewhere other than the overview page get that page
fetched, its main content swapped in as the description and, when the page
offers a longer title, that title too.  Fetches run on a small thread pool
and go through a coalescing TTL cache keyed by detail URL.  A failure for
one entry only leaves that entry as it was.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed

from bs4 import BeautifulSoup

from changefeed import settings
from changefeed.cache import Cache, get_default_cache
from changefeed.fetch import FetchError, Fetcher, fetch_html
from changefeed.items import DetailPage, FeedItem

logger = logging.getLogger(__name__)

# Tried in order; the first match with enough text supplies the content
DETAIL_CONTENT_SELECTORS: tuple[str, ...] = (
    "main",
    "article",
    ".content",
    '[class*="content"]',
    "body",
)


class EnrichmentError(RuntimeError):
    """Raised when a detail page was fetched but holds no usable content."""

    def __init__(self, message: str, url: str = "") -> None:
        super().__init__(message)
        self.url = url


def extract_detail_page(html: str, url: str = "") -> DetailPage:
    """Pull the main content and a candidate title out of a detail page.

    Raises:
        EnrichmentError: when none of the content selectors matches an
            element with more than 100 characters of text.
    """
    soup = BeautifulSoup(html, "lxml")

    content = ""
    for selector in DETAIL_CONTENT_SELECTORS:
        el = soup.select_one(selector)
        if el is not None and len(el.get_text()) > settings.MIN_DETAIL_TEXT:
            content = el.decode_contents()
            break
    if not content:
        raise EnrichmentError(f"No main content found on detail page {url}", url=url)

    h1 = soup.find("h1")
    title = h1.get_text().strip() if h1 is not None else ""
    if not title and soup.title is not None:
        title = soup.title.get_text().strip()

    return DetailPage(title=title, content_html=content)


def merge_detail(entry: FeedItem, detail: DetailPage) -> FeedItem:
    """Apply *detail* to *entry*; the title only changes if it gets longer."""
    update: dict[str, str] = {"description": detail.content_html}
    if detail.title and len(detail.title) > len(entry.title):
        update["title"] = detail.title
    return entry.model_copy(update=update)


def enrich_entry(
    entry: FeedItem,
    page_url: str,
    *,
    fetcher: Fetcher = fetch_html,
    cache: Cache | None = None,
    timeout: float = settings.DETAIL_TIMEOUT,
    ttl: float = settings.DETAIL_CACHE_TTL,
) -> FeedItem:
    """Return *entry* enriched from its detail page, or unchanged on failure."""
    if entry.link == page_url:
        return entry
    cache = cache if cache is not None else get_default_cache()

    def _load() -> DetailPage:
        html = fetcher(entry.link, timeout=timeout)
        return extract_detail_page(html, url=entry.link)

    try:
        detail = cache.get_or_compute(entry.link, _load, ttl)
    except (FetchError, EnrichmentError) as exc:
        logger.warning("Failed to enrich entry from detail page %s: %s", entry.link, exc)
        return entry

    return merge_detail(entry, detail)


def enrich_entries(
    entries: list[FeedItem],
    page_url: str,
    *,
    fetcher: Fetcher = fetch_html,
    cache: Cache | None = None,
    max_workers: int = settings.ENRICH_CONCURRENCY,
    timeout: float = settings.DETAIL_TIMEOUT,
    ttl: float = settings.DETAIL_CACHE_TTL,
) -> list[FeedItem]:
    """Enrich every entry whose link is not *page_url*.

    At most *max_workers* detail pages are fetched at once.  The result has
    the same length and order as *entries* regardless of completion order.
    """
    results = list(entries)
    eligible = [i for i, entry in enumerate(results) if entry.link != page_url]
    if not eligible:
        return results

    cache = cache if cache is not None else get_default_cache()
    with ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="enrich") as executor:
        futures = {
            executor.submit(
                enrich_entry,
                results[i],
                page_url,
                fetcher=fetcher,
                cache=cache,
                timeout=timeout,
                ttl=ttl,
            ): i
            for i in eligible
        }
        for future in as_completed(futures):
            idx = futures[future]
            results[idx] = future.result()

    enriched = sum(1 for i in eligible if results[i] is not entries[i])
    logger.info("Enriched %d of %d linked entries from %s", enriched, len(eligible), page_url)
    return results
