"""Feed assembly: envelope, entry cap, and the single-item error feed."""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from changefeed import settings
from changefeed.items import Feed, FeedItem

if TYPE_CHECKING:
    from changefeed.sources import FeedSource

logger = logging.getLogger(__name__)


def clamp_limit(
    raw: Any,
    default: int = settings.DEFAULT_LIMIT,
    upper: int = settings.MAX_LIMIT,
) -> int:
    """Interpret a caller-supplied entry limit.

    Missing or non-integer input yields *default*; the result is clamped to
    ``[1, upper]``.
    """
    if raw is None or raw == "":
        value = default
    else:
        try:
            value = int(raw)
        except (TypeError, ValueError):
            logger.debug("Ignoring invalid limit %r, using %d", raw, default)
            value = default
    return max(1, min(value, upper))


def _envelope(source: FeedSource, items: list[FeedItem], is_error: bool = False) -> Feed:
    return Feed(
        title=source.title,
        link=source.link,
        description=source.description,
        language=source.language,
        items=items,
        is_error=is_error,
    )


def assemble_feed(entries: list[FeedItem], source: FeedSource, limit: int) -> Feed:
    """Wrap the first *limit* of the already ordered *entries* in the feed envelope."""
    return _envelope(source, list(entries[:limit]))


def assemble_error_feed(
    source: FeedSource,
    error: BaseException,
    now: datetime | None = None,
) -> Feed:
    """Return a feed whose only item reports *error*.

    The item is dated at assembly time and its guid is derived from that
    instant, so every failure shows up as a new item while the feed never
    holds more than the latest one.
    """
    now = now or datetime.now(UTC)
    item = FeedItem(
        title=source.error_title,
        link=source.link,
        description=f"Error fetching {source.title}: {error}. Please check the source page.",
        pub_date=now,
        guid=f"error-{int(now.timestamp() * 1000)}",
    )
    return _envelope(source, [item], is_error=True)
