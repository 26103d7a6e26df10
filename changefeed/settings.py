"""Runtime settings for changefeed.

Plain module constants; per-source values live on
:class:`~changefeed.sources.FeedSource` and may be overridden from YAML.
"""

from __future__ import annotations

# ---------------------------------------------------------------------------
# Network
# ---------------------------------------------------------------------------
PRIMARY_TIMEOUT = 10   # seconds, listing page / changelog document
DETAIL_TIMEOUT = 8     # seconds, per detail page during enrichment
MAX_RETRIES = 1

USER_AGENT = "Mozilla/5.0 (compatible; changefeed/0.1; +https://github.com/changefeed/changefeed)"

# ---------------------------------------------------------------------------
# Enrichment
# ---------------------------------------------------------------------------
ENRICH_CONCURRENCY = 3
DETAIL_CACHE_TTL = 60 * 60   # seconds
DETAIL_CACHE_MAXSIZE = 1024

# ---------------------------------------------------------------------------
# Feed limits
# ---------------------------------------------------------------------------
DEFAULT_LIMIT = 20
MAX_LIMIT = 50

# ---------------------------------------------------------------------------
# Extraction thresholds (characters of visible text)
# ---------------------------------------------------------------------------
MIN_CANDIDATE_TEXT = 50
MIN_FALLBACK_TEXT = 100
MIN_DETAIL_TEXT = 100
TITLE_FIRST_LINE_MAX = 100
TITLE_SHORT_MAX = 50

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------
LOG_LEVEL = "INFO"
LOG_FORMAT = "%(asctime)s [%(name)s] %(levelname)s: %(message)s"
