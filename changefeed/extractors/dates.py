"""Date-string interpretation for feed entries.

``parse_date`` is strict and raises; ``normalize_date`` is the tolerant wrapper
the entry builders use, turning any unparsable input into ``None`` ("unknown").
A publish date is never invented: an entry without a parsable date stays
undated instead of defaulting to the current time.
"""

from __future__ import annotations

import logging
import re
from datetime import datetime

import dateparser

logger = logging.getLogger(__name__)

_WHITESPACE_RE = re.compile(r"\s+")

_DATEPARSER_SETTINGS = {
    "TIMEZONE": "UTC",
    "TO_TIMEZONE": "UTC",
    "RETURN_AS_TIMEZONE_AWARE": True,
    "PREFER_DAY_OF_MONTH": "first",
    "PREFER_LOCALE_DATE_ORDER": False,
}

# Years outside this window are epoch defaults or typos, not release dates
_MIN_YEAR = 1990
_MAX_YEAR = 2099


class DateParseError(ValueError):
    """Raised when a date string cannot be interpreted."""

    def __init__(self, message: str, text: str | None = None) -> None:
        super().__init__(message)
        self.text = text


def parse_date(text: str | None) -> datetime:
    """Parse *text* into a timezone-aware UTC :class:`~datetime.datetime`.

    Raises:
        DateParseError: for blank input, formats dateparser does not
            recognize, or years outside 1990-2099.
    """
    if not text or not text.strip():
        raise DateParseError("empty date string", text=text)

    cleaned = _WHITESPACE_RE.sub(" ", text.strip())
    try:
        parsed = dateparser.parse(cleaned, settings=_DATEPARSER_SETTINGS)
    except Exception as exc:
        raise DateParseError(f"dateparser failed on {cleaned!r}: {exc}", text=text) from exc

    if parsed is None:
        raise DateParseError(f"unrecognized date {cleaned!r}", text=text)
    if not (_MIN_YEAR <= parsed.year <= _MAX_YEAR):
        raise DateParseError(f"implausible year {parsed.year} in {cleaned!r}", text=text)
    return parsed


def normalize_date(text: str | None) -> datetime | None:
    """Return the parsed date for *text*, or None when it cannot be parsed."""
    try:
        return parse_date(text)
    except DateParseError as exc:
        logger.debug("Date normalization failed: %s", exc)
        return None
