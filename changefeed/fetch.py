"""HTTP fetch primitive for source documents and detail pages.

Uses only the stdlib (``urllib``).  Anything with the same call shape as
:func:`fetch_html` satisfies :class:`Fetcher` and can be passed to the
pipeline instead, which is how the tests run without a network.
"""

from __future__ import annotations

import gzip
import http.client
import logging
import random
import re
import time
import urllib.error
import urllib.request
import zlib
from typing import Protocol, runtime_checkable
from urllib.parse import urlparse

from changefeed import settings

logger = logging.getLogger(__name__)

# http.client refuses request targets containing these
_UNSAFE_URL_CHARS_RE = re.compile(r"[\x00-\x20\x7f]")


# ---------------------------------------------------------------------------
# Public exceptions
# ---------------------------------------------------------------------------

class FetchError(RuntimeError):
    """Raised when a URL cannot be fetched.

    Attributes:
        url    -- the URL that failed
        status -- HTTP status code (0 if no response was received)
    """

    def __init__(
        self,
        message: str,
        url: str = "",
        status: int = 0,
        body: str | None = None,
    ) -> None:
        super().__init__(message)
        self.url = url
        self.status = status
        self.body = body


class EmptyResponseError(FetchError):
    """Raised when a fetched document is missing or implausibly short."""


@runtime_checkable
class Fetcher(Protocol):
    def __call__(
        self,
        url: str,
        *,
        timeout: float = ...,
        headers: dict[str, str] | None = ...,
    ) -> str:
        """Return the body of *url*; raise :class:`FetchError` on failure."""
        ...


def _decode_response_body(raw: bytes, headers: object | None, url: str) -> str:
    encoding = ""
    if headers is not None:
        try:
            encoding = str(headers.get("Content-Encoding", "")).lower().strip()
        except Exception:
            encoding = ""

    if encoding == "gzip":
        raw = gzip.decompress(raw)
    elif encoding in ("deflate", "zlib"):
        raw = zlib.decompress(raw)
    elif encoding == "br":
        raise FetchError(f"Brotli-encoded response from {url} is not supported", url=url)

    charset = "utf-8"
    if headers is not None:
        try:
            charset = headers.get_content_charset("utf-8") or "utf-8"
        except Exception:
            charset = "utf-8"
    try:
        return raw.decode(charset, errors="replace")
    except (LookupError, ValueError):
        return raw.decode("utf-8", errors="replace")


# ---------------------------------------------------------------------------
# Low-level HTTP fetch
# ---------------------------------------------------------------------------

_RETRY_CODES: frozenset[int] = frozenset({429, 500, 502, 503, 504})


def _backoff(attempt: int, retry_after: int = 0) -> float:
    return max(retry_after, 2 ** attempt) + random.uniform(0, 1)


def fetch_html(
    url: str,
    *,
    timeout: float = settings.PRIMARY_TIMEOUT,
    headers: dict[str, str] | None = None,
    user_agent: str | None = None,
    max_retries: int = settings.MAX_RETRIES,
) -> str:
    """Fetch *url* and return the response body as a decoded string.

    Retries up to *max_retries* times with jittered exponential backoff on
    transient errors (429, 500, 502, 503, 504, and network-level failures,
    timeouts and truncated responses included).

    Args:
        url:         Fully-qualified HTTP/HTTPS URL.
        timeout:     Socket timeout in seconds for each attempt.
        headers:     Extra request headers, applied over the defaults.
        user_agent:  Override the default User-Agent string.
        max_retries: Maximum number of retry attempts.

    Returns:
        Response body decoded to ``str``.

    Raises:
        FetchError: On HTTP errors, timeouts, connection failures, or
            invalid URLs.
    """
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https"):
        raise FetchError(f"Unsupported URL scheme: {parsed.scheme!r}", url=url)
    if _UNSAFE_URL_CHARS_RE.search(url):
        raise FetchError(f"Invalid URL (whitespace or control character): {url!r}", url=url)

    req_headers = {
        "User-Agent": user_agent or settings.USER_AGENT,
        "Accept": "text/html,application/xhtml+xml,text/markdown,text/plain;q=0.9,*/*;q=0.8",
        "Accept-Language": "en-US,en;q=0.9",
        "Accept-Encoding": "gzip, deflate",
    }
    if headers:
        req_headers.update(headers)
    req = urllib.request.Request(url, headers=req_headers)

    last_exc: FetchError | None = None
    for attempt in range(max_retries + 1):
        try:
            with urllib.request.urlopen(req, timeout=timeout) as resp:
                raw: bytes = resp.read()
                try:
                    return _decode_response_body(raw, resp.headers, url)
                except (OSError, EOFError) as exc:
                    raise FetchError(
                        f"gzip decompression failed for {url}: {exc}", url=url,
                    ) from exc
                except zlib.error as exc:
                    raise FetchError(
                        f"deflate decompression failed for {url}: {exc}", url=url,
                    ) from exc

        except urllib.error.HTTPError as exc:
            if exc.code in _RETRY_CODES and attempt < max_retries:
                # Honour Retry-After (RFC 7231 §7.1.3) when the server sends one
                retry_after = 0
                try:
                    ra_header = exc.headers.get("Retry-After", "") if exc.headers else ""
                    retry_after = int(ra_header) if ra_header and ra_header.strip().isdigit() else 0
                except Exception:
                    retry_after = 0
                delay = _backoff(attempt, retry_after)
                logger.debug(
                    "HTTP %d for %s — retrying in %.1fs (attempt %d/%d)",
                    exc.code, url, delay, attempt + 1, max_retries,
                )
                time.sleep(delay)
                last_exc = FetchError(
                    f"HTTP {exc.code} fetching {url}: {exc.reason}", url=url, status=exc.code,
                )
                continue
            raise FetchError(
                f"HTTP {exc.code} fetching {url}: {exc.reason}",
                url=url,
                status=exc.code,
            ) from exc

        except urllib.error.URLError as exc:
            if attempt < max_retries:
                delay = _backoff(attempt)
                logger.debug(
                    "URL error for %s — retrying in %.1fs (attempt %d/%d): %s",
                    url, delay, attempt + 1, max_retries, exc.reason,
                )
                time.sleep(delay)
                last_exc = FetchError(f"URL error fetching {url}: {exc.reason}", url=url)
                continue
            raise FetchError(f"URL error fetching {url}: {exc.reason}", url=url) from exc

        except TimeoutError as exc:
            if attempt < max_retries:
                delay = _backoff(attempt)
                logger.debug(
                    "Timeout after %ss for %s — retrying in %.1fs (attempt %d/%d)",
                    timeout, url, delay, attempt + 1, max_retries,
                )
                time.sleep(delay)
                last_exc = FetchError(f"Timed out fetching {url} after {timeout}s", url=url)
                continue
            raise FetchError(f"Timed out fetching {url} after {timeout}s", url=url) from exc

        except OSError as exc:
            if attempt < max_retries:
                delay = _backoff(attempt)
                logger.debug(
                    "Network error for %s — retrying in %.1fs (attempt %d/%d): %s",
                    url, delay, attempt + 1, max_retries, exc,
                )
                time.sleep(delay)
                last_exc = FetchError(f"Network error fetching {url}: {exc}", url=url)
                continue
            raise FetchError(f"Network error fetching {url}: {exc}", url=url) from exc

        except (http.client.InvalidURL, ValueError) as exc:
            raise FetchError(f"Invalid URL {url!r}: {exc}", url=url) from exc

        except http.client.HTTPException as exc:
            # Truncated body or malformed status line; neither is an OSError
            if attempt < max_retries:
                delay = _backoff(attempt)
                logger.debug(
                    "Protocol error for %s — retrying in %.1fs (attempt %d/%d): %r",
                    url, delay, attempt + 1, max_retries, exc,
                )
                time.sleep(delay)
                last_exc = FetchError(f"Protocol error fetching {url}: {exc!r}", url=url)
                continue
            raise FetchError(f"Protocol error fetching {url}: {exc!r}", url=url) from exc

    # Should only reach here if all retries are exhausted via continue
    raise last_exc or FetchError(f"All retries exhausted for {url}", url=url)
