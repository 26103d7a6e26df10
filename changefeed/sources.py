"""Feed source definitions and YAML overrides.

Each source pairs one fixed document URL with the envelope and extraction
options for its feed.  Built-in sources can be tuned, and new ones added,
from a YAML file::

    sources:
      devin-release-notes:
        max_limit: 30
      acme-changelog:
        kind: markdown
        url: https://example.com/CHANGELOG.md
        link: https://example.com
        title: Acme Changelog
        product: Acme
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field, model_validator

from changefeed import settings
from changefeed.extractors.urlnorm import slugify

logger = logging.getLogger(__name__)


class FeedSource(BaseModel):
    """Where a feed comes from and how its entries are extracted."""

    name: str
    kind: Literal["markdown", "html"]
    url: str                        # document that is fetched
    link: str = ""                  # feed link; defaults to url
    title: str
    description: str = ""
    language: str | None = None

    # Markdown changelogs
    product: str | None = None
    slug: str | None = None         # guid prefix; defaults to slugify(product)
    entry_link: str | None = None   # template, "{anchor}" is the version anchor

    # HTML release-note pages
    default_entry_title: str = "Release Note"
    enrich: bool = False

    default_limit: int = Field(default=settings.DEFAULT_LIMIT, ge=1)
    max_limit: int = Field(default=settings.MAX_LIMIT, ge=1, le=settings.MAX_LIMIT)
    min_body_length: int = Field(default=1, ge=1)
    error_title: str = "Unable to fetch feed"

    @model_validator(mode="after")
    def fill_defaults(self) -> FeedSource:
        if not self.link:
            self.link = self.url
        if self.kind == "markdown" and not self.product:
            self.product = self.title
        if not self.slug:
            self.slug = slugify(self.product or self.name)
        self.default_limit = min(self.default_limit, self.max_limit)
        return self

    @property
    def page_url(self) -> str:
        """Canonical URL of the fetched page, the fallback link for entries."""
        return self.url


# ---------------------------------------------------------------------------
# Built-in sources
# ---------------------------------------------------------------------------

_BUILTIN_SOURCES: dict[str, dict[str, Any]] = {
    "claude-code-changelog": {
        "kind": "markdown",
        "url": "https://raw.githubusercontent.com/anthropics/claude-code/refs/heads/main/CHANGELOG.md",
        "link": "https://github.com/anthropics/claude-code",
        "title": "Claude Code Changelog",
        "description": "Latest changes and updates to Claude Code",
        "product": "Claude Code",
        "entry_link": "https://github.com/anthropics/claude-code/blob/main/CHANGELOG.md#{anchor}",
        "default_limit": 20,
        "max_limit": 20,
        "error_title": "Unable to fetch changelog",
    },
    "devin-release-notes": {
        "kind": "html",
        "url": "https://docs.devin.ai/release-notes/overview",
        "title": "Devin Release Notes",
        "description": "Latest release notes from Devin AI coding assistant",
        "language": "en",
        "default_entry_title": "Devin Release Note",
        "enrich": True,
        "default_limit": 20,
        "max_limit": 50,
        "min_body_length": 500,
        "error_title": "Unable to fetch release notes",
    },
}


def builtin_sources() -> dict[str, FeedSource]:
    """Return fresh copies of the built-in sources keyed by name."""
    return {
        name: FeedSource(name=name, **cfg) for name, cfg in _BUILTIN_SOURCES.items()
    }


def load_sources(path: str | Path | None = None) -> dict[str, FeedSource]:
    """Return all sources, with definitions from the YAML file at *path* merged in.

    A YAML entry whose name matches a built-in source overrides that
    source field by field; other entries define new sources and must be
    complete.

    Raises:
        pydantic.ValidationError: when a merged definition is invalid.
        ValueError: when the file does not hold a ``sources`` mapping.
    """
    raw: dict[str, dict[str, Any]] = {
        name: dict(cfg) for name, cfg in _BUILTIN_SOURCES.items()
    }
    if path is not None:
        data = yaml.safe_load(Path(path).read_text(encoding="utf-8")) or {}
        overrides = data.get("sources", {}) if isinstance(data, dict) else None
        if not isinstance(overrides, dict):
            raise ValueError(f"{path}: expected a 'sources' mapping")
        for name, cfg in overrides.items():
            if not isinstance(name, str) or not isinstance(cfg, dict):
                logger.warning("Ignoring malformed source entry %r in %s", name, path)
                continue
            merged = raw.setdefault(name, {})
            merged.update({k: v for k, v in cfg.items() if k != "name"})
        logger.info("Loaded %d source definition(s) from %s", len(overrides), path)

    return {name: FeedSource(name=name, **cfg) for name, cfg in raw.items()}


def get_source(name: str, sources: dict[str, FeedSource] | None = None) -> FeedSource:
    """Look up a source by *name*.

    Raises:
        KeyError: naming the known sources when *name* is not one of them.
    """
    sources = sources if sources is not None else builtin_sources()
    try:
        return sources[name]
    except KeyError:
        known = ", ".join(sorted(sources))
        raise KeyError(f"unknown source {name!r} (known: {known})") from None
