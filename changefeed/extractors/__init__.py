"""Extraction sub-package: fragment selection and per-field entry building."""

from .dates import DateParseError, normalize_date, parse_date
from .entry import build_entry, build_html_entry, build_markdown_entry
from .markdown import render_markdown
from .selector import NoEntriesFoundError, html_fragments, markdown_fragments, select_fragments
from .urlnorm import resolve_link, slugify, version_anchor

__all__ = [
    "DateParseError",
    "NoEntriesFoundError",
    "build_entry",
    "build_html_entry",
    "build_markdown_entry",
    "html_fragments",
    "markdown_fragments",
    "normalize_date",
    "parse_date",
    "render_markdown",
    "resolve_link",
    "select_fragments",
    "slugify",
    "version_anchor",
]
