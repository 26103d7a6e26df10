"""Render changelog Markdown to HTML for feed descriptions."""

from __future__ import annotations

import logging

from markdown_it import MarkdownIt

logger = logging.getLogger(__name__)

# "js-default": tables and strikethrough on, raw HTML passthrough off
_md = MarkdownIt("js-default")


def render_markdown(text: str) -> str:
    """Convert a Markdown *text* fragment to an HTML string."""
    if not text or not text.strip():
        return ""

    html = _md.render(text.strip())
    logger.debug("Rendered %d chars of Markdown to %d chars of HTML", len(text), len(html))
    return html
