"""Unit tests for per-field entry building."""

from __future__ import annotations

from datetime import date

import pytest
from bs4 import BeautifulSoup

from changefeed.extractors.entry import (
    build_entry,
    build_html_entry,
    build_markdown_entry,
    fallback_title,
)
from changefeed.extractors.selector import html_fragments, markdown_fragments
from changefeed.items import Document, Fragment
from changefeed.sources import FeedSource, get_source

OVERVIEW_URL = "https://docs.devin.ai/release-notes/overview"


@pytest.fixture
def changelog_source() -> FeedSource:
    return get_source("claude-code-changelog")


@pytest.fixture
def notes_source() -> FeedSource:
    return get_source("devin-release-notes")


def _fragment(html: str) -> Fragment:
    node = BeautifulSoup(html, "lxml").body.contents[0]
    return Fragment(raw_text=node.get_text(), node=node)


# ---------------------------------------------------------------------------
# Title fallback
# ---------------------------------------------------------------------------

class TestFallbackTitle:
    def test_short_line_unchanged(self):
        assert fallback_title("  Bug fixes  ") == "Bug fixes"

    def test_uses_first_line_only(self):
        assert fallback_title("\n  New editor\nSecond line") == "New editor"

    def test_over_fifty_gets_ellipsis(self):
        line = "x" * 80
        assert fallback_title(line) == "x" * 50 + "..."

    def test_exactly_fifty_kept(self):
        assert fallback_title("y" * 50) == "y" * 50

    def test_long_line_truncated_twice(self):
        line = "z" * 150
        title = fallback_title(line)
        assert len(title) == 53
        assert title.endswith("...")


# ---------------------------------------------------------------------------
# Markdown entries
# ---------------------------------------------------------------------------

class TestMarkdownEntry:
    def test_fields(self, changelog_md, changelog_source):
        fragment = markdown_fragments(changelog_md)[0]
        entry = build_markdown_entry(fragment, changelog_source)
        assert entry.title == "Claude Code 1.2.0"
        assert entry.guid == "claude-code-1.2.0"
        assert entry.link == "https://github.com/anthropics/claude-code/blob/main/CHANGELOG.md#120"
        assert entry.pub_date.date() == date(2024, 3, 1)

    def test_description_rendered_to_html(self, changelog_md, changelog_source):
        fragment = markdown_fragments(changelog_md)[0]
        entry = build_markdown_entry(fragment, changelog_source)
        assert "<li>Support for custom key bindings</li>" in entry.description
        assert "<code>--resume</code>" in entry.description
        assert "1.1.0" not in entry.description

    def test_link_inside_body_does_not_replace_anchor(self, changelog_md, changelog_source):
        fragment = markdown_fragments(changelog_md)[1]
        entry = build_markdown_entry(fragment, changelog_source)
        assert entry.link.endswith("#110")
        assert 'href="https://example.com/migrate"' in entry.description

    def test_without_link_template_uses_source_link(self):
        source = FeedSource(
            name="acme",
            kind="markdown",
            url="https://example.com/CHANGELOG.md",
            link="https://example.com",
            title="Acme Changelog",
            product="Acme",
        )
        fragment = markdown_fragments("## [0.1.0] - 2024-06-01\n- hello\n")[0]
        entry = build_markdown_entry(fragment, source)
        assert entry.link == "https://example.com"
        assert entry.guid == "acme-0.1.0"

    def test_unparsable_date_is_unknown(self, changelog_source):
        fragment = Fragment(raw_text="## [1.0.0] - 2024-13-45\n", version="1.0.0", date_text="2024-13-45")
        entry = build_markdown_entry(fragment, changelog_source)
        assert entry.pub_date is None


# ---------------------------------------------------------------------------
# HTML entries
# ---------------------------------------------------------------------------

class TestHtmlEntry:
    def test_heading_title(self, release_notes_html, notes_source):
        fragment = html_fragments(release_notes_html)[0]
        entry = build_html_entry(fragment, OVERVIEW_URL, notes_source)
        assert entry.title == "March 2024 Release"

    def test_relative_link_resolved(self, release_notes_html, notes_source):
        fragment = html_fragments(release_notes_html)[0]
        entry = build_html_entry(fragment, OVERVIEW_URL, notes_source)
        assert entry.link == "https://docs.devin.ai/release-notes/2024-03-01"
        assert entry.guid == entry.link

    def test_absolute_link_kept(self, release_notes_html, notes_source):
        fragment = html_fragments(release_notes_html)[1]
        entry = build_html_entry(fragment, OVERVIEW_URL, notes_source)
        assert entry.link == "https://docs.devin.ai/release-notes/2024-02-01"

    def test_datetime_attribute_preferred(self, notes_source):
        fragment = _fragment('<div><h3>Release</h3><time datetime="2024-03-01">yesterday</time></div>')
        entry = build_html_entry(fragment, OVERVIEW_URL, notes_source)
        assert entry.pub_date.date() == date(2024, 3, 1)

    def test_date_from_text_when_no_attribute(self, release_notes_html, notes_source):
        fragment = html_fragments(release_notes_html)[1]
        entry = build_html_entry(fragment, OVERVIEW_URL, notes_source)
        assert entry.pub_date.date() == date(2024, 2, 1)

    def test_bad_date_candidate_falls_through(self, release_notes_html, notes_source):
        fragment = html_fragments(release_notes_html)[2]
        entry = build_html_entry(fragment, OVERVIEW_URL, notes_source)
        assert entry.pub_date.date() == date(2024, 1, 10)

    def test_no_date_is_unknown(self, notes_source):
        fragment = _fragment("<div><h3>Release 2</h3><p>Fixes</p></div>")
        entry = build_html_entry(fragment, OVERVIEW_URL, notes_source)
        assert entry.pub_date is None

    def test_first_line_title_fallback(self, release_notes_html, notes_source):
        fragment = html_fragments(release_notes_html)[2]
        entry = build_html_entry(fragment, OVERVIEW_URL, notes_source)
        assert entry.title == "Minor update: we changed the default model timeout..."

    def test_blank_heading_falls_back_to_text(self, notes_source):
        fragment = _fragment("<div><h2> </h2>\nAgent memory update</div>")
        entry = build_html_entry(fragment, OVERVIEW_URL, notes_source)
        assert entry.title == "Agent memory update"

    def test_default_title_when_no_text(self, notes_source):
        fragment = _fragment('<div><img src="/banner.png"></div>')
        entry = build_html_entry(fragment, OVERVIEW_URL, notes_source)
        assert entry.title == "Devin Release Note"

    def test_no_link_defaults_to_page(self, release_notes_html, notes_source):
        fragment = html_fragments(release_notes_html)[2]
        entry = build_html_entry(fragment, OVERVIEW_URL, notes_source)
        assert entry.link == OVERVIEW_URL
        assert entry.guid == OVERVIEW_URL

    def test_non_web_links_skipped(self, notes_source):
        fragment = _fragment(
            '<div><h3>Release</h3><a href="mailto:team@example.com">Mail</a>'
            '<a href="#top">Top</a><a href="/notes/5">Notes</a></div>',
        )
        entry = build_html_entry(fragment, OVERVIEW_URL, notes_source)
        assert entry.link == "https://docs.devin.ai/notes/5"

    def test_description_is_inner_html(self, release_notes_html, notes_source):
        fragment = html_fragments(release_notes_html)[0]
        entry = build_html_entry(fragment, OVERVIEW_URL, notes_source)
        assert entry.description == fragment.node.decode_contents()
        assert not entry.description.lstrip().startswith("<article")

    def test_fragment_without_node_rejected(self, notes_source):
        with pytest.raises(ValueError):
            build_html_entry(Fragment(raw_text="text"), OVERVIEW_URL, notes_source)


class TestBuildEntry:
    def test_dispatch_on_format(self, changelog_md, changelog_source):
        doc = Document(text=changelog_md, format="markdown", url=changelog_source.url)
        fragment = markdown_fragments(changelog_md)[2]
        entry = build_entry(fragment, doc, changelog_source)
        assert entry.guid == "claude-code-1.0.0"

    def test_pure_and_repeatable(self, release_notes_html, notes_source):
        doc = Document(text=release_notes_html, format="html", url=OVERVIEW_URL)
        first = [build_entry(f, doc, notes_source) for f in html_fragments(release_notes_html)]
        second = [build_entry(f, doc, notes_source) for f in html_fragments(release_notes_html)]
        assert [e.model_dump() for e in first] == [e.model_dump() for e in second]
