"""Documents, fragments, and the pydantic feed schema."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Any, Literal, NamedTuple

from pydantic import BaseModel, Field, field_validator

if TYPE_CHECKING:
    from bs4 import Tag

DocumentFormat = Literal["markdown", "html"]


# ---------------------------------------------------------------------------
# Pipeline-internal records
# ---------------------------------------------------------------------------

class Document(NamedTuple):
    """A fetched source document and the format it is parsed as."""

    text: str
    format: DocumentFormat
    url: str


class Fragment(NamedTuple):
    """A span of a document believed to hold exactly one entry.

    Markdown fragments carry ``start``/``end`` offsets into the document plus
    the ``version`` and ``date_text`` captured from their header line.  HTML
    fragments carry the BeautifulSoup ``node`` they were selected from.
    """

    raw_text: str
    start: int | None = None
    end: int | None = None
    node: Tag | None = None
    version: str | None = None
    date_text: str | None = None


class DetailPage(NamedTuple):
    """Entry-shaped patch extracted from a detail page (cached per URL)."""

    title: str
    content_html: str


# ---------------------------------------------------------------------------
# Output schema
# ---------------------------------------------------------------------------

class FeedItem(BaseModel):
    """One normalized feed entry."""

    title: str
    link: str
    pub_date: datetime | None = Field(default=None, serialization_alias="pubDate")
    description: str = ""
    guid: str

    @field_validator("title", mode="before")
    @classmethod
    def strip_title(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip()
        return v or ""

    @field_validator("link", mode="before")
    @classmethod
    def strip_link(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip()
        return v


class Feed(BaseModel):
    """Feed envelope handed to a downstream RSS/Atom/JSON serializer."""

    title: str
    link: str
    description: str = ""
    language: str | None = None
    items: list[FeedItem] = Field(default_factory=list, serialization_alias="item")

    # Set only by the error-feed assembler; not part of the serialized feed
    is_error: bool = Field(default=False, exclude=True)
