"""
Page metadata extraction.

Pulls the meta description, Open Graph tags and (only when the page has no
description of its own) a short snippet of visible text. Extraction for one
tab is bounded by a timeout and never fails the caller.
"""

import asyncio
import re
from typing import Optional

from bs4 import BeautifulSoup

from intent_tabs.agents.models import OgTags, PageMetadata, TabHandle
from intent_tabs.agents.page_context import PageContextInjector
from intent_tabs.config import get_logger

logger = get_logger(__name__)

DEFAULT_TIMEOUT_SECONDS = 3.0
SNIPPET_MAX_CHARS = 500
OG_PROPERTIES = ("title", "description", "type", "image")

_WHITESPACE = re.compile(r"\s+")
_INVISIBLE_TAGS = ["script", "style", "noscript", "template"]


def _meta_content(soup: BeautifulSoup, **attrs: str) -> Optional[str]:
    tag = soup.find("meta", attrs=attrs)
    if tag is None:
        return None
    content = tag.get("content")
    return content or None


def _visible_text_snippet(soup: BeautifulSoup) -> Optional[str]:
    body = soup.body
    if body is None:
        return None
    for tag in body.find_all(_INVISIBLE_TAGS):
        tag.decompose()
    text = _WHITESPACE.sub(" ", body.get_text(" ")).strip()
    return text[:SNIPPET_MAX_CHARS] or None


def extract_page_metadata(html: str) -> PageMetadata:
    """
    Extract description, Open Graph tags and a content snippet from HTML.

    This is a pure function so any page-context injector can evaluate it.
    The snippet is only computed when neither a meta description nor an
    og:description exists.

    Args:
        html: Page HTML

    Returns:
        PageMetadata (og_tags is None when the page declares no OG tags)
    """
    soup = BeautifulSoup(html, "html.parser")

    description = _meta_content(soup, name="description")
    og_values = {
        key: _meta_content(soup, property=f"og:{key}") for key in OG_PROPERTIES
    }
    og_tags = OgTags(**og_values) if any(og_values.values()) else None

    content_snippet = None
    if not description and not og_values["description"]:
        content_snippet = _visible_text_snippet(soup)

    return PageMetadata(
        description=description,
        og_tags=og_tags,
        content_snippet=content_snippet,
    )


class MetadataExtractor:
    """Runs page metadata extraction for one tab with a bounded timeout."""

    def __init__(
        self,
        injector: PageContextInjector,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
    ):
        """
        Initialize the extractor.

        Args:
            injector: Primitive used to evaluate the extraction in the page
            timeout_seconds: Per-tab extraction budget (default: 3s)
        """
        self.injector = injector
        self.timeout_seconds = timeout_seconds

    async def extract(self, tab: TabHandle) -> Optional[PageMetadata]:
        """
        Extract metadata from a single tab.

        Args:
            tab: The tab to extract from

        Returns:
            PageMetadata, or None on timeout or any extraction failure
        """
        try:
            return await asyncio.wait_for(
                self.injector.execute(tab, extract_page_metadata),
                timeout=self.timeout_seconds,
            )
        except asyncio.TimeoutError:
            logger.warning(
                f"Metadata extraction timed out for tab {tab.id} after {self.timeout_seconds}s"
            )
            return None
        except Exception as e:
            # Tab might be protected, unreachable or not HTML
            logger.warning(f"Failed to extract metadata from tab {tab.id}: {e}")
            return None
