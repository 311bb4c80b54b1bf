"""
Unit tests for page metadata extraction.
"""

import asyncio
import time
from unittest.mock import patch

from intent_tabs.agents.metadata_extractor import MetadataExtractor, extract_page_metadata
from intent_tabs.agents.models import TabHandle
from intent_tabs.agents.page_context import (
    PageContextError,
    PageContextInjector,
    StaticPageContextInjector,
)


ARTICLE_HTML = """
<html>
  <head>
    <title>Berlin Hotels</title>
    <meta name="description" content="Find the best hotels in Berlin.">
    <meta property="og:title" content="Berlin Hotels | Booking">
    <meta property="og:type" content="website">
  </head>
  <body><p>Hotel listings</p></body>
</html>
"""

NO_DESCRIPTION_HTML = """
<html>
  <head><title>Notes</title><style>body { color: red; }</style></head>
  <body>
    <script>var tracking = true;</script>
    <h1>Axolotl   care</h1>
    <p>Keep the water
       cool and clean.</p>
  </body>
</html>
"""


class SlowInjector(PageContextInjector):
    """Never finishes within a short timeout."""

    async def execute(self, tab, func):
        await asyncio.sleep(5)
        return func("<html></html>")


class FailingInjector(PageContextInjector):
    async def execute(self, tab, func):
        raise PageContextError("Cannot access a chrome:// URL")


class TestExtractPageMetadata:
    """Tests for extract_page_metadata."""

    def test_description_and_og_tags(self):
        metadata = extract_page_metadata(ARTICLE_HTML)

        assert metadata.description == "Find the best hotels in Berlin."
        assert metadata.og_tags is not None
        assert metadata.og_tags.title == "Berlin Hotels | Booking"
        assert metadata.og_tags.type == "website"
        assert metadata.og_tags.description is None
        assert metadata.og_tags.image is None

    def test_snippet_suppressed_when_description_present(self):
        metadata = extract_page_metadata(ARTICLE_HTML)

        assert metadata.content_snippet is None

    def test_snippet_suppressed_when_only_og_description_present(self):
        html = (
            '<html><head><meta property="og:description" content="A React tutorial">'
            "</head><body><p>Body text</p></body></html>"
        )

        metadata = extract_page_metadata(html)

        assert metadata.description is None
        assert metadata.og_tags.description == "A React tutorial"
        assert metadata.content_snippet is None

    def test_no_og_tags_is_none(self):
        metadata = extract_page_metadata(NO_DESCRIPTION_HTML)

        assert metadata.og_tags is None

    def test_snippet_collapses_whitespace_and_skips_scripts(self):
        """Test the snippet holds only visible text with single spaces."""
        metadata = extract_page_metadata(NO_DESCRIPTION_HTML)

        assert metadata.description is None
        assert metadata.content_snippet == "Axolotl care Keep the water cool and clean."
        assert "tracking" not in metadata.content_snippet

    def test_snippet_truncated_to_500_chars(self):
        html = "<html><body><p>" + "word " * 400 + "</p></body></html>"

        metadata = extract_page_metadata(html)

        assert len(metadata.content_snippet) == 500

    def test_empty_body_has_no_snippet(self):
        metadata = extract_page_metadata("<html><head></head><body>   </body></html>")

        assert metadata.content_snippet is None

    def test_empty_description_is_absent(self):
        html = '<html><head><meta name="description" content=""></head><body>Hello</body></html>'

        metadata = extract_page_metadata(html)

        assert metadata.description is None
        assert metadata.content_snippet == "Hello"


class TestMetadataExtractor:
    """Tests for MetadataExtractor."""

    def test_extracts_from_captured_html(self):
        tab = TabHandle(id=1, url="https://booking.com/berlin", title="Berlin Hotels")
        extractor = MetadataExtractor(StaticPageContextInjector({1: ARTICLE_HTML}))

        metadata = asyncio.run(extractor.extract(tab))

        assert metadata.description == "Find the best hotels in Berlin."

    def test_timeout_returns_none(self):
        """Test a page that does not answer in time yields no metadata."""
        tab = TabHandle(id=2, url="https://slow.example.com", title="Slow")
        extractor = MetadataExtractor(SlowInjector(), timeout_seconds=0.05)

        assert asyncio.run(extractor.extract(tab)) is None

    def test_injection_failure_returns_none(self):
        tab = TabHandle(id=3, url="https://example.com", title="Example")
        extractor = MetadataExtractor(FailingInjector())

        assert asyncio.run(extractor.extract(tab)) is None

    def test_missing_page_without_fallback_returns_none(self):
        tab = TabHandle(id=4, url="https://example.com", title="Example")
        extractor = MetadataExtractor(StaticPageContextInjector({}))

        assert asyncio.run(extractor.extract(tab)) is None

    def test_slow_parse_is_cut_off_by_timeout(self):
        """Test a parse that outlives the budget yields None within the budget."""
        tab = TabHandle(id=5, url="https://example.com/huge", title="Huge page")
        extractor = MetadataExtractor(
            StaticPageContextInjector({5: ARTICLE_HTML}), timeout_seconds=0.1
        )

        def blocking_parse(html):
            time.sleep(1.0)
            return extract_page_metadata(html)

        async def timed_extract():
            start = time.monotonic()
            result = await extractor.extract(tab)
            return result, time.monotonic() - start

        with patch(
            "intent_tabs.agents.metadata_extractor.extract_page_metadata",
            side_effect=blocking_parse,
        ):
            result, elapsed = asyncio.run(timed_extract())

        assert result is None
        assert elapsed < 0.8

    def test_large_captured_page_respects_timeout(self):
        html = "<html><body>" + "<div><p>lorem ipsum</p></div>" * 250_000 + "</body></html>"
        tab = TabHandle(id=6, url="https://example.com/archive", title="Archive")
        extractor = MetadataExtractor(StaticPageContextInjector({6: html}), timeout_seconds=0.2)

        async def timed_extract():
            start = time.monotonic()
            result = await extractor.extract(tab)
            return result, time.monotonic() - start

        result, elapsed = asyncio.run(timed_extract())

        assert result is None
        assert elapsed < 1.5
