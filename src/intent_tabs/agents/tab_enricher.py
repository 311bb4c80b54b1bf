"""
Tab enrichment pipeline.

Filters out tabs we cannot inspect, then fans metadata extraction out over
the remaining tabs in fixed-size batches. Tabs inside a batch are extracted
concurrently; batches run one after another so at most ``batch_size``
extractions are in flight.
"""

import asyncio
import re
from abc import ABC, abstractmethod
from typing import Iterable
from urllib.parse import urlparse

from intent_tabs.agents.metadata_extractor import MetadataExtractor
from intent_tabs.agents.models import TabHandle, TabRecord, now_ms
from intent_tabs.config import get_logger

logger = get_logger(__name__)

DEFAULT_BATCH_SIZE = 10
UNKNOWN_DOMAIN = "unknown"

# URLs that content cannot be extracted from
PROTECTED_URL_PATTERNS = [
    re.compile(r"^chrome://"),
    re.compile(r"^chrome-extension://"),
    re.compile(r"^about:"),
    re.compile(r"^edge://"),
    re.compile(r"^brave://"),
    re.compile(r"^moz-extension://"),
    re.compile(r"^file://"),
    re.compile(r"^view-source:"),
    re.compile(r"^devtools://"),
]


def is_protected_url(url: str) -> bool:
    """Check whether a URL is an internal, extension, local or dev-tools page."""
    return any(pattern.match(url) for pattern in PROTECTED_URL_PATTERNS)


def extract_domain(url: str) -> str:
    """
    Extract the host component of a URL.

    Examples:
        https://www.github.com/user/repo → www.github.com
        not a url → unknown
    """
    try:
        hostname = urlparse(url).hostname
    except ValueError:
        return UNKNOWN_DOMAIN
    return hostname or UNKNOWN_DOMAIN


def filter_eligible_tabs(handles: Iterable[TabHandle]) -> list[TabHandle]:
    """Drop tabs without an id or URL and tabs on protected URLs."""
    eligible = []
    for handle in handles:
        if handle.id is None or not handle.url:
            continue
        if is_protected_url(handle.url):
            logger.debug(f"Skipping protected tab {handle.id}: {handle.url}")
            continue
        eligible.append(handle)
    return eligible


class TabSource(ABC):
    """Abstract source of host-reported tabs."""

    @abstractmethod
    async def list_tabs(self) -> list[TabHandle]:
        """
        Enumerate the currently open tabs.

        Returns:
            Tab handles in the platform's enumeration order
        """
        pass


class TabEnrichmentPipeline:
    """Builds TabRecords for every eligible tab, in batches."""

    def __init__(
        self,
        extractor: MetadataExtractor,
        batch_size: int = DEFAULT_BATCH_SIZE,
    ):
        """
        Initialize the pipeline.

        Args:
            extractor: Per-tab metadata extractor
            batch_size: Maximum concurrent extractions (default: 10)
        """
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        self.extractor = extractor
        self.batch_size = batch_size

    async def build_tab_record(self, handle: TabHandle) -> TabRecord:
        """
        Combine a raw tab with its extracted metadata.

        Only fully loaded tabs are inspected; others get no metadata.
        """
        metadata = None
        if handle.status == "complete":
            metadata = await self.extractor.extract(handle)

        return TabRecord(
            id=handle.id,
            url=handle.url,
            title=handle.title,
            domain=extract_domain(handle.url),
            favicon=handle.fav_icon_url or "",
            description=metadata.description if metadata else None,
            og_tags=metadata.og_tags if metadata else None,
            content_snippet=metadata.content_snippet if metadata else None,
            last_accessed=handle.last_accessed or now_ms(),
        )

    async def enrich(self, handles: Iterable[TabHandle]) -> list[TabRecord]:
        """
        Enrich all eligible tabs.

        Args:
            handles: Raw tabs in enumeration order

        Returns:
            TabRecords in the same order as the eligible input tabs
        """
        eligible = filter_eligible_tabs(handles)
        records: list[TabRecord] = []

        for start in range(0, len(eligible), self.batch_size):
            batch = eligible[start:start + self.batch_size]
            logger.debug(
                f"Enriching batch {start // self.batch_size + 1} ({len(batch)} tabs)"
            )
            batch_records = await asyncio.gather(
                *(self.build_tab_record(handle) for handle in batch)
            )
            records.extend(batch_records)

        logger.info(f"Enriched {len(records)} tabs")
        return records

    async def enrich_from_source(self, source: TabSource) -> list[TabRecord]:
        """Enumerate tabs from a source and enrich them."""
        handles = await source.list_tabs()
        return await self.enrich(handles)
