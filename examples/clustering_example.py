"""
Example demonstrating intent-based tab clustering.

This example shows:
1. Enriching raw tabs with page metadata (fetched over HTTP)
2. Skipping protected and still-loading tabs
3. Grouping the tabs into workspaces with one LLM call
4. Reporting unclustered tabs

Usage:
    OPENROUTER_API_KEY=... python examples/clustering_example.py
"""

import asyncio

import httpx

from intent_tabs.agents import ClusteringError, TabClusterer, TabEnrichmentPipeline, TabHandle, TabOrganizer
from intent_tabs.agents.credentials import MemoryCredentialStore
from intent_tabs.agents.metadata_extractor import MetadataExtractor
from intent_tabs.agents.page_context import HttpPageContextInjector
from intent_tabs.config import get_settings, setup_logging


SAMPLE_TABS = [
    # Trip planning
    TabHandle(id=1, url="https://www.booking.com/city/de/berlin.html", title="Hotels in Berlin"),
    TabHandle(id=2, url="https://www.lufthansa.com/de/en/flights-to-berlin", title="Flights to Berlin"),
    TabHandle(id=3, url="https://www.visitberlin.de/en", title="visitBerlin: Official Travel Guide"),

    # Learning React
    TabHandle(id=4, url="https://react.dev/learn", title="Quick Start - React"),
    TabHandle(id=5, url="https://react.dev/reference/react/hooks", title="Built-in React Hooks"),

    # Odd one out
    TabHandle(id=6, url="https://en.wikipedia.org/wiki/Axolotl", title="Axolotl - Wikipedia"),

    # Never analyzed
    TabHandle(id=7, url="chrome://settings", title="Settings"),
    TabHandle(id=8, url="https://news.ycombinator.com", title="Hacker News", status="loading"),
]


async def run(api_key: str) -> None:
    settings = get_settings()

    async with httpx.AsyncClient(
        headers={"User-Agent": settings.page_fetch_user_agent},
        timeout=settings.metadata_timeout_seconds,
    ) as http_client:
        extractor = MetadataExtractor(
            HttpPageContextInjector(http_client, max_bytes=settings.page_fetch_max_bytes),
            timeout_seconds=settings.metadata_timeout_seconds,
        )
        pipeline = TabEnrichmentPipeline(extractor, batch_size=settings.enrichment_batch_size)
        clusterer = TabClusterer(credential_store=MemoryCredentialStore(api_key))
        organizer = TabOrganizer(pipeline, clusterer)

        print(f"Analyzing {len(SAMPLE_TABS)} tabs...")
        result = await organizer.analyze(SAMPLE_TABS)

    print(f"✓ {result.tab_count} tabs analyzed")
    print()

    for workspace in result.workspaces:
        print(f"📁 {workspace.name} ({workspace.color.value}, confidence {workspace.confidence:.2f})")
        print(f"   {workspace.summary}")
        for tab in workspace.tabs:
            print(f"   - {tab.title} [{tab.domain}]")
        if workspace.key_entities:
            print(f"   Key entities: {', '.join(workspace.key_entities)}")
        if workspace.suggested_actions:
            print(f"   Next steps: {', '.join(workspace.suggested_actions)}")
        print()

    if result.unclustered:
        print("Unclustered:")
        for tab in result.unclustered:
            print(f"   - {tab.title} [{tab.domain}]")


def main():
    """Run tab clustering example."""
    settings = get_settings()
    setup_logging(settings.log_level)

    if not settings.openrouter_api_key:
        print("ERROR: OPENROUTER_API_KEY not set in .env file")
        print("Please copy .env.example to .env and add your OpenRouter API key")
        return

    print("=" * 80)
    print("Tab Clustering Example: Intent-Based Workspaces")
    print("=" * 80)
    print()

    try:
        asyncio.run(run(settings.openrouter_api_key))
    except ClusteringError as e:
        print(f"✗ Clustering failed ({e.kind.value}): {e.message}")


if __name__ == "__main__":
    main()
