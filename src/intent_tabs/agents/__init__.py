"""
Agents for grouping browser tabs into intent-based workspaces.

This package provides:
- Page metadata extraction (MetadataExtractor)
- Batched tab enrichment (TabEnrichmentPipeline)
- LLM-backed clustering with response reconciliation (TabClusterer)
- Workspace assembly (build_workspaces, TabOrganizer)
"""

from intent_tabs.agents.errors import ClusteringError, ErrorKind, classify_error
from intent_tabs.agents.models import (
    TabHandle,
    TabRecord,
    ClusterProposal,
    ClusteringResult,
    Workspace,
    WorkspaceColor,
)
from intent_tabs.agents.tab_clusterer import TabClusterer
from intent_tabs.agents.tab_enricher import TabEnrichmentPipeline
from intent_tabs.agents.tab_organizer import TabOrganizer

__all__ = [
    "TabHandle",
    "TabRecord",
    "ClusterProposal",
    "ClusteringResult",
    "Workspace",
    "WorkspaceColor",
    "ClusteringError",
    "ErrorKind",
    "classify_error",
    "TabClusterer",
    "TabEnrichmentPipeline",
    "TabOrganizer",
]
