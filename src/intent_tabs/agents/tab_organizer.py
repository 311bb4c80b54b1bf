"""
End-to-end tab analysis: enrich, cluster, assemble.
"""

from typing import Iterable

from intent_tabs.agents.models import TabHandle
from intent_tabs.agents.tab_clusterer import TabClusterer
from intent_tabs.agents.tab_enricher import TabEnrichmentPipeline
from intent_tabs.agents.workspace_builder import AssembledWorkspaces, build_workspaces
from intent_tabs.config import get_logger

logger = get_logger(__name__)


class AnalysisResult(AssembledWorkspaces):
    """Assembled workspaces plus the number of tabs that were analyzed."""

    tab_count: int = 0


class TabOrganizer:
    """Runs the full analysis for a set of raw tabs."""

    def __init__(self, pipeline: TabEnrichmentPipeline, clusterer: TabClusterer):
        self.pipeline = pipeline
        self.clusterer = clusterer

    async def analyze(
        self,
        handles: Iterable[TabHandle],
        color_index: int = 0,
    ) -> AnalysisResult:
        """
        Analyze tabs and group them into workspaces.

        Args:
            handles: Raw tabs as reported by the browser
            color_index: Color rotation position to start from

        Returns:
            AnalysisResult with workspaces, unclustered tabs and the next
            color rotation position

        Raises:
            ClusteringError: If clustering fails (already classified)
        """
        tabs = await self.pipeline.enrich(handles)
        logger.info(f"Analyzed {len(tabs)} tabs with metadata")

        result = await self.clusterer.cluster_tabs(tabs)
        assembled = build_workspaces(result, tabs, color_index)

        return AnalysisResult(
            workspaces=assembled.workspaces,
            unclustered=assembled.unclustered,
            next_color_index=assembled.next_color_index,
            tab_count=len(tabs),
        )
