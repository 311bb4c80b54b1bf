"""
Assembles displayable workspaces from a clustering result.
"""

from pydantic import BaseModel, Field

from intent_tabs.agents.models import (
    ClusteringResult,
    TabRecord,
    Workspace,
    assign_colors,
    now_ms,
)
from intent_tabs.config import get_logger

logger = get_logger(__name__)


class AssembledWorkspaces(BaseModel):
    """Workspaces resolved to full tab records.

    Attributes:
        workspaces: Workspaces in the order the LLM proposed them
        unclustered: Tabs not placed in any workspace
        next_color_index: Color rotation position for the next assembly
    """

    workspaces: list[Workspace] = Field(default_factory=list)
    unclustered: list[TabRecord] = Field(default_factory=list)
    next_color_index: int = 0


def build_workspaces(
    result: ClusteringResult,
    tabs: list[TabRecord],
    color_index: int = 0,
) -> AssembledWorkspaces:
    """
    Resolve tab ids to TabRecords and build Workspace objects.

    Args:
        result: Validated clustering result
        tabs: The tab records that were clustered
        color_index: Color rotation position to start from

    Returns:
        AssembledWorkspaces with the rotation position for the next call
    """
    tabs_by_id = {tab.id: tab for tab in tabs}

    resolved = []
    for proposal in result.workspaces:
        workspace_tabs = [tabs_by_id[tab_id] for tab_id in proposal.tab_ids if tab_id in tabs_by_id]
        if not workspace_tabs:
            logger.warning(f"Skipping workspace '{proposal.name}': none of its tabs are known")
            continue
        resolved.append((proposal, workspace_tabs))

    colors, next_color_index = assign_colors(len(resolved), color_index)
    created_at = now_ms()

    workspaces = [
        Workspace(
            name=proposal.name,
            summary=proposal.summary,
            tabs=workspace_tabs,
            key_entities=proposal.key_entities,
            suggested_actions=proposal.suggested_actions,
            confidence=proposal.confidence,
            color=color,
            created_at=created_at,
            is_saved=False,
        )
        for (proposal, workspace_tabs), color in zip(resolved, colors)
    ]

    unclustered = [tabs_by_id[tab_id] for tab_id in result.unclustered if tab_id in tabs_by_id]

    return AssembledWorkspaces(
        workspaces=workspaces,
        unclustered=unclustered,
        next_color_index=next_color_index,
    )
