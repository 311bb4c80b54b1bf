"""
Data models for tab enrichment and workspace clustering.

This module defines the core data structures for representing browser tabs,
the clustering result returned by the LLM, and the workspaces assembled from
it. Field names are snake_case; camelCase aliases keep the JSON shape used by
the browser extension and the LLM contract.
"""

import time
import uuid
from enum import Enum
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

TabStatus = Literal["unloaded", "loading", "complete"]


def now_ms() -> int:
    """Current time as epoch milliseconds (the browser's timestamp unit)."""
    return int(time.time() * 1000)


class TabHandle(BaseModel):
    """A raw tab as reported by the browser, before enrichment.

    Attributes:
        id: Platform-assigned tab identifier
        url: Current URL of the tab
        title: Tab title ("Untitled" when the browser reports none)
        fav_icon_url: Favicon reference, if any
        status: Load status reported by the browser
        last_accessed: Browser-recorded last access time (epoch ms)
    """

    id: Optional[int] = None
    url: Optional[str] = None
    title: str = "Untitled"
    fav_icon_url: Optional[str] = Field(default=None, alias="favIconUrl")
    status: TabStatus = "complete"
    last_accessed: Optional[int] = Field(default=None, alias="lastAccessed")

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("title", mode="before")
    @classmethod
    def default_title(cls, v):
        """Browsers report blank titles for some pages."""
        return v or "Untitled"

    @field_validator("status", mode="before")
    @classmethod
    def default_status(cls, v):
        return v or "complete"


class OgTags(BaseModel):
    """Open Graph properties found on a page. Each one is optional."""

    title: Optional[str] = None
    description: Optional[str] = None
    type: Optional[str] = None
    image: Optional[str] = None

    model_config = ConfigDict(frozen=True)


class PageMetadata(BaseModel):
    """Metadata extracted from a page's DOM."""

    description: Optional[str] = None
    og_tags: Optional[OgTags] = Field(default=None, alias="ogTags")
    content_snippet: Optional[str] = Field(default=None, alias="contentSnippet")

    model_config = ConfigDict(populate_by_name=True, frozen=True)


class TabRecord(BaseModel):
    """One browser tab's enriched view.

    Attributes:
        id: Platform-assigned tab identifier (unique within a run)
        url: The URL of the tab
        title: The title of the tab
        domain: Host component of the URL ("unknown" if unparsable)
        favicon: Favicon URL, possibly empty
        description: Meta description of the page
        og_tags: Open Graph tags, absent when the page declares none
        content_snippet: Up to 500 characters of visible text, only set when
            the page has no description of its own
        last_accessed: When the tab was last accessed (epoch ms)
    """

    id: int
    url: str
    title: str
    domain: str
    favicon: str = ""
    description: Optional[str] = None
    og_tags: Optional[OgTags] = Field(default=None, alias="ogTags")
    content_snippet: Optional[str] = Field(default=None, alias="contentSnippet")
    last_accessed: int = Field(default_factory=now_ms, alias="lastAccessed")

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    def best_description(self, snippet_chars: int = 200) -> Optional[str]:
        """Pick the single most useful description for the clustering prompt.

        Priority: meta description, then og:description, then the start of
        the content snippet.
        """
        if self.description:
            return self.description
        if self.og_tags and self.og_tags.description:
            return self.og_tags.description
        if self.content_snippet:
            return self.content_snippet[:snippet_chars]
        return None


class ClusterProposal(BaseModel):
    """A normalized grouping of tabs proposed by the LLM."""

    name: str = "Unnamed Workspace"
    tab_ids: list[int] = Field(default_factory=list, alias="tabIds")
    summary: str = ""
    key_entities: list[str] = Field(default_factory=list, alias="keyEntities")
    suggested_actions: list[str] = Field(default_factory=list, alias="suggestedActions")
    confidence: float = Field(default=0.5, ge=0.0, le=1.0)

    model_config = ConfigDict(populate_by_name=True, frozen=True)


class ClusteringResult(BaseModel):
    """Validated output of one clustering run.

    Every input tab id appears exactly once across all workspace ``tab_ids``
    and ``unclustered``.
    """

    workspaces: list[ClusterProposal] = Field(default_factory=list)
    unclustered: list[int] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)

    def all_tab_ids(self) -> list[int]:
        """All placed tab ids: workspaces first, then unclustered."""
        ids = [tab_id for ws in self.workspaces for tab_id in ws.tab_ids]
        ids.extend(self.unclustered)
        return ids


class WorkspaceColor(str, Enum):
    """Available colors for workspaces (Chrome Tab Group colors)."""
    GREY = "grey"
    BLUE = "blue"
    RED = "red"
    YELLOW = "yellow"
    GREEN = "green"
    PINK = "pink"
    PURPLE = "purple"
    CYAN = "cyan"
    ORANGE = "orange"


def assign_colors(count: int, start_index: int = 0) -> tuple[list[WorkspaceColor], int]:
    """
    Assign colors round-robin starting from an explicit rotation index.

    Args:
        count: Number of colors needed
        start_index: Rotation position to start from

    Returns:
        Tuple of (colors, next rotation index to pass to the following call)
    """
    palette = list(WorkspaceColor)
    colors = [palette[(start_index + i) % len(palette)] for i in range(count)]
    return colors, (start_index + count) % len(palette)


class Workspace(BaseModel):
    """A named grouping of tabs believed to share user intent.

    Attributes:
        id: Unique identifier for the workspace
        name: Human-readable name
        summary: What the user appears to be trying to accomplish
        tabs: Tabs in this workspace, in the order the LLM listed them
        key_entities: Dates, prices, names and similar highlights
        suggested_actions: Short actionable next steps
        confidence: How strongly the tabs relate (0-1)
        color: Display color for the workspace
        created_at: When the workspace was assembled (epoch ms)
        is_saved: Whether the workspace has been persisted
    """

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    name: str
    summary: str = ""
    tabs: list[TabRecord] = Field(default_factory=list)
    key_entities: list[str] = Field(default_factory=list, alias="keyEntities")
    suggested_actions: list[str] = Field(default_factory=list, alias="suggestedActions")
    confidence: float = Field(default=0.5, ge=0.0, le=1.0)
    color: WorkspaceColor = WorkspaceColor.BLUE
    created_at: int = Field(default_factory=now_ms, alias="createdAt")
    is_saved: bool = Field(default=False, alias="isSaved")

    model_config = ConfigDict(populate_by_name=True)

    def get_tab_urls(self) -> list[str]:
        """Get list of all tab URLs in this workspace."""
        return [tab.url for tab in self.tabs]
