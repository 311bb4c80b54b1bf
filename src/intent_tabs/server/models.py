"""
Pydantic models for API request/response validation.
"""

from typing import Optional
from pydantic import BaseModel, Field

from intent_tabs.agents.errors import ErrorKind
from intent_tabs.agents.models import TabHandle, TabRecord, Workspace


# ============================================================================
# Request Models
# ============================================================================


class TabInput(TabHandle):
    """A browser tab from the extension, optionally with its captured HTML."""

    html: Optional[str] = None


class AnalyzeTabsRequest(BaseModel):
    """Request model for /api/tabs/analyze endpoint."""

    tabs: list[TabInput]
    color_index: int = Field(default=0, ge=0, alias="colorIndex")

    model_config = {"populate_by_name": True}


class ApiKeyRequest(BaseModel):
    """Request model for PUT /api/settings/api-key."""

    api_key: str = Field(min_length=1, alias="apiKey")

    model_config = {"populate_by_name": True, "str_strip_whitespace": True}


# ============================================================================
# Response Models
# ============================================================================


class AnalyzeTabsResponse(BaseModel):
    """Response model for /api/tabs/analyze endpoint."""

    workspaces: list[Workspace]
    unclustered: list[TabRecord]
    tab_count: int = Field(alias="tabCount")
    next_color_index: int = Field(alias="nextColorIndex")

    model_config = {"populate_by_name": True}


class RestoreWorkspaceResponse(BaseModel):
    """Response model for /api/workspaces/{id}/restore."""

    workspace: Workspace
    urls: list[str]


class DeleteWorkspaceResponse(BaseModel):
    """Response model for DELETE /api/workspaces/{id}."""

    status: str
    deleted: bool


class ApiKeyStatusResponse(BaseModel):
    """Response model for GET /api/settings/api-key."""

    has_api_key: bool = Field(alias="hasApiKey")

    model_config = {"populate_by_name": True}


class ErrorResponse(BaseModel):
    """Body returned for classified clustering failures."""

    kind: ErrorKind
    message: str


class HealthResponse(BaseModel):
    """Response model for /health endpoint."""

    status: str
    version: str = "0.1.0"
    timestamp: str
