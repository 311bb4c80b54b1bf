"""
FastAPI application for the Intent Tab Organizer backend.

This server provides endpoints for:
- Tab analysis (enrichment + LLM clustering)
- Saving, listing, deleting and restoring workspaces
- API key configuration
"""

from datetime import datetime, UTC

import httpx
from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from intent_tabs.config import get_logger, get_settings
from intent_tabs.agents.errors import ClusteringError, ErrorKind
from intent_tabs.agents.metadata_extractor import MetadataExtractor
from intent_tabs.agents.models import Workspace
from intent_tabs.agents.page_context import HttpPageContextInjector, StaticPageContextInjector
from intent_tabs.agents.tab_clusterer import TabClusterer
from intent_tabs.agents.tab_enricher import TabEnrichmentPipeline
from intent_tabs.agents.tab_organizer import TabOrganizer
from intent_tabs.storage.database import WorkspaceDB
from intent_tabs.server.models import (
    AnalyzeTabsRequest,
    AnalyzeTabsResponse,
    ApiKeyRequest,
    ApiKeyStatusResponse,
    DeleteWorkspaceResponse,
    ErrorResponse,
    HealthResponse,
    RestoreWorkspaceResponse,
)

logger = get_logger(__name__)

# ============================================================================
# FastAPI App Initialization
# ============================================================================

app = FastAPI(
    title="Intent Tab Organizer API",
    description="Groups browser tabs into intent-based workspaces",
    version="0.1.0",
)

# CORS middleware for browser extension
app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "chrome-extension://*",
        "http://localhost:*",
        "https://localhost:*",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Status codes for classified clustering failures
ERROR_STATUS_CODES = {
    ErrorKind.MISSING_CREDENTIAL: 400,
    ErrorKind.INVALID_CREDENTIAL: 401,
    ErrorKind.RATE_LIMITED: 429,
    ErrorKind.MALFORMED_RESPONSE: 502,
    ErrorKind.UNKNOWN: 500,
}

# ============================================================================
# Global State
# ============================================================================

_workspace_db: WorkspaceDB | None = None


def get_workspace_db() -> WorkspaceDB:
    """Get or create the global WorkspaceDB instance.

    An API key from the environment seeds the store when none is saved yet.
    """
    global _workspace_db
    if _workspace_db is None:
        settings = get_settings()
        _workspace_db = WorkspaceDB(settings.db_path)
        if settings.openrouter_api_key and not _workspace_db.has_api_key():
            _workspace_db.set_api_key(settings.openrouter_api_key)
    return _workspace_db


@app.exception_handler(ClusteringError)
async def clustering_error_handler(request: Request, exc: ClusteringError):
    """Return classified clustering failures as {kind, message}."""
    return JSONResponse(
        status_code=ERROR_STATUS_CODES[exc.kind],
        content=ErrorResponse(kind=exc.kind, message=exc.message).model_dump(mode="json"),
    )


# ============================================================================
# API Endpoints
# ============================================================================


@app.get("/health", response_model=HealthResponse)
async def health_check():
    """Health check endpoint."""
    return HealthResponse(
        status="healthy",
        timestamp=datetime.now(UTC).isoformat(),
    )


@app.post("/api/tabs/analyze", response_model=AnalyzeTabsResponse)
async def analyze_tabs(request: AnalyzeTabsRequest):
    """
    Analyze tabs from the browser extension and group them into workspaces.

    This endpoint:
    1. Drops protected and incomplete tab handles
    2. Extracts page metadata in batches (captured HTML first, HTTP fetch otherwise)
    3. Clusters the enriched tabs with one LLM call
    4. Resolves the result into workspaces and unclustered tabs

    Args:
        request: Raw tabs, optional captured HTML, color rotation position

    Returns:
        Workspaces, unclustered tabs and the next color rotation position
    """
    settings = get_settings()
    db = get_workspace_db()

    pages = {tab.id: tab.html for tab in request.tabs if tab.id is not None and tab.html}

    async with httpx.AsyncClient(
        headers={"User-Agent": settings.page_fetch_user_agent},
        timeout=settings.metadata_timeout_seconds,
    ) as http_client:
        injector = StaticPageContextInjector(
            pages,
            fallback=HttpPageContextInjector(http_client, max_bytes=settings.page_fetch_max_bytes),
        )
        pipeline = TabEnrichmentPipeline(
            MetadataExtractor(injector, timeout_seconds=settings.metadata_timeout_seconds),
            batch_size=settings.enrichment_batch_size,
        )
        organizer = TabOrganizer(pipeline, TabClusterer(credential_store=db))
        result = await organizer.analyze(request.tabs, color_index=request.color_index)

    return AnalyzeTabsResponse(
        workspaces=result.workspaces,
        unclustered=result.unclustered,
        tab_count=result.tab_count,
        next_color_index=result.next_color_index,
    )


@app.post("/api/workspaces", response_model=Workspace)
async def save_workspace(workspace: Workspace):
    """Save a workspace (marked as saved)."""
    return get_workspace_db().save_workspace(workspace)


@app.get("/api/workspaces", response_model=list[Workspace])
async def get_saved_workspaces():
    """Get all saved workspaces."""
    return get_workspace_db().get_saved_workspaces()


@app.delete("/api/workspaces/{workspace_id}", response_model=DeleteWorkspaceResponse)
async def delete_workspace(workspace_id: str):
    """Delete a saved workspace. Deleting an unknown ID is not an error."""
    deleted = get_workspace_db().delete_workspace(workspace_id)
    return DeleteWorkspaceResponse(status="success", deleted=deleted)


@app.post("/api/workspaces/{workspace_id}/restore", response_model=RestoreWorkspaceResponse)
async def restore_workspace(workspace_id: str):
    """
    Look up a saved workspace so the extension can reopen its tabs.

    Opening the window and tabs is done by the extension with the returned URLs.
    """
    workspace = get_workspace_db().get_workspace(workspace_id)
    if workspace is None:
        raise HTTPException(status_code=404, detail="Workspace not found")
    return RestoreWorkspaceResponse(workspace=workspace, urls=workspace.get_tab_urls())


@app.put("/api/settings/api-key", response_model=ApiKeyStatusResponse)
async def set_api_key(request: ApiKeyRequest):
    """Store the OpenRouter API key."""
    db = get_workspace_db()
    db.set_api_key(request.api_key)
    return ApiKeyStatusResponse(has_api_key=db.has_api_key())


@app.get("/api/settings/api-key", response_model=ApiKeyStatusResponse)
async def has_api_key():
    """Report whether an API key is configured (never returns the key)."""
    return ApiKeyStatusResponse(has_api_key=get_workspace_db().has_api_key())
