"""
API endpoints for code suggestion operations.
"""
from typing import List, Optional

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel

from codesuggest.api.deps import get_analysis_service, get_store
from codesuggest.exceptions import InvalidStatusError, SuggestionNotFoundError
from codesuggest.models import AnalysisRequest, AnalysisResponse, Suggestion, SuggestionStats, SuggestionStatus
from codesuggest.services.analysis_service import AnalysisService
from codesuggest.services.diff_parser import DiffParser
from codesuggest.services.suggestion_store import SuggestionStore

logger = structlog.get_logger(__name__)

suggestions_router = APIRouter()


class AnalyzeRequest(AnalysisRequest):
    raw_diff: Optional[str] = None  # Unified diff, split into file_diffs when given


class StatusUpdateRequest(BaseModel):
    status: Optional[str] = None
    resolved_by: Optional[str] = None


@suggestions_router.post("/analyze", response_model=AnalysisResponse)
async def analyze_code(
    request: AnalyzeRequest,
    analysis_service: AnalysisService = Depends(get_analysis_service),
    store: SuggestionStore = Depends(get_store),
):
    """
    Trigger code analysis for a change request and persist the suggestions.

    Args:
        request: Scope plus file diffs (or a raw unified diff).

    Returns:
        Analysis response with the saved suggestions.
    """
    if request.change_request_id <= 0 or request.repository_id <= 0:
        raise HTTPException(status_code=400, detail="change_request_id and repository_id are required")

    try:
        file_diffs = list(request.file_diffs)
        if request.raw_diff:
            file_diffs.extend(DiffParser().parse(request.raw_diff))

        analysis_request = AnalysisRequest(
            change_request_id=request.change_request_id,
            repository_id=request.repository_id,
            project_key=request.project_key,
            repo_slug=request.repo_slug,
            file_diffs=file_diffs,
            options=request.options,
        )
        response = await analysis_service.analyze(analysis_request)

        if response.success and response.suggestions:
            response.suggestions = store.save(
                request.change_request_id, request.repository_id, response.suggestions
            )
        return response
    except Exception as e:
        logger.error("Analyze endpoint failed", error=str(e))
        raise HTTPException(status_code=500, detail=f"Code analysis failed: {e}")


@suggestions_router.get("/suggestions/{repository_id}/{change_request_id}")
async def get_suggestions(
    repository_id: int,
    change_request_id: int,
    store: SuggestionStore = Depends(get_store),
):
    """All suggestions for a change request, in priority order, with stats."""
    try:
        suggestions = store.list_suggestions(change_request_id, repository_id)
        return {
            "suggestions": suggestions,
            "total": len(suggestions),
            "stats": store.stats(change_request_id, repository_id),
        }
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Failed to list suggestions: {e}")


@suggestions_router.get(
    "/suggestions/{repository_id}/{change_request_id}/file",
    response_model=List[Suggestion],
)
async def get_suggestions_for_file(
    repository_id: int,
    change_request_id: int,
    path: Optional[str] = Query(default=None),
    store: SuggestionStore = Depends(get_store),
):
    """Suggestions for one file, by start line."""
    if not path:
        raise HTTPException(status_code=400, detail="File path is required")
    try:
        return store.list_for_file(change_request_id, repository_id, path)
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Failed to list file suggestions: {e}")


@suggestions_router.put("/suggestions/{suggestion_id}/status", response_model=Suggestion)
async def update_suggestion_status(
    suggestion_id: str,
    request: StatusUpdateRequest,
    store: SuggestionStore = Depends(get_store),
):
    """
    Accept, reject or dismiss a suggestion.

    Returns:
        The updated suggestion.
    """
    if not request.status:
        raise HTTPException(status_code=400, detail="status is required")

    try:
        status = SuggestionStatus.parse_resolution(request.status)
        return store.update_status(suggestion_id, status, request.resolved_by)
    except InvalidStatusError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except SuggestionNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Failed to update suggestion status: {e}")


@suggestions_router.get("/stats/{repository_id}/{change_request_id}", response_model=SuggestionStats)
async def get_stats(
    repository_id: int,
    change_request_id: int,
    store: SuggestionStore = Depends(get_store),
):
    """Suggestion counts by status and severity."""
    try:
        return store.stats(change_request_id, repository_id)
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Failed to load stats: {e}")


@suggestions_router.delete("/suggestions/{repository_id}/{change_request_id}")
async def delete_suggestions(
    repository_id: int,
    change_request_id: int,
    store: SuggestionStore = Depends(get_store),
):
    """Delete all suggestions for a change request."""
    try:
        deleted = store.delete_all(change_request_id, repository_id)
        return {
            "success": True,
            "deleted": deleted,
            "message": f"All suggestions for change request #{change_request_id} were deleted",
        }
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Failed to delete suggestions: {e}")
