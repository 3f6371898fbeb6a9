"""
API endpoint for the merge check.
"""
from fastapi import APIRouter, Depends, HTTPException

from codesuggest.api.deps import get_merge_gate
from codesuggest.models import MergeDecision
from codesuggest.services.merge_gate import MergeGate

merge_check_router = APIRouter()


@merge_check_router.get("/merge-check/{repository_id}/{change_request_id}", response_model=MergeDecision)
async def merge_check(
    repository_id: int,
    change_request_id: int,
    merge_gate: MergeGate = Depends(get_merge_gate),
):
    """
    Decide whether a change request may merge.

    Returns:
        Allow/deny decision; denials carry a reason with the unresolved
        CRITICAL count and the allowed maximum.
    """
    try:
        return merge_gate.check(change_request_id, repository_id)
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Merge check failed: {e}")
