"""
API endpoints for administrators.
"""
from fastapi import APIRouter, Depends
from fastapi.concurrency import run_in_threadpool

from codesuggest.api.deps import get_llm_client, get_settings
from codesuggest.config import Settings
from codesuggest.services.llm_client import LlmClient

admin_router = APIRouter(prefix="/admin")


@admin_router.get("/settings")
async def get_admin_settings(settings: Settings = Depends(get_settings)):
    """Effective settings, with secrets reduced to presence flags."""
    return settings.public_view()


@admin_router.post("/test-connection")
async def test_connection(
    settings: Settings = Depends(get_settings),
    llm_client: LlmClient = Depends(get_llm_client),
):
    """Check that the LLM endpoint is reachable."""
    healthy = await run_in_threadpool(llm_client.health_check)
    if healthy:
        message = "Connected to the LLM service."
    else:
        message = "Could not reach the LLM service. Check the endpoint and network settings."

    return {
        "success": healthy,
        "endpoint": settings.llm_base_url,
        "provider": llm_client.provider,
        "model": settings.llm_model,
        "message": message,
    }
