"""
FastAPI dependencies.

Shared services are created once at startup and kept on app state.
"""
from fastapi import HTTPException, Request


async def get_settings(request: Request):
    return request.app.state.settings


async def get_store(request: Request):
    return request.app.state.store


async def get_analysis_service(request: Request):
    return request.app.state.analysis_service


async def get_merge_gate(request: Request):
    return request.app.state.merge_gate


async def get_llm_client(request: Request):
    return request.app.state.llm_client


async def get_trigger(request: Request):
    """Get the ReanalysisTrigger, or 503 if automatic analysis is not wired."""
    trigger = getattr(request.app.state, "trigger", None)
    if trigger is None:
        raise HTTPException(status_code=503, detail="Analysis trigger not available")
    return trigger
