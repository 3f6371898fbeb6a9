"""
Main FastAPI application for the code suggestion merge gate.
"""
from contextlib import asynccontextmanager
from typing import Optional

import structlog
import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from codesuggest.api.admin import admin_router
from codesuggest.api.merge_check import merge_check_router
from codesuggest.api.suggestions import suggestions_router
from codesuggest.api.webhooks import webhooks_router
from codesuggest.config import Settings
from codesuggest.logging_config import configure_logging
from codesuggest.services.analysis_service import AnalysisService
from codesuggest.services.github_service import GitHubService
from codesuggest.services.llm_client import LlmClient
from codesuggest.services.merge_gate import MergeGate
from codesuggest.services.reanalysis import DiffSource, ReanalysisTrigger
from codesuggest.services.suggestion_store import InMemorySuggestionStore, SuggestionStore

logger = structlog.get_logger(__name__)


def build_store(settings: Settings) -> SuggestionStore:
    """Create the configured suggestion store backend."""
    if settings.suggestion_store == "chroma":
        from codesuggest.services.vector_store import ChromaSuggestionStore

        return ChromaSuggestionStore(db_path=settings.chroma_db_path)
    return InMemorySuggestionStore()


def create_app(
    settings: Optional[Settings] = None,
    store: Optional[SuggestionStore] = None,
    llm_client: Optional[LlmClient] = None,
    diff_source: Optional[DiffSource] = None,
) -> FastAPI:
    """
    Create the application.

    Collaborators not passed in are built from the settings.
    """
    settings = settings or Settings.from_env()
    configure_logging(settings.log_level, settings.log_format)

    store = store or build_store(settings)
    llm_client = llm_client or LlmClient(settings)
    diff_source = diff_source or GitHubService(token=settings.github_token)
    analysis_service = AnalysisService(settings, llm_client)
    trigger = ReanalysisTrigger(diff_source, analysis_service, store, settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(
            "Starting code suggestion service",
            llm=settings.llm_base_url,
            model=settings.llm_model,
            store=settings.suggestion_store,
            auto_analysis=settings.auto_analysis_enabled,
            merge_check=settings.merge_check_enabled,
        )
        await trigger.start()
        yield
        await trigger.stop()
        logger.info("Code suggestion service stopped")

    app = FastAPI(title="Code Suggestion Gate", version="1.0.0", lifespan=lifespan)

    app.state.settings = settings
    app.state.store = store
    app.state.llm_client = llm_client
    app.state.analysis_service = analysis_service
    app.state.merge_gate = MergeGate(store, settings)
    app.state.trigger = trigger

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # API routes
    app.include_router(suggestions_router, prefix="/api", tags=["suggestions"])
    app.include_router(merge_check_router, prefix="/api", tags=["merge-check"])
    app.include_router(webhooks_router, prefix="/api", tags=["webhooks"])
    app.include_router(admin_router, prefix="/api", tags=["admin"])

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    return app


def run() -> None:
    """Console entry point."""
    settings = Settings.from_env()
    uvicorn.run(create_app(settings), host="0.0.0.0", port=settings.api_port)


if __name__ == "__main__":
    run()
