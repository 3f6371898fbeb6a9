"""
Code suggestion analysis service.

Runs each selected file through prompt construction, the language model and
response parsing, then filters, ranks and scores the combined result.
"""
import asyncio
import time
from typing import List

import structlog

from codesuggest.config import Settings
from codesuggest.exceptions import InvalidRequestError
from codesuggest.models import AnalysisRequest, AnalysisResponse, FileDiff, Suggestion
from codesuggest.services import ranker
from codesuggest.services.file_selector import select_files
from codesuggest.services.language_detector import detect_language
from codesuggest.services.llm_client import LlmClient
from codesuggest.services.prompt_builder import build_messages
from codesuggest.services.response_parser import parse_suggestions

logger = structlog.get_logger(__name__)


class AnalysisService:
    """Service for generating code suggestions using an LLM."""

    def __init__(self, settings: Settings, llm_client: LlmClient):
        self.settings = settings
        self.llm_client = llm_client

    async def analyze(self, request: AnalysisRequest) -> AnalysisResponse:
        """
        Analyze the file changes of a change request.

        A failure while analyzing one file is logged and that file
        contributes no suggestions; only errors before or around the
        per-file loop mark the response as unsuccessful.

        Args:
            request: Scope, file diffs and options.

        Returns:
            AnalysisResponse with ranked suggestions and a summary.
        """
        start_time = time.perf_counter()
        response = AnalysisResponse(
            change_request_id=request.change_request_id,
            repository_id=request.repository_id,
        )

        try:
            self._validate(request)

            file_diffs = select_files(
                request.file_diffs,
                self.settings.excluded_file_patterns,
                self.settings.supported_languages,
                self.settings.max_files_per_analysis,
                self.settings.max_file_size_kb,
            )
            logger.info(
                "Analyzing change request",
                change_request_id=request.change_request_id,
                repository_id=request.repository_id,
                files_received=len(request.file_diffs),
                files_selected=len(file_diffs),
            )

            all_suggestions = await self._analyze_selected(file_diffs)

            min_confidence = request.options.min_confidence
            if min_confidence is None:
                min_confidence = self.settings.min_confidence

            filtered = ranker.filter_by_confidence(all_suggestions, min_confidence)
            filtered = ranker.filter_categories(filtered, request.options.disabled_categories())
            ranked = [
                s.model_copy(update={
                    "change_request_id": request.change_request_id,
                    "repository_id": request.repository_id,
                })
                for s in ranker.rank(filtered)
            ]

            response.suggestions = ranked
            response.summary = ranker.summarize(len(file_diffs), ranked)
            response.success = True
        except Exception as e:
            logger.error(
                "Code analysis failed",
                change_request_id=request.change_request_id,
                repository_id=request.repository_id,
                error=str(e),
                exc_info=True,
            )
            response.success = False
            response.error = f"Code analysis failed: {e}"

        response.elapsed_ms = int((time.perf_counter() - start_time) * 1000)
        return response

    async def analyze_file(self, file_diff: FileDiff, language: str) -> AnalysisResponse:
        """
        Analyze a single file's changes.

        No confidence filtering or ranking is applied.

        Args:
            file_diff: File change to analyze.
            language: Language tag for the prompt.

        Returns:
            AnalysisResponse with the parsed suggestions.

        Raises:
            LlmError: If the model call fails.
        """
        start_time = time.perf_counter()
        messages = build_messages(file_diff, language)
        reply = await self._call_llm(messages)
        suggestions = parse_suggestions(reply, file_diff.file_path)

        return AnalysisResponse(
            success=True,
            suggestions=suggestions,
            summary=ranker.summarize(1, suggestions),
            elapsed_ms=int((time.perf_counter() - start_time) * 1000),
        )

    async def _analyze_selected(self, file_diffs: List[FileDiff]) -> List[Suggestion]:
        """Run files through the model one at a time, containing per-file failures."""
        suggestions: List[Suggestion] = []
        for file_diff in file_diffs:
            language = file_diff.language or detect_language(file_diff.file_path)
            try:
                file_response = await self.analyze_file(file_diff, language)
            except Exception as e:
                logger.warning(
                    "File analysis failed",
                    file_path=file_diff.file_path,
                    error=str(e),
                )
                continue
            suggestions.extend(file_response.suggestions)
        return suggestions

    async def _call_llm(self, messages) -> str:
        """Run the blocking chat call in an executor."""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self.llm_client.chat, messages)

    @staticmethod
    def _validate(request: AnalysisRequest) -> None:
        if request.change_request_id <= 0 or request.repository_id <= 0:
            raise InvalidRequestError("change_request_id and repository_id are required")
