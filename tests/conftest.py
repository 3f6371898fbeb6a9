"""
Shared fixtures for code suggestion tests.
"""
import json
from typing import Any, Dict, List, Optional
from unittest.mock import MagicMock

import pytest

from codesuggest.config import Settings
from codesuggest.models import Category, FileDiff, Severity, Suggestion, SuggestionStatus
from codesuggest.services.llm_client import LlmClient
from codesuggest.services.suggestion_store import InMemorySuggestionStore


# =============================================================================
# HELPERS
# =============================================================================

def make_suggestion(
    severity: Severity = Severity.INFO,
    confidence: float = 0.9,
    category: Category = Category.BEST_PRACTICE,
    file_path: str = "src/app.py",
    start_line: int = 1,
    **kwargs: Any,
) -> Suggestion:
    """Helper to create Suggestion objects for testing."""
    return Suggestion(
        file_path=file_path,
        start_line=start_line,
        end_line=kwargs.pop("end_line", start_line),
        explanation=kwargs.pop("explanation", f"{severity.value} finding"),
        severity=severity,
        category=category,
        confidence=confidence,
        **kwargs,
    )


def make_diff(path: str, diff: str = "+x = 1\n", **kwargs: Any) -> FileDiff:
    """Helper to create FileDiff objects for testing."""
    return FileDiff(file_path=path, diff=diff, **kwargs)


def llm_reply(items: List[Dict[str, Any]], prose: bool = False) -> str:
    """Serialize suggestion dicts the way a model would answer."""
    body = json.dumps(items)
    if prose:
        return f"Here are my findings:\n```json\n{body}\n```\nLet me know if you need more."
    return body


# =============================================================================
# FIXTURES
# =============================================================================

@pytest.fixture
def settings() -> Settings:
    """Settings with deterministic defaults and everything enabled."""
    return Settings(
        min_confidence=0.5,
        excluded_file_patterns=["*.min.js", "*.map"],
        supported_languages=["java", "javascript", "typescript", "python"],
        max_files_per_analysis=50,
        max_file_size_kb=500,
        auto_analysis_enabled=True,
        merge_check_enabled=True,
        merge_check_max_critical=0,
        analysis_workers=2,
    )


@pytest.fixture
def store() -> InMemorySuggestionStore:
    return InMemorySuggestionStore()


@pytest.fixture
def llm_client() -> MagicMock:
    """LLM client mock; set ``chat.return_value`` or ``chat.side_effect`` per test."""
    client = MagicMock(spec=LlmClient)
    client.chat.return_value = "[]"
    client.health_check.return_value = True
    client.provider = "ollama"
    return client


class FakeDiffSource:
    """Diff source returning canned file diffs per change request."""

    def __init__(self, diffs: Optional[Dict[int, List[FileDiff]]] = None):
        self.diffs = diffs or {}
        self.calls: List[int] = []

    async def get_file_diffs(self, event) -> List[FileDiff]:
        self.calls.append(event.change_request_id)
        return self.diffs.get(event.change_request_id, [])


@pytest.fixture
def diff_source() -> FakeDiffSource:
    return FakeDiffSource()


@pytest.fixture
def stored_scope(store):
    """A scope holding one pending CRITICAL, one accepted CRITICAL and one WARNING."""
    saved = store.save(1, 100, [
        make_suggestion(Severity.CRITICAL, 0.9, Category.SECURITY, start_line=10),
        make_suggestion(Severity.CRITICAL, 0.8, Category.BUG_RISK, start_line=3),
        make_suggestion(Severity.WARNING, 0.7, Category.PERFORMANCE, start_line=7),
    ])
    store.update_status(saved[1].id, SuggestionStatus.ACCEPTED, "alice")
    return saved
