"""
Filtering, ordering and scoring of suggestion batches.
"""
from collections import Counter
from typing import Iterable, List

from codesuggest.models import AnalysisSummary, Category, Severity, Suggestion

SCORE_PENALTIES = {
    Severity.CRITICAL: 20,
    Severity.WARNING: 5,
    Severity.INFO: 1,
    Severity.HINT: 0,
}


def filter_by_confidence(suggestions: Iterable[Suggestion], min_confidence: float) -> List[Suggestion]:
    """Keep suggestions whose confidence is at least ``min_confidence``."""
    return [s for s in suggestions if s.confidence >= min_confidence]


def filter_categories(suggestions: Iterable[Suggestion], disabled: Iterable[Category]) -> List[Suggestion]:
    """Drop suggestions whose category has been switched off."""
    disabled = set(disabled)
    return [s for s in suggestions if s.category not in disabled]


def priority_key(suggestion: Suggestion):
    """Most severe first, then highest confidence."""
    return (suggestion.severity.rank, -suggestion.confidence)


def rank(suggestions: Iterable[Suggestion]) -> List[Suggestion]:
    """Order suggestions by severity, breaking ties by confidence (stable)."""
    return sorted(suggestions, key=priority_key)


def overall_score(critical: int, warning: int, info: int) -> float:
    """Quality score in [0, 100]; hints do not count against it."""
    score = 100.0
    score -= critical * SCORE_PENALTIES[Severity.CRITICAL]
    score -= warning * SCORE_PENALTIES[Severity.WARNING]
    score -= info * SCORE_PENALTIES[Severity.INFO]
    return max(0.0, min(100.0, score))


def summarize(total_files: int, suggestions: List[Suggestion]) -> AnalysisSummary:
    """
    Compute the aggregate summary of a suggestion batch.

    Args:
        total_files: Number of files that were analyzed.
        suggestions: The filtered, ranked batch.

    Returns:
        AnalysisSummary with per-severity counts, category breakdown and score.
    """
    severities = Counter(s.severity for s in suggestions)
    categories = Counter(s.category.value for s in suggestions)

    critical = severities.get(Severity.CRITICAL, 0)
    warning = severities.get(Severity.WARNING, 0)
    info = severities.get(Severity.INFO, 0)

    return AnalysisSummary(
        total_files=total_files,
        total_suggestions=len(suggestions),
        critical_count=critical,
        warning_count=warning,
        info_count=info,
        hint_count=severities.get(Severity.HINT, 0),
        category_breakdown=dict(categories),
        overall_score=overall_score(critical, warning, info),
    )
