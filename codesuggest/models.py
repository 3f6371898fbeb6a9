"""
Data models for the code suggestion pipeline.
"""
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from codesuggest.exceptions import InvalidStatusError


class Severity(str, Enum):
    """How severe a suggestion is, most severe first."""

    CRITICAL = "CRITICAL"
    WARNING = "WARNING"
    INFO = "INFO"
    HINT = "HINT"

    @property
    def rank(self) -> int:
        """Sort rank: 0 for CRITICAL up to 3 for HINT."""
        return _SEVERITY_RANK[self]

    @classmethod
    def parse(cls, value) -> "Severity":
        """Parse a model-supplied severity, falling back to INFO."""
        if isinstance(value, str):
            try:
                return cls(value.strip().upper())
            except ValueError:
                pass
        return cls.INFO


_SEVERITY_RANK = {
    Severity.CRITICAL: 0,
    Severity.WARNING: 1,
    Severity.INFO: 2,
    Severity.HINT: 3,
}


class Category(str, Enum):
    """What kind of problem a suggestion addresses."""

    SECURITY = "SECURITY"
    PERFORMANCE = "PERFORMANCE"
    BUG_RISK = "BUG_RISK"
    CODE_STYLE = "CODE_STYLE"
    BEST_PRACTICE = "BEST_PRACTICE"
    DUPLICATION = "DUPLICATION"
    COMPLEXITY = "COMPLEXITY"
    ERROR_HANDLING = "ERROR_HANDLING"

    @classmethod
    def parse(cls, value) -> "Category":
        """Parse a model-supplied category, falling back to BEST_PRACTICE."""
        if isinstance(value, str):
            try:
                return cls(value.strip().upper())
            except ValueError:
                pass
        return cls.BEST_PRACTICE


class SuggestionStatus(str, Enum):
    """Resolution state of a suggestion."""

    PENDING = "PENDING"
    ACCEPTED = "ACCEPTED"
    REJECTED = "REJECTED"
    DISMISSED = "DISMISSED"

    @classmethod
    def parse_resolution(cls, value: Optional[str]) -> "SuggestionStatus":
        """
        Parse a status update value.

        Only ACCEPTED, REJECTED and DISMISSED are accepted (case-insensitive).

        Raises:
            InvalidStatusError: For anything else, including PENDING.
        """
        normalized = (value or "").strip().upper()
        if normalized in RESOLUTION_STATUSES:
            return cls(normalized)
        raise InvalidStatusError(
            f"Invalid status '{value}'. Must be one of ACCEPTED, REJECTED, DISMISSED"
        )


RESOLUTION_STATUSES = ("ACCEPTED", "REJECTED", "DISMISSED")


class FileDiff(BaseModel):
    """Changes to a single file for one analysis pass."""
    model_config = ConfigDict(frozen=True)

    file_path: str
    diff: str = ""
    language: Optional[str] = None
    full_content: Optional[str] = None


class AnalysisOptions(BaseModel):
    """Per-request switches for check categories and the confidence threshold."""
    check_security: bool = True
    check_performance: bool = True
    check_style: bool = True
    check_best_practice: bool = True
    check_error_handling: bool = True
    min_confidence: Optional[float] = Field(default=None, ge=0.0, le=1.0)

    def disabled_categories(self) -> List[Category]:
        flags = {
            Category.SECURITY: self.check_security,
            Category.PERFORMANCE: self.check_performance,
            Category.CODE_STYLE: self.check_style,
            Category.BEST_PRACTICE: self.check_best_practice,
            Category.ERROR_HANDLING: self.check_error_handling,
        }
        return [category for category, enabled in flags.items() if not enabled]


class AnalysisRequest(BaseModel):
    """A request to analyze the file changes of one change request."""
    change_request_id: int
    repository_id: int
    project_key: str = ""
    repo_slug: str = ""
    file_diffs: List[FileDiff] = Field(default_factory=list)
    options: AnalysisOptions = Field(default_factory=AnalysisOptions)


class Suggestion(BaseModel):
    """Represents a code suggestion produced by the language model."""
    id: Optional[str] = None
    change_request_id: int = 0
    repository_id: int = 0
    file_path: str
    start_line: int = 0
    end_line: int = 0
    original_code: str = ""
    suggested_code: str = ""
    explanation: str = ""
    severity: Severity = Severity.INFO
    category: Category = Category.BEST_PRACTICE
    confidence: float = Field(default=0.5, ge=0.0, le=1.0)
    status: SuggestionStatus = SuggestionStatus.PENDING
    created_at: Optional[datetime] = None
    resolved_by: Optional[str] = None
    resolved_at: Optional[datetime] = None

    @model_validator(mode="after")
    def _resolution_set_together(self) -> "Suggestion":
        if (self.resolved_by is None) != (self.resolved_at is None):
            raise ValueError("resolved_by and resolved_at must be set together")
        return self


class AnalysisSummary(BaseModel):
    """Aggregate quality summary of one suggestion batch."""
    total_files: int = 0
    total_suggestions: int = 0
    critical_count: int = 0
    warning_count: int = 0
    info_count: int = 0
    hint_count: int = 0
    category_breakdown: Dict[str, int] = Field(default_factory=dict)
    overall_score: float = 100.0


class AnalysisResponse(BaseModel):
    """Result of an analysis pass."""
    change_request_id: int = 0
    repository_id: int = 0
    success: bool = False
    suggestions: List[Suggestion] = Field(default_factory=list)
    summary: Optional[AnalysisSummary] = None
    error: Optional[str] = None
    elapsed_ms: int = 0


class SuggestionStats(BaseModel):
    """Counts over the stored suggestions of one change request."""
    total: int = 0
    pending: int = 0
    accepted: int = 0
    rejected: int = 0
    dismissed: int = 0
    critical: int = 0
    warning: int = 0


class MergeDecision(BaseModel):
    """Outcome of a merge check."""
    allowed: bool
    reason: Optional[str] = None
    critical_count: int = 0
    max_allowed: int = 0
    stats: Optional[SuggestionStats] = None
