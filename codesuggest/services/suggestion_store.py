"""
Suggestion persistence and lifecycle.

Every operation is scoped by (change_request_id, repository_id). Ordering and
aggregate statistics live in SuggestionStore; backends only provide record
primitives.
"""
import threading
import uuid
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional, Union

import structlog

from codesuggest.exceptions import SuggestionNotFoundError
from codesuggest.models import (
    Severity,
    Suggestion,
    SuggestionStats,
    SuggestionStatus,
)
from codesuggest.services.ranker import rank

logger = structlog.get_logger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SuggestionStore(ABC):
    """Persistence boundary for suggestions."""

    # Backend primitives

    @abstractmethod
    def _insert(self, suggestion: Suggestion) -> None:
        """Persist a new record; the suggestion already carries its id."""

    @abstractmethod
    def _find(self, change_request_id: int, repository_id: int) -> List[Suggestion]:
        """All records of a scope, in any order."""

    @abstractmethod
    def _get(self, suggestion_id: str) -> Optional[Suggestion]:
        """One record by id, or None."""

    @abstractmethod
    def _replace(self, suggestion: Suggestion) -> None:
        """Overwrite an existing record."""

    @abstractmethod
    def _delete_scope(self, change_request_id: int, repository_id: int) -> int:
        """Delete all records of a scope and return how many were removed."""

    # Operations

    def save(
        self,
        change_request_id: int,
        repository_id: int,
        suggestions: Iterable[Suggestion],
    ) -> List[Suggestion]:
        """
        Persist a batch of suggestions as new PENDING records.

        A failure on one item is logged and that item is left out of the
        result; the rest of the batch is still saved.

        Returns:
            The suggestions that were persisted, with id and created_at set.
        """
        now = utcnow()
        saved = []
        for suggestion in suggestions:
            record = suggestion.model_copy(update={
                "id": str(uuid.uuid4()),
                "change_request_id": change_request_id,
                "repository_id": repository_id,
                "status": SuggestionStatus.PENDING,
                "created_at": now,
                "resolved_by": None,
                "resolved_at": None,
            })
            try:
                self._insert(record)
            except Exception as e:
                logger.error(
                    "Failed to save suggestion",
                    change_request_id=change_request_id,
                    repository_id=repository_id,
                    file_path=suggestion.file_path,
                    error=str(e),
                )
                continue
            saved.append(record)

        logger.info(
            "Saved suggestions",
            change_request_id=change_request_id,
            repository_id=repository_id,
            saved=len(saved),
        )
        return saved

    def list_suggestions(self, change_request_id: int, repository_id: int) -> List[Suggestion]:
        """Suggestions of a scope, most severe first, then by confidence."""
        return rank(self._find(change_request_id, repository_id))

    def list_for_file(self, change_request_id: int, repository_id: int, file_path: str) -> List[Suggestion]:
        """Suggestions for one file, ordered by start line."""
        records = [
            s for s in self._find(change_request_id, repository_id)
            if s.file_path == file_path
        ]
        return sorted(records, key=lambda s: s.start_line)

    def get(self, suggestion_id: str) -> Optional[Suggestion]:
        return self._get(suggestion_id)

    def update_status(
        self,
        suggestion_id: str,
        status: Union[SuggestionStatus, str],
        resolved_by: Optional[str] = None,
    ) -> Suggestion:
        """
        Resolve a suggestion.

        Args:
            suggestion_id: Suggestion identifier.
            status: ACCEPTED, REJECTED or DISMISSED.
            resolved_by: Who resolved it.

        Returns:
            The updated suggestion.

        Raises:
            SuggestionNotFoundError: If no suggestion has this id.
            InvalidStatusError: If status is not a resolution value.
        """
        status = SuggestionStatus.parse_resolution(
            status.value if isinstance(status, SuggestionStatus) else status
        )
        current = self._get(suggestion_id)
        if current is None:
            raise SuggestionNotFoundError(suggestion_id)

        updated = current.model_copy(update={
            "status": status,
            "resolved_by": resolved_by or "unknown",
            "resolved_at": utcnow(),
        })
        self._replace(updated)

        logger.info(
            "Suggestion status updated",
            suggestion_id=suggestion_id,
            status=status.value,
            resolved_by=updated.resolved_by,
        )
        return updated

    def delete_all(self, change_request_id: int, repository_id: int) -> int:
        """Remove every suggestion of a scope."""
        deleted = self._delete_scope(change_request_id, repository_id)
        logger.info(
            "Deleted suggestions",
            change_request_id=change_request_id,
            repository_id=repository_id,
            deleted=deleted,
        )
        return deleted

    def count_critical(self, change_request_id: int, repository_id: int) -> int:
        """Number of CRITICAL suggestions still PENDING."""
        return sum(
            1 for s in self._find(change_request_id, repository_id)
            if s.severity == Severity.CRITICAL and s.status == SuggestionStatus.PENDING
        )

    def stats(self, change_request_id: int, repository_id: int) -> SuggestionStats:
        """Tally the stored suggestions of a scope by status and top severities."""
        stats = SuggestionStats()
        for s in self.list_suggestions(change_request_id, repository_id):
            stats.total += 1
            if s.status == SuggestionStatus.PENDING:
                stats.pending += 1
            elif s.status == SuggestionStatus.ACCEPTED:
                stats.accepted += 1
            elif s.status == SuggestionStatus.REJECTED:
                stats.rejected += 1
            elif s.status == SuggestionStatus.DISMISSED:
                stats.dismissed += 1

            if s.severity == Severity.CRITICAL:
                stats.critical += 1
            elif s.severity == Severity.WARNING:
                stats.warning += 1
        return stats


class InMemorySuggestionStore(SuggestionStore):
    """Process-local store, guarded by a lock so each call is atomic."""

    def __init__(self):
        self._records: Dict[str, Suggestion] = {}
        self._lock = threading.Lock()

    def _insert(self, suggestion: Suggestion) -> None:
        with self._lock:
            self._records[suggestion.id] = suggestion

    def _find(self, change_request_id: int, repository_id: int) -> List[Suggestion]:
        with self._lock:
            return [
                s for s in self._records.values()
                if s.change_request_id == change_request_id and s.repository_id == repository_id
            ]

    def _get(self, suggestion_id: str) -> Optional[Suggestion]:
        with self._lock:
            return self._records.get(suggestion_id)

    def _replace(self, suggestion: Suggestion) -> None:
        with self._lock:
            if suggestion.id not in self._records:
                raise SuggestionNotFoundError(suggestion.id)
            self._records[suggestion.id] = suggestion

    def _delete_scope(self, change_request_id: int, repository_id: int) -> int:
        with self._lock:
            doomed = [
                key for key, s in self._records.items()
                if s.change_request_id == change_request_id and s.repository_id == repository_id
            ]
            for key in doomed:
                del self._records[key]
            return len(doomed)
