"""
Merge check over unresolved critical suggestions.
"""
import structlog

from codesuggest.config import Settings
from codesuggest.models import MergeDecision
from codesuggest.services.suggestion_store import SuggestionStore

logger = structlog.get_logger(__name__)

DENY_MESSAGE = (
    "Merge blocked: {count} unresolved CRITICAL suggestion(s) "
    "(allowed: {max_allowed}). Review them in the code suggestions tab."
)


class MergeGate:
    """Decides whether a change request may merge, from current stored state."""

    def __init__(self, store: SuggestionStore, settings: Settings):
        self.store = store
        self.settings = settings

    def check(self, change_request_id: int, repository_id: int) -> MergeDecision:
        """
        Evaluate the merge check for one merge attempt.

        Returns:
            MergeDecision; denied when the unresolved CRITICAL count exceeds
            the configured maximum.
        """
        max_allowed = self.settings.merge_check_max_critical
        if not self.settings.merge_check_enabled:
            return MergeDecision(allowed=True, max_allowed=max_allowed)

        critical_count = self.store.count_critical(change_request_id, repository_id)
        if critical_count > max_allowed:
            logger.info(
                "Merge blocked",
                change_request_id=change_request_id,
                repository_id=repository_id,
                critical=critical_count,
                max_allowed=max_allowed,
            )
            return MergeDecision(
                allowed=False,
                reason=DENY_MESSAGE.format(count=critical_count, max_allowed=max_allowed),
                critical_count=critical_count,
                max_allowed=max_allowed,
            )

        stats = self.store.stats(change_request_id, repository_id)
        logger.info(
            "Merge check passed",
            change_request_id=change_request_id,
            repository_id=repository_id,
            critical=stats.critical,
            warning=stats.warning,
            total=stats.total,
        )
        return MergeDecision(
            allowed=True,
            critical_count=critical_count,
            max_allowed=max_allowed,
            stats=stats,
        )
