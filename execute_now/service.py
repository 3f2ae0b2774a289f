"""
Execute Now - Request Service.

============================================================
RESPONSIBILITY
============================================================
Runs one "Execute now" click end to end:

Selection → Evaluator → Repository → Dispatcher → Sink
                                                 ↓
                                     selection cleared on success

- Rejected requests are never dispatched
- Selection is kept after a rejection
- Persistence is optional

============================================================
"""

import logging
from abc import ABC, abstractmethod
from typing import List, Optional

from .evaluator import EligibilityEvaluator
from .notifications import (
    LoggingNotificationSink,
    NotificationFormatter,
    NotificationSink,
)
from .repository import ExecuteNowRepository
from .selection import SelectionState
from .types import ExecuteNowOutcome


logger = logging.getLogger(__name__)


# ============================================================
# EXECUTION TRANSPORT
# ============================================================

class RequestDispatcher(ABC):
    """
    Sends the execute now request to the pollers.

    Receives the de-duplicated poll target ids of an accepted
    or partially accepted outcome.
    """

    @abstractmethod
    def dispatch(self, poll_target_ids: List[str], outcome: ExecuteNowOutcome) -> None:
        pass


class LoggingDispatcher(RequestDispatcher):
    """Dispatcher that only logs the request."""

    def dispatch(self, poll_target_ids: List[str], outcome: ExecuteNowOutcome) -> None:
        logger.info(
            f"Execute now request {outcome.evaluation_id} for "
            f"{len(poll_target_ids)} objects: {', '.join(poll_target_ids)}"
        )


# ============================================================
# SERVICE
# ============================================================

class ExecuteNowService:
    """
    Handles execute now requests for a selection.

    Usage:
        service = ExecuteNowService(evaluator)
        outcome = service.execute(selection)
    """

    def __init__(
        self,
        evaluator: EligibilityEvaluator,
        dispatcher: Optional[RequestDispatcher] = None,
        sink: Optional[NotificationSink] = None,
        repository: Optional[ExecuteNowRepository] = None,
    ):
        self._evaluator = evaluator
        self._dispatcher = dispatcher or LoggingDispatcher()
        self._sink = sink or LoggingNotificationSink()
        self._repository = repository
        self._formatter = NotificationFormatter()

    def is_enabled(self, selection: SelectionState) -> bool:
        """Whether the "Execute now" control is enabled."""
        return self._evaluator.is_request_enabled(selection.objects)

    def execute(self, selection: SelectionState) -> ExecuteNowOutcome:
        """
        Execute now for the current selection.

        Args:
            selection: Caller's selection state, cleared on success

        Returns:
            ExecuteNowOutcome

        Raises:
            InputError: If nothing is selected
            CatalogError: If a master item cannot be resolved
            SQLAlchemyError: If the outcome cannot be logged. Nothing
                is dispatched and the selection is kept.
        """
        outcome = self._evaluator.evaluate(selection.objects)

        # Logged before dispatch so a sent request is always recorded
        if self._repository is not None:
            self._repository.log_outcome(outcome)
            self._repository.update_stats_for_outcome(outcome)

        if outcome.is_success:
            self._dispatcher.dispatch(outcome.poll_target_ids, outcome)

        self._sink.notify(self._formatter.format(outcome))

        if outcome.is_success:
            selection.clear()
        else:
            logger.info(f"Execute now rejected: {outcome.format_summary()}")

        return outcome
