"""
Execute Now - Notifications.

============================================================
PURPOSE
============================================================
Turns outcomes into the user-facing messages of the console.

- Success: "Request sent successfully" (plus a filtering note
  when some objects were dropped)
- Failure: "Cannot execute operation" with the reason as detail

============================================================
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import List

from .types import (
    ExecuteNowOutcome,
    MESSAGE_CANNOT_EXECUTE,
)


logger = logging.getLogger(__name__)


# ============================================================
# MESSAGE TYPES
# ============================================================

@dataclass
class Notification:
    """
    Message shown to the operator.
    """
    is_success: bool
    """Success or error message box."""

    title: str
    """Message title."""

    details: List[str] = field(default_factory=list)
    """Detail lines (error messages only)."""

    evaluation_id: str = ""
    """Reference to the outcome."""

    def format_text(self) -> str:
        """Plain text rendering."""
        lines = [self.title]
        lines.extend(f"  - {detail}" for detail in self.details)
        return "\n".join(lines)


# ============================================================
# FORMATTER
# ============================================================

class NotificationFormatter:
    """
    Formats outcomes into notifications.
    """

    def format(self, outcome: ExecuteNowOutcome) -> Notification:
        """
        Format an outcome.

        Args:
            outcome: Evaluated outcome

        Returns:
            Notification
        """
        if outcome.is_success:
            return Notification(
                is_success=True,
                title=outcome.message,
                evaluation_id=outcome.evaluation_id,
            )

        return Notification(
            is_success=False,
            title=MESSAGE_CANNOT_EXECUTE,
            details=[outcome.message],
            evaluation_id=outcome.evaluation_id,
        )


# ============================================================
# SINKS
# ============================================================

class NotificationSink(ABC):
    """Receives notifications for display."""

    @abstractmethod
    def notify(self, notification: Notification) -> None:
        pass


class LoggingNotificationSink(NotificationSink):
    """Writes notifications to the log."""

    def notify(self, notification: Notification) -> None:
        if notification.is_success:
            logger.info(notification.format_text())
        else:
            logger.warning(notification.format_text())
