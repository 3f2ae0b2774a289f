"""
Execute Now - Repository.

============================================================
PURPOSE
============================================================
Database operations for the execute now request log.

Provides:
- Outcome logging
- Rejection queries
- Daily statistics

============================================================
"""

from datetime import datetime, timedelta
from typing import Dict, List, Optional
import logging

from sqlalchemy import select, func, and_, desc
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError

from .types import (
    ExecuteNowOutcome,
    OutcomeKind,
    RejectReason,
)
from .models import (
    ExecuteNowRequestLog,
    ExecuteNowDailyStats,
)


logger = logging.getLogger(__name__)


class ExecuteNowRepository:
    """
    Repository for execute now request persistence.
    """

    def __init__(self, session: Session):
        """
        Initialize repository.

        Args:
            session: SQLAlchemy database session
        """
        self._session = session

    # ============================================================
    # REQUEST LOGGING
    # ============================================================

    def log_outcome(self, outcome: ExecuteNowOutcome) -> ExecuteNowRequestLog:
        """
        Log an evaluated request.

        Args:
            outcome: The outcome to log

        Returns:
            Created ExecuteNowRequestLog record
        """
        try:
            record = ExecuteNowRequestLog(
                evaluation_id=outcome.evaluation_id,
                outcome=outcome.kind.value,
                reject_reason=outcome.reason.value if outcome.reason else None,
                message=outcome.message,
                selected_count=outcome.selected_count,
                accepted_count=outcome.accepted_count,
                filtered_count=outcome.selected_count - outcome.accepted_count,
                selected_ids=[d.obj.object_id for d in outcome.decisions],
                poll_target_ids=outcome.poll_target_ids,
                decisions=[d.to_dict() for d in outcome.decisions],
                evaluation_time_ms=outcome.evaluation_time_ms,
                timestamp=outcome.evaluated_at,
            )

            self._session.add(record)
            self._session.commit()

            logger.debug(f"Logged execute now request: {outcome.evaluation_id}")

            return record

        except SQLAlchemyError as e:
            self._session.rollback()
            logger.error(f"Failed to log execute now request: {e}")
            raise

    def get_by_evaluation_id(self, evaluation_id: str) -> Optional[ExecuteNowRequestLog]:
        stmt = select(ExecuteNowRequestLog).where(
            ExecuteNowRequestLog.evaluation_id == evaluation_id
        )
        return self._session.execute(stmt).scalar_one_or_none()

    def get_recent_rejections(
        self,
        hours: int = 24,
        limit: int = 100,
        reason: Optional[RejectReason] = None,
    ) -> List[ExecuteNowRequestLog]:
        """
        Get recent REJECTED requests.

        Args:
            hours: Look back period
            limit: Maximum records to return
            reason: Optional filter by reject reason

        Returns:
            List of rejected requests, newest first
        """
        since = datetime.utcnow() - timedelta(hours=hours)

        conditions = [
            ExecuteNowRequestLog.outcome == OutcomeKind.REJECTED.value,
            ExecuteNowRequestLog.timestamp >= since,
        ]

        if reason:
            conditions.append(ExecuteNowRequestLog.reject_reason == reason.value)

        stmt = (
            select(ExecuteNowRequestLog)
            .where(and_(*conditions))
            .order_by(desc(ExecuteNowRequestLog.timestamp))
            .limit(limit)
        )

        return list(self._session.execute(stmt).scalars().all())

    def get_rejection_count_by_reason(self, hours: int = 24) -> Dict[str, int]:
        """
        Get rejection counts grouped by reason.

        Returns:
            Dict of reason -> count
        """
        since = datetime.utcnow() - timedelta(hours=hours)

        stmt = (
            select(
                ExecuteNowRequestLog.reject_reason,
                func.count(ExecuteNowRequestLog.id),
            )
            .where(
                and_(
                    ExecuteNowRequestLog.outcome == OutcomeKind.REJECTED.value,
                    ExecuteNowRequestLog.timestamp >= since,
                    ExecuteNowRequestLog.reject_reason.isnot(None),
                )
            )
            .group_by(ExecuteNowRequestLog.reject_reason)
        )

        results = self._session.execute(stmt).all()
        return {reason: count for reason, count in results}

    # ============================================================
    # STATISTICS
    # ============================================================

    def get_or_create_daily_stats(
        self,
        date: Optional[datetime] = None,
    ) -> ExecuteNowDailyStats:
        """
        Get or create daily stats record.

        Args:
            date: Date for stats (defaults to today)
        """
        if date is None:
            date = datetime.utcnow()
        date = date.replace(hour=0, minute=0, second=0, microsecond=0)

        stmt = select(ExecuteNowDailyStats).where(
            ExecuteNowDailyStats.stat_date == date
        )
        stats = self._session.execute(stmt).scalar_one_or_none()

        if stats is None:
            stats = ExecuteNowDailyStats(stat_date=date)
            self._session.add(stats)
            self._session.commit()

        return stats

    def update_stats_for_outcome(self, outcome: ExecuteNowOutcome) -> None:
        """
        Update daily stats for an outcome.
        """
        try:
            stats = self.get_or_create_daily_stats(outcome.evaluated_at)

            stats.total_requests += 1
            stats.objects_selected += outcome.selected_count
            stats.objects_filtered += outcome.selected_count - outcome.accepted_count

            if outcome.kind == OutcomeKind.ACCEPTED:
                stats.accepted_count += 1
            elif outcome.kind == OutcomeKind.PARTIALLY_ACCEPTED:
                stats.partially_accepted_count += 1
            else:
                stats.rejected_count += 1

                if outcome.reason == RejectReason.WRONG_MASTER_TYPE:
                    stats.rejected_wrong_master_type += 1
                elif outcome.reason == RejectReason.WRONG_ITEM_TYPE:
                    stats.rejected_wrong_item_type += 1
                elif outcome.reason == RejectReason.WRONG_DISCOVERY_RULE_TYPE:
                    stats.rejected_wrong_discovery_rule_type += 1

            self._session.commit()

        except SQLAlchemyError as e:
            self._session.rollback()
            logger.error(f"Failed to update execute now stats: {e}")
            raise
