"""
Execute Now - ORM Models.

============================================================
PURPOSE
============================================================
SQLAlchemy models for persisting execute now requests.

Every evaluated request is logged, sent or not, for:
- Audit trail
- Rejection analysis
- Daily statistics

============================================================
"""

from datetime import datetime
from typing import Optional
from sqlalchemy import (
    Integer,
    Float,
    String,
    DateTime,
    Text,
    JSON,
    Index,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


# ============================================================
# BASE CLASS
# ============================================================

class Base(DeclarativeBase):
    """Base class for all models."""
    pass


# ============================================================
# REQUEST LOG
# ============================================================

class ExecuteNowRequestLog(Base):
    """
    Record of every execute now evaluation.
    """

    __tablename__ = "execute_now_request_log"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    evaluation_id: Mapped[str] = mapped_column(
        String(64),
        unique=True,
        nullable=False,
        index=True,
    )
    """Unique evaluation ID (e.g., EXEC-20240115120000123456-1a2b3c4d)"""

    # Outcome
    outcome: Mapped[str] = mapped_column(
        String(32),
        nullable=False,
        index=True,
    )
    """ACCEPTED, PARTIALLY_ACCEPTED or REJECTED"""

    reject_reason: Mapped[Optional[str]] = mapped_column(
        String(64),
        nullable=True,
        index=True,
    )
    """Reject reason code for REJECTED outcomes"""

    message: Mapped[str] = mapped_column(Text, nullable=False)
    """User-facing message"""

    # Counts
    selected_count: Mapped[int] = mapped_column(Integer, nullable=False)
    accepted_count: Mapped[int] = mapped_column(Integer, nullable=False)
    filtered_count: Mapped[int] = mapped_column(Integer, nullable=False)

    # Objects
    selected_ids: Mapped[Optional[list]] = mapped_column(JSON, nullable=True)
    """Selected object ids in selection order"""

    poll_target_ids: Mapped[Optional[list]] = mapped_column(JSON, nullable=True)
    """Ids the request was dispatched for"""

    decisions: Mapped[Optional[list]] = mapped_column(JSON, nullable=True)
    """Per-object decisions"""

    # Timing
    evaluation_time_ms: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)

    timestamp: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        index=True,
    )
    """When the evaluation occurred"""

    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=datetime.utcnow,
        nullable=False,
    )

    __table_args__ = (
        Index("ix_execute_now_outcome_timestamp", "outcome", "timestamp"),
        Index("ix_execute_now_reject_reason_timestamp", "reject_reason", "timestamp"),
    )

    def __repr__(self) -> str:
        return (
            f"<ExecuteNowRequestLog("
            f"id={self.id}, "
            f"evaluation_id={self.evaluation_id!r}, "
            f"outcome={self.outcome!r}"
            f")>"
        )


# ============================================================
# DAILY STATISTICS
# ============================================================

class ExecuteNowDailyStats(Base):
    """
    Daily aggregate of execute now requests.
    """

    __tablename__ = "execute_now_daily_stats"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    stat_date: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        unique=True,
        index=True,
    )

    total_requests: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    accepted_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    partially_accepted_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    rejected_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    # Rejections by reason
    rejected_wrong_master_type: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    rejected_wrong_item_type: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    rejected_wrong_discovery_rule_type: Mapped[int] = mapped_column(
        Integer, default=0, nullable=False
    )

    # Objects
    objects_selected: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    objects_filtered: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=datetime.utcnow,
        nullable=False,
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
        nullable=False,
    )

    def __repr__(self) -> str:
        return (
            f"<ExecuteNowDailyStats("
            f"date={self.stat_date}, "
            f"total={self.total_requests}, "
            f"rejected={self.rejected_count}"
            f")>"
        )

    @property
    def rejection_rate(self) -> float:
        """Rejection rate as percentage."""
        if self.total_requests == 0:
            return 0.0
        return (self.rejected_count / self.total_requests) * 100
