"""
Execute Now - Type Definitions.

============================================================
PURPOSE
============================================================
Type definitions for the "Execute now" eligibility model.

An operator selects items or discovery rules and asks the
server to poll them immediately. Only server-polled objects
can be executed; push-only and synthetic objects are
filtered out, and dependent objects are executed through
their master item.

============================================================
OUTCOMES
============================================================
1. ACCEPTED: every selected object is eligible
2. PARTIALLY_ACCEPTED: some objects were filtered out
3. REJECTED: nothing eligible, nothing dispatched

============================================================
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional, Dict, List, Any, Tuple


# ============================================================
# OBJECT CLASSIFICATION
# ============================================================

class ObjectKind(str, Enum):
    """Kind of monitored object."""

    ITEM = "ITEM"
    """A monitored metric definition on a host."""

    DISCOVERY_RULE = "DISCOVERY_RULE"
    """A low-level discovery rule."""


class ObjectType(str, Enum):
    """
    Collection type of a monitored object.

    Pollability is a fixed capability of the type. Web scenario
    items are generated by the web monitoring prober and can never
    be polled on demand, not even as a master item.
    """

    ZABBIX_AGENT = "ZABBIX_AGENT"
    TRAPPER = "TRAPPER"
    SIMPLE = "SIMPLE"
    INTERNAL = "INTERNAL"
    ZABBIX_AGENT_ACTIVE = "ZABBIX_AGENT_ACTIVE"
    WEB_ITEM = "WEB_ITEM"
    EXTERNAL = "EXTERNAL"
    DATABASE_MONITOR = "DATABASE_MONITOR"
    IPMI = "IPMI"
    SSH = "SSH"
    TELNET = "TELNET"
    CALCULATED = "CALCULATED"
    JMX = "JMX"
    SNMP_TRAP = "SNMP_TRAP"
    DEPENDENT = "DEPENDENT"
    HTTP_AGENT = "HTTP_AGENT"
    SNMP_AGENT = "SNMP_AGENT"
    SCRIPT = "SCRIPT"

    @property
    def code(self) -> int:
        """Numeric type code used by the monitoring server."""
        return _TYPE_CODES[self]

    @classmethod
    def from_code(cls, code: int) -> "ObjectType":
        """Get type by numeric code."""
        for object_type, type_code in _TYPE_CODES.items():
            if type_code == code:
                return object_type
        raise ValueError(f"Unknown object type code: {code}")

    def is_pollable(self) -> bool:
        """Whether the server can poll this type on demand."""
        return self in _POLLABLE_TYPES

    def is_synthetic(self) -> bool:
        """Whether values are produced by the server itself (web scenarios)."""
        return self == ObjectType.WEB_ITEM


_TYPE_CODES: Dict[ObjectType, int] = {
    ObjectType.ZABBIX_AGENT: 0,
    ObjectType.TRAPPER: 2,
    ObjectType.SIMPLE: 3,
    ObjectType.INTERNAL: 5,
    ObjectType.ZABBIX_AGENT_ACTIVE: 7,
    ObjectType.WEB_ITEM: 9,
    ObjectType.EXTERNAL: 10,
    ObjectType.DATABASE_MONITOR: 11,
    ObjectType.IPMI: 12,
    ObjectType.SSH: 13,
    ObjectType.TELNET: 14,
    ObjectType.CALCULATED: 15,
    ObjectType.JMX: 16,
    ObjectType.SNMP_TRAP: 17,
    ObjectType.DEPENDENT: 18,
    ObjectType.HTTP_AGENT: 19,
    ObjectType.SNMP_AGENT: 20,
    ObjectType.SCRIPT: 21,
}

_POLLABLE_TYPES = frozenset({
    ObjectType.ZABBIX_AGENT,
    ObjectType.SIMPLE,
    ObjectType.INTERNAL,
    ObjectType.EXTERNAL,
    ObjectType.DATABASE_MONITOR,
    ObjectType.IPMI,
    ObjectType.SSH,
    ObjectType.TELNET,
    ObjectType.CALCULATED,
    ObjectType.JMX,
    ObjectType.HTTP_AGENT,
    ObjectType.SNMP_AGENT,
    ObjectType.SCRIPT,
})


# ============================================================
# OUTCOME CODES
# ============================================================

class OutcomeKind(str, Enum):
    """Aggregate outcome of an execute now request."""

    ACCEPTED = "ACCEPTED"
    """Request sent for every selected object."""

    PARTIALLY_ACCEPTED = "PARTIALLY_ACCEPTED"
    """Request sent for the eligible subset only."""

    REJECTED = "REJECTED"
    """No eligible object. Nothing sent."""

    def is_success(self) -> bool:
        """Whether a request was sent."""
        return self != OutcomeKind.REJECTED


class RejectReason(str, Enum):
    """Why an object (or a whole request) was rejected."""

    WRONG_MASTER_TYPE = "WRONG_MASTER_TYPE"
    """Dependent object whose master cannot be polled."""

    WRONG_ITEM_TYPE = "WRONG_ITEM_TYPE"
    """Item type cannot be polled."""

    WRONG_DISCOVERY_RULE_TYPE = "WRONG_DISCOVERY_RULE_TYPE"
    """Discovery rule type cannot be polled."""

    @property
    def message(self) -> str:
        """User-facing message for this reason."""
        return _REJECT_MESSAGES[self]


_REJECT_MESSAGES: Dict[RejectReason, str] = {
    RejectReason.WRONG_MASTER_TYPE: "Cannot send request: wrong master item type.",
    RejectReason.WRONG_ITEM_TYPE: "Cannot send request: wrong item type.",
    RejectReason.WRONG_DISCOVERY_RULE_TYPE: "Cannot send request: wrong discovery rule type.",
}

MESSAGE_REQUEST_SENT = "Request sent successfully"
MESSAGE_REQUEST_SENT_FILTERED = (
    "Request sent successfully. "
    "Some items are filtered due to access permissions or type."
)
MESSAGE_CANNOT_EXECUTE = "Cannot execute operation"


# ============================================================
# INPUT TYPES
# ============================================================

@dataclass(frozen=True)
class MonitoredObject:
    """
    An item or discovery rule as supplied by the object catalog.

    A dependent object references exactly one master item.
    """

    object_id: str
    """Unique identifier."""

    name: str
    """Display name."""

    object_type: ObjectType
    """Collection type."""

    kind: ObjectKind = ObjectKind.ITEM
    """Item or discovery rule."""

    master_id: Optional[str] = None
    """Master item id for dependent objects."""

    host: Optional[str] = None
    """Host the object belongs to."""

    @property
    def is_dependent(self) -> bool:
        """Check if object depends on a master item."""
        return self.master_id is not None

    @property
    def is_discovery_rule(self) -> bool:
        return self.kind == ObjectKind.DISCOVERY_RULE

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "object_id": self.object_id,
            "name": self.name,
            "object_type": self.object_type.value,
            "kind": self.kind.value,
            "master_id": self.master_id,
            "host": self.host,
        }


# ============================================================
# OUTPUT TYPES
# ============================================================

@dataclass(frozen=True)
class ObjectDecision:
    """Eligibility decision for a single selected object."""

    obj: MonitoredObject
    """The selected object."""

    eligible: bool
    """Whether the object can be executed now."""

    reason: Optional[RejectReason] = None
    """Reason if not eligible."""

    poll_target: Optional[MonitoredObject] = None
    """
    Object actually re-polled: the object itself, or the master
    of a dependent object. None if not eligible.
    """

    rule_name: str = ""
    """Rule that produced the decision."""

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "object_id": self.obj.object_id,
            "name": self.obj.name,
            "eligible": self.eligible,
            "reason": self.reason.value if self.reason else None,
            "poll_target_id": self.poll_target.object_id if self.poll_target else None,
            "rule_name": self.rule_name,
        }


@dataclass
class ExecuteNowOutcome:
    """
    Outcome of one execute now request.

    Evaluation metadata does not take part in equality, so the
    same selection always compares equal to its previous outcome.
    """

    kind: OutcomeKind
    """ACCEPTED, PARTIALLY_ACCEPTED or REJECTED."""

    decisions: Tuple[ObjectDecision, ...]
    """Per-object decisions in selection order."""

    reason: Optional[RejectReason] = None
    """Aggregate reason, only for REJECTED."""

    # Metadata
    evaluation_id: str = field(default="", compare=False)
    """Unique evaluation identifier."""

    evaluated_at: datetime = field(default_factory=datetime.utcnow, compare=False)
    """When the evaluation happened."""

    evaluation_time_ms: float = field(default=0.0, compare=False)
    """Evaluation duration."""

    @property
    def is_success(self) -> bool:
        return self.kind.is_success()

    @property
    def is_rejected(self) -> bool:
        return self.kind == OutcomeKind.REJECTED

    @property
    def accepted(self) -> List[MonitoredObject]:
        """Objects the request is sent for."""
        return [d.obj for d in self.decisions if d.eligible]

    @property
    def filtered(self) -> List[MonitoredObject]:
        """Objects dropped from the request."""
        return [d.obj for d in self.decisions if not d.eligible]

    @property
    def accepted_count(self) -> int:
        return sum(1 for d in self.decisions if d.eligible)

    @property
    def selected_count(self) -> int:
        return len(self.decisions)

    @property
    def poll_target_ids(self) -> List[str]:
        """Ids to dispatch, de-duplicated, in selection order."""
        seen: List[str] = []
        for decision in self.decisions:
            if decision.poll_target is None:
                continue
            target_id = decision.poll_target.object_id
            if target_id not in seen:
                seen.append(target_id)
        return seen

    @property
    def message(self) -> str:
        """User-facing message."""
        if self.kind == OutcomeKind.ACCEPTED:
            return MESSAGE_REQUEST_SENT
        if self.kind == OutcomeKind.PARTIALLY_ACCEPTED:
            return MESSAGE_REQUEST_SENT_FILTERED
        return self.reason.message if self.reason else MESSAGE_CANNOT_EXECUTE

    def format_summary(self) -> str:
        """Format a one-line summary."""
        if self.is_success:
            return (
                f"{self.kind.value} | {self.accepted_count}/{self.selected_count} accepted | "
                f"targets: {', '.join(self.poll_target_ids)}"
            )
        return (
            f"{self.kind.value} | Reason: {self.reason.value if self.reason else 'UNKNOWN'} | "
            f"{self.selected_count} selected"
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "kind": self.kind.value,
            "reason": self.reason.value if self.reason else None,
            "message": self.message,
            "selected_count": self.selected_count,
            "accepted_count": self.accepted_count,
            "poll_target_ids": self.poll_target_ids,
            "decisions": [d.to_dict() for d in self.decisions],
            "evaluation_id": self.evaluation_id,
            "evaluated_at": self.evaluated_at.isoformat(),
            "evaluation_time_ms": self.evaluation_time_ms,
        }


# ============================================================
# ERROR TYPES
# ============================================================

class ExecuteNowError(Exception):
    """Base exception for execute now errors."""
    pass


class CatalogError(ExecuteNowError):
    """Raised when catalog records are malformed or cannot be resolved."""
    pass


class InputError(ExecuteNowError):
    """Raised when request input is invalid or missing."""
    pass


class ConfigError(ExecuteNowError):
    """Raised when configuration values are invalid."""
    pass
