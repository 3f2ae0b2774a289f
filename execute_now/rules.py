"""
Execute Now - Eligibility Rules.

============================================================
PURPOSE
============================================================
Per-object eligibility rules.

Each rule decides one class of objects:
- DirectTypeRule: top-level items and discovery rules
- MasterTypeRule: dependent items and discovery rules

Rules are:
- Stateless (no side effects)
- Deterministic (same object = same decision)
- Independent of the rest of the selection

============================================================
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List

from .catalog import ObjectCatalog
from .config import EligibilityConfig
from .types import (
    MonitoredObject,
    ObjectDecision,
    ObjectKind,
    RejectReason,
)


# ============================================================
# RULE INTERFACE
# ============================================================

@dataclass
class RuleMeta:
    """
    Metadata about a rule.
    """
    name: str
    """Rule name."""

    description: str
    """What this rule checks."""


class EligibilityRule(ABC):
    """
    Abstract base class for eligibility rules.

    Each rule:
    1. Declares which objects it applies to
    2. Returns an ObjectDecision for those objects
    """

    def __init__(self, config: EligibilityConfig, catalog: ObjectCatalog):
        self._config = config
        self._catalog = catalog

    @property
    @abstractmethod
    def meta(self) -> RuleMeta:
        """Get rule metadata."""
        pass

    @abstractmethod
    def applies_to(self, obj: MonitoredObject) -> bool:
        """Whether this rule decides obj."""
        pass

    @abstractmethod
    def decide(self, obj: MonitoredObject) -> ObjectDecision:
        """
        Decide eligibility of obj.

        Args:
            obj: Object the rule applies to

        Returns:
            ObjectDecision
        """
        pass

    def _accept(self, obj: MonitoredObject, poll_target: MonitoredObject) -> ObjectDecision:
        return ObjectDecision(
            obj=obj,
            eligible=True,
            reason=None,
            poll_target=poll_target,
            rule_name=self.meta.name,
        )

    def _reject(self, obj: MonitoredObject, reason: RejectReason) -> ObjectDecision:
        return ObjectDecision(
            obj=obj,
            eligible=False,
            reason=reason,
            poll_target=None,
            rule_name=self.meta.name,
        )


# ============================================================
# RULES
# ============================================================

class DirectTypeRule(EligibilityRule):
    """
    Top-level objects are eligible iff their own type is pollable.
    """

    @property
    def meta(self) -> RuleMeta:
        return RuleMeta(
            name="DirectTypeRule",
            description="Top-level object type must be pollable",
        )

    def applies_to(self, obj: MonitoredObject) -> bool:
        return not obj.is_dependent

    def decide(self, obj: MonitoredObject) -> ObjectDecision:
        if self._config.is_type_allowed(obj.object_type):
            return self._accept(obj, poll_target=obj)

        if obj.kind == ObjectKind.DISCOVERY_RULE:
            return self._reject(obj, RejectReason.WRONG_DISCOVERY_RULE_TYPE)
        return self._reject(obj, RejectReason.WRONG_ITEM_TYPE)


class MasterTypeRule(EligibilityRule):
    """
    Dependent objects are eligible iff their master is pollable.

    The dependent object's own type is ignored: it is never polled
    itself, the request re-polls the master. Only the immediate
    master's type counts, so a DEPENDENT master is rejected unless
    follow_master_chain resolves it to its root master.
    """

    @property
    def meta(self) -> RuleMeta:
        return RuleMeta(
            name="MasterTypeRule",
            description="Master item type of a dependent object must be pollable",
        )

    def applies_to(self, obj: MonitoredObject) -> bool:
        return obj.is_dependent

    def decide(self, obj: MonitoredObject) -> ObjectDecision:
        target = self._poll_target(obj)

        if not self._config.is_type_allowed(target.object_type):
            return self._reject(obj, RejectReason.WRONG_MASTER_TYPE)
        return self._accept(obj, poll_target=target)

    def _poll_target(self, obj: MonitoredObject) -> MonitoredObject:
        master = self._catalog.master_of(obj)
        if master.is_dependent and self._config.follow_master_chain:
            return self._catalog.root_master_of(obj)
        return master


def create_rules(config: EligibilityConfig, catalog: ObjectCatalog) -> List[EligibilityRule]:
    """Rules in the order they are consulted."""
    return [
        MasterTypeRule(config, catalog),
        DirectTypeRule(config, catalog),
    ]
