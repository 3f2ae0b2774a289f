"""
Execute Now - Eligibility Evaluator.

============================================================
PURPOSE
============================================================
Decides the outcome of an "Execute now" request for a
selection of items or discovery rules.

============================================================
CRITICAL BEHAVIOR
============================================================
1. PER-OBJECT DECISIONS
   - Top-level object: its own type must be pollable
   - Dependent object: its master must be pollable
   - Web scenario items are never pollable

2. AGGREGATE OUTCOME
   - All eligible: ACCEPTED
   - Some eligible: PARTIALLY_ACCEPTED (eligible subset sent)
   - None eligible: REJECTED with a single reason

3. PURE
   - No I/O, no shared mutable state
   - Same selection = same outcome
   - Selection order never changes the outcome

============================================================
"""

import time
from datetime import datetime
from typing import Iterable, List, Optional, Sequence
from uuid import uuid4
import logging

from .catalog import ObjectCatalog
from .config import EligibilityConfig
from .rules import EligibilityRule, create_rules
from .types import (
    ExecuteNowOutcome,
    InputError,
    MonitoredObject,
    ObjectDecision,
    ObjectKind,
    OutcomeKind,
    RejectReason,
)


logger = logging.getLogger(__name__)


class EligibilityEvaluator:
    """
    Computes the outcome of an execute now request.

    Usage:
        evaluator = EligibilityEvaluator(catalog)
        outcome = evaluator.evaluate(selection)

        if outcome.is_success:
            dispatcher.dispatch(outcome.poll_target_ids, outcome)
        else:
            print(outcome.message)
    """

    def __init__(
        self,
        catalog: ObjectCatalog,
        config: Optional[EligibilityConfig] = None,
    ):
        """
        Initialize evaluator.

        Args:
            catalog: Catalog used to resolve master items
            config: Eligibility configuration (uses defaults if None)
        """
        self._catalog = catalog
        self._config = config or EligibilityConfig()
        self._rules: List[EligibilityRule] = create_rules(self._config, self._catalog)

        logger.info("EligibilityEvaluator initialized")

    @property
    def config(self) -> EligibilityConfig:
        """Get current configuration."""
        return self._config

    @property
    def catalog(self) -> ObjectCatalog:
        return self._catalog

    def evaluate(self, selection: Sequence[MonitoredObject]) -> ExecuteNowOutcome:
        """
        Evaluate a selection.

        Args:
            selection: Selected objects, duplicates are ignored

        Returns:
            ExecuteNowOutcome

        Raises:
            InputError: If the selection is empty
            CatalogError: If a master item cannot be resolved
        """
        start_time = time.perf_counter()

        objects = _unique(selection)
        if not objects:
            raise InputError("Cannot evaluate an empty selection")

        decisions = tuple(self.decide(obj) for obj in objects)
        kind, reason = self._aggregate(decisions)

        outcome = ExecuteNowOutcome(
            kind=kind,
            decisions=decisions,
            reason=reason,
            evaluation_id=self._generate_evaluation_id(),
            evaluated_at=datetime.utcnow(),
            evaluation_time_ms=(time.perf_counter() - start_time) * 1000,
        )

        logger.debug(f"Evaluated execute now request: {outcome.format_summary()}")
        return outcome

    def decide(self, obj: MonitoredObject) -> ObjectDecision:
        """Eligibility decision for a single object."""
        for rule in self._rules:
            if rule.applies_to(obj):
                return rule.decide(obj)
        # Rules cover dependent and top-level objects
        raise AssertionError(f"No eligibility rule applies to {obj.object_id}")

    def is_request_enabled(self, selection: Iterable[MonitoredObject]) -> bool:
        """
        Whether the "Execute now" control is enabled for a selection.

        Enabled when at least one object is dependent (its master is
        checked on submit) or is a pollable top-level object.
        """
        for obj in selection:
            if obj.is_dependent:
                return True
            if self._config.is_type_allowed(obj.object_type):
                return True
        return False

    def _aggregate(self, decisions: Sequence[ObjectDecision]):
        rejected = [d for d in decisions if not d.eligible]

        if not rejected:
            return OutcomeKind.ACCEPTED, None
        if len(rejected) < len(decisions):
            return OutcomeKind.PARTIALLY_ACCEPTED, None
        return OutcomeKind.REJECTED, self._classify_rejection(rejected)

    def _classify_rejection(self, rejected: Sequence[ObjectDecision]) -> RejectReason:
        """
        Single reason for a fully rejected selection.

        Master type only when every object failed on its master.
        Otherwise any rejected top-level item makes it an item type
        rejection, leaving discovery rule type for rule-only selections.
        """
        direct = [d for d in rejected if d.reason != RejectReason.WRONG_MASTER_TYPE]
        if not direct:
            return RejectReason.WRONG_MASTER_TYPE
        if any(d.obj.kind == ObjectKind.ITEM for d in direct):
            return RejectReason.WRONG_ITEM_TYPE
        return RejectReason.WRONG_DISCOVERY_RULE_TYPE

    def _generate_evaluation_id(self) -> str:
        timestamp = datetime.utcnow().strftime("%Y%m%d%H%M%S%f")
        return f"EXEC-{timestamp}-{uuid4().hex[:8]}"

    def get_rule_info(self) -> List[dict]:
        """Registered rules, for diagnostics."""
        return [
            {"name": rule.meta.name, "description": rule.meta.description}
            for rule in self._rules
        ]


def _unique(selection: Iterable[MonitoredObject]) -> List[MonitoredObject]:
    seen = set()
    objects = []
    for obj in selection:
        if obj.object_id in seen:
            continue
        seen.add(obj.object_id)
        objects.append(obj)
    return objects


# ============================================================
# CONVENIENCE FUNCTIONS
# ============================================================

def create_evaluator(
    catalog: ObjectCatalog,
    config: Optional[EligibilityConfig] = None,
) -> EligibilityEvaluator:
    """Create a new evaluator."""
    return EligibilityEvaluator(catalog=catalog, config=config)


def evaluate_selection(
    evaluator: EligibilityEvaluator,
    selection: Sequence[MonitoredObject],
) -> ExecuteNowOutcome:
    """Evaluate a selection using the evaluator."""
    return evaluator.evaluate(selection)


def is_execution_allowed(
    evaluator: EligibilityEvaluator,
    selection: Sequence[MonitoredObject],
) -> bool:
    """
    Quick check if a request would be sent.

    Returns True for ACCEPTED and PARTIALLY_ACCEPTED.
    """
    return evaluator.evaluate(selection).is_success
