"""
Tests for the Execute Now Eligibility Evaluator.

============================================================
PURPOSE
============================================================
Covers the console surfaces that offer "Execute now":
1. Latest data table
2. Item context menu
3. Items list
4. Item page
5. Discovery rule list
6. Discovery rule page

Cases without an expected outcome are selections for which
the control is disabled.

============================================================
"""

import pytest

from execute_now import (
    CatalogError,
    EligibilityConfig,
    EligibilityEvaluator,
    InputError,
    MonitoredObject,
    ObjectCatalog,
    ObjectKind,
    ObjectType,
    OutcomeKind,
    RejectReason,
    create_evaluator,
    evaluate_selection,
    get_chain_following_config,
    is_execution_allowed,
)

from .catalog_data import WEB_DOWNLOAD_SPEED, WEB_LAST_ERROR


SENT = "Request sent successfully"
SENT_FILTERED = (
    "Request sent successfully. Some items are filtered due to access permissions or type."
)
WRONG_MASTER = "Cannot send request: wrong master item type."
WRONG_ITEM = "Cannot send request: wrong item type."
WRONG_RULE = "Cannot send request: wrong discovery rule type."


def assert_case(evaluator, selection, expected, message):
    """Check one data-driven case."""
    if expected is None:
        assert evaluator.is_request_enabled(selection) is False
        return

    assert evaluator.is_request_enabled(selection) is True

    outcome = evaluator.evaluate(selection)
    assert outcome.message == message

    if expected == "good":
        assert outcome.is_success
    else:
        assert outcome.kind == OutcomeKind.REJECTED


# ============================================================
# LATEST DATA TABLE
# ============================================================

LATEST_DATA_CASES = [
    # Simple items
    (["I4-trap-log"], None, None),
    (["I2-lvl1-trap-num", WEB_DOWNLOAD_SPEED], None, None),
    (["I5-agent-txt"], "good", SENT),
    (["I5-agent-txt", "I4-trap-log"], "good", SENT_FILTERED),
    # Dependent items
    (["I1-lvl2-dep-log"], "good", SENT),
    (["I2-lvl2-dep-log"], "bad", WRONG_MASTER),
    (["I3-web-dep"], "bad", WRONG_MASTER),
    # Non-allowed master item and its dependent item
    (["I2-lvl1-trap-num", "I2-lvl3-dep-txt"], "bad", WRONG_ITEM),
    # Non-allowed dependent item and non-allowed simple item
    (["I2-lvl2-dep-log", "I4-trap-log"], "bad", WRONG_ITEM),
    # Non-allowed and allowed dependent items
    (["I1-lvl3-dep-txt", "I2-lvl2-dep-log"], "good", SENT_FILTERED),
    # Allowed dependent items
    (["I1-lvl3-dep-txt", "I1-lvl2-dep-log"], "good", SENT),
    (["I1-lvl3-dep-txt", "I5-agent-txt"], "good", SENT),
    # Allowed dependent item and non-allowed simple item
    (["I1-lvl3-dep-txt", "I4-trap-log"], "good", SENT_FILTERED),
    # Web scenario item and non-allowed dependent item
    (["I2-lvl2-dep-log", WEB_DOWNLOAD_SPEED], "bad", WRONG_ITEM),
    # Web scenario item and allowed dependent item
    (["I1-lvl3-dep-txt", WEB_DOWNLOAD_SPEED], "good", SENT_FILTERED),
    # Web scenario item and allowed item
    (["I5-agent-txt", WEB_DOWNLOAD_SPEED], "good", SENT_FILTERED),
    # Web scenario item and item depending on a web scenario item
    (["I3-web-dep", WEB_DOWNLOAD_SPEED], "bad", WRONG_ITEM),
    # Item depending on a web scenario item and allowed item
    (["I3-web-dep", "I5-agent-txt"], "good", SENT_FILTERED),
]


class TestLatestData:
    """Selections from the latest data table."""

    @pytest.mark.parametrize("refs,expected,message", LATEST_DATA_CASES)
    def test_execute_now(self, evaluator, select, refs, expected, message):
        assert_case(evaluator, select(*refs), expected, message)


# ============================================================
# ITEM CONTEXT MENU
# ============================================================

CONTEXT_MENU_CASES = [
    ("I4-trap-log", None, None),
    ("I2-lvl1-trap-num", None, None),
    ("I5-agent-txt", "good", SENT),
    (WEB_DOWNLOAD_SPEED, None, None),
    ("I3-web-dep", "bad", WRONG_MASTER),
    ("I1-lvl2-dep-log", "good", SENT),
    ("I2-lvl2-dep-log", "bad", WRONG_MASTER),
]


class TestContextMenu:
    """Single item from the item context menu."""

    @pytest.mark.parametrize("ref,expected,message", CONTEXT_MENU_CASES)
    def test_execute_now(self, evaluator, select, ref, expected, message):
        assert_case(evaluator, select(ref), expected, message)


# ============================================================
# ITEMS LIST
# ============================================================

ITEMS_LIST_CASES = [
    # Simple items
    (["I4-trap-log"], None, None),
    (["I2-lvl1-trap-num"], None, None),
    (["I5-agent-txt"], "good", SENT),
    (["I5-agent-txt", "I4-trap-log"], "good", SENT_FILTERED),
    # Dependent items, labelled with their master
    (["I1-lvl1-agent-num: I1-lvl2-dep-log"], "good", SENT),
    (["I2-lvl1-trap-num: I2-lvl2-dep-log"], "bad", WRONG_MASTER),
    ([f"{WEB_LAST_ERROR}: I3-web-dep"], "bad", WRONG_MASTER),
    # Non-allowed master item and its dependent item
    (["I2-lvl1-trap-num", "I2-lvl1-trap-num: I2-lvl3-dep-txt"], "bad", WRONG_ITEM),
    # Non-allowed dependent item and non-allowed simple item
    (["I2-lvl1-trap-num: I2-lvl2-dep-log", "I4-trap-log"], "bad", WRONG_ITEM),
    # Non-allowed and allowed dependent items
    (
        ["I1-lvl1-agent-num: I1-lvl3-dep-txt", "I2-lvl1-trap-num: I2-lvl2-dep-log"],
        "good",
        SENT_FILTERED,
    ),
    # Allowed dependent items
    (["I1-lvl1-agent-num: I1-lvl3-dep-txt", "I1-lvl1-agent-num: I1-lvl2-dep-log"], "good", SENT),
    (["I1-lvl1-agent-num: I1-lvl3-dep-txt", "I5-agent-txt"], "good", SENT),
    # Allowed dependent item and non-allowed simple item
    (["I1-lvl1-agent-num: I1-lvl3-dep-txt", "I4-trap-log"], "good", SENT_FILTERED),
    # Item depending on a web scenario item and allowed item
    ([f"{WEB_LAST_ERROR}: I3-web-dep", "I5-agent-txt"], "good", SENT_FILTERED),
]


class TestItemsList:
    """Selections from the items list."""

    @pytest.mark.parametrize("refs,expected,message", ITEMS_LIST_CASES)
    def test_execute_now(self, evaluator, select, refs, expected, message):
        assert_case(evaluator, select(*refs), expected, message)


# ============================================================
# ITEM PAGE
# ============================================================

ITEM_PAGE_CASES = [
    ("I4-trap-log", None, None),
    ("I2-lvl1-trap-num", None, None),
    ("I1-lvl1-agent-num", "good", SENT),
    ("I1-lvl2-dep-log", "good", SENT),
    ("I2-lvl2-dep-log", "bad", WRONG_MASTER),
    ("I3-web-dep", "bad", WRONG_MASTER),
]


class TestItemPage:
    """Single item from its edit page."""

    @pytest.mark.parametrize("ref,expected,message", ITEM_PAGE_CASES)
    def test_execute_now(self, evaluator, select, ref, expected, message):
        assert_case(evaluator, select(ref), expected, message)


# ============================================================
# DISCOVERY RULE LIST
# ============================================================

DISCOVERY_LIST_CASES = [
    (["DR2-trap"], None, None),
    (["DR1-agent"], "good", SENT),
    (["DR1-agent", "DR2-trap"], "good", SENT_FILTERED),
    # Dependent discovery rules
    (["I1-lvl1-agent-num: DR3-I1-dep-agent"], "good", SENT),
    (["I2-lvl1-trap-num: DR4-I2-dep-trap"], "bad", WRONG_MASTER),
    ([f"{WEB_LAST_ERROR}: DR5-web-dep"], "bad", WRONG_MASTER),
    # Non-allowed rule and non-allowed dependent rule
    (["DR2-trap", "I2-lvl1-trap-num: DR4-I2-dep-trap"], "bad", WRONG_RULE),
    # Non-allowed and allowed dependent rules
    (
        ["I1-lvl1-agent-num: DR3-I1-dep-agent", "I2-lvl1-trap-num: DR4-I2-dep-trap"],
        "good",
        SENT_FILTERED,
    ),
    # Allowed dependent rule and non-allowed rule
    (["I1-lvl1-agent-num: DR3-I1-dep-agent", "DR2-trap"], "good", SENT_FILTERED),
    # Rule depending on a web scenario item and allowed rule
    ([f"{WEB_LAST_ERROR}: DR5-web-dep", "DR1-agent"], "good", SENT_FILTERED),
]


class TestDiscoveryRuleList:
    """Selections from the discovery rule list."""

    @pytest.mark.parametrize("refs,expected,message", DISCOVERY_LIST_CASES)
    def test_execute_now(self, evaluator, select, refs, expected, message):
        assert_case(evaluator, select(*refs), expected, message)


# ============================================================
# DISCOVERY RULE PAGE
# ============================================================

DISCOVERY_PAGE_CASES = [
    ("DR2-trap", None, None),
    ("DR1-agent", "good", SENT),
    ("DR3-I1-dep-agent", "good", SENT),
    ("DR4-I2-dep-trap", "bad", WRONG_MASTER),
    ("DR5-web-dep", "bad", WRONG_MASTER),
]


class TestDiscoveryRulePage:
    """Single discovery rule from its edit page."""

    @pytest.mark.parametrize("ref,expected,message", DISCOVERY_PAGE_CASES)
    def test_execute_now(self, evaluator, select, ref, expected, message):
        assert_case(evaluator, select(ref), expected, message)


# ============================================================
# OUTCOME PROPERTIES
# ============================================================

class TestOutcomeProperties:
    """Aggregate properties of evaluated outcomes."""

    def test_all_allowed_is_accepted(self, evaluator, select):
        """Only pollable top-level objects are accepted as a whole."""
        outcome = evaluator.evaluate(select("I5-agent-txt", "I1-lvl1-agent-num"))

        assert outcome.kind == OutcomeKind.ACCEPTED
        assert outcome.reason is None
        assert outcome.accepted_count == 2
        assert outcome.filtered == []

    def test_partial_sends_eligible_subset_only(self, evaluator, select):
        """Filtered objects never reach the poll targets."""
        outcome = evaluator.evaluate(select("I5-agent-txt", "I4-trap-log"))

        assert outcome.kind == OutcomeKind.PARTIALLY_ACCEPTED
        assert outcome.reason is None
        assert [o.name for o in outcome.accepted] == ["I5-agent-txt"]
        assert [o.name for o in outcome.filtered] == ["I4-trap-log"]
        assert outcome.poll_target_ids == ["1011"]

    def test_dependent_item_polls_master(self, evaluator, select):
        """A dependent item is executed through its master."""
        outcome = evaluator.evaluate(select("I1-lvl2-dep-log"))

        assert outcome.decisions[0].poll_target.name == "I1-lvl1-agent-num"
        assert outcome.poll_target_ids == ["1001"]

    def test_shared_master_is_polled_once(self, evaluator, select):
        """Two dependents of one master dispatch a single target."""
        outcome = evaluator.evaluate(select("I1-lvl2-dep-log", "I1-lvl3-dep-txt", "I1-lvl1-agent-num"))

        assert outcome.accepted_count == 3
        assert outcome.poll_target_ids == ["1001"]

    def test_rejected_has_no_poll_targets(self, evaluator, select):
        outcome = evaluator.evaluate(select("I2-lvl2-dep-log"))

        assert outcome.reason == RejectReason.WRONG_MASTER_TYPE
        assert outcome.accepted_count == 0
        assert outcome.poll_target_ids == []

    def test_mixed_rejection_is_item_type(self, evaluator, select):
        """A top-level reject outranks master type rejects."""
        outcome = evaluator.evaluate(select("I2-lvl2-dep-log", "I3-web-dep", "I4-trap-log"))

        assert outcome.reason == RejectReason.WRONG_ITEM_TYPE

    def test_discovery_rules_only_is_rule_type(self, evaluator, select):
        outcome = evaluator.evaluate(select("DR2-trap"))

        assert outcome.reason == RejectReason.WRONG_DISCOVERY_RULE_TYPE
        assert outcome.message == WRONG_RULE

    def test_rule_and_item_rejection_prefers_item_type(self, evaluator, select):
        outcome = evaluator.evaluate(select("DR2-trap", "I4-trap-log"))

        assert outcome.reason == RejectReason.WRONG_ITEM_TYPE

    def test_evaluation_is_idempotent(self, evaluator, select):
        """Same selection twice gives equal outcomes."""
        selection = select("I1-lvl3-dep-txt", "I2-lvl2-dep-log", "I4-trap-log")

        first = evaluator.evaluate(selection)
        second = evaluator.evaluate(selection)

        assert first == second
        assert first.evaluation_id != second.evaluation_id

    @pytest.mark.parametrize("refs", [
        ["I2-lvl2-dep-log", "I4-trap-log", "I5-agent-txt"],
        ["DR2-trap", "I2-lvl1-trap-num: DR4-I2-dep-trap"],
        ["I3-web-dep", WEB_DOWNLOAD_SPEED],
    ])
    def test_order_does_not_change_outcome(self, evaluator, select, refs):
        forward = evaluator.evaluate(select(*refs))
        backward = evaluator.evaluate(select(*reversed(refs)))

        assert forward.kind == backward.kind
        assert forward.reason == backward.reason
        assert forward.message == backward.message

    def test_duplicates_are_ignored(self, evaluator, select):
        outcome = evaluator.evaluate(select("I5-agent-txt", "I5-agent-txt", "1011"))

        assert outcome.selected_count == 1
        assert outcome.accepted_count == 1

    def test_empty_selection_raises(self, evaluator):
        with pytest.raises(InputError):
            evaluator.evaluate([])

    def test_empty_selection_disables_control(self, evaluator):
        assert evaluator.is_request_enabled([]) is False

    def test_unknown_master_raises(self, evaluator):
        """An unresolvable master is a catalog error, not an outcome."""
        orphan = MonitoredObject(
            object_id="9999",
            name="orphan",
            object_type=ObjectType.DEPENDENT,
            master_id="8888",
        )

        with pytest.raises(CatalogError):
            evaluator.evaluate([orphan])

    def test_outcome_to_dict(self, evaluator, select):
        data = evaluator.evaluate(select("I5-agent-txt", "I4-trap-log")).to_dict()

        assert data["kind"] == "PARTIALLY_ACCEPTED"
        assert data["message"] == SENT_FILTERED
        assert data["selected_count"] == 2
        assert data["accepted_count"] == 1
        assert data["decisions"][1]["reason"] == "WRONG_ITEM_TYPE"


# ============================================================
# DEPENDENCY CHAINS
# ============================================================

@pytest.fixture
def chain_catalog():
    """Three-level chains under an agent item and a trapper item."""
    return ObjectCatalog.from_records([
        {"object_id": "1", "name": "agent-root", "object_type": "ZABBIX_AGENT"},
        {"object_id": "2", "name": "agent-lvl2", "object_type": "DEPENDENT", "master_id": "1"},
        {"object_id": "3", "name": "agent-lvl3", "object_type": "DEPENDENT", "master_id": "2"},
        {"object_id": "4", "name": "trap-root", "object_type": "TRAPPER"},
        {"object_id": "5", "name": "trap-lvl2", "object_type": "DEPENDENT", "master_id": "4"},
        {"object_id": "6", "name": "trap-lvl3", "object_type": "DEPENDENT", "master_id": "5"},
        {"object_id": "7", "name": "web", "object_type": "WEB_ITEM"},
        {"object_id": "8", "name": "web-lvl2", "object_type": "DEPENDENT", "master_id": "7"},
        {"object_id": "9", "name": "web-lvl3", "object_type": "DEPENDENT", "master_id": "8"},
    ])


class TestDependencyChains:
    """Dependent items whose master is itself dependent."""

    @pytest.mark.parametrize("object_id", ["3", "6", "9"])
    def test_dependent_master_is_rejected_by_default(self, chain_catalog, object_id):
        """Only the immediate master counts, and its type is DEPENDENT."""
        evaluator = EligibilityEvaluator(chain_catalog)
        outcome = evaluator.evaluate([chain_catalog.get(object_id)])

        assert outcome.kind == OutcomeKind.REJECTED
        assert outcome.reason == RejectReason.WRONG_MASTER_TYPE
        assert outcome.poll_target_ids == []

    def test_one_hop_dependent_is_accepted_by_default(self, chain_catalog):
        evaluator = EligibilityEvaluator(chain_catalog)
        outcome = evaluator.evaluate([chain_catalog.get("2")])

        assert outcome.kind == OutcomeKind.ACCEPTED
        assert outcome.poll_target_ids == ["1"]

    def test_mixed_depths_by_default(self, chain_catalog):
        evaluator = EligibilityEvaluator(chain_catalog)
        outcome = evaluator.evaluate([chain_catalog.get("2"), chain_catalog.get("3")])

        assert outcome.kind == OutcomeKind.PARTIALLY_ACCEPTED
        assert outcome.filtered == [chain_catalog.get("3")]

    def test_chain_following_resolves_to_root_master(self, chain_catalog):
        evaluator = EligibilityEvaluator(
            chain_catalog,
            get_chain_following_config().eligibility,
        )
        outcome = evaluator.evaluate([chain_catalog.get("3")])

        assert outcome.kind == OutcomeKind.ACCEPTED
        assert outcome.poll_target_ids == ["1"]

    @pytest.mark.parametrize("object_id", ["6", "9"])
    def test_chain_following_with_unpollable_root_is_rejected(self, chain_catalog, object_id):
        evaluator = EligibilityEvaluator(
            chain_catalog,
            EligibilityConfig(follow_master_chain=True),
        )
        outcome = evaluator.evaluate([chain_catalog.get(object_id)])

        assert outcome.reason == RejectReason.WRONG_MASTER_TYPE


# ============================================================
# CONFIGURATION
# ============================================================

class TestEligibilityConfig:
    """Configuration effects on eligibility."""

    def test_disabled_type_is_filtered(self, catalog, select):
        evaluator = EligibilityEvaluator(
            catalog,
            EligibilityConfig(disabled_types=[ObjectType.ZABBIX_AGENT]),
        )

        outcome = evaluator.evaluate(select("I5-agent-txt"))

        assert outcome.reason == RejectReason.WRONG_ITEM_TYPE
        assert evaluator.is_request_enabled(select("I5-agent-txt")) is False

    def test_disabled_type_applies_to_masters(self, catalog, select):
        evaluator = EligibilityEvaluator(
            catalog,
            EligibilityConfig(disabled_types=[ObjectType.ZABBIX_AGENT]),
        )

        outcome = evaluator.evaluate(select("I1-lvl2-dep-log"))

        assert outcome.reason == RejectReason.WRONG_MASTER_TYPE

    @pytest.mark.parametrize("object_type", [
        ObjectType.WEB_ITEM,
        ObjectType.TRAPPER,
        ObjectType.SNMP_TRAP,
    ])
    def test_unpollable_types_stay_ineligible(self, object_type):
        """Configuration can narrow pollable types, never widen them."""
        config = EligibilityConfig(disabled_types=[])
        obj = MonitoredObject(object_id="1", name="x", object_type=object_type)
        evaluator = EligibilityEvaluator(ObjectCatalog([obj]), config)

        assert evaluator.evaluate([obj]).kind == OutcomeKind.REJECTED


# ============================================================
# CONVENIENCE FUNCTIONS
# ============================================================

class TestConvenienceFunctions:

    def test_create_evaluator(self, catalog):
        evaluator = create_evaluator(catalog)

        assert isinstance(evaluator, EligibilityEvaluator)
        assert evaluator.catalog is catalog
        assert [r["name"] for r in evaluator.get_rule_info()] == [
            "MasterTypeRule",
            "DirectTypeRule",
        ]

    def test_evaluate_selection(self, evaluator, select):
        outcome = evaluate_selection(evaluator, select("DR1-agent"))

        assert outcome.kind == OutcomeKind.ACCEPTED
        assert outcome.decisions[0].obj.kind == ObjectKind.DISCOVERY_RULE

    def test_is_execution_allowed(self, evaluator, select):
        assert is_execution_allowed(evaluator, select("I5-agent-txt", "I4-trap-log")) is True
        assert is_execution_allowed(evaluator, select("I2-lvl2-dep-log")) is False
