"""
Execute Now.

============================================================
ON-DEMAND POLLING ELIGIBILITY
============================================================

Decides what an "Execute now" request does for a selection of
items and discovery rules in the monitoring console.

Selection → EligibilityEvaluator → ACCEPTED
                                  → PARTIALLY_ACCEPTED
                                  → REJECTED(reason)

============================================================
RULES
============================================================

- Top-level object: its type must be pollable
- Dependent object: its master item must be pollable
- Web scenario items are never pollable

============================================================
USAGE
============================================================

```python
from execute_now import ObjectCatalog, EligibilityEvaluator

catalog = ObjectCatalog.from_file("objects.yaml")
evaluator = EligibilityEvaluator(catalog)

outcome = evaluator.evaluate(catalog.resolve_all(["I5-agent-txt", "I4-trap-log"]))

if outcome.is_success:
    dispatcher.dispatch(outcome.poll_target_ids, outcome)
else:
    logger.warning(outcome.message)
```

============================================================
"""

__version__ = "1.0.0"

# Types
from .types import (
    # Classification
    ObjectKind,
    ObjectType,
    OutcomeKind,
    RejectReason,
    # Input / output
    MonitoredObject,
    ObjectDecision,
    ExecuteNowOutcome,
    # Messages
    MESSAGE_REQUEST_SENT,
    MESSAGE_REQUEST_SENT_FILTERED,
    MESSAGE_CANNOT_EXECUTE,
    # Errors
    ExecuteNowError,
    CatalogError,
    InputError,
    ConfigError,
)

# Configuration
from .config import (
    EligibilityConfig,
    PersistenceConfig,
    ExecuteNowConfig,
    get_default_config,
    get_chain_following_config,
    get_testing_config,
    load_config_from_dict,
    load_config_from_yaml,
    load_config_from_env,
)

# Catalog
from .catalog import ObjectCatalog
from .schemas import ObjectRecord

# Rules
from .rules import (
    RuleMeta,
    EligibilityRule,
    DirectTypeRule,
    MasterTypeRule,
)

# Evaluator
from .evaluator import (
    EligibilityEvaluator,
    create_evaluator,
    evaluate_selection,
    is_execution_allowed,
)

# Selection / notifications / service
from .selection import SelectionState
from .notifications import (
    Notification,
    NotificationFormatter,
    NotificationSink,
    LoggingNotificationSink,
)
from .service import (
    RequestDispatcher,
    LoggingDispatcher,
    ExecuteNowService,
)

# Persistence
from .models import ExecuteNowRequestLog, ExecuteNowDailyStats
from .repository import ExecuteNowRepository


__all__ = [
    # Classification
    "ObjectKind",
    "ObjectType",
    "OutcomeKind",
    "RejectReason",
    # Input / output
    "MonitoredObject",
    "ObjectDecision",
    "ExecuteNowOutcome",
    # Messages
    "MESSAGE_REQUEST_SENT",
    "MESSAGE_REQUEST_SENT_FILTERED",
    "MESSAGE_CANNOT_EXECUTE",
    # Errors
    "ExecuteNowError",
    "CatalogError",
    "InputError",
    "ConfigError",
    # Configuration
    "EligibilityConfig",
    "PersistenceConfig",
    "ExecuteNowConfig",
    "get_default_config",
    "get_chain_following_config",
    "get_testing_config",
    "load_config_from_dict",
    "load_config_from_yaml",
    "load_config_from_env",
    # Catalog
    "ObjectCatalog",
    "ObjectRecord",
    # Rules
    "RuleMeta",
    "EligibilityRule",
    "DirectTypeRule",
    "MasterTypeRule",
    # Evaluator
    "EligibilityEvaluator",
    "create_evaluator",
    "evaluate_selection",
    "is_execution_allowed",
    # Selection / notifications / service
    "SelectionState",
    "Notification",
    "NotificationFormatter",
    "NotificationSink",
    "LoggingNotificationSink",
    "RequestDispatcher",
    "LoggingDispatcher",
    "ExecuteNowService",
    # Persistence
    "ExecuteNowRequestLog",
    "ExecuteNowDailyStats",
    "ExecuteNowRepository",
]
