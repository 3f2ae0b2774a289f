"""
Shared fixtures for execute now tests.
"""

import pytest

from execute_now import (
    EligibilityEvaluator,
    ObjectCatalog,
)

from .catalog_data import CATALOG_RECORDS, HOST


@pytest.fixture
def catalog_records():
    """Raw catalog records, one copy per test."""
    return [dict(record, host=HOST) for record in CATALOG_RECORDS]


@pytest.fixture
def catalog(catalog_records):
    """Catalog built from the records."""
    return ObjectCatalog.from_records(catalog_records)


@pytest.fixture
def evaluator(catalog):
    """Evaluator with default configuration."""
    return EligibilityEvaluator(catalog)


@pytest.fixture
def select(catalog):
    """Resolve references to objects."""
    def _select(*refs):
        return catalog.resolve_all(refs)
    return _select
