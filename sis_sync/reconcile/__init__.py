"""
Reconciliation engine: classify CSV-derived source records against SIS API
target records and report field-level changes.

The engine is pure and synchronous. Inputs are never mutated; every call
returns fresh results plus any non-fatal data-quality warnings.
"""

from __future__ import annotations

from .contacts import reconcile_contacts, reconcile_students
from .differ import diff_fields, diff_specs, resolve_field_specs
from .engine import reconcile, reconcile_entity
from .matcher import KeyIndex, build_index, resolve_key
from .nested import category_key_functions, reconcile_category, reconcile_nested
from .normalize import address_key, normalize
from .results import (
    ChangeEntry,
    MatchStatus,
    NestedMatchResult,
    NestedModification,
    ReconcileWarning,
    ReconciliationResult,
    RecordMatch,
    Summary,
)
from .service import ReconciliationService
from .summary import summarize, summarize_nested

__all__ = [
    "ChangeEntry",
    "KeyIndex",
    "MatchStatus",
    "NestedMatchResult",
    "NestedModification",
    "ReconcileWarning",
    "ReconciliationResult",
    "ReconciliationService",
    "RecordMatch",
    "Summary",
    "address_key",
    "build_index",
    "category_key_functions",
    "diff_fields",
    "diff_specs",
    "normalize",
    "reconcile",
    "reconcile_category",
    "reconcile_contacts",
    "reconcile_entity",
    "reconcile_nested",
    "reconcile_students",
    "resolve_field_specs",
    "resolve_key",
    "summarize",
    "summarize_nested",
]
