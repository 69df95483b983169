"""
SIS roster reconciliation package.

Provides the record models and the reconciliation engine that compares the
CSV source-of-record feed with records fetched from the student-information
system.
"""

from config.field_mappings import ReconcileConfigError

__all__ = ["ReconcileConfigError"]
