"""
Result structures returned by the reconciler.

Attribute names are Pythonic; ``to_dict`` emits the stable report keys
(``New``, ``Updated``, ``Changes``, ``OldValue`` ...) consumed by the
downstream JSON/HTML report tooling.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping, MutableSequence, Sequence

from sis_sync.models import Record


class MatchStatus(str, Enum):
    NEW = "New"
    UPDATED = "Updated"
    UNCHANGED = "Unchanged"
    REMOVED = "Removed"


@dataclass(frozen=True)
class ChangeEntry:
    """
    One differing field between a matched source/target pair.

    Attributes:
        field: Source field name.
        old_value: Original target-side value (what the SIS holds today).
        new_value: Original source-side value (what the CSV feed says).
        target_field: Target field name the source field was compared against.
    """

    field: str
    old_value: Any
    new_value: Any
    target_field: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "Field": self.field,
            "OldValue": self.old_value,
            "NewValue": self.new_value,
            "TargetField": self.target_field,
        }


@dataclass(frozen=True)
class ReconcileWarning:
    """Non-fatal data-quality issue surfaced alongside a result."""

    code: str
    message: str
    entity: str
    field: str | None = None
    index: int | None = None
    key: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "Code": self.code,
            "Message": self.message,
            "Entity": self.entity,
            "Field": self.field,
            "Index": self.index,
            "Key": self.key,
        }


@dataclass(frozen=True)
class NestedModification:
    key: str
    item: Record
    target: Record
    changes: Sequence[ChangeEntry]

    def to_dict(self) -> dict[str, Any]:
        return {
            "Key": self.key,
            "Item": self.item.as_dict(),
            "Target": self.target.as_dict(),
            "Changes": [change.to_dict() for change in self.changes],
        }


@dataclass(frozen=True)
class NestedMatchResult:
    """Added/Modified/Removed partitions for one nested category of one parent pair."""

    added: Sequence[Record] = ()
    modified: Sequence[NestedModification] = ()
    removed: Sequence[Record] = ()

    @property
    def has_changes(self) -> bool:
        return bool(self.added or self.modified or self.removed)

    def to_dict(self) -> dict[str, Any]:
        return {
            "Added": [item.as_dict() for item in self.added],
            "Modified": [entry.to_dict() for entry in self.modified],
            "Removed": [item.as_dict() for item in self.removed],
        }


@dataclass(frozen=True)
class RecordMatch:
    """
    Classification of one record.

    ``source`` is ``None`` for Removed entries and ``target`` is ``None`` for
    New entries. ``nested`` maps category names to their nested results and is
    only populated for matched composite entities.
    """

    status: MatchStatus
    match_key: str
    source: Record | None = None
    target: Record | None = None
    changes: Sequence[ChangeEntry] = ()
    nested: Mapping[str, NestedMatchResult] = field(default_factory=dict)
    nested_result_names: Mapping[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"MatchKey": self.match_key}
        if self.status is MatchStatus.NEW:
            payload["Record"] = self.source.as_dict() if self.source is not None else None
            return payload
        if self.status is MatchStatus.REMOVED:
            payload["Record"] = self.target.as_dict() if self.target is not None else None
            return payload
        payload["Source"] = self.source.as_dict() if self.source is not None else None
        payload["Target"] = self.target.as_dict() if self.target is not None else None
        if self.status is MatchStatus.UPDATED:
            payload["Changes"] = [change.to_dict() for change in self.changes]
            for category, result in self.nested.items():
                result_name = self.nested_result_names.get(category, category)
                payload[result_name] = result.to_dict()
        return payload


@dataclass(frozen=True)
class Summary:
    new: int
    updated: int
    unchanged: int
    removed: int | None
    total_source: int
    total_target: int
    match_field: str
    skipped: int = 0
    nested: Mapping[str, Mapping[str, int]] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "New": self.new,
            "Updated": self.updated,
            "Unchanged": self.unchanged,
        }
        if self.removed is not None:
            payload["Removed"] = self.removed
        payload.update(
            {
                "TotalSource": self.total_source,
                "TotalTarget": self.total_target,
                "MatchField": self.match_field,
                "Skipped": self.skipped,
            }
        )
        if self.nested:
            payload["Nested"] = {category: dict(counts) for category, counts in self.nested.items()}
        return payload


@dataclass(frozen=True)
class ReconciliationResult:
    entity: str
    new: Sequence[RecordMatch]
    updated: Sequence[RecordMatch]
    unchanged: Sequence[RecordMatch]
    removed: Sequence[RecordMatch]
    summary: Summary
    warnings: Sequence[ReconcileWarning] = ()
    detect_removed: bool = False

    def partition(self, status: MatchStatus) -> Sequence[RecordMatch]:
        return {
            MatchStatus.NEW: self.new,
            MatchStatus.UPDATED: self.updated,
            MatchStatus.UNCHANGED: self.unchanged,
            MatchStatus.REMOVED: self.removed,
        }[status]

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "New": [match.to_dict() for match in self.new],
            "Updated": [match.to_dict() for match in self.updated],
            "Unchanged": [match.to_dict() for match in self.unchanged],
        }
        if self.detect_removed:
            payload["Removed"] = [match.to_dict() for match in self.removed]
        payload["Summary"] = self.summary.to_dict()
        payload["Warnings"] = [warning.to_dict() for warning in self.warnings]
        return payload


def emit_warning(
    sink: MutableSequence[ReconcileWarning] | None,
    logger: logging.Logger,
    *,
    code: str,
    message: str,
    entity: str,
    field: str | None = None,
    index: int | None = None,
    key: str | None = None,
) -> ReconcileWarning:
    """Record a data-quality warning on ``sink`` (when given) and log it."""

    warning = ReconcileWarning(code=code, message=message, entity=entity, field=field, index=index, key=key)
    if sink is not None:
        sink.append(warning)
    logger.warning(
        message,
        extra={
            "reconcile_warning_code": code,
            "reconcile_entity": entity,
            "reconcile_field": field,
            "reconcile_index": index,
            "reconcile_key": key,
        },
    )
    return warning


__all__ = [
    "ChangeEntry",
    "MatchStatus",
    "NestedMatchResult",
    "NestedModification",
    "ReconcileWarning",
    "ReconciliationResult",
    "RecordMatch",
    "Summary",
    "emit_warning",
]
