"""
Entity-level entry points: flat students and composite contacts.

Contacts carry nested emails, phones, addresses and student relationships.
Nested items arrive as flat per-category lists tagged with the owning
contact's identifier; they are grouped per contact here and reconciled only
for contacts matched on both sides. Children of New contacts are never
diffed: every one of them is implicitly new.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import replace
from typing import Any, Iterable, Mapping, MutableSequence

from config.field_mappings import DEFAULT_PROFILE, CategoryMapping, MappingProfile, ReconcileConfigError
from sis_sync.models import Record, record_type_for

from .engine import reconcile_entity
from .matcher import coerce_records, resolve_key
from .nested import reconcile_category
from .results import NestedMatchResult, ReconcileWarning, ReconciliationResult, emit_warning

logger = logging.getLogger(__name__)

RecordLike = Record | Mapping[str, Any]
ChildGroups = Mapping[str, Iterable[RecordLike]]


def _validate_categories(profile: MappingProfile, *groups: ChildGroups | None) -> list[CategoryMapping]:
    unknown: list[str] = []
    for group in groups:
        for name in group or {}:
            if name not in profile.categories and name not in unknown:
                unknown.append(name)
    if unknown:
        raise ReconcileConfigError(
            f"Mapping profile '{profile.key}' has no nested categories named: {', '.join(sorted(unknown))}."
        )
    return list(profile.categories.values())


def _group_children(
    items: Iterable[RecordLike],
    parent_field: str,
    category: CategoryMapping,
    *,
    side: str,
    warnings: MutableSequence[ReconcileWarning],
) -> dict[str, list[Record]]:
    record_type = record_type_for(category.name)
    grouped: dict[str, list[Record]] = defaultdict(list)
    for position, item in coerce_records(items, record_type, side=side, entity=category.name, warnings=warnings):
        parent_key = resolve_key(item, parent_field)
        if parent_key is None:
            emit_warning(
                warnings,
                logger,
                code="parent_key_missing",
                message=(
                    f"{side.capitalize()} {category.name} item at index {position} has a blank "
                    f"{parent_field}; not attached to any contact."
                ),
                entity=category.name,
                field=parent_field,
                index=position,
            )
            continue
        grouped[parent_key].append(item)
    return dict(grouped)


def reconcile_students(
    source_students: Iterable[RecordLike],
    target_students: Iterable[RecordLike],
    *,
    profile: MappingProfile = DEFAULT_PROFILE,
    detect_removed: bool = False,
) -> ReconciliationResult:
    """Reconcile flat student records using the profile's ``students`` entity."""

    return reconcile_entity(
        source_students,
        target_students,
        profile.entity("students"),
        detect_removed=detect_removed,
    )


def reconcile_contacts(
    source_contacts: Iterable[RecordLike],
    target_contacts: Iterable[RecordLike],
    *,
    source_children: ChildGroups | None = None,
    target_children: ChildGroups | None = None,
    profile: MappingProfile = DEFAULT_PROFILE,
    detect_removed: bool = False,
) -> ReconciliationResult:
    """
    Reconcile contacts and, for every matched contact, their nested collections.

    ``source_children`` / ``target_children`` map category names (``email``,
    ``phone``, ``address``, ``relationship``) to flat item lists; each item
    carries the owning contact identifier in the category's parent field.

    Raises:
        ReconcileConfigError: a child category is not defined in ``profile``.
    """

    contact_mapping = profile.entity("contacts")
    categories = _validate_categories(profile, source_children, target_children)
    source_children = source_children or {}
    target_children = target_children or {}

    grouping_warnings: list[ReconcileWarning] = []
    grouped_source: dict[str, dict[str, list[Record]]] = {}
    grouped_target: dict[str, dict[str, list[Record]]] = {}
    for category in categories:
        grouped_source[category.name] = _group_children(
            source_children.get(category.name, ()),
            category.source_parent_field,
            category,
            side="source",
            warnings=grouping_warnings,
        )
        grouped_target[category.name] = _group_children(
            target_children.get(category.name, ()),
            category.target_parent_field,
            category,
            side="target",
            warnings=grouping_warnings,
        )

    def _nested_for_pair(
        source: Record,
        target: Record,
        match_key: str,
        warnings: MutableSequence[ReconcileWarning],
    ) -> dict[str, NestedMatchResult]:
        results: dict[str, NestedMatchResult] = {}
        for category in categories:
            results[category.name] = reconcile_category(
                grouped_source[category.name].get(match_key, ()),
                grouped_target[category.name].get(match_key, ()),
                category,
                warnings=warnings,
            )
        return results

    result = reconcile_entity(
        source_contacts,
        target_contacts,
        contact_mapping,
        detect_removed=detect_removed,
        nested=_nested_for_pair if categories else None,
        nested_result_names={category.name: category.result_name for category in categories},
    )
    if not grouping_warnings:
        return result
    return replace(result, warnings=tuple(grouping_warnings) + tuple(result.warnings))


__all__ = ["reconcile_contacts", "reconcile_students"]
