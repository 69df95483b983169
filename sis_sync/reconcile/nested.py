"""
Reconciliation of nested collections (emails, phones, addresses,
relationships) scoped to one matched parent pair.

Items are matched on a category-specific key (normalized email, phone digits,
street/city/postal composite, related student number) rather than the
identifier rule used for parents. Matched items are then diffed field by
field, so an address that only gained a second line is reported as Modified
rather than as an Added/Removed pair.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping, MutableSequence, Sequence

from config.field_mappings import CategoryMapping, FieldKind, FieldSpec
from sis_sync.models import Record, record_type_for

from .differ import diff_specs, resolve_field_specs
from .matcher import KeyFunc, KeyIndex, coerce_records
from .normalize import address_key, get_normalizer
from .results import NestedMatchResult, NestedModification, ReconcileWarning, emit_warning

logger = logging.getLogger(__name__)


def _composite_key_function(key_fields: Sequence[str], kind: FieldKind) -> KeyFunc:
    if kind is FieldKind.ADDRESS:

        def _address_key_of(record: Record) -> str | None:
            return address_key(record.get(name) for name in key_fields)

        return _address_key_of

    normalizer = get_normalizer(kind)
    if len(key_fields) == 1:
        (only_field,) = key_fields

        def _single_key_of(record: Record) -> str | None:
            return normalizer(record.get(only_field))

        return _single_key_of

    def _multi_key_of(record: Record) -> str | None:
        parts = [normalizer(record.get(name)) for name in key_fields]
        if not any(parts):
            return None
        return "|".join(part or "" for part in parts)

    return _multi_key_of


def category_key_functions(category: CategoryMapping) -> tuple[KeyFunc, KeyFunc]:
    """
    Build ``(source_key_of, target_key_of)`` for ``category`` from its key fields.
    """

    source_fields = [spec.source for spec in category.key_fields]
    target_fields = [spec.target for spec in category.key_fields]
    return (
        _composite_key_function(source_fields, category.key_kind),
        _composite_key_function(target_fields, category.key_kind),
    )


def _reconcile_specs(
    source_items: Iterable[Record | Mapping[str, Any]],
    target_items: Iterable[Record | Mapping[str, Any]],
    *,
    source_key_of: KeyFunc,
    target_key_of: KeyFunc,
    specs: Sequence[FieldSpec],
    category: str,
    record_type: type[Record],
    warnings: MutableSequence[ReconcileWarning] | None,
) -> NestedMatchResult:
    targets = coerce_records(target_items, record_type, side="target", entity=category, warnings=warnings)
    sources = coerce_records(source_items, record_type, side="source", entity=category, warnings=warnings)
    index = KeyIndex(
        (target for _, target in targets),
        target_key_of,
        entity=category,
        key_label=f"{category} key",
        warnings=warnings,
    )

    added: list[Record] = []
    modified: list[NestedModification] = []
    seen_keys: set[str] = set()

    for position, item in sources:
        key = source_key_of(item)
        if key is None:
            emit_warning(
                warnings,
                logger,
                code="nested_key_missing",
                message=f"Source {category} item at index {position} has no {category} key; skipped.",
                entity=category,
                index=position,
            )
            continue
        if key in seen_keys:
            emit_warning(
                warnings,
                logger,
                code="nested_key_duplicate",
                message=f"Source {category} item at index {position} repeats key '{key}'; skipped.",
                entity=category,
                index=position,
                key=key,
            )
            continue
        seen_keys.add(key)

        target = index.match(key)
        if target is None:
            added.append(item)
            continue
        changes = diff_specs(item, target, specs, warnings=warnings, entity=category, key=key)
        if changes:
            modified.append(NestedModification(key=key, item=item, target=target, changes=tuple(changes)))

    removed = [record for _, record in index.unmatched()]
    return NestedMatchResult(added=tuple(added), modified=tuple(modified), removed=tuple(removed))


def reconcile_nested(
    source_items: Iterable[Record | Mapping[str, Any]],
    target_items: Iterable[Record | Mapping[str, Any]],
    key_of: KeyFunc,
    fields_to_check: Iterable[str],
    field_mapping: Mapping[str, str] | None = None,
    field_kinds: Mapping[str, FieldKind | str] | None = None,
    *,
    source_key_of: KeyFunc | None = None,
    category: str = "nested",
    warnings: MutableSequence[ReconcileWarning] | None = None,
) -> NestedMatchResult:
    """
    Partition one parent's nested items into Added / Modified / Removed.

    ``key_of`` derives the target item key; ``source_key_of`` (defaults to
    ``key_of``) derives the source item key when field names differ per side.
    Matched items without field changes are omitted from the result.
    """

    specs = resolve_field_specs(fields_to_check, field_mapping, field_kinds)
    return _reconcile_specs(
        source_items,
        target_items,
        source_key_of=source_key_of or key_of,
        target_key_of=key_of,
        specs=specs,
        category=category,
        record_type=record_type_for(category),
        warnings=warnings,
    )


def reconcile_category(
    source_items: Iterable[Record | Mapping[str, Any]],
    target_items: Iterable[Record | Mapping[str, Any]],
    category: CategoryMapping,
    *,
    warnings: MutableSequence[ReconcileWarning] | None = None,
) -> NestedMatchResult:
    """Run :func:`reconcile_nested` with the keys and fields configured for ``category``."""

    source_key_of, target_key_of = category_key_functions(category)
    return _reconcile_specs(
        source_items,
        target_items,
        source_key_of=source_key_of,
        target_key_of=target_key_of,
        specs=tuple(category.fields),
        category=category.name,
        record_type=record_type_for(category.name),
        warnings=warnings,
    )


__all__ = ["category_key_functions", "reconcile_category", "reconcile_nested"]
