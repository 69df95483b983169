"""
Top-level reconciliation of a flat source collection against the SIS.

Every source record with a usable key is classified exactly once:

- ``New``: no target record shares its key.
- ``Updated``: matched, with at least one field change (or nested change).
- ``Unchanged``: matched, nothing differs after normalization.

When the caller asks for it, target records never matched are reported as
``Removed``. Source records with a blank key are skipped and surfaced as
warnings; they never fail the run.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Iterable, Mapping, MutableSequence, Sequence

from config.field_mappings import EntityMapping, FieldKind, FieldSpec, ReconcileConfigError
from sis_sync.models import Record, record_type_for

from .differ import diff_specs, resolve_field_specs
from .matcher import KeyIndex, coerce_records, field_key
from .results import (
    MatchStatus,
    NestedMatchResult,
    ReconcileWarning,
    ReconciliationResult,
    RecordMatch,
    emit_warning,
)
from .summary import summarize, summarize_nested

logger = logging.getLogger(__name__)

NestedHook = Callable[
    [Record, Record, str, MutableSequence[ReconcileWarning]],
    Mapping[str, NestedMatchResult],
]


def _require_key_field(value: str | None, label: str) -> str:
    name = (value or "").strip() if isinstance(value, str) else ""
    if not name:
        raise ReconcileConfigError(f"{label} must be a non-empty field name.")
    return name


def reconcile(
    source_records: Iterable[Record | Mapping[str, Any]],
    target_records: Iterable[Record | Mapping[str, Any]],
    *,
    source_key_field: str,
    target_key_field: str,
    fields_to_check: Iterable[str],
    field_mapping: Mapping[str, str] | None = None,
    field_kinds: Mapping[str, FieldKind | str] | None = None,
    detect_removed: bool = False,
    entity: str = "record",
    nested: NestedHook | None = None,
    nested_result_names: Mapping[str, str] | None = None,
) -> ReconciliationResult:
    """
    Classify ``source_records`` as New / Updated / Unchanged against ``target_records``.

    Args:
        source_records: CSV-derived records (mappings or typed records).
        target_records: SIS API records (mappings or typed records).
        source_key_field: Match-key field on the source side.
        target_key_field: Match-key field on the target side.
        fields_to_check: Ordered source field names compared per matched pair.
        field_mapping: Source field -> target field; unmapped names map to themselves.
        field_kinds: Source field -> normalization kind; defaults to ``string``.
        detect_removed: Also report target records never matched.
        entity: Entity label used in warnings and logs.
        nested: Optional hook returning per-category nested results for a matched pair.
        nested_result_names: Category -> report key for serialized nested results.

    Raises:
        ReconcileConfigError: key fields are blank or a field kind is unknown.
    """

    source_key_field = _require_key_field(source_key_field, "source_key_field")
    target_key_field = _require_key_field(target_key_field, "target_key_field")
    specs = resolve_field_specs(fields_to_check, field_mapping, field_kinds)
    return _reconcile_specs(
        source_records,
        target_records,
        source_key_field=source_key_field,
        target_key_field=target_key_field,
        specs=specs,
        detect_removed=detect_removed,
        entity=entity,
        nested=nested,
        nested_result_names=nested_result_names or {},
    )


def reconcile_entity(
    source_records: Iterable[Record | Mapping[str, Any]],
    target_records: Iterable[Record | Mapping[str, Any]],
    mapping: EntityMapping,
    *,
    detect_removed: bool = False,
    nested: NestedHook | None = None,
    nested_result_names: Mapping[str, str] | None = None,
) -> ReconciliationResult:
    """Run :func:`reconcile` with the keys and fields configured in ``mapping``."""

    return _reconcile_specs(
        source_records,
        target_records,
        source_key_field=_require_key_field(mapping.source_key, f"{mapping.name}.source_key"),
        target_key_field=_require_key_field(mapping.target_key, f"{mapping.name}.target_key"),
        specs=tuple(mapping.fields),
        detect_removed=detect_removed,
        entity=mapping.name,
        nested=nested,
        nested_result_names=nested_result_names or {},
    )


def _reconcile_specs(
    source_records: Iterable[Record | Mapping[str, Any]],
    target_records: Iterable[Record | Mapping[str, Any]],
    *,
    source_key_field: str,
    target_key_field: str,
    specs: Sequence[FieldSpec],
    detect_removed: bool,
    entity: str,
    nested: NestedHook | None,
    nested_result_names: Mapping[str, str],
) -> ReconciliationResult:
    record_type = record_type_for(entity)
    warnings: list[ReconcileWarning] = []

    source_list = list(source_records)
    target_list = list(target_records)
    sources = coerce_records(source_list, record_type, side="source", entity=entity, warnings=warnings)
    targets = coerce_records(target_list, record_type, side="target", entity=entity, warnings=warnings)

    index = KeyIndex(
        (target for _, target in targets),
        field_key(target_key_field),
        entity=entity,
        key_label=target_key_field,
        warnings=warnings,
    )
    source_key_of = field_key(source_key_field)

    new: list[RecordMatch] = []
    updated: list[RecordMatch] = []
    unchanged: list[RecordMatch] = []
    skipped = len(source_list) - len(sources)

    for position, source in sources:
        key = source_key_of(source)
        if key is None:
            skipped += 1
            emit_warning(
                warnings,
                logger,
                code="source_key_missing",
                message=(
                    f"Source {entity} at index {position} has a blank {source_key_field}; "
                    "excluded from reconciliation."
                ),
                entity=entity,
                field=source_key_field,
                index=position,
            )
            continue

        target = index.match(key)
        if target is None:
            new.append(RecordMatch(status=MatchStatus.NEW, match_key=key, source=source))
            continue

        changes = tuple(diff_specs(source, target, specs, warnings=warnings, entity=entity, key=key))
        nested_results: dict[str, NestedMatchResult] = {}
        if nested is not None:
            nested_results = dict(nested(source, target, key, warnings))
        has_nested_changes = any(result.has_changes for result in nested_results.values())

        if changes or has_nested_changes:
            updated.append(
                RecordMatch(
                    status=MatchStatus.UPDATED,
                    match_key=key,
                    source=source,
                    target=target,
                    changes=changes,
                    nested=nested_results,
                    nested_result_names=dict(nested_result_names),
                )
            )
        else:
            unchanged.append(RecordMatch(status=MatchStatus.UNCHANGED, match_key=key, source=source, target=target))

    removed: list[RecordMatch] = []
    if detect_removed:
        removed = [
            RecordMatch(status=MatchStatus.REMOVED, match_key=key, target=target)
            for key, target in index.unmatched(distinct_keys=True)
        ]

    partitions = {
        MatchStatus.NEW: new,
        MatchStatus.UPDATED: updated,
        MatchStatus.UNCHANGED: unchanged,
        MatchStatus.REMOVED: removed,
    }
    summary = summarize(
        partitions,
        total_source=len(source_list),
        total_target=len(target_list),
        key_field_name=source_key_field,
        detect_removed=detect_removed,
        skipped=skipped,
        nested=summarize_nested(updated) if nested is not None else None,
    )

    logger.info(
        "Reconciled %s %s records (new=%s, updated=%s, unchanged=%s, removed=%s, skipped=%s)",
        summary.total_source,
        entity,
        summary.new,
        summary.updated,
        summary.unchanged,
        summary.removed if detect_removed else "n/a",
        summary.skipped,
        extra={
            "reconcile_entity": entity,
            "reconcile_summary": summary.to_dict(),
        },
    )

    return ReconciliationResult(
        entity=entity,
        new=tuple(new),
        updated=tuple(updated),
        unchanged=tuple(unchanged),
        removed=tuple(removed),
        summary=summary,
        warnings=tuple(warnings),
        detect_removed=detect_removed,
    )


__all__ = ["NestedHook", "reconcile", "reconcile_entity"]
