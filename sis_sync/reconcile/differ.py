"""
Field-level comparison of one matched source/target pair.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping, MutableSequence, Sequence

from config.field_mappings import FieldKind, FieldSpec
from sis_sync.models import Record, as_record

from .normalize import get_normalizer, normalize_string
from .results import ChangeEntry, ReconcileWarning, emit_warning

logger = logging.getLogger(__name__)


def resolve_field_specs(
    fields_to_check: Iterable[str],
    field_mapping: Mapping[str, str] | None = None,
    field_kinds: Mapping[str, FieldKind | str] | None = None,
) -> tuple[FieldSpec, ...]:
    """
    Expand field names plus mapping/kind tables into ordered ``FieldSpec`` entries.

    Unmapped fields compare against the same-named target field; fields without
    a declared kind use the string rule. Unknown kinds raise
    ``ReconcileConfigError``.
    """

    mapping = field_mapping or {}
    kinds = field_kinds or {}
    return tuple(
        FieldSpec(
            source=name,
            target=mapping.get(name) or name,
            kind=FieldKind.coerce(kinds.get(name)),
        )
        for name in fields_to_check
    )


def _check_recognized(
    raw: Any,
    normalized: str | None,
    spec: FieldSpec,
    *,
    side: str,
    field_name: str,
    entity: str,
    key: str | None,
    warnings: MutableSequence[ReconcileWarning] | None,
) -> None:
    if normalized is not None or normalize_string(raw) is None:
        return
    owner = f"{side.capitalize()} {entity} '{key}'" if key else f"{side.capitalize()} {entity}"
    emit_warning(
        warnings,
        logger,
        code="value_unrecognized",
        message=(
            f"{owner} field {field_name} value {raw!r} is not a recognized "
            f"{spec.kind.value} value; compared as empty."
        ),
        entity=entity,
        field=spec.source,
        key=key,
    )


def diff_specs(
    source: Record | Mapping[str, Any],
    target: Record | Mapping[str, Any],
    specs: Sequence[FieldSpec],
    *,
    warnings: MutableSequence[ReconcileWarning] | None = None,
    entity: str = "record",
    key: str | None = None,
) -> list[ChangeEntry]:
    """
    Compare ``source`` and ``target`` over ``specs`` and return one entry per differing field.

    Entries follow ``specs`` order. Values are compared on their normalized form
    only; the entries carry the original values for display. A non-blank value
    that its kind cannot interpret (``"Y"`` for a boolean, ``"n/a"`` for a
    phone) compares as empty and is reported as a ``value_unrecognized``
    warning on ``warnings``.
    """

    source_record = as_record(source)
    target_record = as_record(target)

    changes: list[ChangeEntry] = []
    for spec in specs:
        normalizer = get_normalizer(spec.kind)
        new_value = source_record.get(spec.source)
        old_value = target_record.get(spec.target)
        normalized_new = normalizer(new_value)
        normalized_old = normalizer(old_value)
        for side, raw, normalized, field_name in (
            ("source", new_value, normalized_new, spec.source),
            ("target", old_value, normalized_old, spec.target),
        ):
            _check_recognized(
                raw,
                normalized,
                spec,
                side=side,
                field_name=field_name,
                entity=entity,
                key=key,
                warnings=warnings,
            )
        if normalized_new == normalized_old:
            continue
        changes.append(
            ChangeEntry(
                field=spec.source,
                old_value=old_value,
                new_value=new_value,
                target_field=spec.target,
            )
        )
    return changes


def diff_fields(
    source: Record | Mapping[str, Any],
    target: Record | Mapping[str, Any],
    fields_to_check: Iterable[str],
    field_mapping: Mapping[str, str] | None = None,
    field_kinds: Mapping[str, FieldKind | str] | None = None,
) -> list[ChangeEntry]:
    """Name-table form of :func:`diff_specs`."""

    specs = resolve_field_specs(fields_to_check, field_mapping, field_kinds)
    return diff_specs(source, target, specs)


__all__ = ["diff_fields", "diff_specs", "resolve_field_specs"]
