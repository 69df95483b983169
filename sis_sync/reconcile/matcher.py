"""
Key-based lookup helpers shared by the top-level and nested reconcilers.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Generic, Iterable, Mapping, MutableSequence, TypeVar

from sis_sync.models import Record, as_record

from .normalize import normalize_key
from .results import ReconcileWarning, emit_warning

logger = logging.getLogger(__name__)

KeyFunc = Callable[[Record], "str | None"]
RecordT = TypeVar("RecordT", bound=Record)


def resolve_key(record: Record | Mapping[str, Any], key_field: str) -> str | None:
    """
    Return the normalized match key of ``record`` or ``None`` when it is missing/blank.
    """

    return normalize_key(as_record(record).get(key_field))


def field_key(key_field: str) -> KeyFunc:
    """Key function reading ``key_field`` with the identifier rule."""

    def _key_of(record: Record) -> str | None:
        return resolve_key(record, key_field)

    return _key_of


def coerce_records(
    items: Iterable[Any],
    record_type: type[Record] = Record,
    *,
    side: str,
    entity: str,
    warnings: MutableSequence[ReconcileWarning] | None = None,
) -> list[tuple[int, Record]]:
    """
    Wrap ``items`` as ``record_type``, paired with their input positions.

    Items that are neither mappings nor records are skipped with a
    ``record_malformed`` warning instead of failing the run.
    """

    wrapped: list[tuple[int, Record]] = []
    for position, item in enumerate(items):
        if not isinstance(item, (Record, Mapping)):
            emit_warning(
                warnings,
                logger,
                code="record_malformed",
                message=(
                    f"{side.capitalize()} {entity} at index {position} is a {type(item).__name__}, "
                    "not a record; skipped."
                ),
                entity=entity,
                index=position,
            )
            continue
        wrapped.append((position, as_record(item, record_type)))
    return wrapped


class KeyIndex(Generic[RecordT]):
    """
    Lookup table of target records keyed by a normalized key.

    Built once per reconciliation call. The first record for a key wins the
    lookup slot; every indexed record keeps its position in ``entries`` so
    callers can find the ones never matched.
    """

    def __init__(
        self,
        records: Iterable[RecordT],
        key_of: KeyFunc,
        *,
        entity: str = "record",
        key_label: str | None = None,
        warnings: MutableSequence[ReconcileWarning] | None = None,
    ) -> None:
        self.entity = entity
        self.entries: list[tuple[str, RecordT]] = []
        self._lookup: dict[str, int] = {}
        self._matched: set[int] = set()

        for position, record in enumerate(records):
            key = key_of(record)
            if key is None:
                emit_warning(
                    warnings,
                    logger,
                    code="target_key_missing",
                    message=f"Target {entity} at index {position} has no {key_label or 'match key'}; not indexed.",
                    entity=entity,
                    field=key_label,
                    index=position,
                )
                continue
            entry_position = len(self.entries)
            self.entries.append((key, record))
            if key in self._lookup:
                emit_warning(
                    warnings,
                    logger,
                    code="target_key_duplicate",
                    message=f"Target {entity} at index {position} repeats key '{key}'; first occurrence is used.",
                    entity=entity,
                    field=key_label,
                    index=position,
                    key=key,
                )
                continue
            self._lookup[key] = entry_position

    def __len__(self) -> int:
        return len(self.entries)

    def __contains__(self, key: object) -> bool:
        return key in self._lookup

    def get(self, key: str) -> RecordT | None:
        position = self._lookup.get(key)
        if position is None:
            return None
        return self.entries[position][1]

    def match(self, key: str) -> RecordT | None:
        """Look up ``key`` and mark the hit as matched."""

        position = self._lookup.get(key)
        if position is None:
            return None
        self._matched.add(position)
        return self.entries[position][1]

    def unmatched(self, *, distinct_keys: bool = False) -> list[tuple[str, RecordT]]:
        """
        Entries never returned by :meth:`match`, in input order.

        With ``distinct_keys`` only the first record per key is considered, so
        duplicate targets behind an already-matched key are not reported.
        """

        if distinct_keys:
            positions = sorted(set(self._lookup.values()) - self._matched)
            return [self.entries[position] for position in positions]
        return [entry for position, entry in enumerate(self.entries) if position not in self._matched]

    def as_dict(self) -> dict[str, RecordT]:
        return {key: self.entries[position][1] for key, position in self._lookup.items()}


def build_index(
    target_records: Iterable[Record | Mapping[str, Any]],
    target_key_field: str,
    *,
    entity: str = "record",
    warnings: MutableSequence[ReconcileWarning] | None = None,
) -> dict[str, Record]:
    """
    Index ``target_records`` by the normalized value of ``target_key_field``.

    Integer and string keys normalize identically, so ``12345`` and ``"12345"``
    land on the same slot.
    """

    index = KeyIndex(
        (record for _, record in coerce_records(target_records, side="target", entity=entity, warnings=warnings)),
        field_key(target_key_field),
        entity=entity,
        key_label=target_key_field,
        warnings=warnings,
    )
    return index.as_dict()


__all__ = ["KeyIndex", "build_index", "coerce_records", "field_key", "resolve_key"]
