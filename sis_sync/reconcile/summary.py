"""
Counting helpers that turn reconciliation partitions into report summaries.
"""

from __future__ import annotations

from typing import Iterable, Mapping, MutableMapping, Sequence

from .results import MatchStatus, RecordMatch, Summary


def summarize(
    partitions: Mapping[MatchStatus, Sequence[RecordMatch]],
    total_source: int,
    total_target: int,
    key_field_name: str,
    *,
    detect_removed: bool = False,
    skipped: int = 0,
    nested: Mapping[str, Mapping[str, int]] | None = None,
) -> Summary:
    """
    Count each partition; empty partitions count as zero.

    ``removed`` stays ``None`` when Removed detection was not requested so the
    serialized summary omits it rather than reporting a misleading zero.
    """

    def _count(status: MatchStatus) -> int:
        return len(partitions.get(status, ()))

    return Summary(
        new=_count(MatchStatus.NEW),
        updated=_count(MatchStatus.UPDATED),
        unchanged=_count(MatchStatus.UNCHANGED),
        removed=_count(MatchStatus.REMOVED) if detect_removed else None,
        total_source=total_source,
        total_target=total_target,
        match_field=key_field_name,
        skipped=skipped,
        nested=dict(nested or {}),
    )


def summarize_nested(matches: Iterable[RecordMatch]) -> Mapping[str, Mapping[str, int]]:
    """
    Total Added/Modified/Removed nested items per category across ``matches``.
    """

    totals: MutableMapping[str, MutableMapping[str, int]] = {}
    for match in matches:
        for category, result in match.nested.items():
            counts = totals.setdefault(category, {"Added": 0, "Modified": 0, "Removed": 0})
            counts["Added"] += len(result.added)
            counts["Modified"] += len(result.modified)
            counts["Removed"] += len(result.removed)
    return {category: dict(counts) for category, counts in totals.items()}


__all__ = ["summarize", "summarize_nested"]
