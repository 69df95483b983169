"""
Service facade holding the active mapping profile and per-entity defaults.

Callers construct one service at startup (usually via ``from_config``) and
reuse it for every run, so the profile is loaded once and passed by
reference into each reconciliation.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping

from config.base import _coerce_bool
from config.field_mappings import DEFAULT_PROFILE, MappingProfile, load_profile_file

from .contacts import ChildGroups, RecordLike, reconcile_contacts, reconcile_students
from .results import ReconciliationResult

logger = logging.getLogger(__name__)


def _config_value(config: Any, name: str, default: Any = None) -> Any:
    if config is None:
        return default
    if isinstance(config, Mapping):
        return config.get(name, default)
    return getattr(config, name, default)


class ReconciliationService:
    """Run student and contact reconciliations against one mapping profile."""

    def __init__(
        self,
        profile: MappingProfile | None = None,
        *,
        detect_removed_students: bool = False,
        detect_removed_contacts: bool = False,
    ) -> None:
        self.profile = profile or DEFAULT_PROFILE
        self.detect_removed_students = detect_removed_students
        self.detect_removed_contacts = detect_removed_contacts

    @classmethod
    def from_config(cls, config: Any = None) -> "ReconciliationService":
        """
        Build a service from a settings object or mapping (``config.Config`` style).

        ``RECONCILE_MAPPING_PROFILE_PATH`` selects a JSON/YAML profile file;
        without it the built-in profile is used.
        """

        profile_path = _config_value(config, "RECONCILE_MAPPING_PROFILE_PATH")
        profile = load_profile_file(profile_path) if profile_path else DEFAULT_PROFILE
        logger.debug(
            "Loaded reconciliation mapping profile %s (checksum=%s)",
            profile.key,
            profile.checksum,
            extra={"reconcile_profile": profile.key, "reconcile_profile_path": str(profile.path or "")},
        )
        return cls(
            profile,
            detect_removed_students=_coerce_bool(
                _config_value(config, "RECONCILE_DETECT_REMOVED_STUDENTS"), default=False
            ),
            detect_removed_contacts=_coerce_bool(
                _config_value(config, "RECONCILE_DETECT_REMOVED_CONTACTS"), default=False
            ),
        )

    def reconcile_students(
        self,
        source_students: Iterable[RecordLike],
        target_students: Iterable[RecordLike],
        *,
        detect_removed: bool | None = None,
    ) -> ReconciliationResult:
        if detect_removed is None:
            detect_removed = self.detect_removed_students
        return reconcile_students(
            source_students,
            target_students,
            profile=self.profile,
            detect_removed=detect_removed,
        )

    def reconcile_contacts(
        self,
        source_contacts: Iterable[RecordLike],
        target_contacts: Iterable[RecordLike],
        *,
        source_children: ChildGroups | None = None,
        target_children: ChildGroups | None = None,
        detect_removed: bool | None = None,
    ) -> ReconciliationResult:
        if detect_removed is None:
            detect_removed = self.detect_removed_contacts
        return reconcile_contacts(
            source_contacts,
            target_contacts,
            source_children=source_children,
            target_children=target_children,
            profile=self.profile,
            detect_removed=detect_removed,
        )


__all__ = ["ReconciliationService"]
