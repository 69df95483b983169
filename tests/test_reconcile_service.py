from __future__ import annotations

import pytest

from config import TestingConfig
from config.base import _coerce_bool
from config.field_mappings import DEFAULT_PROFILE, ReconcileConfigError
from sis_sync.reconcile import ReconciliationService


def test_from_testing_config_uses_builtin_profile():
    service = ReconciliationService.from_config(TestingConfig)

    assert service.profile is DEFAULT_PROFILE
    assert service.detect_removed_students is False
    assert service.detect_removed_contacts is False


def test_from_config_mapping_loads_profile_file(tmp_path):
    profile_yaml = tmp_path / "profile.yaml"
    profile_yaml.write_text(
        "key: file_profile\nentities:\n  students: {source_key: StudentNumber, target_key: local_id}\n",
        encoding="utf-8",
    )

    service = ReconciliationService.from_config(
        {
            "RECONCILE_MAPPING_PROFILE_PATH": str(profile_yaml),
            "RECONCILE_DETECT_REMOVED_STUDENTS": "true",
            "RECONCILE_DETECT_REMOVED_CONTACTS": "off",
        }
    )

    assert service.profile.key == "file_profile"
    assert service.detect_removed_students is True
    assert service.detect_removed_contacts is False


def test_from_config_with_bad_profile_path_raises(tmp_path):
    with pytest.raises(ReconcileConfigError):
        ReconciliationService.from_config({"RECONCILE_MAPPING_PROFILE_PATH": str(tmp_path / "nope.yaml")})


def test_service_applies_configured_removed_default(source_students, target_students):
    service = ReconciliationService(detect_removed_students=True)

    result = service.reconcile_students(source_students, target_students)
    assert result.detect_removed is True
    assert [match.match_key for match in result.removed] == ["1999"]

    overridden = service.reconcile_students(source_students, target_students, detect_removed=False)
    assert overridden.removed == ()
    assert overridden.summary.removed is None


def test_service_reconciles_contacts(contact_fixture):
    service = ReconciliationService.from_config()

    result = service.reconcile_contacts(
        contact_fixture["source_contacts"],
        contact_fixture["target_contacts"],
        source_children=contact_fixture["source_children"],
        target_children=contact_fixture["target_children"],
    )

    assert result.summary.updated == 2
    assert "Removed" not in result.to_dict()


def test_contacts_without_profile_entity_raise(tmp_path):
    profile_yaml = tmp_path / "students_only.yaml"
    profile_yaml.write_text("entities:\n  students: {source_key: StudentNumber}\n", encoding="utf-8")
    service = ReconciliationService.from_config({"RECONCILE_MAPPING_PROFILE_PATH": str(profile_yaml)})

    with pytest.raises(ReconcileConfigError):
        service.reconcile_contacts([], [])


@pytest.mark.parametrize(
    "value, expected",
    [("1", True), ("YES", True), ("on", True), ("0", False), ("no", False), (None, False), ("maybe", False)],
)
def test_coerce_bool(value, expected):
    assert _coerce_bool(value) is expected
