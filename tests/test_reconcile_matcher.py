from __future__ import annotations

import logging

from sis_sync.models import Record
from sis_sync.reconcile import KeyIndex, build_index, resolve_key
from sis_sync.reconcile.matcher import field_key


def test_resolve_key_normalizes_types():
    assert resolve_key({"person_id": 12345}, "person_id") == "12345"
    assert resolve_key({"ContactID": " 12345 "}, "ContactID") == "12345"
    assert resolve_key({"ContactID": ""}, "ContactID") is None
    assert resolve_key({}, "ContactID") is None


def test_build_index_matches_string_source_key_to_integer_target_key():
    index = build_index([{"person_id": 12345, "person_firstname": "John"}], "person_id")

    assert resolve_key({"ContactID": "12345"}, "ContactID") in index
    assert index["12345"].get("person_firstname") == "John"


def test_build_index_skips_blank_keys_with_warning(caplog):
    warnings = []
    with caplog.at_level(logging.WARNING, logger="sis_sync.reconcile.matcher"):
        index = build_index(
            [{"person_id": None}, {"person_id": 7}],
            "person_id",
            entity="contacts",
            warnings=warnings,
        )

    assert list(index) == ["7"]
    assert [warning.code for warning in warnings] == ["target_key_missing"]
    assert warnings[0].index == 0
    assert any(getattr(record, "reconcile_warning_code", None) == "target_key_missing" for record in caplog.records)


def test_duplicate_target_keys_keep_first_record():
    warnings = []
    index = KeyIndex(
        [Record({"id": "1", "name": "first"}), Record({"id": 1, "name": "second"})],
        field_key("id"),
        entity="contacts",
        key_label="id",
        warnings=warnings,
    )

    assert len(index) == 2
    assert index.get("1").get("name") == "first"
    assert [warning.code for warning in warnings] == ["target_key_duplicate"]
    assert warnings[0].key == "1"


def test_unmatched_reports_entries_in_input_order():
    index = KeyIndex(
        [Record({"id": "1"}), Record({"id": "2"}), Record({"id": "1"}), Record({"id": "3"})],
        field_key("id"),
    )

    assert index.match("1") is not None
    assert index.match("missing") is None

    assert [key for key, _ in index.unmatched()] == ["2", "1", "3"]
    assert [key for key, _ in index.unmatched(distinct_keys=True)] == ["2", "3"]


def test_get_does_not_mark_matched():
    index = KeyIndex([Record({"id": "9"})], field_key("id"))

    assert index.get("9") is not None
    assert [key for key, _ in index.unmatched()] == ["9"]
