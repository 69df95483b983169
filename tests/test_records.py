from __future__ import annotations

import dataclasses

import pytest

from sis_sync.models import (
    ContactRecord,
    EntityType,
    PhoneNumberRecord,
    Record,
    RelationshipRecord,
    as_record,
    record_type_for,
)


def test_record_get_and_has_field():
    record = ContactRecord({"ContactID": "12345", "MiddleName": None})

    assert record.get("ContactID") == "12345"
    assert record.get("Missing") is None
    assert record.get("Missing", "n/a") == "n/a"
    assert record.has_field("MiddleName")
    assert not record.has_field("Missing")
    assert record.entity is EntityType.CONTACT


def test_record_is_read_only():
    record = Record({"a": 1})

    with pytest.raises(TypeError):
        record.values["a"] = 2
    with pytest.raises(dataclasses.FrozenInstanceError):
        record.values = {}


def test_as_dict_returns_copy():
    record = Record({"a": 1})

    copy = record.as_dict()
    copy["a"] = 2
    assert record.get("a") == 1


def test_as_record_wraps_mappings_and_passes_records_through():
    phone = PhoneNumberRecord({"PhoneNumber": "555"})

    assert as_record(phone, ContactRecord) is phone
    wrapped = as_record({"StudentNumber": "1"}, RelationshipRecord)
    assert isinstance(wrapped, RelationshipRecord)
    with pytest.raises(TypeError):
        as_record(["not", "a", "mapping"])


def test_record_type_for_known_and_unknown_names():
    assert record_type_for("phone") is PhoneNumberRecord
    assert record_type_for("contacts") is ContactRecord
    assert record_type_for("whatever") is Record


def test_repr_is_compact():
    assert repr(ContactRecord({"a": 1, "b": 2})) == "<ContactRecord 2 fields>"
