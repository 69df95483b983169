from __future__ import annotations

from datetime import date, datetime

import pytest

from config.field_mappings import FieldKind, ReconcileConfigError
from sis_sync.reconcile.normalize import (
    address_key,
    normalize,
    normalize_boolean,
    normalize_date,
    normalize_email,
    normalize_key,
    normalize_phone,
)


@pytest.mark.parametrize("value", [None, "", "   ", "\t\n"])
def test_blank_values_normalize_to_none_for_every_kind(value):
    for kind in FieldKind:
        assert normalize(value, kind) is None


def test_string_normalization_trims_but_keeps_case():
    assert normalize(" John ") == "John"
    assert normalize("Doe ", "string") == "Doe"
    assert normalize("DOE") != normalize("doe")


def test_email_normalization_is_case_insensitive():
    assert normalize_email("  Jane.Doe@Example.COM ") == "jane.doe@example.com"
    assert normalize_email("jane+district@example.com") == "jane+district@example.com"


@pytest.mark.parametrize(
    "value, expected",
    [
        (12345, "12345"),
        ("12345", "12345"),
        (" 12345 ", "12345"),
        (12345.0, "12345"),
        (True, "1"),
        (False, "0"),
        ("A-77", "A-77"),
    ],
)
def test_key_normalization_is_type_tolerant(value, expected):
    assert normalize_key(value) == expected


def test_number_kind_matches_integer_and_string_forms():
    assert normalize(6, FieldKind.NUMBER) == normalize("6", FieldKind.NUMBER)
    assert normalize(7, FieldKind.NUMBER) != normalize("8", FieldKind.NUMBER)


@pytest.mark.parametrize(
    "value, expected",
    [
        (True, "1"),
        (False, "0"),
        (1, "1"),
        (0, "0"),
        ("1", "1"),
        ("0", "0"),
        ("TRUE", "1"),
        (" false ", "0"),
        ("yes", None),
        (2, None),
    ],
)
def test_boolean_normalization(value, expected):
    assert normalize_boolean(value) == expected


def test_phone_normalization_keeps_digits_only():
    assert normalize_phone("555-123-4567") == "5551234567"
    assert normalize_phone("(555) 123-4567") == "5551234567"
    assert normalize_phone("555.123.4567") == "5551234567"
    assert normalize_phone(5551234567) == "5551234567"
    assert normalize_phone("n/a") is None


def test_date_normalization_accepts_common_formats():
    assert normalize_date("2012-04-09") == "2012-04-09"
    assert normalize_date("04/09/2012") == "2012-04-09"
    assert normalize_date("4/9/2012") == "2012-04-09"
    assert normalize_date("2012-04-09T00:00:00Z") == "2012-04-09"
    assert normalize_date(date(2012, 4, 9)) == "2012-04-09"
    assert normalize_date(datetime(2012, 4, 9, 13, 30)) == "2012-04-09"


def test_unparseable_date_compares_as_trimmed_text():
    assert normalize_date(" sometime in May ") == "sometime in May"
    assert normalize_date("13/45/2012") == "13/45/2012"


def test_address_part_collapses_whitespace_and_case():
    assert normalize("  12   Elm  St ", FieldKind.ADDRESS) == "12 elm st"


def test_address_key_joins_normalized_parts():
    assert address_key(["12 Elm St", "Springfield", "62701"]) == "12 elm st|springfield|62701"
    assert address_key(["12 ELM ST ", " springfield", "62701"]) == "12 elm st|springfield|62701"
    assert address_key(["12 Elm St", None, "62701"]) == "12 elm st||62701"


def test_address_key_is_none_when_every_part_is_blank():
    assert address_key([None, "", "  "]) is None


def test_unknown_kind_raises_config_error():
    with pytest.raises(ReconcileConfigError):
        normalize("value", "currency")


def test_phone_normalization_ignores_non_ascii_digits():
    assert normalize_phone("５５５-１２３-４５６７") is None
    assert normalize_phone("555-123-4567 ext ²") == "5551234567"


def test_compact_iso_dates_are_compared_as_text():
    assert normalize_date("20120409") == "20120409"
    assert normalize_date("2012-04-09 08:15:00") == "2012-04-09"
    assert normalize_date("2012-02-30") == "2012-02-30"
