"""
Value normalization helpers used for field equality decisions.

Each ``FieldKind`` has exactly one normalizer. Normalizers are total: any
input produces either a comparable string token or ``None``, the single
canonical empty value. Original values are never modified; callers keep them
for display in change reports.
"""

from __future__ import annotations

import re
from datetime import date, datetime
from typing import Any, Callable, Iterable

from config.field_mappings import FieldKind, ReconcileConfigError

_WHITESPACE_RUN = re.compile(r"\s+")
_US_DATE = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{4})$")
_ISO_DATE = re.compile(r"^(\d{4}-\d{2}-\d{2})(?:[T ]\S*)?$")
_NON_DIGITS = re.compile(r"\D", re.ASCII)

_TRUE_TOKENS = frozenset({"1", "true"})
_FALSE_TOKENS = frozenset({"0", "false"})

Normalizer = Callable[[Any], "str | None"]


def _clean_text(value: object | None) -> str | None:
    if value is None:
        return None
    token = value.strip() if isinstance(value, str) else str(value).strip()
    return token or None


def normalize_string(value: object | None) -> str | None:
    """Trim surrounding whitespace; blank values collapse to ``None``."""

    return _clean_text(value)


def normalize_email(value: object | None) -> str | None:
    """
    Normalize email addresses for equality.

    - Trim whitespace
    - Case-fold the entire address
    """

    token = _clean_text(value)
    if token is None:
        return None
    return token.casefold()


def normalize_key(value: object | None) -> str | None:
    """
    Normalize identifiers and numbers to their string form.

    API responses return integers where CSV exports carry strings, so
    ``12345``, ``12345.0`` and ``"12345"`` all normalize to ``"12345"``.
    """

    if value is None:
        return None
    if isinstance(value, bool):
        return "1" if value else "0"
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return _clean_text(value)


def normalize_boolean(value: object | None) -> str | None:
    """
    Normalize flag values to ``"1"`` / ``"0"``.

    Accepts native booleans, ``1``/``0`` and the strings ``"1"``, ``"0"``,
    ``"true"`` and ``"false"`` (any case). Anything else is ambiguous and
    normalizes to ``None``.
    """

    if value is None:
        return None
    if isinstance(value, bool):
        return "1" if value else "0"
    if isinstance(value, (int, float)):
        if value == 1:
            return "1"
        if value == 0:
            return "0"
        return None
    token = _clean_text(value)
    if token is None:
        return None
    token = token.lower()
    if token in _TRUE_TOKENS:
        return "1"
    if token in _FALSE_TOKENS:
        return "0"
    return None


def normalize_phone(value: object | None) -> str | None:
    """
    Reduce phone numbers to their digit sequence.

    ``"(555) 123-4567"`` and ``"555-123-4567"`` both become ``"5551234567"``.
    """

    if value is None:
        return None
    digits = _NON_DIGITS.sub("", str(value))
    return digits or None


def normalize_address_part(value: object | None) -> str | None:
    """Trim, case-fold and collapse internal whitespace of one address constituent."""

    token = _clean_text(value)
    if token is None:
        return None
    return _WHITESPACE_RUN.sub(" ", token).casefold()


def normalize_date(value: object | None) -> str | None:
    """
    Normalize dates to ISO ``YYYY-MM-DD``.

    Handles ``date``/``datetime`` objects, ISO strings (with or without a time
    part) and US ``MM/DD/YYYY`` strings. Unparseable text is compared as a
    trimmed string.
    """

    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    token = _clean_text(value)
    if token is None:
        return None
    us_match = _US_DATE.match(token)
    if us_match:
        month, day, year = (int(part) for part in us_match.groups())
        try:
            return date(year, month, day).isoformat()
        except ValueError:
            return token
    iso_match = _ISO_DATE.match(token)
    if iso_match:
        try:
            return datetime.strptime(iso_match.group(1), "%Y-%m-%d").date().isoformat()
        except ValueError:
            return token
    return token


_NORMALIZERS: dict[FieldKind, Normalizer] = {
    FieldKind.STRING: normalize_string,
    FieldKind.EMAIL: normalize_email,
    FieldKind.KEY: normalize_key,
    FieldKind.NUMBER: normalize_key,
    FieldKind.BOOLEAN: normalize_boolean,
    FieldKind.PHONE: normalize_phone,
    FieldKind.ADDRESS: normalize_address_part,
    FieldKind.DATE: normalize_date,
}


def get_normalizer(kind: FieldKind | str) -> Normalizer:
    """
    Return the normalizer for ``kind``.

    Raises:
        ReconcileConfigError: ``kind`` is not a known field kind.
    """

    resolved = FieldKind.coerce(kind)
    try:
        return _NORMALIZERS[resolved]
    except KeyError as exc:  # pragma: no cover - every FieldKind is registered
        raise ReconcileConfigError(f"No normalizer registered for field kind '{resolved.value}'.") from exc


def normalize(value: object | None, kind: FieldKind | str = FieldKind.STRING) -> str | None:
    """Normalize ``value`` for comparison according to ``kind``."""

    return get_normalizer(kind)(value)


def address_key(parts: Iterable[object | None]) -> str | None:
    """
    Build the composite matching key for an address (street, city, postal code).

    Returns ``None`` when every constituent is blank.
    """

    normalized = [normalize_address_part(part) for part in parts]
    if not any(normalized):
        return None
    return "|".join(part or "" for part in normalized)


__all__ = [
    "address_key",
    "get_normalizer",
    "normalize",
    "normalize_address_part",
    "normalize_boolean",
    "normalize_date",
    "normalize_email",
    "normalize_key",
    "normalize_phone",
    "normalize_string",
]
