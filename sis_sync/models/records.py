# sis_sync/models/records.py
"""
Typed record wrappers: Student, Contact, and the contact's nested items.

Source records come from CSV normalization and target records from the SIS
API; both are open field -> value mappings with different naming
conventions. The wrappers give every entity the same read-only ``get``
accessor so the differ and matchers stay entity-agnostic.
"""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, ClassVar, Mapping

from .enums import EntityType


@dataclass(frozen=True)
class Record:
    """Read-only view over one source or target record."""

    values: Mapping[str, Any]

    entity: ClassVar[EntityType] = EntityType.RECORD

    def __post_init__(self):
        if not isinstance(self.values, MappingProxyType):
            object.__setattr__(self, "values", MappingProxyType(self.values))

    def get(self, field_name: str, default: Any = None) -> Any:
        return self.values.get(field_name, default)

    def has_field(self, field_name: str) -> bool:
        return field_name in self.values

    def as_dict(self) -> dict[str, Any]:
        return dict(self.values)

    def __repr__(self):
        return f"<{type(self).__name__} {len(self.values)} fields>"


class StudentRecord(Record):
    """Student enrollment record"""

    entity = EntityType.STUDENT


class ContactRecord(Record):
    """Contact (guardian / emergency contact) core record"""

    entity = EntityType.CONTACT


class EmailAddressRecord(Record):
    """Email address belonging to a contact"""

    entity = EntityType.EMAIL_ADDRESS


class PhoneNumberRecord(Record):
    """Phone number belonging to a contact"""

    entity = EntityType.PHONE_NUMBER


class AddressRecord(Record):
    """Postal address belonging to a contact"""

    entity = EntityType.ADDRESS


class RelationshipRecord(Record):
    """Student/contact relationship belonging to a contact"""

    entity = EntityType.RELATIONSHIP


# Profile entity / category names -> record class
RECORD_TYPES: dict[str, type[Record]] = {
    "students": StudentRecord,
    "contacts": ContactRecord,
    "email": EmailAddressRecord,
    "phone": PhoneNumberRecord,
    "address": AddressRecord,
    "relationship": RelationshipRecord,
}


def as_record(value: Record | Mapping[str, Any], record_type: type[Record] = Record) -> Record:
    """
    Wrap a plain mapping in ``record_type``; typed records pass through unchanged.
    """

    if isinstance(value, Record):
        return value
    if isinstance(value, Mapping):
        return record_type(value)
    raise TypeError(f"Expected a mapping or Record, got {type(value).__name__}")


def record_type_for(name: str) -> type[Record]:
    return RECORD_TYPES.get(name, Record)
