# sis_sync/models/__init__.py
"""
Record models package
"""

from .enums import EntityType
from .records import (
    RECORD_TYPES,
    AddressRecord,
    ContactRecord,
    EmailAddressRecord,
    PhoneNumberRecord,
    Record,
    RelationshipRecord,
    StudentRecord,
    as_record,
    record_type_for,
)

__all__ = [
    "EntityType",
    "RECORD_TYPES",
    "Record",
    "StudentRecord",
    "ContactRecord",
    "EmailAddressRecord",
    "PhoneNumberRecord",
    "AddressRecord",
    "RelationshipRecord",
    "as_record",
    "record_type_for",
]
