# sis_sync/models/enums.py
"""
Enums for reconciliation records.
"""

from enum import Enum as PyEnum


class EntityType(PyEnum):
    """Entity type carried by a typed record"""

    RECORD = "record"
    STUDENT = "student"
    CONTACT = "contact"
    EMAIL_ADDRESS = "email_address"
    PHONE_NUMBER = "phone_number"
    ADDRESS = "address"
    RELATIONSHIP = "relationship"
