# conftest.py

import pytest

from config.field_mappings import DEFAULT_PROFILE


@pytest.fixture
def profile():
    """Built-in mapping profile used by most reconciliation tests"""
    return DEFAULT_PROFILE


@pytest.fixture(autouse=True)
def _clear_reconcile_env(monkeypatch):
    """Keep developer .env settings from leaking into tests"""
    for name in (
        "RECONCILE_MAPPING_PROFILE_PATH",
        "RECONCILE_DETECT_REMOVED_STUDENTS",
        "RECONCILE_DETECT_REMOVED_CONTACTS",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def source_students():
    return [
        {
            "StudentNumber": "1001",
            "FirstName": "Ava",
            "LastName": "Nguyen",
            "DOB": "2012-04-09",
            "GradeLevel": "6",
            "SchoolNumber": "310",
            "EnrollStatus": "0",
        },
        {
            "StudentNumber": "1002",
            "FirstName": "Mateo",
            "LastName": "Garcia",
            "DOB": "04/22/2011",
            "GradeLevel": "8",
            "SchoolNumber": "310",
            "EnrollStatus": "0",
        },
        {
            "StudentNumber": "1003",
            "FirstName": "Lena",
            "LastName": "Okafor",
            "DOB": "2013-01-15",
            "GradeLevel": "5",
            "SchoolNumber": "220",
            "EnrollStatus": "0",
        },
    ]


@pytest.fixture
def target_students():
    return [
        {
            "local_id": 1001,
            "first_name": "Ava",
            "last_name": "Nguyen",
            "dob": "2012-04-09",
            "grade_level": 6,
            "school_number": 310,
            "enroll_status": 0,
        },
        {
            "local_id": 1002,
            "first_name": "Mateo",
            "last_name": "Garcia",
            "dob": "2011-04-22",
            "grade_level": 7,
            "school_number": 310,
            "enroll_status": 0,
        },
        {
            "local_id": 1999,
            "first_name": "Former",
            "last_name": "Student",
            "grade_level": 12,
            "school_number": 500,
            "enroll_status": 2,
        },
    ]


@pytest.fixture
def contact_fixture():
    """Source/target contacts with nested collections for composite reconciliation"""
    source_contacts = [
        {"ContactID": "12345", "FirstName": "Jane", "LastName": "Doe", "IsActive": "true"},
        {"ContactID": "23456", "FirstName": "Omar", "LastName": "Haddad", "IsActive": "true"},
        {"ContactID": "34567", "FirstName": "Priya", "LastName": "Shah", "IsActive": "1"},
    ]
    target_contacts = [
        {"person_id": 12345, "person_firstname": "Jane", "person_lastname": "Doe", "person_isactive": 1},
        {"person_id": 23456, "person_firstname": "Omar", "person_lastname": "Haddad", "person_isactive": True},
    ]
    source_children = {
        "email": [
            {"ContactID": "12345", "EmailAddress": "Jane.Doe@Example.com", "EmailType": "Personal", "IsPrimary": "1"},
            {"ContactID": "12345", "EmailAddress": "john.doe@example.com", "EmailType": "Work", "IsPrimary": "0"},
            {"ContactID": "34567", "EmailAddress": "priya@example.com", "EmailType": "Personal", "IsPrimary": "1"},
        ],
        "phone": [
            {"ContactID": "12345", "PhoneNumber": "555-123-4567", "PhoneType": "Mobile", "IsPrimary": "1", "IsSMS": "1"},
            {"ContactID": "23456", "PhoneNumber": "555-987-6543", "PhoneType": "Home", "IsPrimary": "1", "IsSMS": "0"},
        ],
        "address": [
            {
                "ContactID": "23456",
                "Street": "12 Elm St",
                "LineTwo": "Apt 4",
                "City": "Springfield",
                "State": "IL",
                "PostalCode": "62701",
                "AddressType": "Home",
            },
        ],
        "relationship": [
            {"ContactID": "12345", "StudentNumber": "1001", "Relationship": "Mother", "IsCustodial": "1", "LivesWith": "1"},
        ],
    }
    target_children = {
        "email": [
            {"person_id": 12345, "emailaddress": "jane.doe@example.com", "emailaddress_type": "Personal", "isprimary": 1},
        ],
        "phone": [
            {"person_id": 12345, "phonenumber": "(555) 123-4567", "phone_type": "Mobile", "isprimary": 1, "issms": 1},
            {"person_id": 23456, "phonenumber": "555.987.6543", "phone_type": "Home", "isprimary": 1, "issms": 0},
            {"person_id": 23456, "phonenumber": "555-000-1111", "phone_type": "Work", "isprimary": 0, "issms": 0},
        ],
        "address": [
            {
                "person_id": 23456,
                "street": "12 Elm St",
                "linetwo": None,
                "city": "Springfield",
                "state_code": "IL",
                "postal_code": "62701",
                "address_type": "Home",
            },
        ],
        "relationship": [
            {"person_id": 12345, "student_number": 1001, "relationship_type": "Mother", "iscustodial": True, "liveswith": 1},
        ],
    }
    return {
        "source_contacts": source_contacts,
        "target_contacts": target_contacts,
        "source_children": source_children,
        "target_children": target_children,
    }
