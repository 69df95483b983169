"""
Field-mapping profile configuration for source/target reconciliation.

The reconciler loads this module to learn which source fields are compared
against which target fields, how each value is normalized before comparison,
and which fields identify a record (or a nested item) on each side.

Configuration is file-backed so a district can adjust the comparison without
code changes. Operators can override the built-in profile by providing a JSON
or YAML file path through the ``RECONCILE_MAPPING_PROFILE_PATH`` environment
variable. The helpers exposed here handle loading and validating those
overrides.
"""

from __future__ import annotations

import hashlib
import json
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Iterable, Mapping, MutableMapping, Sequence

import yaml


class ReconcileConfigError(RuntimeError):
    """Raised when a mapping profile is structurally invalid or cannot be loaded."""


# ---------------------------------------------------------------------------
# Data structures
# ---------------------------------------------------------------------------


class FieldKind(str, Enum):
    """Normalization rule applied to a field before equality comparison."""

    STRING = "string"
    EMAIL = "email"
    KEY = "key"
    NUMBER = "number"
    BOOLEAN = "boolean"
    PHONE = "phone"
    ADDRESS = "address"
    DATE = "date"

    @classmethod
    def coerce(cls, value: "FieldKind | str | None") -> "FieldKind":
        if isinstance(value, FieldKind):
            return value
        if value is None:
            return cls.STRING
        token = str(value).strip().lower()
        if not token:
            return cls.STRING
        try:
            return cls(token)
        except ValueError as exc:
            raise ReconcileConfigError(f"Unknown field kind '{value}'.") from exc


@dataclass(frozen=True)
class FieldSpec:
    """
    One compared field.

    Attributes:
        source: Field name on the CSV-derived source record.
        target: Field name on the API-derived target record.
        kind: Normalization rule used for both sides.
    """

    source: str
    target: str
    kind: FieldKind = FieldKind.STRING


@dataclass(frozen=True)
class EntityMapping:
    """Top-level entity comparison rules (students, contacts)."""

    name: str
    source_key: str
    target_key: str
    fields: Sequence[FieldSpec]

    @property
    def fields_to_check(self) -> tuple[str, ...]:
        return tuple(spec.source for spec in self.fields)

    @property
    def field_mapping(self) -> dict[str, str]:
        return {spec.source: spec.target for spec in self.fields}

    @property
    def field_kinds(self) -> dict[str, FieldKind]:
        return {spec.source: spec.kind for spec in self.fields}


@dataclass(frozen=True)
class CategoryMapping:
    """
    Comparison rules for one nested collection of a composite entity.

    ``key_fields`` lists the fields whose normalized values form the item's
    match key; more than one entry builds a composite key. ``key_kind``
    selects the normalization for the key parts.
    """

    name: str
    result_name: str
    source_parent_field: str
    target_parent_field: str
    key_fields: Sequence[FieldSpec]
    key_kind: FieldKind
    fields: Sequence[FieldSpec]


@dataclass(frozen=True)
class MappingProfile:
    """Container for every entity and nested-category mapping."""

    key: str
    label: str
    entities: Mapping[str, EntityMapping]
    categories: Mapping[str, CategoryMapping]
    checksum: str | None = None
    path: Path | None = None

    def entity(self, name: str) -> EntityMapping:
        try:
            return self.entities[name]
        except KeyError as exc:
            raise ReconcileConfigError(f"Mapping profile '{self.key}' has no entity '{name}'.") from exc

    def category(self, name: str) -> CategoryMapping:
        try:
            return self.categories[name]
        except KeyError as exc:
            raise ReconcileConfigError(f"Mapping profile '{self.key}' has no nested category '{name}'.") from exc


# ---------------------------------------------------------------------------
# Default profile
# ---------------------------------------------------------------------------

STUDENT_FIELDS: tuple[FieldSpec, ...] = (
    FieldSpec("FirstName", "first_name"),
    FieldSpec("MiddleName", "middle_name"),
    FieldSpec("LastName", "last_name"),
    FieldSpec("DOB", "dob", FieldKind.DATE),
    FieldSpec("Gender", "gender"),
    FieldSpec("GradeLevel", "grade_level", FieldKind.NUMBER),
    FieldSpec("SchoolNumber", "school_number", FieldKind.KEY),
    FieldSpec("EnrollStatus", "enroll_status", FieldKind.NUMBER),
)

CONTACT_FIELDS: tuple[FieldSpec, ...] = (
    FieldSpec("FirstName", "person_firstname"),
    FieldSpec("MiddleName", "person_middlename"),
    FieldSpec("LastName", "person_lastname"),
    FieldSpec("Gender", "person_gender_code"),
    FieldSpec("Employer", "person_employer"),
    FieldSpec("IsActive", "person_isactive", FieldKind.BOOLEAN),
)

EMAIL_CATEGORY = CategoryMapping(
    name="email",
    result_name="EmailChanges",
    source_parent_field="ContactID",
    target_parent_field="person_id",
    key_fields=(FieldSpec("EmailAddress", "emailaddress", FieldKind.EMAIL),),
    key_kind=FieldKind.EMAIL,
    fields=(
        FieldSpec("EmailType", "emailaddress_type"),
        FieldSpec("IsPrimary", "isprimary", FieldKind.BOOLEAN),
    ),
)

PHONE_CATEGORY = CategoryMapping(
    name="phone",
    result_name="PhoneChanges",
    source_parent_field="ContactID",
    target_parent_field="person_id",
    key_fields=(FieldSpec("PhoneNumber", "phonenumber", FieldKind.PHONE),),
    key_kind=FieldKind.PHONE,
    fields=(
        FieldSpec("PhoneType", "phone_type"),
        FieldSpec("PhoneNumberExt", "phonenumberext"),
        FieldSpec("IsPrimary", "isprimary", FieldKind.BOOLEAN),
        FieldSpec("IsSMS", "issms", FieldKind.BOOLEAN),
    ),
)

ADDRESS_CATEGORY = CategoryMapping(
    name="address",
    result_name="AddressChanges",
    source_parent_field="ContactID",
    target_parent_field="person_id",
    key_fields=(
        FieldSpec("Street", "street", FieldKind.ADDRESS),
        FieldSpec("City", "city", FieldKind.ADDRESS),
        FieldSpec("PostalCode", "postal_code", FieldKind.ADDRESS),
    ),
    key_kind=FieldKind.ADDRESS,
    fields=(
        FieldSpec("Street", "street"),
        FieldSpec("LineTwo", "linetwo"),
        FieldSpec("Unit", "unit"),
        FieldSpec("City", "city"),
        FieldSpec("State", "state_code"),
        FieldSpec("PostalCode", "postal_code"),
        FieldSpec("AddressType", "address_type"),
    ),
)

RELATIONSHIP_CATEGORY = CategoryMapping(
    name="relationship",
    result_name="RelationshipChanges",
    source_parent_field="ContactID",
    target_parent_field="person_id",
    key_fields=(FieldSpec("StudentNumber", "student_number", FieldKind.KEY),),
    key_kind=FieldKind.KEY,
    fields=(
        FieldSpec("Relationship", "relationship_type"),
        FieldSpec("ContactPriorityOrder", "contactpriorityorder", FieldKind.NUMBER),
        FieldSpec("IsCustodial", "iscustodial", FieldKind.BOOLEAN),
        FieldSpec("LivesWith", "liveswith", FieldKind.BOOLEAN),
        FieldSpec("SchoolPickup", "schoolpickup", FieldKind.BOOLEAN),
        FieldSpec("IsEmergency", "isemergency", FieldKind.BOOLEAN),
        FieldSpec("ReceivesMail", "receivesmailings", FieldKind.BOOLEAN),
    ),
)

DEFAULT_PROFILE = MappingProfile(
    key="default",
    label="Default SIS reconciliation",
    entities={
        "students": EntityMapping("students", "StudentNumber", "local_id", STUDENT_FIELDS),
        "contacts": EntityMapping("contacts", "ContactID", "person_id", CONTACT_FIELDS),
    },
    categories={
        category.name: category
        for category in (EMAIL_CATEGORY, PHONE_CATEGORY, ADDRESS_CATEGORY, RELATIONSHIP_CATEGORY)
    },
)


# ---------------------------------------------------------------------------
# Loading helpers
# ---------------------------------------------------------------------------


def _load_override(path: Path) -> MutableMapping[str, Any]:
    if not path.exists():
        raise ReconcileConfigError(f"Mapping profile file {path} does not exist.")
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:  # pragma: no cover - filesystem failure
        raise ReconcileConfigError(f"Unable to read mapping profile file {path}: {exc}") from exc

    try:
        if path.suffix.lower() in {".yaml", ".yml"}:
            data = yaml.safe_load(text)
        else:
            data = json.loads(text)
    except (yaml.YAMLError, json.JSONDecodeError) as exc:
        raise ReconcileConfigError(f"Failed to parse mapping profile at {path}: {exc}") from exc

    if not isinstance(data, Mapping):
        raise ReconcileConfigError("Mapping profile must be a JSON/YAML object.")
    return dict(data)


def _compute_checksum(payload: Mapping[str, Any]) -> str:
    serialized = json.dumps(payload, sort_keys=True, default=str).encode("utf-8")
    return hashlib.sha256(serialized).hexdigest()


def _require_name(raw: Mapping[str, Any], attribute: str, context: str) -> str:
    value = str(raw.get(attribute) or "").strip()
    if not value:
        raise ReconcileConfigError(f"{context} requires a non-empty '{attribute}'.")
    return value


def _coerce_field_spec(raw: object, *, context: str, default_kind: FieldKind = FieldKind.STRING) -> FieldSpec:
    if isinstance(raw, str):
        name = raw.strip()
        if not name:
            raise ReconcileConfigError(f"{context} contains an empty field name.")
        return FieldSpec(source=name, target=name, kind=default_kind)
    if not isinstance(raw, Mapping):
        raise ReconcileConfigError(f"Field definition in {context} must be a mapping, got {raw!r}")
    source = _require_name(raw, "source", f"Field in {context}")
    target = str(raw.get("target") or "").strip() or source
    kind = FieldKind.coerce(raw.get("kind") or default_kind)
    return FieldSpec(source=source, target=target, kind=kind)


def _coerce_field_specs(
    value: object | None,
    *,
    context: str,
    default_kind: FieldKind = FieldKind.STRING,
) -> tuple[FieldSpec, ...]:
    if value is None:
        return ()
    if not isinstance(value, Sequence) or isinstance(value, (str, bytes)):
        raise ReconcileConfigError(f"Expected sequence of fields for {context}, got {type(value).__name__}.")
    specs = tuple(_coerce_field_spec(item, context=context, default_kind=default_kind) for item in value)
    seen: set[str] = set()
    for spec in specs:
        if spec.source in seen:
            raise ReconcileConfigError(f"Duplicate source field '{spec.source}' in {context}.")
        seen.add(spec.source)
    return specs


def _coerce_entity(name: str, raw: Mapping[str, Any]) -> EntityMapping:
    context = f"entity '{name}'"
    source_key = _require_name(raw, "source_key", context.capitalize())
    target_key = str(raw.get("target_key") or "").strip() or source_key
    fields = _coerce_field_specs(raw.get("fields"), context=context)
    return EntityMapping(name=name, source_key=source_key, target_key=target_key, fields=fields)


def _coerce_category(name: str, raw: Mapping[str, Any]) -> CategoryMapping:
    context = f"category '{name}'"
    key_kind = FieldKind.coerce(raw.get("key_kind"))
    key_fields = _coerce_field_specs(raw.get("key_fields"), context=f"{context}.key_fields", default_kind=key_kind)
    if not key_fields:
        raise ReconcileConfigError(f"Category '{name}' requires at least one key field.")
    source_parent = _require_name(raw, "source_parent_field", context.capitalize())
    target_parent = str(raw.get("target_parent_field") or "").strip() or source_parent
    result_name = str(raw.get("result_name") or "").strip() or f"{name.title()}Changes"
    return CategoryMapping(
        name=name,
        result_name=result_name,
        source_parent_field=source_parent,
        target_parent_field=target_parent,
        key_fields=key_fields,
        key_kind=key_kind,
        fields=_coerce_field_specs(raw.get("fields"), context=context),
    )


def _coerce_named_mappings(value: object | None, *, item_name: str) -> Iterable[tuple[str, Mapping[str, Any]]]:
    if value is None:
        return ()
    if not isinstance(value, Mapping):
        raise ReconcileConfigError(f"{item_name} must be a mapping keyed by name.")
    pairs = []
    for name, body in value.items():
        key = str(name or "").strip()
        if not key:
            raise ReconcileConfigError(f"{item_name} entry missing name.")
        if not isinstance(body, Mapping):
            raise ReconcileConfigError(f"{item_name} '{key}' must be a mapping.")
        pairs.append((key, body))
    return pairs


def _coerce_profile(raw: Mapping[str, Any], *, path: Path | None = None) -> MappingProfile:
    key = str(raw.get("key") or DEFAULT_PROFILE.key).strip() or DEFAULT_PROFILE.key
    label = str(raw.get("label") or DEFAULT_PROFILE.label).strip() or DEFAULT_PROFILE.label
    entities = {
        name: _coerce_entity(name, body)
        for name, body in _coerce_named_mappings(raw.get("entities"), item_name="entities")
    }
    categories = {
        name: _coerce_category(name, body)
        for name, body in _coerce_named_mappings(raw.get("categories"), item_name="categories")
    }
    if not entities:
        raise ReconcileConfigError("Mapping profile must define at least one entity.")
    return MappingProfile(
        key=key,
        label=label,
        entities=entities,
        categories=categories,
        checksum=_compute_checksum(raw),
        path=path,
    )


def load_profile_file(path: str | Path) -> MappingProfile:
    """
    Load and validate a JSON/YAML mapping profile.
    """

    path = Path(path)
    raw = _load_override(path)
    return _coerce_profile(raw, path=path)


def load_profile(env: Mapping[str, str] | None = None) -> MappingProfile:
    """
    Load the active mapping profile.

    If ``RECONCILE_MAPPING_PROFILE_PATH`` is set in ``env``, its JSON/YAML
    content replaces the built-in profile. Otherwise the defaults are used.
    """

    env_map = env or {}
    override_path = env_map.get("RECONCILE_MAPPING_PROFILE_PATH")
    if not override_path:
        return DEFAULT_PROFILE
    return load_profile_file(override_path)


__all__ = [
    "CategoryMapping",
    "DEFAULT_PROFILE",
    "EntityMapping",
    "FieldKind",
    "FieldSpec",
    "MappingProfile",
    "ReconcileConfigError",
    "load_profile",
    "load_profile_file",
]
