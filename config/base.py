# config/base.py
import os


def _coerce_bool(value, default=False):
    """Convert environment-style truthy/falsey values to bool."""
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    value_str = str(value).strip().lower()
    if value_str in {"1", "true", "yes", "on"}:
        return True
    if value_str in {"0", "false", "no", "off"}:
        return False
    return default


class Config:
    # Reconciliation configuration
    RECONCILE_MAPPING_PROFILE_PATH = os.environ.get("RECONCILE_MAPPING_PROFILE_PATH")

    # Removed (target-only) detection is opt-in per entity type
    RECONCILE_DETECT_REMOVED_STUDENTS = _coerce_bool(
        os.environ.get("RECONCILE_DETECT_REMOVED_STUDENTS"),
        default=False,
    )
    RECONCILE_DETECT_REMOVED_CONTACTS = _coerce_bool(
        os.environ.get("RECONCILE_DETECT_REMOVED_CONTACTS"),
        default=False,
    )


class TestingConfig(Config):
    RECONCILE_MAPPING_PROFILE_PATH = None
    RECONCILE_DETECT_REMOVED_STUDENTS = False
    RECONCILE_DETECT_REMOVED_CONTACTS = False
