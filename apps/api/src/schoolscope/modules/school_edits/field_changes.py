"""
Field Change Validation

A proposal names one ``EditableField`` and a new value. ``parse_field_change``
turns the raw request strings into a validated ``FieldChange`` or raises
``FieldChangeError``; nothing else in the workflow accepts a bare field name.
"""

import re
from collections.abc import Callable
from dataclasses import dataclass

from pydantic import EmailStr, HttpUrl, TypeAdapter, ValidationError

from schoolscope.modules.schools.models import EditableField

MAX_VALUE_LENGTH = 500

AUSTRALIAN_STATES = frozenset({"ACT", "NSW", "NT", "QLD", "SA", "TAS", "VIC", "WA"})

# Columns narrower than MAX_VALUE_LENGTH
_COLUMN_LENGTHS = {
    EditableField.NAME: 200,
    EditableField.SUBURB: 100,
    EditableField.EMAIL: 255,
    EditableField.PRINCIPAL_NAME: 200,
}

_POSTCODE_RE = re.compile(r"^\d{4}$")
_PHONE_RE = re.compile(r"^[0-9+\-() ]{6,20}$")

_email_adapter = TypeAdapter(EmailStr)
_url_adapter = TypeAdapter(HttpUrl)


class FieldChangeError(ValueError):
    """Raised when a proposed field or value is not acceptable."""

    def __init__(self, message: str, error_code: str = "INVALID_VALUE"):
        self.message = message
        self.error_code = error_code
        super().__init__(message)


@dataclass(frozen=True)
class FieldChange:
    """A validated change to one editable school attribute."""

    field: EditableField
    value: str


def _validate_state(value: str) -> str:
    state = value.upper()
    if state not in AUSTRALIAN_STATES:
        raise FieldChangeError(
            f"state must be one of: {', '.join(sorted(AUSTRALIAN_STATES))}"
        )
    return state


def _validate_postcode(value: str) -> str:
    if not _POSTCODE_RE.match(value):
        raise FieldChangeError("postcode must be exactly four digits")
    return value


def _validate_phone(value: str) -> str:
    if not _PHONE_RE.match(value):
        raise FieldChangeError(
            "phone may only contain digits, spaces and + - ( ) and be 6-20 characters long"
        )
    return value


def _validate_email(value: str) -> str:
    try:
        _email_adapter.validate_python(value)
    except ValidationError as e:
        raise FieldChangeError("email must be a valid email address") from e
    return value


def _validate_website(value: str) -> str:
    try:
        _url_adapter.validate_python(value)
    except ValidationError as e:
        raise FieldChangeError("website must be an http:// or https:// URL") from e
    return value


_VALIDATORS: dict[EditableField, Callable[[str], str]] = {
    EditableField.STATE: _validate_state,
    EditableField.POSTCODE: _validate_postcode,
    EditableField.PHONE: _validate_phone,
    EditableField.EMAIL: _validate_email,
    EditableField.WEBSITE: _validate_website,
}


def parse_field(field: str) -> EditableField:
    """
    Resolve a field name to an EditableField.

    Raises:
        FieldChangeError: If the name is not an editable school attribute
    """
    try:
        return EditableField(field)
    except ValueError as e:
        allowed = ", ".join(f.value for f in EditableField)
        raise FieldChangeError(
            f"'{field}' is not an editable school field. Editable fields: {allowed}",
            error_code="INVALID_FIELD",
        ) from e


def parse_field_change(field: str, value: str | None) -> FieldChange:
    """
    Validate a proposed change.

    Values are stripped of surrounding whitespace, must be non-empty and at
    most MAX_VALUE_LENGTH characters, and must satisfy the field's format
    rule where one exists.

    Args:
        field: Raw field name from the request
        value: Raw proposed value

    Returns:
        The validated FieldChange

    Raises:
        FieldChangeError: If the field or value is rejected
    """
    editable = parse_field(field)

    cleaned = (value or "").strip()
    if not cleaned:
        raise FieldChangeError("new_value is required")
    if len(cleaned) > MAX_VALUE_LENGTH:
        raise FieldChangeError(f"new_value must be at most {MAX_VALUE_LENGTH} characters")

    max_length = _COLUMN_LENGTHS.get(editable)
    if max_length is not None and len(cleaned) > max_length:
        raise FieldChangeError(f"{editable.value} must be at most {max_length} characters")

    validator = _VALIDATORS.get(editable)
    if validator is not None:
        cleaned = validator(cleaned)

    return FieldChange(field=editable, value=cleaned)
