"""Field registry: type validation, display formatting and label lookup.

Every ``FieldType`` has exactly one validator and one formatter. The handler
tables are checked against the enum at import time, so adding a new field
type without handling it fails loudly instead of falling through.
"""

import json
import math
import re
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Callable

from shared_types import FieldType, Priority

from .sections import PROFILE_SECTIONS, FieldDefinition, SectionDefinition, is_empty

PHONE_FIELDS = {"primary_mobile", "secondary_mobile"}
EMAIL_FIELDS = {"email_primary"}

_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


@dataclass(frozen=True)
class ValidationResult:
    valid: bool
    value: Any = None
    error: str | None = None


def _ok(value: Any) -> ValidationResult:
    return ValidationResult(valid=True, value=value)


def _fail(error: str) -> ValidationResult:
    return ValidationResult(valid=False, value=None, error=error)


# --- Contact fields ---


def validate_phone_number(value: Any) -> ValidationResult:
    """Validate an Indian mobile number and normalize to ``+91 XXXXX XXXXX``."""
    if value is None or value == "":
        return _ok(None)

    digits = re.sub(r"\D", "", str(value).strip())

    if len(digits) == 10:
        ten = digits
    elif len(digits) == 11 and digits.startswith("0"):
        ten = digits[1:]
    elif len(digits) == 12 and digits.startswith("91"):
        ten = digits[2:]
    elif len(digits) == 13 and digits.startswith("091"):
        ten = digits[3:]
    else:
        return _fail("Phone number must be 10 digits (with optional +91 prefix)")

    if ten[0] not in "6789":
        return _fail("Indian mobile numbers must start with 6, 7, 8, or 9")

    return _ok(f"+91 {ten[:5]} {ten[5:]}")


def validate_email(value: Any) -> ValidationResult:
    if value is None or value == "":
        return _ok(None)
    text = str(value).strip().lower()
    if not _EMAIL_RE.match(text):
        return _fail("Invalid email format")
    return _ok(text)


def validate_contact_field(key: str, value: Any) -> ValidationResult | None:
    """Returns None when ``key`` is not a contact field."""
    if key in PHONE_FIELDS:
        return validate_phone_number(value)
    if key in EMAIL_FIELDS:
        return validate_email(value)
    return None


# --- Per-type validators ---


def _validate_text(value: Any) -> ValidationResult:
    return _ok(value if isinstance(value, str) else str(value))


def _validate_number(value: Any) -> ValidationResult:
    if isinstance(value, bool):
        return _fail(f"Invalid number: {value}")
    if isinstance(value, int):
        return _ok(value)
    if isinstance(value, float):
        number = value
    else:
        try:
            number = float(str(value).strip())
        except ValueError:
            return _fail(f"Invalid number: {value}")
    # NaN and infinities are not storable as JSON numbers
    if not math.isfinite(number):
        return _fail(f"Invalid number: {value}")
    if isinstance(value, float):
        return _ok(value)
    return _ok(int(number) if number.is_integer() else number)


_TRUTHY = {"true", "yes", "1"}
_FALSY = {"false", "no", "0"}


def _validate_boolean(value: Any) -> ValidationResult:
    if isinstance(value, bool):
        return _ok(value)
    text = str(value).strip().lower()
    if text in _TRUTHY:
        return _ok(True)
    if text in _FALSY:
        return _ok(False)
    return _fail(f"Invalid boolean: {value}")


def _validate_date(value: Any) -> ValidationResult:
    if isinstance(value, datetime):
        return _ok(value.date())
    if isinstance(value, date):
        return _ok(value)
    text = str(value).strip()
    try:
        return _ok(date.fromisoformat(text))
    except ValueError:
        pass
    try:
        return _ok(datetime.fromisoformat(text.replace("Z", "+00:00")).date())
    except ValueError:
        return _fail(f"Invalid date: {value}")


def _validate_enum(value: Any) -> ValidationResult:
    return _ok(str(value))


def _validate_multi_select(value: Any) -> ValidationResult:
    if isinstance(value, (list, tuple)):
        return _ok([str(v) for v in value])
    if isinstance(value, str):
        return _ok([part.strip() for part in value.split(",") if part.strip()])
    return _fail(f"Invalid multi_select: {value}")


def _validate_json(value: Any) -> ValidationResult:
    if isinstance(value, (dict, list)):
        return _ok(value)
    try:
        return _ok(json.loads(value))
    except (TypeError, ValueError):
        return _fail(f"Invalid JSON: {value}")


_VALIDATORS: dict[FieldType, Callable[[Any], ValidationResult]] = {
    FieldType.TEXT: _validate_text,
    FieldType.NUMBER: _validate_number,
    FieldType.BOOLEAN: _validate_boolean,
    FieldType.DATE: _validate_date,
    FieldType.ENUM: _validate_enum,
    FieldType.MULTI_SELECT: _validate_multi_select,
    FieldType.JSON: _validate_json,
}


# --- Per-type display formatters ---


def _format_date(value: Any) -> str:
    if isinstance(value, (date, datetime)):
        return value.strftime("%d %b %Y")
    result = _validate_date(value)
    return result.value.strftime("%d %b %Y") if result.valid else str(value)


def _format_multi_select(value: Any) -> str:
    if isinstance(value, (list, tuple)):
        return ", ".join(str(v) for v in value)
    return str(value)


_FORMATTERS: dict[FieldType, Callable[[Any], str]] = {
    FieldType.TEXT: str,
    FieldType.NUMBER: str,
    FieldType.BOOLEAN: lambda v: "Yes" if v else "No",
    FieldType.DATE: _format_date,
    FieldType.ENUM: str,
    FieldType.MULTI_SELECT: _format_multi_select,
    FieldType.JSON: lambda v: json.dumps(v, indent=2, default=str),
}


def _check_coverage() -> None:
    for name, table in (("validator", _VALIDATORS), ("formatter", _FORMATTERS)):
        missing = set(FieldType) - set(table)
        if missing:
            raise RuntimeError(f"No {name} for field types: {sorted(missing)}")


_check_coverage()


class FieldRegistry:
    """Lookup and validation over the profile schema."""

    def __init__(self, sections: tuple[SectionDefinition, ...] = PROFILE_SECTIONS):
        self.sections = sections
        self._fields: dict[str, FieldDefinition] = {}
        self._section_of: dict[str, SectionDefinition] = {}
        for section in sections:
            for f in section.fields:
                self._fields[f.key] = f
                self._section_of[f.key] = section
        self._label_to_key = {f.label.lower(): f.key for f in self._fields.values()}

    def __contains__(self, key: str) -> bool:
        return key in self._fields

    def get(self, key: str) -> FieldDefinition | None:
        return self._fields.get(key)

    def section_for(self, key: str) -> SectionDefinition | None:
        return self._section_of.get(key)

    def keys(self) -> list[str]:
        return list(self._fields)

    def key_for_label(self, label: str) -> str | None:
        """Case-insensitive label -> key lookup."""
        return self._label_to_key.get(label.strip().lower())

    def high_priority_fields(self) -> list[FieldDefinition]:
        return [f for f in self._fields.values() if f.priority == Priority.HIGH]

    def validate(self, key: str, value: Any) -> ValidationResult:
        """Validate and coerce a raw value for ``key``.

        Unknown keys are invalid. None and "" are valid and mean "not set".
        """
        definition = self._fields.get(key)
        if definition is None:
            return _fail(f"Unknown field: {key}")

        if value is None or value == "":
            return _ok(None)

        contact = validate_contact_field(key, value)
        if contact is not None:
            return contact

        return _VALIDATORS[definition.type](value)

    def format_for_display(self, key: str, value: Any) -> str:
        if value is None:
            return "(not set)"
        definition = self._fields.get(key)
        if definition is None:
            return str(value)
        return _FORMATTERS[definition.type](value)

    def missing_high_priority(self, values: dict) -> list[str]:
        """Labels of high-priority fields that are still empty."""
        return [f.label for f in self.high_priority_fields() if is_empty(values.get(f.key))]

    def extraction_schema(self) -> str:
        """Schema description of high/medium priority fields for LLM prompts."""
        blocks = []
        for section in self.sections:
            lines = []
            for f in section.fields:
                if f.priority == Priority.LOW:
                    continue
                hint = f.type.value
                if f.type == FieldType.ENUM:
                    hint = "enum (string value)"
                elif f.type == FieldType.MULTI_SELECT:
                    hint = "array of strings"
                marker = " [HIGH PRIORITY]" if f.priority == Priority.HIGH else ""
                lines.append(f"  - {f.key} ({f.label}): {hint}{marker}")
            if lines:
                blocks.append(f"{section.label}:\n" + "\n".join(lines))
        return "\n\n".join(blocks)


# Module-level default registry
registry = FieldRegistry()
