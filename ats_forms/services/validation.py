"""Required-field validation for a candidate's answers.

``validate`` returns a map of field id to error message; an empty map means
the answers may be submitted. Only required fields are checked.
"""

from typing import Any, Callable, Optional

from ats_forms.services.field_types import ValueShape, value_shape
from ats_forms.services.form_schema import Form, FormField
from ats_forms.services.value_codecs import decode_skill_ratings

ErrorMap = dict[str, str]
RuleFunc = Callable[[FormField, Any], Optional[str]]


def required_message(field: FormField) -> str:
    return f"{field.label} is required"


def is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, (bytes, bytearray)):
        return len(value) == 0
    if isinstance(value, (list, tuple, dict)):
        return len(value) == 0
    return str(value).strip() == ""


def _check_scalar(field: FormField, value: Any) -> Optional[str]:
    if is_blank(value):
        return required_message(field)
    return None


def _check_array(field: FormField, value: Any) -> Optional[str]:
    if value is None:
        return required_message(field)
    if isinstance(value, str):
        return required_message(field) if not value.strip() else None
    if isinstance(value, (list, tuple)) and len(value) == 0:
        return required_message(field)
    return None


def _check_skills(field: FormField, value: Any) -> Optional[str]:
    if value is None:
        return required_message(field)
    if isinstance(value, str) and not value.strip():
        return required_message(field)
    ratings = decode_skill_ratings(value)
    if not ratings:
        return required_message(field)
    if any(r.rating == 0 for r in ratings):
        return f"Please rate all skills in {field.label}"
    return None


def _check_file(field: FormField, value: Any) -> Optional[str]:
    # An upload object counts as present as long as it carries some bytes
    data = getattr(value, "data", None)
    if data is not None:
        return required_message(field) if len(data) == 0 else None
    return _check_scalar(field, value)


RULES: dict[ValueShape, RuleFunc] = {
    ValueShape.SCALAR: _check_scalar,
    ValueShape.STRING_ARRAY: _check_array,
    ValueShape.SKILL_RATINGS: _check_skills,
    ValueShape.FILE_DESCRIPTOR: _check_file,
}


def value_for(field: FormField, values: dict[str, Any]) -> Any:
    """Answer for a field, keyed by its id or, failing that, its DOM name."""
    if field.id in values:
        return values[field.id]
    if field.field_id and field.field_id in values:
        return values[field.field_id]
    return None


def validate_field(field: FormField, value: Any) -> Optional[str]:
    if not field.is_required:
        return None
    rule = RULES[value_shape(field.field_type)]
    return rule(field, value)


def validate(form: Form, values: dict[str, Any]) -> ErrorMap:
    """Check every required field of ``form`` against ``values`` (keyed by field id)."""
    errors: ErrorMap = {}
    for field in sorted(form.fields, key=lambda f: f.order):
        message = validate_field(field, value_for(field, values))
        if message:
            errors[field.id] = message
    return errors
