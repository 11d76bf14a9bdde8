from dataclasses import dataclass, field
from enum import Enum

from ats_forms.services.field_types import (
    COUNTRY_CODES,
    FieldType,
    get_definition,
    grid_span,
    parse_field_type,
)


class WidgetKind(str, Enum):
    SINGLE_LINE_TEXT = "single-line-text"
    MULTILINE_TEXT = "multiline-text"
    SINGLE_SELECT = "single-select"
    MULTI_SELECT_INLINE = "multi-select-inline"
    TAG_EDITOR = "tag-editor"
    SKILL_RATING_EDITOR = "skill-rating-editor"
    DATE_PICKER = "date-picker"
    NUMERIC = "numeric"
    FILE_PICKER = "file-picker"
    URL = "url"
    PHONE_COUNTRY_PREFIX = "phone-country-prefix"


WIDGETS: dict[FieldType, WidgetKind] = {
    FieldType.TEXT: WidgetKind.SINGLE_LINE_TEXT,
    FieldType.EMAIL: WidgetKind.SINGLE_LINE_TEXT,
    FieldType.PHONE: WidgetKind.PHONE_COUNTRY_PREFIX,
    FieldType.TEXTAREA: WidgetKind.MULTILINE_TEXT,
    FieldType.SELECT: WidgetKind.SINGLE_SELECT,
    FieldType.COUNTRY_CODE: WidgetKind.SINGLE_SELECT,
    FieldType.RADIO: WidgetKind.MULTI_SELECT_INLINE,
    FieldType.CHECKBOX: WidgetKind.MULTI_SELECT_INLINE,
    FieldType.DATE: WidgetKind.DATE_PICKER,
    FieldType.NUMBER: WidgetKind.NUMERIC,
    FieldType.TAGS: WidgetKind.TAG_EDITOR,
    FieldType.SKILLS: WidgetKind.SKILL_RATING_EDITOR,
    FieldType.FILE: WidgetKind.FILE_PICKER,
    FieldType.URL: WidgetKind.URL,
}

# HTML input type used by the plain input widgets
INPUT_TYPES: dict[FieldType, str] = {
    FieldType.TEXT: "text",
    FieldType.EMAIL: "email",
    FieldType.PHONE: "tel",
    FieldType.NUMBER: "number",
    FieldType.URL: "url",
    FieldType.DATE: "date",
    FieldType.FILE: "file",
    FieldType.RADIO: "radio",
    FieldType.CHECKBOX: "checkbox",
}


def dispatch(field) -> WidgetKind:
    """Widget kind for a field; unknown types render as a single-line input."""
    field_type = parse_field_type(getattr(field, "field_type", field))
    return WIDGETS.get(field_type, WidgetKind.SINGLE_LINE_TEXT)


@dataclass(frozen=True)
class WidgetSpec:
    field_id: str
    kind: WidgetKind
    input_type: str
    label: str
    placeholder: str
    required: bool
    multiple: bool
    span: int
    choices: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "fieldId": self.field_id,
            "kind": self.kind.value,
            "inputType": self.input_type,
            "label": self.label,
            "placeholder": self.placeholder,
            "required": self.required,
            "multiple": self.multiple,
            "span": self.span,
            "choices": list(self.choices),
        }


def describe(field) -> WidgetSpec:
    """Everything a renderer needs to draw one field."""
    field_type = parse_field_type(field.field_type)
    kind = dispatch(field)

    if field_type == FieldType.COUNTRY_CODE:
        choices = list(COUNTRY_CODES)
    else:
        choices = list(field.options or [])

    placeholder = field.placeholder
    if not placeholder:
        definition = get_definition(field_type)
        placeholder = definition.default_placeholder if definition else ""

    return WidgetSpec(
        field_id=field.field_id or field.id,
        kind=kind,
        input_type=INPUT_TYPES.get(field_type, "text"),
        label=field.label,
        placeholder=placeholder,
        required=field.is_required,
        multiple=field_type in (FieldType.CHECKBOX, FieldType.TAGS, FieldType.SKILLS),
        span=grid_span(field.field_width),
        choices=choices,
    )


def describe_form(form) -> list[WidgetSpec]:
    return [describe(f) for f in sorted(form.fields, key=lambda f: f.order)]
