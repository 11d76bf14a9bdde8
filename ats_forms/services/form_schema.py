"""Form schema model: forms, their fields and the values submitted against them."""

import json
import uuid
from dataclasses import dataclass, field, replace
from typing import Optional, Union

from ats_forms.services.errors import FieldNotFoundError, InvalidFormError
from ats_forms.services.field_types import (
    DEFAULT_OPTIONS,
    FieldType,
    FieldWidth,
    get_definition,
    has_options,
    normalize_width,
    parse_field_type,
)

# Fields a brand new form starts with, as "TYPE:Label" keys
DEFAULT_SEED = [
    "TEXT:Full name",
    "EMAIL:Email",
    "PHONE:Phone number",
]

REQUIRED_BY_DEFAULT = {FieldType.TEXT, FieldType.EMAIL, FieldType.PHONE}

# Attribute name -> wire (camelCase) key
_FIELD_KEYS = {
    "id": "id",
    "label": "label",
    "field_type": "fieldType",
    "placeholder": "placeholder",
    "options": "options",
    "css_class": "cssClass",
    "field_id": "fieldId",
    "is_required": "isRequired",
    "order": "order",
    "field_width": "fieldWidth",
}


@dataclass
class FormField:
    id: str
    label: str
    field_type: str
    placeholder: str = ""
    options: list[str] = field(default_factory=list)
    css_class: str = ""
    field_id: str = ""
    is_required: bool = False
    order: int = 0
    field_width: str = FieldWidth.FULL.value

    def to_dict(self) -> dict:
        return {wire: getattr(self, attr) for attr, wire in _FIELD_KEYS.items()}

    @classmethod
    def from_dict(cls, data: dict) -> "FormField":
        kwargs = {}
        for attr, wire in _FIELD_KEYS.items():
            if wire in data:
                kwargs[attr] = data[wire]
            elif attr in data:
                kwargs[attr] = data[attr]
        kwargs["id"] = str(kwargs.get("id") or generate_field_id())
        kwargs["label"] = str(kwargs.get("label") or "")
        kwargs["field_type"] = str(kwargs.get("field_type") or FieldType.TEXT.value)
        options = decode_options(kwargs.get("options"))
        kwargs["options"] = options if has_options(kwargs["field_type"]) else []
        kwargs["field_width"] = normalize_width(kwargs.get("field_width")).value
        kwargs["is_required"] = bool(kwargs.get("is_required", False))
        kwargs["order"] = int(kwargs.get("order") or 0)
        for attr in ("placeholder", "css_class", "field_id"):
            kwargs[attr] = kwargs.get(attr) or ""
        return cls(**kwargs)


@dataclass
class Form:
    id: str
    name: str
    description: str = ""
    is_default: bool = False
    fields: list[FormField] = field(default_factory=list)

    def get_field(self, field_id: str) -> FormField:
        for f in self.fields:
            if f.id == field_id:
                return f
        raise FieldNotFoundError(field_id)

    def index_of(self, field_id: str) -> int:
        for index, f in enumerate(self.fields):
            if f.id == field_id:
                return index
        raise FieldNotFoundError(field_id)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "isDefault": self.is_default,
            "fields": [f.to_dict() for f in self.fields],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Form":
        fields = [FormField.from_dict(f) for f in data.get("fields") or []]
        fields.sort(key=lambda f: f.order)
        return cls(
            id=data.get("id") or generate_form_id(),
            name=data.get("name") or "",
            description=data.get("description") or "",
            is_default=bool(data.get("isDefault", data.get("is_default", False))),
            fields=renumber(fields),
        )


@dataclass(frozen=True)
class SkillRating:
    skill: str
    rating: int = 0

    @property
    def is_complete(self) -> bool:
        return 1 <= self.rating <= 5

    @property
    def rating_label(self) -> str:
        return f"{self.rating}/5" if self.is_complete else "No rating provided"

    def to_dict(self) -> dict:
        return {"skill": self.skill, "rating": self.rating}


@dataclass(frozen=True)
class FileDescriptor:
    file_name: str
    original_name: str
    path: str = ""

    def to_dict(self) -> dict:
        return {"fileName": self.file_name, "originalName": self.original_name, "path": self.path}

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), separators=(",", ":"), ensure_ascii=False)

    @classmethod
    def from_dict(cls, data: dict) -> "FileDescriptor":
        return cls(
            file_name=str(data.get("fileName") or ""),
            original_name=str(data.get("originalName") or data.get("fileName") or ""),
            path=str(data.get("path") or ""),
        )


SubmittedValue = Union[str, list[str], list[SkillRating], FileDescriptor]


@dataclass(frozen=True)
class SubmittedField:
    """One answered field of an application. Never patched after creation."""

    id: str
    label: str
    field_type: str
    value: SubmittedValue

    def to_dict(self) -> dict:
        value = self.value
        if isinstance(value, FileDescriptor):
            value = value.to_json()
        elif isinstance(value, list) and value and isinstance(value[0], SkillRating):
            value = json.dumps([s.to_dict() for s in value], separators=(",", ":"))
        elif isinstance(value, (list, tuple)):
            value = list(value)
        return {"id": self.id, "label": self.label, "fieldType": self.field_type, "value": value}

    @classmethod
    def from_dict(cls, data: dict) -> "SubmittedField":
        value = data.get("value")
        if value is None:
            value = ""
        return cls(
            id=str(data.get("id") or data.get("label") or ""),
            label=str(data.get("label") or ""),
            field_type=str(data.get("fieldType") or data.get("field_type") or "TEXT"),
            value=value,
        )


def generate_field_id() -> str:
    return f"field_{uuid.uuid4().hex[:12]}"


def generate_form_id() -> str:
    return str(uuid.uuid4())


def encode_options(options: list[str]) -> str:
    """Serialize options the way they are stored: a compact JSON array string."""
    return json.dumps(list(options), separators=(",", ":"), ensure_ascii=False)


def decode_options(raw) -> list[str]:
    """Read stored options: a JSON array string, a legacy raw string, or a list."""
    if raw is None or raw == "":
        return []
    if isinstance(raw, (list, tuple)):
        return [str(o) for o in raw]
    text = str(raw)
    if text.startswith("["):
        try:
            parsed = json.loads(text)
        except ValueError:
            return [text]
        if isinstance(parsed, list):
            return [str(o) for o in parsed]
    return [text]


def _default_field_id(label: str) -> str:
    lowered = label.lower()
    field_id = ""
    if "full name" in lowered:
        field_id = "candidateName"
    if lowered == "email":
        field_id = "candidateEmail"
    if "phone" in lowered:
        field_id = "candidatePhone"
    return field_id


def create_field(field_type, label: Optional[str] = None, order: int = 0) -> FormField:
    """Build a new field with the registry defaults for its type."""
    definition = get_definition(field_type)
    if definition is None:
        raise InvalidFormError(f"Unknown field type: {field_type}")

    if label is None:
        label = f"{definition.label} Field"

    return FormField(
        id=generate_field_id(),
        label=label,
        field_type=definition.field_type.value,
        placeholder=definition.default_placeholder,
        options=list(DEFAULT_OPTIONS) if definition.has_options else [],
        css_class="",
        field_id=_default_field_id(label),
        is_required=definition.field_type in REQUIRED_BY_DEFAULT,
        order=order,
        field_width=FieldWidth.FULL.value,
    )


def new_form(name: str = "", seed: Optional[list[str]] = None, description: str = "",
             is_default: bool = False) -> Form:
    """Create a form pre-populated from "TYPE:Label" seed keys."""
    keys = DEFAULT_SEED if seed is None else seed
    fields = []
    for index, key in enumerate(keys):
        type_name, _, label = key.partition(":")
        fields.append(create_field(type_name, label.strip() or type_name, order=index))
    return Form(id=generate_form_id(), name=name, description=description,
                is_default=is_default, fields=fields)


def renumber(fields: list[FormField]) -> list[FormField]:
    """Return the fields with order rewritten to their position (0..n-1)."""
    return [f if f.order == index else replace(f, order=index) for index, f in enumerate(fields)]


def update_field(form: Form, field_id: str, patch: dict) -> Form:
    """Replace exactly one field; siblings and order are left untouched."""
    index = form.index_of(field_id)
    current = form.fields[index]

    changes = {}
    for key, value in patch.items():
        attr = key if key in _FIELD_KEYS else next(
            (a for a, wire in _FIELD_KEYS.items() if wire == key), None
        )
        # id and order are owned by the form, not by a patch
        if attr is None or attr in ("id", "order"):
            continue
        changes[attr] = value

    if "field_type" in changes:
        parsed = parse_field_type(changes["field_type"])
        if parsed is None:
            raise InvalidFormError(f"Unknown field type: {changes['field_type']}")
        changes["field_type"] = parsed.value
    if "options" in changes:
        changes["options"] = decode_options(changes["options"])
    # Only option-bearing types keep a list, whichever key changed
    if not has_options(changes.get("field_type", current.field_type)):
        changes["options"] = []
    if "field_width" in changes:
        changes["field_width"] = normalize_width(changes["field_width"]).value

    fields = list(form.fields)
    fields[index] = replace(current, **changes)
    return replace(form, fields=fields)


def remove_field(form: Form, field_id: str) -> Form:
    index = form.index_of(field_id)
    fields = form.fields[:index] + form.fields[index + 1:]
    return replace(form, fields=renumber(fields))


def check_form(form: Form) -> None:
    """Raise InvalidFormError when the form breaks a schema invariant."""
    if not form.name or not form.name.strip():
        raise InvalidFormError("Form name is required")

    ids = [f.id for f in form.fields]
    if len(set(ids)) != len(ids):
        raise InvalidFormError("Field ids must be unique within a form")

    orders = sorted(f.order for f in form.fields)
    if orders != list(range(len(form.fields))):
        raise InvalidFormError(f"Field order must be dense 0..n-1, got {orders}")
