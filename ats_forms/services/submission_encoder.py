"""Submission encoder: turns the answers a candidate entered into stored values.

Scalars are stored as the trimmed string that was typed (NUMBER included),
TAGS/CHECKBOX as a list of strings in entry order, SKILLS as a JSON array of
``{skill, rating}`` and FILE as a JSON file descriptor once the bytes have been
handed to the file storage. A legacy bare file name is passed through as-is.

Storing a file is the only I/O here. When it fails the field gets an error
entry and every other field is still encoded, so the caller can retry just the
failed uploads.
"""

import asyncio
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Optional

from ats_forms.services.errors import FileStorageError
from ats_forms.services.field_types import (
    TYPE_TAG_SUFFIX,
    FieldType,
    ValueShape,
    parse_field_type,
    value_shape,
)
from ats_forms.services.file_storage import FileStorage, UploadedFile
from ats_forms.services.form_schema import FileDescriptor, Form, FormField, SubmittedField
from ats_forms.services.validation import value_for
from ats_forms.services.value_codecs import decode_skill_ratings, to_json

logger = logging.getLogger(__name__)


@dataclass
class EncodeResult:
    fields: list[SubmittedField] = field(default_factory=list)
    # field id -> message, for uploads the file storage rejected
    errors: dict[str, str] = field(default_factory=dict)
    # field id -> descriptor, for uploads that did reach the file storage
    uploaded: dict[str, FileDescriptor] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.errors


def encode_scalar(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (list, tuple)):
        return ", ".join(str(v).strip() for v in value)
    return str(value).strip()


def encode_array(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value.strip()] if value.strip() else []
    if isinstance(value, (list, tuple)):
        return [str(v).strip() for v in value]
    return [str(value).strip()]


def encode_skills(value: Any) -> str:
    ratings = decode_skill_ratings(value) if value not in (None, "") else []
    return to_json([r.to_dict() for r in ratings])


def _descriptor_from(value: Any) -> Optional[FileDescriptor]:
    """A previously stored descriptor sent back by the client, if that is what ``value`` is."""
    if isinstance(value, FileDescriptor):
        return value
    if isinstance(value, dict) and value.get("fileName"):
        return FileDescriptor.from_dict(value)
    if isinstance(value, str) and value.startswith("{"):
        try:
            parsed = json.loads(value)
        except ValueError:
            return None
        if isinstance(parsed, dict) and parsed.get("fileName"):
            return FileDescriptor.from_dict(parsed)
    return None


async def encode_file(form_field: FormField, value: Any, storage: Optional[FileStorage],
                      result: EncodeResult) -> Optional[str]:
    descriptor = _descriptor_from(value)
    if descriptor is not None:
        return descriptor.to_json()

    if isinstance(value, UploadedFile):
        if storage is None:
            result.errors[form_field.id] = f"Failed to upload {value.filename}: no file storage configured"
            return None
        try:
            descriptor = await asyncio.to_thread(
                storage.store, value.data, value.filename, value.content_type
            )
        except FileStorageError as e:
            logger.warning(f"Upload for field {form_field.id} failed: {e}")
            result.errors[form_field.id] = str(e)
            return None
        result.uploaded[form_field.id] = descriptor
        return descriptor.to_json()

    # Legacy: a bare, possibly timestamp-prefixed, file name
    return encode_scalar(value)


async def encode(form: Form, values: dict[str, Any], storage: Optional[FileStorage] = None,
                 emit_type_tags: bool = False) -> EncodeResult:
    """Encode every answered field of ``form``; unanswered fields are left out."""
    result = EncodeResult()

    for form_field in sorted(form.fields, key=lambda f: f.order):
        value = value_for(form_field, values)
        if value is None:
            continue

        shape = value_shape(form_field.field_type)
        if shape == ValueShape.FILE_DESCRIPTOR:
            encoded = await encode_file(form_field, value, storage, result)
            if encoded is None:
                continue
        elif shape == ValueShape.SKILL_RATINGS:
            encoded = encode_skills(value)
        elif shape == ValueShape.STRING_ARRAY:
            encoded = encode_array(value)
        else:
            encoded = encode_scalar(value)

        field_type = parse_field_type(form_field.field_type)
        result.fields.append(SubmittedField(
            id=form_field.id,
            label=form_field.label,
            field_type=field_type.value if field_type else form_field.field_type,
            value=encoded,
        ))

        if emit_type_tags and field_type == FieldType.SKILLS:
            result.fields.append(SubmittedField(
                id=f"{form_field.id}{TYPE_TAG_SUFFIX}",
                label=f"{form_field.label}{TYPE_TAG_SUFFIX}",
                field_type=FieldType.TEXT.value,
                value=FieldType.SKILLS.value,
            ))

    return result
