"""Decoders for the submitted value encodings.

SKILLS and FILE values have been stored in more than one shape over time.
Each shape has its own parser; parsers are tried in a fixed order and the
first one that recognises the value wins. The last parser in every chain
accepts anything, so decoding is total and never raises.
"""

import json
import logging
import re
from dataclasses import dataclass
from typing import Callable, Optional

from ats_forms.services.form_schema import FileDescriptor, SkillRating

logger = logging.getLogger(__name__)

TIMESTAMP_PREFIX = re.compile(r"^\d+_")

_NOT_JSON = object()


def _load_json(text: str):
    try:
        return json.loads(text)
    except (TypeError, ValueError):
        return _NOT_JSON


def to_json(value) -> str:
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False)


def wire_value(value):
    """Normalise an in-memory value to its stored form: a string or a list of strings."""
    if value is None:
        return ""
    if isinstance(value, FileDescriptor):
        return value.to_json()
    if isinstance(value, SkillRating):
        return to_json(value.to_dict())
    if isinstance(value, dict):
        return to_json(value)
    if isinstance(value, (list, tuple)):
        if any(isinstance(item, (SkillRating, dict)) for item in value):
            return to_json([item.to_dict() if isinstance(item, SkillRating) else item for item in value])
        return [str(item) for item in value]
    if isinstance(value, str):
        return value
    return str(value)


# ---------------------------------------------------------------------------
# Skill ratings
# ---------------------------------------------------------------------------

def coerce_rating(value) -> int:
    """Ratings outside 0..5 or not numeric count as unrated (0)."""
    if isinstance(value, bool):
        return 0
    try:
        rating = int(value)
    except (TypeError, ValueError):
        return 0
    return rating if 0 <= rating <= 5 else 0


def skill_row(item) -> SkillRating:
    if isinstance(item, SkillRating):
        return item
    if isinstance(item, dict):
        return SkillRating(skill=str(item.get("skill") or ""), rating=coerce_rating(item.get("rating")))
    return SkillRating(skill=str(item), rating=0)


def _skills_from_array(text: str) -> Optional[list[SkillRating]]:
    parsed = _load_json(text)
    if isinstance(parsed, list):
        return [skill_row(item) for item in parsed]
    return None


def _skills_from_object(text: str) -> Optional[list[SkillRating]]:
    parsed = _load_json(text)
    if isinstance(parsed, dict):
        return [skill_row(parsed)]
    return None


def _skills_from_raw(text: str) -> Optional[list[SkillRating]]:
    logger.debug(f"Skill value is not JSON, showing it as one unrated skill: {text!r}")
    return [SkillRating(skill=text, rating=0)]


SKILL_DECODERS: tuple[Callable[[str], Optional[list[SkillRating]]], ...] = (
    _skills_from_array,
    _skills_from_object,
    _skills_from_raw,
)


def decode_skill_ratings(value) -> list[SkillRating]:
    """Skill rows from a stored or in-memory SKILLS value."""
    if isinstance(value, (list, tuple)):
        return [skill_row(item) for item in value]
    if isinstance(value, (dict, SkillRating)):
        return [skill_row(value)]
    text = "" if value is None else str(value).strip()
    if not text:
        return []
    for decoder in SKILL_DECODERS:
        rows = decoder(text)
        if rows is not None:
            return rows
    return []


# ---------------------------------------------------------------------------
# Files
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class StoredFile:
    """A decoded FILE value.

    ``encoding`` is ``"descriptor"`` for the JSON object shape, ``"legacy"``
    for a bare (possibly timestamp-prefixed) file name and ``"unknown"`` when
    nothing usable was stored.
    """

    encoding: str
    display_name: str
    handle: Optional[str] = None
    path: str = ""


def _file_from_descriptor(text: str) -> Optional[StoredFile]:
    if not text.startswith("{"):
        return None
    parsed = _load_json(text)
    if isinstance(parsed, dict) and parsed.get("fileName") and parsed.get("originalName"):
        return StoredFile(
            encoding="descriptor",
            display_name=str(parsed["originalName"]),
            handle=str(parsed["fileName"]),
            path=str(parsed.get("path") or ""),
        )
    return None


def legacy_display_name(file_name: str) -> str:
    """Strip the ``<digits>_`` upload prefix from a stored file name, if present."""
    if TIMESTAMP_PREFIX.match(file_name):
        return file_name.split("_", 1)[1]
    return file_name


def _file_from_legacy_name(text: str) -> Optional[StoredFile]:
    if not text.strip():
        return None
    return StoredFile(encoding="legacy", display_name=legacy_display_name(text), handle=text)


def _file_placeholder(text: str) -> Optional[StoredFile]:
    return StoredFile(encoding="unknown", display_name="File uploaded")


FILE_DECODERS: tuple[Callable[[str], Optional[StoredFile]], ...] = (
    _file_from_descriptor,
    _file_from_legacy_name,
    _file_placeholder,
)


def decode_file(value) -> StoredFile:
    if isinstance(value, FileDescriptor):
        return StoredFile(
            encoding="descriptor",
            display_name=value.original_name,
            handle=value.file_name,
            path=value.path,
        )
    text = wire_value(value)
    if not isinstance(text, str):
        text = ""
    for decoder in FILE_DECODERS:
        stored = decoder(text)
        if stored is not None:
            return stored
    return StoredFile(encoding="unknown", display_name="File uploaded")


def is_file_descriptor_text(value) -> bool:
    return isinstance(value, str) and value.startswith("{") and "fileName" in value
