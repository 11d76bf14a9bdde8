"""Response classification engine.

A stored application is a flat list of answered fields: a free-text label, a
declared type and a value in one of several encodings. Nothing records which
field holds the candidate's experience or skills, so the review screen
rebuilds a profile from the label text at read time:

- basic info (experience, position, education, salary, location, ...)
- skills with ratings
- contact details and request metadata
- questions and answers (a catch-all; only identity, skills and file fields are kept out)
- file attachments

``classify`` is a pure function of its input. The "already seen" flags used
while scanning (one experience entry, one user-provided location) are carried
in small immutable fold states, so running it twice gives identical views.
Malformed values never raise; they degrade to a plainer rendering.
"""

import re
from dataclasses import dataclass
from functools import reduce
from typing import Any, Callable, NamedTuple, Optional
from urllib.parse import quote

from ats_forms.services.field_types import TYPE_TAG_SUFFIX, FieldType, parse_field_type
from ats_forms.services.form_schema import FileDescriptor, SkillRating, SubmittedField
from ats_forms.services.value_codecs import (
    StoredFile,
    decode_file,
    decode_skill_ratings,
    is_file_descriptor_text,
    wire_value,
)

DEV_IPS = ("::1", "127.0.0.1")


# ---------------------------------------------------------------------------
# View types
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class InfoItem:
    label: str
    value: Any

    def to_dict(self) -> dict:
        return {"label": self.label, "value": self.value}


@dataclass(frozen=True)
class SkillsField:
    id: str
    label: str
    ratings: tuple[SkillRating, ...]

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "label": self.label,
            "skills": [
                {"skill": r.skill, "rating": r.rating, "rated": r.is_complete, "display": r.rating_label}
                for r in self.ratings
            ],
        }


@dataclass(frozen=True)
class QAItem:
    question: str
    answer: str

    def to_dict(self) -> dict:
        return {"question": self.question, "answer": self.answer}


@dataclass(frozen=True)
class FileLink:
    id: str
    label: str
    display_name: str
    handle: Optional[str] = None
    encoding: str = "unknown"

    @property
    def download_path(self) -> Optional[str]:
        if not self.handle:
            return None
        return f"/files/{quote(self.handle, safe='')}"

    def to_dict(self, base_url: str = "") -> dict:
        path = self.download_path
        return {
            "id": self.id,
            "label": self.label,
            "displayName": self.display_name,
            "handle": self.handle,
            "encoding": self.encoding,
            "downloadUrl": f"{base_url.rstrip('/')}{path}" if path else None,
        }


@dataclass(frozen=True)
class GeoMetadata:
    """IP-derived location captured with the application request."""

    city: Optional[str] = None
    state: Optional[str] = None
    country: Optional[str] = None
    ip: Optional[str] = None
    latitude: Optional[str] = None
    longitude: Optional[str] = None

    @property
    def is_dev(self) -> bool:
        if self.ip in DEV_IPS:
            return True
        for part in (self.city, self.state, self.country):
            text = (part or "").lower()
            if "development" in text or "local" in text:
                return True
        return False


@dataclass(frozen=True)
class CandidateProfile:
    basic_info: tuple[InfoItem, ...] = ()
    skills: tuple[SkillsField, ...] = ()
    contact: tuple[InfoItem, ...] = ()
    qa: tuple[QAItem, ...] = ()
    files: tuple[FileLink, ...] = ()

    def to_dict(self, base_url: str = "") -> dict:
        return {
            "basicInfo": [i.to_dict() for i in self.basic_info],
            "skills": [s.to_dict() for s in self.skills],
            "contact": [i.to_dict() for i in self.contact],
            "qa": [q.to_dict() for q in self.qa],
            "files": [f.to_dict(base_url) for f in self.files],
        }


@dataclass(frozen=True)
class CandidateIdentity:
    name: str = "Anonymous"
    email: str = ""
    phone: str = ""
    resume: Optional[FileDescriptor] = None


# ---------------------------------------------------------------------------
# Input normalisation
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class _Entry:
    id: str
    label: str
    lower: str
    field_type: Optional[FieldType]
    value: Any  # str or list[str]

    @property
    def text(self) -> Optional[str]:
        return self.value if isinstance(self.value, str) else None


def _entry(raw) -> _Entry:
    if isinstance(raw, dict):
        raw = SubmittedField.from_dict(raw)
    label = str(raw.label or "")
    return _Entry(
        id=str(raw.id),
        label=label,
        lower=label.lower(),
        field_type=parse_field_type(raw.field_type),
        value=wire_value(raw.value),
    )


def _prepare(fields) -> tuple[list[_Entry], frozenset]:
    """Split answers from legacy ``<label>_fieldType`` type tags."""
    entries = [_entry(f) for f in fields or []]
    tagged_skills = frozenset(
        e.label[: -len(TYPE_TAG_SUFFIX)]
        for e in entries
        if e.label.endswith(TYPE_TAG_SUFFIX) and e.value == FieldType.SKILLS.value
    )
    answers = [e for e in entries if not e.label.endswith(TYPE_TAG_SUFFIX)]
    return answers, tagged_skills


def _has_any(text: str, *needles: str) -> bool:
    return any(n in text for n in needles)


# ---------------------------------------------------------------------------
# (a) Basic info
# ---------------------------------------------------------------------------

def _experience_label(label: str) -> Optional[str]:
    if "years of" in label and "experience" in label:
        return "Years of Experience"
    if "professional" in label and "experience" in label:
        return "Professional Experience"
    if _has_any(label, "work experience", "working experience"):
        return "Work Experience"
    if "total experience" in label:
        return "Total Experience"
    if "experience" in label and not _has_any(label, "describe", "explain", "team", "leading"):
        return "Experience"
    return None


def _position_label(label: str) -> Optional[str]:
    if _has_any(label, "current position", "current role"):
        return "Current Position"
    if _has_any(label, "position", "designation"):
        return "Position"
    return None


def _education_label(label: str) -> Optional[str]:
    if _has_any(label, "education", "qualification", "degree"):
        return "Education"
    return None


def _salary_label(label: str) -> Optional[str]:
    if _has_any(label, "current salary", "present salary"):
        return "Current Salary"
    if _has_any(label, "expected salary", "salary expectation"):
        return "Expected Salary"
    if "salary" in label:
        return "Salary"
    return None


def _location_label(label: str) -> Optional[str]:
    if _has_any(label, "location", "city") or ("address" in label and "email" not in label):
        return "Location"
    return None


def _notice_label(label: str) -> Optional[str]:
    if "notice" in label and "period" in label:
        return "Notice Period"
    return None


def _availability_label(label: str) -> Optional[str]:
    if _has_any(label, "availability", "joining"):
        return "Availability"
    return None


def _any_value(entry: _Entry) -> bool:
    return True


def _real_location(entry: _Entry) -> bool:
    text = entry.text
    if text is None or not text.strip():
        return False
    lowered = text.lower()
    return "@" not in text and "localhost" not in lowered and "development environment" not in lowered


# First matching rule claims the field, whether or not its value is accepted.
BASIC_RULES: tuple[tuple[Callable[[str], Optional[str]], Callable[[_Entry], bool]], ...] = (
    (_position_label, _any_value),
    (_education_label, _any_value),
    (_salary_label, _any_value),
    (_location_label, _real_location),
    (_notice_label, _any_value),
    (_availability_label, _any_value),
)


class _BasicInfoState(NamedTuple):
    experience_captured: bool = False
    items: tuple = ()


def _basic_info_step(state: _BasicInfoState, entry: _Entry) -> _BasicInfoState:
    if not state.experience_captured:
        name = _experience_label(entry.lower)
        if name:
            return _BasicInfoState(True, state.items + (InfoItem(name, entry.value),))

    for matcher, accept in BASIC_RULES:
        name = matcher(entry.lower)
        if name:
            if accept(entry):
                return state._replace(items=state.items + (InfoItem(name, entry.value),))
            return state
    return state


def basic_info(entries: list[_Entry]) -> tuple[InfoItem, ...]:
    return reduce(_basic_info_step, entries, _BasicInfoState()).items


# ---------------------------------------------------------------------------
# (b) Skills
# ---------------------------------------------------------------------------

def _is_skills(entry: _Entry, tagged_skills: frozenset) -> bool:
    if entry.field_type == FieldType.SKILLS:
        return True
    text = entry.text
    if text is not None:
        if "skill" in entry.lower and (text.startswith("[") or text.startswith("{")):
            return True
        if text.startswith("[") and "skill" in text and "rating" in text:
            return True
    return entry.label in tagged_skills


def skills(entries: list[_Entry], tagged_skills: frozenset) -> tuple[SkillsField, ...]:
    return tuple(
        SkillsField(id=e.id, label=e.label, ratings=tuple(decode_skill_ratings(e.value)))
        for e in entries
        if _is_skills(e, tagged_skills)
    )


# ---------------------------------------------------------------------------
# (c) Contact & metadata
# ---------------------------------------------------------------------------

def geo_rows(geo: Optional[GeoMetadata]) -> tuple[InfoItem, ...]:
    if geo is None or not (geo.city or geo.state or geo.country or geo.ip):
        return ()

    rows = []
    dev = geo.is_dev
    parts = [p for p in (geo.city, geo.state, geo.country) if p]
    if parts:
        label = "Location (Dev Environment)" if dev else "Location (IP-based)"
        rows.append(InfoItem(label, ", ".join(parts)))
    if geo.ip:
        rows.append(InfoItem("IP Address", f"{geo.ip} (localhost)" if dev else geo.ip))
    if geo.latitude and geo.longitude and not dev:
        rows.append(InfoItem("Coordinates", f"{geo.latitude}, {geo.longitude}"))
    return tuple(rows)


class _LocationState(NamedTuple):
    found: bool = False
    items: tuple = ()


def _is_user_location(entry: _Entry) -> bool:
    label = entry.lower
    if "email" in label or "portfolio" in label:
        return False
    if not _has_any(label, "location", "city", "state", "country", "address"):
        return False
    return entry.text is not None and entry.text.strip() != ""


def _location_step(state: _LocationState, entry: _Entry) -> _LocationState:
    if not state.found and _is_user_location(entry):
        return _LocationState(True, state.items + (InfoItem("User Provided Location", entry.value),))
    return state


def _link_label(link: str, index: int) -> str:
    if "github" in link:
        return "GitHub"
    if "linkedin" in link:
        return "LinkedIn"
    return f"Portfolio {index + 1}"


def _profile_rows(entry: _Entry) -> tuple[InfoItem, ...]:
    label = entry.lower
    if "linkedin" in label or ("social" in label and "security" not in label):
        return (InfoItem("LinkedIn", entry.value),)
    if "github" in label or ("portfolio" in label and isinstance(entry.value, list)):
        links = entry.value if isinstance(entry.value, list) else [entry.value]
        return tuple(
            InfoItem(_link_label(link, index), link)
            for index, link in enumerate(links)
            if isinstance(link, str) and link.strip()
        )
    if _has_any(label, "timezone", "time zone"):
        return (InfoItem("Timezone", entry.value),)
    if _has_any(label, "preferred contact", "contact preference"):
        return (InfoItem("Preferred Contact", entry.value),)
    if _has_any(label, "work authorization", "visa", "sponsorship"):
        return (InfoItem("Work Authorization", entry.value),)
    return ()


def contact(entries: list[_Entry], geo: Optional[GeoMetadata] = None) -> tuple[InfoItem, ...]:
    user_location = reduce(_location_step, entries, _LocationState()).items
    profiles = tuple(row for e in entries for row in _profile_rows(e))
    return geo_rows(geo) + user_location + profiles


# ---------------------------------------------------------------------------
# (d) Questions & answers
# ---------------------------------------------------------------------------

def _is_identity_field(label: str) -> bool:
    if "name" in label and _has_any(label, "full", "first", "last"):
        return True
    return _has_any(label, "email", "phone", "mobile", "contact number")


def _qa_item(entry: _Entry, tagged_skills: frozenset) -> Optional[QAItem]:
    if _is_identity_field(entry.lower) or entry.field_type == FieldType.FILE:
        return None
    if is_file_descriptor_text(entry.value) or _is_skills(entry, tagged_skills):
        return None

    if isinstance(entry.value, str):
        if entry.value.strip():
            return QAItem(entry.label, entry.value)
        return None
    if isinstance(entry.value, list) and entry.value:
        return QAItem(entry.label, ", ".join(str(v) for v in entry.value))
    return None


def questions_and_answers(entries: list[_Entry], tagged_skills: frozenset) -> tuple[QAItem, ...]:
    items = (_qa_item(e, tagged_skills) for e in entries)
    return tuple(item for item in items if item is not None)


# ---------------------------------------------------------------------------
# (e) Files
# ---------------------------------------------------------------------------

def _is_file(entry: _Entry) -> bool:
    if entry.field_type == FieldType.FILE:
        return True
    if is_file_descriptor_text(entry.value):
        return True
    text = entry.text
    if text is None or not text.strip():
        return False
    return _has_any(entry.lower, "resume", "upload", "cv") and (text.startswith("{") or "." in text)


def file_link(entry: _Entry) -> FileLink:
    stored: StoredFile = decode_file(entry.value)
    return FileLink(
        id=entry.id,
        label=entry.label,
        display_name=stored.display_name,
        handle=stored.handle,
        encoding=stored.encoding,
    )


def files(entries: list[_Entry]) -> tuple[FileLink, ...]:
    return tuple(file_link(e) for e in entries if _is_file(e))


# ---------------------------------------------------------------------------
# Entry points
# ---------------------------------------------------------------------------

def classify(submitted_fields, geo: Optional[GeoMetadata] = None) -> CandidateProfile:
    """Rebuild the categorised candidate profile from one application's answers."""
    entries, tagged_skills = _prepare(submitted_fields)
    return CandidateProfile(
        basic_info=basic_info(entries),
        skills=skills(entries, tagged_skills),
        contact=contact(entries, geo),
        qa=questions_and_answers(entries, tagged_skills),
        files=files(entries),
    )


_RESUME_LABEL = re.compile(r"resume|cv|upload")


def extract_candidate_identity(submitted_fields) -> CandidateIdentity:
    """Pick out the candidate's name, email, phone and resume by label."""
    name, email, phone, resume = "Anonymous", "", "", None

    for entry in _prepare(submitted_fields)[0]:
        value = entry.text
        if value is None:
            continue
        label = entry.lower
        if "name" in label and name == "Anonymous":
            name = value
        elif ("email" in label or "@" in value) and not email:
            email = value
        elif _has_any(label, "phone", "mobile", "contact") and not phone:
            phone = value
        elif resume is None and _RESUME_LABEL.search(label) and is_file_descriptor_text(value):
            stored = decode_file(value)
            if stored.encoding == "descriptor" and stored.path:
                resume = FileDescriptor(file_name=stored.handle, original_name=stored.display_name,
                                        path=stored.path)

    return CandidateIdentity(name=name, email=email, phone=phone, resume=resume)
