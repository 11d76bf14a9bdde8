"""Field type registry.

Every supported input kind declares its palette label, the placeholder new
fields start with, whether it carries an options list and the shape of the
value a candidate submits for it.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

logger = logging.getLogger(__name__)


class FieldType(str, Enum):
    TEXT = "TEXT"
    EMAIL = "EMAIL"
    PHONE = "PHONE"
    TEXTAREA = "TEXTAREA"
    SELECT = "SELECT"
    RADIO = "RADIO"
    CHECKBOX = "CHECKBOX"
    DATE = "DATE"
    NUMBER = "NUMBER"
    TAGS = "TAGS"
    SKILLS = "SKILLS"
    FILE = "FILE"
    URL = "URL"
    COUNTRY_CODE = "COUNTRY_CODE"


class ValueShape(str, Enum):
    SCALAR = "scalar"
    STRING_ARRAY = "string_array"
    SKILL_RATINGS = "skill_ratings"
    FILE_DESCRIPTOR = "file_descriptor"


@dataclass(frozen=True)
class FieldTypeDef:
    field_type: FieldType
    label: str
    default_placeholder: str
    has_options: bool = False
    value_shape: ValueShape = ValueShape.SCALAR


FIELD_TYPES: dict[FieldType, FieldTypeDef] = {
    FieldType.TEXT: FieldTypeDef(FieldType.TEXT, "Text Input", "Enter text..."),
    FieldType.EMAIL: FieldTypeDef(FieldType.EMAIL, "Email", "Enter email..."),
    FieldType.PHONE: FieldTypeDef(FieldType.PHONE, "Phone", "Enter phone number..."),
    FieldType.COUNTRY_CODE: FieldTypeDef(FieldType.COUNTRY_CODE, "Country Code", "Select country code..."),
    FieldType.TEXTAREA: FieldTypeDef(FieldType.TEXTAREA, "Text Area", "Enter details..."),
    FieldType.SELECT: FieldTypeDef(FieldType.SELECT, "Dropdown", "Select an option...", has_options=True),
    FieldType.RADIO: FieldTypeDef(FieldType.RADIO, "Radio Buttons", "", has_options=True),
    FieldType.CHECKBOX: FieldTypeDef(
        FieldType.CHECKBOX, "Checkboxes", "", has_options=True, value_shape=ValueShape.STRING_ARRAY,
    ),
    FieldType.DATE: FieldTypeDef(FieldType.DATE, "Date Picker", ""),
    FieldType.NUMBER: FieldTypeDef(FieldType.NUMBER, "Number", "Enter number..."),
    FieldType.TAGS: FieldTypeDef(
        FieldType.TAGS, "Tags", "Type to add tags...", has_options=True, value_shape=ValueShape.STRING_ARRAY,
    ),
    FieldType.SKILLS: FieldTypeDef(
        FieldType.SKILLS, "Skills with Ratings", "Select skills and rate your expertise...",
        has_options=True, value_shape=ValueShape.SKILL_RATINGS,
    ),
    FieldType.FILE: FieldTypeDef(
        FieldType.FILE, "File Upload", "Choose file...", value_shape=ValueShape.FILE_DESCRIPTOR,
    ),
    FieldType.URL: FieldTypeDef(FieldType.URL, "URL/Link", "Enter URL..."),
}

DEFAULT_OPTIONS = ["Option 1", "Option 2", "Option 3"]

# Suffix of the legacy "<label>_fieldType" entries that tag a stored answer's type
TYPE_TAG_SUFFIX = "_fieldType"

# Choices offered by the COUNTRY_CODE widget. The field itself keeps no options.
COUNTRY_CODES = [
    "+1 - United States/Canada",
    "+44 - United Kingdom",
    "+91 - India",
    "+61 - Australia",
    "+49 - Germany",
    "+33 - France",
    "+81 - Japan",
    "+86 - China",
    "+55 - Brazil",
    "+27 - South Africa",
    "+65 - Singapore",
    "+971 - UAE",
    "+92 - Pakistan",
    "+880 - Bangladesh",
    "+94 - Sri Lanka",
    "+977 - Nepal",
    "+60 - Malaysia",
    "+62 - Indonesia",
    "+63 - Philippines",
    "+84 - Vietnam",
    "+82 - South Korea",
    "+52 - Mexico",
    "+34 - Spain",
    "+39 - Italy",
]


def parse_field_type(value) -> Optional[FieldType]:
    """Return the FieldType for a stored value, or None when it is not one we know."""
    if isinstance(value, FieldType):
        return value
    try:
        return FieldType(str(value).upper())
    except ValueError:
        return None


def get_definition(field_type) -> Optional[FieldTypeDef]:
    parsed = parse_field_type(field_type)
    return FIELD_TYPES.get(parsed) if parsed else None


def has_options(field_type) -> bool:
    definition = get_definition(field_type)
    return definition.has_options if definition else False


def value_shape(field_type) -> ValueShape:
    definition = get_definition(field_type)
    return definition.value_shape if definition else ValueShape.SCALAR


class FieldWidth(str, Enum):
    QUARTER = "25%"
    THIRD = "33%"
    HALF = "50%"
    TWO_THIRDS = "66%"
    THREE_QUARTERS = "75%"
    FULL = "100%"


# Columns out of a 12-column grid
GRID_SPANS: dict[FieldWidth, int] = {
    FieldWidth.QUARTER: 3,
    FieldWidth.THIRD: 4,
    FieldWidth.HALF: 6,
    FieldWidth.TWO_THIRDS: 8,
    FieldWidth.THREE_QUARTERS: 9,
    FieldWidth.FULL: 12,
}


def normalize_width(width) -> FieldWidth:
    """Coerce a stored width to a FieldWidth, falling back to full width."""
    if isinstance(width, FieldWidth):
        return width
    try:
        return FieldWidth(str(width).strip())
    except ValueError:
        if width:
            logger.warning(f"Unknown field width {width!r}, using 100%")
        return FieldWidth.FULL


def grid_span(width) -> int:
    return GRID_SPANS[normalize_width(width)]
