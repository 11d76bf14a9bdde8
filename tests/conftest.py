"""Shared fixtures for ATS form engine tests."""

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from ats_forms.database import Base
from ats_forms.models import application, form, form_field  # noqa: F401
from ats_forms.services.form_schema import Form, FormField, SubmittedField


# ---------------------------------------------------------------------------
# Model factory helpers
# ---------------------------------------------------------------------------

_counter = {"field": 0}


def make_field(**overrides) -> FormField:
    """Create a FormField with sensible defaults."""
    _counter["field"] += 1
    defaults = {
        "id": f"field_test{_counter['field']:04d}",
        "label": "Full name",
        "field_type": "TEXT",
        "placeholder": "",
        "options": [],
        "css_class": "",
        "field_id": "",
        "is_required": False,
        "order": 0,
        "field_width": "100%",
    }
    defaults.update(overrides)
    return FormField(**defaults)


def make_form(fields=None, **overrides) -> Form:
    """Create a Form whose fields are renumbered to their list position."""
    fields = list(fields or [])
    for index, f in enumerate(fields):
        f.order = index
    defaults = {
        "id": "form-1",
        "name": "Backend Engineer",
        "description": "",
        "is_default": False,
        "fields": fields,
    }
    defaults.update(overrides)
    return Form(**defaults)


def make_submitted(label: str, value, field_type: str = "TEXT", submitted_id: str = None) -> SubmittedField:
    """Create one answered field as it is stored with an application."""
    return SubmittedField(
        id=submitted_id or label.lower().replace(" ", "_"),
        label=label,
        field_type=field_type,
        value=value,
    )


# ---------------------------------------------------------------------------
# Database session
# ---------------------------------------------------------------------------

@pytest.fixture
def db_session():
    """In-memory SQLite session with every table created."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    db = TestingSession()
    try:
        yield db
    finally:
        db.close()
        engine.dispose()
