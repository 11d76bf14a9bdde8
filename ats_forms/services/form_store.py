import logging
from dataclasses import dataclass, field
from typing import Optional

from sqlalchemy.orm import Session

from ats_forms.models.application import ApplicationRecord
from ats_forms.models.form import FormRecord
from ats_forms.models.form_field import FormFieldRecord
from ats_forms.services.classifier import GeoMetadata, extract_candidate_identity
from ats_forms.services.errors import ApplicationNotFoundError, FormNotFoundError
from ats_forms.services.field_types import has_options
from ats_forms.services.form_schema import (
    Form,
    FormField,
    SubmittedField,
    check_form,
    decode_options,
    encode_options,
    renumber,
)

logger = logging.getLogger(__name__)


@dataclass
class StoredApplication:
    id: str
    form_id: Optional[str]
    job_id: Optional[str]
    status: str
    candidate_name: str
    candidate_email: str
    candidate_phone: str
    fields: list[SubmittedField] = field(default_factory=list)
    geo: Optional[GeoMetadata] = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "formId": self.form_id,
            "jobId": self.job_id,
            "status": self.status,
            "candidateName": self.candidate_name,
            "candidateEmail": self.candidate_email,
            "candidatePhone": self.candidate_phone,
            "formData": [f.to_dict() for f in self.fields],
        }


def _field_from_record(record: FormFieldRecord) -> FormField:
    return FormField(
        id=record.id,
        label=record.label,
        field_type=record.field_type,
        placeholder=record.placeholder or "",
        options=decode_options(record.options),
        css_class=record.css_class or "",
        field_id=record.field_id or "",
        is_required=bool(record.is_required),
        order=record.order or 0,
        field_width=record.field_width or "100%",
    )


def _form_from_record(record: FormRecord) -> Form:
    fields = sorted((_field_from_record(f) for f in record.fields), key=lambda f: f.order)
    return Form(
        id=record.id,
        name=record.name,
        description=record.description or "",
        is_default=bool(record.is_default),
        fields=renumber(fields),
    )


def _field_record(form_field: FormField, index: int) -> FormFieldRecord:
    options = None
    if has_options(form_field.field_type):
        options = encode_options(form_field.options)
    return FormFieldRecord(
        id=form_field.id,
        field_name=form_field.label.lower().replace(" ", "_"),
        field_type=form_field.field_type,
        label=form_field.label,
        placeholder=form_field.placeholder or "",
        options=options,
        css_class=form_field.css_class or "",
        field_id=form_field.field_id or "",
        field_width=form_field.field_width or "100%",
        is_required=form_field.is_required,
        order=index,
    )


class FormStore:
    """Persists forms and applications through a SQLAlchemy session."""

    def __init__(self, db: Session):
        self.db = db

    # -- forms ---------------------------------------------------------------

    def _form_record(self, form_id: str) -> FormRecord:
        record = self.db.query(FormRecord).filter(FormRecord.id == form_id).first()
        if not record:
            raise FormNotFoundError(form_id)
        return record

    def load_form(self, form_id: str) -> Form:
        return _form_from_record(self._form_record(form_id))

    def list_forms(self) -> list[Form]:
        records = self.db.query(FormRecord).order_by(FormRecord.created_at.desc()).all()
        return [_form_from_record(r) for r in records]

    def save_form(self, form: Form) -> Form:
        """Insert or replace a form and its fields. A default form demotes every other one."""
        check_form(form)

        record = self.db.query(FormRecord).filter(FormRecord.id == form.id).first()
        if record is None:
            record = FormRecord(id=form.id)
            self.db.add(record)

        if form.is_default:
            (self.db.query(FormRecord)
                .filter(FormRecord.id != form.id, FormRecord.is_default.is_(True))
                .update({FormRecord.is_default: False}, synchronize_session=False))

        record.name = form.name.strip()
        record.description = form.description or ""
        record.is_default = form.is_default

        ordered = sorted(form.fields, key=lambda f: f.order)
        record.fields = [_field_record(f, index) for index, f in enumerate(ordered)]

        self.db.commit()
        self.db.refresh(record)
        logger.info(f"Saved form {record.id} ({len(ordered)} fields)")
        return _form_from_record(record)

    def delete_form(self, form_id: str) -> None:
        record = self._form_record(form_id)
        self.db.delete(record)
        self.db.commit()
        logger.info(f"Deleted form {form_id}")

    def default_form(self) -> Optional[Form]:
        record = self.db.query(FormRecord).filter(FormRecord.is_default.is_(True)).first()
        return _form_from_record(record) if record else None

    # -- applications --------------------------------------------------------

    def save_application(self, form_id: Optional[str], fields: list[SubmittedField],
                         geo: Optional[GeoMetadata] = None, job_id: Optional[str] = None) -> str:
        identity = extract_candidate_identity(fields)
        geo = geo or GeoMetadata()
        record = ApplicationRecord(
            form_id=form_id,
            job_id=job_id,
            status='PENDING',
            candidate_name=identity.name,
            candidate_email=identity.email,
            candidate_phone=identity.phone,
            resume=identity.resume.file_name if identity.resume else "",
            resume_path=identity.resume.path if identity.resume else "",
            form_data=[f.to_dict() for f in fields],
            candidate_ip=geo.ip,
            candidate_city=geo.city,
            candidate_state=geo.state,
            candidate_country=geo.country,
            candidate_latitude=geo.latitude,
            candidate_longitude=geo.longitude,
        )
        self.db.add(record)
        self.db.commit()
        self.db.refresh(record)
        logger.info(f"Stored application {record.id} for form {form_id} ({len(fields)} fields)")
        return record.id

    def _application_record(self, application_id: str) -> ApplicationRecord:
        record = (self.db.query(ApplicationRecord)
            .filter(ApplicationRecord.id == application_id)
            .first())
        if not record:
            raise ApplicationNotFoundError(application_id)
        return record

    def load_submission(self, application_id: str) -> list[SubmittedField]:
        record = self._application_record(application_id)
        return [SubmittedField.from_dict(item) for item in record.form_data or []]

    def load_application(self, application_id: str) -> StoredApplication:
        record = self._application_record(application_id)
        return StoredApplication(
            id=record.id,
            form_id=record.form_id,
            job_id=record.job_id,
            status=record.status or 'PENDING',
            candidate_name=record.candidate_name or "",
            candidate_email=record.candidate_email or "",
            candidate_phone=record.candidate_phone or "",
            fields=[SubmittedField.from_dict(item) for item in record.form_data or []],
            geo=GeoMetadata(
                city=record.candidate_city,
                state=record.candidate_state,
                country=record.candidate_country,
                ip=record.candidate_ip,
                latitude=record.candidate_latitude,
                longitude=record.candidate_longitude,
            ),
        )
