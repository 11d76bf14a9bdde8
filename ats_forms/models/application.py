from datetime import datetime, timezone
import uuid

from sqlalchemy import JSON, Column, DateTime, ForeignKey, String, Text

from ats_forms.database import Base


def _utcnow():
    return datetime.now(timezone.utc)


class ApplicationRecord(Base):
    __tablename__ = 'applications'

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    form_id = Column(String(36), ForeignKey('forms.id', ondelete='SET NULL'), nullable=True)
    job_id = Column(String(64), nullable=True)
    status = Column(String(20), default='PENDING')
    candidate_name = Column(String(255), nullable=True)
    candidate_email = Column(String(255), nullable=True)
    candidate_phone = Column(String(64), nullable=True)
    resume = Column(Text, nullable=True)
    resume_path = Column(Text, nullable=True)
    form_data = Column(JSON, nullable=False, default=list)
    candidate_ip = Column(String(64), nullable=True)
    candidate_city = Column(String(255), nullable=True)
    candidate_state = Column(String(255), nullable=True)
    candidate_country = Column(String(255), nullable=True)
    candidate_latitude = Column(String(32), nullable=True)
    candidate_longitude = Column(String(32), nullable=True)
    created_at = Column(DateTime, default=_utcnow)
