from datetime import datetime, timezone
import uuid

from sqlalchemy import Boolean, Column, DateTime, String, Text
from sqlalchemy.orm import relationship

from ats_forms.database import Base


def _utcnow():
    return datetime.now(timezone.utc)


class FormRecord(Base):
    __tablename__ = 'forms'

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    is_default = Column(Boolean, default=False)
    created_at = Column(DateTime, default=_utcnow)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow)

    fields = relationship(
        "FormFieldRecord",
        back_populates="form",
        cascade="all, delete-orphan",
        order_by="FormFieldRecord.order",
    )
