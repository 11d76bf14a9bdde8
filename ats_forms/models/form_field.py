from sqlalchemy import Boolean, Column, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from ats_forms.database import Base


class FormFieldRecord(Base):
    __tablename__ = 'form_fields'

    pk = Column(Integer, primary_key=True, autoincrement=True)
    id = Column(String(64), nullable=False, index=True)
    form_id = Column(String(36), ForeignKey('forms.id', ondelete='CASCADE'), nullable=False)
    field_name = Column(String(255), nullable=False)
    field_type = Column(String(50), nullable=False)
    label = Column(Text, nullable=False)
    placeholder = Column(Text, nullable=True)
    options = Column(Text, nullable=True)  # JSON array string
    css_class = Column(String(255), nullable=True)
    field_id = Column(String(255), nullable=True)
    field_width = Column(String(10), default='100%')
    is_required = Column(Boolean, default=False)
    order = Column(Integer, nullable=False, default=0)

    form = relationship("FormRecord", back_populates="fields")
