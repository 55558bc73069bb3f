"""
ORM models for the line-item snapshot database.
"""

from sqlalchemy.orm import DeclarativeBase
from sqlalchemy import Column, String, Float, DateTime, Integer, Text

class Base(DeclarativeBase):
    pass

class LineItem(Base):
    __tablename__ = "line_items"

    record_id                 = Column(String(80), primary_key=True)
    visit_id                  = Column(String(50), nullable=False, index=True)
    patient_id                = Column(String(50), nullable=False)
    object_type               = Column(String(255))
    admission_date            = Column(DateTime)
    department_admission_date = Column(DateTime)
    discharge_date            = Column(DateTime)
    payment_date              = Column(DateTime)
    stat_date                 = Column(DateTime, nullable=False, index=True)
    treatment_days            = Column(Integer, nullable=False, default=0)
    treatment_outcome         = Column(String(255))
    diagnosis_code            = Column(String(50))
    diagnosis_text            = Column(Text)
    doctor                    = Column(String(255))
    department                = Column(String(255))
    service_group             = Column(String(255))
    service_name              = Column(Text)
    quantity                  = Column(Float, nullable=False, default=0)
    line_amount               = Column(Float, nullable=False, default=0)
    visit_type_code           = Column(String(50))
    discharge_status          = Column(String(255))
    year                      = Column(Integer, nullable=False)
    month                     = Column(Integer, nullable=False)
    quarter                   = Column(Integer, nullable=False)
