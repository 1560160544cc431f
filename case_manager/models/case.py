"""
Data models for patient-encounter cases.

A case keeps the patient identity in plain columns (it is what the list view
shows and what search filters on) and the optional narrative blocks as JSON
documents. FHIR resources created in the external EMR hang off a case as
child rows.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    JSON,
    Column,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    String,
    Text,
    Uuid,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import relationship

from case_manager.models.database import Base

JSONDocument = JSON().with_variant(JSONB(), "postgresql")

FHIR_RESOURCE_TYPES = ("patient", "encounter", "condition", "observation", "medication-request")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# Case – a patient encounter
# ---------------------------------------------------------------------------
class Case(Base):
    __tablename__ = "cases"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    title = Column(String(255), nullable=False)

    patient_name = Column(String(255), nullable=False)
    patient_gender = Column(String(16))
    patient_date_of_birth = Column(String(10), comment="ISO 8601 date (YYYY-MM-DD)")

    summary = Column(Text, comment="Free-text summary entered in AI mode")
    note = Column(JSONDocument, comment="hpi, reason_for_visit, assessment, plan")
    vitals = Column(JSONDocument, comment="Vital signs; weight in decimal pounds")
    physical_exam = Column(JSONDocument)

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    fhir_resources = relationship(
        "FhirResource",
        back_populates="case",
        cascade="all, delete-orphan",
        order_by="FhirResource.created_at",
    )

    __table_args__ = (
        Index("ix_cases_updated_at", "updated_at"),
        Index("ix_cases_title", "title"),
    )

    @property
    def patient(self) -> dict:
        return {
            "name": self.patient_name,
            "gender": self.patient_gender,
            "date_of_birth": self.patient_date_of_birth,
        }


# ---------------------------------------------------------------------------
# FHIR Resource – external EMR record created by the export workflow
# ---------------------------------------------------------------------------
class FhirResource(Base):
    __tablename__ = "fhir_resources"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    case_id = Column(
        Uuid(as_uuid=True), ForeignKey("cases.id", ondelete="CASCADE"), nullable=False
    )
    resource_type = Column(
        Enum(*FHIR_RESOURCE_TYPES, name="fhir_resource_type_enum"), nullable=False
    )
    fhir_id = Column(String(128), nullable=False, comment="Identifier assigned by the EMR")
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    case = relationship("Case", back_populates="fhir_resources")

    __table_args__ = (Index("ix_fhir_resources_case", "case_id"),)
