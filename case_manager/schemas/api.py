"""Pydantic models for API request/response serialization."""

from __future__ import annotations

from datetime import date, datetime
from typing import Annotated, Any, Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, StringConstraints, field_validator

NonEmptyStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]
IsoDate = Annotated[str, StringConstraints(pattern=r"^\d{4}-\d{2}-\d{2}$")]
Gender = Literal["male", "female", "other", "unknown"]
ResourceType = Literal["patient", "encounter", "condition", "observation", "medication-request"]


# ---------------------------------------------------------------------------
# Case sub-records
# ---------------------------------------------------------------------------

class Patient(BaseModel):
    name: NonEmptyStr
    gender: Gender | None = None
    date_of_birth: IsoDate | None = None


class PatientUpdate(BaseModel):
    """Partial patient; a supplied name must still be non-empty."""
    name: NonEmptyStr | None = None
    gender: Gender | None = None
    date_of_birth: IsoDate | None = None

    @field_validator("name")
    @classmethod
    def name_not_null(cls, value):
        if value is None:
            raise ValueError("patient name cannot be null")
        return value


class ClinicalNote(BaseModel):
    hpi: str | None = None
    reason_for_visit: str | None = None
    assessment: str | None = None
    plan: str | None = None


class Vitals(BaseModel):
    height: float | None = Field(None, ge=0, description="Inches")
    weight: float | None = Field(None, ge=0, description="Decimal pounds")
    waist_circumference: float | None = Field(None, ge=0, description="Inches")
    temperature: float | None = None
    temperature_site: str | None = None
    blood_pressure_systolic: int | None = Field(None, ge=0)
    blood_pressure_diastolic: int | None = Field(None, ge=0)
    blood_pressure_site: str | None = None
    pulse_rate: int | None = Field(None, ge=0)
    pulse_rhythm: str | None = None
    respiration_rate: int | None = Field(None, ge=0)
    oxygen_saturation: float | None = Field(None, ge=0, le=100)
    notes: str | None = None


class PhysicalExam(BaseModel):
    constitutional: str | None = None
    cardiovascular: str | None = None
    pulmonary: str | None = None
    other: str | None = None


# ---------------------------------------------------------------------------
# Case CRUD
# ---------------------------------------------------------------------------

class CaseCreate(BaseModel):
    title: NonEmptyStr
    patient: Patient
    summary: str | None = None
    note: ClinicalNote | None = None
    vitals: Vitals | None = None
    physical_exam: PhysicalExam | None = None


class CaseUpdate(BaseModel):
    """Every field is optional; only the fields present in the body are applied."""
    title: NonEmptyStr | None = None
    patient: PatientUpdate | None = None
    summary: str | None = None
    note: ClinicalNote | None = None
    vitals: Vitals | None = None
    physical_exam: PhysicalExam | None = None

    @field_validator("title", "patient")
    @classmethod
    def required_fields_not_null(cls, value, info):
        if value is None:
            raise ValueError(f"{info.field_name} cannot be null")
        return value


class CaseResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    title: str
    patient: Patient
    summary: str | None = None
    note: ClinicalNote | None = None
    vitals: Vitals | None = None
    physical_exam: PhysicalExam | None = None
    created_at: datetime
    updated_at: datetime


class CasePage(BaseModel):
    page: list[CaseResponse]
    continue_cursor: str | None = None
    is_done: bool


class DeleteResponse(BaseModel):
    deleted: bool = True
    id: UUID


# ---------------------------------------------------------------------------
# EMR export
# ---------------------------------------------------------------------------

class EncounterExportRequest(BaseModel):
    """Structured encounter forwarded to the EMR through PhenoML."""
    patient: Patient | None = Field(
        None, description="Defaults to the patient stored on the case"
    )
    encounter_date: date
    chief_complaint: str | None = None
    hpi: str | None = None
    allergies: list[str] = []
    medications: list[str] = []
    conditions: list[str] = []


class ExportedResource(BaseModel):
    resource_type: ResourceType
    fhir_id: str


class ExportResult(BaseModel):
    success: bool
    message: str
    resources: list[ExportedResource] = []


class FhirResourceResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    case_id: UUID
    resource_type: ResourceType
    fhir_id: str
    created_at: datetime


class EmrReadiness(BaseModel):
    ready: bool


# ---------------------------------------------------------------------------
# Case form
# ---------------------------------------------------------------------------

class CaseFormRequest(BaseModel):
    mode: Literal["ai", "detailed"] = "detailed"
    values: dict[str, Any]


class FormFieldError(BaseModel):
    field: str
    message: str


class CaseFormResponse(BaseModel):
    valid: bool
    focus: str | None = None
    errors: list[FormFieldError] = []
    payload: dict[str, Any] | None = None


# ---------------------------------------------------------------------------
# Health check
# ---------------------------------------------------------------------------

class HealthResponse(BaseModel):
    status: str = "healthy"
    environment: str
    database: str = "connected"
