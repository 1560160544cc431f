"""
Send a case to the EMR through PhenoML.

Every clinical fact becomes one sentence and one lang2fhir call. Calls run
strictly in order because later sentences embed the FHIR ids returned by
earlier ones (the encounter references the patient, everything documented
during the visit references the encounter). The first failed call aborts the
export. Resource ids are only written to the database once every call has
succeeded; resources already created in the EMR by an aborted export are
left there.
"""

from __future__ import annotations

import logging
from typing import Any
from uuid import UUID

import httpx
from sqlalchemy.orm import Session

from case_manager.config import PhenoMLSettings
from case_manager.emr.phenoml import PhenoMLClient
from case_manager.emr.workflow import Workflow
from case_manager.errors import EmrExportError, EmrNotConfiguredError, ExportConflictError
from case_manager.models.case import FhirResource
from case_manager.schemas.api import EncounterExportRequest, ExportedResource, ExportResult, Patient
from case_manager.services.cases import find_case

logger = logging.getLogger(__name__)

SUCCESS_MESSAGE = "Successfully sent case to EMR"


def patient_sentence(patient: Patient) -> str:
    sentence = f"{patient.name} is a {patient.gender or 'patient'}"
    if patient.date_of_birth:
        sentence += f" born on {patient.date_of_birth}"
    return sentence


def _tags(values: list[str]) -> list[str]:
    return [value.strip() for value in values if value.strip()]


class CaseExport:
    """The export steps for one case. Collects created resources in order."""

    def __init__(self, client: PhenoMLClient, patient: Patient, request: EncounterExportRequest):
        self.client = client
        self.patient = patient
        self.request = request
        self.resources: list[ExportedResource] = []

    def _create(self, *, profile: str, resource_type: str, text: str, label: str) -> str:
        result = self.client.create_fhir_resource(resource=profile, text=text)
        if not result.success or not result.fhir_id:
            raise EmrExportError(f"Failed to create {label}")
        self.resources.append(ExportedResource(resource_type=resource_type, fhir_id=result.fhir_id))
        logger.info("Created %s %s in EMR", resource_type, result.fhir_id)
        return result.fhir_id

    # -- steps ---------------------------------------------------------------

    def create_patient(self, context: dict[str, Any]) -> dict[str, Any]:
        fhir_id = self._create(
            profile="patient",
            resource_type="patient",
            text=patient_sentence(self.patient),
            label="patient",
        )
        return {"patient_fhir_id": fhir_id}

    def create_encounter(self, context: dict[str, Any]) -> dict[str, Any]:
        text = (
            f"{self.request.encounter_date.isoformat()} is the date of the encounter. "
            f"It was an ambulatory encounter with patient {self.patient.name} "
            f"with FHIR ID {context['patient_fhir_id']}"
        )
        fhir_id = self._create(
            profile="encounter", resource_type="encounter", text=text, label="encounter"
        )
        return {"encounter_fhir_id": fhir_id}

    def create_chief_complaint(self, context: dict[str, Any]) -> None:
        self._create(
            profile="condition-encounter-diagnosis",
            resource_type="condition",
            text=f"{self.request.chief_complaint} is the chief complaint",
            label="condition",
        )

    def create_hpi(self, context: dict[str, Any]) -> None:
        self._create(
            profile="simple-observation",
            resource_type="observation",
            text=(
                f"{self.request.hpi} is the History of Present Illness. This was "
                f"documented during encounter with FHIR ID {context['encounter_fhir_id']}"
            ),
            label="HPI observation",
        )

    def create_allergies(self, context: dict[str, Any]) -> None:
        for allergy in _tags(self.request.allergies):
            self._create(
                profile="condition-problems-health-concerns",
                resource_type="condition",
                text=(
                    f"The patient has the following allergy: {allergy}. This was documented "
                    f"during the encounter with FHIR ID {context['encounter_fhir_id']}"
                ),
                label="allergy",
            )

    def create_medications(self, context: dict[str, Any]) -> None:
        for medication in _tags(self.request.medications):
            self._create(
                profile="medicationrequest",
                resource_type="medication-request",
                text=(
                    f"The patient is taking the following medication: {medication}. This was "
                    f"documented during the encounter with FHIR ID {context['encounter_fhir_id']}"
                ),
                label="medication",
            )

    def create_conditions(self, context: dict[str, Any]) -> None:
        for condition in _tags(self.request.conditions):
            self._create(
                profile="condition-problems-health-concerns",
                resource_type="condition",
                text=(
                    f"The patient has the following condition: {condition}. This was documented "
                    f"during the encounter with FHIR ID {context['encounter_fhir_id']}"
                ),
                label="condition",
            )

    def build_workflow(self) -> Workflow:
        wf = Workflow("send_case_to_emr")
        wf.add_step("patient", self.create_patient)
        wf.add_step("encounter", self.create_encounter)
        if self.request.chief_complaint and self.request.chief_complaint.strip():
            wf.add_step("chief_complaint", self.create_chief_complaint)
        if self.request.hpi and self.request.hpi.strip():
            wf.add_step("hpi", self.create_hpi)
        wf.add_step("allergies", self.create_allergies)
        wf.add_step("medications", self.create_medications)
        wf.add_step("conditions", self.create_conditions)
        return wf


def store_fhir_resources(db: Session, case_id: UUID, resources: list[ExportedResource]) -> None:
    """Insert all resource rows in one transaction."""
    try:
        db.add_all(
            FhirResource(case_id=case_id, resource_type=r.resource_type, fhir_id=r.fhir_id)
            for r in resources
        )
        db.commit()
    except Exception:
        db.rollback()
        raise


def is_emr_ready(config: PhenoMLSettings | None = None) -> bool:
    return (config or PhenoMLSettings.from_env()).is_configured


def send_case_to_emr(
    db: Session,
    case_id: UUID,
    request: EncounterExportRequest,
    *,
    config: PhenoMLSettings | None = None,
    transport: httpx.BaseTransport | None = None,
) -> ExportResult:
    """Export a stored case. Raises on any failure; the case itself is never touched."""
    config = config or PhenoMLSettings.from_env()
    if not config.is_configured:
        raise EmrNotConfiguredError()

    case = find_case(db, case_id)
    if case.fhir_resources:
        raise ExportConflictError(
            f"Case {case_id} was already sent to the EMR "
            f"({len(case.fhir_resources)} resources recorded)"
        )

    patient = request.patient or Patient.model_validate(case.patient)

    with PhenoMLClient(config, transport=transport) as client:
        export = CaseExport(client, patient, request)
        summary = export.build_workflow().run({"case_id": case_id})

    if summary["status"] != "completed":
        logger.warning("EMR export of case %s aborted: %s", case_id, summary["error"])
        raise EmrExportError(summary["error"] or "EMR export failed")

    store_fhir_resources(db, case_id, export.resources)
    logger.info("Sent case %s to EMR (%d resources)", case_id, len(export.resources))
    return ExportResult(success=True, message=SUCCESS_MESSAGE, resources=export.resources)
