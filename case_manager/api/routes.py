"""
FastAPI routes – the case management API surface.

Handlers are thin: parse, call the service layer, shape the response.
Domain errors raised below this layer are rendered by the handler
registered in ``case_manager.main``.
"""

from __future__ import annotations

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from case_manager.config import settings
from case_manager.emr.export import is_emr_ready, send_case_to_emr
from case_manager.models.database import get_db
from case_manager.schemas.api import (
    CaseCreate,
    CaseFormRequest,
    CaseFormResponse,
    CasePage,
    CaseResponse,
    CaseUpdate,
    DeleteResponse,
    EmrReadiness,
    EncounterExportRequest,
    ExportResult,
    FhirResourceResponse,
    FormFieldError,
    HealthResponse,
)
from case_manager.services import cases as case_service
from case_manager.services.forms import FormMode, build_case_payload, validate_case_form

logger = logging.getLogger(__name__)

router = APIRouter()


# ---------------------------------------------------------------------------
# Health check
# ---------------------------------------------------------------------------

@router.get("/health", response_model=HealthResponse)
def health_check(db: Session = Depends(get_db)):
    """Basic health endpoint – verifies DB connectivity."""
    try:
        db.execute(text("SELECT 1"))
        db_status = "connected"
    except SQLAlchemyError as exc:
        logger.warning("Health check could not reach the database: %s", exc)
        db_status = "disconnected"
    return HealthResponse(
        status="healthy",
        environment=settings.ENVIRONMENT,
        database=db_status,
    )


# ---------------------------------------------------------------------------
# Cases
# ---------------------------------------------------------------------------

@router.get("/cases", response_model=list[CaseResponse])
def list_cases(db: Session = Depends(get_db)):
    """All cases, most recently updated first."""
    return case_service.list_cases(db)


@router.get("/cases/page", response_model=CasePage)
def get_case_page(
    search: str = Query("", description="Match cases whose title contains every word"),
    cursor: str | None = Query(None, description="continue_cursor from the previous page"),
    num_items: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
):
    """Paginated, optionally searched case list for incremental "load more"."""
    result = case_service.get_case_page(db, search=search, cursor=cursor, num_items=num_items)
    return CasePage(
        page=[CaseResponse.model_validate(case) for case in result.items],
        continue_cursor=result.continue_cursor,
        is_done=result.is_done,
    )


@router.get("/cases/{case_id}", response_model=CaseResponse)
def get_case(case_id: UUID, db: Session = Depends(get_db)):
    return case_service.find_case(db, case_id)


@router.post("/cases", response_model=CaseResponse, status_code=status.HTTP_201_CREATED)
def create_case(payload: CaseCreate, db: Session = Depends(get_db)):
    return case_service.create_case(db, payload.model_dump())


@router.patch("/cases/{case_id}", response_model=CaseResponse)
def update_case(case_id: UUID, payload: CaseUpdate, db: Session = Depends(get_db)):
    """Partial update; only fields present in the body change."""
    return case_service.update_case(db, case_id, payload.model_dump(exclude_unset=True))


@router.delete("/cases/{case_id}", response_model=DeleteResponse)
def delete_case(case_id: UUID, db: Session = Depends(get_db)):
    deleted_id = case_service.delete_case(db, case_id)
    return DeleteResponse(deleted=True, id=deleted_id)


# ---------------------------------------------------------------------------
# EMR export
# ---------------------------------------------------------------------------

@router.get("/cases/{case_id}/fhir-resources", response_model=list[FhirResourceResponse])
def list_fhir_resources(case_id: UUID, db: Session = Depends(get_db)):
    """Resources the EMR export created for this case."""
    return case_service.find_case(db, case_id).fhir_resources


@router.post("/cases/{case_id}/emr", response_model=ExportResult)
def send_to_emr(case_id: UUID, request: EncounterExportRequest, db: Session = Depends(get_db)):
    """
    Convert the encounter to FHIR through PhenoML and record the created
    resource ids against the case. A failure leaves the case as it was.
    """
    return send_case_to_emr(db, case_id, request)


@router.get("/emr/ready", response_model=EmrReadiness)
def emr_ready():
    """Whether PhenoML credentials are configured."""
    return EmrReadiness(ready=is_emr_ready())


# ---------------------------------------------------------------------------
# Case form
# ---------------------------------------------------------------------------

@router.post("/case-form/validate", response_model=CaseFormResponse)
def validate_case_form_values(request: CaseFormRequest):
    """
    Validate raw form inputs. A valid form also returns the case payload the
    inputs map to, ready for POST /cases or PATCH /cases/{id}.
    """
    mode = FormMode(request.mode)
    validation = validate_case_form(request.values, mode)
    if not validation.valid:
        return CaseFormResponse(
            valid=False,
            focus=validation.focus,
            errors=[FormFieldError(field=f, message=m) for f, m in validation.errors],
        )
    return CaseFormResponse(valid=True, payload=build_case_payload(request.values, mode))
