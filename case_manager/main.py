"""
FastAPI application entrypoint.

Run locally:  uvicorn case_manager.main:app --reload
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from case_manager.api.routes import router
from case_manager.config import settings
from case_manager.errors import CaseManagerError
from case_manager.models.database import Base, engine

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(levelname)s | %(name)s | %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    Base.metadata.create_all(bind=engine)
    yield


app = FastAPI(
    title="Case Management API",
    description=(
        "Create, search, edit and delete patient-encounter cases, and forward "
        "a case to a FHIR EMR through PhenoML."
    ),
    version="1.0.0",
    lifespan=lifespan,
)

app.include_router(router, prefix="/api")


@app.exception_handler(CaseManagerError)
def handle_domain_error(request: Request, exc: CaseManagerError):
    if exc.status_code >= 500:
        logger.warning("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


@app.exception_handler(RequestValidationError)
def handle_validation_error(request: Request, exc: RequestValidationError):
    # Malformed ids and bodies are plain client errors
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": jsonable_encoder(exc.errors())},
    )
