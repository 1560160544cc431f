"""Domain errors. Each carries the HTTP status the API answers with."""

from __future__ import annotations

from uuid import UUID


class CaseManagerError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class CaseNotFoundError(CaseManagerError):
    status_code = 404

    def __init__(self, case_id: UUID):
        super().__init__(f"Case {case_id} not found")
        self.case_id = case_id


class EmptyPatchError(CaseManagerError):
    status_code = 400

    def __init__(self):
        super().__init__("PATCH body cannot be empty")


class InvalidCursorError(CaseManagerError):
    status_code = 400

    def __init__(self, cursor: str):
        super().__init__(f"Invalid pagination cursor: {cursor!r}")


class ExportConflictError(CaseManagerError):
    status_code = 409


class EmrExportError(CaseManagerError):
    status_code = 502


class EmrNotConfiguredError(CaseManagerError):
    status_code = 503

    def __init__(self):
        super().__init__(
            "PhenoML not configured. Please set PHENOML_USERNAME, PHENOML_PASSWORD, "
            "PHENOML_BASE_URL, and PHENOML_FHIR_PROVIDER_ID environment variables."
        )
