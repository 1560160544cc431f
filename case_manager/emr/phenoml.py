"""PhenoML lang2fhir client.

Turns a natural-language sentence into a FHIR resource and creates it in the
EMR configured as ``provider`` on the PhenoML side.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import httpx

from case_manager.config import PhenoMLSettings

logger = logging.getLogger(__name__)


@dataclass
class CreateFhirResourceResult:
    success: bool
    fhir_id: str | None = None
    message: str | None = None


class PhenoMLClient:
    """Sync PhenoML client; fetches a bearer token on first use."""

    TOKEN_PATH = "/auth/token"
    CREATE_PATH = "/tools/lang2fhir-and-create"

    def __init__(self, config: PhenoMLSettings, transport: httpx.BaseTransport | None = None):
        self._config = config
        self._token: str | None = None
        self._http = httpx.Client(
            base_url=config.base_url or "",
            timeout=config.timeout,
            transport=transport,
        )

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> PhenoMLClient:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _get_token(self) -> str:
        if self._token:
            return self._token

        response = self._http.post(
            self.TOKEN_PATH,
            auth=(self._config.username or "", self._config.password or ""),
        )
        response.raise_for_status()
        self._token = response.json()["token"]
        return self._token

    def create_fhir_resource(self, *, resource: str, text: str) -> CreateFhirResourceResult:
        """POST one sentence to lang2fhir-and-create.

        Args:
            resource: PhenoML resource profile, e.g. "patient" or "simple-observation"
            text: Natural-language description of the resource

        Raises:
            httpx.HTTPError: On transport errors and non-2xx responses
        """
        response = self._http.post(
            self.CREATE_PATH,
            json={
                "provider": self._config.fhir_provider_id,
                "resource": resource,
                "text": text,
            },
            headers={"Authorization": f"Bearer {self._get_token()}"},
        )
        response.raise_for_status()
        data = response.json()
        result = CreateFhirResourceResult(
            success=bool(data.get("success")),
            fhir_id=data.get("fhir_id"),
            message=data.get("message"),
        )
        logger.debug("lang2fhir %s -> success=%s id=%s", resource, result.success, result.fhir_id)
        return result
