"""
Case service – persistence operations over the ``cases`` table.

Routes hand in already-validated payloads; this module owns the
not-found translation, partial-update merging, timestamp discipline and
keyset pagination.
"""

from __future__ import annotations

import base64
import binascii
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any
from uuid import UUID

from sqlalchemy import and_, or_, select
from sqlalchemy.orm import Session

from case_manager.errors import CaseNotFoundError, EmptyPatchError, InvalidCursorError
from case_manager.models.case import Case, utcnow

logger = logging.getLogger(__name__)

DOCUMENT_FIELDS = ("note", "vitals", "physical_exam")
PATIENT_COLUMNS = {
    "name": "patient_name",
    "gender": "patient_gender",
    "date_of_birth": "patient_date_of_birth",
}


@dataclass
class CasePageResult:
    items: list[Case]
    continue_cursor: str | None
    is_done: bool


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------

def _newest_first():
    return (Case.updated_at.desc(), Case.id.desc())


def list_cases(db: Session) -> list[Case]:
    """All cases, most recently updated first."""
    return list(db.scalars(select(Case).order_by(*_newest_first())))


def get_case(db: Session, case_id: UUID | None) -> Case | None:
    """Return the case, or ``None`` when no id is given or it does not exist."""
    if case_id is None:
        return None
    return db.get(Case, case_id)


def find_case(db: Session, case_id: UUID) -> Case:
    case = get_case(db, case_id)
    if case is None:
        raise CaseNotFoundError(case_id)
    return case


# ---------------------------------------------------------------------------
# Writes
# ---------------------------------------------------------------------------

def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; every stored value is UTC
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


def _touch(case: Case) -> None:
    now = utcnow()
    if case.updated_at is not None and _as_utc(case.updated_at) > now:
        # Clock went backwards; never move updated_at into the past
        now = _as_utc(case.updated_at)
    case.updated_at = now


def _compact(document: dict[str, Any] | None) -> dict[str, Any] | None:
    if document is None:
        return None
    return {key: value for key, value in document.items() if value is not None}


def create_case(db: Session, data: dict[str, Any]) -> Case:
    """Insert a case from a validated ``CaseCreate`` dump."""
    patient = data["patient"]
    now = utcnow()
    case = Case(
        title=data["title"],
        patient_name=patient["name"],
        patient_gender=patient.get("gender"),
        patient_date_of_birth=patient.get("date_of_birth"),
        summary=data.get("summary"),
        note=_compact(data.get("note")),
        vitals=_compact(data.get("vitals")),
        physical_exam=_compact(data.get("physical_exam")),
        created_at=now,
        updated_at=now,
    )
    db.add(case)
    db.commit()
    db.refresh(case)
    logger.info("Created case %s (%r)", case.id, case.title)
    return case


def update_case(db: Session, case_id: UUID, changes: dict[str, Any]) -> Case:
    """
    Apply a partial update. ``changes`` holds only the fields the client sent
    (``model_dump(exclude_unset=True)``); sub-documents merge key by key and an
    explicit ``None`` for a whole optional block clears it. Empty sub-documents
    change nothing, so a body made only of them is an empty patch.
    """
    changes = {
        field: value
        for field, value in changes.items()
        if not (isinstance(value, dict) and not value)
    }
    if not changes:
        raise EmptyPatchError()

    case = find_case(db, case_id)

    for field, value in changes.items():
        if field == "patient":
            for key, column in PATIENT_COLUMNS.items():
                if key in value:
                    setattr(case, column, value[key])
        elif field in DOCUMENT_FIELDS:
            if value is None:
                setattr(case, field, None)
            else:
                merged = {**(getattr(case, field) or {}), **value}
                setattr(case, field, _compact(merged))
        else:
            setattr(case, field, value)

    _touch(case)
    db.commit()
    db.refresh(case)
    logger.info("Updated case %s fields=%s", case.id, sorted(changes))
    return case


def delete_case(db: Session, case_id: UUID) -> UUID:
    """Delete a case together with the FHIR resource rows linked to it."""
    case = find_case(db, case_id)
    db.delete(case)
    db.commit()
    logger.info("Deleted case %s", case_id)
    return case_id


# ---------------------------------------------------------------------------
# Pagination & search
# ---------------------------------------------------------------------------

def encode_cursor(case: Case) -> str:
    raw = f"{_as_utc(case.updated_at).isoformat()}|{case.id}"
    return base64.urlsafe_b64encode(raw.encode()).decode()


def decode_cursor(cursor: str) -> tuple[datetime, UUID]:
    try:
        raw = base64.urlsafe_b64decode(cursor.encode()).decode()
        updated_at, case_id = raw.split("|", 1)
        return datetime.fromisoformat(updated_at), UUID(case_id)
    except (binascii.Error, UnicodeDecodeError, ValueError) as exc:
        raise InvalidCursorError(cursor) from exc


def get_case_page(
    db: Session,
    *,
    search: str = "",
    cursor: str | None = None,
    num_items: int = 10,
) -> CasePageResult:
    """
    One page of cases, newest first.

    With a search term every whitespace-separated token must appear in the
    title (case-insensitive). Paging is keyset-based on (updated_at, id), so
    rows inserted while a client is paging never shift later pages.
    """
    query = select(Case)
    for token in search.split():
        query = query.where(Case.title.icontains(token, autoescape=True))

    if cursor:
        updated_at, case_id = decode_cursor(cursor)
        query = query.where(
            or_(
                Case.updated_at < updated_at,
                and_(Case.updated_at == updated_at, Case.id < case_id),
            )
        )

    rows = list(db.scalars(query.order_by(*_newest_first()).limit(num_items + 1)))
    items = rows[:num_items]
    is_done = len(rows) <= num_items
    return CasePageResult(
        items=items,
        continue_cursor=None if is_done or not items else encode_cursor(items[-1]),
        is_done=is_done,
    )
