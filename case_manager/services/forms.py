"""
Case entry form logic.

The form edits a case in one of two modes: ``ai`` (a free-text summary plus
title and patient) or ``detailed`` (clinical note, vitals and physical exam).
Weight is entered as pounds + ounces and stored as decimal pounds.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from case_manager.schemas.forms import (
    AI_CASE_FORM_SCHEMA,
    CASE_FORM_SCHEMA,
    FIELD_MESSAGES,
    FIELD_ORDER,
)
from case_manager.services.validation import validate_against_schema

OUNCES_PER_POUND = 16

NOTE_FIELDS = ("hpi", "reason_for_visit", "assessment", "plan")
VITALS_TEXT_FIELDS = ("temperature_site", "blood_pressure_site", "pulse_rhythm", "notes")
VITALS_NUMBER_FIELDS = (
    "height",
    "waist_circumference",
    "temperature",
    "blood_pressure_systolic",
    "blood_pressure_diastolic",
    "pulse_rate",
    "respiration_rate",
    "oxygen_saturation",
)
EXAM_FIELDS = ("constitutional", "cardiovascular", "pulmonary", "other")


class FormMode(str, Enum):
    AI = "ai"
    DETAILED = "detailed"


@dataclass
class FormValidation:
    errors: list[tuple[str, str]] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.errors

    @property
    def focus(self) -> str | None:
        """The field the form should focus: the first invalid one."""
        return self.errors[0][0] if self.errors else None


# ---------------------------------------------------------------------------
# Weight conversion
# ---------------------------------------------------------------------------

def lbs_oz_to_decimal(lbs: float | None, oz: float | None) -> float | None:
    if lbs is None:
        return None
    return lbs + (oz or 0) / OUNCES_PER_POUND


def decimal_to_lbs_oz(weight: float | None) -> tuple[int | None, int | None]:
    """
    Split decimal pounds into whole pounds and rounded ounces.

    Zero ounces come back as ``None`` (5.0 -> (5, None)), so a form saved with
    an explicit "0 oz" reloads with the ounce input empty.
    """
    if weight is None:
        return None, None
    lbs = math.floor(weight)
    ounces = math.floor((weight - lbs) * OUNCES_PER_POUND + 0.5)
    if ounces == OUNCES_PER_POUND:
        lbs, ounces = lbs + 1, 0
    return lbs, ounces if ounces > 0 else None


# ---------------------------------------------------------------------------
# Form values <-> case payload
# ---------------------------------------------------------------------------

def empty_form_values() -> dict[str, Any]:
    return {
        "title": "",
        "summary": "",
        "patient": {"name": "", "gender": "", "date_of_birth": ""},
        "note": {name: "" for name in NOTE_FIELDS},
        "vitals": {
            **{name: None for name in VITALS_NUMBER_FIELDS},
            **{name: "" for name in VITALS_TEXT_FIELDS},
            "weight_lbs": None,
            "weight_oz": None,
        },
        "physical_exam": {name: "" for name in EXAM_FIELDS},
    }


def _with_defaults(values: dict[str, Any]) -> dict[str, Any]:
    merged = empty_form_values()
    for key, value in values.items():
        if isinstance(merged.get(key), dict) and value is None:
            # a null block reads as an untouched one
            continue
        if isinstance(merged.get(key), dict) and isinstance(value, dict):
            merged[key].update(value)
        else:
            merged[key] = value
    return merged


def _text(value: Any) -> str | None:
    if value is None:
        return None
    value = str(value)
    return value if value.strip() else None


def _block(values: dict[str, Any]) -> dict[str, Any] | None:
    block = {key: value for key, value in values.items() if value is not None}
    return block or None


def initial_mode(case: dict[str, Any] | None) -> FormMode:
    """Edit forms open in AI mode when the case already has a summary."""
    if case and case.get("summary"):
        return FormMode.AI
    return FormMode.DETAILED


def case_to_form_values(case: dict[str, Any]) -> dict[str, Any]:
    """Map a stored case (``CaseResponse`` dump) onto form inputs."""
    values = empty_form_values()
    values["title"] = case.get("title") or ""
    values["summary"] = case.get("summary") or ""

    patient = case.get("patient") or {}
    for key in values["patient"]:
        values["patient"][key] = patient.get(key) or ""

    note = case.get("note") or {}
    for key in NOTE_FIELDS:
        values["note"][key] = note.get(key) or ""

    vitals = case.get("vitals") or {}
    for key in VITALS_NUMBER_FIELDS:
        values["vitals"][key] = vitals.get(key)
    for key in VITALS_TEXT_FIELDS:
        values["vitals"][key] = vitals.get(key) or ""
    values["vitals"]["weight_lbs"], values["vitals"]["weight_oz"] = decimal_to_lbs_oz(
        vitals.get("weight")
    )

    exam = case.get("physical_exam") or {}
    for key in EXAM_FIELDS:
        values["physical_exam"][key] = exam.get(key) or ""
    return values


def build_case_payload(values: dict[str, Any], mode: FormMode = FormMode.DETAILED) -> dict[str, Any]:
    """
    Turn form inputs into a ``CaseCreate``-shaped dict. Blank inputs are left
    out; AI mode sends only title, patient and summary.
    """
    values = _with_defaults(values)
    patient = values["patient"]
    payload: dict[str, Any] = {
        "title": values["title"],
        "patient": _block(
            {
                "name": patient["name"],
                "gender": _text(patient["gender"]),
                "date_of_birth": _text(patient["date_of_birth"]),
            }
        ),
    }

    if FormMode(mode) is FormMode.AI:
        payload["summary"] = _text(values["summary"])
        return {key: value for key, value in payload.items() if value is not None}

    vitals = values["vitals"]
    payload["note"] = _block({key: _text(values["note"][key]) for key in NOTE_FIELDS})
    payload["vitals"] = _block(
        {
            **{key: vitals[key] for key in VITALS_NUMBER_FIELDS},
            **{key: _text(vitals[key]) for key in VITALS_TEXT_FIELDS},
            "weight": lbs_oz_to_decimal(vitals["weight_lbs"], vitals["weight_oz"]),
        }
    )
    payload["physical_exam"] = _block(
        {key: _text(values["physical_exam"][key]) for key in EXAM_FIELDS}
    )
    return {key: value for key, value in payload.items() if value is not None}


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------

def _field_rank(path: str) -> int:
    return FIELD_ORDER.index(path) if path in FIELD_ORDER else len(FIELD_ORDER)


def validate_case_form(values: dict[str, Any], mode: FormMode = FormMode.DETAILED) -> FormValidation:
    """Check required inputs for the given mode, in on-screen order."""
    schema = AI_CASE_FORM_SCHEMA if FormMode(mode) is FormMode.AI else CASE_FORM_SCHEMA
    raw = validate_against_schema(_with_defaults(values), schema)

    messages: dict[str, str] = {}
    for path, message in raw:
        messages.setdefault(path, FIELD_MESSAGES.get(path, message))

    ordered = sorted(messages.items(), key=lambda item: _field_rank(item[0]))
    return FormValidation(errors=ordered)
