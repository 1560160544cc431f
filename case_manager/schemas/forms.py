"""
JSON schemas for the case entry form.

The form always carries every field (blank strings for untouched inputs), so
"required" here means "present and not blank". The AI-mode schema adds the
summary requirement on top of the detailed one.
"""

import copy

NOT_BLANK: dict = {"type": "string", "pattern": "\\S"}

OPTIONAL_TEXT: dict = {"type": ["string", "null"]}
OPTIONAL_NUMBER: dict = {"type": ["number", "null"], "minimum": 0}
OPTIONAL_COUNT: dict = {"type": ["integer", "null"], "minimum": 0}

CASE_FORM_SCHEMA: dict = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "title": "Case form (detailed mode)",
    "type": "object",
    "required": ["title", "patient"],
    "properties": {
        "title": NOT_BLANK,
        "summary": OPTIONAL_TEXT,
        "patient": {
            "type": "object",
            "required": ["name"],
            "properties": {
                "name": NOT_BLANK,
                "gender": {"enum": ["", None, "male", "female", "other", "unknown"]},
                "date_of_birth": {
                    "anyOf": [
                        {"type": "string", "pattern": "^(\\d{4}-\\d{2}-\\d{2})?$"},
                        {"type": "null"},
                    ]
                },
            },
        },
        "note": {"type": ["object", "null"]},
        "vitals": {
            "type": ["object", "null"],
            "properties": {
                "height": OPTIONAL_NUMBER,
                "weight_lbs": OPTIONAL_NUMBER,
                "weight_oz": {"type": ["number", "null"], "minimum": 0, "exclusiveMaximum": 16},
                "waist_circumference": OPTIONAL_NUMBER,
                "temperature": {"type": ["number", "null"]},
                "temperature_site": OPTIONAL_TEXT,
                "blood_pressure_systolic": OPTIONAL_COUNT,
                "blood_pressure_diastolic": OPTIONAL_COUNT,
                "blood_pressure_site": OPTIONAL_TEXT,
                "pulse_rate": OPTIONAL_COUNT,
                "pulse_rhythm": OPTIONAL_TEXT,
                "respiration_rate": OPTIONAL_COUNT,
                "oxygen_saturation": {"type": ["number", "null"], "minimum": 0, "maximum": 100},
                "notes": OPTIONAL_TEXT,
            },
        },
        "physical_exam": {"type": ["object", "null"]},
    },
}

AI_CASE_FORM_SCHEMA: dict = copy.deepcopy(CASE_FORM_SCHEMA)
AI_CASE_FORM_SCHEMA["title"] = "Case form (AI summary mode)"
AI_CASE_FORM_SCHEMA["required"] = ["title", "patient", "summary"]
AI_CASE_FORM_SCHEMA["properties"]["summary"] = NOT_BLANK

# Order in which inputs appear on the form; the first invalid one gets focus.
FIELD_ORDER: list[str] = [
    "title",
    "patient.name",
    "summary",
    "patient.gender",
    "patient.date_of_birth",
    "vitals.height",
    "vitals.weight_lbs",
    "vitals.weight_oz",
    "vitals.waist_circumference",
    "vitals.temperature",
    "vitals.temperature_site",
    "vitals.blood_pressure_systolic",
    "vitals.blood_pressure_diastolic",
    "vitals.blood_pressure_site",
    "vitals.pulse_rate",
    "vitals.pulse_rhythm",
    "vitals.respiration_rate",
    "vitals.oxygen_saturation",
    "vitals.notes",
]

FIELD_MESSAGES: dict[str, str] = {
    "title": "Title is required",
    "patient.name": "Patient name is required",
    "summary": "Summary is required",
}
