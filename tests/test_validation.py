"""Tests for JSON schema validation."""

from case_manager.schemas.forms import AI_CASE_FORM_SCHEMA, CASE_FORM_SCHEMA
from case_manager.services.validation import validate_against_schema


def test_valid_form():
    record = {
        "title": "Annual Checkup",
        "patient": {"name": "Jane Doe", "gender": "female", "date_of_birth": "1990-01-15"},
    }
    assert validate_against_schema(record, CASE_FORM_SCHEMA) == []


def test_missing_required_fields_reported_by_path():
    errors = validate_against_schema({"patient": {}}, CASE_FORM_SCHEMA)
    fields = [field for field, _ in errors]
    assert "title" in fields
    assert "patient.name" in fields


def test_invalid_date_format():
    record = {"title": "t", "patient": {"name": "Jane", "date_of_birth": "01/15/1990"}}
    errors = validate_against_schema(record, CASE_FORM_SCHEMA)
    assert [field for field, _ in errors] == ["patient.date_of_birth"]


def test_invalid_gender():
    record = {"title": "t", "patient": {"name": "Jane", "gender": "invalid_value"}}
    assert len(validate_against_schema(record, CASE_FORM_SCHEMA)) == 1


def test_ai_schema_requires_summary_but_detailed_does_not():
    record = {"title": "t", "patient": {"name": "Jane"}}
    assert validate_against_schema(record, CASE_FORM_SCHEMA) == []
    assert [f for f, _ in validate_against_schema(record, AI_CASE_FORM_SCHEMA)] == ["summary"]
