"""
JSON Schema validation service.

Collects every error instead of stopping at the first one, and reports each
against the dotted path of the offending field.
"""

from typing import Any

import jsonschema


def validate_against_schema(data: dict[str, Any], schema: dict[str, Any]) -> list[tuple[str, str]]:
    """
    Validate a dict against a JSON schema.
    Returns (field path, message) pairs; an empty list means valid.
    """
    validator = jsonschema.Draft7Validator(schema)
    errors: list[tuple[str, str]] = []
    for error in validator.iter_errors(data):
        path = [str(part) for part in error.absolute_path]
        if error.validator == "required":
            # Reported on the parent object; name the missing property instead
            found = [(".".join(path + [p]), f"'{p}' is a required property")
                     for p in error.validator_value if p not in error.instance]
        else:
            found = [(".".join(path), error.message)]
        for entry in found:
            if entry not in errors:
                errors.append(entry)
    return errors
