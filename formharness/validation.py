"""JSON Schema validation for harness inputs.

ValidationEngine validates plain dict data (settings files, or a submission
controller's view of submitted parameters) against a Draft 7 JSON Schema and
translates jsonschema errors into FieldError records with dot-notation paths
and readable messages.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List

import jsonschema
from jsonschema import Draft7Validator

from formharness.errors import FieldError


@dataclass(frozen=True)
class ValidationResult:
    """Result of validating data against a JSON Schema.

    Attributes:
        is_valid: Whether the data passed all validation checks
        errors: Field-level validation errors (empty if valid)
        missing_fields: Paths of required fields that are missing

    Examples:
        >>> schema = {'type': 'object', 'properties': {'name': {'type': 'string'}}, 'required': ['name']}
        >>> result = ValidationEngine(schema).validate({'name': 'test'})
        >>> result.is_valid
        True
    """
    is_valid: bool
    errors: List[FieldError] = field(default_factory=list)
    missing_fields: List[str] = field(default_factory=list)


class ValidationEngine:
    """Wraps a jsonschema Draft 7 validator.

    Examples:
        >>> schema = {
        ...     'type': 'object',
        ...     'properties': {'age': {'type': 'number', 'minimum': 0}},
        ...     'required': ['name']
        ... }
        >>> result = ValidationEngine(schema).validate({'age': -5})
        >>> [e.code for e in result.errors]
        ['required', 'minimum']
    """

    def __init__(self, schema: Dict[str, Any]) -> None:
        """
        Raises:
            jsonschema.SchemaError: If the provided schema is invalid
        """
        self.schema = schema
        Draft7Validator.check_schema(schema)
        self.validator = Draft7Validator(schema)

    def validate(self, data: Any) -> ValidationResult:
        # Sort so results are stable regardless of schema keyword order
        errors = sorted(self.validator.iter_errors(data), key=lambda e: ([str(p) for p in e.path], str(e.validator)))
        if not errors:
            return ValidationResult(is_valid=True)

        field_errors = [self._translate_error(e) for e in errors]
        return ValidationResult(
            is_valid=False,
            errors=field_errors,
            missing_fields=[e.path for e in field_errors if e.code == "required"],
        )

    def _translate_error(self, error: jsonschema.ValidationError) -> FieldError:
        """Translate a jsonschema ValidationError to a FieldError."""
        path = ".".join(str(p) for p in error.path)

        if error.validator == "required":
            # jsonschema reports "'name' is a required property"
            missing_prop = error.message.split("'")[1] if "'" in error.message else "field"
            full_path = f"{path}.{missing_prop}" if path else missing_prop
            return FieldError(
                path=full_path,
                code="required",
                message=f"Field '{full_path}' is required but was not provided",
                expected="required field",
            )

        if error.validator == "type":
            received_type = type(error.instance).__name__
            return FieldError(
                path=path,
                code="type",
                message=f"Field '{path}' has invalid type. Expected {error.validator_value}, got {received_type}",
                expected=error.validator_value,
                received=received_type,
            )

        if error.validator in ("enum", "const"):
            return FieldError(
                path=path,
                code=error.validator,
                message=f"Field '{path}' has invalid value. Must be one of: {error.validator_value}",
                expected=error.validator_value,
                received=error.instance,
            )

        if error.validator in ("minimum", "maximum", "exclusiveMinimum", "exclusiveMaximum"):
            return FieldError(
                path=path,
                code=error.validator,
                message=f"Field '{path}' violates {error.validator} constraint: {error.validator_value}",
                expected=f"{error.validator}: {error.validator_value}",
                received=error.instance,
            )

        if error.validator == "pattern":
            return FieldError(
                path=path,
                code="pattern",
                message=f"Field '{path}' does not match required pattern: {error.validator_value}",
                expected=f"pattern: {error.validator_value}",
                received=error.instance,
            )

        if error.validator == "additionalProperties":
            return FieldError(
                path=path,
                code="additionalProperties",
                message=f"Unknown field(s) at '{path or '<root>'}': {error.message}",
            )

        return FieldError(
            path=path,
            code=str(error.validator),
            message=f"Field '{path}' validation failed: {error.message}",
            expected=error.validator_value,
            received=error.instance,
        )


__all__ = [
    "ValidationEngine",
    "ValidationResult",
]
