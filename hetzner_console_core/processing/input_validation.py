"""
Turns raw operation payloads into typed input models.

Nothing past ``validate_input`` sees an untyped payload. Violations are
reported per field; the offending values are left out since payloads can
carry API tokens and user data.
"""

from typing import Any, Dict, List, Type, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from ..exceptions import ValidationError

InputModel = TypeVar("InputModel", bound=BaseModel)

ROOT_FIELD = "payload"


def _violations(error: PydanticValidationError) -> List[Dict[str, Any]]:
    return [
        {
            "field": ".".join(str(part) for part in detail["loc"]) or ROOT_FIELD,
            "message": detail["msg"],
            "type": detail["type"],
        }
        for detail in error.errors(include_url=False, include_input=False)
    ]


def validate_input(raw_payload: Any, schema: Type[InputModel]) -> InputModel:
    """
    Validate a raw payload against an operation's input model.

    Args:
        raw_payload: Payload as received; None counts as an empty object
        schema: The operation's input model

    Returns:
        The validated input

    Raises:
        ValidationError: With one violation per failing field
    """
    payload = {} if raw_payload is None else raw_payload

    try:
        return schema.model_validate(payload)
    except PydanticValidationError as e:
        violations = _violations(e)
        fields = ", ".join(violation["field"] for violation in violations)
        raise ValidationError(
            f"Invalid {schema.__name__}: {fields}",
            violations=violations,
            schema=schema.__name__,
        )
