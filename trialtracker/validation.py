"""
TRIAL TRACKER - Form Validation Helpers
========================================
Shared pydantic base model for inbound payloads and the conversion of pydantic
errors into a single ValidationError listing every violated rule.
"""

from typing import Any, Dict, List, Type, TypeVar

from pydantic import BaseModel, ConfigDict
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from .errors import ValidationError

FormT = TypeVar("FormT", bound="FormModel")


class FormModel(BaseModel):
    """
    Base for inbound payloads.

    Accepts camelCase keys (the wire format) or snake_case field names,
    strips surrounding whitespace from strings, and ignores keys it does not
    know so server-managed fields cannot be smuggled in.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
        extra="ignore",
    )


def format_errors(exc) -> List[str]:
    """
    One human-readable line per failed rule.

    Accepts anything with a pydantic-style errors() list, which includes
    FastAPI's RequestValidationError.
    """
    messages = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error["loc"] if part not in ("body", "query", "path"))
        if error["type"] == "value_error" and "error" in error.get("ctx", {}):
            message = str(error["ctx"]["error"])
        else:
            message = error["msg"]
        messages.append(f"{location}: {message}" if location else message)
    return messages


def parse_form(model: Type[FormT], data: Dict[str, Any]) -> FormT:
    """
    Validate a payload against a form model.

    Raises:
        ValidationError: with every violation, never just the first one
    """
    if not isinstance(data, dict):
        raise ValidationError(["Request body must be a JSON object"])
    try:
        return model.model_validate(data)
    except PydanticValidationError as e:
        raise ValidationError(format_errors(e)) from e
