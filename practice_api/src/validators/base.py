"""
Request payload validation primitives.

Payload models are strict: unknown keys are rejected, strings are trimmed,
and numbers, booleans and dates are coerced from their string forms. Field
names use camelCase on the wire.
"""

from typing import Annotated, Any, Dict, List, Mapping, Optional, Type, TypeVar

from pydantic import BaseModel, ConfigDict, StringConstraints, ValidationError
from pydantic.alias_generators import to_camel

HEX24_PATTERN = r"^[0-9a-fA-F]{24}$"

# Non-empty after trimming
Text = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]

# Reference to another record (ObjectId shape)
ObjectIdStr = Annotated[str, StringConstraints(strip_whitespace=True, pattern=HEX24_PATTERN)]


def bounded_text(max_length: int, min_length: int = 1) -> Any:
    """Trimmed string type with length bounds; ``min_length=0`` allows ''."""
    return Annotated[
        str,
        StringConstraints(strip_whitespace=True, min_length=min_length, max_length=max_length),
    ]


class StrictModel(BaseModel):
    """Base class for validated request payloads."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
        str_strip_whitespace=True,
    )

    def to_document(self) -> Dict[str, Any]:
        """Validated data as a camelCase JSON-ready dict, unset optionals dropped."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class PayloadValidationError(ValueError):
    """
    Raised when a payload fails validation.

    Attributes:
        errors: One ``{"field", "message", "type"}`` dict per problem, with
            dotted camelCase field paths (``riskFactors.0.score``)
    """

    def __init__(self, errors: List[Dict[str, str]], message: str = "Validation failed"):
        super().__init__(message)
        self.message = message
        self.errors = errors

    @property
    def first_message(self) -> Optional[str]:
        return self.errors[0]["message"] if self.errors else None


def _format_errors(exc: ValidationError) -> List[Dict[str, str]]:
    formatted = []
    for error in exc.errors():
        field = ".".join(str(part) for part in error["loc"]) or "body"
        formatted.append({
            "field": field,
            "message": error["msg"],
            "type": error["type"],
        })
    return formatted


M = TypeVar("M", bound=BaseModel)


def validate_payload(model: Type[M], data: Any) -> M:
    """
    Validate raw request data against a payload model.

    Args:
        model: StrictModel subclass to validate against
        data: Parsed JSON body or query parameters (``None`` is treated as {});
            anything other than a mapping is rejected as a whole

    Returns:
        The validated model instance, with defaults applied

    Raises:
        PayloadValidationError: If any field is missing, malformed or unknown

    Example:
        >>> check = validate_payload(MalpracticeCheckCreate, request_json)
        >>> check.severity
        'Medium'
    """
    if data is None:
        data = {}
    if not isinstance(data, Mapping):
        raise PayloadValidationError([{
            "field": "body",
            "message": "Input should be a valid dictionary",
            "type": "dict_type",
        }])

    try:
        return model.model_validate(dict(data))
    except ValidationError as exc:
        raise PayloadValidationError(_format_errors(exc)) from exc
