from __future__ import annotations

from typing import Any, Dict, Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError as PydanticValidationError,
    field_validator,
    model_validator,
)

from .exceptions import DecodeError


# Raw JSON bytes, or the fields of a form-encoded body
RequestBody = Union[bytes, Dict[str, str]]


def _decode(model: type[BaseModel], raw: RequestBody, status_code: Optional[int] = None) -> Any:
    """
    Decode a request body into ``model``.

    JSON bodies are validated strictly. Form fields arrive as strings, so they are
    validated in lax mode (e.g. "true" becomes True).

    Raises:
        DecodeError if the body does not match the model's field types.
    """
    try:
        if isinstance(raw, dict):
            return model.model_validate(raw, strict=False)
        return model.model_validate_json(raw or b"")
    except PydanticValidationError as exc:
        raise DecodeError(status_code=status_code) from exc


# PUBLIC_INTERFACE
class TodoCreate(BaseModel):
    """
    Schema for creating a new Todo item.

    An ``id`` supplied by the client is ignored; storage always assigns a fresh one.
    Emptiness of ``description`` is checked by the handler so that it maps to a
    client error rather than a decode failure.
    """

    model_config = ConfigDict(
        strict=True,
        extra="ignore",
        json_schema_extra={
            "example": {
                "description": "Buy milk",
                "completed": False,
            }
        },
    )

    description: Optional[str] = Field(default=None, description="Todo description; must not be empty")
    completed: bool = Field(default=False, description="Completion status flag")

    @field_validator("completed", mode="before")
    @classmethod
    def null_completed_is_false(cls, v: Any) -> Any:
        return False if v is None else v

    # PUBLIC_INTERFACE
    @classmethod
    def decode(cls, raw: RequestBody, status_code: Optional[int] = None) -> "TodoCreate":
        """Decode a create request body."""
        return _decode(cls, raw, status_code)

    def has_description(self) -> bool:
        return bool(self.description and self.description.strip())


# PUBLIC_INTERFACE
class TodoUpdate(BaseModel):
    """
    Schema for partially updating an existing Todo item.

    Each field is either present or absent; presence is tracked by
    ``model_fields_set``. Unknown keys are ignored and explicit nulls are rejected.
    """

    model_config = ConfigDict(
        strict=True,
        extra="ignore",
        json_schema_extra={
            "example": {
                "completed": True,
            }
        },
    )

    completed: Optional[bool] = Field(default=None, description="New completion status")
    description: Optional[str] = Field(default=None, description="New description")

    @model_validator(mode="after")
    def reject_explicit_nulls(self) -> "TodoUpdate":
        for name in self.model_fields_set:
            if getattr(self, name) is None:
                raise ValueError(f"{name} must not be null")
        return self

    # PUBLIC_INTERFACE
    @classmethod
    def decode(cls, raw: RequestBody, status_code: Optional[int] = None) -> "TodoUpdate":
        """Decode a partial update request body."""
        return _decode(cls, raw, status_code)

    def changes(self) -> Dict[str, Any]:
        """Return only the recognized fields that were present in the request."""
        return {name: getattr(self, name) for name in self.model_fields_set}


# PUBLIC_INTERFACE
class TodoOut(BaseModel):
    """
    Schema returned by the API for a Todo item.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "id": "66f1c2a9e4b0a1b2c3d4e5f6",
                "completed": False,
                "description": "Buy milk",
            }
        }
    )

    id: str = Field(..., description="Unique identifier of the todo item (ObjectId hex)")
    completed: bool = Field(default=False, description="Completion status flag")
    description: str = Field(..., description="Todo description")


class TodoEnvelope(BaseModel):
    """Response body for create and update: the todo plus a status message."""

    data: TodoOut
    message: str


class MessageOut(BaseModel):
    message: str


class NoDataOut(BaseModel):
    """Returned by the list endpoint in place of an empty array."""

    data: str = Field(..., description="Always 'Todos Not Available'")


class ErrorOut(BaseModel):
    error: str
