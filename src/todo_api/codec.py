"""
Conversion between the wire representation of a Todo and its stored document.
"""
from __future__ import annotations

from typing import Any, Dict, Mapping

from bson import ObjectId

from .exceptions import InvalidIdentifierError
from .models import TodoDocument
from .schemas import TodoCreate, TodoOut


# PUBLIC_INTERFACE
def parse_object_id(value: str) -> ObjectId:
    """
    Parse a path identifier into an ObjectId.

    Raises:
        InvalidIdentifierError if ``value`` is not a 24-character hex string.
    """
    if not isinstance(value, str) or not ObjectId.is_valid(value):
        raise InvalidIdentifierError()
    return ObjectId(value)


# PUBLIC_INTERFACE
def to_document(todo: TodoCreate) -> Dict[str, Any]:
    """Build the document to insert for a new Todo. The ``_id`` is left to storage."""
    return {"completed": todo.completed, "description": todo.description}


# PUBLIC_INTERFACE
def from_document(doc: Mapping[str, Any]) -> TodoOut:
    """Map a stored document to the API representation."""
    return TodoOut(
        id=str(doc["_id"]),
        completed=bool(doc.get("completed", False)),
        description=doc.get("description") or "",
    )


def with_id(doc: Mapping[str, Any], oid: ObjectId) -> TodoDocument:
    stored: TodoDocument = {
        "_id": oid,
        "completed": bool(doc.get("completed", False)),
        "description": doc.get("description") or "",
    }
    return stored
