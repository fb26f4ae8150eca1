from __future__ import annotations

from typing import TypedDict

from bson import ObjectId


# PUBLIC_INTERFACE
class TodoDocument(TypedDict):
    """
    A Todo item as stored in the document collection.

    Fields:
    - _id: ObjectId assigned by the storage layer on insert
    - completed: Boolean completion flag
    - description: Non-empty description text
    """

    _id: ObjectId
    completed: bool
    description: str
