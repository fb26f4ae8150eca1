from __future__ import annotations

from abc import ABC, abstractmethod
from threading import RLock
from typing import Dict, List, Optional

from bson import ObjectId

from .codec import to_document, with_id
from .models import TodoDocument
from .schemas import TodoCreate, TodoUpdate
from .settings import Settings


# PUBLIC_INTERFACE
class Repository(ABC):
    """Abstract storage handle contract for the todo collection."""

    @abstractmethod
    def list_all(self) -> List[TodoDocument]:
        """Return every stored todo in the backend's default iteration order."""

    @abstractmethod
    def get(self, todo_id: ObjectId) -> Optional[TodoDocument]:
        """Return a todo by id, or None if not found."""

    @abstractmethod
    def create(self, data: TodoCreate) -> TodoDocument:
        """Insert a new todo and return it with its storage-assigned id."""

    @abstractmethod
    def update(self, todo_id: ObjectId, data: TodoUpdate) -> Optional[TodoDocument]:
        """
        Set the fields present in ``data`` on the matching todo.

        Returns the document as it was *before* the update, or None if nothing matched.
        """

    @abstractmethod
    def delete(self, todo_id: ObjectId) -> int:
        """Delete a todo by id. Return the number of documents removed (0 or 1)."""

    def ping(self) -> None:
        """Check that the backend is reachable. Raises StorageError on failure."""

    def close(self) -> None:
        """Release any connections held by the backend."""


class InMemoryRepository(Repository):
    """
    Thread-safe in-memory repository suitable for testing and local runs.
    """

    def __init__(self) -> None:
        self._lock = RLock()
        self._items: Dict[ObjectId, TodoDocument] = {}

    def list_all(self) -> List[TodoDocument]:
        with self._lock:
            return [dict(t) for t in self._items.values()]  # type: ignore[misc]

    def get(self, todo_id: ObjectId) -> Optional[TodoDocument]:
        with self._lock:
            item = self._items.get(todo_id)
            return None if item is None else item.copy()

    def create(self, data: TodoCreate) -> TodoDocument:
        entity = with_id(to_document(data), ObjectId())
        with self._lock:
            self._items[entity["_id"]] = entity
        return entity.copy()

    def update(self, todo_id: ObjectId, data: TodoUpdate) -> Optional[TodoDocument]:
        with self._lock:
            existing = self._items.get(todo_id)
            if existing is None:
                return None
            updated = existing.copy()
            updated.update(data.changes())  # type: ignore[typeddict-item]
            self._items[todo_id] = updated
            return existing.copy()

    def delete(self, todo_id: ObjectId) -> int:
        with self._lock:
            return 0 if self._items.pop(todo_id, None) is None else 1


# PUBLIC_INTERFACE
def get_repository(settings: Settings) -> Repository:
    """
    Factory to return the configured repository based on settings.
    - mongodb: MongoRepository connected to MONGODB_URI
    - memory: InMemoryRepository
    """
    if settings.persistence_backend == "memory":
        return InMemoryRepository()

    from .db import MongoRepository

    return MongoRepository.from_settings(settings)
