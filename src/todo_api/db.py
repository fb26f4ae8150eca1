from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from bson import ObjectId
from pymongo import MongoClient, ReturnDocument
from pymongo.collection import Collection
from pymongo.errors import PyMongoError

from .codec import to_document, with_id
from .exceptions import StorageError
from .models import TodoDocument
from .repositories import Repository
from .schemas import TodoCreate, TodoUpdate
from .settings import Settings

logger = logging.getLogger(__name__)


class MongoRepository(Repository):
    """
    Repository backed by a single MongoDB collection.

    Every driver failure is re-raised as StorageError; nothing is retried.
    """

    def __init__(self, collection: Collection, client: Optional[MongoClient] = None) -> None:
        self._collection = collection
        self._client = client

    @classmethod
    def from_settings(cls, settings: Settings) -> "MongoRepository":
        client: MongoClient = MongoClient(
            settings.mongodb_uri,
            serverSelectionTimeoutMS=settings.mongodb_timeout_ms,
        )
        collection = client[settings.mongodb_database][settings.mongodb_collection]
        return cls(collection, client=client)

    def ping(self) -> None:
        if self._client is None:
            return
        try:
            self._client.admin.command("ping")
        except PyMongoError as exc:
            raise StorageError("Could not connect to MongoDB") from exc
        logger.info(
            "Connected to MongoDB collection %s.%s",
            self._collection.database.name,
            self._collection.name,
        )

    def close(self) -> None:
        if self._client is not None:
            self._client.close()

    def list_all(self) -> List[TodoDocument]:
        try:
            return list(self._collection.find({}))
        except PyMongoError as exc:
            raise StorageError() from exc

    def get(self, todo_id: ObjectId) -> Optional[TodoDocument]:
        try:
            return self._collection.find_one({"_id": todo_id})
        except PyMongoError as exc:
            raise StorageError() from exc

    def create(self, data: TodoCreate) -> TodoDocument:
        doc: Dict[str, Any] = to_document(data)
        try:
            result = self._collection.insert_one(doc)
        except PyMongoError as exc:
            raise StorageError() from exc
        return with_id(doc, result.inserted_id)

    def update(self, todo_id: ObjectId, data: TodoUpdate) -> Optional[TodoDocument]:
        try:
            return self._collection.find_one_and_update(
                {"_id": todo_id},
                {"$set": data.changes()},
                return_document=ReturnDocument.BEFORE,
            )
        except PyMongoError as exc:
            raise StorageError() from exc

    def delete(self, todo_id: ObjectId) -> int:
        try:
            result = self._collection.delete_one({"_id": todo_id})
        except PyMongoError as exc:
            raise StorageError() from exc
        return result.deleted_count
