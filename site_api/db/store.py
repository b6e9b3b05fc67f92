"""
Record store for form submissions.

RecordStore is the interface the pipelines depend on; MongoRecordStore is the
production implementation on top of motor. Every call is a single attempt:
nothing here retries.

A uniqueness violation on insert is an expected outcome (two signups for the
same newsletter email), so insert() reports it as InsertOutcome.ALREADY_EXISTS
instead of raising.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pymongo import ASCENDING
from pymongo.errors import ConnectionFailure, DuplicateKeyError, PyMongoError

from site_api.core.errors import StoreError, StoreUnavailable
from site_api.db.init_db import initialize_database
from site_api.db.mongo import create_client

logger = logging.getLogger(__name__)

CONTACT_SUBMISSIONS = "contact_submissions"
NEWSLETTER_SUBSCRIBERS = "newsletter_subscribers"


class InsertOutcome(str, Enum):
    INSERTED = "inserted"
    ALREADY_EXISTS = "already_exists"


@dataclass
class InsertResult:
    outcome: InsertOutcome
    record: Dict[str, Any] = field(default_factory=dict)

    @property
    def inserted(self) -> bool:
        return self.outcome is InsertOutcome.INSERTED


class RecordStore(ABC):
    """Abstract store over the submission collections."""

    @abstractmethod
    async def insert(self, collection: str, record: Dict[str, Any]) -> InsertResult:
        """
        Insert a record keyed by its "id" field.

        Returns:
            InsertResult: INSERTED with the stored record, or ALREADY_EXISTS
            when a unique constraint (id, newsletter email) was violated

        Raises:
            StoreUnavailable: If the store is unconfigured or unreachable
            StoreError: For any other backend rejection
        """

    @abstractmethod
    async def find_by_key(self, collection: str, field_name: str, value: Any) -> Optional[Dict[str, Any]]:
        """Return the first record whose field equals value, or None when absent."""

    @abstractmethod
    async def find_due(
        self,
        collection: str,
        *,
        timestamp_field: str,
        older_than: datetime,
        newer_than: datetime,
        marker_field: str,
        limit: int = 100,
    ) -> List[Dict[str, Any]]:
        """Records with newer_than < timestamp <= older_than that lack marker_field."""

    @abstractmethod
    async def mark(self, collection: str, record_id: str, field_name: str, value: Any) -> None:
        """Set a single bookkeeping field on a record."""

    async def ensure_schema(self) -> bool:
        """Create collections and indexes if the backend needs it."""
        return True

    async def close(self) -> None:
        return None


def _strip_internal(document: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    if document is None:
        return None
    document = dict(document)
    document.pop("_id", None)
    return document


class MongoRecordStore(RecordStore):
    """RecordStore backed by a MongoDB database through motor."""

    def __init__(self, db=None, client=None):
        self._db = db
        self._client = client

    def _collection(self, name: str):
        if self._db is None:
            raise StoreUnavailable(
                "Record store is not configured. Please set MONGODB_URL in your environment variables."
            )
        return self._db[name]

    async def insert(self, collection: str, record: Dict[str, Any]) -> InsertResult:
        document = dict(record)
        document["_id"] = record["id"]

        try:
            await self._collection(collection).insert_one(document)
        except DuplicateKeyError:
            logger.info(f"Duplicate key on insert into '{collection}' (id={record.get('id')})")
            return InsertResult(InsertOutcome.ALREADY_EXISTS, dict(record))
        except ConnectionFailure as e:
            raise StoreUnavailable(f"Cannot reach MongoDB: {str(e)}") from e
        except PyMongoError as e:
            raise StoreError(f"MongoDB rejected insert into '{collection}': {str(e)}") from e

        return InsertResult(InsertOutcome.INSERTED, dict(record))

    async def find_by_key(self, collection: str, field_name: str, value: Any) -> Optional[Dict[str, Any]]:
        try:
            document = await self._collection(collection).find_one({field_name: value})
        except ConnectionFailure as e:
            raise StoreUnavailable(f"Cannot reach MongoDB: {str(e)}") from e
        except PyMongoError as e:
            raise StoreError(f"MongoDB lookup on '{collection}.{field_name}' failed: {str(e)}") from e
        return _strip_internal(document)

    async def find_due(
        self,
        collection: str,
        *,
        timestamp_field: str,
        older_than: datetime,
        newer_than: datetime,
        marker_field: str,
        limit: int = 100,
    ) -> List[Dict[str, Any]]:
        query = {
            timestamp_field: {"$lte": older_than, "$gt": newer_than},
            marker_field: {"$exists": False},
        }
        try:
            cursor = self._collection(collection).find(query).sort(timestamp_field, ASCENDING).limit(limit)
            documents = await cursor.to_list(length=limit)
        except ConnectionFailure as e:
            raise StoreUnavailable(f"Cannot reach MongoDB: {str(e)}") from e
        except PyMongoError as e:
            raise StoreError(f"MongoDB query on '{collection}' failed: {str(e)}") from e
        return [_strip_internal(document) for document in documents]

    async def mark(self, collection: str, record_id: str, field_name: str, value: Any) -> None:
        try:
            await self._collection(collection).update_one({"_id": record_id}, {"$set": {field_name: value}})
        except ConnectionFailure as e:
            raise StoreUnavailable(f"Cannot reach MongoDB: {str(e)}") from e
        except PyMongoError as e:
            raise StoreError(f"MongoDB update on '{collection}' failed: {str(e)}") from e

    async def ensure_schema(self) -> bool:
        if self._db is None:
            logger.warning("⚠️ Skipping database initialization - MongoDB is not configured")
            return False
        return await initialize_database(self._db)

    async def close(self) -> None:
        if self._client is not None:
            self._client.close()
            logger.info("MongoDB connections closed successfully")


def build_record_store(settings) -> MongoRecordStore:
    """
    Build the production store from settings.

    A missing or unusable URI is not fatal: the store is still returned and
    every call raises StoreUnavailable.
    """
    uri = settings.effective_mongo_uri
    if not uri:
        logger.warning("⚠️ MongoDB URI not configured! Database operations will fail. Set MONGODB_URL in your environment variables.")
        return MongoRecordStore()

    try:
        client, db = create_client(uri)
    except (ValueError, PyMongoError) as e:
        logger.error(f"❌ MongoDB URI rejected: {str(e)} Database operations will fail.")
        return MongoRecordStore()
    return MongoRecordStore(db=db, client=client)
