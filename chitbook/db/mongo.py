import logging
from typing import Any, Dict, List, Optional

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo.errors import PyMongoError

from chitbook.core.config import settings
from chitbook.core.errors import StoreError
from chitbook.db.store import (
    AUCTIONS,
    CLIENTS,
    DELETE,
    GROUP_MEMBERS,
    INSERT,
    PAYMENT_LOGS,
    PAYMENTS,
    UPDATE,
    DocumentStore,
    WriteBatch,
    WriteOp,
)

logger = logging.getLogger(__name__)


class MongoDatabase:
    """MongoDB connection manager."""

    client: AsyncIOMotorClient = None
    db: AsyncIOMotorDatabase = None

mongodb = MongoDatabase()


class MongoDocumentStore(DocumentStore):
    """
    DocumentStore over motor.

    Every document carries account_id; every query and write is filtered by it.
    Batches run inside a multi-document transaction, which needs a replica set
    or sharded deployment.
    """

    def __init__(self, db: AsyncIOMotorDatabase, max_batch_ops: int = settings.MAX_BATCH_OPERATIONS):
        self.db = db
        self.max_batch_ops = max_batch_ops

    async def get(self, account_id: str, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        try:
            return await self.db[collection].find_one({"_id": doc_id, "account_id": account_id})
        except PyMongoError as exc:
            raise StoreError(f"Read from {collection} failed: {exc}", collection=collection, doc_id=doc_id) from exc

    async def find(
        self, account_id: str, collection: str, filters: Optional[Dict[str, Any]] = None
    ) -> List[Dict[str, Any]]:
        query = {**(filters or {}), "account_id": account_id}
        try:
            return await self.db[collection].find(query).to_list(None)
        except PyMongoError as exc:
            raise StoreError(f"Query on {collection} failed: {exc}", collection=collection) from exc

    async def insert(self, account_id: str, collection: str, doc_id: str, data: Dict[str, Any]) -> None:
        await self._run_single(account_id, WriteOp(INSERT, collection, doc_id, data))

    async def update(self, account_id: str, collection: str, doc_id: str, data: Dict[str, Any]) -> None:
        await self._run_single(account_id, WriteOp(UPDATE, collection, doc_id, data))

    async def delete(self, account_id: str, collection: str, doc_id: str) -> None:
        await self._run_single(account_id, WriteOp(DELETE, collection, doc_id))

    async def commit(self, account_id: str, batch: WriteBatch) -> None:
        if len(batch) > self.max_batch_ops:
            raise ValueError(f"Batch of {len(batch)} ops exceeds limit of {self.max_batch_ops}")
        if not batch.ops:
            return

        try:
            async with await self.db.client.start_session() as session:
                async with session.start_transaction():
                    for op in batch.ops:
                        await self._apply(account_id, op, session=session)
        except PyMongoError as exc:
            raise StoreError(f"Batch commit failed: {exc}", ops=len(batch)) from exc

    async def _run_single(self, account_id: str, op: WriteOp) -> None:
        try:
            await self._apply(account_id, op)
        except PyMongoError as exc:
            raise StoreError(
                f"{op.action} on {op.collection} failed: {exc}",
                collection=op.collection,
                doc_id=op.doc_id,
            ) from exc

    async def _apply(self, account_id: str, op: WriteOp, session=None) -> None:
        collection = self.db[op.collection]
        selector = {"_id": op.doc_id, "account_id": account_id}

        if op.action == INSERT:
            doc = {**op.data, "_id": op.doc_id, "account_id": account_id}
            await collection.insert_one(doc, session=session)
        elif op.action == UPDATE:
            result = await collection.update_one(selector, {"$set": op.data}, session=session)
            if result.matched_count == 0:
                # Raising inside the transaction block aborts the whole batch
                raise StoreError(
                    f"Cannot update missing document {op.doc_id} in {op.collection}",
                    collection=op.collection,
                    doc_id=op.doc_id,
                )
        elif op.action == DELETE:
            result = await collection.delete_one(selector, session=session)
            if session is not None and result.deleted_count == 0:
                # A concurrent batch removed it first; abort so paired writes are not applied twice
                raise StoreError(
                    f"Cannot delete missing document {op.doc_id} in {op.collection}",
                    collection=op.collection,
                    doc_id=op.doc_id,
                )
        else:
            raise ValueError(f"Unknown write action: {op.action}")


async def connect_to_mongo():
    """Connect to MongoDB."""
    mongodb.client = AsyncIOMotorClient(settings.MONGODB_URL, tz_aware=True)
    mongodb.db = mongodb.client[settings.DATABASE_NAME]

    # Create indexes
    await create_indexes()
    logger.info("Connected to MongoDB: %s", settings.DATABASE_NAME)

async def close_mongo_connection():
    """Disconnect from MongoDB."""
    if mongodb.client is not None:
        mongodb.client.close()
    logger.info("Disconnected from MongoDB")

async def create_indexes():
    """Create database indexes."""
    db = mongodb.db

    # One auction per group per chit month
    await db[AUCTIONS].create_index(
        [("account_id", 1), ("group_id", 1), ("chit_month", 1)], unique=True
    )

    await db[CLIENTS].create_index([("account_id", 1), ("created_at", -1)])

    await db[GROUP_MEMBERS].create_index([("account_id", 1), ("group_id", 1)])
    await db[GROUP_MEMBERS].create_index([("account_id", 1), ("client_id", 1)])

    await db[PAYMENTS].create_index([("account_id", 1), ("auction_id", 1)])
    await db[PAYMENTS].create_index([("account_id", 1), ("client_id", 1), ("status", 1)])
    await db[PAYMENTS].create_index([("account_id", 1), ("group_id", 1), ("chit_month", 1)])

    await db[PAYMENT_LOGS].create_index([("account_id", 1), ("payment_id", 1)])
    await db[PAYMENT_LOGS].create_index([("account_id", 1), ("client_id", 1)])
