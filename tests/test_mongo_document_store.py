from unittest.mock import AsyncMock, MagicMock

import pytest
from pymongo.errors import PyMongoError

from chitbook.core.errors import StoreError
from chitbook.db.mongo import MongoDocumentStore
from chitbook.db.store import DELETE, PAYMENT_LOGS, PAYMENTS, WriteBatch, WriteOp


@pytest.fixture
def collection():
    return MagicMock()


@pytest.fixture
def mongo_store(collection):
    db = MagicMock()
    db.__getitem__.return_value = collection
    return MongoDocumentStore(db, max_batch_ops=2)


@pytest.mark.asyncio
async def test_reads_are_filtered_by_account(mongo_store, collection):
    collection.find_one = AsyncMock(return_value={"_id": "p1"})
    cursor = MagicMock()
    cursor.to_list = AsyncMock(return_value=[])
    collection.find.return_value = cursor

    assert await mongo_store.get("acct-a", PAYMENTS, "p1") == {"_id": "p1"}
    collection.find_one.assert_called_once_with({"_id": "p1", "account_id": "acct-a"})

    await mongo_store.find("acct-a", PAYMENTS, {"client_id": "c01"})
    collection.find.assert_called_once_with({"client_id": "c01", "account_id": "acct-a"})


@pytest.mark.asyncio
async def test_insert_stamps_id_and_account(mongo_store, collection):
    collection.insert_one = AsyncMock()

    await mongo_store.insert("acct-a", PAYMENTS, "p1", {"client_id": "c01"})

    collection.insert_one.assert_called_once_with(
        {"client_id": "c01", "_id": "p1", "account_id": "acct-a"}, session=None
    )


@pytest.mark.asyncio
async def test_update_of_missing_document_raises(mongo_store, collection):
    collection.update_one = AsyncMock(return_value=MagicMock(matched_count=0))

    with pytest.raises(StoreError) as exc_info:
        await mongo_store.update("acct-a", PAYMENTS, "p1", {"amount_paid_cents": 10})

    assert exc_info.value.context["doc_id"] == "p1"
    collection.update_one.assert_called_once_with(
        {"_id": "p1", "account_id": "acct-a"}, {"$set": {"amount_paid_cents": 10}}, session=None
    )


@pytest.mark.asyncio
async def test_driver_errors_become_store_errors(mongo_store, collection):
    collection.delete_one = AsyncMock(side_effect=PyMongoError("connection reset"))

    with pytest.raises(StoreError) as exc_info:
        await mongo_store.delete("acct-a", PAYMENTS, "p1")

    assert "connection reset" in exc_info.value.message
    assert isinstance(exc_info.value.__cause__, PyMongoError)


@pytest.mark.asyncio
async def test_commit_checks_batch_limit_before_touching_the_driver(mongo_store):
    batch = WriteBatch().delete(PAYMENTS, "p1").delete(PAYMENTS, "p2").delete(PAYMENTS, "p3")

    with pytest.raises(ValueError):
        await mongo_store.commit("acct-a", batch)

    mongo_store.db.client.start_session.assert_not_called()


@pytest.mark.asyncio
async def test_batched_delete_of_missing_document_aborts(mongo_store, collection):
    collection.delete_one = AsyncMock(return_value=MagicMock(deleted_count=0))
    session = MagicMock()

    with pytest.raises(StoreError) as exc_info:
        await mongo_store._apply("acct-a", WriteOp(DELETE, PAYMENT_LOGS, "l1"), session=session)

    assert exc_info.value.context == {"collection": PAYMENT_LOGS, "doc_id": "l1"}
    collection.delete_one.assert_called_once_with({"_id": "l1", "account_id": "acct-a"}, session=session)


@pytest.mark.asyncio
async def test_single_delete_of_missing_document_is_a_no_op(mongo_store, collection):
    collection.delete_one = AsyncMock(return_value=MagicMock(deleted_count=0))

    await mongo_store.delete("acct-a", PAYMENTS, "p1")
