import copy
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient

from chitbook.core.auth import get_current_account
from chitbook.core.context import LedgerContext
from chitbook.core.errors import StoreError
from chitbook.db.session import get_store
from chitbook.db.store import CLIENTS, DELETE, INSERT, UPDATE, DocumentStore, WriteBatch
from chitbook.main import app
from chitbook.models.client import Client
from chitbook.schemas.group import GroupCreate, MemberCreate
from chitbook.services.group_service import GroupService

ACCOUNT_ID = "acct-test"


class InMemoryDocumentStore(DocumentStore):
    """
    Dict-backed store for tests.

    Batches are applied to a copy and swapped in only when every op succeeds.
    fail_after_commits makes the (n+1)th batch commit raise StoreError.
    """

    def __init__(self, max_batch_ops: int = 500):
        self.max_batch_ops = max_batch_ops
        self.data: Dict[str, Dict[str, Dict[str, Dict[str, Any]]]] = {}
        self.commit_count = 0
        self.fail_after_commits: Optional[int] = None
        self.fail_single_deletes = False

    def collection(self, account_id: str, name: str) -> Dict[str, Dict[str, Any]]:
        return self.data.setdefault(account_id, {}).setdefault(name, {})

    def count(self, account_id: str, name: str) -> int:
        return len(self.collection(account_id, name))

    async def get(self, account_id, collection, doc_id):
        doc = self.collection(account_id, collection).get(doc_id)
        if doc is None:
            return None
        return {"_id": doc_id, **copy.deepcopy(doc)}

    async def find(self, account_id, collection, filters=None) -> List[Dict[str, Any]]:
        filters = filters or {}
        return [
            {"_id": doc_id, **copy.deepcopy(doc)}
            for doc_id, doc in self.collection(account_id, collection).items()
            if all(doc.get(key) == value for key, value in filters.items())
        ]

    async def insert(self, account_id, collection, doc_id, data):
        self._insert(self.data, account_id, collection, doc_id, data)

    async def update(self, account_id, collection, doc_id, data):
        self._update(self.data, account_id, collection, doc_id, data)

    async def delete(self, account_id, collection, doc_id):
        if self.fail_single_deletes:
            raise StoreError("delete rejected", collection=collection, doc_id=doc_id)
        self.collection(account_id, collection).pop(doc_id, None)

    async def commit(self, account_id: str, batch: WriteBatch) -> None:
        if len(batch) > self.max_batch_ops:
            raise ValueError(f"Batch of {len(batch)} ops exceeds limit of {self.max_batch_ops}")
        if self.fail_after_commits is not None and self.commit_count >= self.fail_after_commits:
            raise StoreError("commit rejected", batch_size=len(batch))

        staged = copy.deepcopy(self.data)
        for op in batch.ops:
            if op.action == INSERT:
                self._insert(staged, account_id, op.collection, op.doc_id, op.data)
            elif op.action == UPDATE:
                self._update(staged, account_id, op.collection, op.doc_id, op.data)
            elif op.action == DELETE:
                docs = staged.setdefault(account_id, {}).setdefault(op.collection, {})
                if op.doc_id not in docs:
                    raise StoreError("document not found", collection=op.collection, doc_id=op.doc_id)
                del docs[op.doc_id]
        self.data = staged
        self.commit_count += 1

    @staticmethod
    def _insert(data, account_id, collection, doc_id, doc):
        docs = data.setdefault(account_id, {}).setdefault(collection, {})
        if doc_id in docs:
            raise StoreError("duplicate id", collection=collection, doc_id=doc_id)
        docs[doc_id] = copy.deepcopy(doc)

    @staticmethod
    def _update(data, account_id, collection, doc_id, fields):
        docs = data.setdefault(account_id, {}).setdefault(collection, {})
        if doc_id not in docs:
            raise StoreError("document not found", collection=collection, doc_id=doc_id)
        docs[doc_id].update(copy.deepcopy(fields))


async def seed_client(ctx: LedgerContext, client_id: str, name: str = "") -> Client:
    """Insert a client under a fixed id so tests can refer to it by name."""
    client = Client(id=client_id, name=name or client_id.upper())
    await ctx.store.insert(ctx.account_id, CLIENTS, client.id, client.to_document())
    return client


@pytest.fixture
def store() -> InMemoryDocumentStore:
    return InMemoryDocumentStore()


@pytest.fixture
def ctx(store) -> LedgerContext:
    return LedgerContext(account_id=ACCOUNT_ID, store=store)


@pytest_asyncio.fixture
async def group(ctx):
    """100000-cent chit, 5% commission, 20 chits, started on the 10th."""
    return await GroupService.create_group(
        ctx,
        GroupCreate(
            group_name="Lakshmi 1L",
            chit_value_cents=100000,
            agent_commission_percent=5,
            member_count=20,
            start_date=datetime(2024, 1, 10, tzinfo=timezone.utc),
        ),
    )


@pytest_asyncio.fixture
async def members(ctx, group):
    """20 single-chit members, client ids c01..c20."""
    added = []
    for n in range(1, 21):
        client = await seed_client(ctx, f"c{n:02d}", f"Client {n}")
        added.append(await GroupService.add_member(ctx, group.id, MemberCreate(client_id=client.id)))
    return added


@pytest.fixture
def client(store):
    """API client bound to the in-memory store with authentication bypassed."""
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_current_account] = lambda: ACCOUNT_ID
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
