"""
Document store abstraction used by the ledger.

The ledger never talks to a driver directly. It needs:
- keyed reads and equality-filtered queries inside one account scope
- single-document insert / update / delete (atomic per document)
- atomic multi-document batches, bounded by max_batch_ops
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from bson import ObjectId

GROUPS = "groups"
GROUP_MEMBERS = "group_members"
AUCTIONS = "auctions"
PAYMENTS = "payments"
PAYMENT_LOGS = "payment_logs"
CLIENTS = "clients"

INSERT = "insert"
UPDATE = "update"
DELETE = "delete"


@dataclass(frozen=True)
class WriteOp:
    action: str
    collection: str
    doc_id: str
    data: Optional[Dict[str, Any]] = None


@dataclass
class WriteBatch:
    """Ordered list of writes committed as one atomic unit."""

    ops: List[WriteOp] = field(default_factory=list)

    def insert(self, collection: str, doc_id: str, data: Dict[str, Any]) -> "WriteBatch":
        self.ops.append(WriteOp(INSERT, collection, doc_id, data))
        return self

    def update(self, collection: str, doc_id: str, data: Dict[str, Any]) -> "WriteBatch":
        self.ops.append(WriteOp(UPDATE, collection, doc_id, data))
        return self

    def delete(self, collection: str, doc_id: str) -> "WriteBatch":
        self.ops.append(WriteOp(DELETE, collection, doc_id))
        return self

    def __len__(self) -> int:
        return len(self.ops)


class DocumentStore(ABC):
    """Account-scoped document store."""

    max_batch_ops: int = 500

    def new_id(self) -> str:
        return str(ObjectId())

    @abstractmethod
    async def get(self, account_id: str, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        ...

    @abstractmethod
    async def find(
        self, account_id: str, collection: str, filters: Optional[Dict[str, Any]] = None
    ) -> List[Dict[str, Any]]:
        ...

    @abstractmethod
    async def insert(self, account_id: str, collection: str, doc_id: str, data: Dict[str, Any]) -> None:
        ...

    @abstractmethod
    async def update(self, account_id: str, collection: str, doc_id: str, data: Dict[str, Any]) -> None:
        ...

    @abstractmethod
    async def delete(self, account_id: str, collection: str, doc_id: str) -> None:
        ...

    @abstractmethod
    async def commit(self, account_id: str, batch: WriteBatch) -> None:
        """Apply every op in the batch or none of them. Raises StoreError."""
        ...
