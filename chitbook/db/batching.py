"""
Chunked batch executor.

Splits a flat list of writes into sequential batches no larger than the store's
ceiling and commits them one after another. Chunks already committed stay
committed if a later chunk fails; the failure reports how far it got.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence

from chitbook.core.errors import StoreError
from chitbook.db.store import DocumentStore, WriteBatch, WriteOp

logger = logging.getLogger(__name__)


@dataclass
class ChunkedCommitResult:
    committed_ops: int = 0
    committed_batches: int = 0


def chunk_ops(ops: Sequence[WriteOp], batch_size: int) -> List[WriteBatch]:
    if batch_size <= 0:
        raise ValueError("batch_size must be positive")
    return [WriteBatch(list(ops[i:i + batch_size])) for i in range(0, len(ops), batch_size)]


async def commit_in_chunks(
    store: DocumentStore,
    account_id: str,
    ops: Sequence[WriteOp],
    batch_size: Optional[int] = None,
) -> ChunkedCommitResult:
    """
    Commit ops in order, at most batch_size per atomic batch.

    Returns the number of ops and batches committed. On a store failure raises
    StoreError whose committed_units is the number of ops durably applied, with
    the committed batch count in its context.
    """
    size = batch_size or store.max_batch_ops
    result = ChunkedCommitResult()

    for index, batch in enumerate(chunk_ops(ops, size)):
        try:
            await store.commit(account_id, batch)
        except StoreError as exc:
            logger.warning(
                "Chunk %d failed after %d committed ops in %d batches: %s",
                index + 1, result.committed_ops, result.committed_batches, exc.message,
            )
            raise StoreError(
                exc.message,
                committed_units=result.committed_ops,
                committed_batches=result.committed_batches,
                failed_batch=index + 1,
            ) from exc
        result.committed_ops += len(batch)
        result.committed_batches += 1
        logger.debug("Committed chunk %d (%d ops)", index + 1, len(batch))

    return result
