"""
Cascading deletes.

Auction: every PaymentLog of every Payment of the auction, then the Payments,
then the auction document. Logs and payments go through the chunked batch
executor, so a failure leaves earlier chunks applied and later ones untouched.

Group: the group and its memberships in one atomic batch. Auctions and
payments are keyed by group id independently and are left alone.
"""

import logging
from dataclasses import dataclass
from typing import List

from chitbook.core.context import LedgerContext
from chitbook.core.errors import NotFoundError, StoreError, ValidationError
from chitbook.db.batching import ChunkedCommitResult, commit_in_chunks
from chitbook.db.store import (
    AUCTIONS,
    DELETE,
    GROUP_MEMBERS,
    GROUPS,
    PAYMENT_LOGS,
    PAYMENTS,
    WriteBatch,
    WriteOp,
)
from chitbook.models.payment import PaymentLog
from chitbook.repositories.auction_repo import AuctionRepository
from chitbook.repositories.group_repo import GroupRepository
from chitbook.repositories.payment_repo import PaymentRepository

logger = logging.getLogger(__name__)


@dataclass
class AuctionCascadeResult:
    auction_id: str
    deleted_payment_count: int
    deleted_log_count: int
    batches_committed: int


class CascadeService:
    @staticmethod
    async def delete_auction(ctx: LedgerContext, auction_id: str) -> AuctionCascadeResult:
        auction = await AuctionRepository(ctx).get_auction(auction_id)
        if not auction:
            raise NotFoundError(f"Auction {auction_id} not found", auction_id=auction_id)

        payment_repo = PaymentRepository(ctx)
        payments = await payment_repo.list_payments(auction_id=auction_id)

        logs: List[PaymentLog] = []
        for payment in payments:
            logs.extend(await payment_repo.list_logs(payment_id=payment.id))

        ops = [WriteOp(DELETE, PAYMENT_LOGS, log.id) for log in logs]
        ops.extend(WriteOp(DELETE, PAYMENTS, payment.id) for payment in payments)

        result = ChunkedCommitResult()
        if ops:
            try:
                result = await commit_in_chunks(ctx.store, ctx.account_id, ops)
            except StoreError as exc:
                logger.warning(
                    "Cascade for auction %s stopped after %d of %d deletes",
                    auction_id, exc.committed_units, len(ops),
                )
                exc.context["auction_id"] = auction_id
                exc.context["total_ops"] = len(ops)
                raise

        try:
            await ctx.store.delete(ctx.account_id, AUCTIONS, auction_id)
        except StoreError as exc:
            raise StoreError(
                f"Dependents of auction {auction_id} were removed but the auction was not: {exc.message}",
                committed_units=result.committed_ops,
                committed_batches=result.committed_batches,
                auction_id=auction_id,
            ) from exc

        logger.info(
            "Deleted auction %s with %d payments and %d payment logs in %d batches",
            auction_id, len(payments), len(logs), result.committed_batches,
        )
        return AuctionCascadeResult(
            auction_id=auction_id,
            deleted_payment_count=len(payments),
            deleted_log_count=len(logs),
            batches_committed=result.committed_batches,
        )

    @staticmethod
    async def delete_group(ctx: LedgerContext, group_id: str) -> int:
        """Delete a group and its memberships atomically. Returns the membership count removed."""
        group_repo = GroupRepository(ctx)
        group = await group_repo.get_group(group_id)
        if not group:
            raise NotFoundError(f"Group {group_id} not found", group_id=group_id)

        members = await group_repo.list_members(group_id=group_id)
        if len(members) + 1 > ctx.store.max_batch_ops:
            raise ValidationError(
                f"Group {group_id} has {len(members)} members, too many to delete in one batch",
                group_id=group_id,
                member_count=len(members),
                batch_limit=ctx.store.max_batch_ops,
            )

        batch = WriteBatch()
        for member in members:
            batch.delete(GROUP_MEMBERS, member.id)
        batch.delete(GROUPS, group_id)

        await ctx.store.commit(ctx.account_id, batch)

        logger.info("Deleted group %s and %d memberships", group_id, len(members))
        return len(members)
