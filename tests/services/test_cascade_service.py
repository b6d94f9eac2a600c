import math
from datetime import datetime, timezone

import pytest

from chitbook.core.errors import NotFoundError, StoreError, ValidationError
from chitbook.db.store import AUCTIONS, GROUP_MEMBERS, GROUPS, PAYMENT_LOGS, PAYMENTS
from chitbook.repositories.payment_repo import PaymentRepository
from chitbook.schemas.auction import AuctionCreate
from chitbook.services.allocation_service import AllocationService
from chitbook.services.auction_service import AuctionService
from chitbook.services.cascade_service import CascadeService

from conftest import ACCOUNT_ID

PAID_ON = datetime(2024, 4, 12, tzinfo=timezone.utc)


async def _auction_with_logs(ctx, group):
    """Auction with 20 payments and 35 payment logs (15 payments paid in two steps)."""
    auction = await AuctionService.create_auction(
        ctx,
        AuctionCreate(group_id=group.id, chit_month="2024-04", winner_client_ids=["c01"], bid_amount_cents=20000),
    )
    payments = await PaymentRepository(ctx).list_payments(auction_id=auction.id)
    for index, payment in enumerate(payments):
        await AllocationService.record_payment(ctx, payment.id, 1000, PAID_ON)
        if index < 15:
            await AllocationService.record_payment(ctx, payment.id, 1000, PAID_ON)
    return auction


@pytest.mark.asyncio
@pytest.mark.parametrize("batch_limit", [500, 20, 10, 7])
async def test_delete_auction_removes_everything(ctx, store, group, members, batch_limit):
    auction = await _auction_with_logs(ctx, group)
    assert store.count(ACCOUNT_ID, PAYMENT_LOGS) == 35
    store.max_batch_ops = batch_limit
    commits = store.commit_count

    result = await CascadeService.delete_auction(ctx, auction.id)

    assert result.deleted_payment_count == 20
    assert result.deleted_log_count == 35
    assert result.batches_committed == math.ceil(55 / batch_limit)
    assert store.commit_count - commits == math.ceil(55 / batch_limit)
    assert store.count(ACCOUNT_ID, PAYMENT_LOGS) == 0
    assert store.count(ACCOUNT_ID, PAYMENTS) == 0
    assert store.count(ACCOUNT_ID, AUCTIONS) == 0


@pytest.mark.asyncio
async def test_delete_auction_leaves_other_auctions(ctx, store, group, members):
    auction = await _auction_with_logs(ctx, group)
    other = await AuctionService.create_auction(
        ctx, AuctionCreate(group_id=group.id, chit_month="2024-05", bid_amount_cents=10000)
    )

    await CascadeService.delete_auction(ctx, auction.id)

    assert len(await PaymentRepository(ctx).list_payments(auction_id=other.id)) == 20
    assert await store.get(ACCOUNT_ID, AUCTIONS, other.id) is not None


@pytest.mark.asyncio
async def test_failed_chunk_keeps_earlier_chunks(ctx, store, group, members):
    auction = await _auction_with_logs(ctx, group)
    store.max_batch_ops = 20
    store.fail_after_commits = store.commit_count + 1

    with pytest.raises(StoreError) as exc_info:
        await CascadeService.delete_auction(ctx, auction.id)

    error = exc_info.value
    assert error.committed_units == 20
    assert error.context["committed_batches"] == 1
    assert error.context["auction_id"] == auction.id
    assert error.context["total_ops"] == 55
    # Logs go first, so only the first 20 logs are gone
    assert store.count(ACCOUNT_ID, PAYMENT_LOGS) == 15
    assert store.count(ACCOUNT_ID, PAYMENTS) == 20
    assert store.count(ACCOUNT_ID, AUCTIONS) == 1


@pytest.mark.asyncio
async def test_retry_after_failure_finishes_cascade(ctx, store, group, members):
    auction = await _auction_with_logs(ctx, group)
    store.max_batch_ops = 20
    store.fail_after_commits = store.commit_count + 1
    with pytest.raises(StoreError):
        await CascadeService.delete_auction(ctx, auction.id)

    store.fail_after_commits = None
    result = await CascadeService.delete_auction(ctx, auction.id)

    assert result.deleted_log_count == 15
    assert store.count(ACCOUNT_ID, PAYMENTS) == 0
    assert store.count(ACCOUNT_ID, AUCTIONS) == 0


@pytest.mark.asyncio
async def test_auction_document_delete_failure(ctx, store, group, members):
    auction = await _auction_with_logs(ctx, group)
    store.fail_single_deletes = True

    with pytest.raises(StoreError) as exc_info:
        await CascadeService.delete_auction(ctx, auction.id)

    assert exc_info.value.committed_units == 55
    assert store.count(ACCOUNT_ID, PAYMENTS) == 0
    assert store.count(ACCOUNT_ID, AUCTIONS) == 1


@pytest.mark.asyncio
async def test_delete_missing_auction(ctx):
    with pytest.raises(NotFoundError):
        await CascadeService.delete_auction(ctx, "missing")


@pytest.mark.asyncio
async def test_delete_group_removes_memberships_atomically(ctx, store, group, members):
    auction = await AuctionService.create_auction(
        ctx, AuctionCreate(group_id=group.id, chit_month="2024-04", bid_amount_cents=20000)
    )
    commits = store.commit_count

    deleted = await CascadeService.delete_group(ctx, group.id)

    assert deleted == 20
    assert store.commit_count == commits + 1
    assert store.count(ACCOUNT_ID, GROUPS) == 0
    assert store.count(ACCOUNT_ID, GROUP_MEMBERS) == 0
    # Auctions and payments are keyed independently and stay
    assert await store.get(ACCOUNT_ID, AUCTIONS, auction.id) is not None
    assert store.count(ACCOUNT_ID, PAYMENTS) == 20


@pytest.mark.asyncio
async def test_delete_group_over_batch_limit_rejected(ctx, store, group, members):
    store.max_batch_ops = 20

    with pytest.raises(ValidationError) as exc_info:
        await CascadeService.delete_group(ctx, group.id)

    assert exc_info.value.context["member_count"] == 20
    assert store.count(ACCOUNT_ID, GROUP_MEMBERS) == 20


@pytest.mark.asyncio
async def test_delete_group_failure_leaves_everything(ctx, store, group, members):
    store.fail_after_commits = store.commit_count

    with pytest.raises(StoreError):
        await CascadeService.delete_group(ctx, group.id)

    assert store.count(ACCOUNT_ID, GROUPS) == 1
    assert store.count(ACCOUNT_ID, GROUP_MEMBERS) == 20


@pytest.mark.asyncio
async def test_delete_missing_group(ctx):
    with pytest.raises(NotFoundError):
        await CascadeService.delete_group(ctx, "missing")
