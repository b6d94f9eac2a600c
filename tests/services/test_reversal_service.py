from datetime import date, datetime, timezone
from unittest.mock import AsyncMock, patch

import pytest

from chitbook.core.errors import NotFoundError, StoreError
from chitbook.db.store import PAYMENT_LOGS, PAYMENTS
from chitbook.models.payment import Payment
from chitbook.repositories.payment_repo import PaymentRepository
from chitbook.services.allocation_service import AllocationService
from chitbook.services.reversal_service import ReversalService
from chitbook.utils.ledger_math import PaymentStatus

from conftest import ACCOUNT_ID

PAID_ON = datetime(2024, 3, 2, tzinfo=timezone.utc)


async def _seed(ctx, day, expected=1000):
    payment = Payment(
        id=ctx.store.new_id(),
        auction_id=f"a{day}",
        client_id="c01",
        group_id="g1",
        chit_month="2024-03",
        amount_expected_cents=expected,
        pending_amount_cents=expected,
        payment_due_date=datetime(2024, 3, day, tzinfo=timezone.utc),
    )
    await ctx.store.insert(ctx.account_id, PAYMENTS, payment.id, payment.to_document())
    return payment


def _snapshot(payment):
    return payment.amount_paid_cents, payment.pending_amount_cents, payment.status


@pytest.mark.asyncio
async def test_allocate_then_rollback_restores_payments(ctx, store):
    first = await _seed(ctx, 5)
    await _seed(ctx, 20)
    repo = PaymentRepository(ctx)
    before = {p.id: _snapshot(p) for p in await repo.list_payments(client_id="c01")}

    logs = await AllocationService.allocate_bulk_payment(ctx, "c01", 1500, PAID_ON, today=date(2024, 3, 2))
    for log in logs:
        await ReversalService.rollback_payment(ctx, log.id)

    after = {p.id: _snapshot(p) for p in await repo.list_payments(client_id="c01")}
    assert after == before
    assert after[first.id] == (0, 1000, PaymentStatus.PENDING)
    assert store.count(ACCOUNT_ID, PAYMENT_LOGS) == 0


@pytest.mark.asyncio
async def test_rollback_in_any_order(ctx):
    payment = await _seed(ctx, 5)
    first = await AllocationService.record_payment(ctx, payment.id, 300, PAID_ON)
    second = await AllocationService.record_payment(ctx, payment.id, 700, PAID_ON)
    repo = PaymentRepository(ctx)
    assert (await repo.get_payment(payment.id)).status == PaymentStatus.PAID

    reverted = await ReversalService.rollback_payment(ctx, first.id)

    assert reverted.amount_paid_cents == 700
    assert reverted.pending_amount_cents == 300
    assert reverted.status == PaymentStatus.PARTIAL
    stored = await repo.get_payment(payment.id)
    assert _snapshot(stored) == _snapshot(reverted)
    assert [log.id for log in await repo.list_logs(payment_id=payment.id)] == [second.id]

    await ReversalService.rollback_payment(ctx, second.id)
    assert _snapshot(await repo.get_payment(payment.id)) == (0, 1000, PaymentStatus.PENDING)


@pytest.mark.asyncio
async def test_rollback_commits_update_and_delete_together(ctx, store):
    payment = await _seed(ctx, 5)
    log = await AllocationService.record_payment(ctx, payment.id, 400, PAID_ON)
    commits = store.commit_count

    await ReversalService.rollback_payment(ctx, log.id)

    assert store.commit_count == commits + 1


@pytest.mark.asyncio
async def test_paid_never_drops_below_zero(ctx, store):
    payment = await _seed(ctx, 5)
    log = await AllocationService.record_payment(ctx, payment.id, 400, PAID_ON)
    # Paid amount lowered out of band
    await store.update(ACCOUNT_ID, PAYMENTS, payment.id, {"amount_paid_cents": 100, "pending_amount_cents": 900})

    reverted = await ReversalService.rollback_payment(ctx, log.id)

    assert reverted.amount_paid_cents == 0
    assert reverted.pending_amount_cents == 1000
    assert reverted.status == PaymentStatus.PENDING


@pytest.mark.asyncio
async def test_rollback_missing_log(ctx):
    with pytest.raises(NotFoundError) as exc_info:
        await ReversalService.rollback_payment(ctx, "missing")
    assert exc_info.value.context["payment_log_id"] == "missing"


@pytest.mark.asyncio
async def test_rollback_missing_payment(ctx, store):
    payment = await _seed(ctx, 5)
    log = await AllocationService.record_payment(ctx, payment.id, 400, PAID_ON)
    await store.delete(ACCOUNT_ID, PAYMENTS, payment.id)
    commits = store.commit_count

    with pytest.raises(NotFoundError) as exc_info:
        await ReversalService.rollback_payment(ctx, log.id)

    assert exc_info.value.context["payment_id"] == payment.id
    assert store.commit_count == commits
    assert await store.get(ACCOUNT_ID, PAYMENT_LOGS, log.id) is not None


@pytest.mark.asyncio
async def test_concurrent_rollback_of_same_log_applies_once(ctx):
    payment = await _seed(ctx, 5)
    log = await AllocationService.record_payment(ctx, payment.id, 300, PAID_ON)
    await AllocationService.record_payment(ctx, payment.id, 700, PAID_ON)
    stale = await PaymentRepository(ctx).get_log(log.id)
    await ReversalService.rollback_payment(ctx, log.id)

    # Second request read the log before the first one deleted it
    with patch.object(PaymentRepository, "get_log", AsyncMock(return_value=stale)):
        with pytest.raises(StoreError):
            await ReversalService.rollback_payment(ctx, log.id)

    current = await PaymentRepository(ctx).get_payment(payment.id)
    assert _snapshot(current) == (700, 300, PaymentStatus.PARTIAL)
