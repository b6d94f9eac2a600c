"""
Allocation of received money against outstanding payments.

Bulk order: backlog first (due before the first day of the current month),
then current, each ascending by due date. Every row touched is one atomic
unit: the payment update and its PaymentLog insert commit together.
"""

import logging
from datetime import date, datetime, timezone
from typing import List, Optional, Sequence, Tuple, Union

from chitbook.core.context import LedgerContext
from chitbook.core.errors import NotFoundError, StoreError, ValidationError
from chitbook.db.store import PAYMENT_LOGS, PAYMENTS, WriteBatch
from chitbook.models.payment import Payment, PaymentLog, PaymentMethod
from chitbook.repositories.payment_repo import PaymentRepository
from chitbook.utils.ledger_math import PaymentStatus, as_datetime, month_start
from chitbook.utils.ledger_validation import validate_payment_amount

logger = logging.getLogger(__name__)


def order_outstanding(payments: Sequence[Payment], today: date) -> List[Payment]:
    """Outstanding payments, backlog before current month, each by due date."""
    cutoff = month_start(today)
    outstanding = [
        payment for payment in payments
        if payment.status != PaymentStatus.PAID and payment.pending_amount_cents > 0
    ]
    backlog = sorted(
        (payment for payment in outstanding if payment.payment_due_date < cutoff),
        key=lambda payment: payment.payment_due_date,
    )
    current = sorted(
        (payment for payment in outstanding if payment.payment_due_date >= cutoff),
        key=lambda payment: payment.payment_due_date,
    )
    return backlog + current


def plan_allocation(ordered: Sequence[Payment], amount_cents: int) -> List[Tuple[Payment, int]]:
    """Walk the ordered rows, taking min(remaining, pending) from each until nothing remains."""
    plan = []
    remaining = amount_cents
    for payment in ordered:
        if remaining <= 0:
            break
        delta = min(remaining, payment.pending_amount_cents)
        plan.append((payment, delta))
        remaining -= delta
    return plan


class AllocationService:
    @staticmethod
    async def allocate_bulk_payment(
        ctx: LedgerContext,
        client_id: str,
        amount_cents: int,
        payment_date: Union[date, datetime],
        payment_method: PaymentMethod = PaymentMethod.CASH,
        today: Optional[date] = None,
    ) -> List[PaymentLog]:
        """
        Spread a lump sum over a client's outstanding payments across all groups.

        Raises ValidationError (nothing written) when the amount is not positive or
        exceeds the client's total outstanding. A StoreError part way through
        reports how many rows were already applied in committed_units.
        """
        validate_payment_amount(amount_cents, client_id=client_id)

        today = today or datetime.now(timezone.utc).date()
        payments = await PaymentRepository(ctx).list_payments(client_id=client_id)
        ordered = order_outstanding(payments, today)
        total_outstanding = sum(payment.pending_amount_cents for payment in ordered)

        if amount_cents > total_outstanding:
            logger.warning(
                "Rejected bulk payment of %d cents for client %s: outstanding is %d",
                amount_cents, client_id, total_outstanding,
            )
            raise ValidationError(
                f"Amount {amount_cents} exceeds total outstanding {total_outstanding} for client {client_id}",
                client_id=client_id,
                amount_cents=amount_cents,
                outstanding_cents=total_outstanding,
            )

        paid_on = as_datetime(payment_date)
        logs: List[PaymentLog] = []
        applied_cents = 0

        for payment, delta in plan_allocation(ordered, amount_cents):
            try:
                log = await AllocationService._apply(ctx, payment, delta, paid_on, payment_method)
            except StoreError as exc:
                logger.warning(
                    "Bulk payment for client %s failed on payment %s after %d rows (%d of %d cents) applied",
                    client_id, payment.id, len(logs), applied_cents, amount_cents,
                )
                raise StoreError(
                    f"Bulk payment stopped at payment {payment.id}: {exc.message}",
                    committed_units=len(logs),
                    client_id=client_id,
                    payment_id=payment.id,
                    amount_cents=amount_cents,
                    applied_cents=applied_cents,
                    applied_log_ids=[applied.id for applied in logs],
                ) from exc
            logs.append(log)
            applied_cents += delta

        logger.info(
            "Applied %d cents for client %s across %d payments", amount_cents, client_id, len(logs)
        )
        return logs

    @staticmethod
    async def record_payment(
        ctx: LedgerContext,
        payment_id: str,
        amount_cents: int,
        payment_date: Union[date, datetime],
        payment_method: PaymentMethod = PaymentMethod.CASH,
    ) -> PaymentLog:
        """Pay against a single obligation. The amount may not exceed its pending amount."""
        payment = await PaymentRepository(ctx).get_payment(payment_id)
        if not payment:
            raise NotFoundError(f"Payment {payment_id} not found", payment_id=payment_id)

        validate_payment_amount(amount_cents, payment_id=payment_id)
        if amount_cents > payment.outstanding_cents():
            raise ValidationError(
                f"Amount {amount_cents} exceeds pending amount {payment.outstanding_cents()} of payment {payment_id}",
                payment_id=payment_id,
                amount_cents=amount_cents,
                pending_amount_cents=payment.outstanding_cents(),
            )

        log = await AllocationService._apply(ctx, payment, amount_cents, as_datetime(payment_date), payment_method)
        logger.info("Recorded %d cents against payment %s", amount_cents, payment_id)
        return log

    @staticmethod
    async def _apply(
        ctx: LedgerContext,
        payment: Payment,
        amount_cents: int,
        payment_date: datetime,
        payment_method: PaymentMethod,
    ) -> PaymentLog:
        payment.apply_allocation(amount_cents)
        log = PaymentLog(
            id=ctx.store.new_id(),
            payment_id=payment.id,
            auction_id=payment.auction_id,
            client_id=payment.client_id,
            client_name=payment.client_name,
            group_id=payment.group_id,
            group_name=payment.group_name,
            chit_month=payment.chit_month,
            amount_paid_cents=amount_cents,
            payment_date=payment_date,
            payment_method=payment_method,
        )

        batch = WriteBatch()
        batch.update(PAYMENTS, payment.id, payment.ledger_fields())
        batch.insert(PAYMENT_LOGS, log.id, log.to_document())
        await ctx.store.commit(ctx.account_id, batch)
        return log
