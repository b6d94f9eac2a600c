import logging

from chitbook.core.context import LedgerContext
from chitbook.core.errors import NotFoundError
from chitbook.db.store import PAYMENT_LOGS, PAYMENTS, WriteBatch
from chitbook.models.payment import Payment
from chitbook.repositories.payment_repo import PaymentRepository

logger = logging.getLogger(__name__)


class ReversalService:
    @staticmethod
    async def rollback_payment(ctx: LedgerContext, log_id: str) -> Payment:
        """
        Undo one PaymentLog.

        The parent payment's paid amount drops by the log's amount (never below
        zero), pending is recomputed and status re-derived. The payment update and
        the log delete commit as one batch. Logs can be reversed in any order.
        """
        payment_repo = PaymentRepository(ctx)

        log = await payment_repo.get_log(log_id)
        if not log:
            raise NotFoundError(f"Payment log {log_id} not found", payment_log_id=log_id)

        payment = await payment_repo.get_payment(log.payment_id)
        if not payment:
            raise NotFoundError(
                f"Payment {log.payment_id} for log {log_id} not found",
                payment_log_id=log_id,
                payment_id=log.payment_id,
            )

        payment.reverse_allocation(log.amount_paid_cents)

        batch = WriteBatch()
        batch.update(PAYMENTS, payment.id, payment.ledger_fields())
        batch.delete(PAYMENT_LOGS, log.id)
        await ctx.store.commit(ctx.account_id, batch)

        logger.info(
            "Rolled back log %s: %d cents returned to payment %s (now %s)",
            log.id, log.amount_paid_cents, payment.id, payment.status.value,
        )
        return payment
