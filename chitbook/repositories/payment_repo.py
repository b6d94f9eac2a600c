from typing import List, Optional

from chitbook.core.context import LedgerContext
from chitbook.db.store import PAYMENT_LOGS, PAYMENTS
from chitbook.models.payment import Payment, PaymentLog
from chitbook.utils.ledger_math import month_key


class PaymentRepository:
    """Payment and payment log reads for one account."""

    def __init__(self, ctx: LedgerContext):
        self.ctx = ctx
        self.store = ctx.store

    async def get_payment(self, payment_id: str) -> Optional[Payment]:
        doc = await self.store.get(self.ctx.account_id, PAYMENTS, payment_id)
        if doc:
            return Payment(**doc)
        return None

    async def list_payments(
        self,
        client_id: Optional[str] = None,
        group_id: Optional[str] = None,
        status: Optional[str] = None,
        auction_id: Optional[str] = None,
        chit_month: Optional[str] = None,
    ) -> List[Payment]:
        """Payments matching every given filter, earliest due date first."""
        filters = {}
        if client_id:
            filters["client_id"] = client_id
        if group_id:
            filters["group_id"] = group_id
        if auction_id:
            filters["auction_id"] = auction_id
        if chit_month:
            filters["chit_month"] = chit_month

        docs = await self.store.find(self.ctx.account_id, PAYMENTS, filters)
        payments = [Payment(**doc) for doc in docs]

        # Status is derived, so filter on the projection rather than the stored copy
        if status:
            payments = [payment for payment in payments if payment.status.value == status]

        payments.sort(key=lambda payment: payment.payment_due_date)
        return payments

    async def get_log(self, log_id: str) -> Optional[PaymentLog]:
        doc = await self.store.get(self.ctx.account_id, PAYMENT_LOGS, log_id)
        if doc:
            return PaymentLog(**doc)
        return None

    async def list_logs(
        self,
        client_id: Optional[str] = None,
        payment_id: Optional[str] = None,
        month: Optional[str] = None,
    ) -> List[PaymentLog]:
        """Payment logs newest payment date first; month matches the payment date's YYYY-MM."""
        filters = {}
        if client_id:
            filters["client_id"] = client_id
        if payment_id:
            filters["payment_id"] = payment_id

        docs = await self.store.find(self.ctx.account_id, PAYMENT_LOGS, filters)
        logs = [PaymentLog(**doc) for doc in docs]

        if month:
            logs = [log for log in logs if month_key(log.payment_date) == month]

        logs.sort(key=lambda log: log.payment_date, reverse=True)
        return logs
