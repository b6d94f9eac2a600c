from datetime import datetime
from typing import List

from pydantic import BaseModel, ConfigDict

from chitbook.models.payment import Payment, PaymentLog, PaymentMethod
from chitbook.utils.ledger_math import PaymentStatus


class BulkPaymentRequest(BaseModel):
    """Lump sum spread over a client's outstanding obligations, oldest first."""
    client_id: str
    amount_cents: int
    payment_date: datetime
    payment_method: PaymentMethod = PaymentMethod.CASH


class RecordPaymentRequest(BaseModel):
    amount_cents: int
    payment_date: datetime
    payment_method: PaymentMethod = PaymentMethod.CASH


class PaymentResponse(BaseModel):
    id: str
    auction_id: str
    client_id: str
    client_name: str
    group_id: str
    group_name: str
    chit_month: str
    chit_count: float
    amount_expected_cents: int
    amount_paid_cents: int
    pending_amount_cents: int  # Floored at zero
    credit_cents: int
    payment_due_date: datetime
    status: PaymentStatus

    @classmethod
    def from_payment(cls, payment: Payment) -> "PaymentResponse":
        return cls(
            id=payment.id,
            auction_id=payment.auction_id,
            client_id=payment.client_id,
            client_name=payment.client_name,
            group_id=payment.group_id,
            group_name=payment.group_name,
            chit_month=payment.chit_month,
            chit_count=payment.chit_count,
            amount_expected_cents=payment.amount_expected_cents,
            amount_paid_cents=payment.amount_paid_cents,
            pending_amount_cents=payment.outstanding_cents(),
            credit_cents=payment.credit_cents(),
            payment_due_date=payment.payment_due_date,
            status=payment.status,
        )


class PaymentLogResponse(BaseModel):
    id: str
    payment_id: str
    client_id: str
    client_name: str
    group_name: str
    chit_month: str
    amount_paid_cents: int
    payment_date: datetime
    payment_method: PaymentMethod
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @classmethod
    def from_log(cls, log: PaymentLog) -> "PaymentLogResponse":
        return cls.model_validate(log)


class AllocationResponse(BaseModel):
    client_id: str
    amount_cents: int
    logs: List[PaymentLogResponse]
