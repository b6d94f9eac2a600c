from typing import List, Optional
from fastapi import APIRouter, Depends, status
from chitbook.core.auth import get_ledger_context
from chitbook.core.context import LedgerContext
from chitbook.repositories.payment_repo import PaymentRepository
from chitbook.schemas.payment import (
    AllocationResponse,
    BulkPaymentRequest,
    PaymentLogResponse,
    PaymentResponse,
    RecordPaymentRequest,
)
from chitbook.services.allocation_service import AllocationService
from chitbook.services.report_service import ReportService
from chitbook.services.reversal_service import ReversalService
from chitbook.utils.ledger_math import PaymentStatus
from chitbook.utils.ledger_validation import validate_month_filter

router = APIRouter()

@router.get("/", response_model=List[PaymentResponse])
async def list_payments(
    client_id: Optional[str] = None,
    group_id: Optional[str] = None,
    auction_id: Optional[str] = None,
    status: Optional[PaymentStatus] = None,
    month: Optional[str] = None,
    ctx: LedgerContext = Depends(get_ledger_context),
):
    """List payments, earliest due date first"""
    validate_month_filter(month)
    payments = await PaymentRepository(ctx).list_payments(
        client_id=client_id,
        group_id=group_id,
        status=status.value if status else None,
        auction_id=auction_id,
        chit_month=month,
    )
    return [PaymentResponse.from_payment(payment) for payment in payments]

@router.get("/pending", response_model=List[PaymentResponse])
async def list_pending_payments(
    group_id: Optional[str] = None,
    month: Optional[str] = None,
    days_overdue: Optional[int] = None,
    ctx: LedgerContext = Depends(get_ledger_context),
):
    payments = await ReportService.list_pending_payments(
        ctx, group_id=group_id, month=month, days_overdue=days_overdue
    )
    return [PaymentResponse.from_payment(payment) for payment in payments]

@router.post("/bulk", response_model=AllocationResponse, status_code=status.HTTP_201_CREATED)
async def allocate_bulk_payment(
    payment_in: BulkPaymentRequest,
    ctx: LedgerContext = Depends(get_ledger_context),
):
    """Spread a lump sum over the client's outstanding payments, backlog first"""
    logs = await AllocationService.allocate_bulk_payment(
        ctx,
        payment_in.client_id,
        payment_in.amount_cents,
        payment_in.payment_date,
        payment_in.payment_method,
    )
    return AllocationResponse(
        client_id=payment_in.client_id,
        amount_cents=payment_in.amount_cents,
        logs=[PaymentLogResponse.from_log(log) for log in logs],
    )

@router.get("/logs", response_model=List[PaymentLogResponse])
async def list_payment_logs(
    client_id: Optional[str] = None,
    payment_id: Optional[str] = None,
    month: Optional[str] = None,
    ctx: LedgerContext = Depends(get_ledger_context),
):
    """List payment receipts, newest first"""
    validate_month_filter(month)
    logs = await PaymentRepository(ctx).list_logs(client_id=client_id, payment_id=payment_id, month=month)
    return [PaymentLogResponse.from_log(log) for log in logs]

@router.post("/logs/{log_id}/rollback", response_model=PaymentResponse)
async def rollback_payment(log_id: str, ctx: LedgerContext = Depends(get_ledger_context)):
    """Undo one payment receipt"""
    payment = await ReversalService.rollback_payment(ctx, log_id)
    return PaymentResponse.from_payment(payment)

@router.post("/{payment_id}/record", response_model=PaymentLogResponse, status_code=status.HTTP_201_CREATED)
async def record_payment(
    payment_id: str,
    payment_in: RecordPaymentRequest,
    ctx: LedgerContext = Depends(get_ledger_context),
):
    """Pay against a single obligation"""
    log = await AllocationService.record_payment(
        ctx, payment_id, payment_in.amount_cents, payment_in.payment_date, payment_in.payment_method
    )
    return PaymentLogResponse.from_log(log)
