from datetime import datetime, timezone
from typing import List, Optional
from fastapi import APIRouter, Depends
from chitbook.core.auth import get_ledger_context
from chitbook.core.context import LedgerContext
from chitbook.schemas.report import ClientStatement, DashboardSummary, PendingGroupMonth
from chitbook.services.report_service import ReportService
from chitbook.utils.ledger_math import month_key

router = APIRouter()

@router.get("/pending-by-group", response_model=List[PendingGroupMonth])
async def pending_by_group(
    group_id: Optional[str] = None,
    client_id: Optional[str] = None,
    month: Optional[str] = None,
    ctx: LedgerContext = Depends(get_ledger_context),
):
    """Pending totals per group and chit month"""
    return await ReportService.get_pending_by_group_and_month(
        ctx, group_id=group_id, client_id=client_id, month=month
    )

@router.get("/clients/{client_id}", response_model=ClientStatement)
async def client_statement(
    client_id: str,
    month: Optional[str] = None,
    ctx: LedgerContext = Depends(get_ledger_context),
):
    """Statement for one client"""
    return await ReportService.get_client_statement(ctx, client_id, month=month)

@router.get("/dashboard", response_model=DashboardSummary)
async def dashboard(
    month: Optional[str] = None,
    ctx: LedgerContext = Depends(get_ledger_context),
):
    """Dashboard figures, current month by default"""
    return await ReportService.get_dashboard_summary(ctx, month or month_key(datetime.now(timezone.utc)))
