"""
Read-only rollups over payments, auctions and logs.

Nothing here writes. Every figure is derived from the current row set on
demand.
"""

from datetime import date, datetime, timedelta, timezone
from typing import Dict, List, Optional, Sequence, Tuple

from chitbook.core.context import LedgerContext
from chitbook.models.auction import Auction
from chitbook.models.group import GroupMember
from chitbook.models.payment import Payment, PaymentLog, PaymentMethod
from chitbook.repositories.auction_repo import AuctionRepository
from chitbook.repositories.group_repo import GroupRepository
from chitbook.repositories.payment_repo import PaymentRepository
from chitbook.schemas.payment import PaymentLogResponse
from chitbook.schemas.report import (
    ClientGroupHolding,
    ClientGroupMonthLine,
    ClientStatement,
    DashboardSummary,
    PendingGroupMonth,
)
from chitbook.utils.ledger_math import PaymentStatus
from chitbook.utils.ledger_validation import validate_month_filter

_FAR_FUTURE = datetime.max.replace(tzinfo=timezone.utc)


def _auction_sort_key(auction_date: Optional[datetime], *rest: str) -> Tuple:
    # Rows without an auction sort last
    return (auction_date or _FAR_FUTURE, *rest)


def summarize_pending_by_group_month(
    payments: Sequence[Payment], auctions: Dict[str, Auction]
) -> List[PendingGroupMonth]:
    """Sum pending amounts of unpaid rows per (group, chit month)."""
    buckets: Dict[Tuple[str, str], dict] = {}

    for payment in payments:
        if payment.status == PaymentStatus.PAID:
            continue

        key = (payment.group_id, payment.chit_month)
        auction = auctions.get(payment.auction_id)
        auction_date = auction.auction_date if auction else None

        bucket = buckets.get(key)
        if bucket is None:
            bucket = buckets[key] = {
                "group_id": payment.group_id,
                "group_name": payment.group_name,
                "chit_month": payment.chit_month,
                "auction_date": auction_date,
                "clients": set(),
                "total": 0,
            }
        elif auction_date and (bucket["auction_date"] is None or auction_date < bucket["auction_date"]):
            bucket["auction_date"] = auction_date

        bucket["clients"].add(payment.client_id)
        bucket["total"] += payment.outstanding_cents()

    rows = [
        PendingGroupMonth(
            group_id=bucket["group_id"],
            group_name=bucket["group_name"],
            chit_month=bucket["chit_month"],
            auction_date=bucket["auction_date"],
            pending_members=len(bucket["clients"]),
            total_pending_cents=bucket["total"],
        )
        for bucket in buckets.values()
    ]
    rows.sort(key=lambda row: _auction_sort_key(row.auction_date, row.group_name, row.chit_month))
    return rows


def summarize_client_lines(
    payments: Sequence[Payment],
    auctions: Dict[str, Auction],
    memberships: Sequence[GroupMember],
) -> List[ClientGroupMonthLine]:
    """Per (group, chit month) amounts due, paid and pending for one client."""
    chit_counts = {member.group_id: member.chit_count for member in memberships}
    lines: Dict[Tuple[str, str], ClientGroupMonthLine] = {}

    for payment in payments:
        key = (payment.group_id, payment.chit_month)
        line = lines.get(key)
        if line is None:
            auction = auctions.get(payment.auction_id)
            lines[key] = ClientGroupMonthLine(
                group_id=payment.group_id,
                group_name=payment.group_name,
                chit_month=payment.chit_month,
                auction_date=auction.auction_date if auction else None,
                auction_value_cents=auction.per_member_contribution_cents if auction else 0,
                chit_count=chit_counts.get(payment.group_id, payment.chit_count),
                amount_due_cents=payment.amount_expected_cents,
                amount_paid_cents=payment.amount_paid_cents,
                total_pending_cents=payment.outstanding_cents(),
            )
        else:
            line.amount_due_cents += payment.amount_expected_cents
            line.amount_paid_cents += payment.amount_paid_cents
            line.total_pending_cents += payment.outstanding_cents()

    return sorted(
        lines.values(),
        key=lambda line: (line.chit_month, _auction_sort_key(line.auction_date), line.group_name),
    )


class ReportService:
    @staticmethod
    async def get_pending_by_group_and_month(
        ctx: LedgerContext,
        group_id: Optional[str] = None,
        client_id: Optional[str] = None,
        month: Optional[str] = None,
    ) -> List[PendingGroupMonth]:
        validate_month_filter(month)
        payments = await PaymentRepository(ctx).list_payments(
            client_id=client_id, group_id=group_id, chit_month=month
        )
        auctions = await ReportService._auctions_by_id(ctx)
        return summarize_pending_by_group_month(payments, auctions)

    @staticmethod
    async def get_client_statement(
        ctx: LedgerContext, client_id: str, month: Optional[str] = None
    ) -> ClientStatement:
        """Memberships, per group-month balances and payment history (optionally for one month)."""
        validate_month_filter(month)
        payment_repo = PaymentRepository(ctx)

        memberships = await GroupRepository(ctx).list_members(client_id=client_id)
        payments = await payment_repo.list_payments(client_id=client_id)
        auctions = await ReportService._auctions_by_id(ctx)
        history = await payment_repo.list_logs(client_id=client_id, month=month)

        groups = sorted(
            (
                ClientGroupHolding(group_id=m.group_id, group_name=m.group_name, chit_count=m.chit_count)
                for m in memberships
            ),
            key=lambda holding: holding.group_name.lower(),
        )
        lines = summarize_client_lines(payments, auctions, memberships)

        return ClientStatement(
            client_id=client_id,
            month=month,
            groups=groups,
            pending_by_group=lines,
            history=[PaymentLogResponse.from_log(log) for log in history],
            total_due_cents=sum(line.amount_due_cents for line in lines),
            total_paid_cents=sum(line.amount_paid_cents for line in lines),
            total_pending_cents=sum(line.total_pending_cents for line in lines),
        )

    @staticmethod
    async def get_dashboard_summary(ctx: LedgerContext, month: str) -> DashboardSummary:
        validate_month_filter(month)
        groups = await GroupRepository(ctx).list_groups()
        payment_repo = PaymentRepository(ctx)
        payments = await payment_repo.list_payments()
        month_logs = await payment_repo.list_logs(month=month)

        return DashboardSummary(
            month=month,
            active_groups=len(groups),
            total_chit_value_cents=sum(group.chit_value_cents for group in groups),
            total_pending_dues_cents=sum(
                payment.outstanding_cents() for payment in payments if payment.status != PaymentStatus.PAID
            ),
            paid_this_month_cents=sum(log.amount_paid_cents for log in month_logs),
            online_payments_cents=_sum_by_method(month_logs, PaymentMethod.ONLINE),
            cash_payments_cents=_sum_by_method(month_logs, PaymentMethod.CASH),
        )

    @staticmethod
    async def list_pending_payments(
        ctx: LedgerContext,
        group_id: Optional[str] = None,
        month: Optional[str] = None,
        days_overdue: Optional[int] = None,
        today: Optional[date] = None,
    ) -> List[Payment]:
        """Unpaid rows, optionally only those due more than days_overdue days ago."""
        validate_month_filter(month)
        payments = await PaymentRepository(ctx).list_payments(group_id=group_id, chit_month=month)
        pending = [payment for payment in payments if payment.status != PaymentStatus.PAID]

        if days_overdue is not None:
            today = today or datetime.now(timezone.utc).date()
            cutoff = datetime(today.year, today.month, today.day, tzinfo=timezone.utc) - timedelta(days=days_overdue)
            pending = [payment for payment in pending if payment.payment_due_date < cutoff]

        return pending

    @staticmethod
    async def _auctions_by_id(ctx: LedgerContext) -> Dict[str, Auction]:
        auctions = await AuctionRepository(ctx).list_auctions()
        return {auction.id: auction for auction in auctions}


def _sum_by_method(logs: Sequence[PaymentLog], method: PaymentMethod) -> int:
    return sum(log.amount_paid_cents for log in logs if log.payment_method == method)
