"""
Ledger arithmetic.

All amounts are integer cents. Fractional intermediate values (commission
percentages, per-member shares, fractional chit counts) are computed with
Decimal and rounded half-up to whole cents.
"""

import calendar
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal, ROUND_HALF_UP
from enum import Enum
from typing import Iterable, NamedTuple, Optional, Union


class PaymentStatus(str, Enum):
    PENDING = "Pending"
    PARTIAL = "Partial"
    PAID = "Paid"


class AuctionAmounts(NamedTuple):
    payout_amount_cents: int
    agent_commission_cents: int
    total_collection_amount_cents: int
    per_member_contribution_cents: int


def to_cents(value: Union[Decimal, int, float]) -> int:
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def payment_status(amount_paid_cents: int, amount_expected_cents: int) -> PaymentStatus:
    """
    Status of an obligation, derived from what was paid against what is expected.

    This is the only place status is decided.
    """
    if amount_paid_cents <= 0:
        return PaymentStatus.PENDING
    if amount_paid_cents < amount_expected_cents:
        return PaymentStatus.PARTIAL
    return PaymentStatus.PAID


def effective_member_count(chit_counts: Iterable[float], nominal_count: int) -> Decimal:
    """Sum of member chit counts, or the group's nominal count when no members are loaded."""
    total = sum((Decimal(str(count)) for count in chit_counts), Decimal("0"))
    if total > 0:
        return total
    return Decimal(nominal_count)


def calculate_auction_amounts(
    chit_value_cents: int,
    bid_amount_cents: int,
    agent_commission_percent: float,
    member_count: Union[Decimal, int, float],
) -> AuctionAmounts:
    """
    Derive the monetary fields of an auction.

    payout = chit value - bid
    commission = chit value * percent / 100
    total collection = payout + commission
    per member = total collection / member count
    """
    members = Decimal(str(member_count))
    if members <= 0:
        raise ValueError("member_count must be positive")

    payout = chit_value_cents - bid_amount_cents
    commission = to_cents(Decimal(chit_value_cents) * Decimal(str(agent_commission_percent)) / Decimal(100))
    total_collection = payout + commission
    per_member = to_cents(Decimal(total_collection) / members)

    return AuctionAmounts(
        payout_amount_cents=payout,
        agent_commission_cents=commission,
        total_collection_amount_cents=total_collection,
        per_member_contribution_cents=per_member,
    )


def expected_amount(per_member_contribution_cents: int, chit_count: float) -> int:
    return to_cents(Decimal(per_member_contribution_cents) * Decimal(str(chit_count)))


def ensure_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Treat naive datetimes as UTC so stored and supplied values compare cleanly."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def as_datetime(value: Union[date, datetime]) -> datetime:
    if isinstance(value, datetime):
        return ensure_utc(value)
    return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)


def month_start(today: date) -> datetime:
    """First instant of today's calendar month, in UTC."""
    return datetime(today.year, today.month, 1, tzinfo=timezone.utc)


def month_key(value: Union[date, datetime]) -> str:
    return f"{value.year:04d}-{value.month:02d}"


def default_auction_dates(
    chit_month: str, group_start_date: datetime, due_offset_days: int
) -> tuple[datetime, datetime]:
    """
    Auction date falls on the group's start day within the chit month (clamped
    to the month's last day); payment is due due_offset_days later.
    """
    year, month = (int(part) for part in chit_month.split("-"))
    last_day = calendar.monthrange(year, month)[1]
    day = min(group_start_date.day, last_day)
    auction_date = datetime(year, month, day, tzinfo=timezone.utc)
    return auction_date, auction_date + timedelta(days=due_offset_days)
