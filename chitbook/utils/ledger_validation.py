"""Input validation for ledger commands. Runs before any mutation."""
import re
from typing import Optional

from chitbook.core.errors import ValidationError

CHIT_MONTH_PATTERN = re.compile(r"^\d{4}-(0[1-9]|1[0-2])$")


def validate_chit_month(chit_month: str) -> None:
    if not CHIT_MONTH_PATTERN.match(chit_month or ""):
        raise ValidationError(
            f"Chit month must use YYYY-MM format, got '{chit_month}'",
            chit_month=chit_month,
        )


def validate_month_filter(month: Optional[str]) -> None:
    if month is not None:
        validate_chit_month(month)


def validate_bid_amount(bid_amount_cents: int, chit_value_cents: int) -> None:
    """
    Rules:
    - bid must be non-negative
    - bid cannot exceed the chit value (payout would go negative)
    """
    if bid_amount_cents < 0:
        raise ValidationError(
            f"Bid amount cannot be negative: {bid_amount_cents}",
            bid_amount_cents=bid_amount_cents,
        )
    if bid_amount_cents > chit_value_cents:
        raise ValidationError(
            f"Bid amount {bid_amount_cents} exceeds chit value {chit_value_cents}",
            bid_amount_cents=bid_amount_cents,
            chit_value_cents=chit_value_cents,
        )


def validate_payment_amount(amount_cents: int, **context) -> None:
    if amount_cents <= 0:
        raise ValidationError(
            f"Payment amount must be greater than zero, got {amount_cents}",
            amount_cents=amount_cents,
            **context,
        )


def validate_group_terms(chit_value_cents: int, agent_commission_percent: float, member_count: int) -> None:
    if chit_value_cents <= 0:
        raise ValidationError(f"Chit value must be positive: {chit_value_cents}", chit_value_cents=chit_value_cents)
    if not 0 <= agent_commission_percent <= 100:
        raise ValidationError(
            f"Agent commission percent must be between 0 and 100: {agent_commission_percent}",
            agent_commission_percent=agent_commission_percent,
        )
    if member_count <= 0:
        raise ValidationError(f"Member count must be positive: {member_count}", member_count=member_count)


def validate_chit_count(chit_count: float) -> None:
    if chit_count <= 0:
        raise ValidationError(f"Chit count must be positive: {chit_count}", chit_count=chit_count)
