from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel

from chitbook.schemas.payment import PaymentLogResponse


class PendingGroupMonth(BaseModel):
    """Outstanding dues for one group in one chit month."""
    group_id: str
    group_name: str
    chit_month: str
    auction_date: Optional[datetime] = None
    pending_members: int
    total_pending_cents: int


class ClientGroupHolding(BaseModel):
    group_id: str
    group_name: str
    chit_count: float


class ClientGroupMonthLine(BaseModel):
    group_id: str
    group_name: str
    chit_month: str
    auction_date: Optional[datetime] = None
    auction_value_cents: int  # Per member contribution of the auction
    chit_count: float
    amount_due_cents: int
    amount_paid_cents: int
    total_pending_cents: int


class ClientStatement(BaseModel):
    client_id: str
    month: Optional[str] = None
    groups: List[ClientGroupHolding]
    pending_by_group: List[ClientGroupMonthLine]
    history: List[PaymentLogResponse]
    total_due_cents: int
    total_paid_cents: int
    total_pending_cents: int


class DashboardSummary(BaseModel):
    month: str
    active_groups: int
    total_chit_value_cents: int
    total_pending_dues_cents: int
    paid_this_month_cents: int
    online_payments_cents: int
    cash_payments_cents: int
