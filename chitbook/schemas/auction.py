from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict


class AuctionCreate(BaseModel):
    """Create (or fully re-state, on edit) an auction. Omitted dates are derived from the group."""
    group_id: str
    chit_month: str
    auction_date: Optional[datetime] = None
    payment_due_date: Optional[datetime] = None
    winner_client_ids: List[str] = []
    winner_names: List[str] = []
    bid_amount_cents: int


class AuctionUpdate(AuctionCreate):
    pass


class AuctionResponse(BaseModel):
    id: str
    group_id: str
    group_name: str
    chit_month: str
    auction_date: datetime
    payment_due_date: datetime
    winner_client_ids: List[str]
    winner_names: List[str]
    is_company_bid: bool
    bid_amount_cents: int
    payout_amount_cents: int
    agent_commission_cents: int
    total_collection_amount_cents: int
    per_member_contribution_cents: int
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class AuctionDeleteResponse(BaseModel):
    auction_id: str
    deleted_payment_count: int
    deleted_log_count: int
    batches_committed: int
