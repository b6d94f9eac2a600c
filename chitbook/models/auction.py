"""
Auction model - one monthly cycle of a group.

Derived amounts (all integer cents):
- payout = chit value - bid
- agent commission = chit value * commission percent / 100
- total collection = payout + agent commission
- per member contribution = total collection / effective member count

An empty winner list is a company bid: nobody takes the pot but every
member still owes.
"""

from typing import List

from chitbook.models.base import LedgerDocument, UTCDateTime


class Auction(LedgerDocument):
    group_id: str
    group_name: str = ""
    chit_month: str  # YYYY-MM, unique per group
    auction_date: UTCDateTime
    payment_due_date: UTCDateTime

    winner_client_ids: List[str] = []
    winner_names: List[str] = []

    bid_amount_cents: int
    payout_amount_cents: int
    agent_commission_cents: int
    total_collection_amount_cents: int
    per_member_contribution_cents: int

    @property
    def is_company_bid(self) -> bool:
        return not self.winner_client_ids
