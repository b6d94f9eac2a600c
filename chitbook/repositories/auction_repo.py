from typing import List, Optional

from chitbook.core.context import LedgerContext
from chitbook.db.store import AUCTIONS
from chitbook.models.auction import Auction


class AuctionRepository:
    """Auction reads for one account."""

    def __init__(self, ctx: LedgerContext):
        self.ctx = ctx
        self.store = ctx.store

    async def get_auction(self, auction_id: str) -> Optional[Auction]:
        doc = await self.store.get(self.ctx.account_id, AUCTIONS, auction_id)
        if doc:
            return Auction(**doc)
        return None

    async def list_auctions(
        self, group_id: Optional[str] = None, chit_month: Optional[str] = None
    ) -> List[Auction]:
        """Auctions newest chit month first."""
        filters = {}
        if group_id:
            filters["group_id"] = group_id
        if chit_month:
            filters["chit_month"] = chit_month

        docs = await self.store.find(self.ctx.account_id, AUCTIONS, filters)
        auctions = [Auction(**doc) for doc in docs]
        auctions.sort(key=lambda auction: (auction.chit_month, auction.group_name), reverse=True)
        return auctions

    async def find_for_month(self, group_id: str, chit_month: str) -> Optional[Auction]:
        docs = await self.store.find(
            self.ctx.account_id, AUCTIONS, {"group_id": group_id, "chit_month": chit_month}
        )
        if docs:
            return Auction(**docs[0])
        return None
