from typing import List, Optional

from chitbook.core.context import LedgerContext
from chitbook.db.store import CLIENTS
from chitbook.models.client import Client


class ClientRepository:
    """Client reads for one account."""

    def __init__(self, ctx: LedgerContext):
        self.ctx = ctx
        self.store = ctx.store

    async def get_client(self, client_id: str) -> Optional[Client]:
        doc = await self.store.get(self.ctx.account_id, CLIENTS, client_id)
        if doc:
            return Client(**doc)
        return None

    async def list_clients(self) -> List[Client]:
        """All clients, newest first."""
        docs = await self.store.find(self.ctx.account_id, CLIENTS)
        clients = [Client(**doc) for doc in docs]
        clients.sort(key=lambda client: (client.created_at, client.id), reverse=True)
        return clients
