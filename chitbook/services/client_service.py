import logging
from datetime import datetime, timezone
from typing import List

from chitbook.core.context import LedgerContext
from chitbook.core.errors import NotFoundError, ValidationError
from chitbook.db.store import CLIENTS
from chitbook.models.client import Client
from chitbook.repositories.client_repo import ClientRepository
from chitbook.repositories.group_repo import GroupRepository
from chitbook.repositories.payment_repo import PaymentRepository
from chitbook.schemas.client import ClientCreate, ClientUpdate

logger = logging.getLogger(__name__)


class ClientService:
    @staticmethod
    async def create_client(ctx: LedgerContext, client_in: ClientCreate) -> Client:
        client = Client(id=ctx.store.new_id(), **client_in.model_dump())
        await ctx.store.insert(ctx.account_id, CLIENTS, client.id, client.to_document())

        logger.info("Created client %s (%s)", client.id, client.name)
        return client

    @staticmethod
    async def get_client(ctx: LedgerContext, client_id: str) -> Client:
        client = await ClientRepository(ctx).get_client(client_id)
        if not client:
            raise NotFoundError(f"Client {client_id} not found", client_id=client_id)
        return client

    @staticmethod
    async def list_clients(ctx: LedgerContext) -> List[Client]:
        return await ClientRepository(ctx).list_clients()

    @staticmethod
    async def update_client(ctx: LedgerContext, client_id: str, client_in: ClientUpdate) -> Client:
        """Edit contact details. Names already copied onto memberships and payments are not rewritten."""
        client = await ClientService.get_client(ctx, client_id)

        changes = client_in.model_dump(exclude_unset=True, exclude_none=True)
        changes["updated_at"] = datetime.now(timezone.utc)
        updated = client.model_copy(update=changes)

        await ctx.store.update(ctx.account_id, CLIENTS, client_id, updated.to_document())
        return updated

    @staticmethod
    async def delete_client(ctx: LedgerContext, client_id: str) -> None:
        """Refused while the client holds memberships or has payments."""
        await ClientService.get_client(ctx, client_id)

        memberships = await GroupRepository(ctx).list_members(client_id=client_id)
        if memberships:
            raise ValidationError(
                f"Cannot delete client {client_id}: remove them from {len(memberships)} group(s) first",
                client_id=client_id,
                membership_count=len(memberships),
            )

        payments = await PaymentRepository(ctx).list_payments(client_id=client_id)
        if payments:
            raise ValidationError(
                "Cannot delete a client with existing payments",
                client_id=client_id,
                payment_count=len(payments),
            )

        await ctx.store.delete(ctx.account_id, CLIENTS, client_id)
        logger.info("Deleted client %s", client_id)
