import logging
from datetime import datetime, timezone
from typing import List, Optional

from chitbook.core.context import LedgerContext
from chitbook.core.errors import NotFoundError, ValidationError
from chitbook.db.store import GROUP_MEMBERS, GROUPS
from chitbook.models.group import Group, GroupMember
from chitbook.repositories.client_repo import ClientRepository
from chitbook.repositories.group_repo import GroupRepository
from chitbook.repositories.payment_repo import PaymentRepository
from chitbook.schemas.group import GroupCreate, GroupUpdate, MemberCreate, MemberUpdate
from chitbook.services.cascade_service import CascadeService
from chitbook.utils.ledger_validation import validate_chit_count, validate_group_terms

logger = logging.getLogger(__name__)


class GroupService:
    @staticmethod
    async def create_group(ctx: LedgerContext, group_in: GroupCreate) -> Group:
        validate_group_terms(group_in.chit_value_cents, group_in.agent_commission_percent, group_in.member_count)

        group = Group(id=ctx.store.new_id(), **group_in.model_dump())
        await ctx.store.insert(ctx.account_id, GROUPS, group.id, group.to_document())

        logger.info("Created group %s (%s)", group.id, group.group_name)
        return group

    @staticmethod
    async def get_group(ctx: LedgerContext, group_id: str) -> Group:
        group = await GroupRepository(ctx).get_group(group_id)
        if not group:
            raise NotFoundError(f"Group {group_id} not found", group_id=group_id)
        return group

    @staticmethod
    async def list_groups(ctx: LedgerContext) -> List[Group]:
        return await GroupRepository(ctx).list_groups()

    @staticmethod
    async def update_group(ctx: LedgerContext, group_id: str, group_in: GroupUpdate) -> Group:
        """Edit group terms. Existing auctions keep the amounts they were priced with."""
        group = await GroupService.get_group(ctx, group_id)

        changes = group_in.model_dump(exclude_unset=True, exclude_none=True)
        updated = group.model_copy(update=changes)
        # Round-trip through validation so dates are normalised
        updated = Group(**{**updated.model_dump(), "updated_at": datetime.now(timezone.utc)})
        validate_group_terms(updated.chit_value_cents, updated.agent_commission_percent, updated.member_count)

        await ctx.store.update(ctx.account_id, GROUPS, group_id, updated.to_document())
        return updated

    @staticmethod
    async def delete_group(ctx: LedgerContext, group_id: str) -> int:
        return await CascadeService.delete_group(ctx, group_id)

    @staticmethod
    async def add_member(ctx: LedgerContext, group_id: str, member_in: MemberCreate) -> GroupMember:
        """Enrol a client in a group; one membership row per client per group."""
        group = await GroupService.get_group(ctx, group_id)
        validate_chit_count(member_in.chit_count)

        client = await ClientRepository(ctx).get_client(member_in.client_id)
        if not client:
            raise NotFoundError(f"Client {member_in.client_id} not found", client_id=member_in.client_id)

        existing = await GroupRepository(ctx).list_members(group_id=group_id, client_id=member_in.client_id)
        if existing:
            raise ValidationError(
                f"Client {member_in.client_id} is already a member of group {group.group_name}",
                group_id=group_id,
                client_id=member_in.client_id,
                member_id=existing[0].id,
            )

        member = GroupMember(
            id=ctx.store.new_id(),
            group_id=group.id,
            group_name=group.group_name,
            client_name=client.name,
            **member_in.model_dump(),
        )
        await ctx.store.insert(ctx.account_id, GROUP_MEMBERS, member.id, member.to_document())

        logger.info("Added client %s to group %s with %s chits", member.client_id, group_id, member.chit_count)
        return member

    @staticmethod
    async def update_member(ctx: LedgerContext, member_id: str, member_in: MemberUpdate) -> GroupMember:
        """Change chit count or notes. Takes effect from the next auction create or edit."""
        member = await GroupRepository(ctx).get_member(member_id)
        if not member:
            raise NotFoundError(f"Group member {member_id} not found", member_id=member_id)

        changes = member_in.model_dump(exclude_unset=True, exclude_none=True)
        if "chit_count" in changes:
            validate_chit_count(changes["chit_count"])
        changes["updated_at"] = datetime.now(timezone.utc)
        updated = member.model_copy(update=changes)

        await ctx.store.update(ctx.account_id, GROUP_MEMBERS, member_id, updated.to_document())
        logger.info("Updated membership %s of client %s in group %s", member_id, member.client_id, member.group_id)
        return updated

    @staticmethod
    async def list_members(ctx: LedgerContext, group_id: Optional[str] = None) -> List[GroupMember]:
        return await GroupRepository(ctx).list_members(group_id=group_id)

    @staticmethod
    async def remove_member(ctx: LedgerContext, member_id: str) -> None:
        """Refused while the client has payments in the group."""
        member = await GroupRepository(ctx).get_member(member_id)
        if not member:
            raise NotFoundError(f"Group member {member_id} not found", member_id=member_id)

        payments = await PaymentRepository(ctx).list_payments(client_id=member.client_id, group_id=member.group_id)
        if payments:
            raise ValidationError(
                "Cannot remove a membership with existing payments",
                member_id=member_id,
                client_id=member.client_id,
                group_id=member.group_id,
                payment_count=len(payments),
            )

        await ctx.store.delete(ctx.account_id, GROUP_MEMBERS, member_id)
        logger.info("Removed client %s from group %s", member.client_id, member.group_id)
