from typing import List, Optional

from chitbook.core.context import LedgerContext
from chitbook.db.store import GROUP_MEMBERS, GROUPS
from chitbook.models.group import Group, GroupMember


class GroupRepository:
    """Group and membership reads for one account."""

    def __init__(self, ctx: LedgerContext):
        self.ctx = ctx
        self.store = ctx.store

    async def get_group(self, group_id: str) -> Optional[Group]:
        doc = await self.store.get(self.ctx.account_id, GROUPS, group_id)
        if doc:
            return Group(**doc)
        return None

    async def list_groups(self) -> List[Group]:
        """All groups, newest first."""
        docs = await self.store.find(self.ctx.account_id, GROUPS)
        groups = [Group(**doc) for doc in docs]
        groups.sort(key=lambda group: group.created_at, reverse=True)
        return groups

    async def get_member(self, member_id: str) -> Optional[GroupMember]:
        doc = await self.store.get(self.ctx.account_id, GROUP_MEMBERS, member_id)
        if doc:
            return GroupMember(**doc)
        return None

    async def list_members(
        self, group_id: Optional[str] = None, client_id: Optional[str] = None
    ) -> List[GroupMember]:
        filters = {}
        if group_id:
            filters["group_id"] = group_id
        if client_id:
            filters["client_id"] = client_id

        docs = await self.store.find(self.ctx.account_id, GROUP_MEMBERS, filters)
        members = [GroupMember(**doc) for doc in docs]
        members.sort(key=lambda member: member.created_at, reverse=True)
        return members
