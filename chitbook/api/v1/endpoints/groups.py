from typing import List
from fastapi import APIRouter, Depends, status
from chitbook.core.auth import get_ledger_context
from chitbook.core.context import LedgerContext
from chitbook.schemas.group import (
    GroupCreate,
    GroupDeleteResponse,
    GroupResponse,
    GroupUpdate,
    MemberCreate,
    MemberResponse,
    MemberUpdate,
)
from chitbook.services.group_service import GroupService

router = APIRouter()

@router.post("/", response_model=GroupResponse, status_code=status.HTTP_201_CREATED)
async def create_group(group_in: GroupCreate, ctx: LedgerContext = Depends(get_ledger_context)):
    """Create a chit group"""
    return await GroupService.create_group(ctx, group_in)

@router.get("/", response_model=List[GroupResponse])
async def list_groups(ctx: LedgerContext = Depends(get_ledger_context)):
    return await GroupService.list_groups(ctx)

@router.patch("/members/{member_id}", response_model=MemberResponse)
async def update_member(member_id: str, member_in: MemberUpdate, ctx: LedgerContext = Depends(get_ledger_context)):
    """Change a member's chit count or notes"""
    return await GroupService.update_member(ctx, member_id, member_in)

@router.delete("/members/{member_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_member(member_id: str, ctx: LedgerContext = Depends(get_ledger_context)):
    """Remove a membership that has no payments"""
    await GroupService.remove_member(ctx, member_id)

@router.get("/{group_id}", response_model=GroupResponse)
async def get_group(group_id: str, ctx: LedgerContext = Depends(get_ledger_context)):
    return await GroupService.get_group(ctx, group_id)

@router.patch("/{group_id}", response_model=GroupResponse)
async def update_group(group_id: str, group_in: GroupUpdate, ctx: LedgerContext = Depends(get_ledger_context)):
    return await GroupService.update_group(ctx, group_id, group_in)

@router.delete("/{group_id}", response_model=GroupDeleteResponse)
async def delete_group(group_id: str, ctx: LedgerContext = Depends(get_ledger_context)):
    """Delete a group and its memberships"""
    deleted = await GroupService.delete_group(ctx, group_id)
    return GroupDeleteResponse(group_id=group_id, deleted_member_count=deleted)

@router.post("/{group_id}/members", response_model=MemberResponse, status_code=status.HTTP_201_CREATED)
async def add_member(group_id: str, member_in: MemberCreate, ctx: LedgerContext = Depends(get_ledger_context)):
    return await GroupService.add_member(ctx, group_id, member_in)

@router.get("/{group_id}/members", response_model=List[MemberResponse])
async def list_members(group_id: str, ctx: LedgerContext = Depends(get_ledger_context)):
    await GroupService.get_group(ctx, group_id)
    return await GroupService.list_members(ctx, group_id)
