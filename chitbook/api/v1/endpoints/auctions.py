from typing import List, Optional
from fastapi import APIRouter, Depends, status
from chitbook.core.auth import get_ledger_context
from chitbook.core.context import LedgerContext
from chitbook.models.auction import Auction
from chitbook.schemas.auction import (
    AuctionCreate,
    AuctionDeleteResponse,
    AuctionResponse,
    AuctionUpdate,
)
from chitbook.services.auction_service import AuctionService

router = APIRouter()

def _to_response(auction: Auction) -> AuctionResponse:
    return AuctionResponse.model_validate(auction)

@router.post("/", response_model=AuctionResponse, status_code=status.HTTP_201_CREATED)
async def create_auction(auction_in: AuctionCreate, ctx: LedgerContext = Depends(get_ledger_context)):
    """Create an auction and the members' payments"""
    auction = await AuctionService.create_auction(ctx, auction_in)
    return _to_response(auction)

@router.get("/", response_model=List[AuctionResponse])
async def list_auctions(
    group_id: Optional[str] = None,
    month: Optional[str] = None,
    ctx: LedgerContext = Depends(get_ledger_context),
):
    auctions = await AuctionService.list_auctions(ctx, group_id=group_id, chit_month=month)
    return [_to_response(auction) for auction in auctions]

@router.get("/{auction_id}", response_model=AuctionResponse)
async def get_auction(auction_id: str, ctx: LedgerContext = Depends(get_ledger_context)):
    return _to_response(await AuctionService.get_auction(ctx, auction_id))

@router.put("/{auction_id}", response_model=AuctionResponse)
async def update_auction(
    auction_id: str,
    auction_in: AuctionUpdate,
    ctx: LedgerContext = Depends(get_ledger_context),
):
    """Edit an auction and re-price its payments"""
    auction = await AuctionService.update_auction(ctx, auction_id, auction_in)
    return _to_response(auction)

@router.delete("/{auction_id}", response_model=AuctionDeleteResponse)
async def delete_auction(auction_id: str, ctx: LedgerContext = Depends(get_ledger_context)):
    """Delete an auction with all its payments and payment logs"""
    result = await AuctionService.delete_auction(ctx, auction_id)
    return AuctionDeleteResponse(
        auction_id=result.auction_id,
        deleted_payment_count=result.deleted_payment_count,
        deleted_log_count=result.deleted_log_count,
        batches_committed=result.batches_committed,
    )
