from typing import List
from fastapi import APIRouter, Depends, status
from chitbook.core.auth import get_ledger_context
from chitbook.core.context import LedgerContext
from chitbook.schemas.client import ClientCreate, ClientResponse, ClientUpdate
from chitbook.services.client_service import ClientService

router = APIRouter()

@router.post("/", response_model=ClientResponse, status_code=status.HTTP_201_CREATED)
async def create_client(client_in: ClientCreate, ctx: LedgerContext = Depends(get_ledger_context)):
    return await ClientService.create_client(ctx, client_in)

@router.get("/", response_model=List[ClientResponse])
async def list_clients(ctx: LedgerContext = Depends(get_ledger_context)):
    return await ClientService.list_clients(ctx)

@router.get("/{client_id}", response_model=ClientResponse)
async def get_client(client_id: str, ctx: LedgerContext = Depends(get_ledger_context)):
    return await ClientService.get_client(ctx, client_id)

@router.patch("/{client_id}", response_model=ClientResponse)
async def update_client(client_id: str, client_in: ClientUpdate, ctx: LedgerContext = Depends(get_ledger_context)):
    return await ClientService.update_client(ctx, client_id, client_in)

@router.delete("/{client_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_client(client_id: str, ctx: LedgerContext = Depends(get_ledger_context)):
    """Delete a client with no memberships or payments"""
    await ClientService.delete_client(ctx, client_id)
