from fastapi import APIRouter
from chitbook.api.v1.endpoints import auctions, clients, groups, payments, reports

api_router = APIRouter()

api_router.include_router(clients.router, prefix="/clients", tags=["clients"])
api_router.include_router(groups.router, prefix="/groups", tags=["groups"])
api_router.include_router(auctions.router, prefix="/auctions", tags=["auctions"])
api_router.include_router(payments.router, prefix="/payments", tags=["payments"])
api_router.include_router(reports.router, prefix="/reports", tags=["reports"])
