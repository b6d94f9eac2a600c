import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from chitbook.core.config import settings
from chitbook.core.errors import LedgerError, NotFoundError, StoreError, ValidationError
from chitbook.core.logging_config import configure_logging
from chitbook.db.mongo import connect_to_mongo, close_mongo_connection
from chitbook.api.v1.api import api_router

configure_logging(settings.LOG_LEVEL)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    await connect_to_mongo()
    yield
    await close_mongo_connection()


app = FastAPI(
    title=settings.PROJECT_NAME,
    description=settings.DESCRIPTION,
    version=settings.PROJECT_VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

_STATUS_CODES = {
    ValidationError: 400,
    NotFoundError: 404,
    StoreError: 503,
}

@app.exception_handler(LedgerError)
async def ledger_error_handler(request: Request, exc: LedgerError):
    status_code = _STATUS_CODES.get(type(exc), 500)
    if status_code >= 500:
        logger.error("%s %s failed: %s %s", request.method, request.url.path, exc.message, exc.context)
    return JSONResponse(status_code=status_code, content=exc.to_dict())

@app.get("/")
async def root():
    return {"message": "Welcome to Chitbook API"}

app.include_router(api_router, prefix=settings.API_V1_STR)
