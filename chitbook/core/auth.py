from datetime import datetime, timedelta, timezone
from jose import JWTError, jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from chitbook.core.config import settings
from chitbook.core.context import LedgerContext
from chitbook.db.session import get_store
from chitbook.db.store import DocumentStore

security = HTTPBearer()

def create_access_token(account_id: str, expires_delta: timedelta | None = None) -> str:
    """Create JWT access token."""
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)

    now = datetime.now(timezone.utc)
    expire = now + expires_delta

    payload = {
        "sub": account_id,
        "exp": int(expire.timestamp()),
        "iat": int(now.timestamp())
    }

    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.ALGORITHM)

async def get_current_account(
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> str:
    """Opaque account id from the bearer token. No further authorization is done."""
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    try:
        payload = jwt.decode(
            credentials.credentials,
            settings.SECRET_KEY,
            algorithms=[settings.ALGORITHM]
        )
    except JWTError:
        raise credentials_exception

    account_id = payload.get("sub")
    if not account_id:
        raise credentials_exception
    return account_id

async def get_ledger_context(
    account_id: str = Depends(get_current_account),
    store: DocumentStore = Depends(get_store),
) -> LedgerContext:
    return LedgerContext(account_id=account_id, store=store)
