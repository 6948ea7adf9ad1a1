from __future__ import annotations

import secrets

from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBasic, HTTPBasicCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.core.db import get_session
from app.core.enums import SellerStatus
from app.models.seller import Seller
from app.services.tokens import TokenKind, TokenService, TokenState


security = HTTPBasic(auto_error=False)
bearer = HTTPBearer(auto_error=False)

ACTIVE_SELLER_STATUSES = frozenset({SellerStatus.APPROVED, SellerStatus.ACTIVE})


def require_basic_auth(credentials: HTTPBasicCredentials | None = Depends(security)) -> str:
    settings = get_settings()
    if credentials is None:
        raise HTTPException(status_code=401, detail="Authentication required", headers={"WWW-Authenticate": "Basic"})

    valid_user = secrets.compare_digest(credentials.username, settings.basic_auth_username)
    valid_pass = secrets.compare_digest(credentials.password, settings.basic_auth_password)
    if not (valid_user and valid_pass):
        raise HTTPException(status_code=401, detail="Invalid credentials", headers={"WWW-Authenticate": "Basic"})
    return credentials.username


def get_token_service() -> TokenService:
    return TokenService.from_settings(get_settings())


async def require_seller(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer),
    session: AsyncSession = Depends(get_session),
    tokens: TokenService = Depends(get_token_service),
) -> Seller:
    if credentials is None:
        raise HTTPException(status_code=401, detail="Unauthorized", headers={"WWW-Authenticate": "Bearer"})

    check = tokens.inspect(credentials.credentials, kind=TokenKind.ACCESS)
    if check.state == TokenState.EXPIRED:
        raise HTTPException(status_code=401, detail="Token expired", headers={"WWW-Authenticate": "Bearer"})
    if check.state != TokenState.VALID or check.subject is None:
        raise HTTPException(status_code=401, detail="Unauthorized", headers={"WWW-Authenticate": "Bearer"})

    seller = await session.get(Seller, check.subject)
    if seller is None:
        raise HTTPException(status_code=401, detail="Seller not found", headers={"WWW-Authenticate": "Bearer"})
    if seller.status not in ACTIVE_SELLER_STATUSES:
        raise HTTPException(status_code=401, detail="Account not active", headers={"WWW-Authenticate": "Bearer"})
    return seller
