from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db import begin_tx, get_session
from app.core.security import ACTIVE_SELLER_STATUSES, get_token_service, require_seller
from app.models.seller import Seller
from app.schemas.seller_auth import (
    SellerLoginIn,
    SellerOut,
    SellerProfileUpdate,
    SellerRegisterIn,
    SellerSessionOut,
    TokenPairOut,
    TokenRefreshIn,
)
from app.services.sellers import (
    InvalidCredentialsError,
    SellerNotActiveError,
    authenticate_seller,
    register_seller,
    update_seller_profile,
)
from app.services.tokens import TokenError, TokenKind, TokenPair, TokenService


router = APIRouter()


def _pair_out(pair: TokenPair) -> TokenPairOut:
    return TokenPairOut(
        access_token=pair.access_token,
        refresh_token=pair.refresh_token,
        access_expires_at=pair.access_expires_at,
        refresh_expires_at=pair.refresh_expires_at,
    )


@router.post("/register", response_model=SellerOut, status_code=201)
async def register_endpoint(data: SellerRegisterIn, session: AsyncSession = Depends(get_session)) -> SellerOut:
    try:
        async with begin_tx(session):
            seller = await register_seller(session, data=data)
    except ValueError as e:
        raise HTTPException(status_code=409, detail=str(e)) from e
    return SellerOut.model_validate(seller)


@router.post("/login", response_model=SellerSessionOut)
async def login_endpoint(
    data: SellerLoginIn,
    session: AsyncSession = Depends(get_session),
    tokens: TokenService = Depends(get_token_service),
) -> SellerSessionOut:
    try:
        seller = await authenticate_seller(session, email=data.email, password=data.password)
    except (InvalidCredentialsError, SellerNotActiveError) as e:
        raise HTTPException(status_code=401, detail=str(e)) from e

    pair = tokens.issue(subject=seller.id, email=seller.email)
    return SellerSessionOut(seller=SellerOut.model_validate(seller), **_pair_out(pair).model_dump())


@router.post("/refresh", response_model=TokenPairOut)
async def refresh_endpoint(
    data: TokenRefreshIn,
    session: AsyncSession = Depends(get_session),
    tokens: TokenService = Depends(get_token_service),
) -> TokenPairOut:
    check = tokens.inspect(data.refresh_token, kind=TokenKind.REFRESH)
    seller = await session.get(Seller, check.subject) if check.subject is not None else None
    if seller is None or seller.status not in ACTIVE_SELLER_STATUSES:
        raise HTTPException(status_code=401, detail="Invalid refresh token")
    try:
        pair = tokens.refresh(data.refresh_token, email=seller.email)
    except TokenError as e:
        raise HTTPException(status_code=401, detail=str(e)) from e
    return _pair_out(pair)


@router.get("/profile", response_model=SellerOut)
async def get_profile(seller: Seller = Depends(require_seller)) -> SellerOut:
    return SellerOut.model_validate(seller)


@router.patch("/profile", response_model=SellerOut)
async def update_profile(
    data: SellerProfileUpdate,
    session: AsyncSession = Depends(get_session),
    seller: Seller = Depends(require_seller),
) -> SellerOut:
    async with begin_tx(session):
        seller = await update_seller_profile(session, seller=seller, data=data)
    return SellerOut.model_validate(seller)
