from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db import begin_tx, get_session
from app.core.security import require_basic_auth
from app.schemas.orders import OrderCreate, OrderDeliveryIn, OrderOut, OrderPaymentIn
from app.services.audit import admin_actor
from app.services.errors import NotFoundError
from app.services.orders import create_order, get_order, mark_order_delivered, mark_order_paid


router = APIRouter()


async def _order_out(session: AsyncSession, order_id: uuid.UUID) -> OrderOut:
    order = await get_order(session, order_id)
    return OrderOut.model_validate(order)


@router.post("", response_model=OrderOut, status_code=201)
async def create_order_endpoint(
    data: OrderCreate,
    session: AsyncSession = Depends(get_session),
    username: str = Depends(require_basic_auth),
) -> OrderOut:
    try:
        async with begin_tx(session):
            order = await create_order(session, actor=admin_actor(username), data=data)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except ValueError as e:
        raise HTTPException(status_code=409, detail=str(e)) from e
    return await _order_out(session, order.id)


@router.get("/{order_id}", response_model=OrderOut)
async def get_order_endpoint(order_id: uuid.UUID, session: AsyncSession = Depends(get_session)) -> OrderOut:
    order = await get_order(session, order_id)
    if order is None:
        raise HTTPException(status_code=404, detail="Not found")
    return OrderOut.model_validate(order)


@router.post("/{order_id}/payment", response_model=OrderOut)
async def record_order_payment(
    order_id: uuid.UUID,
    data: OrderPaymentIn,
    session: AsyncSession = Depends(get_session),
    username: str = Depends(require_basic_auth),
) -> OrderOut:
    try:
        async with begin_tx(session):
            order = await mark_order_paid(
                session,
                actor=admin_actor(username),
                order_id=order_id,
                paid_amount_cents=data.paid_amount_cents,
                payment_date=data.payment_date,
            )
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except ValueError as e:
        raise HTTPException(status_code=409, detail=str(e)) from e
    return await _order_out(session, order.id)


@router.post("/{order_id}/delivery", response_model=OrderOut)
async def record_order_delivery(
    order_id: uuid.UUID,
    data: OrderDeliveryIn,
    session: AsyncSession = Depends(get_session),
    username: str = Depends(require_basic_auth),
) -> OrderOut:
    try:
        async with begin_tx(session):
            order = await mark_order_delivered(
                session,
                actor=admin_actor(username),
                order_id=order_id,
                delivery_date=data.delivery_date,
            )
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except ValueError as e:
        raise HTTPException(status_code=409, detail=str(e)) from e
    return await _order_out(session, order.id)
