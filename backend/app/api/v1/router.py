from __future__ import annotations

from fastapi import APIRouter, Depends

from app.api.v1.endpoints import accounting, admin_orders, admin_payouts, seller_auth, seller_payouts
from app.core.security import require_basic_auth


admin_router = APIRouter(dependencies=[Depends(require_basic_auth)])
admin_router.include_router(admin_payouts.router, prefix="/payouts", tags=["admin-payouts"])
admin_router.include_router(admin_orders.router, prefix="/orders", tags=["admin-orders"])

# Seller routes authenticate per endpoint: auth/register and auth/login are public.
seller_router = APIRouter()
seller_router.include_router(seller_auth.router, prefix="/auth", tags=["seller-auth"])
seller_router.include_router(accounting.router, prefix="/accounting", tags=["seller-accounting"])
seller_router.include_router(seller_payouts.router, prefix="/payouts", tags=["seller-payouts"])

api_router = APIRouter()
api_router.include_router(admin_router, prefix="/admin")
api_router.include_router(seller_router, prefix="/seller")
