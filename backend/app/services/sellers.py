from __future__ import annotations

import logging

import bcrypt
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.core.enums import SellerStatus
from app.models.seller import Seller
from app.schemas.seller_auth import SellerProfileUpdate, SellerRegisterIn
from app.services.audit import audit_log, seller_actor
from app.services.errors import ConflictError


logger = logging.getLogger(__name__)

_LOGIN_STATUSES = frozenset({SellerStatus.APPROVED, SellerStatus.ACTIVE})
_REQUIRED_PROFILE_FIELDS = frozenset({"business_name", "business_address", "contact_number"})


class SellerConflictError(ConflictError):
    pass


class InvalidCredentialsError(ValueError):
    pass


class SellerNotActiveError(ValueError):
    pass


def hash_password(password: str, *, rounds: int | None = None) -> str:
    if rounds is None:
        rounds = get_settings().password_hash_rounds
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=rounds)).decode("ascii")


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("ascii"))
    except ValueError:
        return False


def _normalize_email(email: str) -> str:
    return email.strip().lower()


async def get_seller_by_email(session: AsyncSession, email: str) -> Seller | None:
    stmt = select(Seller).where(func.lower(Seller.email) == _normalize_email(email))
    return (await session.execute(stmt)).scalar_one_or_none()


async def register_seller(session: AsyncSession, *, data: SellerRegisterIn) -> Seller:
    if await get_seller_by_email(session, data.email) is not None:
        raise SellerConflictError("Seller with this email already exists")

    seller = Seller(
        email=_normalize_email(data.email),
        password_hash=hash_password(data.password),
        business_name=data.business_name,
        trading_name=data.trading_name or data.business_name,
        business_address=data.business_address,
        contact_number=data.contact_number,
        tin=data.tin,
        registration_number=data.registration_number,
        bank_account_name=data.bank_account_name,
        bank_account_number=data.bank_account_number,
        bank_name=data.bank_name,
        contact_person=data.contact_person,
        city=data.city,
        status=SellerStatus.ACTIVE,
        sri_score_bp=0,
    )
    session.add(seller)
    try:
        await session.flush()
    except IntegrityError as e:
        # Lost a race with a concurrent registration for the same email.
        raise SellerConflictError("Seller with this email already exists") from e

    await audit_log(
        session,
        actor=seller_actor(seller.id),
        entity_type="seller",
        entity_id=seller.id,
        action="register",
        after={"email": seller.email, "business_name": seller.business_name, "status": seller.status},
    )
    logger.info("Seller registered", extra={"seller_id": str(seller.id)})
    return seller


async def authenticate_seller(session: AsyncSession, *, email: str, password: str) -> Seller:
    seller = await get_seller_by_email(session, email)
    # Same error for unknown email and wrong password.
    if seller is None or not verify_password(password, seller.password_hash):
        raise InvalidCredentialsError("Invalid credentials")
    if seller.status not in _LOGIN_STATUSES:
        raise SellerNotActiveError("Account pending approval. Please wait for admin review.")
    return seller


async def update_seller_profile(session: AsyncSession, *, seller: Seller, data: SellerProfileUpdate) -> Seller:
    changes = {
        field: value
        for field, value in data.model_dump(exclude_unset=True).items()
        if value is not None or field not in _REQUIRED_PROFILE_FIELDS
    }
    before = {field: getattr(seller, field) for field in changes}
    for field, value in changes.items():
        setattr(seller, field, value)
    await session.flush()

    if changes:
        await audit_log(
            session,
            actor=seller_actor(seller.id),
            entity_type="seller",
            entity_id=seller.id,
            action="update_profile",
            before=before,
            after=changes,
        )
    return seller
