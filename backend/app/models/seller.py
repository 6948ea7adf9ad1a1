from __future__ import annotations

from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from app.core.enums import SellerStatus
from app.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin
from app.models.sql_enums import seller_status_enum


class Seller(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "sellers"

    email: Mapped[str] = mapped_column(String(320), nullable=False, unique=True, index=True)
    password_hash: Mapped[str] = mapped_column(String(200), nullable=False)

    business_name: Mapped[str] = mapped_column(String(200), nullable=False)
    trading_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    business_address: Mapped[str] = mapped_column(String(500), nullable=False)
    contact_number: Mapped[str] = mapped_column(String(50), nullable=False)
    tin: Mapped[str] = mapped_column(String(50), nullable=False)
    registration_number: Mapped[str | None] = mapped_column(String(80), nullable=True)
    contact_person: Mapped[str | None] = mapped_column(String(200), nullable=True)
    city: Mapped[str | None] = mapped_column(String(120), nullable=True)

    bank_account_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    bank_account_number: Mapped[str | None] = mapped_column(String(64), nullable=True)
    bank_name: Mapped[str | None] = mapped_column(String(200), nullable=True)

    status: Mapped[SellerStatus] = mapped_column(seller_status_enum, nullable=False, default=SellerStatus.PENDING)

    # Seller-return-index in basis points of delivered orders returned.
    sri_score_bp: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
