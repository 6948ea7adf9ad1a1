from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Integer, String, Text, event, inspect
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from app.core.enums import PayoutStatus
from app.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin
from app.models.errors import ImmutableRecordError
from app.models.sql_enums import payout_status_enum


class Payout(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "payouts"

    reference: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    seller_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("sellers.id"),
        nullable=False,
        index=True,
    )

    gross_amount_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    platform_commission_cents: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    gateway_fee_cents: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    net_amount_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False)

    bank_reference: Mapped[str] = mapped_column(String(200), nullable=False)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    status: Mapped[PayoutStatus] = mapped_column(payout_status_enum, nullable=False, default=PayoutStatus.PENDING)
    processed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True, index=True)

    idempotency_key: Mapped[str] = mapped_column(String(128), nullable=False, unique=True)


def _persisted_status(target: Payout) -> PayoutStatus | None:
    # Status as stored in the DB, before any pending in-memory change.
    hist = inspect(target).attrs.status.history
    if hist.deleted:
        return hist.deleted[0]
    if hist.unchanged:
        return hist.unchanged[0]
    return target.status


@event.listens_for(Payout, "before_update")
def _prevent_completed_payout_update(mapper, connection, target: Payout) -> None:  # noqa: ANN001
    if _persisted_status(target) == PayoutStatus.COMPLETED:
        raise ImmutableRecordError(f"Payout {target.reference} is COMPLETED and cannot be modified")


@event.listens_for(Payout, "before_delete")
def _prevent_completed_payout_delete(mapper, connection, target: Payout) -> None:  # noqa: ANN001
    if _persisted_status(target) == PayoutStatus.COMPLETED:
        raise ImmutableRecordError(f"Payout {target.reference} is COMPLETED and cannot be deleted")
