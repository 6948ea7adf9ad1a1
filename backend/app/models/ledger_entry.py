from __future__ import annotations

import uuid
from datetime import date

from sqlalchemy import Date, ForeignKey, Index, Integer, String, event
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from app.core.enums import LedgerEntryType, TaxCategory
from app.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin
from app.models.errors import ImmutableRecordError
from app.models.sql_enums import ledger_entry_type_enum, tax_category_enum


class LedgerEntry(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "ledger_entries"
    __table_args__ = (Index("ix_ledger_entries_seller_entry_date", "seller_id", "entry_date"),)

    seller_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), ForeignKey("sellers.id"), nullable=False)
    entry_date: Mapped[date] = mapped_column(Date, nullable=False)
    entry_type: Mapped[LedgerEntryType] = mapped_column(ledger_entry_type_enum, nullable=False)
    category: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str] = mapped_column(String(500), nullable=False)

    # Positive=income/inflow, Negative=cost/outflow
    amount_cents: Mapped[int] = mapped_column(Integer, nullable=False)

    reference: Mapped[str | None] = mapped_column(String(120), nullable=True)
    tax_category: Mapped[TaxCategory | None] = mapped_column(tax_category_enum, nullable=True)

    entity_type: Mapped[str] = mapped_column(String(100), nullable=False)
    entity_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False)

    # Outflows are debits, inflows credits.
    @property
    def debit_cents(self) -> int:
        return -self.amount_cents if self.amount_cents < 0 else 0

    @property
    def credit_cents(self) -> int:
        return self.amount_cents if self.amount_cents > 0 else 0


@event.listens_for(LedgerEntry, "before_update")
def _prevent_ledger_update(mapper, connection, target: LedgerEntry) -> None:  # noqa: ANN001
    raise ImmutableRecordError(f"Ledger entries are append-only: cannot modify {target.id}")


@event.listens_for(LedgerEntry, "before_delete")
def _prevent_ledger_delete(mapper, connection, target: LedgerEntry) -> None:  # noqa: ANN001
    raise ImmutableRecordError(f"Ledger entries are append-only: cannot delete {target.id}")
