from __future__ import annotations


class ImmutableRecordError(ValueError):
    """Raised when an append-only or finalized record is about to be updated or deleted."""
