from __future__ import annotations


class NotFoundError(LookupError):
    pass


class ConflictError(ValueError):
    """Business-rule violation; endpoints answer with 409."""
