"""
Ledger error kinds.

Every error carries a human readable message plus a context dict (entity ids,
attempted amounts) so callers can decide whether a retry is safe. Nothing in
the ledger retries on its own.
"""

from typing import Any, Dict


class LedgerError(Exception):
    """Base class for ledger failures."""

    def __init__(self, message: str, **context: Any):
        super().__init__(message)
        self.message = message
        self.context: Dict[str, Any] = context

    def to_dict(self) -> Dict[str, Any]:
        return {"detail": self.message, "context": self.context}


class ValidationError(LedgerError):
    """Rejected before any mutation took place."""
    pass


class NotFoundError(LedgerError):
    """A referenced group, member, auction, payment or log is absent."""
    pass


class StoreError(LedgerError):
    """
    The document store failed to apply a write.

    committed_units counts the rows (allocation) or chunks/operations (cascade)
    that were durably applied before the failure.
    """

    def __init__(self, message: str, committed_units: int = 0, **context: Any):
        super().__init__(message, committed_units=committed_units, **context)
        self.committed_units = committed_units
